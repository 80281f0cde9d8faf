"""Request and result types for the contact use cases."""

from dataclasses import dataclass, field

from inboxdedup.domain import Contact, ContactMatch, Note


@dataclass(frozen=True)
class ContactCardData:
    """Incoming contact fields, as received from a form or API body."""

    name: str | None = None
    phone: str | None = None
    whatsapp: str | None = None
    email: str | None = None
    tags: tuple[str, ...] = ()
    social_handles: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ContactCreated:
    contact: Contact


@dataclass(frozen=True)
class PossibleDuplicates:
    """Creation was held back because existing contacts look like the card."""

    matches: list[ContactMatch]


@dataclass(frozen=True)
class Invalid:
    reason: str


@dataclass(frozen=True)
class ContactNotFound:
    contact_id: str


@dataclass(frozen=True)
class DuplicatesFound:
    contact: Contact
    matches: list[ContactMatch]


@dataclass(frozen=True)
class MergeCompleted:
    contact: Contact
    duplicate_id: str


@dataclass(frozen=True)
class ContactSummary:
    """Contact plus how many messages and notes point at it."""

    contact: Contact
    message_count: int = 0
    note_count: int = 0


@dataclass(frozen=True)
class ContactChanges:
    """Partial update of a contact's channel fields.
    None leaves a field unchanged; an empty string clears it.
    """

    name: str | None = None
    phone: str | None = None
    whatsapp: str | None = None
    email: str | None = None


@dataclass(frozen=True)
class ContactUpdated:
    contact: Contact


@dataclass(frozen=True)
class ContactDeleted:
    contact_id: str


@dataclass(frozen=True)
class NoteAdded:
    note: Note


@dataclass(frozen=True)
class MessageRecorded:
    contact_id: str
    message_id: str
