"""Domain entities: Contact, Note, ContactMatch, and MergedContactFields."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass(frozen=True)
class Contact:
    """
    A person reachable over one or more inbox channels (SMS, WhatsApp, email).
    Every channel field is optional; a Contact is never mutated once built.
    merged_into_id marks a contact that was folded into another one.
    """

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    name: str | None = None
    phone: str | None = None
    whatsapp: str | None = None
    email: str | None = None
    tags: tuple[str, ...] = ()
    social_handles: dict[str, str] = field(default_factory=dict)
    merged_into_id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        if not self.id or not str(self.id).strip():
            raise ValueError("Contact id must be non-empty.")
        object.__setattr__(self, "tags", tuple(self.tags or ()))
        object.__setattr__(self, "social_handles", dict(self.social_handles or {}))


@dataclass(frozen=True)
class ContactMatch:
    """A candidate contact that scored past the duplicate threshold."""

    contact: Contact
    match_score: int
    match_reasons: tuple[str, ...] = ()


@dataclass(frozen=True)
class MergedContactFields:
    """Field set to apply to the primary contact when a duplicate is merged in."""

    name: str | None = None
    phone: str | None = None
    whatsapp: str | None = None
    email: str | None = None
    social_handles: dict[str, str] = field(default_factory=dict)
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class Note:
    """
    A free-text note a teammate attached to a contact.
    Notes follow their contact when it is merged into another one.
    """

    contact_id: str
    content: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    author_id: str | None = None
    is_private: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        if not self.content or not self.content.strip():
            raise ValueError("Note content must be non-empty.")
