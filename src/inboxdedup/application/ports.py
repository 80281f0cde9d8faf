"""Application ports (interfaces). Implemented by infrastructure adapters."""

from typing import Protocol

from inboxdedup.domain import Contact, MergedContactFields, Note


class ContactRepository(Protocol):
    """Persists contacts and the messages and notes that point at them."""

    def prepare(self, contact: Contact) -> Contact:
        """Return the contact exactly as add() would store it (e.g. phones normalized)."""
        ...

    def add(self, contact: Contact) -> None:
        """Store a new contact. Adding an id that already exists is a no-op."""
        ...

    def update(self, contact: Contact) -> Contact | None:
        """Overwrite the stored contact's fields. Returns the stored contact, or None if unknown."""
        ...

    def delete(self, contact_id: str) -> bool:
        """Delete the contact with its notes and message links. Returns False if unknown."""
        ...

    def get_by_id(self, contact_id: str) -> Contact | None:
        """Return the contact with the given id, or None."""
        ...

    def list_all(self) -> list[Contact]:
        """Return all contacts not merged into another, in creation order."""
        ...

    def list_candidates(self, exclude_id: str) -> list[Contact]:
        """Return the duplicate candidate pool: every unmerged contact except exclude_id."""
        ...

    def add_message(self, contact_id: str, message_id: str) -> None:
        """Record that a message belongs to the contact."""
        ...

    def add_note(self, note: Note) -> None:
        """Store a note on note.contact_id."""
        ...

    def list_notes(self, contact_id: str) -> list[Note]:
        """Return the contact's notes, newest first."""
        ...

    def reference_counts(self, contact_id: str) -> tuple[int, int]:
        """Return (message count, note count) for the contact."""
        ...

    def apply_merge(
        self,
        primary_id: str,
        duplicate_id: str,
        fields: MergedContactFields | None,
    ) -> Contact | None:
        """Fold duplicate into primary as one unit of work.

        Updates the primary with fields (when given), repoints messages and
        notes from duplicate to primary, then deletes the duplicate. Returns the
        updated primary, or None (and writes nothing) if either is missing.
        """
        ...
