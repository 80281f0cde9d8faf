"""Contact creation, editing, notes, duplicate search, and merge."""

import logging
from dataclasses import replace

from inboxdedup.application.dto import (
    ContactCardData,
    ContactChanges,
    ContactCreated,
    ContactDeleted,
    ContactNotFound,
    ContactSummary,
    ContactUpdated,
    DuplicatesFound,
    Invalid,
    MergeCompleted,
    MessageRecorded,
    NoteAdded,
    PossibleDuplicates,
)
from inboxdedup.application.ports import ContactRepository
from inboxdedup.domain import Contact, Note, find_potential_duplicates, merge_contact_data

logger = logging.getLogger(__name__)

_MISSING_FIELDS = "At least one of name, phone, WhatsApp or email is required."


def _clean(value: str | None) -> str | None:
    return (value or "").strip() or None


def _has_identity(contact: Contact) -> bool:
    return bool(contact.name or contact.phone or contact.whatsapp or contact.email)


class ContactService:
    """Core flow: create contacts (with a duplicate pre-check), find duplicates, merge."""

    def __init__(self, repository: ContactRepository) -> None:
        self._repo = repository

    def create_contact(
        self, card: ContactCardData, *, force: bool = False
    ) -> ContactCreated | PossibleDuplicates | Invalid:
        """Store a new contact unless it looks like an existing one.

        The duplicate check runs on the contact as it will be stored, so it sees
        the same phone numbers a later find_duplicates will. With force=True the
        check is skipped.
        """
        contact = Contact(
            name=_clean(card.name),
            phone=_clean(card.phone),
            whatsapp=_clean(card.whatsapp),
            email=_clean(card.email),
            tags=tuple(t.strip() for t in card.tags if t and t.strip()),
            social_handles={
                k: v.strip() for k, v in card.social_handles.items() if v and v.strip()
            },
        )
        if not _has_identity(contact):
            return Invalid(reason=_MISSING_FIELDS)

        contact = self._repo.prepare(contact)
        if not force:
            matches = find_potential_duplicates(contact, self._repo.list_all())
            if matches:
                logger.debug(
                    "Holding back new contact: %d possible duplicate(s)", len(matches)
                )
                return PossibleDuplicates(matches=matches)

        self._repo.add(contact)
        stored = self._repo.get_by_id(contact.id) or contact
        return ContactCreated(contact=stored)

    def update_contact(
        self, contact_id: str, changes: ContactChanges
    ) -> ContactUpdated | ContactNotFound | Invalid:
        """Apply a partial update to a contact's name and channel fields."""
        current = self._repo.get_by_id(contact_id)
        if current is None:
            return ContactNotFound(contact_id=contact_id)
        updates = {
            name: _clean(value)
            for name, value in (
                ("name", changes.name),
                ("phone", changes.phone),
                ("whatsapp", changes.whatsapp),
                ("email", changes.email),
            )
            if value is not None
        }
        contact = replace(current, **updates)
        if not _has_identity(contact):
            return Invalid(reason=_MISSING_FIELDS)
        updated = self._repo.update(contact)
        if updated is None:
            return ContactNotFound(contact_id=contact_id)
        return ContactUpdated(contact=updated)

    def delete_contact(self, contact_id: str) -> ContactDeleted | ContactNotFound:
        """Delete a contact together with its notes and message links."""
        if not self._repo.delete(contact_id):
            return ContactNotFound(contact_id=contact_id)
        logger.info("Deleted contact %s", contact_id)
        return ContactDeleted(contact_id=contact_id)

    def list_contacts(self) -> list[ContactSummary]:
        """Return all live contacts ordered by name (case-insensitive)."""
        contacts = sorted(self._repo.list_all(), key=lambda c: (c.name or "").lower())
        return [self._summary(c) for c in contacts]

    def get_contact(self, contact_id: str) -> ContactSummary | None:
        """Return a contact by id, or None if not found."""
        contact = self._repo.get_by_id(contact_id)
        if contact is None:
            return None
        return self._summary(contact)

    def add_note(
        self,
        contact_id: str,
        content: str,
        *,
        author_id: str | None = None,
        is_private: bool = False,
    ) -> NoteAdded | ContactNotFound | Invalid:
        """Attach a note to a contact."""
        content_clean = (content or "").strip()
        if not content_clean:
            return Invalid(reason="Note content is required.")
        if self._repo.get_by_id(contact_id) is None:
            return ContactNotFound(contact_id=contact_id)
        note = Note(
            contact_id=contact_id,
            content=content_clean,
            author_id=_clean(author_id),
            is_private=is_private,
        )
        self._repo.add_note(note)
        return NoteAdded(note=note)

    def list_notes(self, contact_id: str) -> list[Note] | ContactNotFound:
        """Return the contact's notes, newest first."""
        if self._repo.get_by_id(contact_id) is None:
            return ContactNotFound(contact_id=contact_id)
        return self._repo.list_notes(contact_id)

    def record_message(
        self, contact_id: str, message_id: str
    ) -> MessageRecorded | ContactNotFound | Invalid:
        """Link a message delivered by the messaging layer to a contact."""
        message_id = (message_id or "").strip()
        if not message_id:
            return Invalid(reason="Message id is required.")
        if self._repo.get_by_id(contact_id) is None:
            return ContactNotFound(contact_id=contact_id)
        self._repo.add_message(contact_id, message_id)
        return MessageRecorded(contact_id=contact_id, message_id=message_id)

    def find_duplicates(self, contact_id: str) -> DuplicatesFound | ContactNotFound:
        """Rank other live contacts that look like the given one."""
        contact = self._repo.get_by_id(contact_id)
        if contact is None:
            return ContactNotFound(contact_id=contact_id)
        candidates = self._repo.list_candidates(exclude_id=contact.id)
        matches = find_potential_duplicates(contact, candidates)
        logger.debug(
            "Contact %s: %d candidate(s), %d potential duplicate(s)",
            contact.id,
            len(candidates),
            len(matches),
        )
        return DuplicatesFound(contact=contact, matches=matches)

    def merge_contacts(
        self, primary_id: str, duplicate_id: str
    ) -> MergeCompleted | ContactNotFound | Invalid:
        """Merge duplicate into primary: reconcile fields, move references, delete duplicate."""
        if primary_id == duplicate_id:
            return Invalid(reason="Cannot merge a contact into itself.")
        primary = self._repo.get_by_id(primary_id)
        if primary is None:
            return ContactNotFound(contact_id=primary_id)
        duplicate = self._repo.get_by_id(duplicate_id)
        if duplicate is None:
            return ContactNotFound(contact_id=duplicate_id)

        fields = merge_contact_data(primary, duplicate)
        updated = self._repo.apply_merge(primary_id, duplicate_id, fields)
        if updated is None:
            return ContactNotFound(contact_id=primary_id)
        logger.info("Merged contact %s into %s", duplicate_id, primary_id)
        return MergeCompleted(contact=updated, duplicate_id=duplicate_id)

    def absorb_contact(
        self, source_id: str, target_id: str
    ) -> MergeCompleted | ContactNotFound | Invalid:
        """Move messages and notes from source to target and delete source. Fields are not reconciled."""
        if source_id == target_id:
            return Invalid(reason="Cannot merge a contact into itself.")
        updated = self._repo.apply_merge(target_id, source_id, None)
        if updated is None:
            missing = target_id if self._repo.get_by_id(target_id) is None else source_id
            return ContactNotFound(contact_id=missing)
        logger.info("Moved references of contact %s to %s", source_id, target_id)
        return MergeCompleted(contact=updated, duplicate_id=source_id)

    def _summary(self, contact: Contact) -> ContactSummary:
        messages, notes = self._repo.reference_counts(contact.id)
        return ContactSummary(contact=contact, message_count=messages, note_count=notes)
