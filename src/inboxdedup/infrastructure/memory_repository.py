"""In-memory implementation of ContactRepository (no DB)."""

from dataclasses import replace

from inboxdedup.domain import Contact, MergedContactFields, Note
from inboxdedup.infrastructure.phone import storage_phone


class InMemoryContactRepository:
    """Stores contacts in memory. Order preserved by insertion.
    Messages are tracked as ids keyed by the contact they point at; notes are stored whole.
    """

    def __init__(self, default_region: str | None = None) -> None:
        self._default_region = default_region
        self._by_id: dict[str, Contact] = {}
        self._order: list[str] = []
        self._messages: dict[str, str] = {}  # message_id -> contact_id
        self._notes: dict[str, Note] = {}  # note_id -> note

    def prepare(self, contact: Contact) -> Contact:
        return replace(
            contact,
            phone=storage_phone(contact.phone, self._default_region),
            whatsapp=storage_phone(contact.whatsapp, self._default_region),
        )

    def add(self, contact: Contact) -> None:
        if contact.id in self._by_id:
            return
        self._by_id[contact.id] = self.prepare(contact)
        self._order.append(contact.id)

    def update(self, contact: Contact) -> Contact | None:
        if contact.id not in self._by_id:
            return None
        stored = self.prepare(contact)
        self._by_id[contact.id] = stored
        return stored

    def delete(self, contact_id: str) -> bool:
        if contact_id not in self._by_id:
            return False
        del self._by_id[contact_id]
        self._order.remove(contact_id)
        self._messages = {m: c for m, c in self._messages.items() if c != contact_id}
        self._notes = {
            nid: n for nid, n in self._notes.items() if n.contact_id != contact_id
        }
        return True

    def get_by_id(self, contact_id: str) -> Contact | None:
        return self._by_id.get(contact_id)

    def list_all(self) -> list[Contact]:
        return [
            self._by_id[cid]
            for cid in self._order
            if cid in self._by_id and self._by_id[cid].merged_into_id is None
        ]

    def list_candidates(self, exclude_id: str) -> list[Contact]:
        return [c for c in self.list_all() if c.id != exclude_id]

    def add_message(self, contact_id: str, message_id: str) -> None:
        self._messages[message_id] = contact_id

    def add_note(self, note: Note) -> None:
        self._notes[note.id] = note

    def list_notes(self, contact_id: str) -> list[Note]:
        notes = [n for n in self._notes.values() if n.contact_id == contact_id]
        return sorted(notes, key=lambda n: n.created_at, reverse=True)

    def reference_counts(self, contact_id: str) -> tuple[int, int]:
        messages = sum(1 for cid in self._messages.values() if cid == contact_id)
        notes = sum(1 for n in self._notes.values() if n.contact_id == contact_id)
        return messages, notes

    def apply_merge(
        self,
        primary_id: str,
        duplicate_id: str,
        fields: MergedContactFields | None,
    ) -> Contact | None:
        primary = self._by_id.get(primary_id)
        if primary is None or duplicate_id not in self._by_id:
            return None

        if fields is not None:
            primary = replace(
                primary,
                name=fields.name,
                phone=fields.phone,
                whatsapp=fields.whatsapp,
                email=fields.email,
                social_handles=dict(fields.social_handles),
                tags=tuple(fields.tags),
            )
            self._by_id[primary_id] = primary

        for message_id, cid in self._messages.items():
            if cid == duplicate_id:
                self._messages[message_id] = primary_id
        for note_id, note in self._notes.items():
            if note.contact_id == duplicate_id:
                self._notes[note_id] = replace(note, contact_id=primary_id)

        del self._by_id[duplicate_id]
        self._order.remove(duplicate_id)
        return primary
