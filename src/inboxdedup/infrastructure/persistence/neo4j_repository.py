"""Neo4j implementation of ContactRepository.
Graph: (owner:Account {id: user_id})-[:OWNS]->(c:Contact).
Messages and notes point at their contact: (m:Message)-[:ABOUT]->(c), (n:Note)-[:ABOUT]->(c).
Social handles are stored as a JSON string since node properties cannot hold maps.
"""

import json
from dataclasses import replace
from datetime import datetime

from inboxdedup.domain import Contact, MergedContactFields, Note
from inboxdedup.infrastructure.phone import storage_phone


def _datetime_to_iso(dt: datetime) -> str:
    return dt.isoformat()


def _iso_to_datetime(s: str) -> datetime:
    return datetime.fromisoformat(s.replace("Z", "+00:00"))


_ADD_QUERY = """
MERGE (owner:Account {id: $user_id})
WITH owner
OPTIONAL MATCH (existing:Contact {id: $id})
WITH owner, existing
WHERE existing IS NULL
CREATE (c:Contact {
    id: $id,
    name: $name,
    phone: $phone,
    whatsapp: $whatsapp,
    email: $email,
    tags: $tags,
    social_handles: $social_handles,
    merged_into_id: $merged_into_id,
    created_at: $created_at
})
CREATE (owner)-[:OWNS]->(c)
"""

_UPDATE_QUERY = """
MATCH (owner:Account {id: $user_id})-[:OWNS]->(c:Contact {id: $id})
SET c.name = $name,
    c.phone = $phone,
    c.whatsapp = $whatsapp,
    c.email = $email,
    c.tags = $tags,
    c.social_handles = $social_handles
RETURN c
"""

_DELETE_QUERY = """
MATCH (owner:Account {id: $user_id})-[:OWNS]->(c:Contact {id: $id})
OPTIONAL MATCH (x)-[:ABOUT]->(c)
WHERE x:Message OR x:Note
WITH c, collect(x) AS refs
FOREACH (ref IN refs | DETACH DELETE ref)
DETACH DELETE c
RETURN 1 AS deleted
"""

_CONTACT_QUERY = """
MATCH (owner:Account {id: $user_id})-[:OWNS]->(c:Contact {id: $id})
RETURN c
"""

_ADD_NOTE_QUERY = """
MATCH (owner:Account {id: $user_id})-[:OWNS]->(c:Contact {id: $contact_id})
CREATE (n:Note {
    id: $id,
    content: $content,
    author_id: $author_id,
    is_private: $is_private,
    created_at: $created_at
})
CREATE (n)-[:ABOUT]->(c)
"""

_LIST_NOTES_QUERY = """
MATCH (owner:Account {id: $user_id})-[:OWNS]->(c:Contact {id: $contact_id})
MATCH (n:Note)-[:ABOUT]->(c)
RETURN n, c.id AS contact_id
ORDER BY n.created_at DESC
"""

_REFERENCE_COUNTS_QUERY = """
MATCH (owner:Account {id: $user_id})-[:OWNS]->(c:Contact {id: $contact_id})
OPTIONAL MATCH (m:Message)-[:ABOUT]->(c)
WITH c, count(DISTINCT m) AS messages
OPTIONAL MATCH (n:Note)-[:ABOUT]->(c)
RETURN messages, count(DISTINCT n) AS notes
"""

_MERGE_MATCH_QUERY = """
MATCH (owner:Account {id: $user_id})-[:OWNS]->(p:Contact {id: $primary_id})
MATCH (owner)-[:OWNS]->(d:Contact {id: $duplicate_id})
RETURN p
"""

_MERGE_UPDATE_PRIMARY_QUERY = """
MATCH (owner:Account {id: $user_id})-[:OWNS]->(p:Contact {id: $primary_id})
SET p.name = $name,
    p.phone = $phone,
    p.whatsapp = $whatsapp,
    p.email = $email,
    p.tags = $tags,
    p.social_handles = $social_handles
RETURN p
"""

_MERGE_REPOINT_QUERY = """
MATCH (owner:Account {id: $user_id})-[:OWNS]->(p:Contact {id: $primary_id})
MATCH (owner)-[:OWNS]->(d:Contact {id: $duplicate_id})
MATCH (x)-[r:ABOUT]->(d)
WHERE x:Message OR x:Note
CREATE (x)-[:ABOUT]->(p)
DELETE r
"""

_MERGE_DELETE_DUPLICATE_QUERY = """
MATCH (owner:Account {id: $user_id})-[:OWNS]->(d:Contact {id: $duplicate_id})
DETACH DELETE d
"""


class Neo4jContactRepository:
    """Stores contacts in Neo4j, scoped by user_id (the owning account or team)."""

    def __init__(
        self,
        driver: object,
        user_id: str = "default",
        *,
        default_region: str | None = None,
    ) -> None:
        self._driver = driver
        self._user_id = user_id
        self._default_region = default_region

    def prepare(self, contact: Contact) -> Contact:
        return replace(
            contact,
            phone=storage_phone(contact.phone, self._default_region),
            whatsapp=storage_phone(contact.whatsapp, self._default_region),
        )

    def add(self, contact: Contact) -> None:
        contact = self.prepare(contact)
        with self._driver.session() as session:
            session.run(
                _ADD_QUERY,
                user_id=self._user_id,
                merged_into_id=contact.merged_into_id,
                created_at=_datetime_to_iso(contact.created_at),
                **_contact_params(contact),
            ).consume()

    def update(self, contact: Contact) -> Contact | None:
        contact = self.prepare(contact)
        with self._driver.session() as session:
            record = session.run(
                _UPDATE_QUERY, user_id=self._user_id, **_contact_params(contact)
            ).single()
        if not record:
            return None
        return _node_to_contact(record["c"])

    def delete(self, contact_id: str) -> bool:
        with self._driver.session() as session:
            record = session.run(
                _DELETE_QUERY, user_id=self._user_id, id=contact_id
            ).single()
        return bool(record and record["deleted"])

    def get_by_id(self, contact_id: str) -> Contact | None:
        with self._driver.session() as session:
            record = session.run(
                _CONTACT_QUERY, user_id=self._user_id, id=contact_id
            ).single()
        if not record:
            return None
        return _node_to_contact(record["c"])

    def list_all(self) -> list[Contact]:
        with self._driver.session() as session:
            result = session.run(
                """
                MATCH (owner:Account {id: $user_id})-[:OWNS]->(c:Contact)
                WHERE c.merged_into_id IS NULL
                RETURN c
                ORDER BY c.created_at
                """,
                user_id=self._user_id,
            )
            return [_node_to_contact(rec["c"]) for rec in result]

    def list_candidates(self, exclude_id: str) -> list[Contact]:
        with self._driver.session() as session:
            result = session.run(
                """
                MATCH (owner:Account {id: $user_id})-[:OWNS]->(c:Contact)
                WHERE c.merged_into_id IS NULL AND c.id <> $exclude_id
                RETURN c
                ORDER BY c.created_at
                """,
                user_id=self._user_id,
                exclude_id=exclude_id,
            )
            return [_node_to_contact(rec["c"]) for rec in result]

    def add_message(self, contact_id: str, message_id: str) -> None:
        with self._driver.session() as session:
            session.run(
                """
                MATCH (owner:Account {id: $user_id})-[:OWNS]->(c:Contact {id: $contact_id})
                MERGE (m:Message {id: $message_id})
                WITH m, c
                OPTIONAL MATCH (m)-[old:ABOUT]->()
                DELETE old
                WITH m, c
                CREATE (m)-[:ABOUT]->(c)
                """,
                user_id=self._user_id,
                contact_id=contact_id,
                message_id=message_id,
            ).consume()

    def add_note(self, note: Note) -> None:
        with self._driver.session() as session:
            session.run(
                _ADD_NOTE_QUERY,
                user_id=self._user_id,
                contact_id=note.contact_id,
                id=note.id,
                content=note.content,
                author_id=note.author_id,
                is_private=note.is_private,
                created_at=_datetime_to_iso(note.created_at),
            ).consume()

    def list_notes(self, contact_id: str) -> list[Note]:
        with self._driver.session() as session:
            result = session.run(
                _LIST_NOTES_QUERY, user_id=self._user_id, contact_id=contact_id
            )
            return [_node_to_note(rec["n"], rec["contact_id"]) for rec in result]

    def reference_counts(self, contact_id: str) -> tuple[int, int]:
        with self._driver.session() as session:
            record = session.run(
                _REFERENCE_COUNTS_QUERY, user_id=self._user_id, contact_id=contact_id
            ).single()
        if not record:
            return 0, 0
        return record["messages"], record["notes"]

    def apply_merge(
        self,
        primary_id: str,
        duplicate_id: str,
        fields: MergedContactFields | None,
    ) -> Contact | None:
        with self._driver.session() as session:
            node = session.execute_write(
                self._merge_tx, primary_id, duplicate_id, fields
            )
        if node is None:
            return None
        return _node_to_contact(node)

    def _merge_tx(self, tx, primary_id, duplicate_id, fields):
        """Update primary, repoint references, delete duplicate. One transaction."""
        params = {
            "user_id": self._user_id,
            "primary_id": primary_id,
            "duplicate_id": duplicate_id,
        }
        record = tx.run(_MERGE_MATCH_QUERY, **params).single()
        if not record:
            return None
        node = record["p"]
        if fields is not None:
            node = tx.run(
                _MERGE_UPDATE_PRIMARY_QUERY,
                **params,
                name=fields.name,
                phone=fields.phone,
                whatsapp=fields.whatsapp,
                email=fields.email,
                tags=list(fields.tags),
                social_handles=json.dumps(fields.social_handles),
            ).single()["p"]
        tx.run(_MERGE_REPOINT_QUERY, **params).consume()
        tx.run(_MERGE_DELETE_DUPLICATE_QUERY, **params).consume()
        return node


def _contact_params(contact: Contact) -> dict:
    return {
        "id": contact.id,
        "name": contact.name,
        "phone": contact.phone,
        "whatsapp": contact.whatsapp,
        "email": contact.email,
        "tags": list(contact.tags),
        "social_handles": json.dumps(contact.social_handles),
    }


def _node_to_contact(node) -> Contact:
    handles_raw = node.get("social_handles") or "{}"
    return Contact(
        id=node["id"],
        name=node.get("name") or None,
        phone=node.get("phone") or None,
        whatsapp=node.get("whatsapp") or None,
        email=node.get("email") or None,
        tags=tuple(node.get("tags") or ()),
        social_handles=json.loads(handles_raw),
        merged_into_id=node.get("merged_into_id") or None,
        created_at=_iso_to_datetime(node["created_at"]),
    )


def _node_to_note(node, contact_id: str) -> Note:
    return Note(
        id=node["id"],
        contact_id=contact_id,
        content=node["content"],
        author_id=node.get("author_id") or None,
        is_private=bool(node.get("is_private")),
        created_at=_iso_to_datetime(node["created_at"]),
    )
