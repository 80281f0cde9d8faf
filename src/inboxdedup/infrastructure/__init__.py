"""Infrastructure layer: concrete implementations of application ports."""

from inboxdedup.infrastructure.memory_repository import InMemoryContactRepository
from inboxdedup.infrastructure.persistence.neo4j_repository import Neo4jContactRepository
from inboxdedup.infrastructure.phone import normalize_phone, storage_phone

__all__ = [
    "InMemoryContactRepository",
    "Neo4jContactRepository",
    "normalize_phone",
    "storage_phone",
]
