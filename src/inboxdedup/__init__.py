"""
Inbox contact deduplication: clean-architecture layout.

- domain: entities (Contact, ContactMatch) and the matching/merge engine. No outer dependencies.
- application: use cases (ContactService), ports (ContactRepository), DTOs.
- infrastructure: adapters (InMemoryContactRepository, Neo4jContactRepository), phone normalization.
"""

from inboxdedup.application import (
    ContactCardData,
    ContactCreated,
    ContactNotFound,
    ContactRepository,
    ContactService,
    ContactSummary,
    DuplicatesFound,
    Invalid,
    MergeCompleted,
    PossibleDuplicates,
)
from inboxdedup.domain import (
    Contact,
    ContactMatch,
    MergedContactFields,
    emails_match,
    find_potential_duplicates,
    merge_contact_data,
    names_are_similar,
    phone_numbers_match,
)
from inboxdedup.infrastructure import InMemoryContactRepository, Neo4jContactRepository

__all__ = [
    "Contact",
    "ContactCardData",
    "ContactCreated",
    "ContactMatch",
    "ContactNotFound",
    "ContactRepository",
    "ContactService",
    "ContactSummary",
    "DuplicatesFound",
    "InMemoryContactRepository",
    "Invalid",
    "MergeCompleted",
    "MergedContactFields",
    "Neo4jContactRepository",
    "PossibleDuplicates",
    "emails_match",
    "find_potential_duplicates",
    "merge_contact_data",
    "names_are_similar",
    "phone_numbers_match",
]
