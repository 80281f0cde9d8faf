"""Domain layer: entities and the deduplication engine. No dependencies on outer layers."""

from inboxdedup.domain.entities import Contact, ContactMatch, MergedContactFields, Note
from inboxdedup.domain.matching import (
    emails_match,
    find_potential_duplicates,
    levenshtein_distance,
    merge_contact_data,
    names_are_similar,
    normalize_name,
    phone_numbers_match,
    string_similarity,
)

__all__ = [
    "Contact",
    "ContactMatch",
    "MergedContactFields",
    "Note",
    "emails_match",
    "find_potential_duplicates",
    "levenshtein_distance",
    "merge_contact_data",
    "names_are_similar",
    "normalize_name",
    "phone_numbers_match",
    "string_similarity",
]
