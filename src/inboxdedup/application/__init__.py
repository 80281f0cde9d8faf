"""Application layer: use cases, ports, and DTOs. Depends only on domain."""

from inboxdedup.application.contact_service import ContactService
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

__all__ = [
    "ContactCardData",
    "ContactChanges",
    "ContactCreated",
    "ContactDeleted",
    "ContactNotFound",
    "ContactRepository",
    "ContactService",
    "ContactSummary",
    "ContactUpdated",
    "DuplicatesFound",
    "Invalid",
    "MergeCompleted",
    "MessageRecorded",
    "NoteAdded",
    "PossibleDuplicates",
]
