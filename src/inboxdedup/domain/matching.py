"""Contact deduplication: fuzzy name matching, signal scoring, and merge.

Every function here is pure and total. Missing values never raise; they just
fail to contribute a signal.
"""

import re
from collections.abc import Iterable
from typing import Protocol

from rapidfuzz.distance import Levenshtein

from inboxdedup.domain.entities import Contact, ContactMatch, MergedContactFields

PHONE_MATCH_WEIGHT = 50
PHONE_WHATSAPP_MATCH_WEIGHT = 40
EMAIL_MATCH_WEIGHT = 50
NAME_MATCH_WEIGHT = 30
DUPLICATE_SCORE_THRESHOLD = 50

NAME_SIMILARITY_THRESHOLD = 80
DUPLICATE_NAME_SIMILARITY_THRESHOLD = 85

PHONE_SIGNIFICANT_DIGITS = 10

REASON_PHONE = "Phone number match"
REASON_PHONE_WHATSAPP = "Phone matches WhatsApp"
REASON_EMAIL = "Email match"
REASON_NAME = "Similar name"

_NON_DIGIT = re.compile(r"\D")
_NON_ALNUM = re.compile(r"[^a-z0-9]")


class ContactFields(Protocol):
    """Anything carrying the fields a duplicate search reads from its target."""

    name: str | None
    phone: str | None
    email: str | None


def levenshtein_distance(a: str, b: str) -> int:
    """Minimum number of single-character edits turning a into b."""
    return Levenshtein.distance(a, b)


def string_similarity(a: str, b: str) -> float:
    """Similarity percentage (0-100): edit distance relative to the longer string.

    Two empty strings are 100% similar.
    """
    return Levenshtein.normalized_similarity(a, b) * 100


def normalize_name(value: str) -> str:
    """Lowercase, trim, and keep only ASCII letters and digits."""
    return _NON_ALNUM.sub("", value.lower().strip())


def _significant_digits(phone: str) -> str:
    return _NON_DIGIT.sub("", phone)[-PHONE_SIGNIFICANT_DIGITS:]


def phone_numbers_match(phone1: str | None, phone2: str | None) -> bool:
    """True when the last 10 digits of both numbers agree, ignoring formatting and country code."""
    if not phone1 or not phone2:
        return False
    digits1 = _significant_digits(phone1)
    digits2 = _significant_digits(phone2)
    return len(digits1) == PHONE_SIGNIFICANT_DIGITS and digits1 == digits2


def emails_match(email1: str | None, email2: str | None) -> bool:
    """Case-insensitive, whitespace-trimmed equality. No provider-specific canonicalization."""
    if not email1 or not email2:
        return False
    return email1.strip().lower() == email2.strip().lower()


def names_are_similar(
    name1: str | None,
    name2: str | None,
    threshold: float = NAME_SIMILARITY_THRESHOLD,
) -> bool:
    """True when normalized names are equal or at least threshold percent similar."""
    if not name1 or not name2:
        return False
    normalized1 = normalize_name(name1)
    normalized2 = normalize_name(name2)
    if normalized1 == normalized2:
        return True
    return string_similarity(normalized1, normalized2) >= threshold


def score_candidate(target: ContactFields, candidate: Contact) -> ContactMatch:
    """Score one candidate against the target. Reasons follow evaluation order."""
    score = 0
    reasons: list[str] = []

    if phone_numbers_match(target.phone, candidate.phone):
        score += PHONE_MATCH_WEIGHT
        reasons.append(REASON_PHONE)

    # Only target.phone is checked against the candidate's WhatsApp number.
    if phone_numbers_match(target.phone, candidate.whatsapp):
        score += PHONE_WHATSAPP_MATCH_WEIGHT
        reasons.append(REASON_PHONE_WHATSAPP)

    if emails_match(target.email, candidate.email):
        score += EMAIL_MATCH_WEIGHT
        reasons.append(REASON_EMAIL)

    if names_are_similar(
        target.name, candidate.name, DUPLICATE_NAME_SIMILARITY_THRESHOLD
    ):
        score += NAME_MATCH_WEIGHT
        reasons.append(REASON_NAME)

    return ContactMatch(contact=candidate, match_score=score, match_reasons=tuple(reasons))


def find_potential_duplicates(
    target: ContactFields, candidates: Iterable[Contact]
) -> list[ContactMatch]:
    """Rank candidates that look like the target, highest score first.

    The caller excludes the target itself and merged contacts from candidates;
    ids are not compared here. Equal scores keep their input order.
    """
    matches = [score_candidate(target, candidate) for candidate in candidates]
    matches = [m for m in matches if m.match_score >= DUPLICATE_SCORE_THRESHOLD]
    return sorted(matches, key=lambda m: m.match_score, reverse=True)


def merge_contact_data(primary: Contact, duplicate: Contact) -> MergedContactFields:
    """Reconcile two contacts into the field set to store on the primary.

    Scalar fields prefer the primary when set. Social handles are merged with
    the primary winning on key collisions; tags are unioned.
    """
    social_handles = {**(duplicate.social_handles or {}), **(primary.social_handles or {})}
    tags = tuple(dict.fromkeys([*(primary.tags or ()), *(duplicate.tags or ())]))
    return MergedContactFields(
        name=primary.name or duplicate.name,
        phone=primary.phone or duplicate.phone,
        whatsapp=primary.whatsapp or duplicate.whatsapp,
        email=primary.email or duplicate.email,
        social_handles=social_handles,
        tags=tags,
    )
