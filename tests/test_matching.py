"""Unit tests for the deduplication engine (string similarity, signals, ranking, merge)."""

import pytest

from inboxdedup.domain import (
    Contact,
    emails_match,
    find_potential_duplicates,
    levenshtein_distance,
    merge_contact_data,
    names_are_similar,
    normalize_name,
    phone_numbers_match,
    string_similarity,
)


@pytest.mark.parametrize("s", ["", "a", "kitten", "Jane Doe", "ñandú"])
def test_levenshtein_identity_and_empty(s: str) -> None:
    assert levenshtein_distance(s, s) == 0
    assert levenshtein_distance(s, "") == len(s)
    assert levenshtein_distance("", s) == len(s)


@pytest.mark.parametrize(
    "a, b, expected",
    [
        ("kitten", "sitting", 3),
        ("flaw", "lawn", 2),
        ("jon", "john", 1),
        ("abc", "xyz", 3),
        ("intention", "execution", 5),
    ],
)
def test_levenshtein_known_distances_are_symmetric(a: str, b: str, expected: int) -> None:
    assert levenshtein_distance(a, b) == expected
    assert levenshtein_distance(b, a) == expected


def test_string_similarity_empty_strings_is_100() -> None:
    assert string_similarity("", "") == 100


def test_string_similarity_uses_longer_length() -> None:
    assert string_similarity("jonsmith", "johnsmith") == pytest.approx(800 / 9)
    assert string_similarity("johnsmith", "jonsmith") == pytest.approx(800 / 9)
    assert string_similarity("abc", "") == 0
    assert string_similarity("abc", "xyz") == 0


def test_normalize_name_strips_case_spaces_and_punctuation() -> None:
    assert normalize_name("  Mary-Jane O'Neil ") == "maryjaneoneil"
    assert normalize_name("José") == "jos"


def test_phone_numbers_match_ignores_formatting_and_country_code() -> None:
    assert phone_numbers_match("+1 (415) 555-0100", "4155550100")
    assert phone_numbers_match("415.555.0100", "+14155550100")


def test_phone_numbers_match_requires_ten_digits() -> None:
    assert not phone_numbers_match("555-0100", "4155550100")
    assert not phone_numbers_match("5550100", "5550100")


def test_phone_numbers_match_missing_values() -> None:
    assert not phone_numbers_match(None, "4155550100")
    assert not phone_numbers_match("4155550100", "")
    assert not phone_numbers_match(None, None)


def test_phone_numbers_match_different_numbers() -> None:
    assert not phone_numbers_match("4155550100", "4155550101")


def test_emails_match_case_and_whitespace() -> None:
    assert emails_match("Foo@Bar.com ", "foo@bar.com")
    assert not emails_match("foo@bar.com", "f.oo@bar.com")
    assert not emails_match(None, "foo@bar.com")
    assert not emails_match("", "")


def test_names_are_similar() -> None:
    assert names_are_similar("Jon Smith", "John Smith", 80)
    assert not names_are_similar("Alice", "Bob", 80)
    assert names_are_similar("jane doe", "Jane-Doe")
    assert not names_are_similar(None, "Jane")
    # 88.9% similar: passes the default threshold, fails a stricter one.
    assert not names_are_similar("Jon Smith", "John Smith", 90)


def test_phone_only_target_matches_same_phone() -> None:
    candidate = Contact(id="c1", name="Someone", phone="+1 415 555 0100")
    matches = find_potential_duplicates(Contact(phone="4155550100"), [candidate])
    assert len(matches) == 1
    assert matches[0].contact is candidate
    assert matches[0].match_score == 50
    assert list(matches[0].match_reasons) == ["Phone number match"]


def test_name_only_match_is_below_threshold() -> None:
    candidate = Contact(id="c1", name="Jane Doe")
    assert find_potential_duplicates(Contact(name="Jane Doe"), [candidate]) == []


def test_target_without_fields_finds_nothing() -> None:
    candidate = Contact(id="c1", name="Jane", phone="4155550100", email="j@x.com")
    assert find_potential_duplicates(Contact(), [candidate]) == []


def test_whatsapp_alone_needs_name_to_qualify() -> None:
    wa_only = Contact(id="wa", name="Somebody Else", whatsapp="4155550100")
    wa_and_name = Contact(id="wa-name", name="Jane Doe", whatsapp="4155550100")
    target = Contact(name="Jane Doe", phone="(415) 555-0100")

    matches = find_potential_duplicates(target, [wa_only, wa_and_name])

    assert [m.contact.id for m in matches] == ["wa-name"]
    assert matches[0].match_score == 70
    assert list(matches[0].match_reasons) == ["Phone matches WhatsApp", "Similar name"]


def test_all_signals_accumulate_in_evaluation_order() -> None:
    candidate = Contact(
        id="c1",
        name="Jane Doe",
        phone="4155550100",
        whatsapp="+1 415 555 0100",
        email="JANE@example.com",
    )
    target = Contact(name="Jane  Doe", phone="415-555-0100", email="jane@example.com")

    [match] = find_potential_duplicates(target, [candidate])

    assert match.match_score == 170
    assert list(match.match_reasons) == [
        "Phone number match",
        "Phone matches WhatsApp",
        "Email match",
        "Similar name",
    ]


def test_target_whatsapp_is_not_consulted() -> None:
    candidate = Contact(id="c1", phone="4155550100")
    target = Contact(whatsapp="4155550100")
    assert find_potential_duplicates(target, [candidate]) == []


def test_ranking_is_descending_and_stable() -> None:
    email_only_1 = Contact(id="e1", email="a@b.com")
    phone_and_email = Contact(id="pe", phone="4155550100", email="a@b.com")
    email_only_2 = Contact(id="e2", email="A@B.com")
    phone_only = Contact(id="p", phone="4155550100")
    target = Contact(phone="4155550100", email="a@b.com")

    matches = find_potential_duplicates(
        target, [email_only_1, phone_and_email, email_only_2, phone_only]
    )

    assert [m.contact.id for m in matches] == ["pe", "e1", "e2", "p"]
    assert [m.match_score for m in matches] == [100, 50, 50, 50]


def test_candidate_pool_is_not_mutated() -> None:
    pool = [Contact(id="a", email="x@y.com"), Contact(id="b")]
    snapshot = list(pool)
    find_potential_duplicates(Contact(email="x@y.com"), pool)
    assert pool == snapshot


def test_merge_prefers_primary_and_unions_tags() -> None:
    primary = Contact(id="p", name=None, phone="123", tags=("a",))
    duplicate = Contact(id="d", name="Dup", phone="999", tags=("b",))

    merged = merge_contact_data(primary, duplicate)

    assert merged.name == "Dup"
    assert merged.phone == "123"
    assert set(merged.tags) == {"a", "b"}


def test_merge_empty_string_falls_back_to_duplicate() -> None:
    primary = Contact(id="p", email="", whatsapp=None)
    duplicate = Contact(id="d", email="d@x.com", whatsapp="4155550100")
    merged = merge_contact_data(primary, duplicate)
    assert merged.email == "d@x.com"
    assert merged.whatsapp == "4155550100"


def test_merge_social_handles_primary_wins_and_tags_deduplicated() -> None:
    primary = Contact(
        id="p",
        social_handles={"twitter": "@primary", "github": "prim"},
        tags=("vip", "lead"),
    )
    duplicate = Contact(
        id="d",
        social_handles={"twitter": "@dup", "instagram": "dup.gram"},
        tags=("lead", "customer"),
    )

    merged = merge_contact_data(primary, duplicate)

    assert merged.social_handles == {
        "twitter": "@primary",
        "github": "prim",
        "instagram": "dup.gram",
    }
    assert sorted(merged.tags) == ["customer", "lead", "vip"]


def test_merge_with_empty_duplicate_is_idempotent() -> None:
    primary = Contact(id="p", name=None, phone="123", tags=("a",), social_handles={"x": "1"})
    duplicate = Contact(id="d", name="Dup", email="d@x.com", tags=("b",))
    merged = merge_contact_data(primary, duplicate)

    as_contact = Contact(
        id="p",
        name=merged.name,
        phone=merged.phone,
        whatsapp=merged.whatsapp,
        email=merged.email,
        tags=merged.tags,
        social_handles=merged.social_handles,
    )
    again = merge_contact_data(as_contact, Contact(id="empty"))

    assert again == merged


def test_merge_does_not_mutate_inputs() -> None:
    primary = Contact(id="p", social_handles={"x": "1"}, tags=("a",))
    duplicate = Contact(id="d", social_handles={"y": "2"}, tags=("b",))
    merge_contact_data(primary, duplicate)
    assert primary.social_handles == {"x": "1"}
    assert duplicate.social_handles == {"y": "2"}


@pytest.mark.parametrize(
    "a, b",
    [("jon", "john"), ("john", "jon"), ("abcd", "abce"), ("x", "yy")],
)
def test_string_similarity_matches_edit_distance_formula(a: str, b: str) -> None:
    longer = max(len(a), len(b))
    expected = (longer - levenshtein_distance(a, b)) / longer * 100
    assert string_similarity(a, b) == pytest.approx(expected)
