"""Integration tests for Neo4jContactRepository. Require Docker
(testcontainers)."""

import pytest

from inboxdedup.application import ContactCardData, ContactService, DuplicatesFound
from inboxdedup.domain import Contact, MergedContactFields, Note
from inboxdedup.infrastructure import Neo4jContactRepository


@pytest.fixture(scope="session")
def neo4j_driver():
    from testcontainers.neo4j import Neo4jContainer

    with Neo4jContainer() as neo4j:
        driver = neo4j.get_driver()
        try:
            yield driver
        finally:
            driver.close()


@pytest.fixture
def clean_neo4j(neo4j_driver):
    """Clear the graph before each test so tests are independent."""
    with neo4j_driver.session() as session:
        session.run("MATCH (n) DETACH DELETE n")
    yield neo4j_driver


def test_add_get_by_id_list_all(clean_neo4j):
    repo = Neo4jContactRepository(clean_neo4j, user_id="default")
    contact = Contact(
        name="Alice",
        phone="+1 202 555 1234",
        email="alice@example.com",
        tags=("vip",),
        social_handles={"twitter": "@alice"},
    )
    repo.add(contact)

    found = repo.get_by_id(contact.id)
    assert found is not None
    assert found.id == contact.id
    assert found.name == "Alice"
    assert found.phone == "+12025551234"
    assert found.whatsapp is None
    assert found.tags == ("vip",)
    assert found.social_handles == {"twitter": "@alice"}

    all_contacts = repo.list_all()
    assert [c.id for c in all_contacts] == [contact.id]


def test_contacts_are_scoped_by_user(clean_neo4j):
    mine = Neo4jContactRepository(clean_neo4j, user_id="me")
    theirs = Neo4jContactRepository(clean_neo4j, user_id="them")
    contact = Contact(name="Private")
    mine.add(contact)

    assert theirs.get_by_id(contact.id) is None
    assert theirs.list_all() == []


def test_list_candidates_excludes_self_and_merged(clean_neo4j):
    repo = Neo4jContactRepository(clean_neo4j, user_id="default")
    target = Contact(name="Target")
    other = Contact(name="Other")
    merged = Contact(name="Gone", merged_into_id=target.id)
    for c in (target, other, merged):
        repo.add(c)

    assert [c.id for c in repo.list_candidates(exclude_id=target.id)] == [other.id]


def test_apply_merge_updates_primary_repoints_and_deletes(clean_neo4j):
    repo = Neo4jContactRepository(clean_neo4j, user_id="default")
    primary = Contact(name="Jane", tags=("a",))
    duplicate = Contact(name="Jane D", email="jane@x.com", tags=("b",))
    repo.add(primary)
    repo.add(duplicate)
    repo.add_message(duplicate.id, "m1")
    repo.add_note(Note(contact_id=duplicate.id, content="n1"))
    repo.add_message(primary.id, "m0")

    fields = MergedContactFields(
        name="Jane",
        email="jane@x.com",
        tags=("a", "b"),
        social_handles={"ig": "jane"},
    )
    updated = repo.apply_merge(primary.id, duplicate.id, fields)

    assert updated is not None
    assert updated.email == "jane@x.com"
    assert updated.tags == ("a", "b")
    assert updated.social_handles == {"ig": "jane"}
    assert repo.get_by_id(duplicate.id) is None
    assert repo.reference_counts(primary.id) == (2, 1)


def test_apply_merge_missing_contact_writes_nothing(clean_neo4j):
    repo = Neo4jContactRepository(clean_neo4j, user_id="default")
    primary = Contact(name="Jane")
    repo.add(primary)
    repo.add_message(primary.id, "m0")

    assert repo.apply_merge(primary.id, "ghost", None) is None
    assert repo.get_by_id(primary.id) is not None
    assert repo.reference_counts(primary.id) == (1, 0)


def test_service_find_duplicates_and_merge(clean_neo4j):
    service = ContactService(Neo4jContactRepository(clean_neo4j, user_id="default"))
    first = service.create_contact(ContactCardData(name="Bob", phone="+1 202 555 1234"))
    second = service.create_contact(
        ContactCardData(name="Bobby", phone="(202) 555-1234"), force=True
    )

    result = service.find_duplicates(first.contact.id)
    assert isinstance(result, DuplicatesFound)
    assert [m.contact.id for m in result.matches] == [second.contact.id]

    merged = service.merge_contacts(first.contact.id, second.contact.id)
    assert merged.contact.name == "Bob"
    assert len(service.list_contacts()) == 1


def test_add_existing_id_keeps_single_node(clean_neo4j):
    repo = Neo4jContactRepository(clean_neo4j, user_id="default")
    contact = Contact(name="Once", email="once@x.com")
    repo.add(contact)
    repo.add(Contact(id=contact.id, name="Twice"))

    assert [c.name for c in repo.list_all()] == ["Once"]
    with clean_neo4j.session() as session:
        count = session.run(
            "MATCH (c:Contact {id: $id}) RETURN count(c) AS n", id=contact.id
        ).single()["n"]
    assert count == 1


def test_merge_and_counts_do_not_reach_other_users(clean_neo4j):
    mine = Neo4jContactRepository(clean_neo4j, user_id="me")
    theirs = Neo4jContactRepository(clean_neo4j, user_id="them")
    primary = Contact(name="Primary")
    duplicate = Contact(name="Duplicate")
    mine.add(primary)
    mine.add(duplicate)
    mine.add_message(duplicate.id, "m1")
    mine.add_note(Note(contact_id=duplicate.id, content="n1"))

    assert theirs.reference_counts(duplicate.id) == (0, 0)
    assert theirs.apply_merge(primary.id, duplicate.id, None) is None
    assert mine.get_by_id(duplicate.id) is not None
    assert mine.reference_counts(duplicate.id) == (1, 1)
    assert mine.reference_counts(primary.id) == (0, 0)


def test_update_delete_and_notes(clean_neo4j):
    repo = Neo4jContactRepository(clean_neo4j, user_id="default", default_region="US")
    contact = Contact(name="Kim", email="kim@x.com")
    repo.add(contact)
    repo.add_note(Note(contact_id=contact.id, content="hello", is_private=True))

    updated = repo.update(
        Contact(id=contact.id, name="Kim Lee", phone="(202) 555-1234")
    )
    assert updated is not None
    assert updated.name == "Kim Lee"
    assert updated.phone == "+12025551234"
    assert updated.email is None

    [note] = repo.list_notes(contact.id)
    assert note.content == "hello"
    assert note.is_private is True

    assert repo.delete(contact.id) is True
    assert repo.get_by_id(contact.id) is None
    assert repo.list_notes(contact.id) == []
    assert repo.delete(contact.id) is False
    assert repo.update(Contact(id="ghost", name="x")) is None
