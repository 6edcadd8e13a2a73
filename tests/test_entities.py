"""Tests for domain entities and their field validation."""

from datetime import date

import pytest

from familytree.domain import Person, Sex, Tree, ValidationError


def test_tree_requires_owner() -> None:
    with pytest.raises(ValidationError, match="owner"):
        Tree(owner_id="  ", name="Family")


def test_tree_ids_are_unique_and_prefixed() -> None:
    a = Tree(owner_id="u", name="Family")
    b = Tree(owner_id="u", name="Family")
    assert a.id != b.id
    assert a.id.startswith("tre_")
    assert a.created_at.tzinfo is not None


def test_person_normalizes_fields() -> None:
    person = Person(
        owner_id="u",
        tree_id="t",
        first_name=" Jan ",
        last_name="Kowalski ",
        sex="F",
        birth_date=" 1970-04-12 ",
        death_date="",
        note="  note  ",
        father_id="  ",
    )
    assert person.first_name == "Jan"
    assert person.last_name == "Kowalski"
    assert person.sex is Sex.FEMALE
    assert person.birth_date == date(1970, 4, 12)
    assert person.death_date is None
    assert person.note == "note"
    assert person.father_id == ""
    assert person.id.startswith("per_")


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("M", Sex.MALE), ("male", Sex.MALE), ("Female", Sex.FEMALE), ("", Sex.UNKNOWN), (None, Sex.UNKNOWN), ("Unknown", Sex.UNKNOWN)],
)
def test_sex_parse(raw, expected) -> None:
    assert Sex.parse(raw) is expected


def test_sex_parse_rejects_garbage() -> None:
    with pytest.raises(ValidationError) as exc_info:
        Sex.parse("X")
    assert exc_info.value.reason == "invalid_sex"


def test_person_self_reference_rejected() -> None:
    with pytest.raises(ValidationError) as exc_info:
        Person(id="per_1", owner_id="u", tree_id="t", first_name="Jan", last_name="Nowak", mother_id="per_1")
    assert exc_info.value.reason == "self_reference"


def test_references_lists_matching_fields() -> None:
    person = Person(
        owner_id="u",
        tree_id="t",
        first_name="Jan",
        last_name="Nowak",
        father_id="per_x",
        partner_id="per_x",
        mother_id="per_y",
    )
    assert person.references({"per_x"}) == ("father_id", "partner_id")
    assert person.references({"per_z", ""}) == ()
