"""Data passed across the application boundary."""

from dataclasses import dataclass
from datetime import date

from familytree.domain import Person, Sex


@dataclass(frozen=True)
class PersonInput:
    """Fields a caller submits to upsert_person.

    Leave id empty to create a Person; owner_id and tree_id are then
    required. When id is set, owner_id and tree_id are ignored.
    """

    first_name: str
    last_name: str
    id: str = ""
    owner_id: str = ""
    tree_id: str = ""
    sex: Sex | str = Sex.UNKNOWN
    birth_date: date | str | None = None
    death_date: date | str | None = None
    note: str = ""
    father_id: str = ""
    mother_id: str = ""
    partner_id: str = ""

    @classmethod
    def from_person(cls, person: Person, **changes) -> "PersonInput":
        """Build an update for an existing person, overriding the given fields."""
        values = {
            "id": person.id,
            "owner_id": person.owner_id,
            "tree_id": person.tree_id,
            "first_name": person.first_name,
            "last_name": person.last_name,
            "sex": person.sex,
            "birth_date": person.birth_date,
            "death_date": person.death_date,
            "note": person.note,
            "father_id": person.father_id,
            "mother_id": person.mother_id,
            "partner_id": person.partner_id,
        }
        values.update(changes)
        return cls(**values)


@dataclass(frozen=True)
class Relatives:
    """A person with its father, mother and partner resolved (None when unset or dangling)."""

    person: Person
    father: Person | None = None
    mother: Person | None = None
    partner: Person | None = None
