"""Domain entities: Tree and Person, plus the Sex value type."""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum

from familytree.domain.errors import ValidationError

TREE_NAME_MIN_LENGTH = 3
PERSON_NAME_MIN_LENGTH = 2

# Person fields holding a reference to another Person in the same tree.
RELATION_FIELDS = ("father_id", "mother_id", "partner_id")


def new_id(prefix: str) -> str:
    """Return a fresh opaque id such as "per_3f2a..."."""
    return f"{prefix}_{uuid.uuid4().hex}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Sex(str, Enum):
    MALE = "M"
    FEMALE = "F"
    UNKNOWN = ""

    @classmethod
    def parse(cls, value: "Sex | str | None") -> "Sex":
        """Accept a Sex, its code ("M", "F", "") or its name ("Male", "female")."""
        if isinstance(value, Sex):
            return value
        raw = (value or "").strip()
        for member in cls:
            if raw == member.value or raw.upper() == member.name:
                return member
        raise ValidationError("invalid_sex", f"Unknown sex: {raw!r}.")


def parse_date(value: date | str | None, field_name: str) -> date | None:
    """Coerce an ISO date string (or date) to date; empty means absent."""
    if value is None or isinstance(value, date):
        return value
    raw = value.strip()
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        raise ValidationError(
            "invalid_date", f"{field_name} must be an ISO date (YYYY-MM-DD), got {raw!r}."
        ) from None


@dataclass(frozen=True)
class Tree:
    """
    A named collection of Persons owned by one account.
    Trees are never updated once created.
    """

    owner_id: str
    name: str
    id: str = field(default_factory=lambda: new_id("tre"))
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        if not self.owner_id or not self.owner_id.strip():
            raise ValidationError("missing_owner", "Tree owner must be non-empty.")
        name = (self.name or "").strip()
        if len(name) < TREE_NAME_MIN_LENGTH:
            raise ValidationError(
                "name_too_short",
                f"Tree name must be at least {TREE_NAME_MIN_LENGTH} characters.",
            )
        object.__setattr__(self, "name", name)


@dataclass(frozen=True)
class Person:
    """
    An individual within exactly one Tree.
    father_id, mother_id and partner_id are lookup keys ("" when unset),
    never ownership edges. Field checks run in a fixed order: names,
    dates, then self reference.
    """

    owner_id: str
    tree_id: str
    first_name: str
    last_name: str
    id: str = field(default_factory=lambda: new_id("per"))
    sex: Sex = Sex.UNKNOWN
    birth_date: date | None = None
    death_date: date | None = None
    note: str = ""
    father_id: str = ""
    mother_id: str = ""
    partner_id: str = ""

    def __post_init__(self):
        first_name = (self.first_name or "").strip()
        last_name = (self.last_name or "").strip()
        if len(first_name) < PERSON_NAME_MIN_LENGTH or len(last_name) < PERSON_NAME_MIN_LENGTH:
            raise ValidationError(
                "name_too_short",
                f"First and last name must be at least {PERSON_NAME_MIN_LENGTH} characters.",
            )
        object.__setattr__(self, "first_name", first_name)
        object.__setattr__(self, "last_name", last_name)
        object.__setattr__(self, "sex", Sex.parse(self.sex))

        birth = parse_date(self.birth_date, "birth_date")
        death = parse_date(self.death_date, "death_date")
        if birth and death and birth > death:
            raise ValidationError(
                "dates_out_of_order", "Birth date cannot be after death date."
            )
        object.__setattr__(self, "birth_date", birth)
        object.__setattr__(self, "death_date", death)

        for name in RELATION_FIELDS:
            ref = (getattr(self, name) or "").strip()
            if ref and ref == self.id:
                raise ValidationError(
                    "self_reference",
                    "A person cannot be their own father, mother or partner.",
                )
            object.__setattr__(self, name, ref)
        object.__setattr__(self, "note", (self.note or "").strip())

    def references(self, person_ids: set[str]) -> tuple[str, ...]:
        """Return the relation fields of this person that point at any of person_ids."""
        return tuple(
            name for name in RELATION_FIELDS if getattr(self, name) and getattr(self, name) in person_ids
        )
