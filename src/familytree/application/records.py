"""Conversion between entities and the plain records a backend stores.

Records keep the storage key names (camelCase), dates as ISO strings and
"" for every empty value.
"""

from datetime import date, datetime

from familytree.application.ports import Record
from familytree.domain import Person, Tree


def _iso_to_datetime(s: str) -> datetime:
    return datetime.fromisoformat(s.replace("Z", "+00:00"))


def _date_to_iso(d: date | None) -> str:
    return d.isoformat() if d else ""


def tree_to_record(tree: Tree) -> Record:
    return {
        "id": tree.id,
        "ownerId": tree.owner_id,
        "name": tree.name,
        "createdAt": tree.created_at.isoformat(),
    }


def tree_from_record(record: Record) -> Tree:
    return Tree(
        id=record["id"],
        owner_id=record["ownerId"],
        name=record["name"],
        created_at=_iso_to_datetime(record["createdAt"]),
    )


def person_to_record(person: Person) -> Record:
    return {
        "id": person.id,
        "ownerId": person.owner_id,
        "treeId": person.tree_id,
        "firstName": person.first_name,
        "lastName": person.last_name,
        "sex": person.sex.value,
        "birthDate": _date_to_iso(person.birth_date),
        "deathDate": _date_to_iso(person.death_date),
        "note": person.note,
        "fatherId": person.father_id,
        "motherId": person.mother_id,
        "partnerId": person.partner_id,
    }


def person_from_record(record: Record) -> Person:
    # Optional keys may be missing or null in records written by older clients.
    return Person(
        id=record["id"],
        owner_id=record["ownerId"],
        tree_id=record["treeId"],
        first_name=record["firstName"],
        last_name=record["lastName"],
        sex=record.get("sex") or "",
        birth_date=record.get("birthDate") or None,
        death_date=record.get("deathDate") or None,
        note=record.get("note") or "",
        father_id=record.get("fatherId") or "",
        mother_id=record.get("motherId") or "",
        partner_id=record.get("partnerId") or "",
    )
