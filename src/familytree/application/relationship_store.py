"""Trees and persons of every account, with referential integrity enforced on each mutation."""

import logging
import threading
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timezone
from typing import TypeVar

from familytree.application.dto import PersonInput, Relatives
from familytree.application.ports import EntityKind, PersistenceBackend, Record
from familytree.application.records import (
    person_from_record,
    person_to_record,
    tree_from_record,
    tree_to_record,
)
from familytree.domain import (
    RELATION_FIELDS,
    NotFoundError,
    Person,
    Sex,
    Tree,
    ValidationError,
    new_id,
)

logger = logging.getLogger(__name__)

DEMO_TREE_NAME = "Moje drzewo (demo)"

T = TypeVar("T")


class RelationshipStore:
    """Owns the Tree and Person collections behind a PersistenceBackend.

    Every operation reads the full collection, works on it in memory and
    writes it back before returning. Mutations are serialized by one lock,
    since upsert_person and delete_person touch more than one record.
    """

    def __init__(
        self,
        backend: PersistenceBackend,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._backend = backend
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._lock = threading.RLock()

    # --- trees ---

    def create_tree(self, owner_id: str, name: str) -> Tree:
        """Create and persist a tree. Raises ValidationError for a name under 3 characters."""
        tree = Tree(
            id=new_id("tre"),
            owner_id=(owner_id or "").strip(),
            name=name,
            created_at=self._clock(),
        )
        with self._lock:
            trees = self._load_trees()
            trees.append(tree)
            self._save_trees(trees)
        logger.info("Created tree %s for owner %s", tree.id, tree.owner_id)
        return tree

    def list_trees(self, owner_id: str) -> list[Tree]:
        return [t for t in self._load_trees() if t.owner_id == owner_id]

    def get_tree(self, owner_id: str, tree_id: str) -> Tree | None:
        """Return the owner's tree with this id, or None."""
        for tree in self.list_trees(owner_id):
            if tree.id == tree_id:
                return tree
        return None

    def delete_tree(self, owner_id: str, tree_id: str) -> None:
        """Delete the owner's tree and every person in it. No-op if absent."""
        with self._lock:
            trees = self._load_trees()
            remaining = [t for t in trees if not (t.id == tree_id and t.owner_id == owner_id)]
            if len(remaining) == len(trees):
                logger.debug("delete_tree: %s not found for owner %s", tree_id, owner_id)
                return
            persons = self._index_persons()
            removed = {pid for pid, p in persons.items() if p.tree_id == tree_id}
            for pid in removed:
                del persons[pid]
            _clear_references(persons, removed)
            # Persons before trees: never leave orphaned persons.
            self._save_persons(persons.values())
            self._save_trees(remaining)
        logger.info("Deleted tree %s with %d persons", tree_id, len(removed))

    # --- persons ---

    def list_persons(self, owner_id: str, tree_id: str) -> list[Person]:
        return [
            p for p in self._load_persons() if p.owner_id == owner_id and p.tree_id == tree_id
        ]

    def get_person(self, person_id: str) -> Person | None:
        """Look a person up by id across all trees. Tree scoping is the caller's job."""
        if not person_id:
            return None
        return self._index_persons().get(person_id)

    def count_persons(self, owner_id: str) -> int:
        """Number of persons across all of the owner's trees."""
        return sum(1 for p in self._load_persons() if p.owner_id == owner_id)

    def upsert_person(self, data: PersonInput) -> Person:
        """Create or update a person and keep its partner link symmetric.

        Raises ValidationError (nothing is written) or NotFoundError when
        data.id names no existing person. References to persons that do not
        exist are stored as "". Setting partner B also sets B's partner to
        this person; a previous partner keeps its link back here.
        """
        with self._lock:
            persons = self._index_persons()
            existing = persons.get(data.id) if data.id else None
            if data.id and existing is None:
                raise NotFoundError("person", data.id)

            if existing is not None:
                owner_id, tree_id = existing.owner_id, existing.tree_id
            else:
                owner_id, tree_id = (data.owner_id or "").strip(), (data.tree_id or "").strip()

            person = Person(
                id=existing.id if existing is not None else new_id("per"),
                owner_id=owner_id,
                tree_id=tree_id,
                first_name=data.first_name,
                last_name=data.last_name,
                sex=data.sex,
                birth_date=data.birth_date,
                death_date=data.death_date,
                note=data.note,
                father_id=data.father_id,
                mother_id=data.mother_id,
                partner_id=data.partner_id,
            )
            if existing is None and self.get_tree(owner_id, tree_id) is None:
                raise ValidationError(
                    "unknown_tree", f"Tree {tree_id!r} does not exist for this owner."
                )
            person = replace(
                person,
                **{name: self._resolve_reference(persons, person, name) for name in RELATION_FIELDS},
            )

            persons[person.id] = person
            if person.partner_id:
                partner = persons[person.partner_id]
                if partner.partner_id != person.id:
                    if partner.partner_id:
                        logger.debug(
                            "Partner %s re-linked from %s to %s",
                            partner.id,
                            partner.partner_id,
                            person.id,
                        )
                    persons[partner.id] = replace(partner, partner_id=person.id)
            self._save_persons(persons.values())

        logger.info(
            "%s person %s in tree %s",
            "Updated" if existing is not None else "Created",
            person.id,
            person.tree_id,
        )
        return person

    def delete_person(self, person_id: str) -> None:
        """Remove a person and clear every relation pointing at it. No-op if absent.

        A stored record too malformed to load is removed as well.
        """
        with self._lock:
            persons = self._index_persons()
            if person_id not in persons:
                stored_ids = {r.get("id") for r in self._backend.load_all(EntityKind.PERSON)}
                if person_id not in stored_ids:
                    logger.debug("delete_person: %s not found", person_id)
                    return
                logger.warning("Removing unreadable person record %s", person_id)
            persons.pop(person_id, None)
            cleared = _clear_references(persons, {person_id})
            self._save_persons(persons.values())
        logger.info("Deleted person %s, cleared %d references", person_id, cleared)

    def get_relatives(self, person_id: str) -> Relatives:
        """Resolve father, mother and partner of a person. Raises NotFoundError."""
        persons = self._index_persons()
        person = persons.get(person_id)
        if person is None:
            raise NotFoundError("person", person_id)
        return Relatives(
            person=person,
            father=persons.get(person.father_id),
            mother=persons.get(person.mother_id),
            partner=persons.get(person.partner_id),
        )

    def relation_candidates(self, owner_id: str, tree_id: str, exclude_id: str = "") -> list[Person]:
        """Persons selectable as father, mother or partner: same tree, never the person edited."""
        return [p for p in self.list_persons(owner_id, tree_id) if p.id != exclude_id]

    def seed_if_empty(self, owner_id: str) -> Tree | None:
        """Give an owner without trees a demo tree: two partners and their son."""
        with self._lock:
            if self.list_trees(owner_id):
                return None
            tree = self.create_tree(owner_id, DEMO_TREE_NAME)
            jan = self.upsert_person(
                PersonInput(
                    owner_id=owner_id,
                    tree_id=tree.id,
                    first_name="Jan",
                    last_name="Kowalski",
                    sex=Sex.MALE,
                    birth_date="1970-04-12",
                )
            )
            anna = self.upsert_person(
                PersonInput(
                    owner_id=owner_id,
                    tree_id=tree.id,
                    first_name="Anna",
                    last_name="Kowalska",
                    sex=Sex.FEMALE,
                    birth_date="1972-09-03",
                    partner_id=jan.id,
                )
            )
            self.upsert_person(
                PersonInput(
                    owner_id=owner_id,
                    tree_id=tree.id,
                    first_name="Piotr",
                    last_name="Kowalski",
                    sex=Sex.MALE,
                    birth_date="1999-01-15",
                    note="Syn Jana i Anny",
                    father_id=jan.id,
                    mother_id=anna.id,
                )
            )
        logger.info("Seeded demo tree %s for owner %s", tree.id, owner_id)
        return tree

    # --- helpers ---

    @staticmethod
    def _resolve_reference(persons: dict[str, Person], person: Person, field_name: str) -> str:
        ref = getattr(person, field_name)
        if not ref:
            return ""
        target = persons.get(ref)
        if target is None:
            logger.debug("Dropping dangling %s %s on person %s", field_name, ref, person.id)
            return ""
        if target.tree_id != person.tree_id:
            raise ValidationError(
                "cross_tree_reference",
                "Father, mother and partner must belong to the same tree.",
            )
        return ref

    def _load_trees(self) -> list[Tree]:
        return _decode_records(self._backend.load_all(EntityKind.TREE), tree_from_record)

    def _save_trees(self, trees) -> None:
        self._backend.save_all(EntityKind.TREE, [tree_to_record(t) for t in trees])

    def _load_persons(self) -> list[Person]:
        return _decode_records(self._backend.load_all(EntityKind.PERSON), person_from_record)

    def _index_persons(self) -> dict[str, Person]:
        """Persons by id, in stored order."""
        return {p.id: p for p in self._load_persons()}

    def _save_persons(self, persons) -> None:
        self._backend.save_all(EntityKind.PERSON, [person_to_record(p) for p in persons])


def _decode_records(records: list[Record], decode: Callable[[Record], T]) -> list[T]:
    """Decode stored records, skipping ones that are malformed or break an entity invariant.
    Skipped records are dropped from storage by the next save of that collection.
    """
    out = []
    for record in records:
        try:
            out.append(decode(record))
        except (KeyError, TypeError, ValueError, ValidationError) as exc:
            logger.warning("Skipping unreadable record %r: %s", record.get("id"), exc)
    return out


def _clear_references(persons: dict[str, Person], removed_ids: set[str]) -> int:
    """Blank relation fields pointing at removed ids, in place. Returns how many were cleared."""
    cleared = 0
    for person in list(persons.values()):
        changes = {name: "" for name in person.references(removed_ids)}
        if changes:
            persons[person.id] = replace(person, **changes)
            cleared += len(changes)
    return cleared
