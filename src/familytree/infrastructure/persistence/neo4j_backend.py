"""Neo4j implementation of PersistenceBackend.
Graph: one node per record, labelled by entity kind ((:Tree), (:Person)), with the
record fields as node properties. Relationship ids stay plain properties; the
store, not the graph, owns referential integrity. A position property keeps
collection order.
"""

import logging

from neo4j.exceptions import DriverError, Neo4jError

from familytree.application.ports import EntityKind, Record
from familytree.domain import PersistenceError

logger = logging.getLogger(__name__)

_POSITION = "position"

_CONSTRAINT_QUERY = """
CREATE CONSTRAINT {name} IF NOT EXISTS
FOR (n:{label}) REQUIRE n.id IS UNIQUE
"""

_LOAD_QUERY = """
MATCH (n:{label})
RETURN properties(n) AS record
ORDER BY n.position
"""

_DELETE_QUERY = """
MATCH (n:{label})
DETACH DELETE n
"""

_CREATE_QUERY = """
UNWIND $records AS record
CREATE (n:{label})
SET n = record
"""


def ensure_id_constraints(driver) -> None:
    """Create unique constraints on Tree.id and Person.id if missing."""
    with driver.session() as session:
        for kind in EntityKind:
            session.run(
                _CONSTRAINT_QUERY.format(
                    name=f"{kind.value.lower()}_id_unique", label=kind.value
                )
            )


class Neo4jBackend:
    """Stores each collection as the set of nodes carrying the kind's label.
    save_all replaces the whole set in one write transaction.
    """

    def __init__(self, driver: object, database: str | None = None) -> None:
        self._driver = driver
        self._database = database

    def _session(self):
        if self._database:
            return self._driver.session(database=self._database)
        return self._driver.session()

    def load_all(self, kind: EntityKind) -> list[Record]:
        try:
            with self._session() as session:
                result = session.run(_LOAD_QUERY.format(label=kind.value))
                rows = [dict(rec["record"]) for rec in result]
        except (Neo4jError, DriverError) as exc:
            raise PersistenceError(f"Could not load {kind.value} records: {exc}") from exc
        for row in rows:
            row.pop(_POSITION, None)
        return rows

    def save_all(self, kind: EntityKind, records: list[Record]) -> None:
        label = kind.value
        rows = [{**record, _POSITION: i} for i, record in enumerate(records)]

        def _replace(tx):
            tx.run(_DELETE_QUERY.format(label=label))
            if rows:
                tx.run(_CREATE_QUERY.format(label=label), records=rows)

        try:
            with self._session() as session:
                session.execute_write(_replace)
        except (Neo4jError, DriverError) as exc:
            raise PersistenceError(f"Could not save {kind.value} records: {exc}") from exc
        logger.debug("Saved %d %s records", len(rows), label)
