"""In-memory implementation of PersistenceBackend (no DB)."""

from familytree.application.ports import EntityKind, Record


class InMemoryBackend:
    """Keeps one list of records per entity kind. Records are copied in and out,
    so callers never share mutable state with the stored collection.
    """

    def __init__(self) -> None:
        self._collections: dict[EntityKind, list[Record]] = {}

    def load_all(self, kind: EntityKind) -> list[Record]:
        return [dict(record) for record in self._collections.get(kind, [])]

    def save_all(self, kind: EntityKind, records: list[Record]) -> None:
        self._collections[kind] = [dict(record) for record in records]
