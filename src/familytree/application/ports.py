"""Application ports (interfaces). Implemented by infrastructure adapters."""

from enum import Enum
from typing import Any, Protocol

Record = dict[str, Any]


class EntityKind(str, Enum):
    TREE = "Tree"
    PERSON = "Person"

    @property
    def storage_key(self) -> str:
        """Key of this collection in key-value storage ("gen_trees", "gen_persons")."""
        return f"gen_{self.value.lower()}s"


class PersistenceBackend(Protocol):
    """Durably stores whole collections of raw records, one array per entity kind."""

    def load_all(self, kind: EntityKind) -> list[Record]:
        """Return every stored record of this kind. Missing data loads as []."""
        ...

    def save_all(self, kind: EntityKind, records: list[Record]) -> None:
        """Replace the stored collection of this kind with records."""
        ...
