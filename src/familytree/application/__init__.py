"""Application layer: the relationship store, ports, DTOs and record codec. Depends only on domain."""

from familytree.application.dto import PersonInput, Relatives
from familytree.application.ports import EntityKind, PersistenceBackend, Record
from familytree.application.relationship_store import DEMO_TREE_NAME, RelationshipStore

__all__ = [
    "DEMO_TREE_NAME",
    "EntityKind",
    "PersistenceBackend",
    "PersonInput",
    "Record",
    "Relatives",
    "RelationshipStore",
]
