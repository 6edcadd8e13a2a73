"""
Family tree core: clean-architecture layout.

- domain: entities (Tree, Person, Sex) and errors. No outer dependencies.
- application: RelationshipStore (use cases), ports (PersistenceBackend), DTOs.
- infrastructure: adapters (InMemoryBackend, JsonFileBackend, Neo4jBackend).
"""

from familytree.application import (
    EntityKind,
    PersistenceBackend,
    PersonInput,
    Relatives,
    RelationshipStore,
)
from familytree.domain import (
    FamilyTreeError,
    NotFoundError,
    PersistenceError,
    Person,
    Sex,
    Tree,
    ValidationError,
)
from familytree.infrastructure import InMemoryBackend, JsonFileBackend, Neo4jBackend

__all__ = [
    "EntityKind",
    "FamilyTreeError",
    "InMemoryBackend",
    "JsonFileBackend",
    "Neo4jBackend",
    "NotFoundError",
    "PersistenceBackend",
    "PersistenceError",
    "Person",
    "PersonInput",
    "Relatives",
    "RelationshipStore",
    "Sex",
    "Tree",
    "ValidationError",
]
