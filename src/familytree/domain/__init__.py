"""Domain layer: entities, value objects and errors. No dependencies on outer layers."""

from familytree.domain.entities import RELATION_FIELDS, Person, Sex, Tree, new_id
from familytree.domain.errors import (
    FamilyTreeError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)

__all__ = [
    "FamilyTreeError",
    "NotFoundError",
    "PersistenceError",
    "Person",
    "RELATION_FIELDS",
    "Sex",
    "Tree",
    "ValidationError",
    "new_id",
]
