"""Infrastructure layer: concrete implementations of application ports."""

from familytree.infrastructure.memory_backend import InMemoryBackend
from familytree.infrastructure.persistence.json_file_backend import JsonFileBackend
from familytree.infrastructure.persistence.neo4j_backend import (
    Neo4jBackend,
    ensure_id_constraints,
)

__all__ = [
    "InMemoryBackend",
    "JsonFileBackend",
    "Neo4jBackend",
    "ensure_id_constraints",
]
