"""JSON file implementation of PersistenceBackend.

One document maps storage keys ("gen_trees", "gen_persons") to arrays of
records, the same shape the browser version kept in localStorage.
"""

import json
import logging
import os
from pathlib import Path

from familytree.application.ports import EntityKind, Record
from familytree.domain import PersistenceError

logger = logging.getLogger(__name__)


class JsonFileBackend:
    """Stores all collections in a single JSON file, rewritten on every save."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def _read_document(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            document = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Could not read %s, treating it as empty: %s", self._path, exc)
            return {}
        if not isinstance(document, dict):
            logger.warning("Ignoring %s: top-level value is not an object", self._path)
            return {}
        return document

    def load_all(self, kind: EntityKind) -> list[Record]:
        records = self._read_document().get(kind.storage_key)
        if records is None:
            return []
        if not isinstance(records, list):
            logger.warning("Ignoring %s in %s: not an array", kind.storage_key, self._path)
            return []
        return [r for r in records if isinstance(r, dict)]

    def save_all(self, kind: EntityKind, records: list[Record]) -> None:
        document = self._read_document()
        document[kind.storage_key] = list(records)
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(document, ensure_ascii=False, indent=2), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as exc:
            raise PersistenceError(f"Could not write {self._path}: {exc}") from exc
