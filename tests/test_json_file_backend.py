"""Tests for the JSON file backend."""

import json

import pytest

from familytree.application import EntityKind, PersonInput, RelationshipStore
from familytree.domain import PersistenceError
from familytree.infrastructure import JsonFileBackend


def test_missing_file_loads_empty(tmp_path) -> None:
    backend = JsonFileBackend(tmp_path / "nothing.json")
    assert backend.load_all(EntityKind.TREE) == []
    assert backend.load_all(EntityKind.PERSON) == []


def test_collections_stored_under_storage_keys(tmp_path) -> None:
    path = tmp_path / "data" / "familytree.json"
    backend = JsonFileBackend(path)
    backend.save_all(EntityKind.TREE, [{"id": "tre_1"}])
    backend.save_all(EntityKind.PERSON, [{"id": "per_1"}, {"id": "per_2"}])

    document = json.loads(path.read_text(encoding="utf-8"))
    assert document == {
        "gen_trees": [{"id": "tre_1"}],
        "gen_persons": [{"id": "per_1"}, {"id": "per_2"}],
    }
    assert backend.load_all(EntityKind.PERSON) == [{"id": "per_1"}, {"id": "per_2"}]


def test_malformed_file_loads_empty(tmp_path, caplog) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    backend = JsonFileBackend(path)
    assert backend.load_all(EntityKind.TREE) == []
    assert "treating it as empty" in caplog.text


def test_non_array_collection_ignored(tmp_path) -> None:
    path = tmp_path / "odd.json"
    path.write_text(json.dumps({"gen_trees": {"id": "tre_1"}}), encoding="utf-8")
    assert JsonFileBackend(path).load_all(EntityKind.TREE) == []


def test_write_failure_raises_persistence_error(tmp_path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("", encoding="utf-8")
    backend = JsonFileBackend(blocker / "familytree.json")
    with pytest.raises(PersistenceError):
        backend.save_all(EntityKind.TREE, [])


def test_store_state_survives_reopen(tmp_path) -> None:
    path = tmp_path / "familytree.json"
    store = RelationshipStore(JsonFileBackend(path))
    tree = store.create_tree("usr_1", "Kowalscy")
    jan = store.upsert_person(
        PersonInput(owner_id="usr_1", tree_id=tree.id, first_name="Jan", last_name="Kowalski")
    )
    anna = store.upsert_person(
        PersonInput(
            owner_id="usr_1",
            tree_id=tree.id,
            first_name="Anna",
            last_name="Kowalska",
            partner_id=jan.id,
        )
    )

    reopened = RelationshipStore(JsonFileBackend(path))
    assert reopened.list_trees("usr_1") == [tree]
    assert reopened.get_person(jan.id).partner_id == anna.id
