"""Integration tests for Neo4jBackend. Require Docker
(testcontainers)."""

import pytest

from familytree.application import EntityKind, PersonInput, RelationshipStore
from familytree.infrastructure import Neo4jBackend, ensure_id_constraints


@pytest.fixture(scope="session")
def neo4j_driver():
    neo4j_module = pytest.importorskip("testcontainers.neo4j")
    try:
        container = neo4j_module.Neo4jContainer().start()
    except Exception as exc:  # Docker not available
        pytest.skip(f"Neo4j container unavailable: {exc}")
    driver = container.get_driver()
    try:
        yield driver
    finally:
        driver.close()
        container.stop()


@pytest.fixture
def clean_neo4j(neo4j_driver):
    """Clear the graph before each test so tests are independent."""
    with neo4j_driver.session() as session:
        session.run("MATCH (n) DETACH DELETE n")
    ensure_id_constraints(neo4j_driver)
    yield neo4j_driver


def test_empty_graph_loads_empty(clean_neo4j):
    backend = Neo4jBackend(clean_neo4j)
    assert backend.load_all(EntityKind.TREE) == []
    assert backend.load_all(EntityKind.PERSON) == []


def test_save_all_replaces_collection_and_keeps_order(clean_neo4j):
    backend = Neo4jBackend(clean_neo4j)
    backend.save_all(EntityKind.PERSON, [{"id": "per_b", "firstName": "Bo"}, {"id": "per_a", "firstName": "Al"}])
    backend.save_all(EntityKind.PERSON, [{"id": "per_c", "firstName": "Cy"}, {"id": "per_b", "firstName": "Bo"}])

    assert backend.load_all(EntityKind.PERSON) == [
        {"id": "per_c", "firstName": "Cy"},
        {"id": "per_b", "firstName": "Bo"},
    ]
    assert backend.load_all(EntityKind.TREE) == []


def test_records_stored_as_labelled_nodes(clean_neo4j):
    backend = Neo4jBackend(clean_neo4j)
    backend.save_all(EntityKind.TREE, [{"id": "tre_1", "name": "Drzewo"}])
    with clean_neo4j.session() as session:
        result = session.run("MATCH (t:Tree {id: 'tre_1'}) RETURN t.name AS name")
        assert result.single()["name"] == "Drzewo"


def test_store_over_neo4j_keeps_integrity(clean_neo4j):
    store = RelationshipStore(Neo4jBackend(clean_neo4j))
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
    assert store.get_person(jan.id).partner_id == anna.id

    store.delete_person(jan.id)
    assert store.get_person(anna.id).partner_id == ""
    assert [p.id for p in store.list_persons("usr_1", tree.id)] == [anna.id]
