"""
FastAPI backend: REST API over RelationshipStore.
Run with uvicorn: uvicorn api.main:app --reload
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from repo root (when run from repo root or from Docker)
for path in (
    Path(__file__).resolve().parent.parent.parent / ".env",
    Path.cwd() / ".env",
):
    if path.exists():
        load_dotenv(path)
        break

from contextlib import asynccontextmanager
from datetime import date

from fastapi import FastAPI, Header, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from neo4j import GraphDatabase
from pydantic import BaseModel

from familytree.application import PersonInput, RelationshipStore
from familytree.domain import (
    NotFoundError,
    PersistenceError,
    Person,
    Tree,
    ValidationError,
)
from familytree.infrastructure import (
    InMemoryBackend,
    JsonFileBackend,
    Neo4jBackend,
    ensure_id_constraints,
)

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)
logger = logging.getLogger(__name__)

# Owner of the data; authentication is out of scope.
USER_ID_HEADER = "X-User-Id"
DEFAULT_USER_ID = "default"

BACKEND_MEMORY = "memory"
BACKEND_JSON = "json"
BACKEND_NEO4J = "neo4j"


def _get_driver():
    uri = os.environ.get("NEO4J_URI", "bolt://localhost:7687").strip()
    user = os.environ.get("NEO4J_USER", "neo4j").strip()
    password = os.environ.get("NEO4J_PASSWORD", "password").strip()
    return GraphDatabase.driver(uri, auth=(user, password))


def _build_store(app: FastAPI) -> RelationshipStore:
    """Pick the persistence backend from FAMILYTREE_BACKEND (memory, json or neo4j)."""
    kind = os.environ.get("FAMILYTREE_BACKEND", BACKEND_MEMORY).strip().lower()
    if kind == BACKEND_NEO4J:
        app.state.driver = _get_driver()
        ensure_id_constraints(app.state.driver)
        backend = Neo4jBackend(app.state.driver)
    elif kind == BACKEND_JSON:
        data_file = os.environ.get("FAMILYTREE_DATA_FILE", "familytree.json").strip()
        backend = JsonFileBackend(data_file)
    elif kind == BACKEND_MEMORY:
        backend = InMemoryBackend()
    else:
        raise RuntimeError(f"Unsupported FAMILYTREE_BACKEND: {kind!r}")
    logger.info("Using %s persistence backend", kind)
    return RelationshipStore(backend)


def get_store(app: FastAPI) -> RelationshipStore:
    if getattr(app.state, "store", None) is None:
        app.state.store = _build_store(app)
    return app.state.store


def _user_id(x_user_id: str | None) -> str:
    return (x_user_id or "").strip() or DEFAULT_USER_ID


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.driver = None
    try:
        get_store(app)
        yield
    finally:
        if getattr(app.state, "driver", None) is not None:
            app.state.driver.close()


app = FastAPI(title="Family Tree API", lifespan=lifespan)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=400, content={"detail": exc.message, "reason": exc.reason}
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    logger.error("Persistence backend failed: %s", exc)
    return JSONResponse(status_code=503, content={"detail": "Storage unavailable, retry later."})


# --- REST: health ---


@app.get("/health")
def health():
    return {"status": "ok"}


# --- REST: models ---


class CreateTreeBody(BaseModel):
    name: str


class TreeItem(BaseModel):
    id: str
    name: str
    created_at: str
    person_count: int = 0


class PersonBody(BaseModel):
    first_name: str
    last_name: str
    sex: str = ""
    # Parsed by the store so a bad date is a 400 invalid_date, not a 422.
    birth_date: str | None = None
    death_date: str | None = None
    note: str = ""
    father_id: str = ""
    mother_id: str = ""
    partner_id: str = ""


class PersonItem(BaseModel):
    id: str
    tree_id: str
    first_name: str
    last_name: str
    sex: str
    birth_date: date | None = None
    death_date: date | None = None
    note: str = ""
    father_id: str = ""
    mother_id: str = ""
    partner_id: str = ""


class RelativesItem(BaseModel):
    person: PersonItem
    father: PersonItem | None = None
    mother: PersonItem | None = None
    partner: PersonItem | None = None


def _tree_item(tree: Tree, person_count: int = 0) -> TreeItem:
    return TreeItem(
        id=tree.id,
        name=tree.name,
        created_at=tree.created_at.isoformat(),
        person_count=person_count,
    )


def _person_item(p: Person | None) -> PersonItem | None:
    if p is None:
        return None
    return PersonItem(
        id=p.id,
        tree_id=p.tree_id,
        first_name=p.first_name,
        last_name=p.last_name,
        sex=p.sex.value,
        birth_date=p.birth_date,
        death_date=p.death_date,
        note=p.note,
        father_id=p.father_id,
        mother_id=p.mother_id,
        partner_id=p.partner_id,
    )


def _owned_tree(store: RelationshipStore, user_id: str, tree_id: str) -> Tree:
    tree = store.get_tree(user_id, tree_id)
    if tree is None:
        raise HTTPException(status_code=404, detail="Tree not found")
    return tree


def _owned_person(store: RelationshipStore, user_id: str, person_id: str) -> Person:
    person = store.get_person(person_id)
    if person is None or person.owner_id != user_id:
        raise HTTPException(status_code=404, detail="Person not found")
    return person


# --- REST: trees ---


@app.post("/trees")
def create_tree(
    body: CreateTreeBody,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    store = get_store(request.app)
    tree = store.create_tree(_user_id(x_user_id), body.name)
    return JSONResponse(content=_tree_item(tree).model_dump(), status_code=201)


@app.get("/trees")
def list_trees(
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    user_id = _user_id(x_user_id)
    store = get_store(request.app)
    return [
        _tree_item(t, len(store.list_persons(user_id, t.id)))
        for t in store.list_trees(user_id)
    ]


@app.get("/trees/{tree_id}")
def get_tree(
    tree_id: str,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    user_id = _user_id(x_user_id)
    store = get_store(request.app)
    tree = _owned_tree(store, user_id, tree_id)
    return _tree_item(tree, len(store.list_persons(user_id, tree.id)))


@app.delete("/trees/{tree_id}", status_code=204)
def delete_tree(
    tree_id: str,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    get_store(request.app).delete_tree(_user_id(x_user_id), tree_id)
    return Response(status_code=204)


@app.post("/seed")
def seed(
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    """Create the demo tree if the user has none yet."""
    tree = get_store(request.app).seed_if_empty(_user_id(x_user_id))
    if tree is None:
        return {"seeded": False}
    return {"seeded": True, "tree": _tree_item(tree, 3).model_dump()}


# --- REST: persons ---


@app.get("/trees/{tree_id}/persons")
def list_persons(
    tree_id: str,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    user_id = _user_id(x_user_id)
    store = get_store(request.app)
    _owned_tree(store, user_id, tree_id)
    return [_person_item(p) for p in store.list_persons(user_id, tree_id)]


@app.post("/trees/{tree_id}/persons")
def create_person(
    tree_id: str,
    body: PersonBody,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    user_id = _user_id(x_user_id)
    store = get_store(request.app)
    _owned_tree(store, user_id, tree_id)
    person = store.upsert_person(
        PersonInput(owner_id=user_id, tree_id=tree_id, **body.model_dump())
    )
    return JSONResponse(
        content=_person_item(person).model_dump(mode="json"), status_code=201
    )


@app.get("/persons/{person_id}")
def get_person(
    person_id: str,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    store = get_store(request.app)
    return _person_item(_owned_person(store, _user_id(x_user_id), person_id))


@app.put("/persons/{person_id}")
def update_person(
    person_id: str,
    body: PersonBody,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    store = get_store(request.app)
    _owned_person(store, _user_id(x_user_id), person_id)
    person = store.upsert_person(PersonInput(id=person_id, **body.model_dump()))
    return _person_item(person)


@app.delete("/persons/{person_id}", status_code=204)
def delete_person(
    person_id: str,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    store = get_store(request.app)
    person = store.get_person(person_id)
    # Unknown ids are a no-op, like the store; other owners' persons are hidden.
    if person is not None and person.owner_id != _user_id(x_user_id):
        raise HTTPException(status_code=404, detail="Person not found")
    store.delete_person(person_id)
    return Response(status_code=204)


@app.get("/persons/{person_id}/relatives")
def get_relatives(
    person_id: str,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    store = get_store(request.app)
    _owned_person(store, _user_id(x_user_id), person_id)
    relatives = store.get_relatives(person_id)
    return RelativesItem(
        person=_person_item(relatives.person),
        father=_person_item(relatives.father),
        mother=_person_item(relatives.mother),
        partner=_person_item(relatives.partner),
    )
