"""
FastAPI backend: REST API for contacts, notes, duplicate search, and merge.
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

from fastapi import FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse
from neo4j import GraphDatabase
from pydantic import BaseModel, Field

from inboxdedup.application import (
    ContactCardData,
    ContactChanges,
    ContactCreated,
    ContactNotFound,
    ContactService,
    Invalid,
    PossibleDuplicates,
)
from inboxdedup.domain import Contact, ContactMatch, Note
from inboxdedup.infrastructure import InMemoryContactRepository, Neo4jContactRepository

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)
logger = logging.getLogger(__name__)

# Optional: multi-user placeholder (REST)
USER_ID_HEADER = "X-User-Id"
DEFAULT_USER_ID = "default"

STORE_NEO4J = "neo4j"
STORE_MEMORY = "memory"


def _contact_store() -> str:
    return os.environ.get("CONTACT_STORE", STORE_NEO4J).strip().lower() or STORE_NEO4J


def _default_region() -> str | None:
    return os.environ.get("DEFAULT_PHONE_REGION", "").strip().upper() or None


def _get_driver():
    uri = os.environ.get("NEO4J_URI", "bolt://localhost:7687").strip()
    user = os.environ.get("NEO4J_USER", "neo4j").strip()
    password = os.environ.get("NEO4J_PASSWORD", "password").strip()
    return GraphDatabase.driver(uri, auth=(user, password))


# Per-user ContactService cache
_service_cache: dict[str, ContactService] = {}


def get_service(user_id: str, app: FastAPI) -> ContactService:
    if user_id not in _service_cache:
        if _contact_store() == STORE_MEMORY:
            repo = InMemoryContactRepository(default_region=_default_region())
        else:
            repo = Neo4jContactRepository(
                _get_cached_driver(app),
                user_id=user_id,
                default_region=_default_region(),
            )
        _service_cache[user_id] = ContactService(repo)
    return _service_cache[user_id]


def _get_cached_driver(app: FastAPI):
    if getattr(app.state, "driver", None) is None:
        app.state.driver = _get_driver()
    return app.state.driver


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.driver = None
    logger.info("Contact store: %s", _contact_store())
    try:
        if _contact_store() == STORE_NEO4J:
            app.state.driver = _get_driver()
        yield
    finally:
        if getattr(app.state, "driver", None) is not None:
            app.state.driver.close()


app = FastAPI(title="Inbox Contacts API", lifespan=lifespan)


def _user_id(x_user_id: str | None) -> str:
    return (x_user_id or "").strip() or DEFAULT_USER_ID


# --- Serialization ---


class ContactOut(BaseModel):
    id: str
    name: str | None = None
    phone: str | None = None
    whatsapp: str | None = None
    email: str | None = None
    tags: list[str] = Field(default_factory=list)
    social_handles: dict[str, str] = Field(default_factory=dict)
    created_at: str
    message_count: int | None = None
    note_count: int | None = None


class ContactMatchOut(BaseModel):
    contact: ContactOut
    match_score: int
    match_reasons: list[str]


def _contact_out(
    contact: Contact,
    message_count: int | None = None,
    note_count: int | None = None,
) -> ContactOut:
    return ContactOut(
        id=contact.id,
        name=contact.name,
        phone=contact.phone,
        whatsapp=contact.whatsapp,
        email=contact.email,
        tags=list(contact.tags),
        social_handles=dict(contact.social_handles),
        created_at=contact.created_at.isoformat(),
        message_count=message_count,
        note_count=note_count,
    )


def _match_out(match: ContactMatch) -> dict:
    return ContactMatchOut(
        contact=_contact_out(match.contact),
        match_score=match.match_score,
        match_reasons=list(match.match_reasons),
    ).model_dump()


def _note_out(note: Note) -> dict:
    return {
        "id": note.id,
        "contact_id": note.contact_id,
        "content": note.content,
        "is_private": note.is_private,
        "user_id": note.author_id,
        "created_at": note.created_at.isoformat(),
    }


# --- REST: health ---


@app.get("/health")
def health():
    return {"status": "ok"}


# --- REST: contacts ---


class CreateContactBody(BaseModel):
    name: str | None = None
    phone: str | None = None
    whatsapp: str | None = None
    email: str | None = None
    tags: list[str] = Field(default_factory=list)
    social_handles: dict[str, str] = Field(default_factory=dict)
    force: bool = False


class MergeBody(BaseModel):
    duplicate_id: str | None = None


class SimpleMergeBody(BaseModel):
    source_id: str | None = None
    target_id: str | None = None


class UpdateContactBody(BaseModel):
    name: str | None = None
    phone: str | None = None
    whatsapp: str | None = None
    email: str | None = None


class CreateNoteBody(BaseModel):
    content: str | None = None
    is_private: bool = False
    user_id: str | None = None


class RecordMessageBody(BaseModel):
    message_id: str | None = None


@app.post("/contacts")
def create_contact(
    body: CreateContactBody,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    service = get_service(_user_id(x_user_id), request.app)
    card = ContactCardData(
        name=body.name,
        phone=body.phone,
        whatsapp=body.whatsapp,
        email=body.email,
        tags=tuple(body.tags),
        social_handles=dict(body.social_handles),
    )
    result = service.create_contact(card, force=body.force)
    if isinstance(result, Invalid):
        raise HTTPException(status_code=400, detail=result.reason)
    if isinstance(result, PossibleDuplicates):
        return JSONResponse(
            content={
                "detail": "Possible duplicate contact",
                "duplicates": [_match_out(m) for m in result.matches],
            },
            status_code=409,
        )
    if not isinstance(result, ContactCreated):
        raise HTTPException(status_code=400, detail="Failed to create contact")
    return JSONResponse(
        content={"contact": _contact_out(result.contact).model_dump()},
        status_code=201,
    )


@app.get("/contacts")
def list_contacts(
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    service = get_service(_user_id(x_user_id), request.app)
    return {
        "contacts": [
            _contact_out(s.contact, s.message_count, s.note_count)
            for s in service.list_contacts()
        ]
    }


@app.post("/contacts/merge")
def absorb_contact(
    body: SimpleMergeBody,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    source_id = (body.source_id or "").strip()
    target_id = (body.target_id or "").strip()
    if not source_id or not target_id:
        raise HTTPException(status_code=422, detail="source_id and target_id required")
    service = get_service(_user_id(x_user_id), request.app)
    result = service.absorb_contact(source_id, target_id)
    if isinstance(result, Invalid):
        raise HTTPException(status_code=400, detail=result.reason)
    if isinstance(result, ContactNotFound):
        raise HTTPException(status_code=404, detail="Contact not found")
    return {"ok": True}


@app.get("/contacts/{contact_id}")
def get_contact(
    contact_id: str,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    service = get_service(_user_id(x_user_id), request.app)
    summary = service.get_contact(contact_id)
    if summary is None:
        raise HTTPException(status_code=404, detail="Contact not found")
    return {
        "contact": _contact_out(
            summary.contact, summary.message_count, summary.note_count
        )
    }


@app.get("/contacts/{contact_id}/duplicates")
def find_duplicates(
    contact_id: str,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    service = get_service(_user_id(x_user_id), request.app)
    result = service.find_duplicates(contact_id)
    if isinstance(result, ContactNotFound):
        raise HTTPException(status_code=404, detail="Contact not found")
    return {"duplicates": [_match_out(m) for m in result.matches]}


@app.post("/contacts/{contact_id}/merge")
def merge_contact(
    contact_id: str,
    body: MergeBody,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    duplicate_id = (body.duplicate_id or "").strip()
    if not duplicate_id:
        raise HTTPException(status_code=400, detail="Missing duplicate_id")
    service = get_service(_user_id(x_user_id), request.app)
    result = service.merge_contacts(contact_id, duplicate_id)
    if isinstance(result, Invalid):
        raise HTTPException(status_code=400, detail=result.reason)
    if isinstance(result, ContactNotFound):
        raise HTTPException(status_code=404, detail="Contact not found")
    return {
        "success": True,
        "contact": _contact_out(result.contact),
        "message": "Contacts merged successfully",
    }


@app.patch("/contacts/{contact_id}")
def update_contact(
    contact_id: str,
    body: UpdateContactBody,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    service = get_service(_user_id(x_user_id), request.app)
    changes = ContactChanges(
        name=body.name, phone=body.phone, whatsapp=body.whatsapp, email=body.email
    )
    result = service.update_contact(contact_id, changes)
    if isinstance(result, Invalid):
        raise HTTPException(status_code=400, detail=result.reason)
    if isinstance(result, ContactNotFound):
        raise HTTPException(status_code=404, detail="Contact not found")
    return {"contact": _contact_out(result.contact)}


@app.delete("/contacts/{contact_id}")
def delete_contact(
    contact_id: str,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    service = get_service(_user_id(x_user_id), request.app)
    result = service.delete_contact(contact_id)
    if isinstance(result, ContactNotFound):
        raise HTTPException(status_code=404, detail="Contact not found")
    return {"success": True}


@app.get("/contacts/{contact_id}/notes")
def list_notes(
    contact_id: str,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    service = get_service(_user_id(x_user_id), request.app)
    result = service.list_notes(contact_id)
    if isinstance(result, ContactNotFound):
        raise HTTPException(status_code=404, detail="Contact not found")
    return {"notes": [_note_out(n) for n in result]}


@app.post("/contacts/{contact_id}/notes")
def add_note(
    contact_id: str,
    body: CreateNoteBody,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    service = get_service(_user_id(x_user_id), request.app)
    result = service.add_note(
        contact_id,
        body.content or "",
        author_id=body.user_id,
        is_private=body.is_private,
    )
    if isinstance(result, Invalid):
        raise HTTPException(status_code=422, detail=result.reason)
    if isinstance(result, ContactNotFound):
        raise HTTPException(status_code=404, detail="Contact not found")
    return JSONResponse(content={"note": _note_out(result.note)}, status_code=201)


@app.post("/contacts/{contact_id}/messages")
def record_message(
    contact_id: str,
    body: RecordMessageBody,
    request: Request,
    x_user_id: str | None = Header(None, alias=USER_ID_HEADER),
):
    service = get_service(_user_id(x_user_id), request.app)
    result = service.record_message(contact_id, body.message_id or "")
    if isinstance(result, Invalid):
        raise HTTPException(status_code=422, detail=result.reason)
    if isinstance(result, ContactNotFound):
        raise HTTPException(status_code=404, detail="Contact not found")
    return JSONResponse(
        content={"contact_id": result.contact_id, "message_id": result.message_id},
        status_code=201,
    )
