"""Note Routes — thin HTTP binding over NoteEngine.

Invariants:
    - Routes contain no lifecycle logic: validation by Pydantic, decisions by NoteEngine
    - A malformed note reference yields the same 404 as a missing note
    - Domain errors propagate to the global PrivNoteError handler

Design Decisions:
    - Consume is POST, not GET: it mutates state and must not be prefetched by link
      previewers
"""

import logging

from fastapi import APIRouter, Depends, status

from privnote.config import get_settings
from privnote.core.identifiers import parse_note_id
from privnote.core.note_lifecycle import expiry_notice, format_remaining
from privnote.infrastructure.database import get_db_manager
from privnote.schemas.note import (
    NoteConsume, NoteContent, NoteCreate, NoteCreated, NoteMetadata, encode_b64,
)
from privnote.services.note_engine import NoteEngine, build_note_engine

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/notes", tags=["notes"])


def get_note_engine(manager=Depends(get_db_manager)) -> NoteEngine:
    return build_note_engine(manager, get_settings())


@router.post(
    "", response_model=NoteCreated,
    status_code=status.HTTP_201_CREATED,
)
async def create_note(
    body: NoteCreate, engine: NoteEngine = Depends(get_note_engine),
):
    """Create a note and return its capability token."""
    created = await engine.create_note(
        body.payload, secret=body.secret, expiry=body.expiry,
    )
    return NoteCreated(
        id=created.id,
        expires_at=created.expires_at,
        discipline=created.discipline,
        notice=expiry_notice(body.expiry),
    )


@router.get("/{note_id}", response_model=NoteMetadata)
async def peek_note(
    note_id: str, engine: NoteEngine = Depends(get_note_engine),
):
    """Metadata only. Does not consume the note."""
    peek = await engine.peek_note(parse_note_id(note_id))
    return NoteMetadata(
        requires_secret=peek.requires_secret,
        expires_at=peek.expires_at,
        expires_in_seconds=(
            int(peek.expires_in.total_seconds())
            if peek.expires_in is not None else None
        ),
        time_left=format_remaining(peek.expires_in),
    )


@router.post("/{note_id}/consume", response_model=NoteContent)
async def consume_note(
    note_id: str,
    body: NoteConsume | None = None,
    engine: NoteEngine = Depends(get_note_engine),
):
    """Deliver the payload. Single-read notes are destroyed by this call."""
    secret = body.secret if body else None
    consumed = await engine.consume_note(parse_note_id(note_id), secret=secret)
    return NoteContent(
        ciphertext=encode_b64(consumed.payload),
        expires_at=consumed.expires_at,
        destroyed=consumed.destroyed,
        reason=consumed.reason,
    )
