"""Identifier Generator — unguessable note references (capability tokens).

Invariants:
    - Every id is a version-4 UUID: 122 random bits from the OS CSPRNG
    - A malformed reference is reported exactly like a missing note
"""

import uuid

from privnote.core.domain_types import NoteId
from privnote.core.errors import NoteNotFoundError


def new_note_id() -> NoteId:
    return NoteId(uuid.uuid4())


def parse_note_id(raw: str | uuid.UUID) -> NoteId:
    """Parse a client-supplied reference into a NoteId."""
    if isinstance(raw, uuid.UUID):
        return NoteId(raw)
    try:
        return NoteId(uuid.UUID(raw))
    except (ValueError, TypeError, AttributeError):
        raise NoteNotFoundError()
