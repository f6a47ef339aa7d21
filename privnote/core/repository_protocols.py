"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - Every mutating NoteStore method is a single conditional statement in storage;
      callers never hold an in-process lock across a store call
    - NoteSnapshot never carries the payload, the secret hash or the salt

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: implementations do IO; the pure rules in core/ stay sync
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Protocol

from privnote.core.domain_types import Discipline, NoteId, NoteState
from privnote.core.note_lifecycle import discipline_for

# await verify(stored_hash, stored_salt) -> bool, bound to the requester's secret
SecretVerifier = Callable[[bytes | None, bytes | None], Awaitable[bool]]


@dataclass(frozen=True)
class NewNote:
    """Record handed to NoteStore.create."""
    id: NoteId
    ciphertext: bytes
    created_at: datetime
    expires_at: datetime | None = None
    secret_hash: bytes | None = None
    secret_salt: bytes | None = None

    def __repr__(self) -> str:
        return (
            f"NewNote(expires_at={self.expires_at!r}, "
            f"protected={self.secret_hash is not None})"
        )


@dataclass(frozen=True)
class NoteSnapshot:
    """Metadata-only view returned by NoteStore.peek."""
    has_secret: bool
    created_at: datetime
    expires_at: datetime | None
    state: NoteState

    @property
    def discipline(self) -> Discipline:
        return discipline_for(self.expires_at)


class NoteStore(Protocol):
    """Contract for note persistence — implemented by shell."""
    async def create(self, record: NewNote) -> NoteId: ...
    async def peek(self, note_id: NoteId, now: datetime) -> NoteSnapshot: ...
    async def claim_and_consume(
        self, note_id: NoteId, verify: SecretVerifier, now: datetime,
    ) -> bytes: ...
    async def read_windowed(
        self, note_id: NoteId, verify: SecretVerifier, now: datetime,
    ) -> bytes: ...
    async def expire(self, note_id: NoteId, now: datetime) -> bool: ...
    async def sweep(self, now: datetime, unread_retention: timedelta) -> int: ...
