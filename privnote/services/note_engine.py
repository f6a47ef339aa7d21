"""Note Engine — orchestrates create / peek / consume / expire / sweep over a NoteStore.

Invariants:
    - Discipline is fixed at creation: no expiry => single-read, expiry => windowed
    - Single-read retrieval goes through NoteStore.claim_and_consume only
    - Windowed retrieval never mutates the note; a lapsed note is expired on access
      and reported as not found
    - Consumed, expired, destroyed and never-existed all surface as NoteNotFoundError
    - Mutations (create, claim) are never retried on StorageUnavailableError or
      AmbiguousOutcomeError; only a duplicate generated id triggers regeneration
    - Expected outcomes (not found, wrong secret) are not logged as system errors

Design Decisions:
    - Injectable clock: the engine is the only place that reads the time
    - Secret verification is passed down as a closure so the store never sees the
      plaintext secret and the engine never sees the stored hash
    - scrypt derivations run in a worker thread (asyncio.to_thread): the event loop
      only suspends, never blocks, while a secret is hashed or checked
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

from privnote.core import access_gate
from privnote.core.domain_types import (
    DestroyedReason, Discipline, ExpiryOption, NoteId, NoteState,
)
from privnote.core.errors import (
    AmbiguousOutcomeError,
    DuplicateNoteIdError,
    ErrorContext,
    InvalidInputError,
    NoteExpiredError,
    NoteNotFoundError,
    StorageUnavailableError,
)
from privnote.core.identifiers import new_note_id
from privnote.core.note_lifecycle import (
    DEFAULT_UNREAD_RETENTION,
    compute_expires_at,
    discipline_for,
    expires_in,
)
from privnote.core.repository_protocols import NewNote, NoteStore, SecretVerifier

logger = logging.getLogger(__name__)

MAX_CREATE_ATTEMPTS = 3


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CreatedNote:
    id: NoteId
    expires_at: datetime | None
    discipline: Discipline


@dataclass(frozen=True)
class NotePeek:
    requires_secret: bool
    expires_at: datetime | None
    expires_in: timedelta | None


@dataclass(frozen=True)
class ConsumedNote:
    payload: bytes
    expires_at: datetime | None
    destroyed: bool
    reason: DestroyedReason | None

    def __repr__(self) -> str:
        return f"ConsumedNote(destroyed={self.destroyed}, size={len(self.payload)})"


class NoteEngine:
    """Consumption engine — the state machine behind the note API."""

    def __init__(
        self,
        store: NoteStore,
        unread_retention: timedelta = DEFAULT_UNREAD_RETENTION,
        max_ciphertext_bytes: int | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.store = store
        self.unread_retention = unread_retention
        self.max_ciphertext_bytes = max_ciphertext_bytes
        self.clock = clock

    # ─── Create ─────────────────────────────────────────────────

    async def create_note(
        self,
        ciphertext: bytes,
        secret: str | None = None,
        expiry: ExpiryOption = ExpiryOption.NONE,
    ) -> CreatedNote:
        """Store a new active note and return its capability token."""
        if not ciphertext:
            raise InvalidInputError("ciphertext cannot be empty", "ciphertext")
        if self.max_ciphertext_bytes and len(ciphertext) > self.max_ciphertext_bytes:
            raise InvalidInputError(
                f"ciphertext exceeds {self.max_ciphertext_bytes} bytes", "ciphertext",
            )
        if secret is not None and secret == "":
            raise InvalidInputError("secret cannot be empty", "secret")
        try:
            expiry = ExpiryOption(expiry)
        except ValueError:
            raise InvalidInputError(f"unknown expiry option: {expiry}", "expiry")

        digest = (
            await asyncio.to_thread(access_gate.hash_secret, secret)
            if secret is not None else None
        )
        now = self.clock()
        expires_at = compute_expires_at(expiry, now)

        for attempt in range(1, MAX_CREATE_ATTEMPTS + 1):
            record = NewNote(
                id=new_note_id(),
                ciphertext=bytes(ciphertext),
                created_at=now,
                expires_at=expires_at,
                secret_hash=digest.hash if digest else None,
                secret_salt=digest.salt if digest else None,
            )
            try:
                note_id = await self.store.create(record)
            except DuplicateNoteIdError:
                logger.warning(
                    "Generated note id collided, regenerating",
                    extra={"operation": "create", "attempt": attempt},
                )
                continue
            except StorageUnavailableError as e:
                logger.error(
                    f"Note creation failed: {e.message}",
                    extra={"operation": "create", "error_code": e.code},
                )
                raise
            discipline = discipline_for(expires_at)
            logger.info("Note created", extra={"discipline": discipline.value})
            return CreatedNote(id=note_id, expires_at=expires_at, discipline=discipline)

        raise StorageUnavailableError(
            f"id generation collided {MAX_CREATE_ATTEMPTS} times",
            "create",
            ErrorContext(operation="create", attempt=MAX_CREATE_ATTEMPTS),
        )

    # ─── Peek ───────────────────────────────────────────────────

    async def peek_note(self, note_id: NoteId) -> NotePeek:
        """Read-only metadata for the retrieval prompt."""
        now = self.clock()
        snapshot = await self.store.peek(note_id, now)
        if snapshot.state == NoteState.EXPIRED:
            await self.store.expire(note_id, now)
            raise NoteExpiredError()
        return NotePeek(
            requires_secret=snapshot.has_secret,
            expires_at=snapshot.expires_at,
            expires_in=expires_in(snapshot.expires_at, now),
        )

    # ─── Consume ────────────────────────────────────────────────

    async def consume_note(
        self, note_id: NoteId, secret: str | None = None,
    ) -> ConsumedNote:
        """Deliver the payload under the note's discipline."""
        now = self.clock()
        verify = self._verifier(secret)
        try:
            snapshot = await self.store.peek(note_id, now)
            if snapshot.state == NoteState.EXPIRED:
                await self.store.expire(note_id, now)
                raise NoteExpiredError()

            if snapshot.discipline == Discipline.SINGLE_READ:
                payload = await self.store.claim_and_consume(note_id, verify, now)
                logger.info(
                    "Single-read note consumed",
                    extra={"discipline": Discipline.SINGLE_READ.value},
                )
                return ConsumedNote(
                    payload=payload, expires_at=None,
                    destroyed=True, reason=DestroyedReason.READ,
                )

            payload = await self.store.read_windowed(note_id, verify, now)
            return ConsumedNote(
                payload=payload, expires_at=snapshot.expires_at,
                destroyed=False, reason=None,
            )
        except NoteNotFoundError:
            await asyncio.to_thread(access_gate.equalize_timing, secret)
            raise
        except AmbiguousOutcomeError as e:
            logger.warning(
                "Consume outcome unknown; not retrying",
                extra={"operation": e.operation, "error_code": e.code},
            )
            raise

    # ─── Expiry ─────────────────────────────────────────────────

    async def expire_note(self, note_id: NoteId) -> bool:
        """Erase a lapsed windowed note now. No-op for anything else."""
        return await self.store.expire(note_id, self.clock())

    async def sweep(self, now: datetime | None = None) -> int:
        """Purge expired, stale unread and tombstoned notes."""
        return await self.store.sweep(now or self.clock(), self.unread_retention)

    @staticmethod
    def _verifier(secret: str | None) -> SecretVerifier:
        async def verify(stored_hash: bytes | None, stored_salt: bytes | None) -> bool:
            return await asyncio.to_thread(
                access_gate.verify_secret, stored_hash, stored_salt, secret,
            )
        return verify


def build_note_engine(manager, settings) -> NoteEngine:
    """Wire a NoteEngine over the SQL store using application settings."""
    from privnote.infrastructure.note_store import SqlNoteStore

    store = SqlNoteStore(
        manager,
        read_retries=settings.storage_read_retries,
        base_delay_ms=settings.storage_base_delay_ms,
        write_timeout_seconds=settings.storage_write_timeout_seconds,
    )
    return NoteEngine(
        store,
        unread_retention=settings.unread_retention,
        max_ciphertext_bytes=settings.max_ciphertext_bytes,
    )
