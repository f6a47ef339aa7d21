"""SQL Note Store — NoteStore implementation on async SQLAlchemy with conditional statements.

Invariants:
    - Every state transition is ONE conditional UPDATE/DELETE guarded by `state = 'active'`
      (compare-and-swap): of N racing claims exactly one sees rowcount == 1
    - The payload returned by a claim is the one read before the CAS; it is immutable
      while the row is active, so only the CAS winner ever delivers it
    - Wrong secret never reaches a write: verification happens before the CAS
    - ciphertext is set to NULL in the same statement that leaves `active`
    - Only peek (idempotent read) is retried; a claim that fails after its CAS was
      issued raises AmbiguousOutcomeError and is never retried
    - Note ids and secrets never appear in log lines

Design Decisions:
    - Read, verify, then CAS in separate short transactions instead of SELECT ... FOR UPDATE:
      no lock is held while the scrypt verification runs, and the same code is correct
      on PostgreSQL (row lock on UPDATE, re-evaluated WHERE) and SQLite (database lock)
    - Tombstones kept until the next sweep so consumed_at stays available for bookkeeping
"""

import asyncio
import logging
import random
from datetime import datetime, timedelta

from sqlalchemy import select, update, delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from privnote.core.domain_types import NoteId, NoteState
from privnote.core.errors import (
    AmbiguousOutcomeError,
    DuplicateNoteIdError,
    ErrorContext,
    InvalidSecretError,
    NoteExpiredError,
    NoteNotFoundError,
    StorageUnavailableError,
)
from privnote.core.note_lifecycle import derive_state, ensure_utc, is_lapsed, unread_cutoff
from privnote.core.repository_protocols import NewNote, NoteSnapshot, SecretVerifier
from privnote.infrastructure.database import DatabaseSessionManager
from privnote.models.note import Note

logger = logging.getLogger(__name__)

_ACTIVE = NoteState.ACTIVE.value
_TOMBSTONES = (NoteState.CONSUMED.value, NoteState.EXPIRED.value)


class SqlNoteStore:
    """Durable note storage with atomic conditional mutation."""

    def __init__(
        self,
        manager: DatabaseSessionManager,
        read_retries: int = 3,
        base_delay_ms: int = 50,
        max_delay_ms: int = 2_000,
        write_timeout_seconds: float = 5.0,
    ):
        self._manager = manager
        self.read_retries = read_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self.write_timeout_seconds = write_timeout_seconds

    # ─── Create ─────────────────────────────────────────────────

    async def create(self, record: NewNote) -> NoteId:
        """Insert an active note. Key collision raises DuplicateNoteIdError."""
        async with self._manager.session() as db:
            db.add(Note(
                id=record.id,
                ciphertext=record.ciphertext,
                secret_hash=record.secret_hash,
                secret_salt=record.secret_salt,
                state=_ACTIVE,
                created_at=ensure_utc(record.created_at),
                expires_at=ensure_utc(record.expires_at),
            ))
            try:
                await db.commit()
            except IntegrityError:
                await db.rollback()
                raise DuplicateNoteIdError(ErrorContext(operation="create"))
        return record.id

    # ─── Reads ──────────────────────────────────────────────────

    async def peek(self, note_id: NoteId, now: datetime) -> NoteSnapshot:
        """Metadata fetch with bounded retry on transient storage failures."""
        for attempt in range(self.read_retries + 1):
            try:
                return await self._peek_once(note_id, now)
            except StorageUnavailableError as e:
                if attempt >= self.read_retries:
                    raise StorageUnavailableError(
                        f"gave up after {self.read_retries} retries",
                        "peek",
                        ErrorContext(operation="peek", attempt=attempt + 1),
                    ) from e
                delay = self._backoff(attempt)
                logger.warning(
                    f"Transient storage error on peek, retry after {delay}ms",
                    extra={"operation": "peek", "attempt": attempt + 1},
                )
                await asyncio.sleep(delay / 1000)
        raise StorageUnavailableError("no attempts made", "peek")

    async def _peek_once(self, note_id: NoteId, now: datetime) -> NoteSnapshot:
        async with self._manager.session() as db:
            result = await db.execute(
                select(
                    Note.state,
                    Note.created_at,
                    Note.expires_at,
                    Note.secret_hash.is_not(None).label("has_secret"),
                ).where(Note.id == note_id),
            )
            row = result.one_or_none()
        if row is None or row.state != _ACTIVE:
            raise NoteNotFoundError()
        expires_at = ensure_utc(row.expires_at)
        return NoteSnapshot(
            has_secret=bool(row.has_secret),
            created_at=ensure_utc(row.created_at),
            expires_at=expires_at,
            state=derive_state(NoteState(row.state), expires_at, now),
        )

    async def _load(self, note_id: NoteId):
        async with self._manager.session() as db:
            result = await db.execute(
                select(
                    Note.ciphertext,
                    Note.secret_hash,
                    Note.secret_salt,
                    Note.state,
                    Note.expires_at,
                ).where(Note.id == note_id),
            )
            return result.one_or_none()

    # ─── Consumption ────────────────────────────────────────────

    async def claim_and_consume(
        self, note_id: NoteId, verify: SecretVerifier, now: datetime,
    ) -> bytes:
        """Atomically consume a single-read note and return its payload."""
        row = await self._load(note_id)
        if row is None or row.state != _ACTIVE or row.expires_at is not None:
            raise NoteNotFoundError()
        if not await verify(row.secret_hash, row.secret_salt):
            raise InvalidSecretError()

        claimed = await self._claim(
            update(Note)
            .where(
                Note.id == note_id,
                Note.state == _ACTIVE,
                Note.expires_at.is_(None),
            )
            .values(
                state=NoteState.CONSUMED.value,
                ciphertext=None,
                consumed_at=ensure_utc(now),
            )
            .execution_options(synchronize_session=False),
        )
        if claimed != 1:
            raise NoteNotFoundError()
        return row.ciphertext

    async def read_windowed(
        self, note_id: NoteId, verify: SecretVerifier, now: datetime,
    ) -> bytes:
        """Return a windowed note's payload without mutating it."""
        row = await self._load(note_id)
        if row is None or row.state != _ACTIVE or row.expires_at is None:
            raise NoteNotFoundError()
        if is_lapsed(row.expires_at, now):
            await self.expire(note_id, now)
            raise NoteExpiredError()
        if not await verify(row.secret_hash, row.secret_salt):
            raise InvalidSecretError()
        return row.ciphertext

    async def expire(self, note_id: NoteId, now: datetime) -> bool:
        """Erase a lapsed windowed note. Idempotent; True if this call did it."""
        async with self._manager.session() as db:
            result = await db.execute(
                update(Note)
                .where(
                    Note.id == note_id,
                    Note.state == _ACTIVE,
                    Note.expires_at.is_not(None),
                    Note.expires_at <= ensure_utc(now),
                )
                .values(state=NoteState.EXPIRED.value, ciphertext=None)
                .execution_options(synchronize_session=False),
            )
            await db.commit()
            return result.rowcount == 1

    # ─── Sweep ──────────────────────────────────────────────────

    async def sweep(self, now: datetime, unread_retention: timedelta) -> int:
        """Delete lapsed windowed notes, stale unread notes and tombstones."""
        now = ensure_utc(now)
        cutoff = unread_cutoff(now, unread_retention)
        statements = (
            delete(Note).where(
                Note.expires_at.is_not(None), Note.expires_at <= now,
            ),
            delete(Note).where(
                Note.expires_at.is_(None),
                Note.state == _ACTIVE,
                Note.created_at < cutoff,
            ),
            delete(Note).where(Note.state.in_(_TOMBSTONES)),
        )
        purged = 0
        async with self._manager.session() as db:
            for stmt in statements:
                result = await db.execute(
                    stmt.execution_options(synchronize_session=False),
                )
                purged += result.rowcount or 0
            await db.commit()
        return purged

    # ─── Helpers ────────────────────────────────────────────────

    async def _claim(self, stmt) -> int:
        """Issue the CAS. Anything going wrong after it is issued is ambiguous."""
        issued = False
        try:
            async with self._manager.session() as db:
                await db.connection()
                issued = True
                return await asyncio.wait_for(
                    self._execute_and_commit(db, stmt),
                    timeout=self.write_timeout_seconds,
                )
        except (asyncio.TimeoutError, StorageUnavailableError, SQLAlchemyError) as e:
            if not issued:
                if isinstance(e, StorageUnavailableError):
                    raise
                raise StorageUnavailableError(
                    "could not acquire connection", "claim_and_consume",
                ) from e
            logger.error(
                f"Claim outcome unknown: {type(e).__name__}",
                extra={"operation": "claim_and_consume", "error_code": "OUTCOME_UNKNOWN"},
            )
            raise AmbiguousOutcomeError("claim_and_consume") from e

    @staticmethod
    async def _execute_and_commit(db, stmt) -> int:
        result = await db.execute(stmt)
        await db.commit()
        return result.rowcount

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311
