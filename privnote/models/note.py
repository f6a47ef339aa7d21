"""Note ORM — one durable row per note, keyed by its capability token.

Invariants:
    - id is the UUID capability token (client-generated by the engine, not the DB)
    - ciphertext is NULL once state leaves `active` (erased in the same statement)
    - secret_hash/secret_salt are both NULL or both set, and never updated
    - state column holds active | consumed | expired; a destroyed note is a deleted row

Design Decisions:
    - Tombstone rows (consumed/expired) keep consumed_at for sweeper bookkeeping only
    - Indexes on (state, expires_at) and created_at back the sweeper's predicate deletes
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, LargeBinary, DateTime, Index
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from privnote.core.domain_types import NoteState
from privnote.db.base import Base


class Note(Base):
    """Note row — payload, gate credential and lifecycle timestamps."""
    __tablename__ = "notes"
    __table_args__ = (
        Index("ix_notes_state_expires_at", "state", "expires_at"),
        Index("ix_notes_created_at", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True,
    )
    ciphertext: Mapped[bytes | None] = mapped_column(
        LargeBinary, nullable=True,
    )
    secret_hash: Mapped[bytes | None] = mapped_column(
        LargeBinary, nullable=True,
    )
    secret_salt: Mapped[bytes | None] = mapped_column(
        LargeBinary, nullable=True,
    )
    state: Mapped[str] = mapped_column(
        String(20), nullable=False, default=NoteState.ACTIVE.value,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    consumed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Note state={self.state} windowed={self.expires_at is not None}>"
