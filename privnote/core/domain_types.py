"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - NoteId wraps a UUID — never pass a bare str id through domain logic
    - Every note state and expiry policy is an Enum — no raw string matching
    - ExpiryOption.NONE is the only option without a duration (single-read)

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from datetime import timedelta
from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

NoteId = NewType("NoteId", UUID)


# ─── Enums ───────────────────────────────────────────────────────

class NoteState(str, Enum):
    """Persisted note states — maps to DB `state` column.

    There is no destroyed state: a destroyed note is a deleted row.
    """
    ACTIVE = "active"
    CONSUMED = "consumed"
    EXPIRED = "expired"


class Discipline(str, Enum):
    """Consumption discipline, fixed at creation by the presence of expires_at."""
    SINGLE_READ = "single_read"
    WINDOWED = "windowed"


class DestroyedReason(str, Enum):
    """Display hint for the UI. Never persisted."""
    READ = "read"
    EXPIRED = "expired"


class ExpiryOption(str, Enum):
    """Expiry policies offered at creation."""
    NONE = "none"
    ONE_HOUR = "1h"
    ONE_DAY = "24h"
    SEVEN_DAYS = "7d"
    THIRTY_DAYS = "30d"

    @classmethod
    def _missing_(cls, value):
        # Web form spellings (1_hour, after_reading, ...)
        return _EXPIRY_ALIASES.get(value)

    @property
    def duration(self) -> timedelta | None:
        return _EXPIRY_DURATIONS[self]


_EXPIRY_DURATIONS: dict[ExpiryOption, timedelta | None] = {
    ExpiryOption.NONE: None,
    ExpiryOption.ONE_HOUR: timedelta(hours=1),
    ExpiryOption.ONE_DAY: timedelta(hours=24),
    ExpiryOption.SEVEN_DAYS: timedelta(days=7),
    ExpiryOption.THIRTY_DAYS: timedelta(days=30),
}

_EXPIRY_ALIASES: dict[str, ExpiryOption] = {
    "after_reading": ExpiryOption.NONE,
    "1_hour": ExpiryOption.ONE_HOUR,
    "24_hours": ExpiryOption.ONE_DAY,
    "7_days": ExpiryOption.SEVEN_DAYS,
    "30_days": ExpiryOption.THIRTY_DAYS,
}
