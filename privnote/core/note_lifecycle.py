"""Note Lifecycle — pure state rules for creation, expiry and countdown display.

Invariants:
    - All functions are PURE: no IO, no async, no DB, no clock reads
    - Discipline is decided only by the presence of expires_at
    - A windowed note is lapsed when expires_at <= now (the boundary instant is expired)
    - Stored terminal states (consumed, expired) always win over time-derived state

Design Decisions:
    - `now` is always a parameter: callers own the clock, tests move it freely
    - Naive datetimes are read as UTC: SQLite drops tzinfo on round-trip
"""

from datetime import datetime, timedelta, timezone

from privnote.core.domain_types import Discipline, ExpiryOption, NoteState

DEFAULT_UNREAD_RETENTION = timedelta(days=30)

_EXPIRY_NOTICES: dict[ExpiryOption, str] = {
    ExpiryOption.NONE: "This note will self-destruct after being read once",
    ExpiryOption.ONE_HOUR: "This note will self-destruct 1 hour after creation",
    ExpiryOption.ONE_DAY: "This note will self-destruct 24 hours after creation",
    ExpiryOption.SEVEN_DAYS: "This note will self-destruct 7 days after creation",
    ExpiryOption.THIRTY_DAYS: "This note will self-destruct 30 days after creation",
}


def ensure_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def discipline_for(expires_at: datetime | None) -> Discipline:
    return Discipline.SINGLE_READ if expires_at is None else Discipline.WINDOWED


def compute_expires_at(option: ExpiryOption, now: datetime) -> datetime | None:
    """Absolute expiry for a creation request; None means single-read."""
    duration = option.duration
    if duration is None:
        return None
    return ensure_utc(now) + duration


def is_lapsed(expires_at: datetime | None, now: datetime) -> bool:
    if expires_at is None:
        return False
    return ensure_utc(expires_at) <= ensure_utc(now)


def derive_state(
    stored: NoteState, expires_at: datetime | None, now: datetime,
) -> NoteState:
    """Effective state of a persisted row at `now`."""
    if stored != NoteState.ACTIVE:
        return stored
    if is_lapsed(expires_at, now):
        return NoteState.EXPIRED
    return NoteState.ACTIVE


def unread_cutoff(now: datetime, retention: timedelta = DEFAULT_UNREAD_RETENTION) -> datetime:
    """Single-read notes created before this instant are purged unread."""
    return ensure_utc(now) - retention


def expires_in(expires_at: datetime | None, now: datetime) -> timedelta | None:
    """Remaining window, clamped at zero. None for single-read notes."""
    if expires_at is None:
        return None
    remaining = ensure_utc(expires_at) - ensure_utc(now)
    return max(remaining, timedelta(0))


def _plural(n: int, unit: str) -> str:
    return f"{n} {unit}{'' if n == 1 else 's'}"


def format_time_left(expires_at: datetime | None, now: datetime) -> str | None:
    return format_remaining(expires_in(expires_at, now))


def format_remaining(remaining: timedelta | None) -> str | None:
    """Countdown text: 'N days M hours', 'N hours M minutes' or 'N minutes'."""
    if remaining is None:
        return None
    total_minutes = int(remaining.total_seconds()) // 60
    days, rest = divmod(total_minutes, 24 * 60)
    hours, minutes = divmod(rest, 60)
    if days > 0:
        return f"{_plural(days, 'day')} {_plural(hours, 'hour')}"
    if hours > 0:
        return f"{_plural(hours, 'hour')} {_plural(minutes, 'minute')}"
    return _plural(minutes, "minute")


def expiry_notice(option: ExpiryOption) -> str:
    return _EXPIRY_NOTICES[option]
