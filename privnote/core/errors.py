"""Error Hierarchy — typed, categorized exceptions for all PrivNote failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Expected outcomes (not found, wrong secret, bad input) are INFO/WARNING;
      infrastructure errors are CRITICAL
    - NoteExpiredError renders exactly like NoteNotFoundError: no oracle for
      "read" vs "expired" vs "never existed"
    - No message ever contains a note id or a secret

Design Decisions:
    - Single hierarchy with PrivNoteError base: FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from datetime import datetime, timezone

from privnote.core.domain_types import DestroyedReason


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    AUTHORIZATION = "authorization"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    CONFLICT = "conflict"
    TIMEOUT = "timeout"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    operation: str | None = None
    attempt: int | None = None


class PrivNoteError(Exception):
    """Base exception for all PrivNote errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    @property
    def is_expected(self) -> bool:
        """Expected outcomes are surfaced to the caller, not logged as faults."""
        return self.severity in (ErrorSeverity.INFO, ErrorSeverity.WARNING)

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "operation": self.context.operation,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class NoteNotFoundError(PrivNoteError):
    """No active note for this reference (never existed, read, expired or destroyed)."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Note not found or already destroyed",
            "NOTE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.INFO, context, 404,
        )


class NoteExpiredError(NoteNotFoundError):
    """Windowed note observed past expires_at.

    Distinct type only so the caller that hit the lapse can show a display
    hint; the rendered response is identical to NoteNotFoundError.
    """
    reason = DestroyedReason.EXPIRED


class InvalidSecretError(PrivNoteError):
    """Supplied secret does not match. Note state is unchanged."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Invalid secret",
            "INVALID_SECRET", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, context, 403,
        )


class InvalidInputError(PrivNoteError):
    """Malformed creation request."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.field = field


class DuplicateNoteIdError(PrivNoteError):
    """Generated id collided on insert. Internal: the engine regenerates."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Note id already in use",
            "DUPLICATE_NOTE_ID", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class StorageUnavailableError(PrivNoteError):
    """Transient storage failure. Safe for the caller to retry."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.operation = ctx.operation or operation
        super().__init__(
            f"Storage {operation} failed: {message}",
            "STORAGE_UNAVAILABLE", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, ctx, 503,
        )
        self.operation = operation


class AmbiguousOutcomeError(PrivNoteError):
    """A mutating call timed out or failed after it was issued.

    The mutation may or may not have committed. Callers must not retry
    automatically: a consumed note may already have been delivered.
    """
    def __init__(self, operation: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.operation = ctx.operation or operation
        super().__init__(
            f"Outcome of {operation} is unknown",
            "OUTCOME_UNKNOWN", ErrorCategory.TIMEOUT,
            ErrorSeverity.CRITICAL, ctx, 504,
        )
        self.operation = operation
