"""Error Handlers — global exception handlers for the PrivNote API.

Invariants:
    - PrivNoteError → structured JSON with error code, message, severity
    - Expected outcomes (not found, wrong secret, bad input) are not logged as errors
    - RequestValidationError → field-level error details, never the submitted values
    - Exception (catch-all) → never leaks internal details

Design Decisions:
    - Three-layer handler: domain (PrivNoteError), validation (Pydantic), catch-all (Exception)
    - Extracted from main.py to keep the app module small
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from privnote.core.errors import PrivNoteError, ErrorSeverity

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_privnote_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_privnote_error_handler(app: FastAPI) -> None:
    """Register PrivNote domain/infrastructure error handler."""

    @app.exception_handler(PrivNoteError)
    async def privnote_error_handler(request: Request, exc: PrivNoteError):
        """Handle all PrivNote domain/infrastructure errors."""
        extra = {"error_code": exc.code, "path": request.url.path}
        if exc.is_expected:
            logger.debug(f"PrivNoteError: {exc.message}", extra=extra)
        else:
            logger.error(f"PrivNoteError: {exc.message}", extra=extra)
        return JSONResponse(
            status_code=exc.http_status, content=exc.to_response(),
        )


def _register_validation_error_handler(app: FastAPI) -> None:
    """Register Pydantic validation error handler."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Handle Pydantic validation errors."""
        logger.info(
            f"Validation error on {request.url.path}",
            extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_build_validation_error_response(exc),
        )


def _register_generic_error_handler(app: FastAPI) -> None:
    """Register catch-all error handler."""

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {type(exc).__name__}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                    "category": "internal",
                    "severity": ErrorSeverity.CRITICAL.value,
                },
            },
        )


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    """Build structured validation error response."""
    return {
        "error": {
            "code": "VALIDATION_ERROR",
            "message": "Invalid request data",
            "category": "validation",
            "severity": ErrorSeverity.WARNING.value,
            "details": [
                {
                    "field": ".".join(str(loc) for loc in e["loc"]),
                    "message": e["msg"],
                    "type": e["type"],
                }
                for e in exc.errors()
            ],
        },
    }
