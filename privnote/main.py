"""PrivNote API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map PrivNoteError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database and expiration sweeper initialized on startup via lifespan context manager,
      sweeper stopped before the engine is disposed

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from privnote.api.error_handlers import register_error_handlers
from privnote.api.routes import health, notes
from privnote.config import get_settings
from privnote.infrastructure.database import init_db
from privnote.infrastructure.observability import setup_logging
from privnote.services.expiration_sweeper import ExpirationSweeper
from privnote.services.note_engine import build_note_engine

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    sweeper = None
    if settings.sweeper_enabled:
        sweeper = ExpirationSweeper(
            build_note_engine(manager, settings),
            interval_seconds=settings.sweep_interval_seconds,
        )
        sweeper.start()
    logger.info("PrivNote API started")
    yield
    logger.info("PrivNote API shutting down")
    if sweeper:
        await sweeper.stop()
    await manager.dispose()


app = FastAPI(
    title="PrivNote API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(notes.router)

register_error_handlers(app)
