"""Service test fixtures — async DB, note store/engine, controllable clock, test client.

Invariants:
    - Every test gets a fresh file-backed SQLite database (separate connections per
      session, so concurrent claims race through real database locking)
    - get_note_engine dependency overridden to use the test engine
    - db_manager patched for code paths that reach the module singleton

Design Decisions:
    - File SQLite in tmp_path over :memory:: an in-memory database shares one
      connection, which would let one session's rollback undo another's claim
    - FakeClock instead of freezing time globally: only the engine reads the clock
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from httpx import ASGITransport, AsyncClient

from privnote.api.routes.notes import get_note_engine
from privnote.db.base import Base
from privnote.db.session import create_session_factory
from privnote.infrastructure.database import DatabaseSessionManager
from privnote.infrastructure.note_store import SqlNoteStore
from privnote.main import app
from privnote.services.note_engine import NoteEngine
import privnote.infrastructure.database as db_module
import privnote.models  # noqa: F401


class FakeClock:
    """Callable clock the tests can move."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
async def test_engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'notes.db'}", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return create_session_factory(engine=test_engine)


@pytest.fixture
def db_manager(test_engine, test_session_factory):
    manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    manager.engine = test_engine
    manager._session_factory = test_session_factory
    return manager


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def note_store(db_manager):
    return SqlNoteStore(db_manager, base_delay_ms=1, write_timeout_seconds=5.0)


@pytest.fixture
def note_engine(note_store, clock):
    return NoteEngine(note_store, max_ciphertext_bytes=100_000, clock=clock)


@pytest.fixture
async def client(db_manager, note_engine):
    """FastAPI test client with the note engine overridden."""
    app.dependency_overrides[get_note_engine] = lambda: note_engine

    original_manager = db_module.db_manager
    db_module.db_manager = db_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
