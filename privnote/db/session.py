"""Async Session Factory — provides async DB sessions for direct usage outside FastAPI.

Invariants:
    - expire_on_commit=False, same as DatabaseSessionManager
    - Meant for scripts, migrations, and test fixtures

Design Decisions:
    - Separate from infrastructure/database.py: alembic and test fixtures need a raw
      session factory bound to an engine they own
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker,
)


def create_session_factory(
    database_url: str | None = None, engine: AsyncEngine | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory for a database URL or an existing engine."""
    if engine is None:
        if database_url is None:
            raise ValueError("database_url or engine is required")
        engine = create_async_engine(database_url, echo=False)
    return async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False,
    )
