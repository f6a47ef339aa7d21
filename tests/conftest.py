"""Root conftest — shared test configuration."""

import os

# Keep the app from reaching for a real database or starting the sweeper
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
os.environ.setdefault("SWEEPER_ENABLED", "false")
os.environ.setdefault("LOG_FORMAT", "text")
