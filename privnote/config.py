"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - unread_retention_days and sweep_interval_seconds are the only knobs that touch
      the note lifecycle; everything else is plumbing

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
"""

from datetime import timedelta
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://privnote:privnote@db:5432/privnote"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosting providers hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Note lifecycle
    unread_retention_days: int = Field(30, ge=1)
    sweep_interval_seconds: int = Field(300, ge=1)
    sweeper_enabled: bool = True
    max_ciphertext_bytes: int = Field(100_000, ge=1)

    # Storage resilience
    storage_read_retries: int = Field(3, ge=0)
    storage_base_delay_ms: int = 50
    storage_write_timeout_seconds: float = Field(5.0, gt=0)

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @property
    def unread_retention(self) -> timedelta:
        return timedelta(days=self.unread_retention_days)


@lru_cache
def get_settings() -> Settings:
    return Settings()
