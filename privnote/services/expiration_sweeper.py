"""Expiration Sweeper — periodic purge of expired, stale unread and tombstoned notes.

Invariants:
    - Runs independently of request traffic on a fixed interval
    - Each pass is one NoteEngine.sweep call; every delete is predicate-guarded, so
      passes are idempotent and safe to run from several instances at once
    - A failed pass is logged and the loop keeps going; cancellation stops it

Design Decisions:
    - asyncio.Task owned by the FastAPI lifespan rather than an external cron
"""

import asyncio
import logging
from datetime import datetime

from privnote.core.errors import StorageUnavailableError
from privnote.services.note_engine import NoteEngine

logger = logging.getLogger(__name__)


class ExpirationSweeper:
    """Background loop around NoteEngine.sweep."""

    def __init__(self, engine: NoteEngine, interval_seconds: float = 300):
        self.engine = engine
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self, now: datetime | None = None) -> int:
        purged = await self.engine.sweep(now)
        logger.info(f"Sweep purged {purged} notes", extra={"purged": purged})
        return purged

    async def run_forever(self) -> None:
        while True:
            try:
                await self.run_once()
            except StorageUnavailableError as e:
                logger.error(
                    f"Sweep pass failed: {e.message}",
                    extra={"operation": "sweep", "error_code": e.code},
                )
            except Exception as e:
                logger.error(f"Unexpected sweep failure: {e}", exc_info=True)
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self.run_forever(), name="note-sweeper")
        logger.info(
            f"Expiration sweeper started (every {self.interval_seconds}s)",
        )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Expiration sweeper stopped")
