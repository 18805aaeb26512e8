"""Expiration sweeper: periodically marks overdue tasks Expired.

One sweep is a single bulk conditional update in the store.  A failed sweep
is logged and the next tick retries; the loop itself never dies on a store
error.  To stop it, call :meth:`ExpirationSweeper.stop` (which cancels the
background task).
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import datetime
from typing import TYPE_CHECKING

from taskhub.core.types import as_utc, utcnow

if TYPE_CHECKING:
    from taskhub.storage.base import DataStore

logger = logging.getLogger(__name__)


class ExpirationSweeper:
    """Background job that expires tasks whose due date has passed."""

    def __init__(self, store: DataStore, *, interval_seconds: float = 3600.0) -> None:
        self.store = store
        self.interval_seconds = max(1.0, float(interval_seconds))
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self, now: datetime | None = None) -> int:
        """Expire every open task due before *now*; return how many changed.

        Completed and already-Expired tasks are never touched, so a re-run
        with nothing newly overdue returns 0.
        """
        now = as_utc(now) or utcnow()
        modified = await self.store.expire_overdue_tasks(now)
        logger.info("Expiration sweep at %s marked %d task(s) Expired", now.isoformat(), modified)
        return modified

    async def _loop(self) -> None:
        while True:
            try:
                await self.run_once()
            except Exception:
                logger.exception("Expiration sweep failed")
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        """Schedule the sweep loop on the running event loop (idempotent)."""
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="taskhub-expiration-sweeper")
        logger.info("Expiration sweeper started (interval=%ss)", self.interval_seconds)

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Expiration sweeper stopped")


__all__ = ["ExpirationSweeper"]
