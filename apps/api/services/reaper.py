"""Periodic sweep that purges content whose auto-delete timer has run out."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Optional

from database import async_session_maker
from services.content_purge import purge_content
from services.content_store import ContentStore
from services.expiration import is_expired, utc_now

logger = logging.getLogger(__name__)


async def sweep_expired_content(now: Optional[datetime] = None) -> int:
    """Purge every expired item once. Returns how many were deleted.

    Each item is handled on its own; a failure is logged and the sweep moves on.
    """
    now = now or utc_now()
    async with async_session_maker() as db:
        candidates = await ContentStore(db).list_timer_candidates()

    purged = 0
    for item in candidates:
        if not is_expired(item, now):
            continue
        try:
            async with async_session_maker() as db:
                if await purge_content(ContentStore(db), item, reason="expired"):
                    purged += 1
        except Exception:
            logger.exception("Failed to purge expired content %s", item.public_id)
    return purged


class ContentReaper:
    """Owns the background sweep task for the lifetime of the process."""

    def __init__(self, interval_seconds: int):
        self.interval_seconds = max(int(interval_seconds), 0)
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> int:
        """Sweep once right away, then keep sweeping every interval."""
        purged = await self._sweep_safely()
        if self.interval_seconds > 0 and not self.running:
            self._task = asyncio.create_task(self._run())
        return purged

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self._sweep_safely()

    async def _sweep_safely(self) -> int:
        try:
            purged = await sweep_expired_content()
        except Exception:
            logger.exception("Content reaper sweep failed")
            return 0
        if purged:
            logger.info("Content reaper purged %s expired item(s)", purged)
        return purged
