"""Worker that expires entries from the notification dedupe cache."""

from __future__ import annotations

import asyncio
from datetime import timedelta

from loguru import logger

from kudos_api.core.settings import settings
from kudos_api.services.notifications.dedupe import NotificationDedupeCache


class NotificationDedupeSweeper:
    """Periodically evicts dedupe keys older than the retention window."""

    # meta: worker: notification-dedupe-sweeper

    def __init__(
        self,
        cache: NotificationDedupeCache,
        *,
        ttl_seconds: int | None = None,
        interval_seconds: int | None = None,
    ) -> None:
        self._cache = cache
        self._ttl = timedelta(seconds=ttl_seconds or settings.notification_dedupe_ttl_seconds)
        self.interval_seconds = interval_seconds or settings.notification_dedupe_sweep_interval_seconds
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task | None = None
        self.is_running: bool = False

    def start(self) -> None:
        if self._task and not self._task.done():
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run_loop())
        self.is_running = True
        logger.info(
            "Notification dedupe sweeper started",
            interval_seconds=self.interval_seconds,
            ttl_seconds=int(self._ttl.total_seconds()),
        )

    async def stop(self) -> None:
        if not self._task:
            return
        self._stop_event.set()
        await self._task
        self._task = None
        self.is_running = False
        logger.info("Notification dedupe sweeper stopped")

    async def run_once(self) -> int:
        """Evict stale keys once; returns the number evicted."""

        evicted = self._cache.evict_older_than(self._ttl)
        logger.info("Notification dedupe sweep completed", evicted=evicted, remaining=len(self._cache))
        return evicted

    async def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                await self.run_once()
            except Exception as exc:  # pragma: no cover
                logger.exception("Notification dedupe sweep failed", error=str(exc))
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                continue


__all__ = ["NotificationDedupeSweeper"]
