"""Background delivery of scheduled notifications."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from skillswap.cache.query_cache import QueryCache, query_cache
from skillswap.config import config
from skillswap.notifications.service import NotificationService

logger = logging.getLogger(__name__)


class NotificationScheduler:
    """Periodically delivers due notifications and purges expired ones.

    Each tick also sweeps expired entries out of the query cache.
    """

    def __init__(
        self,
        service: NotificationService,
        interval: Optional[float] = None,
        cache: Optional[QueryCache] = None,
    ) -> None:
        """Initialize scheduler.

        Args:
            service: Notification service to drive.
            interval: Seconds between ticks. Uses config if None.
            cache: Cache to sweep. Uses the shared cache if None.
        """
        self.service = service
        self.interval = interval if interval is not None else config.scheduler_interval_seconds
        self.cache = cache if cache is not None else query_cache

        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the background task."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info("Notification scheduler started")

    async def stop(self) -> None:
        """Stop the background task."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Notification scheduler stopped")

    async def _run_loop(self) -> None:
        while self._running:
            await self.tick()
            await asyncio.sleep(self.interval)

    async def tick(self) -> None:
        """Run one round of delivery, purge and cache sweep. Errors are logged."""
        try:
            delivered = await self.service.process_due()
            if delivered:
                logger.debug(f"Tick delivered {delivered} notifications")
        except Exception as e:
            logger.error(f"Error processing due notifications: {e}")

        try:
            await self.service.purge_expired()
        except Exception as e:
            logger.error(f"Error purging expired notifications: {e}")

        self.cache.clean_expired()
