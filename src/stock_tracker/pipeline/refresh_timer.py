import asyncio
from typing import Any, Awaitable, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from stock_tracker.utils.logger import get_logger

logger = get_logger(__name__)


class RefreshTimer:
    """
    Fixed-interval trigger for the refresh cycle.

    Owned by the tracking scheduler, started when the first symbol is
    tracked and stopped when the last one is removed. A tick that is still
    running when the next one is due is not duplicated (``max_instances=1``)
    and missed ticks collapse into one (``coalesce=True``).
    """

    JOB_ID = "refresh_all"

    def __init__(self, callback: Callable[[], Awaitable[Any]], interval_seconds: float = 5.0):
        self.callback = callback
        self.interval_seconds = interval_seconds
        self._scheduler: Optional[AsyncIOScheduler] = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    def start(self) -> None:
        """Begin ticking on the running event loop. No-op if already started."""
        if self._scheduler is not None:
            return

        scheduler = AsyncIOScheduler(event_loop=asyncio.get_running_loop())
        scheduler.add_job(
            self.callback,
            IntervalTrigger(seconds=self.interval_seconds),
            id=self.JOB_ID,
            max_instances=1,
            coalesce=True,
            replace_existing=True,
        )
        scheduler.start()
        self._scheduler = scheduler
        logger.info(f"Refresh timer started (every {self.interval_seconds}s)")

    def stop(self) -> None:
        """Cancel the interval entirely. No-op if not started."""
        if self._scheduler is None:
            return

        scheduler, self._scheduler = self._scheduler, None
        if scheduler.running:
            scheduler.shutdown(wait=False)
        logger.info("Refresh timer stopped")
