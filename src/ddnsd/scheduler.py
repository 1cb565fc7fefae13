"""APScheduler wrapper for periodic update cycles."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Awaitable, Callable
    from typing import Any, Final


UPDATE_JOB_ID: Final[str] = "ddns-update"


logger = logging.getLogger(__name__)


class UpdateScheduler:
    """
    Runs the update job every `interval` seconds.

    At most one instance of the job runs at a time; a tick that fires while
    the previous cycle is still running is skipped.
    """

    def __init__(
        self,
        job: Callable[[], Awaitable[Any]],
        interval: int,
    ) -> None:
        """
        Initialize the scheduler.

        Parameters
        ----------
        job : Callable[[], Awaitable[Any]]
            Coroutine function running one update cycle.
        interval : int
            Seconds between runs.
        """
        self._job = job
        self._interval = interval
        self._scheduler: AsyncIOScheduler | None = None

    def is_running(self) -> bool:
        """Check if the scheduler is running."""
        return self._scheduler is not None and self._scheduler.running

    def start(self) -> None:
        """
        Start the scheduler and register the update job.

        Must be called from within a running event loop.
        """
        if self.is_running():
            logger.warning("Scheduler is already running")
            return

        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self._job,
            trigger=IntervalTrigger(seconds=self._interval),
            id=UPDATE_JOB_ID,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        logger.info("Scheduled updates every %d seconds", self._interval)

    def shutdown(self) -> None:
        """Stop the scheduler without waiting for a running cycle."""
        if self._scheduler is None:
            return
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Scheduler stopped")

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[UpdateScheduler, None]:
        """Context manager for scheduler lifecycle."""
        self.start()
        try:
            yield self
        finally:
            self.shutdown()
