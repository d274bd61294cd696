"""Periodic poll scheduler."""

import asyncio
import logging
import time
from typing import Optional

from feed_monitor.core import PollReport
from feed_monitor.use_cases import IngestionService

log = logging.getLogger(__name__)


class PollScheduler:
    """Run a poll cycle shortly after start and then on a fixed interval.

    Overlapping cycles (a tick while a manual refresh is still running) are
    skipped when ``skip_if_running`` is set; the unique item key keeps them
    harmless either way.
    """

    def __init__(
        self,
        ingestion: IngestionService,
        interval_seconds: float = 45 * 60,
        startup_delay_seconds: float = 5.0,
        skip_if_running: bool = True,
    ) -> None:
        self.ingestion = ingestion
        self.interval_seconds = interval_seconds
        self.startup_delay_seconds = startup_delay_seconds
        self.skip_if_running = skip_if_running
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._running

    async def run_once(self) -> Optional[PollReport]:
        """Run one cycle; returns None if skipped because one is in flight."""
        if self.skip_if_running and self._running:
            log.info("Poll cycle already running, skipping this trigger")
            return None

        self._running = True
        try:
            return await self.ingestion.run_poll_cycle()
        finally:
            self._running = False

    def next_delay(self, started: float) -> float:
        """Seconds left until the next tick of a cycle that began at ``started`` (monotonic)."""
        return max(0.0, self.interval_seconds - (time.monotonic() - started))

    async def _loop(self) -> None:
        await asyncio.sleep(self.startup_delay_seconds)
        while True:
            started = time.monotonic()
            try:
                await self.run_once()
            except Exception:
                log.exception("Scheduled poll cycle failed")
            delay = self.next_delay(started)
            log.info("Next poll in %.0fs", delay)
            await asyncio.sleep(delay)

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._loop())
            log.info(
                "Scheduler started: first poll in %.0fs, then every %.0f min",
                self.startup_delay_seconds, self.interval_seconds / 60,
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
