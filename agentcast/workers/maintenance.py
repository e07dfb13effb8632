"""In-process maintenance loop for the stream service.

Every ``interval`` seconds a tick marks idle streams offline, runs the daily
stats reset when the date has rolled over, and purges expired rate-limit
windows. A tick that is still running when the next one is due causes that
next one to be skipped.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from agentcast.domain.live.stream import StreamService


@dataclass(frozen=True, slots=True)
class TickResult:
    """Outcome of one maintenance tick."""

    timed_out: list[str]
    daily_reset: bool
    purged_windows: int
    timestamp: float = field(default_factory=time.time)


async def run_maintenance_tick(service: StreamService) -> TickResult:
    timed_out = await service.timeout_sweep()
    daily_reset = service.maybe_daily_reset()
    purged = service.purge_rate_windows()

    if timed_out or daily_reset:
        logger.info(
            "Maintenance tick: timed_out={} daily_reset={} purged={}",
            timed_out,
            daily_reset,
            purged,
        )

    return TickResult(timed_out=timed_out, daily_reset=daily_reset, purged_windows=purged)


class MaintenanceScheduler:
    def __init__(self, service: StreamService, interval: float = 60.0):
        if interval <= 0:
            raise ValueError("interval must be > 0")
        self.service = service
        self.interval = interval
        self.skipped = 0
        self._loop_task: asyncio.Task | None = None
        self._tick_task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    def start(self) -> None:
        if self.running:
            return
        self._loop_task = asyncio.create_task(self._run(), name="stream-maintenance")
        logger.info("Maintenance scheduler started: interval={}s", self.interval)

    async def stop(self) -> None:
        tasks = [t for t in (self._loop_task, self._tick_task) if t is not None and not t.done()]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        self._loop_task = None
        self._tick_task = None
        logger.info("Maintenance scheduler stopped")

    def trigger(self) -> asyncio.Task | None:
        """Start one tick now unless the previous tick is still running.

        Returns the new tick task, or None when the tick was skipped.
        """
        if self._tick_task is not None and not self._tick_task.done():
            self.skipped += 1
            logger.warning("Maintenance tick skipped: previous tick still running")
            return None

        self._tick_task = asyncio.create_task(self._tick(), name="stream-maintenance-tick")
        return self._tick_task

    async def _tick(self) -> TickResult | None:
        try:
            return await run_maintenance_tick(self.service)
        except Exception:
            logger.exception("Maintenance tick failed")
            return None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self.trigger()
