"""Periodic refresh job.

The job is either idle or refreshing. A tick that fires while a cycle is
still running is skipped, so at most one writer ever touches the cache.
A failed cycle is logged and leaves the cache as it was; the next tick
tries again.
"""

from __future__ import annotations

import asyncio
import time
from enum import Enum

from redis.exceptions import RedisError

from .errors import CirculationError
from .pipeline import run_refresh
from .processors import AggregateResult
from .state import AppState


class JobState(str, Enum):
    IDLE = "idle"
    REFRESHING = "refreshing"


def seconds_until_next_tick(now: float, interval: float, align: bool) -> float:
    """Delay until the next tick.

    With ``align`` the ticks fall on wall-clock multiples of ``interval``
    (every 600s means :00, :10, :20 ... UTC).
    """
    if not align:
        return interval
    remainder = now % interval
    return interval - remainder if remainder else interval


class RefreshJob:
    def __init__(self, state: AppState):
        self.state = state
        self.status = JobState.IDLE
        self.cycles_completed = 0
        self.cycles_failed = 0
        self.ticks_skipped = 0
        self.last_result: AggregateResult | None = None
        self._inflight: asyncio.Task | None = None

    async def tick(self) -> AggregateResult | None:
        """Run one cycle unless one is already running.

        Returns:
            The committed result, or None if the tick was skipped or failed.
        """
        log = self.state.logger

        if self.status is JobState.REFRESHING:
            self.ticks_skipped += 1
            log.warning("Previous refresh cycle still running; skipping this tick")
            return None

        self.status = JobState.REFRESHING
        try:
            result = await run_refresh(self.state)
        except (CirculationError, RedisError) as exc:
            self.cycles_failed += 1
            log.error("Refresh cycle failed; cache left untouched: %s", exc)
            return None
        finally:
            self.status = JobState.IDLE

        self.cycles_completed += 1
        self.last_result = result
        return result

    def _launch(self) -> None:
        if self._inflight is not None and not self._inflight.done():
            self.ticks_skipped += 1
            self.state.logger.warning(
                "Previous refresh cycle still running; skipping this tick"
            )
            return
        self._inflight = asyncio.create_task(self.tick())

    async def run_forever(self) -> None:
        """Tick on schedule until cancelled."""
        s = self.state.settings
        log = self.state.logger

        if s.refresh_on_startup:
            self._launch()

        try:
            while True:
                delay = seconds_until_next_tick(
                    time.time(), s.refresh_interval_seconds, s.align_to_interval
                )
                log.debug("Next refresh in %.1fs", delay)
                await asyncio.sleep(delay)
                self._launch()
        finally:
            if self._inflight is not None and not self._inflight.done():
                self._inflight.cancel()
