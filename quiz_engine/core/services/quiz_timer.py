"""Wall-clock timer used for quiz and per-question time limits."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
import logging
import math
import time

from quiz_engine.constants.quiz_constants import TIMER_TICK_SECONDS

logger = logging.getLogger(__name__)


def _current_task() -> asyncio.Task | None:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


class QuizTimer:
    """Tracks elapsed time and fires a one-shot time-up notification.

    Elapsed time is recomputed from the clock on every tick instead of being
    counted, so delayed or missed ticks do not make the timer drift.
    """

    def __init__(
        self,
        time_limit: int | None = None,
        *,
        on_tick: Callable[[int], None] | None = None,
        on_time_up: Callable[[], None] | None = None,
        tick_interval: float = TIMER_TICK_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._time_limit = time_limit if time_limit and time_limit > 0 else None
        self._on_tick = on_tick
        self._on_time_up = on_time_up
        self._tick_interval = tick_interval
        self._clock = clock
        self._accumulated: float = 0.0
        self._started_at: float | None = None
        self._is_time_up: bool = False
        self._task: asyncio.Task | None = None

    @property
    def time_limit(self) -> int | None:
        return self._time_limit

    @property
    def is_running(self) -> bool:
        return self._started_at is not None

    @property
    def is_time_up(self) -> bool:
        return self._is_time_up

    @property
    def time_elapsed(self) -> int:
        return math.floor(self._elapsed_seconds())

    @property
    def time_remaining(self) -> int:
        if self._time_limit is None:
            return 0
        return max(0, self._time_limit - self.time_elapsed)

    @property
    def progress(self) -> float:
        if self._time_limit is None:
            return 0.0
        return ((self._time_limit - self.time_remaining) / self._time_limit) * 100

    def start(self) -> None:
        """Start (or resume) ticking. Must be called from a running event loop."""
        if self.is_running or self._is_time_up:
            return
        loop = asyncio.get_running_loop()
        self._started_at = self._clock()
        self._task = loop.create_task(self._run())

    def pause(self) -> None:
        if self._started_at is not None:
            self._accumulated += self._clock() - self._started_at
            self._started_at = None
        self._cancel_task()

    resume = start
    stop = pause

    def reset(self) -> None:
        self._cancel_task()
        self._accumulated = 0.0
        self._started_at = None
        self._is_time_up = False

    def tick(self) -> int:
        """Recompute elapsed time, notify listeners and check the time limit."""
        elapsed = self.time_elapsed
        if self._on_tick is not None:
            self._on_tick(elapsed)
        if self._time_limit is not None and elapsed >= self._time_limit and not self._is_time_up:
            self._is_time_up = True
            self.pause()
            logger.info("Time limit of %ss reached", self._time_limit)
            if self._on_time_up is not None:
                self._on_time_up()
        return elapsed

    async def _run(self) -> None:
        while self.is_running:
            await asyncio.sleep(self._tick_interval)
            if not self.is_running:
                return
            self.tick()

    def _elapsed_seconds(self) -> float:
        if self._started_at is None:
            return self._accumulated
        return self._accumulated + (self._clock() - self._started_at)

    def _cancel_task(self) -> None:
        task, self._task = self._task, None
        if task is not None and task is not _current_task() and not task.done():
            task.cancel()
