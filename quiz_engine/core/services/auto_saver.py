"""Debounced background saving of in-progress attempts."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
import contextlib
import logging

logger = logging.getLogger(__name__)


class AutoSaver:
    """Runs ``save`` once the state has been stable for ``interval`` seconds.

    Every call to :meth:`schedule` cancels the pending save and starts a new
    wait. Failures are logged and kept in :attr:`last_error`; the next
    scheduled save is the retry.
    """

    def __init__(self, save: Callable[[], Awaitable[object]], interval: float) -> None:
        self._save = save
        self._interval = interval
        self._task: asyncio.Task | None = None
        self._last_error: Exception | None = None
        self._save_count: int = 0

    @property
    def enabled(self) -> bool:
        return self._interval > 0

    @property
    def is_pending(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def last_error(self) -> Exception | None:
        return self._last_error

    @property
    def save_count(self) -> int:
        return self._save_count

    def schedule(self) -> None:
        """(Re)arm the debounce window. Must be called from a running event loop."""
        if not self.enabled:
            return
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._run())

    def cancel(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()

    async def drain(self) -> None:
        """Wait for the pending save, if any, to finish."""
        task = self._task
        if task is None:
            return
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self) -> None:
        await asyncio.sleep(self._interval)
        try:
            await self._save()
        except Exception as exc:
            self._last_error = exc
            logger.warning("Auto-save failed: %s", exc)
            return
        self._last_error = None
        self._save_count += 1
