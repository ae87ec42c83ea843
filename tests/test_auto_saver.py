"""Tests for the debounced auto-saver."""

from __future__ import annotations

import asyncio

import pytest

from quiz_engine.core.services.auto_saver import AutoSaver


class _Recorder:
    def __init__(self, fail: bool = False) -> None:
        self.calls = 0
        self.fail = fail

    async def __call__(self) -> None:
        self.calls += 1
        if self.fail:
            raise RuntimeError("disk full")


class TestAutoSaver:
    @pytest.mark.asyncio
    async def test_saves_after_interval(self):
        save = _Recorder()
        saver = AutoSaver(save, 0.01)
        saver.schedule()
        assert saver.is_pending
        await saver.drain()
        assert save.calls == 1
        assert saver.save_count == 1
        assert not saver.is_pending

    @pytest.mark.asyncio
    async def test_rescheduling_restarts_the_window(self):
        save = _Recorder()
        saver = AutoSaver(save, 0.05)
        for _ in range(5):
            saver.schedule()
            await asyncio.sleep(0.01)
        await saver.drain()
        assert save.calls == 1

    @pytest.mark.asyncio
    async def test_cancel(self):
        save = _Recorder()
        saver = AutoSaver(save, 0.01)
        saver.schedule()
        saver.cancel()
        await asyncio.sleep(0.03)
        assert save.calls == 0

    @pytest.mark.asyncio
    async def test_failures_are_recorded_not_raised(self):
        save = _Recorder(fail=True)
        saver = AutoSaver(save, 0.01)
        saver.schedule()
        await saver.drain()
        assert isinstance(saver.last_error, RuntimeError)
        assert saver.save_count == 0

        save.fail = False
        saver.schedule()
        await saver.drain()
        assert saver.last_error is None
        assert saver.save_count == 1

    @pytest.mark.asyncio
    async def test_zero_interval_disables_saving(self):
        save = _Recorder()
        saver = AutoSaver(save, 0)
        assert not saver.enabled
        saver.schedule()
        assert not saver.is_pending
        await saver.drain()
        assert save.calls == 0
