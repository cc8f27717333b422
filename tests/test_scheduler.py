# ==============================================================================
# Tests for Periodic Tasks
# ==============================================================================
"""
Unit tests for PeriodicTask start/stop and failure handling.
"""

import asyncio

import pytest

from livestats.realtime import PeriodicTask


class TestPeriodicTask:
    def test_invalid_interval_rejected(self):
        async def noop():
            pass

        with pytest.raises(ValueError, match="must be positive"):
            PeriodicTask("bad", 0, noop)

    def test_runs_until_stopped(self):
        calls = []

        async def tick():
            calls.append(1)

        async def scenario():
            task = PeriodicTask("tick", 0.01, tick)
            task.start()
            assert task.running
            await asyncio.sleep(0.1)
            await task.stop()
            assert not task.running
            return task

        task = asyncio.run(scenario())
        assert len(calls) >= 2
        assert task.runs == len(calls)

    def test_failing_callback_keeps_schedule(self):
        async def explode():
            raise RuntimeError("boom")

        async def scenario():
            task = PeriodicTask("explode", 0.01, explode)
            task.start()
            await asyncio.sleep(0.1)
            await task.stop()
            return task

        assert asyncio.run(scenario()).runs >= 2

    def test_double_start_rejected(self):
        async def noop():
            pass

        async def scenario():
            task = PeriodicTask("noop", 10, noop)
            task.start()
            try:
                with pytest.raises(RuntimeError, match="already running"):
                    task.start()
            finally:
                await task.stop()

        asyncio.run(scenario())

    def test_stop_without_start_is_noop(self):
        async def noop():
            pass

        asyncio.run(PeriodicTask("idle", 1, noop).stop())
