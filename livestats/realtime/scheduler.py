# ==============================================================================
# Periodic Tasks
# ==============================================================================
"""
Fixed-period background jobs on the asyncio event loop.

A PeriodicTask runs its callback every ``interval_seconds`` until ``stop()``
cancels it. A failing run is logged and the schedule continues.
"""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)


class PeriodicTask:
    """A named coroutine callback run on a fixed period."""

    def __init__(
        self,
        name: str,
        interval_seconds: float,
        callback: Callable[[], Awaitable[Any]],
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")

        self.name = name
        self.interval_seconds = interval_seconds
        self._callback = callback
        self._task: asyncio.Task | None = None
        self.runs = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the task on the running event loop."""
        if self.running:
            raise RuntimeError(f"Periodic task {self.name} is already running")
        self._task = asyncio.create_task(self._run(), name=self.name)
        logger.info("Started periodic task %s (every %ss)", self.name, self.interval_seconds)

    async def stop(self) -> None:
        """Cancel the task and wait until it has finished."""
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Stopped periodic task %s", self.name)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self._callback()
            except Exception:
                logger.exception("Periodic task %s failed", self.name)
            self.runs += 1
