"""Cancellable delayed callbacks owned by resource units.

Usage example:
    from story_client.scheduling import ScheduledTask

    persist = ScheduledTask(name="progress")
    persist.schedule(1.0, save_progress)   # runs after 1s of quiet
    persist.schedule(1.0, save_progress)   # restarts the window
    await persist.flush()                  # run now instead of waiting
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from .observability import get_logger
from .protocols import SleepFn

logger = get_logger("story_client.scheduling")

Callback = Callable[[], Awaitable[object]]


class ScheduledTask:
    """A single-slot delayed callback.

    Scheduling again while a callback is still waiting cancels it and starts
    a new window. A callback that has started running is never cancelled.
    Callback failures are logged and swallowed so they never reach the event
    loop's default exception handler.
    """

    def __init__(self, *, name: str, sleep: SleepFn = asyncio.sleep) -> None:
        self.name = name
        self._sleep = sleep
        self._waiting: asyncio.Task[None] | None = None
        self._callback: Callback | None = None
        self._running: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> bool:
        """True while a callback is scheduled and has not started."""
        return self._waiting is not None and not self._waiting.done()

    def schedule(self, delay_seconds: float, callback: Callback) -> None:
        """Run `callback` after `delay_seconds` unless rescheduled or cancelled first."""
        self.cancel()
        self._callback = callback
        self._waiting = asyncio.get_running_loop().create_task(
            self._run_after(delay_seconds, callback),
            name=f"scheduled:{self.name}",
        )

    def cancel(self) -> bool:
        """Cancel the waiting callback. Returns True when something was cancelled."""
        task = self._waiting
        self._waiting = None
        self._callback = None
        if task is None or task.done():
            return False
        task.cancel()
        return True

    async def flush(self) -> None:
        """Run the waiting callback immediately, if there is one."""
        callback = self._callback
        if not self.pending or callback is None:
            return
        self.cancel()
        await self._invoke(callback)

    async def wait(self) -> None:
        """Wait for the waiting callback (and any running ones) to finish."""
        tasks: set[asyncio.Task[None]] = set(self._running)
        if self._waiting is not None:
            tasks.add(self._waiting)
        if tasks:
            await asyncio.wait(tasks)

    async def _run_after(self, delay_seconds: float, callback: Callback) -> None:
        await self._sleep(delay_seconds)
        task = asyncio.current_task()
        if task is not None:
            self._running.add(task)
        if self._waiting is task:
            self._waiting = None
            self._callback = None
        try:
            await self._invoke(callback)
        finally:
            if task is not None:
                self._running.discard(task)

    async def _invoke(self, callback: Callback) -> None:
        try:
            await callback()
        except Exception:
            logger.exception("Scheduled task %s failed", self.name)
