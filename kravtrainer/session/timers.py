"""
Timer substrate for the session engine.

Every suspension point in a session (the one-second countdown tick and the
delay between announcements) goes through a TimerService, which hands back a
CancellableHandle. Two implementations:

- AsyncioTimerService: real timers on the running asyncio loop
- ManualTimerService: a virtual clock advanced explicitly, for tests and
  simulations
"""

from __future__ import annotations

import asyncio
import heapq
import inspect
import itertools
from collections.abc import Awaitable, Callable
from typing import Protocol

from loguru import logger

TimerCallback = Callable[[], "Awaitable[None] | None"]


class CancellableHandle:
    """
    Handle to one pending timer callback.

    ``cancel()`` is idempotent: cancelling twice, or cancelling a handle whose
    callback already fired, does nothing.
    """

    __slots__ = ("_cancel_fn", "_cancelled", "_fired")

    def __init__(self) -> None:
        self._cancel_fn: Callable[[], object] | None = None
        self._cancelled = False
        self._fired = False

    def attach(self, cancel_fn: Callable[[], object]) -> None:
        self._cancel_fn = cancel_fn

    def mark_fired(self) -> None:
        self._fired = True
        self._cancel_fn = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def fired(self) -> bool:
        return self._fired

    @property
    def pending(self) -> bool:
        return not (self._cancelled or self._fired)

    def cancel(self) -> None:
        if not self.pending:
            return
        self._cancelled = True
        cancel_fn, self._cancel_fn = self._cancel_fn, None
        if cancel_fn is not None:
            cancel_fn()

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "fired" if self._fired else "pending"
        return f"<CancellableHandle {state}>"


class TimerService(Protocol):
    """Schedules a callback ``delay_seconds`` from now."""

    def call_later(self, delay_seconds: float, callback: TimerCallback) -> CancellableHandle: ...


# =============================================================================
# asyncio implementation
# =============================================================================


class AsyncioTimerService:
    """
    Timers backed by ``loop.call_later``.

    Callbacks returning an awaitable are run as tasks on the same loop. Those
    tasks are tracked so ``drain()`` can wait for them and ``close()`` can
    cancel them.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop
        self._tasks: set[asyncio.Future] = set()

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        return self._loop or asyncio.get_running_loop()

    def call_later(self, delay_seconds: float, callback: TimerCallback) -> CancellableHandle:
        loop = self._get_loop()
        handle = CancellableHandle()

        def _fire() -> None:
            if not handle.pending:
                return
            handle.mark_fired()
            result = callback()
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result, loop=loop)
                self._tasks.add(task)
                task.add_done_callback(self._task_done)

        timer = loop.call_later(max(0.0, delay_seconds), _fire)
        handle.attach(timer.cancel)
        return handle

    def _task_done(self, task: asyncio.Future) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.opt(exception=exc).error("Timer callback raised")

    @property
    def running_tasks(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for callbacks that are currently running."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close(self) -> None:
        """Cancel callbacks that are currently running."""
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()


# =============================================================================
# Virtual clock
# =============================================================================


class ManualTimerService:
    """
    Deterministic timer service driven by ``advance()``.

    Callbacks fire in due-time order, ties in scheduling order. Awaitables
    returned by callbacks are awaited before the next callback fires, so a
    whole session can be simulated without real waiting.
    """

    def __init__(self, start: float = 0.0):
        self.now = start
        self._queue: list[tuple[float, int, CancellableHandle, TimerCallback]] = []
        self._sequence = itertools.count()

    def call_later(self, delay_seconds: float, callback: TimerCallback) -> CancellableHandle:
        handle = CancellableHandle()
        due = self.now + max(0.0, delay_seconds)
        heapq.heappush(self._queue, (due, next(self._sequence), handle, callback))
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for _, _, handle, _ in self._queue if handle.pending)

    def _pop_due(self, until: float):
        while self._queue:
            due, _, handle, _ = self._queue[0]
            if not handle.pending:
                heapq.heappop(self._queue)
                continue
            if due > until:
                return None
            return heapq.heappop(self._queue)
        return None

    async def advance(self, seconds: float) -> None:
        """Move the clock forward, firing everything that falls due."""
        target = self.now + seconds
        while True:
            entry = self._pop_due(target)
            if entry is None:
                break
            due, _, handle, callback = entry
            self.now = due
            handle.mark_fired()
            result = callback()
            if inspect.isawaitable(result):
                await result
        self.now = target

    async def run_pending(self) -> None:
        """Fire callbacks that are already due without moving the clock."""
        await self.advance(0)
