"""
One-second countdown driver.

Each tick removes exactly one second from the session. Every
``save_interval`` seconds of remaining time a snapshot is requested, and the
tick that reaches zero completes the session instead of rescheduling.
"""

from __future__ import annotations

from collections.abc import Callable

from loguru import logger

from kravtrainer.core.constants import SESSION_SAVE_INTERVAL_SECONDS
from kravtrainer.session.state import SessionState
from kravtrainer.session.timers import TimerService

TICK_SECONDS = 1.0


class CountdownTimer:
    """Self-rescheduling one-second tick bound to a SessionState."""

    def __init__(
        self,
        state: SessionState,
        timers: TimerService,
        on_snapshot: Callable[[], object],
        on_complete: Callable[[], None],
        save_interval: int = SESSION_SAVE_INTERVAL_SECONDS,
    ):
        self.state = state
        self._timers = timers
        self._on_snapshot = on_snapshot
        self._on_complete = on_complete
        self.save_interval = max(1, save_interval)

    def start(self) -> None:
        """Arm the next tick; does nothing unless the session is running."""
        if not self.state.is_running:
            return
        self._schedule()

    def stop(self) -> None:
        if self.state.countdown_handle is not None:
            self.state.countdown_handle.cancel()
            self.state.countdown_handle = None

    def _schedule(self) -> None:
        self.stop()
        self.state.countdown_handle = self._timers.call_later(TICK_SECONDS, self.tick)

    def tick(self) -> None:
        state = self.state
        # stop() or pause() may have run between scheduling and firing
        if not state.is_running:
            return

        if state.remaining_seconds > 0:
            state.remaining_seconds -= 1

        if state.remaining_seconds == 0:
            self.stop()
            logger.debug("Countdown reached zero")
            self._on_complete()
            return

        if state.remaining_seconds % self.save_interval == 0:
            self._on_snapshot()

        self._schedule()
