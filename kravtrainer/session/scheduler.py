"""
Announcement Scheduler.

A self-rescheduling loop: announce a technique, await its audio, then wait
``delay`` seconds before the next one. The loop only continues while the
session is running; pausing or stopping cancels the pending wake-up and the
loop ends until it is re-armed.

Audio failures are counted. A success resets the streak; reaching the
threshold escalates to the owner, which stops the session.
"""

from __future__ import annotations

from collections.abc import Callable

from loguru import logger

from kravtrainer.core.constants import (
    MAX_CONSECUTIVE_AUDIO_FAILURES,
    MSG_AUDIO_FAILURE,
    MSG_MULTIPLE_AUDIO_FAILURES,
)
from kravtrainer.core.errors import EmptyPoolError
from kravtrainer.core.models import SessionConfig, Technique
from kravtrainer.delivery.audio import AudioPlayer
from kravtrainer.delivery.notifier import Notifier, Severity, notify_safely
from kravtrainer.session.state import SessionState
from kravtrainer.session.strategies import SelectionStrategy
from kravtrainer.session.timers import TimerService


class AudioFailureCounter:
    """Consecutive audio failure streak."""

    def __init__(self, threshold: int = MAX_CONSECUTIVE_AUDIO_FAILURES):
        self.threshold = max(1, threshold)
        self.count = 0

    def record_failure(self) -> int:
        self.count += 1
        return self.count

    def reset(self) -> None:
        self.count = 0

    @property
    def threshold_reached(self) -> bool:
        return self.count >= self.threshold


class AnnouncementScheduler:
    """
    Drives announcements for the engine.

    Two counters guard against stale callbacks:
    - ``_generation`` changes when a session begins, so audio results from a
      previous session are ignored
    - ``_epoch`` changes on every arm/disarm, so only the most recently armed
      loop may reschedule itself
    """

    def __init__(
        self,
        state: SessionState,
        timers: TimerService,
        audio: AudioPlayer,
        notifier: Notifier,
        strategy_provider: Callable[[], SelectionStrategy],
        failures: AudioFailureCounter,
        on_escalate: Callable[[], None],
        on_announce: Callable[[Technique], None] | None = None,
    ):
        self.state = state
        self._timers = timers
        self._audio = audio
        self._notifier = notifier
        self._strategy_provider = strategy_provider
        self.failures = failures
        self._on_escalate = on_escalate
        self._on_announce = on_announce
        self._config: SessionConfig | None = None
        self._generation = 0
        self._epoch = 0

    @property
    def config(self) -> SessionConfig | None:
        return self._config

    def begin_session(self) -> None:
        self._generation += 1
        self.disarm()

    def arm(self, config: SessionConfig, delay: float) -> None:
        """Schedule the next announcement ``delay`` seconds from now."""
        self._config = config
        self.disarm()
        if not self.state.is_running:
            return
        self._schedule(delay, self._generation, self._epoch)

    def disarm(self) -> None:
        self._epoch += 1
        if self.state.announcement_handle is not None:
            self.state.announcement_handle.cancel()
            self.state.announcement_handle = None

    def _schedule(self, delay: float, generation: int, epoch: int) -> None:
        self.state.announcement_handle = self._timers.call_later(
            delay, lambda: self._announce(generation, epoch)
        )

    def _is_current(self, generation: int, epoch: int) -> bool:
        return generation == self._generation and epoch == self._epoch

    async def _announce(self, generation: int, epoch: int) -> None:
        state = self.state
        if not self._is_current(generation, epoch) or not state.is_running:
            return
        state.announcement_handle = None
        config = self._config
        if config is None:
            return

        try:
            technique = self._strategy_provider().select(config.selected_techniques)
        except EmptyPoolError:
            logger.warning("No selected techniques left, skipping announcement")
            state.current_technique = None
            technique = None

        if technique is not None:
            state.record_announcement(technique)
            logger.debug(f"Announcing {technique.name} ({technique.category.value})")
            if self._on_announce is not None:
                try:
                    self._on_announce(technique)
                except Exception as e:
                    logger.warning(f"Announcement listener failed: {e}")

            played = await self._play(technique)

            # A result arriving after stop() or a new start() belongs to a dead session
            if generation != self._generation or not state.is_active:
                return

            if played:
                self.failures.reset()
            else:
                streak = self.failures.record_failure()
                logger.warning(f"Audio failed for {technique.name} ({streak} in a row)")
                notify_safely(
                    self._notifier, f"{MSG_AUDIO_FAILURE} {technique.name}", Severity.ERROR
                )
                if self.failures.threshold_reached:
                    logger.error("Too many consecutive audio failures, stopping session")
                    notify_safely(self._notifier, MSG_MULTIPLE_AUDIO_FAILURES, Severity.ERROR)
                    self._on_escalate()
                    return

        if self._is_current(generation, epoch) and state.is_running:
            self._schedule(config.delay, generation, epoch)

    async def _play(self, technique: Technique) -> bool:
        try:
            return (await self._audio.play(technique.file)) is True
        except Exception as e:
            logger.warning(f"Audio playback raised for {technique.file}: {e}")
            return False
