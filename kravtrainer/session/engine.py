"""
Session Engine.

Owns the session state machine and wires its parts together:

    Idle -> Active(running) <-> Active(paused) -> Completed | Stopped -> Idle

- CountdownTimer ticks the remaining time down once per second
- AnnouncementScheduler selects and plays techniques every ``delay`` seconds
- SessionPersistence snapshots the state on start, pause, resume and every
  30 seconds of countdown, and restores it after an interruption

Resume policy: ``resume()`` restarts the countdown at once and waits one
full ``delay`` before the next announcement. A session restored from a
snapshot announces immediately once the caller calls
``resume_announcements()``.
"""

from __future__ import annotations

import random
from collections.abc import Callable
from dataclasses import dataclass, replace

from loguru import logger

from kravtrainer.core.constants import (
    MAX_CONSECUTIVE_AUDIO_FAILURES,
    MSG_NO_TECHNIQUES_IN_FIGHT_LIST,
    MSG_PREVIOUS_SESSION_RESTORED,
    SESSION_RESTORE_WINDOW_SECONDS,
    SESSION_SAVE_INTERVAL_SECONDS,
)
from kravtrainer.core.errors import AlreadyActiveError, NoSelectableTechniquesError
from kravtrainer.core.models import FightList, SessionConfig, Technique
from kravtrainer.delivery.audio import AudioPlayer, SilentAudioPlayer
from kravtrainer.delivery.notifier import LoggingNotifier, Notifier, Severity, notify_safely
from kravtrainer.delivery.store import KeyValueStore, MemoryStore
from kravtrainer.session.countdown import CountdownTimer
from kravtrainer.session.persistence import SessionPersistence, SessionSnapshot, epoch_millis
from kravtrainer.session.scheduler import AnnouncementScheduler, AudioFailureCounter
from kravtrainer.session.state import SessionState, SessionStatus
from kravtrainer.session.strategies import (
    SelectionStrategy,
    StrategyType,
    available_strategies,
    create_strategy,
)
from kravtrainer.session.timers import AsyncioTimerService, TimerService


@dataclass(frozen=True)
class RestoreResult:
    """Outcome of ``SessionEngine.restore()``."""

    restored: bool
    was_paused: bool = False
    snapshot: SessionSnapshot | None = None

    @property
    def needs_announcements(self) -> bool:
        """True when a running session came back and its announcements are not armed yet."""
        return self.restored and not self.was_paused


class SessionEngine:
    """
    Single-user training session engine.

    All state changes happen on the caller's thread or on timer callbacks of
    the same event loop; timer callbacks re-check the state before mutating
    because stop() or pause() may have run after they were scheduled.
    """

    def __init__(
        self,
        audio: AudioPlayer | None = None,
        notifier: Notifier | None = None,
        store: KeyValueStore | None = None,
        timers: TimerService | None = None,
        strategy: StrategyType | str | SelectionStrategy = StrategyType.WEIGHTED_RANDOM,
        rng: random.Random | None = None,
        clock: Callable[[], int] = epoch_millis,
        restore_window_seconds: int = SESSION_RESTORE_WINDOW_SECONDS,
        save_interval_seconds: int = SESSION_SAVE_INTERVAL_SECONDS,
        max_consecutive_audio_failures: int = MAX_CONSECUTIVE_AUDIO_FAILURES,
        on_complete: Callable[[], None] | None = None,
        on_announce: Callable[[Technique], None] | None = None,
    ):
        self.rng = rng or random.Random()
        self.audio = audio or SilentAudioPlayer()
        self.notifier = notifier or LoggingNotifier()
        self.timers = timers or AsyncioTimerService()
        self.on_complete = on_complete

        self.state = SessionState()
        self.failures = AudioFailureCounter(max_consecutive_audio_failures)
        self.persistence = SessionPersistence(
            store or MemoryStore(),
            clock=clock,
            restore_window_seconds=restore_window_seconds,
        )
        self.countdown = CountdownTimer(
            self.state,
            self.timers,
            on_snapshot=self._snapshot,
            on_complete=self._complete,
            save_interval=save_interval_seconds,
        )
        self._strategy = self._build_strategy(strategy)
        self.scheduler = AnnouncementScheduler(
            self.state,
            self.timers,
            self.audio,
            self.notifier,
            strategy_provider=lambda: self._strategy,
            failures=self.failures,
            on_escalate=self._escalate,
            on_announce=on_announce,
        )
        self._config: SessionConfig | None = None

    # ------------------------------------------------------------------ queries

    @property
    def is_active(self) -> bool:
        return self.state.is_active

    @property
    def is_paused(self) -> bool:
        return self.state.is_paused

    @property
    def config(self) -> SessionConfig | None:
        return self._config

    @staticmethod
    def is_ready_to_start(config: SessionConfig) -> bool:
        return len(config.selected_techniques) > 0

    @staticmethod
    def is_ready_to_start_with_fight_list(fight_list: FightList) -> bool:
        return len(fight_list.selected_entries) > 0

    def get_status(self) -> SessionStatus:
        return SessionStatus.capture(self.state, self.strategy_name)

    def progress_percent(self) -> float:
        total = self.state.total_seconds
        if total == 0:
            return 0.0
        return (total - self.state.remaining_seconds) / total * 100

    @staticmethod
    def format_time(seconds: int) -> str:
        minutes, rest = divmod(max(0, int(seconds)), 60)
        return f"{minutes:02d}:{rest:02d}"

    # ------------------------------------------------------------------ strategy

    def _build_strategy(self, strategy: StrategyType | str | SelectionStrategy) -> SelectionStrategy:
        if isinstance(strategy, SelectionStrategy):
            return strategy
        return create_strategy(strategy, self.rng)

    def set_strategy(self, strategy: StrategyType | str | SelectionStrategy) -> None:
        """Swap the selection strategy; the running session is not disturbed."""
        self._strategy = self._build_strategy(strategy)
        logger.info(f"Selection strategy set to {self._strategy.name}")

    @property
    def strategy(self) -> SelectionStrategy:
        return self._strategy

    @property
    def strategy_name(self) -> str:
        return self._strategy.name

    @staticmethod
    def available_strategies() -> list[tuple[StrategyType, str]]:
        return available_strategies()

    # ------------------------------------------------------------------ control

    def start(self, config: SessionConfig) -> None:
        """
        Start a session.

        Raises:
            AlreadyActiveError: a session is already active
            NoSelectableTechniquesError: the pool has no selected technique
        """
        self._start(config, associated_list_id=None)

    def start_with_fight_list(self, config: SessionConfig, fight_list: FightList) -> None:
        """
        Start a session over the selected entries of a fight list.

        Each entry's 1-5 priority becomes the weight of a copy of the matching
        technique; entries without a matching technique are skipped.
        """
        if self.state.is_active:
            raise AlreadyActiveError()
        if not self.is_ready_to_start_with_fight_list(fight_list):
            raise NoSelectableTechniquesError(
                f"{MSG_NO_TECHNIQUES_IN_FIGHT_LIST}: {fight_list.name}"
            )

        self._start(self.fight_list_config(config, fight_list), associated_list_id=fight_list.id)

    @staticmethod
    def fight_list_config(config: SessionConfig, fight_list: FightList) -> SessionConfig:
        """Narrow ``config`` to the selected fight list entries, weighted by priority."""
        by_name = {t.name: t for t in config.techniques}
        techniques = []
        for entry in fight_list.selected_entries:
            technique = by_name.get(entry.technique_id)
            if technique is None:
                logger.warning(f"Fight list entry {entry.technique_id!r} not in pool, skipping")
                continue
            techniques.append(replace(technique, weight=float(entry.priority)))
        return config.with_techniques(techniques)

    def _start(self, config: SessionConfig, associated_list_id: str | None) -> None:
        if self.state.is_active:
            raise AlreadyActiveError()
        if not self.is_ready_to_start(config):
            raise NoSelectableTechniquesError()

        self._config = config
        self.state.cancel_timers()
        self.state.begin(config.duration_seconds, associated_list_id)
        self.failures.reset()
        self.scheduler.begin_session()

        self._snapshot()
        self.countdown.start()
        self.scheduler.arm(config, delay=0)
        logger.info(
            f"Session started: {config.duration} min, {config.delay}s delay, "
            f"{len(config.selected_techniques)} techniques, {self.strategy_name}"
        )

    def pause(self) -> None:
        if not self.state.is_running:
            return
        self.state.is_paused = True
        self.countdown.stop()
        self.scheduler.disarm()
        self._snapshot()
        logger.info(f"Session paused at {self.format_time(self.state.remaining_seconds)}")

    def resume(self, config: SessionConfig | None = None) -> None:
        """
        Resume a paused session.

        ``config`` is only needed when the session was restored from a
        snapshot and no config has been supplied yet; without one only the
        countdown resumes.
        """
        if not (self.state.is_active and self.state.is_paused):
            return
        if config is not None:
            self._config = config

        self.state.is_paused = False
        self.countdown.start()
        if self._config is not None:
            self.scheduler.arm(self._config, delay=self._config.delay)
        else:
            logger.warning("Resumed without a session config, announcements stay off")
        self._snapshot()
        logger.info(f"Session resumed at {self.format_time(self.state.remaining_seconds)}")

    def stop(self) -> None:
        """Stop the session and return to idle. Always legal."""
        was_active = self.state.is_active
        self.scheduler.disarm()
        self.state.reset()
        self.failures.reset()
        self.persistence.clear()
        if was_active:
            logger.info("Session stopped")

    def _complete(self) -> None:
        state = self.state
        state.stats.session_duration = state.total_seconds - state.remaining_seconds
        logger.info(
            f"Session completed: {state.stats.total_techniques} techniques in "
            f"{self.format_time(state.stats.session_duration)}"
        )
        self.stop()
        if self.on_complete is not None:
            try:
                self.on_complete()
            except Exception as e:
                logger.warning(f"Completion listener failed: {e}")

    def _escalate(self) -> None:
        logger.error("Stopping session after repeated audio failures")
        self.stop()

    def _snapshot(self) -> None:
        self.persistence.snapshot(self.state)

    # ------------------------------------------------------------------ restore

    def restore(self, config: SessionConfig | None = None) -> RestoreResult:
        """
        Restore a recently interrupted session.

        A snapshot younger than the restore window of an active session is
        loaded. A running session gets its countdown back immediately;
        announcements wait for ``resume_announcements()``. A paused session
        stays paused. Anything else is discarded and the engine stays idle.
        """
        if self.state.is_active:
            return RestoreResult(restored=False)

        snapshot = self.persistence.load_restorable()
        if snapshot is None:
            return RestoreResult(restored=False)

        self.state.cancel_timers()
        snapshot.apply_to(self.state)
        self.failures.reset()
        self.scheduler.begin_session()
        if config is not None:
            self._config = config

        if self.state.is_running:
            self.countdown.start()

        notify_safely(self.notifier, MSG_PREVIOUS_SESSION_RESTORED, Severity.INFO)
        logger.info(
            f"Restored session with {self.format_time(self.state.remaining_seconds)} left "
            f"({'paused' if self.state.is_paused else 'running'})"
        )
        return RestoreResult(restored=True, was_paused=self.state.is_paused, snapshot=snapshot)

    def resume_announcements(self, config: SessionConfig | None = None) -> None:
        """
        Re-arm announcements of a restored running session.

        Raises:
            NoSelectableTechniquesError: no config is known or it has no
                selected technique
        """
        if not self.state.is_running:
            return
        config = config or self._config
        if config is None or not self.is_ready_to_start(config):
            raise NoSelectableTechniquesError()
        self._config = config
        self.scheduler.arm(config, delay=0)
