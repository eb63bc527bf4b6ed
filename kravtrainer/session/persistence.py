"""
Session snapshot persistence.

Snapshots let an interrupted session (closed terminal, crashed process) be
picked up again. Storage is best-effort: every failure is logged and
swallowed, and the in-memory state never depends on a write succeeding.

Snapshots older than the restore window, or of an inactive session, are
discarded.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

from loguru import logger
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    NonNegativeInt,
    ValidationError,
    model_validator,
)

from kravtrainer.core.constants import SESSION_RESTORE_WINDOW_SECONDS, SESSION_STATE_KEY
from kravtrainer.core.models import TechniqueCategory
from kravtrainer.delivery.store import KeyValueStore
from kravtrainer.session.state import SessionState, SessionStats


def epoch_millis() -> int:
    return int(time.time() * 1000)


class SnapshotStats(BaseModel):
    """Session statistics as stored inside a snapshot."""

    model_config = ConfigDict(populate_by_name=True)

    total_techniques: NonNegativeInt = Field(default=0, alias="totalTechniques")
    techniques_by_category: dict[TechniqueCategory, NonNegativeInt] = Field(
        default_factory=dict, alias="techniquesByCategory"
    )
    session_duration: NonNegativeInt = Field(default=0, alias="sessionDuration")

    @classmethod
    def from_stats(cls, stats: SessionStats) -> SnapshotStats:
        return cls.model_validate(stats.to_dict())

    def to_stats(self) -> SessionStats:
        return SessionStats.from_dict(self.model_dump(by_alias=True, mode="json"))


class SessionSnapshot(BaseModel):
    """Serialized session state, stored under camelCase keys."""

    model_config = ConfigDict(populate_by_name=True)

    is_active: bool = Field(alias="isActive")
    is_paused: bool = Field(default=False, alias="isPaused")
    remaining_seconds: int = Field(alias="remainingTimeSeconds", ge=0)
    total_seconds: int = Field(alias="totalDurationSeconds", ge=0)
    techniques_announced: int = Field(default=0, alias="techniquesAnnouncedCount", ge=0)
    session_stats: SnapshotStats = Field(default_factory=SnapshotStats, alias="sessionStats")
    associated_list_id: str | None = Field(default=None, alias="associatedListId")
    saved_at_ms: int = Field(alias="savedAtEpochMillis")

    @model_validator(mode="after")
    def _check_invariants(self) -> SessionSnapshot:
        if self.remaining_seconds > self.total_seconds:
            raise ValueError("remainingTimeSeconds exceeds totalDurationSeconds")
        if self.is_paused and not self.is_active:
            raise ValueError("isPaused requires isActive")
        return self

    @classmethod
    def capture(cls, state: SessionState, saved_at_ms: int) -> SessionSnapshot:
        return cls(
            is_active=state.is_active,
            is_paused=state.is_paused,
            remaining_seconds=state.remaining_seconds,
            total_seconds=state.total_seconds,
            techniques_announced=state.techniques_announced,
            session_stats=SnapshotStats.from_stats(state.stats),
            associated_list_id=state.associated_list_id,
            saved_at_ms=saved_at_ms,
        )

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")

    def age_seconds(self, now_ms: int) -> float:
        return (now_ms - self.saved_at_ms) / 1000

    def apply_to(self, state: SessionState) -> None:
        """Load this snapshot into ``state``; pending timers are left alone."""
        stats = self.session_stats.to_stats()
        state.is_active = self.is_active
        state.is_paused = self.is_paused
        state.remaining_seconds = self.remaining_seconds
        state.total_seconds = self.total_seconds
        state.techniques_announced = self.techniques_announced
        state.stats = stats
        state.associated_list_id = self.associated_list_id
        state.current_technique = None


class SessionPersistence:
    """Reads and writes the session snapshot through a key/value store."""

    def __init__(
        self,
        store: KeyValueStore,
        key: str = SESSION_STATE_KEY,
        clock: Callable[[], int] = epoch_millis,
        restore_window_seconds: int = SESSION_RESTORE_WINDOW_SECONDS,
    ):
        self.store = store
        self.key = key
        self.clock = clock
        self.restore_window_ms = restore_window_seconds * 1000

    def snapshot(self, state: SessionState) -> bool:
        """Save ``state``. Returns False when the store failed."""
        try:
            snapshot = SessionSnapshot.capture(state, saved_at_ms=self.clock())
            self.store.save(self.key, snapshot.to_dict())
            return True
        except Exception as e:
            logger.warning(f"Failed to save session state: {e}")
            return False

    def clear(self) -> None:
        try:
            self.store.clear(self.key)
        except Exception as e:
            logger.warning(f"Failed to clear session state: {e}")

    def peek(self) -> SessionSnapshot | None:
        """Return the stored snapshot, valid or not for restoring."""
        try:
            raw = self.store.load(self.key)
        except Exception as e:
            logger.warning(f"Failed to load session state: {e}")
            return None
        if raw is None:
            return None
        try:
            return SessionSnapshot.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Discarding invalid session snapshot: {e.error_count()} errors")
            self.clear()
            return None

    def is_restorable(self, snapshot: SessionSnapshot) -> bool:
        age_ms = self.clock() - snapshot.saved_at_ms
        return snapshot.is_active and 0 <= age_ms < self.restore_window_ms

    def load_restorable(self) -> SessionSnapshot | None:
        """
        Return the stored snapshot if it can be restored.

        Stale or inactive snapshots are removed from the store.
        """
        snapshot = self.peek()
        if snapshot is None:
            return None
        if not self.is_restorable(snapshot):
            logger.debug(
                f"Discarding session snapshot (active={snapshot.is_active}, "
                f"age={snapshot.age_seconds(self.clock()):.0f}s)"
            )
            self.clear()
            return None
        return snapshot
