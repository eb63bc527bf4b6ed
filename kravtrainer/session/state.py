"""
In-memory session state.

SessionState is the single mutable record owned by the engine. Everything
outside the engine sees it through SessionStatus, an immutable copy.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from kravtrainer.core.models import Technique, TechniqueCategory
from kravtrainer.session.timers import CancellableHandle


def _empty_category_counts() -> dict[TechniqueCategory, int]:
    return {category: 0 for category in TechniqueCategory}


@dataclass
class SessionStats:
    """Aggregate statistics of one session."""

    total_techniques: int = 0
    techniques_by_category: dict[TechniqueCategory, int] = field(
        default_factory=_empty_category_counts
    )
    session_duration: int = 0  # seconds

    def record(self, technique: Technique) -> None:
        self.total_techniques += 1
        self.techniques_by_category[technique.category] = (
            self.techniques_by_category.get(technique.category, 0) + 1
        )

    def copy(self) -> SessionStats:
        return replace(self, techniques_by_category=dict(self.techniques_by_category))

    def to_dict(self) -> dict:
        return {
            "totalTechniques": self.total_techniques,
            "techniquesByCategory": {
                category.value: count for category, count in self.techniques_by_category.items()
            },
            "sessionDuration": self.session_duration,
        }

    @classmethod
    def from_dict(cls, data: dict) -> SessionStats:
        counts = _empty_category_counts()
        for key, value in (data.get("techniquesByCategory") or {}).items():
            counts[TechniqueCategory(key)] = int(value)
        return cls(
            total_techniques=int(data.get("totalTechniques", 0)),
            techniques_by_category=counts,
            session_duration=int(data.get("sessionDuration", 0)),
        )


@dataclass
class SessionState:
    """
    Authoritative record of the running session.

    Invariants:
    - 0 <= remaining_seconds <= total_seconds
    - is_paused implies is_active
    - current_technique is only set while an announcement is in flight
    """

    is_active: bool = False
    is_paused: bool = False
    remaining_seconds: int = 0
    total_seconds: int = 0
    current_technique: Technique | None = None
    techniques_announced: int = 0
    stats: SessionStats = field(default_factory=SessionStats)
    associated_list_id: str | None = None

    # Pending timers, cancelled on every transition out of running
    countdown_handle: CancellableHandle | None = None
    announcement_handle: CancellableHandle | None = None

    @property
    def is_running(self) -> bool:
        return self.is_active and not self.is_paused

    @property
    def is_idle(self) -> bool:
        return not self.is_active

    def begin(self, total_seconds: int, associated_list_id: str | None = None) -> None:
        """Initialise a fresh active session."""
        self.is_active = True
        self.is_paused = False
        self.total_seconds = total_seconds
        self.remaining_seconds = total_seconds
        self.current_technique = None
        self.techniques_announced = 0
        self.stats = SessionStats()
        self.associated_list_id = associated_list_id

    def record_announcement(self, technique: Technique) -> None:
        self.current_technique = technique
        self.techniques_announced += 1
        self.stats.record(technique)

    def cancel_timers(self) -> None:
        for handle in (self.countdown_handle, self.announcement_handle):
            if handle is not None:
                handle.cancel()
        self.countdown_handle = None
        self.announcement_handle = None

    def reset(self) -> None:
        """Return to idle. Statistics are kept for inspection after the session."""
        self.cancel_timers()
        self.is_active = False
        self.is_paused = False
        self.current_technique = None
        self.associated_list_id = None


@dataclass(frozen=True)
class SessionStatus:
    """Read-only view of the session handed to callers."""

    is_active: bool
    is_paused: bool
    remaining_seconds: int
    total_seconds: int
    current_technique: Technique | None
    techniques_announced: int
    stats: SessionStats
    associated_list_id: str | None
    strategy_name: str

    @classmethod
    def capture(cls, state: SessionState, strategy_name: str) -> SessionStatus:
        return cls(
            is_active=state.is_active,
            is_paused=state.is_paused,
            remaining_seconds=state.remaining_seconds,
            total_seconds=state.total_seconds,
            current_technique=replace(state.current_technique) if state.current_technique else None,
            techniques_announced=state.techniques_announced,
            stats=state.stats.copy(),
            associated_list_id=state.associated_list_id,
            strategy_name=strategy_name,
        )
