"""
The Session Engine.

Components:
- SelectionStrategy: weighted random, round robin, priority based
- SessionState / SessionStatus: mutable record and its read-only view
- CountdownTimer: one-second tick driver
- AnnouncementScheduler: self-rescheduling announcement loop
- SessionPersistence: snapshot and restore
- SessionEngine: state machine tying the above together
"""

from .countdown import CountdownTimer
from .engine import RestoreResult, SessionEngine
from .persistence import SessionPersistence, SessionSnapshot
from .scheduler import AnnouncementScheduler, AudioFailureCounter
from .state import SessionState, SessionStats, SessionStatus
from .strategies import (
    PriorityBasedStrategy,
    RoundRobinStrategy,
    SelectionStrategy,
    StrategyType,
    WeightedRandomStrategy,
    available_strategies,
    create_strategy,
)
from .timers import AsyncioTimerService, CancellableHandle, ManualTimerService, TimerService

__all__ = [
    # Engine
    "SessionEngine",
    "RestoreResult",
    # State
    "SessionState",
    "SessionStats",
    "SessionStatus",
    # Strategies
    "SelectionStrategy",
    "StrategyType",
    "WeightedRandomStrategy",
    "RoundRobinStrategy",
    "PriorityBasedStrategy",
    "create_strategy",
    "available_strategies",
    # Timing
    "CancellableHandle",
    "TimerService",
    "AsyncioTimerService",
    "ManualTimerService",
    "CountdownTimer",
    "AnnouncementScheduler",
    "AudioFailureCounter",
    # Persistence
    "SessionPersistence",
    "SessionSnapshot",
]
