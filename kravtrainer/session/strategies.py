"""
Technique Selection Strategies.

Three interchangeable ways to pick the next technique from a pool:
- WeightedRandomStrategy: draw proportionally to ``Technique.weight``
- RoundRobinStrategy: cycle through the pool in order
- PriorityBasedStrategy: uniform pick from the highest non-empty priority bucket

Strategies are created through ``create_strategy`` keyed on ``StrategyType``
and may be swapped while a session is running.
"""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from collections.abc import Sequence
from enum import Enum

from loguru import logger

from kravtrainer.core.errors import EmptyPoolError
from kravtrainer.core.models import PriorityLevel, Technique


class StrategyType(str, Enum):
    """Available selection strategies."""

    WEIGHTED_RANDOM = "random"
    ROUND_ROBIN = "roundRobin"
    PRIORITY_BASED = "priorityBased"


class SelectionStrategy(ABC):
    """Common interface for technique selection."""

    strategy_type: StrategyType
    display_name: str

    def __init__(self, rng: random.Random | None = None):
        self.rng = rng or random.Random()

    @abstractmethod
    def select(self, pool: Sequence[Technique]) -> Technique:
        """
        Pick one technique from ``pool``.

        Raises:
            EmptyPoolError: if ``pool`` is empty
        """

    @property
    def name(self) -> str:
        return self.display_name

    @staticmethod
    def _require_pool(pool: Sequence[Technique]) -> None:
        if not pool:
            raise EmptyPoolError()


class WeightedRandomStrategy(SelectionStrategy):
    """
    Weighted random selection.

    A cursor is drawn uniformly in ``[0, total_weight)`` and weights are
    subtracted in pool order; the technique that takes the cursor to zero or
    below wins. When the total weight is not positive, or floating point
    drift leaves the cursor above zero after the last technique, the first
    technique of the pool is returned.
    """

    strategy_type = StrategyType.WEIGHTED_RANDOM
    display_name = "Random Selection"

    def select(self, pool: Sequence[Technique]) -> Technique:
        self._require_pool(pool)

        total_weight = sum(t.weight for t in pool)
        if total_weight <= 0:
            return pool[0]

        cursor = self.rng.random() * total_weight
        for technique in pool:
            cursor -= technique.weight
            if cursor <= 0:
                return technique

        logger.debug("Weighted selection drifted past the pool, using first technique")
        return pool[0]


class RoundRobinStrategy(SelectionStrategy):
    """
    Cycle through the pool in its current order.

    The cursor is kept between calls and is not reset when the pool changes;
    after a change it simply keeps advancing (wrapped to the new length), so
    some techniques may be skipped or repeated once.
    """

    strategy_type = StrategyType.ROUND_ROBIN
    display_name = "Round Robin Selection"

    def __init__(self, rng: random.Random | None = None):
        super().__init__(rng)
        self.cursor = 0

    def select(self, pool: Sequence[Technique]) -> Technique:
        self._require_pool(pool)
        technique = pool[self.cursor % len(pool)]
        self.cursor = (self.cursor + 1) % len(pool)
        return technique


class PriorityBasedStrategy(SelectionStrategy):
    """Uniform choice within the highest non-empty priority bucket."""

    strategy_type = StrategyType.PRIORITY_BASED
    display_name = "Priority-Based Selection"

    _ORDER = (PriorityLevel.HIGH, PriorityLevel.MEDIUM, PriorityLevel.LOW)

    def select(self, pool: Sequence[Technique]) -> Technique:
        self._require_pool(pool)
        for level in self._ORDER:
            bucket = [t for t in pool if t.priority == level]
            if bucket:
                return self.rng.choice(bucket)
        # Every technique carries a PriorityLevel, so a bucket is always found.
        return self.rng.choice(list(pool))


_STRATEGIES: dict[StrategyType, type[SelectionStrategy]] = {
    StrategyType.WEIGHTED_RANDOM: WeightedRandomStrategy,
    StrategyType.ROUND_ROBIN: RoundRobinStrategy,
    StrategyType.PRIORITY_BASED: PriorityBasedStrategy,
}


def create_strategy(
    strategy_type: StrategyType | str,
    rng: random.Random | None = None,
) -> SelectionStrategy:
    """
    Create a selection strategy.

    Args:
        strategy_type: StrategyType member or its value (e.g. "roundRobin")
        rng: Optional random source, mainly for deterministic tests

    Raises:
        ValueError: for an unknown strategy type
    """
    return _STRATEGIES[StrategyType(strategy_type)](rng)


def available_strategies() -> list[tuple[StrategyType, str]]:
    """List (type, display name) pairs in menu order."""
    return [(kind, cls.display_name) for kind, cls in _STRATEGIES.items()]
