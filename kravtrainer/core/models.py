"""
Domain models: techniques, fight lists and the session configuration.

Techniques are owned by the catalog. The session engine only reads them,
apart from ``selected``/``priority``/``weight`` which configuration editors
may change while a session is running.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from enum import Enum

from kravtrainer.core.constants import (
    DEFAULT_DELAY_SECONDS,
    DEFAULT_DURATION_MINUTES,
    DEFAULT_VOLUME,
    MAX_DELAY_SECONDS,
    MAX_DURATION_MINUTES,
    MAX_FIGHT_LIST_PRIORITY,
    MAX_VOLUME,
    MIN_DELAY_SECONDS,
    MIN_DURATION_MINUTES,
    MIN_FIGHT_LIST_PRIORITY,
    MIN_VOLUME,
    MSG_DELAY_RANGE,
    MSG_DURATION_RANGE,
    MSG_VOLUME_RANGE,
)
from kravtrainer.core.errors import InvalidSessionConfigError


class TechniqueCategory(str, Enum):
    """Closed set of technique categories."""

    PUNCHES = "Punches"
    STRIKES = "Strikes"
    KICKS = "Kicks"
    KNEES = "Knees"
    DEFENSES_GRABS = "Defenses/Grabs"
    WEAPONS = "Weapons"
    HAND_GRIP = "Hand-Grip"
    KNIFE = "Knife"


class PriorityLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TargetLevel(str, Enum):
    HEAD = "HEAD"
    NECK = "NECK"
    CHEST = "CHEST"
    STOMACH = "STOMACH"
    GROIN = "GROIN"
    HIP = "HIP"
    SHIN = "SHIN"
    BACK = "BACK"
    FOOT = "FOOT"


class Side(str, Enum):
    LEFT = "LEFT"
    RIGHT = "RIGHT"


# =============================================================================
# Technique
# =============================================================================


@dataclass
class Technique:
    """
    A single trainable action.

    ``file`` is the audio reference handed to the audio player. ``weight``
    drives weighted-random selection.
    """

    name: str
    file: str
    category: TechniqueCategory
    priority: PriorityLevel = PriorityLevel.MEDIUM
    selected: bool = True
    weight: float = 1.0
    target_level: TargetLevel = TargetLevel.HEAD
    side: Side = Side.RIGHT

    @classmethod
    def from_dict(cls, data: dict) -> Technique:
        """Build a technique from a camelCase record."""
        return cls(
            name=data["name"],
            file=data["file"],
            category=TechniqueCategory(data["category"]),
            priority=PriorityLevel(data.get("priority", PriorityLevel.MEDIUM.value)),
            selected=bool(data.get("selected", True)),
            weight=float(data.get("weight", 1.0)),
            target_level=TargetLevel(data.get("targetLevel", TargetLevel.HEAD.value)),
            side=Side(data.get("side", Side.RIGHT.value)),
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "file": self.file,
            "category": self.category.value,
            "priority": self.priority.value,
            "selected": self.selected,
            "weight": self.weight,
            "targetLevel": self.target_level.value,
            "side": self.side.value,
        }


# =============================================================================
# Fight lists
# =============================================================================


@dataclass
class FightListTechnique:
    """An entry of a fight list, pointing at a catalog technique by name."""

    id: str
    technique_id: str
    priority: int = 3
    selected: bool = True

    def __post_init__(self) -> None:
        self.priority = max(MIN_FIGHT_LIST_PRIORITY, min(MAX_FIGHT_LIST_PRIORITY, int(self.priority)))


@dataclass
class FightList:
    """A named selection of techniques with per-entry priorities."""

    id: str
    name: str
    techniques: list[FightListTechnique] = field(default_factory=list)
    created_at: str | None = None
    last_modified: str | None = None

    @property
    def selected_entries(self) -> list[FightListTechnique]:
        return [entry for entry in self.techniques if entry.selected]

    @classmethod
    def from_dict(cls, data: dict) -> FightList:
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            techniques=[
                FightListTechnique(
                    id=str(entry.get("id") or entry["techniqueId"]),
                    technique_id=entry["techniqueId"],
                    priority=entry.get("priority", 3),
                    selected=bool(entry.get("selected", True)),
                )
                for entry in data.get("techniques", [])
            ],
            created_at=data.get("createdAt"),
            last_modified=data.get("lastModified"),
        )


# =============================================================================
# Session configuration
# =============================================================================


def clamp_duration(minutes: int) -> int:
    return max(MIN_DURATION_MINUTES, min(MAX_DURATION_MINUTES, int(minutes)))


def clamp_delay(seconds: int) -> int:
    return max(MIN_DELAY_SECONDS, min(MAX_DELAY_SECONDS, int(seconds)))


def clamp_volume(volume: int) -> int:
    return max(MIN_VOLUME, min(MAX_VOLUME, int(volume)))


@dataclass(frozen=True)
class SessionConfig:
    """
    Parameters of one training session.

    A fresh config is required per start. ``volume`` is only meaningful to
    the audio player; the engine never reads it.
    """

    duration: int = DEFAULT_DURATION_MINUTES
    delay: int = DEFAULT_DELAY_SECONDS
    volume: int = DEFAULT_VOLUME
    techniques: tuple[Technique, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "techniques", tuple(self.techniques))
        errors = []
        if not MIN_DURATION_MINUTES <= self.duration <= MAX_DURATION_MINUTES:
            errors.append(MSG_DURATION_RANGE)
        if not MIN_DELAY_SECONDS <= self.delay <= MAX_DELAY_SECONDS:
            errors.append(MSG_DELAY_RANGE)
        if not MIN_VOLUME <= self.volume <= MAX_VOLUME:
            errors.append(MSG_VOLUME_RANGE)
        if errors:
            raise InvalidSessionConfigError(errors)

    @property
    def selected_techniques(self) -> list[Technique]:
        return [t for t in self.techniques if t.selected]

    @property
    def duration_seconds(self) -> int:
        return self.duration * 60

    def with_techniques(self, techniques: Iterable[Technique]) -> SessionConfig:
        return replace(self, techniques=tuple(techniques))

    @classmethod
    def from_catalog(
        cls,
        techniques: Iterable[Technique],
        duration: int = DEFAULT_DURATION_MINUTES,
        delay: int = DEFAULT_DELAY_SECONDS,
        volume: int = DEFAULT_VOLUME,
    ) -> SessionConfig:
        """Build a config from catalog techniques, keeping only selected ones."""
        return cls(
            duration=duration,
            delay=delay,
            volume=volume,
            techniques=tuple(t for t in techniques if t.selected),
        )
