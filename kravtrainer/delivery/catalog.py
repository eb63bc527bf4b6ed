"""
Technique Catalog: technique and fight list loader.

Loads techniques from:
- the bundled default catalog (kravtrainer/data/techniques.json)
- a user JSON file (list of technique records, or {"techniques": [...]})

Records use camelCase keys and are validated with pydantic before they
become Technique objects.
"""

from __future__ import annotations

import json
from importlib import resources
from pathlib import Path

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from kravtrainer.core.errors import CatalogError
from kravtrainer.core.models import (
    FightList,
    PriorityLevel,
    Side,
    TargetLevel,
    Technique,
    TechniqueCategory,
)

DEFAULT_CATALOG = "techniques.json"


class TechniqueRecord(BaseModel):
    """Validated shape of one technique in a catalog file."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: str = Field(min_length=1)
    file: str = Field(min_length=1)
    category: TechniqueCategory
    priority: PriorityLevel = PriorityLevel.MEDIUM
    selected: bool = True
    weight: float = Field(default=1.0, gt=0)
    target_level: TargetLevel = Field(default=TargetLevel.HEAD, alias="targetLevel")
    side: Side = Side.RIGHT

    def to_technique(self) -> Technique:
        return Technique(
            name=self.name,
            file=self.file,
            category=self.category,
            priority=self.priority,
            selected=self.selected,
            weight=self.weight,
            target_level=self.target_level,
            side=self.side,
        )


class FightListEntryRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    technique_id: str = Field(alias="techniqueId", min_length=1)
    priority: int = Field(default=3, ge=1, le=5)
    selected: bool = True


class FightListRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=50)
    techniques: list[FightListEntryRecord] = Field(default_factory=list)
    created_at: str | None = Field(default=None, alias="createdAt")
    last_modified: str | None = Field(default=None, alias="lastModified")


def _read_json(path: Path) -> object:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise CatalogError(f"File not found: {path}") from e
    except json.JSONDecodeError as e:
        raise CatalogError(f"Invalid JSON format in {path}: {e}") from e


class TechniqueCatalog:
    """
    Technique collection used to build session pools.

    Editing methods change ``selected``/``priority``/``weight`` in place, so a
    running session sees the change at its next announcement.
    """

    def __init__(self, techniques: list[Technique] | None = None):
        self.techniques: list[Technique] = list(techniques or [])

    @classmethod
    def from_records(cls, records: object) -> TechniqueCatalog:
        if isinstance(records, dict):
            records = records.get("techniques", [])
        if not isinstance(records, list):
            raise CatalogError("Techniques must be an array")
        try:
            techniques = [TechniqueRecord.model_validate(r).to_technique() for r in records]
        except ValidationError as e:
            raise CatalogError(f"Invalid technique record: {e}") from e

        names = [t.name for t in techniques]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise CatalogError(f"Duplicate technique names: {', '.join(duplicates)}")
        return cls(techniques)

    @classmethod
    def load(cls, path: Path | None = None) -> TechniqueCatalog:
        """Load a catalog file, or the bundled catalog when ``path`` is None."""
        if path is None:
            source = resources.files("kravtrainer.data").joinpath(DEFAULT_CATALOG)
            records = json.loads(source.read_text(encoding="utf-8"))
        else:
            records = _read_json(Path(path))
        catalog = cls.from_records(records)
        logger.debug(f"Loaded {len(catalog.techniques)} techniques from {path or 'bundled catalog'}")
        return catalog

    def __len__(self) -> int:
        return len(self.techniques)

    def get(self, name: str) -> Technique | None:
        for technique in self.techniques:
            if technique.name == name:
                return technique
        return None

    def _require(self, name: str) -> Technique:
        technique = self.get(name)
        if technique is None:
            raise KeyError(f"Unknown technique: {name}")
        return technique

    def get_selected_techniques(self) -> list[Technique]:
        return [t for t in self.techniques if t.selected]

    def by_category(self, category: TechniqueCategory) -> list[Technique]:
        return [t for t in self.techniques if t.category == category]

    def select_all(self) -> None:
        for technique in self.techniques:
            technique.selected = True

    def deselect_all(self) -> None:
        for technique in self.techniques:
            technique.selected = False

    def set_selected(self, name: str, selected: bool) -> None:
        self._require(name).selected = selected

    def set_priority(self, name: str, priority: PriorityLevel | str) -> None:
        self._require(name).priority = PriorityLevel(priority)

    def set_weight(self, name: str, weight: float) -> None:
        if weight <= 0:
            raise ValueError("weight must be positive")
        self._require(name).weight = float(weight)

    def to_records(self) -> list[dict]:
        return [t.to_dict() for t in self.techniques]


def load_fight_list(path: Path) -> FightList:
    """Load and validate a fight list JSON file."""
    raw = _read_json(Path(path))
    try:
        record = FightListRecord.model_validate(raw)
    except ValidationError as e:
        raise CatalogError(f"Invalid fight list: {e}") from e
    return FightList.from_dict(record.model_dump(by_alias=True))
