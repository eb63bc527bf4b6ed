"""
Core domain for the trainer: models, constants and errors.
"""

from kravtrainer.core.errors import (
    AlreadyActiveError,
    CatalogError,
    EmptyPoolError,
    InvalidSessionConfigError,
    NoSelectableTechniquesError,
    SessionEngineError,
)
from kravtrainer.core.models import (
    FightList,
    FightListTechnique,
    PriorityLevel,
    SessionConfig,
    Side,
    TargetLevel,
    Technique,
    TechniqueCategory,
)

__all__ = [
    # Models
    "Technique",
    "TechniqueCategory",
    "PriorityLevel",
    "TargetLevel",
    "Side",
    "FightList",
    "FightListTechnique",
    "SessionConfig",
    # Errors
    "SessionEngineError",
    "AlreadyActiveError",
    "NoSelectableTechniquesError",
    "EmptyPoolError",
    "InvalidSessionConfigError",
    "CatalogError",
]
