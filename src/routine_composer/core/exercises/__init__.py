"""
Exercise catalog for routine-composer.

Definitions are loaded from per-exercise YAML files; the engine consults the
catalog only to pick default metrics for a newly inserted exercise.
"""

from .base import Catalog, ExerciseDefinition
from .registry import ExerciseCatalog, get_catalog, get_exercise

__all__ = [
    "Catalog",
    "ExerciseDefinition",
    "ExerciseCatalog",
    "get_catalog",
    "get_exercise",
]
