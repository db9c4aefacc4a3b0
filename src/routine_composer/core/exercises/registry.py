"""
Exercise catalog.

ExerciseCatalog wraps the definitions loaded from YAML and answers the
engine's ``is_cardio`` question.  Use get_catalog() for the shared default
instance built from the bundled and user YAML files.
"""

from functools import lru_cache

from .base import ExerciseDefinition
from .loader import load_exercises_from_yaml


class ExerciseCatalog:
    """Lookup of exercise definitions by id."""

    def __init__(self, definitions: dict[str, ExerciseDefinition]):
        self._definitions = dict(definitions)

    def __contains__(self, exercise_id: object) -> bool:
        return exercise_id in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)

    def all(self) -> list[ExerciseDefinition]:
        """Every definition, sorted by display name."""
        return sorted(self._definitions.values(), key=lambda d: d.display_name)

    def get(self, exercise_id: str) -> ExerciseDefinition:
        """
        Return the ExerciseDefinition for the given exercise_id.

        Raises:
            ValueError: If exercise_id is not in the catalog
        """
        if exercise_id not in self._definitions:
            valid = ", ".join(sorted(self._definitions))
            raise ValueError(f"Unknown exercise '{exercise_id}'. Valid IDs: {valid}")
        return self._definitions[exercise_id]

    def is_cardio(self, exercise_ref: str) -> bool:
        """True for cardio exercises; unknown references count as strength."""
        definition = self._definitions.get(exercise_ref)
        return definition is not None and definition.is_cardio

    def display_name(self, exercise_ref: str) -> str:
        """Catalog name, or the raw reference for unknown exercises."""
        definition = self._definitions.get(exercise_ref)
        return definition.display_name if definition is not None else exercise_ref


@lru_cache(maxsize=1)
def get_catalog() -> ExerciseCatalog:
    """Return the shared catalog loaded from bundled and user YAML files."""
    return ExerciseCatalog(load_exercises_from_yaml())


def get_exercise(exercise_id: str) -> ExerciseDefinition:
    """Shortcut for ``get_catalog().get(exercise_id)``."""
    return get_catalog().get(exercise_id)
