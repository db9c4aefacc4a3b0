"""
Base types for the exercise catalog.

ExerciseDefinition describes one catalog exercise.  The composition engine
only ever asks the catalog one question: is this exercise cardio?  Catalog
is the narrow protocol for that question, so tests and other front-ends
can pass any object that answers it.
"""

from dataclasses import dataclass
from typing import Protocol

CATEGORIES: tuple[str, ...] = ("strength", "bodyweight", "cardio", "stretching")


@dataclass(frozen=True)
class ExerciseDefinition:
    """One exercise the user can add to a routine."""

    exercise_id: str          # e.g. "bench_press"
    display_name: str         # e.g. "Bench Press"
    category: str             # one of CATEGORIES
    muscle_group: str = ""    # e.g. "chest"

    def __post_init__(self) -> None:
        if not self.exercise_id:
            raise ValueError("exercise_id must be a non-empty string")
        if self.category not in CATEGORIES:
            raise ValueError(f"Invalid category: {self.category!r}")

    @property
    def is_cardio(self) -> bool:
        return self.category == "cardio"


class Catalog(Protocol):
    """What the engine needs from an exercise catalog."""

    def is_cardio(self, exercise_ref: str) -> bool: ...
