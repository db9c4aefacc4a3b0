"""
YAML → ExerciseDefinition loader.

Loads exercise definitions from individual YAML files in the bundled
``src/routine_composer/exercises/`` directory.  Each file (e.g.
bench_press.yaml) holds one flat definition matching ExerciseDefinition.

User overrides: place matching files in ``~/.routine-composer/exercises/``.
A user file is merged over the bundled definition, so only changed keys
need to be listed.  A user file with no bundled counterpart is treated as a
new exercise.

Usage (internal, called by registry.py):
    from .loader import load_exercises_from_yaml
    exercises = load_exercises_from_yaml()
"""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from loguru import logger

from .base import ExerciseDefinition

_REQUIRED_EXERCISE_FIELDS: frozenset[str] = frozenset(
    {
        "exercise_id",
        "display_name",
        "category",
    }
)


def exercise_from_dict(d: dict) -> ExerciseDefinition:
    """Convert a raw dict (from YAML) to an ExerciseDefinition.

    Raises ValueError if any required field is absent or invalid.
    """
    missing = _REQUIRED_EXERCISE_FIELDS - set(d)
    if missing:
        raise ValueError(f"ExerciseDefinition missing fields: {sorted(missing)}")

    return ExerciseDefinition(
        exercise_id=str(d["exercise_id"]),
        display_name=str(d["display_name"]),
        category=str(d["category"]),
        muscle_group=str(d.get("muscle_group", "")),
    )


def _load_yaml_file(path: Path) -> dict:
    """Load a YAML file; return {} when it cannot be read or is not a mapping."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        logger.warning(f"Skipping unreadable exercise file {path}: {exc}")
        return {}
    return data if isinstance(data, dict) else {}


def _get_bundled_exercises_dir() -> Path | None:
    """Return path to the bundled exercises/ data directory, or None if not found."""
    # loader.py lives at src/routine_composer/core/exercises/loader.py
    # three levels up → src/routine_composer/
    candidate = Path(__file__).parent.parent.parent / "exercises"
    return candidate if candidate.is_dir() else None


def _get_user_exercises_dir() -> Path | None:
    """Return ~/.routine-composer/exercises/ if it exists, else None."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    p = home / ".routine-composer" / "exercises"
    return p if p.is_dir() else None


def load_exercises_from_yaml(
    bundled_dir: Path | None = None,
    user_dir: Path | None = None,
) -> dict[str, ExerciseDefinition]:
    """Return {exercise_id: ExerciseDefinition} loaded from per-exercise YAML files.

    Args:
        bundled_dir: Directory of shipped definitions (package data by default)
        user_dir: Directory of user overrides (~/.routine-composer/exercises by default)

    Invalid files are skipped with a logged warning.
    """
    bundled_dir = bundled_dir if bundled_dir is not None else _get_bundled_exercises_dir()
    user_dir = user_dir if user_dir is not None else _get_user_exercises_dir()

    raw_by_stem: dict[str, dict] = {}
    if bundled_dir is not None and bundled_dir.is_dir():
        for p in sorted(bundled_dir.glob("*.yaml")):
            raw = _load_yaml_file(p)
            if raw:
                raw_by_stem[p.stem] = raw

    if user_dir is not None and user_dir.is_dir():
        for p in sorted(user_dir.glob("*.yaml")):
            user_raw = _load_yaml_file(p)
            if user_raw:
                raw_by_stem[p.stem] = {**raw_by_stem.get(p.stem, {}), **user_raw}

    result: dict[str, ExerciseDefinition] = {}
    for stem, raw in raw_by_stem.items():
        try:
            ex = exercise_from_dict(raw)
        except ValueError as exc:
            logger.warning(f"Skipping exercise '{stem}': {exc}")
            continue
        result[ex.exercise_id] = ex
    return result
