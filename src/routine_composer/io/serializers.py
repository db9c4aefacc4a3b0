"""
JSON serialization for routine models.

Handles conversion between dataclasses and JSON-compatible dicts.
"""

import json
import re
from typing import Any

from ..core.models import (
    GOALS,
    GROUP_TYPES,
    METRICS,
    Exact,
    ExerciseEntry,
    MinPlus,
    PercentOfMax,
    Range,
    Routine,
    Target,
    WorkoutSet,
)


class ValidationError(Exception):
    """Raised when data validation fails."""

    pass


def validate_non_negative(value: int | float, name: str) -> int | float:
    """
    Validate that a value is non-negative.

    Args:
        value: Value to validate
        name: Name for error message

    Returns:
        The value if valid

    Raises:
        ValidationError: If value is negative
    """
    if value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")
    return value


def validate_choice(value: str, choices: tuple[str, ...], name: str) -> str:
    """
    Validate that a string is one of the allowed choices.

    Raises:
        ValidationError: If value is not allowed
    """
    if value not in choices:
        raise ValidationError(f"Invalid {name}: {value!r}. Must be one of {choices}")
    return value


# =============================================================================
# TARGETS
# =============================================================================


def target_to_dict(target: Target) -> dict[str, Any]:
    """
    Convert a Target to a tagged dict.

    Args:
        target: Target to convert

    Returns:
        Dict with a "type" tag and the variant's fields
    """
    if isinstance(target, Exact):
        return {"type": "exact", "value": target.value}
    if isinstance(target, Range):
        return {"type": "range", "low": target.low, "high": target.high}
    if isinstance(target, MinPlus):
        return {"type": "min_plus", "low": target.low}
    return {"type": "percent_of_max", "percent": target.percent}


def dict_to_target(data: Any) -> Target:
    """
    Convert a tagged dict (or a bare number / tempo string) to a Target.

    Bare values are accepted as Exact for hand-written files.

    Raises:
        ValidationError: If data is invalid
    """
    try:
        if isinstance(data, (int, float, str)) and not isinstance(data, bool):
            return Exact(data)
        if not isinstance(data, dict):
            raise ValidationError(f"Invalid target: {data!r}")
        kind = data.get("type", "exact")
        if kind == "exact":
            return Exact(data["value"])
        if kind == "range":
            return Range(float(data["low"]), float(data["high"]))
        if kind == "min_plus":
            return MinPlus(float(data["low"]))
        if kind == "percent_of_max":
            return PercentOfMax(float(data["percent"]))
    except KeyError as e:
        raise ValidationError(f"Target missing field: {e.args[0]}") from e
    except ValueError as e:
        raise ValidationError(str(e)) from e
    raise ValidationError(f"Unknown target type: {kind!r}")


# =============================================================================
# SETS AND ENTRIES
# =============================================================================


def workout_set_to_dict(workout_set: WorkoutSet) -> dict[str, Any]:
    """
    Convert WorkoutSet to JSON-compatible dict.

    Only present targets are written.
    """
    result: dict[str, Any] = {"id": workout_set.id, "metrics": list(workout_set.metrics)}
    for metric in METRICS:
        target = getattr(workout_set, metric)
        if target is not None:
            result[metric] = target_to_dict(target)
    return result


def dict_to_workout_set(data: dict[str, Any]) -> WorkoutSet:
    """
    Convert dict to WorkoutSet.

    When "metrics" is absent, every present target is treated as active.

    Raises:
        ValidationError: If data is invalid
    """
    targets = {m: dict_to_target(data[m]) for m in METRICS if data.get(m) is not None}
    metrics = data.get("metrics")
    if metrics is None:
        metrics = list(targets)
    try:
        kwargs: dict[str, Any] = {"metrics": list(metrics), **targets}
        if data.get("id"):
            kwargs["id"] = str(data["id"])
        return WorkoutSet(**kwargs)
    except ValueError as e:
        raise ValidationError(str(e)) from e


def exercise_entry_to_dict(entry: ExerciseEntry) -> dict[str, Any]:
    """Convert ExerciseEntry to JSON-compatible dict."""
    result: dict[str, Any] = {
        "id": entry.id,
        "exercise_ref": entry.exercise_ref,
        "name": entry.name,
        "sets": [workout_set_to_dict(s) for s in entry.sets],
        "group_type": entry.group_type,
    }
    if entry.group_id is not None:
        result["group_id"] = entry.group_id
        result["group_order"] = entry.group_order
    if entry.cadence_seconds is not None:
        result["cadence_seconds"] = entry.cadence_seconds
    if entry.notes:
        result["notes"] = entry.notes
    return result


def dict_to_exercise_entry(data: dict[str, Any]) -> ExerciseEntry:
    """
    Convert dict to ExerciseEntry.

    Raises:
        ValidationError: If data is invalid
    """
    if not data.get("exercise_ref"):
        raise ValidationError("exercise entry is missing exercise_ref")
    group_type = validate_choice(data.get("group_type", "none"), GROUP_TYPES, "group_type")
    group_order = data.get("group_order")
    if group_order is not None:
        validate_non_negative(group_order, "group_order")
    cadence = data.get("cadence_seconds")

    try:
        kwargs: dict[str, Any] = {
            "exercise_ref": str(data["exercise_ref"]),
            "name": str(data.get("name", "")),
            "sets": [dict_to_workout_set(s) for s in data.get("sets", [])],
            "group_id": data.get("group_id"),
            "group_order": int(group_order) if group_order is not None else None,
            "group_type": group_type,
            "cadence_seconds": int(cadence) if cadence is not None else None,
            "notes": data.get("notes"),
        }
        if data.get("id"):
            kwargs["id"] = str(data["id"])
        return ExerciseEntry(**kwargs)
    except ValueError as e:
        raise ValidationError(str(e)) from e


# =============================================================================
# ROUTINES
# =============================================================================


def routine_to_dict(routine: Routine) -> dict[str, Any]:
    """Convert Routine to JSON-compatible dict."""
    return {
        "id": routine.id,
        "name": routine.name,
        "description": routine.description,
        "goal": routine.goal,
        "notes": routine.notes,
        "created_at": routine.created_at,
        "updated_at": routine.updated_at,
        "exercises": [exercise_entry_to_dict(e) for e in routine.exercises],
    }


def dict_to_routine(data: dict[str, Any]) -> Routine:
    """
    Convert dict to Routine.

    Raises:
        ValidationError: If data is invalid
    """
    goal = validate_choice(data.get("goal", "custom"), GOALS, "goal")
    try:
        return Routine(
            id=str(data.get("id") or ""),
            name=str(data.get("name", "New routine")),
            description=data.get("description"),
            goal=goal,  # type: ignore[arg-type]
            notes=data.get("notes"),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
            exercises=[dict_to_exercise_entry(e) for e in data.get("exercises", [])],
        )
    except ValueError as e:
        raise ValidationError(str(e)) from e


def routine_to_json(routine: Routine) -> str:
    """Serialize a routine to an indented JSON document."""
    return json.dumps(routine_to_dict(routine), indent=2)


def routine_from_json(text: str) -> Routine:
    """
    Parse a routine JSON document.

    Raises:
        ValidationError: If the text is not valid JSON or not a routine
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValidationError("Routine document must be a JSON object")
    return dict_to_routine(data)


# =============================================================================
# TEXT INPUT
# =============================================================================

_NUMBER = r"([0-9]+(?:\.[0-9]+)?)"


def parse_target(text: str, metric: str = "reps") -> Target:
    """
    Parse a target typed by the user.

    Formats:
        8        exact
        8-12     range
        10+      at least 10
        75%      percent of max
        2-0-1-0  tempo (only for the tempo metric)

    Raises:
        ValidationError: If format is invalid
    """
    raw = text.strip()
    if not raw:
        raise ValidationError("Target cannot be empty")
    if metric == "tempo":
        return Exact(raw)

    try:
        m = re.fullmatch(_NUMBER, raw)
        if m:
            value = float(m.group(1))
            return Exact(int(value) if value.is_integer() else value)
        m = re.fullmatch(rf"{_NUMBER}\s*-\s*{_NUMBER}", raw)
        if m:
            return Range(float(m.group(1)), float(m.group(2)))
        m = re.fullmatch(rf"{_NUMBER}\s*\+", raw)
        if m:
            return MinPlus(float(m.group(1)))
        m = re.fullmatch(rf"{_NUMBER}\s*%", raw)
        if m:
            return PercentOfMax(float(m.group(1)))
    except ValueError as e:
        raise ValidationError(str(e)) from e

    raise ValidationError(f"Invalid target: {text!r}. Expected 8, 8-12, 10+ or 75%")


def parse_targets_string(text: str) -> list[dict[str, Target]]:
    """
    Parse per-member targets for a new group.

    Members are separated by ``;``, metrics within a member by ``,``:

        "reps=8; reps=8, weight=20"  → two members

    Raises:
        ValidationError: If format is invalid
    """
    members: list[dict[str, Target]] = []
    for chunk in text.split(";"):
        chunk = chunk.strip()
        if not chunk:
            continue
        targets: dict[str, Target] = {}
        for pair in chunk.split(","):
            if "=" not in pair:
                raise ValidationError(f"Expected metric=value, got {pair.strip()!r}")
            metric, value = (p.strip() for p in pair.split("=", 1))
            validate_choice(metric, METRICS, "metric")
            targets[metric] = parse_target(value, metric)
        members.append(targets)
    if not members:
        raise ValidationError("No targets given")
    return members
