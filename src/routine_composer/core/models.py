"""
Data models for routine-composer.

All core dataclasses representing a routine being composed: per-metric
targets, sets, exercise entries and the routine itself.  Entries address
their group by id and position only; nothing holds a back-reference, so a
Routine can always be deep-copied by value.
"""

import uuid
from dataclasses import dataclass, field
from typing import Literal, Union

Metric = Literal["reps", "weight", "duration", "distance", "rest", "tempo"]
GroupType = Literal["none", "standard", "circuit_timed"]
Goal = Literal["strength", "hypertrophy", "endurance", "custom", "rest"]

METRICS: tuple[str, ...] = ("reps", "weight", "duration", "distance", "rest", "tempo")
GROUP_TYPES: tuple[str, ...] = ("none", "standard", "circuit_timed")
GOALS: tuple[str, ...] = ("strength", "hypertrophy", "endurance", "custom", "rest")


def new_id() -> str:
    """Return a fresh opaque identifier."""
    return uuid.uuid4().hex


# =============================================================================
# TARGETS
# =============================================================================


@dataclass(frozen=True)
class Exact:
    """A single prescribed value (tempo uses a string such as "2-0-1-0")."""

    value: float | str

    def __post_init__(self) -> None:
        if isinstance(self.value, str):
            if not self.value.strip():
                raise ValueError("Exact tempo must be a non-empty string")
        elif self.value < 0:
            raise ValueError("Exact value must be non-negative")


@dataclass(frozen=True)
class Range:
    """An inclusive low..high prescription, e.g. 8-12 reps."""

    low: float
    high: float

    def __post_init__(self) -> None:
        if self.low < 0:
            raise ValueError("Range.low must be non-negative")
        if self.high < self.low:
            raise ValueError("Range.high must be >= Range.low")


@dataclass(frozen=True)
class MinPlus:
    """At least ``low``, e.g. "10+" reps."""

    low: float

    def __post_init__(self) -> None:
        if self.low < 0:
            raise ValueError("MinPlus.low must be non-negative")


@dataclass(frozen=True)
class PercentOfMax:
    """A fraction of the user's max, e.g. 75 % of 1RM."""

    percent: float

    def __post_init__(self) -> None:
        if not 0 < self.percent <= 200:
            raise ValueError("PercentOfMax.percent must be in (0, 200]")


Target = Union[Exact, Range, MinPlus, PercentOfMax]


def nominal_value(target: Target | None) -> float:
    """
    Collapse a target to the single number used for estimates.

    Range -> midpoint, MinPlus -> lower bound, PercentOfMax -> 0 (the max is
    not known here), tempo strings -> 0.
    """
    if target is None:
        return 0.0
    if isinstance(target, Exact):
        return 0.0 if isinstance(target.value, str) else float(target.value)
    if isinstance(target, Range):
        return (target.low + target.high) / 2
    if isinstance(target, MinPlus):
        return float(target.low)
    return 0.0


def is_zero(target: Target | None) -> bool:
    """True when the target prescribes nothing (absent or exactly 0)."""
    if target is None:
        return True
    return isinstance(target, Exact) and target.value == 0


# =============================================================================
# SETS AND ENTRIES
# =============================================================================


@dataclass
class WorkoutSet:
    """
    One prescribed set.

    ``metrics`` is the explicit ordered list of active metrics; a target may
    be present for an inactive metric (it is simply not shown or used).
    """

    id: str = field(default_factory=new_id)
    reps: Target | None = None
    weight: Target | None = None
    duration: Target | None = None
    distance: Target | None = None
    rest: Target | None = None
    tempo: Target | None = None
    metrics: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate set data."""
        for m in self.metrics:
            if m not in METRICS:
                raise ValueError(f"Invalid metric: {m}")
        if len(set(self.metrics)) != len(self.metrics):
            raise ValueError("metrics must not contain duplicates")

    def target(self, metric: str) -> Target | None:
        """Return the target for a metric name."""
        if metric not in METRICS:
            raise ValueError(f"Invalid metric: {metric}")
        return getattr(self, metric)

    def set_target(self, metric: str, value: Target | None) -> None:
        """Write a target and keep ``metrics`` in sync (None deactivates)."""
        if metric not in METRICS:
            raise ValueError(f"Invalid metric: {metric}")
        setattr(self, metric, value)
        if value is None:
            if metric in self.metrics:
                self.metrics.remove(metric)
        elif metric not in self.metrics:
            self.metrics.append(metric)


def rest_seconds(workout_set: WorkoutSet) -> float:
    """Rest after this set in seconds; an absent rest target counts as 0."""
    return nominal_value(workout_set.rest)


@dataclass
class ExerciseEntry:
    """
    One occurrence of a catalog exercise within a routine.

    Group membership is a single tagged field: ``group_type`` is "none" for a
    standalone exercise, otherwise ``group_id`` and ``group_order`` are set
    and ``cadence_seconds`` is set only for circuit_timed groups.
    """

    exercise_ref: str
    name: str = ""
    id: str = field(default_factory=new_id)
    sets: list[WorkoutSet] = field(default_factory=list)
    group_id: str | None = None
    group_order: int | None = None
    group_type: GroupType = "none"
    cadence_seconds: int | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        """Validate entry data."""
        if not self.exercise_ref:
            raise ValueError("exercise_ref must be a non-empty string")
        if self.group_type not in GROUP_TYPES:
            raise ValueError(f"Invalid group_type: {self.group_type}")
        if self.group_order is not None and self.group_order < 0:
            raise ValueError("group_order must be non-negative")
        if self.cadence_seconds is not None and self.cadence_seconds <= 0:
            raise ValueError("cadence_seconds must be positive")

    @property
    def is_grouped(self) -> bool:
        return self.group_id is not None

    def clear_group(self) -> None:
        """Drop every group field, leaving the sets as they are."""
        self.group_id = None
        self.group_order = None
        self.group_type = "none"
        self.cadence_seconds = None


@dataclass
class Routine:
    """
    An editable ordered collection of exercises plus metadata.

    ``id`` and the timestamps are empty until the repository first saves it.
    """

    name: str = "New routine"
    id: str = ""
    description: str | None = None
    goal: Goal = "custom"
    notes: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    exercises: list[ExerciseEntry] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate routine data."""
        if self.goal not in GOALS:
            raise ValueError(f"Invalid goal: {self.goal}")

    @property
    def is_rest_day(self) -> bool:
        return self.goal == "rest"


# =============================================================================
# INVARIANT CHECK
# =============================================================================


def check_invariants(routine: Routine) -> list[str]:
    """
    Return a description of every violated structural invariant.

    An empty list means the routine may be handed to the repository.
    """
    problems: list[str] = []
    positions: dict[str, list[int]] = {}

    for i, ex in enumerate(routine.exercises):
        if (ex.group_id is None) != (ex.group_order is None):
            problems.append(f"#{i}: group_id and group_order must be set together")
        if (ex.group_id is None) != (ex.group_type == "none"):
            problems.append(f"#{i}: group_type does not match group membership")
        if (ex.cadence_seconds is not None) != (ex.group_type == "circuit_timed"):
            problems.append(f"#{i}: cadence_seconds only belongs to circuit_timed groups")
        if not ex.sets:
            problems.append(f"#{i}: exercise has no sets")
        if ex.group_id is not None:
            positions.setdefault(ex.group_id, []).append(i)

    for group_id, idx in positions.items():
        members = [routine.exercises[i] for i in idx]
        if idx[-1] - idx[0] + 1 != len(idx):
            problems.append(f"group {group_id}: members are not contiguous")
        if [m.group_order for m in members] != list(range(len(members))):
            problems.append(f"group {group_id}: group_order is not 0..n-1 in position order")
        kinds = {m.group_type for m in members}
        if len(kinds) != 1:
            problems.append(f"group {group_id}: members disagree on group_type")
            continue
        kind = kinds.pop()
        if kind == "standard" and len(members) < 2:
            problems.append(f"group {group_id}: standard group needs at least 2 members")
        if len({len(m.sets) for m in members}) != 1:
            problems.append(f"group {group_id}: members have different round counts")
        for pos, m in enumerate(members):
            resting = any(rest_seconds(s) > 0 for s in m.sets)
            if resting and (kind == "circuit_timed" or pos < len(members) - 1):
                problems.append(f"group {group_id}: member {pos} carries rest")

    return problems
