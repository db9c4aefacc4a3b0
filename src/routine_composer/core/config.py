"""
Configuration constants for the composition engine.

All adjustable parameters are centralized here for easy tuning.  The values
are product tuning choices, not structural guarantees; ``load_policy()``
overlays any YAML overrides onto them.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Final

# =============================================================================
# REST POLICY
# =============================================================================

DEFAULT_GROUP_REST_SECONDS: Final[int] = 60  # Rest given to the last member of a new superset
DEFAULT_CADENCE_SECONDS: Final[int] = 60  # Circuit slot length when none is given

# =============================================================================
# DEFAULT SETS
# =============================================================================

DEFAULT_STRENGTH_REPS: Final[int] = 8
DEFAULT_STRENGTH_WEIGHT_KG: Final[float] = 0.0
DEFAULT_STRENGTH_REST_SECONDS: Final[int] = 60

DEFAULT_CARDIO_DURATION_SECONDS: Final[int] = 300
DEFAULT_CARDIO_REST_SECONDS: Final[int] = 60

# =============================================================================
# DURATION ESTIMATE
# =============================================================================

SECONDS_PER_REP: Final[float] = 4.0  # Rough time under tension per rep
MIN_WORK_SECONDS: Final[float] = 30.0  # Setup floor for very short sets

# =============================================================================
# HISTORY
# =============================================================================

MAX_HISTORY_ENTRIES: Final[int] = 50

# =============================================================================
# INCREMENT STEPS (used by step_metric)
# =============================================================================

METRIC_STEPS: Final[dict[str, float]] = {
    "reps": 1,
    "weight": 2.5,
    "duration": 15,
    "distance": 100,
    "rest": 15,
}


@dataclass(frozen=True)
class CompositionPolicy:
    """Tuning values consumed by the engine, grouped so they can be overridden."""

    group_rest_seconds: int = DEFAULT_GROUP_REST_SECONDS
    default_cadence_seconds: int = DEFAULT_CADENCE_SECONDS
    strength_reps: int = DEFAULT_STRENGTH_REPS
    strength_weight_kg: float = DEFAULT_STRENGTH_WEIGHT_KG
    strength_rest_seconds: int = DEFAULT_STRENGTH_REST_SECONDS
    cardio_duration_seconds: int = DEFAULT_CARDIO_DURATION_SECONDS
    cardio_rest_seconds: int = DEFAULT_CARDIO_REST_SECONDS
    seconds_per_rep: float = SECONDS_PER_REP
    min_work_seconds: float = MIN_WORK_SECONDS
    max_history_entries: int = MAX_HISTORY_ENTRIES
    metric_steps: dict[str, float] = field(default_factory=lambda: dict(METRIC_STEPS))

    def __post_init__(self) -> None:
        """Validate policy values."""
        if self.group_rest_seconds < 0:
            raise ValueError("group_rest_seconds must be non-negative")
        if self.default_cadence_seconds <= 0:
            raise ValueError("default_cadence_seconds must be positive")
        if self.max_history_entries < 1:
            raise ValueError("max_history_entries must be at least 1")
        for metric, step in self.metric_steps.items():
            if step <= 0:
                raise ValueError(f"metric_steps[{metric!r}] must be positive, got {step}")


DEFAULT_POLICY: Final[CompositionPolicy] = CompositionPolicy()


def policy_from_dict(overrides: dict[str, Any], base: CompositionPolicy = DEFAULT_POLICY) -> CompositionPolicy:
    """
    Build a policy from a (possibly partial) mapping of field overrides.

    Unknown keys are ignored so that newer config files keep working.

    Args:
        overrides: Mapping of CompositionPolicy field names to values
        base: Policy supplying every value not overridden

    Returns:
        New CompositionPolicy

    Raises:
        ValueError: If an overridden value is invalid
    """
    known = set(CompositionPolicy.__dataclass_fields__)
    values = {k: v for k, v in overrides.items() if k in known}
    if "metric_steps" in values:
        values["metric_steps"] = {**base.metric_steps, **values["metric_steps"]}
    return replace(base, **values)
