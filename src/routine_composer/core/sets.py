"""
Set-collection operations for a single exercise entry.

A set collection is the plain ``list[WorkoutSet]`` held by an entry; these
helpers mutate that list in place and return an error value instead of
mutating when the change is not allowed.
"""

import copy

from .config import DEFAULT_POLICY, CompositionPolicy
from .errors import InvalidCommandError, OrphanSetError
from .models import Exact, WorkoutSet, new_id


def default_set(is_cardio: bool, policy: CompositionPolicy = DEFAULT_POLICY) -> WorkoutSet:
    """
    Build a fresh set with the policy defaults.

    Cardio exercises get a duration target; everything else gets reps and
    weight.  Both carry the default rest.
    """
    if is_cardio:
        return WorkoutSet(
            duration=Exact(policy.cardio_duration_seconds),
            rest=Exact(policy.cardio_rest_seconds),
            metrics=["duration", "rest"],
        )
    return WorkoutSet(
        reps=Exact(policy.strength_reps),
        weight=Exact(policy.strength_weight_kg),
        rest=Exact(policy.strength_rest_seconds),
        metrics=["weight", "reps", "rest"],
    )


def continuation_of(template: WorkoutSet) -> WorkoutSet:
    """Copy a set's targets and active metrics under a fresh id."""
    clone = copy.deepcopy(template)
    clone.id = new_id()
    return clone


def append_set(
    sets: list[WorkoutSet],
    template: WorkoutSet | None = None,
    *,
    is_cardio: bool = False,
    policy: CompositionPolicy = DEFAULT_POLICY,
) -> WorkoutSet:
    """
    Append one set and return it.

    Args:
        sets: The collection to extend
        template: Set whose targets are continued; policy defaults when None
        is_cardio: Chooses the default metrics when no template is given
        policy: Source of default values

    Returns:
        The appended set
    """
    new_set = continuation_of(template) if template is not None else default_set(is_cardio, policy)
    sets.append(new_set)
    return new_set


def remove_set(
    sets: list[WorkoutSet], index: int, exercise_index: int = 0
) -> OrphanSetError | InvalidCommandError | None:
    """
    Remove the set at ``index``.

    Returns an error (and leaves the list alone) when the index is out of
    range or when the set is the last one; the caller decides whether the
    whole exercise should go instead.
    """
    if not -len(sets) <= index < len(sets):
        return InvalidCommandError(f"Set #{index + 1} does not exist.")
    if len(sets) <= 1:
        return OrphanSetError(exercise_index)
    del sets[index]
    return None


def count(sets: list[WorkoutSet]) -> int:
    """Number of sets in the collection."""
    return len(sets)
