"""
Advisory duration estimate for a routine.

Pure and deterministic; the numbers are only meant for display.

Per block:
    standalone exercise:      sum over sets of (work + rest)
    standard group k x n:     sum over rounds of (sum of member work + rest of last member)
    circuit_timed group k x n: n * k * cadence

Work time for a set is the larger of reps * SECONDS_PER_REP and the
duration target, floored at MIN_WORK_SECONDS.
"""

from .config import DEFAULT_POLICY, CompositionPolicy
from .models import ExerciseEntry, Routine, WorkoutSet, nominal_value, rest_seconds


def work_seconds(workout_set: WorkoutSet, policy: CompositionPolicy = DEFAULT_POLICY) -> float:
    """Estimated working time of one set in seconds."""
    from_reps = nominal_value(workout_set.reps) * policy.seconds_per_rep
    from_duration = nominal_value(workout_set.duration)
    return max(from_reps, from_duration, policy.min_work_seconds)


def _standalone_seconds(entry: ExerciseEntry, policy: CompositionPolicy) -> float:
    return sum(work_seconds(s, policy) + rest_seconds(s) for s in entry.sets)


def _standard_group_seconds(members: list[ExerciseEntry], policy: CompositionPolicy) -> float:
    rounds = len(members[0].sets)
    total = 0.0
    for r in range(rounds):
        total += sum(work_seconds(m.sets[r], policy) for m in members if r < len(m.sets))
        last = members[-1]
        if r < len(last.sets):
            total += rest_seconds(last.sets[r])
    return total


def _circuit_seconds(members: list[ExerciseEntry]) -> float:
    rounds = len(members[0].sets)
    cadence = members[0].cadence_seconds or 0
    return float(rounds * len(members) * cadence)


def estimate_duration(routine: Routine, policy: CompositionPolicy = DEFAULT_POLICY) -> int:
    """
    Estimate how long the routine takes, in whole seconds.

    Args:
        routine: Routine to estimate
        policy: Source of the per-rep and minimum-work constants

    Returns:
        Estimated total seconds (0 for an empty routine)
    """
    total = 0.0
    exercises = routine.exercises
    i = 0
    while i < len(exercises):
        entry = exercises[i]
        if entry.group_id is None:
            total += _standalone_seconds(entry, policy)
            i += 1
            continue

        # Groups are contiguous, so the block ends at the first non-member.
        j = i
        while j < len(exercises) and exercises[j].group_id == entry.group_id:
            j += 1
        members = exercises[i:j]
        if entry.group_type == "circuit_timed":
            total += _circuit_seconds(members)
        else:
            total += _standard_group_seconds(members, policy)
        i = j

    return int(round(total))


def format_duration(seconds: int) -> str:
    """Render seconds as e.g. ``"1h 05m"`` or ``"12m 30s"``."""
    hours, rem = divmod(int(seconds), 3600)
    minutes, secs = divmod(rem, 60)
    if hours:
        return f"{hours}h {minutes:02d}m"
    if minutes:
        return f"{minutes}m {secs:02d}s"
    return f"{secs}s"
