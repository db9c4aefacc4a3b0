"""
The composition engine: the single mutation surface for a routine.

Each command runs against a deep working copy of the live routine.  Only
when the command has fully succeeded does the copy replace the live routine
and get recorded in the edit history; otherwise the caller receives the
untouched routine with a typed error.  Every routine handed out is a fresh
copy, so callers can never mutate engine state behind its back.
"""

import copy
from typing import Any, Callable, Protocol, Sequence

from loguru import logger

from .config import DEFAULT_POLICY, CompositionPolicy
from .duration import estimate_duration
from .errors import (
    CommandResult,
    CompositionError,
    EmptyRoutineError,
    InvalidCommandError,
    RestPolicyError,
)
from .exercises.base import Catalog
from .grouping import GroupManager, coerce_target
from .history import EditHistory, snapshot
from .models import (
    GOALS,
    METRICS,
    Exact,
    ExerciseEntry,
    Routine,
    check_invariants,
    is_zero,
    new_id,
)
from .sets import append_set, default_set, remove_set

Mutation = Callable[[Routine], CompositionError | None]


class Repository(Protocol):
    """Persistence collaborator."""

    def load(self, routine_id: str) -> Routine | None: ...

    def save(self, routine: Routine) -> Routine: ...


class CompositionEngine:
    """
    Edit session for one routine.

    Args:
        routine: Routine to edit (a blank routine when None)
        catalog: Answers ``is_cardio`` for newly inserted exercises
        policy: Tuning values (default rest, step sizes, history size, ...)
    """

    def __init__(
        self,
        routine: Routine | None = None,
        catalog: Catalog | None = None,
        policy: CompositionPolicy = DEFAULT_POLICY,
    ):
        if catalog is None:
            from .exercises.registry import get_catalog

            catalog = get_catalog()
        self.catalog = catalog
        self.policy = policy
        self.groups = GroupManager(policy)
        self.history = EditHistory(policy.max_history_entries)

        baseline = snapshot(routine) if routine is not None else Routine()
        dissolved = self.groups.recalc_ordering(baseline)
        if dissolved:
            logger.warning(f"Loaded routine had broken groups, ungrouped: {dissolved}")
        self._baseline = baseline
        self._routine = snapshot(baseline)
        self.history.restore_original(baseline)

    # -------------------------------------------------------------------------
    # State access
    # -------------------------------------------------------------------------

    @property
    def routine(self) -> Routine:
        """Copy of the live routine."""
        return snapshot(self._routine)

    @property
    def has_unsaved_changes(self) -> bool:
        return self._routine != self._baseline

    def _result(self, error: CompositionError | None = None) -> CommandResult:
        return CommandResult(snapshot(self._routine), error)

    def _apply(self, description: str, mutate: Mutation) -> CommandResult:
        """Run ``mutate`` on a working copy and commit it only on success."""
        working = snapshot(self._routine)
        error = mutate(working)
        if error is not None:
            logger.debug(f"Rejected '{description}': {error.message}")
            return self._result(error)

        self._routine = working
        self.history.record(working, description)
        logger.debug(f"Applied '{description}'")
        return self._result()

    def _check_index(self, routine: Routine, index: int) -> CompositionError | None:
        if not 0 <= index < len(routine.exercises):
            return InvalidCommandError(f"Exercise #{index + 1} does not exist.")
        return None

    # -------------------------------------------------------------------------
    # Exercises
    # -------------------------------------------------------------------------

    def insert_exercise(self, entry: ExerciseEntry, at_index: int | None = None) -> CommandResult:
        """
        Insert an ungrouped copy of ``entry`` with one default set.

        Cardio exercises (per the catalog) get duration-based defaults,
        everything else reps and weight.  Inserting between members of a
        group breaks that group.
        """
        label = entry.name or entry.exercise_ref

        def mutate(routine: Routine) -> CompositionError | None:
            position = len(routine.exercises) if at_index is None else at_index
            if not 0 <= position <= len(routine.exercises):
                return InvalidCommandError(f"Cannot insert at position {position + 1}.")
            new_entry = copy.deepcopy(entry)
            new_entry.clear_group()
            if any(ex.id == new_entry.id for ex in routine.exercises):
                new_entry.id = new_id()
            is_cardio = self.catalog.is_cardio(new_entry.exercise_ref)
            new_entry.sets = [default_set(is_cardio, self.policy)]
            routine.exercises.insert(position, new_entry)
            self.groups.recalc_ordering(routine)
            return None

        return self._apply(f"Add {label}", mutate)

    def remove_exercise(self, index: int) -> CommandResult:
        """Remove the exercise at ``index``; its group may dissolve."""

        def mutate(routine: Routine) -> CompositionError | None:
            error = self._check_index(routine, index)
            if error is not None:
                return error
            del routine.exercises[index]
            self.groups.recalc_ordering(routine)
            return None

        return self._apply(f"Remove exercise #{index + 1}", mutate)

    def reorder_exercise(self, from_index: int, to_index: int) -> CommandResult:
        """
        Move an exercise.

        A group left non-contiguous by the move is ungrouped outright, never
        repaired by shuffling other exercises around.
        """
        if from_index == to_index and 0 <= from_index < len(self._routine.exercises):
            return self._result()

        def mutate(routine: Routine) -> CompositionError | None:
            for i in (from_index, to_index):
                error = self._check_index(routine, i)
                if error is not None:
                    return error
            routine.exercises.insert(to_index, routine.exercises.pop(from_index))
            self.groups.recalc_ordering(routine)
            return None

        return self._apply(f"Move exercise #{from_index + 1} to #{to_index + 1}", mutate)

    def add_set(self, exercise_index: int) -> CommandResult:
        """Add a set; on a grouped exercise this adds a round to the whole group."""

        def mutate(routine: Routine) -> CompositionError | None:
            error = self._check_index(routine, exercise_index)
            if error is not None:
                return error
            entry = routine.exercises[exercise_index]
            if entry.is_grouped:
                return self.groups.add_round(routine, entry.group_id)
            template = entry.sets[-1] if entry.sets else None
            append_set(
                entry.sets,
                template,
                is_cardio=self.catalog.is_cardio(entry.exercise_ref),
                policy=self.policy,
            )
            return None

        return self._apply(f"Add set to exercise #{exercise_index + 1}", mutate)

    def remove_set(self, exercise_index: int, set_index: int = -1) -> CommandResult:
        """Remove a set; on a grouped exercise this removes that round from every member."""

        def mutate(routine: Routine) -> CompositionError | None:
            error = self._check_index(routine, exercise_index)
            if error is not None:
                return error
            entry = routine.exercises[exercise_index]
            if entry.is_grouped:
                return self.groups.remove_round(routine, entry.group_id, set_index)
            return remove_set(entry.sets, set_index, exercise_index)

        return self._apply(f"Remove set from exercise #{exercise_index + 1}", mutate)

    # -------------------------------------------------------------------------
    # Targets
    # -------------------------------------------------------------------------

    def _rest_guard(
        self, routine: Routine, index: int, metric: str, nonzero: bool
    ) -> CompositionError | None:
        if metric == "rest" and nonzero and not self.groups.may_rest(routine, index):
            return RestPolicyError(index, routine.exercises[index].group_type)
        return None

    def bulk_apply_metric(self, exercise_index: int, metric: str, value: Any) -> CommandResult:
        """
        Write one target onto every set of one exercise.

        ``value`` may be a Target, a number, a tempo string, or None to
        deactivate the metric.  Grouping state is never touched; nonzero rest
        on a member that must not rest is rejected.  Clearing rest on the last
        member of a superset stores an explicit 0 s so it stays cleared.
        """

        def mutate(routine: Routine) -> CompositionError | None:
            error = self._check_index(routine, exercise_index)
            if error is not None:
                return error
            if metric not in METRICS:
                return InvalidCommandError(f"Unknown metric: {metric!r}")
            target = None
            if value is not None:
                try:
                    target = coerce_target(value)
                except ValueError as exc:
                    return InvalidCommandError(str(exc))
                is_text = isinstance(target, Exact) and isinstance(target.value, str)
                if (metric == "tempo") != is_text:
                    return InvalidCommandError(
                        "Tempo takes text like 2-0-1-0." if metric == "tempo" else f"{metric} must be a number."
                    )
            error = self._rest_guard(routine, exercise_index, metric, not is_zero(target))
            if error is not None:
                return error
            entry = routine.exercises[exercise_index]
            if metric == "rest" and target is None and entry.group_type == "standard":
                # an absent rest here is re-seeded with the group default
                if self.groups.may_rest(routine, exercise_index):
                    target = Exact(0)
            for s in entry.sets:
                s.set_target(metric, target)
            return None

        return self._apply(f"Set {metric} on exercise #{exercise_index + 1}", mutate)

    def step_metric(self, exercise_index: int, metric: str, direction: int = 1) -> CommandResult:
        """
        Nudge every exact target of ``metric`` on one exercise by the policy step.

        Values are clamped at 0; ranges and other non-exact targets are left
        alone.
        """
        sign = 1 if direction >= 0 else -1

        def mutate(routine: Routine) -> CompositionError | None:
            error = self._check_index(routine, exercise_index)
            if error is not None:
                return error
            step = self.policy.metric_steps.get(metric)
            if step is None:
                return InvalidCommandError(f"{metric!r} cannot be stepped.")
            error = self._rest_guard(routine, exercise_index, metric, sign > 0)
            if error is not None:
                return error
            for s in routine.exercises[exercise_index].sets:
                current = s.target(metric)
                if isinstance(current, Exact) and not isinstance(current.value, str):
                    s.set_target(metric, Exact(max(0, current.value + sign * step)))
            return None

        verb = "Increase" if sign > 0 else "Decrease"
        return self._apply(f"{verb} {metric} on exercise #{exercise_index + 1}", mutate)

    # -------------------------------------------------------------------------
    # Groups
    # -------------------------------------------------------------------------

    def group_selection(
        self,
        indices: Sequence[int],
        group_type: str = "standard",
        cadence_seconds: int | None = None,
        per_member_targets: Sequence[dict[str, Any]] | None = None,
        round_count: int | None = None,
    ) -> CommandResult:
        """Group adjacent exercises into a superset or timed circuit."""

        def mutate(routine: Routine) -> CompositionError | None:
            outcome = self.groups.form_group(
                routine, indices, group_type, cadence_seconds, per_member_targets, round_count
            )
            return outcome if isinstance(outcome, CompositionError) else None

        label = "superset" if group_type == "standard" else "circuit"
        return self._apply(f"Create {label}", mutate)

    def ungroup(self, group_id: str) -> CommandResult:
        return self._apply("Ungroup", lambda r: self.groups.ungroup(r, group_id))

    def add_round(self, group_id: str) -> CommandResult:
        return self._apply("Add round", lambda r: self.groups.add_round(r, group_id))

    def remove_round(self, group_id: str, round_index: int = -1) -> CommandResult:
        return self._apply(
            "Remove round", lambda r: self.groups.remove_round(r, group_id, round_index)
        )

    def change_group_type(
        self, group_id: str, new_type: str, cadence_seconds: int | None = None
    ) -> CommandResult:
        return self._apply(
            f"Change group to {new_type}",
            lambda r: self.groups.change_group_type(r, group_id, new_type, cadence_seconds),
        )

    def add_to_group(self, group_id: str, index: int) -> CommandResult:
        return self._apply(
            f"Add exercise #{index + 1} to group",
            lambda r: self.groups.add_to_group(r, group_id, index),
        )

    def remove_from_group(self, index: int) -> CommandResult:
        return self._apply(
            f"Remove exercise #{index + 1} from group",
            lambda r: self.groups.remove_from_group(r, index),
        )

    # -------------------------------------------------------------------------
    # Metadata
    # -------------------------------------------------------------------------

    def update_details(
        self,
        name: str | None = None,
        description: str | None = None,
        goal: str | None = None,
        notes: str | None = None,
    ) -> CommandResult:
        """Edit routine metadata; omitted fields keep their value."""

        def mutate(routine: Routine) -> CompositionError | None:
            if name is not None and not name.strip():
                return InvalidCommandError("A routine needs a name.")
            if goal is not None and goal not in GOALS:
                return InvalidCommandError(f"Unknown goal: {goal!r}. Must be one of {GOALS}")
            if name is not None:
                routine.name = name.strip()
            if description is not None:
                routine.description = description
            if goal is not None:
                routine.goal = goal  # type: ignore[assignment]
            if notes is not None:
                routine.notes = notes
            return None

        return self._apply("Edit details", mutate)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def estimate_duration(self) -> int:
        """Advisory duration of the live routine in seconds."""
        return estimate_duration(self._routine, self.policy)

    def can_undo(self) -> bool:
        return self.history.can_undo()

    def can_redo(self) -> bool:
        return self.history.can_redo()

    def history_descriptions(self) -> list[str]:
        return self.history.descriptions()

    # -------------------------------------------------------------------------
    # History replay
    # -------------------------------------------------------------------------

    def undo(self) -> CommandResult:
        """
        Return to the previous snapshot without recording a new entry.

        Raises:
            HistoryBoundsError: If can_undo() is False
        """
        self._routine = self.history.undo()
        logger.debug("Undo")
        return self._result()

    def redo(self) -> CommandResult:
        """
        Re-apply the next snapshot without recording a new entry.

        Raises:
            HistoryBoundsError: If can_redo() is False
        """
        self._routine = self.history.redo()
        logger.debug("Redo")
        return self._result()

    def restore_original(self) -> CommandResult:
        """Throw away every edit of this session and clear the history."""
        self._routine = snapshot(self._baseline)
        self.history.restore_original(self._baseline)
        logger.debug("Restored original routine")
        return self._result()

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def save(self, repository: Repository) -> CommandResult:
        """
        Hand the live routine to ``repository``.

        Training routines need at least one exercise; rest days may be empty.
        On success the saved routine (with its id and timestamps) becomes the
        new baseline and the history restarts from it.
        """
        if not self._routine.exercises and not self._routine.is_rest_day:
            return self._result(EmptyRoutineError())
        problems = check_invariants(self._routine)
        if problems:
            return self._result(InvalidCommandError("; ".join(problems)))

        saved = repository.save(snapshot(self._routine))
        self._baseline = snapshot(saved)
        self._routine = snapshot(saved)
        self.history.restore_original(saved)
        logger.info(f"Saved routine {saved.id} ({len(saved.exercises)} exercises)")
        return self._result()
