"""
Error taxonomy and command result type for the composition engine.

Expected conditions (a bad selection, removing the last round, saving an
empty routine) are returned inside a CommandResult, never raised.  The only
raised member of the taxonomy is HistoryBoundsError, which signals caller
misuse of undo/redo.
"""

from dataclasses import dataclass

from .models import Routine


class CompositionError(Exception):
    """Base class for every composition error."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NonContiguousSelectionError(CompositionError):
    """Grouping requested over indices that are not adjacent."""

    def __init__(self, indices: list[int]):
        super().__init__(
            f"Exercises {indices} are not adjacent; only contiguous exercises can be grouped."
        )
        self.indices = list(indices)


class GroupSizeError(CompositionError):
    """A group would have fewer members than its type allows."""

    def __init__(self, group_type: str, size: int):
        minimum = 2 if group_type == "standard" else 1
        super().__init__(
            f"A {group_type} group needs at least {minimum} exercise(s), got {size}."
        )
        self.group_type = group_type
        self.size = size


class OrphanSetError(CompositionError):
    """A removal would leave an exercise (or group member) with no sets."""

    def __init__(self, exercise_index: int):
        super().__init__(f"Exercise #{exercise_index + 1} must keep at least one set.")
        self.exercise_index = exercise_index


class EmptyRoutineError(CompositionError):
    """Save attempted on a training routine with no exercises."""

    def __init__(self) -> None:
        super().__init__("A routine needs at least one exercise unless it is a rest day.")


class HistoryBoundsError(CompositionError):
    """undo()/redo() called when can_undo()/can_redo() is False."""

    def __init__(self, direction: str):
        super().__init__(f"Nothing to {direction}.")
        self.direction = direction


class RestPolicyError(CompositionError):
    """Nonzero rest written onto a group member that must not rest."""

    def __init__(self, exercise_index: int, group_type: str):
        where = "circuit members" if group_type == "circuit_timed" else "all but the last superset member"
        super().__init__(
            f"Exercise #{exercise_index + 1} cannot carry rest: rest is 0 for {where}."
        )
        self.exercise_index = exercise_index
        self.group_type = group_type


class InvalidCommandError(CompositionError):
    """A malformed command: bad index, unknown group, bad round count, ..."""


@dataclass(frozen=True)
class CommandResult:
    """
    Outcome of one engine command.

    ``routine`` is always a detached copy: the new state on success, the
    untouched state on failure.
    """

    routine: Routine
    error: CompositionError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
