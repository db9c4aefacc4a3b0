"""
Grouping rules for supersets and timed circuits.

GroupManager owns every change to group membership and keeps the structural
invariants intact:

- members of a group are contiguous and numbered 0..n-1 in position order
- a standard group has at least two members, a circuit at least one
- every member of a group has the same number of sets (rounds)
- in a standard group only the last member rests; circuit members never
  rest because the cadence replaces rest

All methods mutate the Routine they are given in place.  Rejections are
returned as CompositionError values before anything is touched, so callers
working on a copy can simply discard it.
"""

from typing import Any, Mapping, Sequence

from loguru import logger

from .config import DEFAULT_POLICY, CompositionPolicy
from .errors import (
    CompositionError,
    GroupSizeError,
    InvalidCommandError,
    NonContiguousSelectionError,
    OrphanSetError,
)
from .models import (
    METRICS,
    Exact,
    ExerciseEntry,
    MinPlus,
    PercentOfMax,
    Range,
    Routine,
    Target,
    WorkoutSet,
    new_id,
)
from .sets import append_set, continuation_of, count, default_set

GROUPED_TYPES: tuple[str, ...] = ("standard", "circuit_timed")

_TARGET_TYPES = (Exact, Range, MinPlus, PercentOfMax)


def min_group_size(group_type: str) -> int:
    """Smallest valid member count for a group type."""
    return 2 if group_type == "standard" else 1


def coerce_target(value: Any) -> Target:
    """
    Turn a user-supplied value into a Target.

    Numbers and tempo strings become Exact; Target instances pass through.

    Raises:
        ValueError: If the value cannot describe a target
    """
    if isinstance(value, _TARGET_TYPES):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid target value: {value!r}")
    if isinstance(value, (int, float, str)):
        return Exact(value)
    raise ValueError(f"Invalid target value: {value!r}")


def build_set(targets: Mapping[str, Any]) -> WorkoutSet:
    """
    Build a set from a ``{metric: value}`` mapping.

    The mapping's key order becomes the set's active-metric order.

    Raises:
        ValueError: On an unknown metric or invalid value
    """
    new_set = WorkoutSet()
    for metric, value in targets.items():
        if metric not in METRICS:
            raise ValueError(f"Invalid metric: {metric}")
        new_set.set_target(metric, coerce_target(value))
    return new_set


class GroupManager:
    """Enforces grouping invariants whenever membership or order changes."""

    def __init__(self, policy: CompositionPolicy = DEFAULT_POLICY):
        self.policy = policy

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @staticmethod
    def groups_in(routine: Routine) -> dict[str, list[int]]:
        """Map each group id to its member positions, in routine order."""
        positions: dict[str, list[int]] = {}
        for i, ex in enumerate(routine.exercises):
            if ex.group_id is not None:
                positions.setdefault(ex.group_id, []).append(i)
        return positions

    @staticmethod
    def group_members(routine: Routine, group_id: str) -> list[ExerciseEntry]:
        """Members of a group in position order (empty for an unknown id)."""
        return [ex for ex in routine.exercises if ex.group_id == group_id]

    # -------------------------------------------------------------------------
    # Rest policy
    # -------------------------------------------------------------------------

    def apply_rest_policy(self, members: Sequence[ExerciseEntry]) -> None:
        """
        Normalise rest across one group's members (given in order).

        Non-last standard members and every circuit member lose their rest
        target.  The last standard member keeps any explicit rest and gets
        the policy default on sets that have none.
        """
        last = len(members) - 1
        for pos, member in enumerate(members):
            resting = member.group_type == "standard" and pos == last
            for s in member.sets:
                if not resting:
                    s.set_target("rest", None)
                elif s.rest is None:
                    s.set_target("rest", Exact(self.policy.group_rest_seconds))

    @staticmethod
    def may_rest(routine: Routine, index: int) -> bool:
        """True when the exercise at ``index`` is allowed nonzero rest."""
        entry = routine.exercises[index]
        if entry.group_type == "none":
            return True
        if entry.group_type == "circuit_timed":
            return False
        members = GroupManager.group_members(routine, entry.group_id)
        return entry.group_order == len(members) - 1

    # -------------------------------------------------------------------------
    # Forming and dissolving
    # -------------------------------------------------------------------------

    def form_group(
        self,
        routine: Routine,
        indices: Sequence[int],
        group_type: str,
        cadence_seconds: int | None = None,
        per_member_targets: Sequence[Mapping[str, Any]] | None = None,
        round_count: int | None = None,
    ) -> str | CompositionError:
        """
        Group the exercises at ``indices``.

        Args:
            routine: Routine to modify
            indices: Ascending, adjacent positions of the future members
            group_type: "standard" or "circuit_timed"
            cadence_seconds: Slot length for circuits (policy default if None)
            per_member_targets: One ``{metric: value}`` mapping per member; when
                None each member continues its own first set
            round_count: Sets per member; defaults to the first member's count

        Returns:
            The new group id, or the error explaining the rejection
        """
        if group_type not in GROUPED_TYPES:
            return InvalidCommandError(f"Unknown group type: {group_type!r}")
        indices = list(indices)
        if not indices:
            return GroupSizeError(group_type, 0)
        n_exercises = len(routine.exercises)
        if any(not 0 <= i < n_exercises for i in indices):
            return InvalidCommandError(f"Selection {indices} is outside the routine.")
        if any(b - a != 1 for a, b in zip(indices, indices[1:])):
            return NonContiguousSelectionError(indices)
        if len(indices) < min_group_size(group_type):
            return GroupSizeError(group_type, len(indices))

        members = [routine.exercises[i] for i in indices]
        if any(m.is_grouped for m in members):
            return InvalidCommandError("Ungroup the selected exercises before regrouping them.")

        if round_count is None:
            round_count = len(members[0].sets) or 1
        if round_count < 1:
            return InvalidCommandError("A group needs at least one round.")

        cadence: int | None = None
        if group_type == "circuit_timed":
            cadence = cadence_seconds if cadence_seconds is not None else self.policy.default_cadence_seconds
            if cadence <= 0:
                return InvalidCommandError("Circuit cadence must be a positive number of seconds.")

        if per_member_targets is not None and len(per_member_targets) != len(members):
            return InvalidCommandError(
                f"Expected targets for {len(members)} exercises, got {len(per_member_targets)}."
            )

        # Build every new set collection before touching the routine.
        seeded: list[list[WorkoutSet]] = []
        for pos, member in enumerate(members):
            if per_member_targets is not None:
                try:
                    template = build_set(per_member_targets[pos])
                except ValueError as exc:
                    return InvalidCommandError(str(exc))
            else:
                template = member.sets[0] if member.sets else default_set(False, self.policy)
            seeded.append([continuation_of(template) for _ in range(round_count)])

        group_id = new_id()
        for pos, (member, sets) in enumerate(zip(members, seeded)):
            member.sets = sets
            member.group_id = group_id
            member.group_order = pos
            member.group_type = group_type  # type: ignore[assignment]
            member.cadence_seconds = cadence
        self.apply_rest_policy(members)

        logger.debug(
            f"Formed {group_type} group {group_id} over {indices} with {round_count} rounds"
        )
        return group_id

    def ungroup(self, routine: Routine, group_id: str) -> CompositionError | None:
        """Clear group membership on every member; targets are left as they are."""
        members = self.group_members(routine, group_id)
        if not members:
            return InvalidCommandError(f"Unknown group: {group_id}")
        for member in members:
            member.clear_group()
        logger.debug(f"Ungrouped {group_id} ({len(members)} members)")
        return None

    # -------------------------------------------------------------------------
    # Rounds
    # -------------------------------------------------------------------------

    def add_round(self, routine: Routine, group_id: str) -> CompositionError | None:
        """Append one set to every member, continuing each member's last set."""
        members = self.group_members(routine, group_id)
        if not members:
            return InvalidCommandError(f"Unknown group: {group_id}")
        for member in members:
            template = member.sets[-1] if member.sets else None
            append_set(member.sets, template, policy=self.policy)
        self.apply_rest_policy(members)
        return None

    def remove_round(
        self, routine: Routine, group_id: str, round_index: int = -1
    ) -> CompositionError | None:
        """
        Remove one round from every member.

        Rejected with OrphanSetError, and nothing removed, when any member
        would be left without sets.
        """
        positions = self.groups_in(routine).get(group_id)
        if not positions:
            return InvalidCommandError(f"Unknown group: {group_id}")
        rounds = len(routine.exercises[positions[0]].sets)
        if not -rounds <= round_index < rounds:
            return InvalidCommandError(f"Round #{round_index + 1} does not exist.")
        for i in positions:
            if count(routine.exercises[i].sets) <= 1:
                return OrphanSetError(i)
        for i in positions:
            del routine.exercises[i].sets[round_index]
        return None

    # -------------------------------------------------------------------------
    # Type changes
    # -------------------------------------------------------------------------

    def change_group_type(
        self,
        routine: Routine,
        group_id: str,
        new_type: str,
        cadence_seconds: int | None = None,
    ) -> CompositionError | None:
        """Switch a group between standard and circuit_timed and re-normalise rest."""
        members = self.group_members(routine, group_id)
        if not members:
            return InvalidCommandError(f"Unknown group: {group_id}")
        if new_type not in GROUPED_TYPES:
            return InvalidCommandError(f"Unknown group type: {new_type!r}")
        if len(members) < min_group_size(new_type):
            return GroupSizeError(new_type, len(members))

        cadence: int | None = None
        if new_type == "circuit_timed":
            cadence = (
                cadence_seconds
                if cadence_seconds is not None
                else members[0].cadence_seconds or self.policy.default_cadence_seconds
            )
            if cadence <= 0:
                return InvalidCommandError("Circuit cadence must be a positive number of seconds.")

        for member in members:
            member.group_type = new_type  # type: ignore[assignment]
            member.cadence_seconds = cadence
        self.apply_rest_policy(members)
        logger.debug(f"Group {group_id} is now {new_type}")
        return None

    # -------------------------------------------------------------------------
    # Membership changes
    # -------------------------------------------------------------------------

    def add_to_group(self, routine: Routine, group_id: str, index: int) -> CompositionError | None:
        """
        Make the standalone exercise at ``index`` the new last member of a group.

        The exercise is moved directly after the group and its sets are
        rebuilt to the group's round count from its first set.
        """
        if not 0 <= index < len(routine.exercises):
            return InvalidCommandError(f"Exercise #{index + 1} does not exist.")
        entry = routine.exercises[index]
        if entry.is_grouped:
            return InvalidCommandError("This exercise is already in a group.")
        members = self.group_members(routine, group_id)
        if not members:
            return InvalidCommandError(f"Unknown group: {group_id}")

        lead = members[0]
        rounds = len(lead.sets)
        template = entry.sets[0] if entry.sets else default_set(False, self.policy)
        entry.sets = [continuation_of(template) for _ in range(rounds)]
        entry.group_id = group_id
        entry.group_order = len(members)
        entry.group_type = lead.group_type
        entry.cadence_seconds = lead.cadence_seconds

        routine.exercises.pop(index)
        last_pos = max(i for i, ex in enumerate(routine.exercises) if ex.group_id == group_id)
        routine.exercises.insert(last_pos + 1, entry)

        self.apply_rest_policy(members + [entry])
        logger.debug(f"Added exercise {entry.id} to group {group_id}")
        return None

    def remove_from_group(self, routine: Routine, index: int) -> CompositionError | None:
        """
        Take the member at ``index`` out of its group.

        It is placed directly after the remaining members so the group stays
        contiguous; a standard group left with one member is dissolved.
        """
        if not 0 <= index < len(routine.exercises):
            return InvalidCommandError(f"Exercise #{index + 1} does not exist.")
        entry = routine.exercises[index]
        if not entry.is_grouped:
            return InvalidCommandError("This exercise is not in a group.")
        group_id = entry.group_id

        routine.exercises.pop(index)
        entry.clear_group()
        remaining = [i for i, ex in enumerate(routine.exercises) if ex.group_id == group_id]
        insert_at = remaining[-1] + 1 if remaining else index
        routine.exercises.insert(insert_at, entry)

        self.recalc_ordering(routine)
        logger.debug(f"Removed exercise {entry.id} from group {group_id}")
        return None

    # -------------------------------------------------------------------------
    # Re-derivation
    # -------------------------------------------------------------------------

    def recalc_ordering(self, routine: Routine) -> list[str]:
        """
        Re-derive every group after a reorder, insertion or deletion.

        - groups whose members are no longer contiguous are ungrouped outright
        - standard groups reduced to one member are ungrouped
        - surviving groups are renumbered 0..n-1, take the type and cadence of
          their previous leader, are padded to a common round count and have
          the rest policy re-applied

        Running it twice gives the same result as running it once.

        Returns:
            Ids of the groups that were dissolved
        """
        dissolved: list[str] = []

        for ex in routine.exercises:
            if ex.group_id is None and (
                ex.group_order is not None or ex.group_type != "none" or ex.cadence_seconds is not None
            ):
                ex.clear_group()

        for group_id, positions in self.groups_in(routine).items():
            members = [routine.exercises[i] for i in positions]

            if positions[-1] - positions[0] + 1 != len(positions):
                for member in members:
                    member.clear_group()
                dissolved.append(group_id)
                logger.info(f"Ungrouped {group_id}: members are no longer adjacent")
                continue

            lead = min(
                members,
                key=lambda m: m.group_order if m.group_order is not None else len(members),
            )
            kind = lead.group_type if lead.group_type in GROUPED_TYPES else "standard"

            if len(members) < min_group_size(kind):
                for member in members:
                    member.clear_group()
                dissolved.append(group_id)
                logger.info(f"Ungrouped {group_id}: a superset needs two exercises")
                continue

            cadence = None
            if kind == "circuit_timed":
                cadence = lead.cadence_seconds or self.policy.default_cadence_seconds

            rounds = max(len(m.sets) for m in members) or 1
            for pos, member in enumerate(members):
                member.group_order = pos
                member.group_type = kind  # type: ignore[assignment]
                member.cadence_seconds = cadence
                while len(member.sets) < rounds:
                    template = member.sets[-1] if member.sets else None
                    append_set(member.sets, template, policy=self.policy)

            self.apply_rest_policy(members)

        return dissolved
