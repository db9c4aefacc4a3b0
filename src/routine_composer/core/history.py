"""
Bounded undo/redo history of routine snapshots.

Every entry holds its own deep copy of the routine, and every snapshot
handed back out is copied again, so nothing the caller does to a live
routine can reach a stored entry.
"""

import copy
from dataclasses import dataclass

from .config import MAX_HISTORY_ENTRIES
from .errors import HistoryBoundsError
from .models import Routine


def snapshot(routine: Routine) -> Routine:
    """Return a structurally independent copy of ``routine``."""
    return copy.deepcopy(routine)


def restore(saved: Routine) -> Routine:
    """Return a live routine rebuilt from a snapshot (the snapshot stays intact)."""
    return copy.deepcopy(saved)


@dataclass(frozen=True)
class HistoryEntry:
    snapshot: Routine
    description: str


class EditHistory:
    """
    Ordered list of snapshots plus a pointer to the current one.

    The pointer always indexes the entry matching the live routine.  Recording
    while the pointer is behind the end discards the redo branch first.
    """

    def __init__(self, max_entries: int = MAX_HISTORY_ENTRIES):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._entries: list[HistoryEntry] = []
        self._pointer = -1

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def pointer(self) -> int:
        return self._pointer

    def record(self, routine: Routine, description: str) -> None:
        """
        Append a snapshot of ``routine`` and make it current.

        Args:
            routine: State after the accepted mutation
            description: Short label shown in history listings
        """
        if self._pointer < len(self._entries) - 1:
            del self._entries[self._pointer + 1 :]
        self._entries.append(HistoryEntry(snapshot(routine), description))
        self._pointer += 1
        if len(self._entries) > self.max_entries:
            del self._entries[0]
            self._pointer -= 1

    def can_undo(self) -> bool:
        return self._pointer > 0

    def can_redo(self) -> bool:
        return self._pointer < len(self._entries) - 1

    def undo(self) -> Routine:
        """
        Step back one entry and return a copy of its snapshot.

        Raises:
            HistoryBoundsError: If can_undo() is False
        """
        if not self.can_undo():
            raise HistoryBoundsError("undo")
        self._pointer -= 1
        return restore(self._entries[self._pointer].snapshot)

    def redo(self) -> Routine:
        """
        Step forward one entry and return a copy of its snapshot.

        Raises:
            HistoryBoundsError: If can_redo() is False
        """
        if not self.can_redo():
            raise HistoryBoundsError("redo")
        self._pointer += 1
        return restore(self._entries[self._pointer].snapshot)

    def restore_original(self, baseline: Routine) -> None:
        """Forget everything and start again from ``baseline``."""
        self._entries = [HistoryEntry(snapshot(baseline), "initial")]
        self._pointer = 0

    def current(self) -> Routine:
        """Copy of the snapshot under the pointer."""
        if self._pointer < 0:
            raise HistoryBoundsError("read")
        return restore(self._entries[self._pointer].snapshot)

    def descriptions(self) -> list[str]:
        """Labels of all entries, oldest first."""
        return [e.description for e in self._entries]

    def snapshot_at(self, index: int) -> Routine:
        """Copy of the snapshot at ``index`` (oldest is 0)."""
        return restore(self._entries[index].snapshot)
