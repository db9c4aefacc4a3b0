"""
JSON-file storage for routines.

One ``<id>.json`` document per routine inside a single directory.
"""

from datetime import datetime
from pathlib import Path

from loguru import logger

from ..core.models import Routine, check_invariants, new_id
from .serializers import ValidationError, routine_from_json, routine_to_json


class RoutineStore:
    """
    Repository for routines stored as JSON documents.

    ``save`` assigns an id and ``created_at`` on first save and refreshes
    ``updated_at`` every time.  Routines that break a structural invariant
    are refused.
    """

    def __init__(self, routines_dir: str | Path):
        """
        Initialize the store.

        Args:
            routines_dir: Directory holding one JSON file per routine
        """
        self.routines_dir = Path(routines_dir)

    def _path_for(self, routine_id: str) -> Path:
        if not routine_id or "/" in routine_id or "\\" in routine_id or routine_id.startswith("."):
            raise ValidationError(f"Invalid routine id: {routine_id!r}")
        return self.routines_dir / f"{routine_id}.json"

    def exists(self, routine_id: str) -> bool:
        """Check if a routine with this id is stored."""
        return self._path_for(routine_id).exists()

    def load(self, routine_id: str) -> Routine | None:
        """
        Load one routine.

        Returns:
            The routine, or None if no file exists for the id

        Raises:
            ValidationError: If the file exists but cannot be parsed
        """
        path = self._path_for(routine_id)
        if not path.exists():
            return None
        try:
            return routine_from_json(path.read_text(encoding="utf-8"))
        except ValidationError as e:
            raise ValidationError(f"Error parsing {path}: {e}") from e

    def save(self, routine: Routine) -> Routine:
        """
        Write a routine and return the stored version.

        Raises:
            ValidationError: If the routine breaks a structural invariant or
                the file cannot be written
        """
        problems = check_invariants(routine)
        if problems:
            raise ValidationError("Refusing to save invalid routine: " + "; ".join(problems))

        now = datetime.now().isoformat(timespec="seconds")
        if not routine.id:
            routine.id = new_id()
        if routine.created_at is None:
            routine.created_at = now
        routine.updated_at = now

        path = self._path_for(routine.id)
        tmp = path.with_suffix(".json.tmp")
        try:
            self.routines_dir.mkdir(parents=True, exist_ok=True)
            tmp.write_text(routine_to_json(routine), encoding="utf-8")
            tmp.replace(path)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise ValidationError(f"Error writing {path}: {e}") from e
        logger.debug(f"Wrote routine {routine.id} to {path}")
        return routine

    def list_routines(self) -> list[Routine]:
        """
        Load every stored routine, sorted by name.

        Unreadable files are skipped with a warning so one bad document does
        not hide the rest.
        """
        if not self.routines_dir.exists():
            return []
        routines: list[Routine] = []
        for path in sorted(self.routines_dir.glob("*.json")):
            try:
                routines.append(routine_from_json(path.read_text(encoding="utf-8")))
            except ValidationError as e:
                logger.warning(f"Skipping {path}: {e}")
        routines.sort(key=lambda r: r.name.lower())
        return routines

    def delete(self, routine_id: str) -> bool:
        """
        Delete a routine.

        Returns:
            True if a file was removed
        """
        path = self._path_for(routine_id)
        if not path.exists():
            return False
        path.unlink()
        return True


def get_default_routines_dir() -> Path:
    """Default storage directory: ~/.routine-composer/routines."""
    return Path.home() / ".routine-composer" / "routines"
