"""Shared Typer app object, shared option types, and store utilities."""

from pathlib import Path
from typing import Annotated, Optional

import typer

from ..core.composer import CompositionEngine
from ..core.engine.config_loader import load_policy
from ..core.errors import CommandResult
from ..core.exercises.registry import get_catalog
from ..core.models import Exact, MinPlus, Range, Target
from ..core.units import CANONICAL_UNITS, convert
from ..io.routine_store import RoutineStore, get_default_routines_dir
from ..io.serializers import ValidationError
from . import views

# Shared --dir option type used across all commands
RoutinesDirOption = Annotated[
    Optional[Path],
    typer.Option("--dir", "-d", help="Directory holding routine JSON files"),
]

app = typer.Typer(
    name="routine-composer",
    help="Compose workout routines with supersets, circuits and undo/redo.",
    no_args_is_help=True,
)


def get_store(routines_dir: Path | None) -> RoutineStore:
    """Get routine store from path or default location."""
    if routines_dir is None:
        routines_dir = get_default_routines_dir()
    return RoutineStore(routines_dir)


def resolve_routine_id(store: RoutineStore, text: str) -> str:
    """
    Accept a full routine id or a unique prefix of one.

    Exits with an error message when nothing (or more than one routine)
    matches.
    """
    try:
        if store.exists(text):
            return text
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)
    matches = [r.id for r in store.list_routines() if r.id.startswith(text)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        views.print_error(f"No routine with id {text!r}")
    else:
        views.print_error(f"Id prefix {text!r} is ambiguous: {', '.join(matches)}")
    raise typer.Exit(1)


def open_engine(store: RoutineStore, routine_ref: str) -> CompositionEngine:
    """Load a stored routine into a fresh edit session."""
    routine_id = resolve_routine_id(store, routine_ref)
    try:
        routine = store.load(routine_id)
    except ValidationError as e:
        views.print_error(f"Invalid data: {e}")
        raise typer.Exit(1)
    if routine is None:
        views.print_error(f"No routine with id {routine_id!r}")
        raise typer.Exit(1)
    return CompositionEngine(routine, catalog=get_catalog(), policy=load_policy())


def commit(engine: CompositionEngine, result: CommandResult, store: RoutineStore, message: str) -> None:
    """Save after a successful one-shot command; exit 1 on any failure."""
    if not views.print_result(result):
        raise typer.Exit(1)
    try:
        saved = engine.save(store)
    except ValidationError as e:
        views.print_error(f"Could not save: {e}")
        raise typer.Exit(1)
    if not views.print_result(saved, message):
        raise typer.Exit(1)


def to_canonical_units(target: Target, metric: str, unit: str | None) -> Target:
    """
    Convert a user-entered weight or distance target to kg / m.

    Percent-of-max and tempo targets are unit-free and pass through.

    Raises:
        ValueError: On an unknown unit or a unit of the wrong dimension
    """
    if unit is None or metric not in ("weight", "distance"):
        return target
    canonical = CANONICAL_UNITS["mass" if metric == "weight" else "length"]

    def conv(value: float) -> float:
        return round(convert(value, unit, canonical), 2)

    if isinstance(target, Exact) and not isinstance(target.value, str):
        return Exact(conv(target.value))
    if isinstance(target, Range):
        return Range(conv(target.low), conv(target.high))
    if isinstance(target, MinPlus):
        return MinPlus(conv(target.low))
    return target
