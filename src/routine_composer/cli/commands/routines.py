"""Routine commands: new, list, show, estimate, delete, catalog and one-shot edits."""

import json
from typing import Annotated, Optional

import typer

from ...core.composer import CompositionEngine
from ...core.duration import estimate_duration, format_duration
from ...core.engine.config_loader import load_policy
from ...core.exercises.registry import get_catalog
from ...core.models import ExerciseEntry, Routine
from ...io.serializers import ValidationError, parse_target, parse_targets_string
from .. import views
from ..app import (
    RoutinesDirOption,
    app,
    commit,
    get_store,
    open_engine,
    resolve_routine_id,
    to_canonical_units,
)


@app.command()
def new(
    name: Annotated[str, typer.Argument(help="Routine name")],
    exercises: Annotated[
        Optional[list[str]],
        typer.Option("--exercise", "-x", help="Catalog exercise id to add (repeatable)"),
    ] = None,
    goal: Annotated[
        str,
        typer.Option("--goal", "-g", help="strength, hypertrophy, endurance, custom or rest"),
    ] = "custom",
    description: Annotated[
        Optional[str],
        typer.Option("--description", help="Free-text description"),
    ] = None,
    routines_dir: RoutinesDirOption = None,
) -> None:
    """
    Create a routine, optionally seeded with exercises from the catalog.

    A training routine needs at least one exercise; rest days may be empty.
    """
    store = get_store(routines_dir)
    catalog = get_catalog()

    try:
        routine = Routine(name=name, goal=goal, description=description)  # type: ignore[arg-type]
    except ValueError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    engine = CompositionEngine(routine, catalog=catalog, policy=load_policy())
    for exercise_id in exercises or []:
        if exercise_id not in catalog:
            views.print_warning(f"'{exercise_id}' is not in the catalog; adding it as a strength exercise")
        entry = ExerciseEntry(exercise_ref=exercise_id, name=catalog.display_name(exercise_id))
        if not views.print_result(engine.insert_exercise(entry)):
            raise typer.Exit(1)

    try:
        result = engine.save(store)
    except ValidationError as e:
        views.print_error(f"Could not save: {e}")
        raise typer.Exit(1)
    if not views.print_result(result, f"Created routine '{name}'"):
        raise typer.Exit(1)
    views.console.print(f"id: {result.routine.id}")


@app.command("list")
def list_routines(routines_dir: RoutinesDirOption = None) -> None:
    """List stored routines."""
    store = get_store(routines_dir)
    routines = store.list_routines()
    if not routines:
        views.print_info("No routines yet. Create one with 'new'.")
        return
    policy = load_policy()
    estimates = [estimate_duration(r, policy) for r in routines]
    views.console.print(views.format_routine_list_table(routines, estimates))


@app.command()
def show(
    routine_ref: Annotated[str, typer.Argument(help="Routine id (or unique prefix)")],
    routines_dir: RoutinesDirOption = None,
) -> None:
    """Show every exercise of a routine."""
    store = get_store(routines_dir)
    engine = open_engine(store, routine_ref)
    views.print_routine(engine.routine, engine.estimate_duration(), get_catalog().display_name)


@app.command()
def estimate(
    routine_ref: Annotated[str, typer.Argument(help="Routine id (or unique prefix)")],
    json_out: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output as JSON for machine processing"),
    ] = False,
    routines_dir: RoutinesDirOption = None,
) -> None:
    """Estimate how long a routine takes."""
    store = get_store(routines_dir)
    engine = open_engine(store, routine_ref)
    seconds = engine.estimate_duration()
    if json_out:
        print(json.dumps({"id": engine.routine.id, "seconds": seconds}))
        return
    views.console.print(f"Estimated duration: [bold]{format_duration(seconds)}[/bold]")


@app.command()
def delete(
    routine_ref: Annotated[str, typer.Argument(help="Routine id (or unique prefix)")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation")] = False,
    routines_dir: RoutinesDirOption = None,
) -> None:
    """Delete a stored routine."""
    store = get_store(routines_dir)
    routine_id = resolve_routine_id(store, routine_ref)
    if not yes and not views.confirm_action(f"Delete routine {routine_id}?"):
        views.print_info("Cancelled.")
        return
    store.delete(routine_id)
    views.print_success(f"Deleted routine {routine_id}")


@app.command()
def catalog() -> None:
    """List the exercises available in the catalog."""
    for definition in get_catalog().all():
        views.console.print(
            f"[cyan]{definition.exercise_id:<20}[/cyan] {definition.display_name:<22} "
            f"[dim]{definition.category}[/dim]"
        )


# ---------------------------------------------------------------------------
# One-shot edits: load, apply one command, save
# ---------------------------------------------------------------------------


@app.command()
def add(
    routine_ref: Annotated[str, typer.Argument(help="Routine id (or unique prefix)")],
    exercise_id: Annotated[str, typer.Argument(help="Catalog exercise id")],
    at: Annotated[
        Optional[int],
        typer.Option("--at", help="1-based position (default: end)"),
    ] = None,
    routines_dir: RoutinesDirOption = None,
) -> None:
    """Add an exercise to a routine."""
    store = get_store(routines_dir)
    engine = open_engine(store, routine_ref)
    name = get_catalog().display_name(exercise_id)
    entry = ExerciseEntry(exercise_ref=exercise_id, name=name)
    result = engine.insert_exercise(entry, at - 1 if at is not None else None)
    commit(engine, result, store, f"Added {name}")


@app.command()
def remove(
    routine_ref: Annotated[str, typer.Argument(help="Routine id (or unique prefix)")],
    position: Annotated[int, typer.Argument(help="1-based exercise position")],
    routines_dir: RoutinesDirOption = None,
) -> None:
    """Remove an exercise from a routine."""
    store = get_store(routines_dir)
    engine = open_engine(store, routine_ref)
    commit(engine, engine.remove_exercise(position - 1), store, f"Removed exercise #{position}")


@app.command()
def move(
    routine_ref: Annotated[str, typer.Argument(help="Routine id (or unique prefix)")],
    from_position: Annotated[int, typer.Argument(help="1-based current position")],
    to_position: Annotated[int, typer.Argument(help="1-based new position")],
    routines_dir: RoutinesDirOption = None,
) -> None:
    """Move an exercise; groups broken by the move are ungrouped."""
    store = get_store(routines_dir)
    engine = open_engine(store, routine_ref)
    result = engine.reorder_exercise(from_position - 1, to_position - 1)
    commit(engine, result, store, f"Moved exercise #{from_position} to #{to_position}")


@app.command()
def group(
    routine_ref: Annotated[str, typer.Argument(help="Routine id (or unique prefix)")],
    positions: Annotated[list[int], typer.Argument(help="1-based adjacent positions")],
    circuit: Annotated[
        bool,
        typer.Option("--circuit", help="Timed circuit instead of a superset"),
    ] = False,
    cadence: Annotated[
        Optional[int],
        typer.Option("--cadence", help="Seconds per circuit slot"),
    ] = None,
    rounds: Annotated[
        Optional[int],
        typer.Option("--rounds", "-r", help="Number of rounds"),
    ] = None,
    targets: Annotated[
        Optional[str],
        typer.Option("--targets", "-t", help='Per-member targets, e.g. "reps=8; reps=8, weight=20"'),
    ] = None,
    routines_dir: RoutinesDirOption = None,
) -> None:
    """Group adjacent exercises into a superset or timed circuit."""
    store = get_store(routines_dir)
    engine = open_engine(store, routine_ref)

    per_member = None
    if targets is not None:
        try:
            per_member = parse_targets_string(targets)
        except ValidationError as e:
            views.print_error(str(e))
            raise typer.Exit(1)

    result = engine.group_selection(
        [p - 1 for p in positions],
        "circuit_timed" if circuit else "standard",
        cadence_seconds=cadence,
        per_member_targets=per_member,
        round_count=rounds,
    )
    commit(engine, result, store, "Grouped exercises " + ", ".join(str(p) for p in positions))


@app.command()
def ungroup(
    routine_ref: Annotated[str, typer.Argument(help="Routine id (or unique prefix)")],
    label: Annotated[str, typer.Argument(help="Group letter as shown by 'show' (A, B, ...)")],
    routines_dir: RoutinesDirOption = None,
) -> None:
    """Dissolve a group."""
    store = get_store(routines_dir)
    engine = open_engine(store, routine_ref)
    group_id = views.group_ids_by_label(engine.routine).get(label.upper())
    if group_id is None:
        views.print_error(f"No group {label!r}")
        raise typer.Exit(1)
    commit(engine, engine.ungroup(group_id), store, f"Ungrouped {label.upper()}")


@app.command("set-metric")
def set_metric(
    routine_ref: Annotated[str, typer.Argument(help="Routine id (or unique prefix)")],
    position: Annotated[int, typer.Argument(help="1-based exercise position")],
    metric: Annotated[str, typer.Argument(help="reps, weight, duration, distance, rest or tempo")],
    value: Annotated[str, typer.Argument(help="8, 8-12, 10+, 75% or a tempo like 2-0-1-0")],
    unit: Annotated[
        Optional[str],
        typer.Option("--unit", "-u", help="Unit of the value: kg, lb, m, km, mi"),
    ] = None,
    routines_dir: RoutinesDirOption = None,
) -> None:
    """Set one metric on every set of an exercise."""
    store = get_store(routines_dir)
    engine = open_engine(store, routine_ref)
    try:
        target = to_canonical_units(parse_target(value, metric), metric, unit)
    except (ValidationError, ValueError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)
    result = engine.bulk_apply_metric(position - 1, metric, target)
    commit(engine, result, store, f"Set {metric} on exercise #{position}")
