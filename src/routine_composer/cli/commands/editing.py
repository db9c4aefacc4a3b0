"""Interactive edit session: every engine command plus undo/redo and save."""

from typing import Annotated

import typer

from ...core.composer import CompositionEngine
from ...core.errors import CommandResult
from ...core.exercises.registry import get_catalog
from ...core.models import ExerciseEntry
from ...io.routine_store import RoutineStore
from ...io.serializers import ValidationError, parse_target
from .. import views
from ..app import RoutinesDirOption, app, get_store, open_engine, to_canonical_units

HELP_TEXT = """\
  [cyan]a EX [POS][/cyan]           add catalog exercise EX (at 1-based POS)
  [cyan]r POS[/cyan]                remove exercise
  [cyan]m FROM TO[/cyan]            move exercise
  [cyan]g POS.. \\[xROUNDS][/cyan]    superset adjacent exercises, e.g. g 1 2 x3
  [cyan]c SECS POS.. \\[xROUNDS][/cyan] timed circuit, e.g. c 45 1 2 3 x4
  [cyan]u G[/cyan]                  ungroup group G (letter)
  [cyan]t G standard|circuit [SECS][/cyan]  change group type
  [cyan]j POS G[/cyan]              join exercise to group G as last member
  [cyan]l POS[/cyan]                leave group
  [cyan]+ POS[/cyan] / [cyan]- POS [SET][/cyan]   add / remove a set (a round when grouped)
  [cyan]s POS METRIC VALUE [UNIT][/cyan]  set metric on every set, e.g. s 2 weight 45 lb
  [cyan]> POS METRIC[/cyan] / [cyan]< POS METRIC[/cyan]  step metric up / down
  [cyan]n NAME[/cyan]               rename routine
  [cyan]goal GOAL[/cyan]            strength, hypertrophy, endurance, custom or rest
  [cyan]z[/cyan] undo   [cyan]y[/cyan] redo   [cyan]o[/cyan] restore original   [cyan]h[/cyan] history
  [cyan]w[/cyan] save   [cyan]q[/cyan] quit   [cyan]?[/cyan] help"""


class _UsageError(Exception):
    """A command line that could not be parsed."""


def _pos(token: str) -> int:
    try:
        position = int(token)
    except ValueError:
        raise _UsageError(f"Expected a position, got {token!r}") from None
    if position < 1:
        raise _UsageError(f"Positions start at 1, got {token!r}")
    return position - 1


def _group(engine: CompositionEngine, token: str) -> str:
    group_id = views.group_ids_by_label(engine.routine).get(token.upper())
    if group_id is None:
        raise _UsageError(f"No group {token!r}")
    return group_id


def _split_rounds(tokens: list[str]) -> tuple[list[str], int | None]:
    if tokens and tokens[-1].lower().startswith("x"):
        try:
            return tokens[:-1], int(tokens[-1][1:])
        except ValueError:
            raise _UsageError(f"Expected rounds like x3, got {tokens[-1]!r}") from None
    return tokens, None


def run_command(engine: CompositionEngine, line: str) -> CommandResult | None:
    """
    Translate one edit-session line into an engine command.

    Returns the command result, or None for lines that only print.

    Raises:
        _UsageError: If the line cannot be parsed
    """
    tokens = line.split()
    cmd, args = tokens[0].lower(), tokens[1:]

    def need(n: int) -> None:
        if len(args) < n:
            raise _UsageError(f"'{cmd}' needs {n} argument(s); type ? for help")

    if cmd == "a":
        need(1)
        catalog = get_catalog()
        entry = ExerciseEntry(exercise_ref=args[0], name=catalog.display_name(args[0]))
        return engine.insert_exercise(entry, _pos(args[1]) if len(args) > 1 else None)
    if cmd == "r":
        need(1)
        return engine.remove_exercise(_pos(args[0]))
    if cmd == "m":
        need(2)
        return engine.reorder_exercise(_pos(args[0]), _pos(args[1]))
    if cmd == "g":
        positions, rounds = _split_rounds(args)
        return engine.group_selection([_pos(p) for p in positions], "standard", round_count=rounds)
    if cmd == "c":
        need(2)
        positions, rounds = _split_rounds(args[1:])
        try:
            cadence = int(args[0])
        except ValueError:
            raise _UsageError(f"Expected cadence seconds, got {args[0]!r}") from None
        return engine.group_selection(
            [_pos(p) for p in positions], "circuit_timed", cadence_seconds=cadence, round_count=rounds
        )
    if cmd == "u":
        need(1)
        return engine.ungroup(_group(engine, args[0]))
    if cmd == "t":
        need(2)
        new_type = {"standard": "standard", "superset": "standard", "circuit": "circuit_timed"}.get(args[1])
        if new_type is None:
            raise _UsageError("Group type must be standard or circuit")
        cadence = int(args[2]) if len(args) > 2 and args[2].isdigit() else None
        return engine.change_group_type(_group(engine, args[0]), new_type, cadence)
    if cmd == "j":
        need(2)
        return engine.add_to_group(_group(engine, args[1]), _pos(args[0]))
    if cmd == "l":
        need(1)
        return engine.remove_from_group(_pos(args[0]))
    if cmd == "+":
        need(1)
        return engine.add_set(_pos(args[0]))
    if cmd == "-":
        need(1)
        return engine.remove_set(_pos(args[0]), _pos(args[1]) if len(args) > 1 else -1)
    if cmd == "s":
        need(3)
        try:
            target = to_canonical_units(parse_target(args[2], args[1]), args[1], args[3] if len(args) > 3 else None)
        except (ValidationError, ValueError) as e:
            raise _UsageError(str(e)) from None
        return engine.bulk_apply_metric(_pos(args[0]), args[1], target)
    if cmd in (">", "<"):
        need(2)
        return engine.step_metric(_pos(args[0]), args[1], 1 if cmd == ">" else -1)
    if cmd == "n":
        need(1)
        return engine.update_details(name=line.split(None, 1)[1])
    if cmd == "goal":
        need(1)
        return engine.update_details(goal=args[0])
    if cmd == "z":
        if not engine.can_undo():
            views.print_info("Nothing to undo.")
            return None
        return engine.undo()
    if cmd == "y":
        if not engine.can_redo():
            views.print_info("Nothing to redo.")
            return None
        return engine.redo()
    if cmd == "o":
        return engine.restore_original()
    if cmd == "h":
        views.print_history(engine.history_descriptions(), engine.history.pointer)
        return None
    if cmd == "?":
        views.console.print(HELP_TEXT)
        return None
    raise _UsageError(f"Unknown command {cmd!r}; type ? for help")


def edit_session(engine: CompositionEngine, store: RoutineStore) -> None:
    """Read-eval-print loop over one engine until the user quits."""
    catalog = get_catalog()
    views.print_routine(engine.routine, engine.estimate_duration(), catalog.display_name)
    views.console.print("[dim]Type ? for help.[/dim]")

    while True:
        try:
            line = views.console.input("edit> ").strip()
        except EOFError:
            line = "q"
        if not line:
            continue

        cmd = line.split()[0].lower()
        if cmd == "w":
            try:
                views.print_result(engine.save(store), "Saved.")
            except ValidationError as e:
                views.print_error(f"Could not save: {e}")
            continue
        if cmd == "q":
            if engine.has_unsaved_changes and not views.confirm_action("Discard unsaved changes?"):
                continue
            return

        try:
            result = run_command(engine, line)
        except _UsageError as e:
            views.print_error(str(e))
            continue
        if result is not None and views.print_result(result):
            views.print_routine(result.routine, engine.estimate_duration(), catalog.display_name)


@app.command()
def edit(
    routine_ref: Annotated[str, typer.Argument(help="Routine id (or unique prefix)")],
    routines_dir: RoutinesDirOption = None,
) -> None:
    """
    Edit a routine interactively with undo/redo.

    Nothing is written until you save with 'w'.
    """
    store = get_store(routines_dir)
    edit_session(open_engine(store, routine_ref), store)
