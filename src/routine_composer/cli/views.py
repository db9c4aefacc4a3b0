"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of routines.
"""

from rich.console import Console
from rich.table import Table

from ..core.duration import format_duration
from ..core.errors import CommandResult
from ..core.models import (
    Exact,
    ExerciseEntry,
    MinPlus,
    PercentOfMax,
    Range,
    Routine,
    Target,
    WorkoutSet,
    rest_seconds,
)

console = Console()

# Short labels for the group column; groups get letters A, B, C... in order.
_GROUP_TYPE_LABELS = {"standard": "superset", "circuit_timed": "circuit"}

_METRIC_SUFFIX = {
    "reps": "",
    "weight": "kg",
    "duration": "s",
    "distance": "m",
    "rest": "s",
    "tempo": "",
}


def _fmt_number(value: float) -> str:
    return f"{value:g}"


def format_target(target: Target | None) -> str:
    """Render a target: ``8``, ``8-12``, ``10+``, ``75%``; ``-`` when absent."""
    if target is None:
        return "-"
    if isinstance(target, Exact):
        return target.value if isinstance(target.value, str) else _fmt_number(target.value)
    if isinstance(target, Range):
        return f"{_fmt_number(target.low)}-{_fmt_number(target.high)}"
    if isinstance(target, MinPlus):
        return f"{_fmt_number(target.low)}+"
    if isinstance(target, PercentOfMax):
        return f"{_fmt_number(target.percent)}%"
    return "?"


def format_set(workout_set: WorkoutSet) -> str:
    """Render the active metrics of one set, e.g. ``8 reps @ 20kg``."""
    parts: list[str] = []
    for metric in workout_set.metrics:
        if metric == "rest":
            continue
        value = format_target(workout_set.target(metric))
        if metric == "reps":
            parts.append(f"{value} reps")
        elif metric == "tempo":
            parts.append(f"tempo {value}")
        else:
            parts.append(f"{value}{_METRIC_SUFFIX[metric]}")
    return " @ ".join(parts) if parts else "-"


def _group_labels(routine: Routine) -> dict[str, str]:
    labels: dict[str, str] = {}
    for ex in routine.exercises:
        if ex.group_id is not None and ex.group_id not in labels:
            labels[ex.group_id] = chr(ord("A") + len(labels) % 26)
    return labels


def _group_cell(entry: ExerciseEntry, labels: dict[str, str]) -> str:
    if entry.group_id is None:
        return ""
    label = f"{labels[entry.group_id]}{(entry.group_order or 0) + 1}"
    kind = _GROUP_TYPE_LABELS.get(entry.group_type, entry.group_type)
    if entry.group_type == "circuit_timed":
        return f"{label} {kind} {entry.cadence_seconds}s"
    return f"{label} {kind}"


def group_ids_by_label(routine: Routine) -> dict[str, str]:
    """Map the displayed letter (A, B, ...) back to the group id."""
    return {label: gid for gid, label in _group_labels(routine).items()}


def format_routine_table(routine: Routine, display_name=None) -> Table:
    """
    Create a Rich table showing every exercise of a routine.

    Args:
        routine: Routine to display
        display_name: Optional callable mapping exercise_ref to a display name

    Returns:
        Rich Table object
    """
    table = Table(title=routine.name)

    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Exercise", style="cyan")
    table.add_column("Group", style="magenta")
    table.add_column("Sets", justify="right")
    table.add_column("Target", style="green")
    table.add_column("Rest(s)", justify="right")

    labels = _group_labels(routine)
    for i, entry in enumerate(routine.exercises, 1):
        name = entry.name or (display_name(entry.exercise_ref) if display_name else entry.exercise_ref)
        first = entry.sets[0] if entry.sets else None
        rests = {rest_seconds(s) for s in entry.sets}
        rest_cell = "-" if rests == {0} else "/".join(_fmt_number(r) for r in sorted(rests))
        table.add_row(
            str(i),
            name,
            _group_cell(entry, labels),
            str(len(entry.sets)),
            format_set(first) if first is not None else "-",
            rest_cell,
        )

    return table


def print_routine(routine: Routine, estimate_seconds: int | None = None, display_name=None) -> None:
    """Print a routine table with its metadata line."""
    console.print(format_routine_table(routine, display_name))
    meta = [f"goal: {routine.goal}"]
    if estimate_seconds is not None:
        meta.append(f"est. {format_duration(estimate_seconds)}")
    if routine.id:
        meta.append(f"id: {routine.id}")
    console.print(f"[dim]{' | '.join(meta)}[/dim]")
    if routine.description:
        console.print(routine.description)


def format_routine_list_table(routines: list[Routine], estimates: list[int]) -> Table:
    """
    Create a Rich table listing stored routines.

    Args:
        routines: Routines to list
        estimates: Estimated seconds per routine (same order)

    Returns:
        Rich Table object
    """
    table = Table(title="Routines")

    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Name", style="cyan")
    table.add_column("Goal", style="magenta")
    table.add_column("Exercises", justify="right")
    table.add_column("Est.", justify="right")
    table.add_column("Id", style="dim")

    for i, (routine, seconds) in enumerate(zip(routines, estimates), 1):
        table.add_row(
            str(i),
            routine.name,
            routine.goal,
            str(len(routine.exercises)),
            format_duration(seconds),
            routine.id,
        )

    return table


def print_history(descriptions: list[str], pointer: int) -> None:
    """Print the edit history with the current entry marked."""
    for i, text in enumerate(descriptions):
        marker = ">" if i == pointer else " "
        style = "bold" if i == pointer else "dim"
        console.print(f"[{style}]{marker} {i:>2}. {text}[/{style}]")


def print_result(result: CommandResult, success_message: str | None = None) -> bool:
    """Print the error of a failed command (or the success message); return ok."""
    if not result.ok:
        print_error(result.error.message)  # type: ignore[union-attr]
        return False
    if success_message:
        print_success(success_message)
    return True


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{message} \\[y/N]: ")
    return response.lower() in ("y", "yes")
