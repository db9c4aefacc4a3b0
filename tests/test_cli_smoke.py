"""
Minimal smoke tests for routine-composer CLI.

Tests basic functionality:
- App runs without errors
- Routines are created and listed
- One-shot edits are saved
- Grouping errors exit non-zero
- The interactive editor applies, undoes and saves edits
"""

import json
import re
import tempfile
from pathlib import Path

import pytest
from typer.testing import CliRunner

from routine_composer.cli.main import app
from routine_composer.core.models import Exact
from routine_composer.io.routine_store import RoutineStore
from routine_composer.io.serializers import ValidationError


runner = CliRunner()


@pytest.fixture
def temp_routines_dir():
    """Create a temporary directory for routine files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def _new(routines_dir: Path, name: str, *exercises: str) -> str:
    args = ["new", name, "--dir", str(routines_dir)]
    for ex in exercises:
        args += ["-x", ex]
    result = runner.invoke(app, args)
    assert result.exit_code == 0, result.output
    match = re.search(r"id: ([0-9a-f]{32})", result.output)
    assert match, result.output
    return match.group(1)


def _load(routines_dir: Path, routine_id: str):
    routine = RoutineStore(routines_dir).load(routine_id)
    assert routine is not None
    return routine


class TestCLISmoke:
    """Basic smoke tests for CLI commands."""

    def test_app_help(self):
        """Test that app runs and shows help."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "routine" in result.output.lower()

    def test_catalog_lists_exercises(self):
        result = runner.invoke(app, ["catalog"])
        assert result.exit_code == 0
        assert "bench_press" in result.output

    def test_new_creates_routine(self, temp_routines_dir):
        routine_id = _new(temp_routines_dir, "Push", "bench_press", "running")

        routine = _load(temp_routines_dir, routine_id)
        assert routine.name == "Push"
        assert [ex.exercise_ref for ex in routine.exercises] == ["bench_press", "running"]
        assert routine.exercises[1].sets[0].metrics == ["duration", "rest"]

    def test_new_empty_routine_fails(self, temp_routines_dir):
        result = runner.invoke(app, ["new", "Nothing", "--dir", str(temp_routines_dir)])
        assert result.exit_code == 1
        assert list(temp_routines_dir.glob("*.json")) == []

    def test_new_empty_rest_day(self, temp_routines_dir):
        result = runner.invoke(app, ["new", "Off", "--goal", "rest", "--dir", str(temp_routines_dir)])
        assert result.exit_code == 0

    def test_list_and_show(self, temp_routines_dir):
        routine_id = _new(temp_routines_dir, "Legs", "back_squat")

        listed = runner.invoke(app, ["list", "--dir", str(temp_routines_dir)])
        shown = runner.invoke(app, ["show", routine_id[:8], "--dir", str(temp_routines_dir)])

        assert listed.exit_code == 0
        assert "Legs" in listed.output
        assert shown.exit_code == 0
        assert "Back Squat" in shown.output

    def test_estimate_json(self, temp_routines_dir):
        routine_id = _new(temp_routines_dir, "Legs", "back_squat")

        result = runner.invoke(app, ["estimate", routine_id, "--json", "--dir", str(temp_routines_dir)])

        assert result.exit_code == 0
        data = json.loads(result.output)
        # 8 reps * 4 s + 60 s rest
        assert data == {"id": routine_id, "seconds": 92}

    def test_group_and_set_metric(self, temp_routines_dir):
        d = str(temp_routines_dir)
        routine_id = _new(temp_routines_dir, "Upper", "bench_press", "barbell_row")

        grouped = runner.invoke(
            app, ["group", routine_id, "1", "2", "--rounds", "3", "-t", "reps=8; reps=8, weight=20", "--dir", d]
        )
        weighted = runner.invoke(app, ["set-metric", routine_id, "2", "weight", "100", "-u", "lb", "--dir", d])

        assert grouped.exit_code == 0, grouped.output
        assert weighted.exit_code == 0, weighted.output
        bench, row = _load(temp_routines_dir, routine_id).exercises
        assert bench.group_id == row.group_id is not None
        assert len(bench.sets) == 3
        assert row.sets[0].weight.value == pytest.approx(45.36)

    def test_rest_on_first_member_rejected(self, temp_routines_dir):
        d = str(temp_routines_dir)
        routine_id = _new(temp_routines_dir, "Upper", "bench_press", "barbell_row")
        runner.invoke(app, ["group", routine_id, "1", "2", "--dir", d])

        result = runner.invoke(app, ["set-metric", routine_id, "1", "rest", "90", "--dir", d])

        assert result.exit_code == 1
        assert "rest" in result.output.lower()

    def test_non_contiguous_group_rejected(self, temp_routines_dir):
        d = str(temp_routines_dir)
        routine_id = _new(temp_routines_dir, "Full", "bench_press", "back_squat", "deadlift")

        result = runner.invoke(app, ["group", routine_id, "1", "3", "--dir", d])

        assert result.exit_code == 1
        assert all(ex.group_id is None for ex in _load(temp_routines_dir, routine_id).exercises)

    def test_move_and_remove(self, temp_routines_dir):
        d = str(temp_routines_dir)
        routine_id = _new(temp_routines_dir, "Full", "bench_press", "back_squat", "deadlift")

        assert runner.invoke(app, ["move", routine_id, "3", "1", "--dir", d]).exit_code == 0
        assert runner.invoke(app, ["remove", routine_id, "2", "--dir", d]).exit_code == 0

        refs = [ex.exercise_ref for ex in _load(temp_routines_dir, routine_id).exercises]
        assert refs == ["deadlift", "back_squat"]

    def test_ungroup_by_letter(self, temp_routines_dir):
        d = str(temp_routines_dir)
        routine_id = _new(temp_routines_dir, "Upper", "bench_press", "barbell_row")
        runner.invoke(app, ["group", routine_id, "1", "2", "--circuit", "--cadence", "40", "--dir", d])

        result = runner.invoke(app, ["ungroup", routine_id, "a", "--dir", d])

        assert result.exit_code == 0
        assert all(ex.group_id is None for ex in _load(temp_routines_dir, routine_id).exercises)

    def test_delete(self, temp_routines_dir):
        d = str(temp_routines_dir)
        routine_id = _new(temp_routines_dir, "Gone", "push_up")

        result = runner.invoke(app, ["delete", routine_id, "--yes", "--dir", d])

        assert result.exit_code == 0
        assert RoutineStore(temp_routines_dir).load(routine_id) is None

    def test_unknown_routine(self, temp_routines_dir):
        result = runner.invoke(app, ["show", "deadbeef", "--dir", str(temp_routines_dir)])
        assert result.exit_code == 1


class TestInteractiveEdit:
    """The edit session reads commands from stdin."""

    def test_edit_undo_and_save(self, temp_routines_dir):
        d = str(temp_routines_dir)
        routine_id = _new(temp_routines_dir, "Upper", "bench_press")

        session = "\n".join([
            "a barbell_row",
            "a pull_up",
            "z",
            "g 1 2 x3",
            "s 2 rest 90",
            "> 1 weight",
            "w",
            "q",
        ]) + "\n"
        result = runner.invoke(app, ["edit", routine_id, "--dir", d], input=session)

        assert result.exit_code == 0, result.output
        bench, row = _load(temp_routines_dir, routine_id).exercises
        assert row.exercise_ref == "barbell_row"
        assert bench.group_id == row.group_id is not None
        assert len(row.sets) == 3
        assert row.sets[0].rest == Exact(90)
        assert bench.sets[0].weight == Exact(2.5)

    def test_quit_discarding_changes(self, temp_routines_dir):
        d = str(temp_routines_dir)
        routine_id = _new(temp_routines_dir, "Upper", "bench_press")

        result = runner.invoke(
            app, ["edit", routine_id, "--dir", d], input="r 1\nbogus\nq\ny\n"
        )

        assert result.exit_code == 0
        assert "Unknown command" in result.output
        assert len(_load(temp_routines_dir, routine_id).exercises) == 1

    def test_end_of_input_quits(self, temp_routines_dir):
        routine_id = _new(temp_routines_dir, "Upper", "bench_press")
        result = runner.invoke(app, ["edit", routine_id, "--dir", str(temp_routines_dir)], input="")
        assert result.exit_code == 0

    def test_position_zero_rejected(self, temp_routines_dir):
        routine_id = _new(temp_routines_dir, "Upper", "bench_press")

        result = runner.invoke(
            app, ["edit", routine_id, "--dir", str(temp_routines_dir)], input="+ 1\n- 1 0\nw\nq\n"
        )

        assert result.exit_code == 0
        assert "Positions start at 1" in result.output
        assert len(_load(temp_routines_dir, routine_id).exercises[0].sets) == 2

    def test_failed_save_keeps_session_open(self, temp_routines_dir, monkeypatch):
        routine_id = _new(temp_routines_dir, "Upper", "bench_press")

        def failing_save(self, routine):
            raise ValidationError("disk full")

        monkeypatch.setattr(RoutineStore, "save", failing_save)
        result = runner.invoke(
            app, ["edit", routine_id, "--dir", str(temp_routines_dir)], input="n Renamed\nw\nq\ny\n"
        )

        assert result.exit_code == 0
        assert "Could not save" in result.output
        assert _load(temp_routines_dir, routine_id).name == "Upper"
