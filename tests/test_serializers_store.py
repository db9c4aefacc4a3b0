"""
Tests for JSON serialization, target parsing and the file-backed RoutineStore.
"""

import json
import tempfile
from pathlib import Path

import pytest

from routine_composer.core.composer import CompositionEngine
from routine_composer.core.models import (
    Exact,
    ExerciseEntry,
    MinPlus,
    PercentOfMax,
    Range,
    Routine,
    WorkoutSet,
)
from routine_composer.io.routine_store import RoutineStore
from routine_composer.io.serializers import (
    ValidationError,
    dict_to_routine,
    dict_to_target,
    dict_to_workout_set,
    parse_target,
    parse_targets_string,
    routine_from_json,
    routine_to_json,
)


class _Strength:
    def is_cardio(self, exercise_ref: str) -> bool:
        return False


@pytest.fixture
def temp_dir():
    """Create a temporary directory for routine files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def _grouped_routine() -> Routine:
    engine = CompositionEngine(Routine(name="Upper"), catalog=_Strength())
    engine.insert_exercise(ExerciseEntry(exercise_ref="bench_press", name="Bench Press"))
    engine.insert_exercise(ExerciseEntry(exercise_ref="barbell_row", name="Barbell Row"))
    engine.insert_exercise(ExerciseEntry(exercise_ref="pull_up", name="Pull-up"))
    engine.group_selection([0, 1], "standard", round_count=3)
    engine.group_selection([2], "circuit_timed", cadence_seconds=45)
    engine.bulk_apply_metric(1, "reps", Range(8, 12))
    engine.bulk_apply_metric(0, "tempo", "3-1-1-0")
    return engine.routine


# ===========================================================================
# Serialization
# ===========================================================================


class TestSerialization:
    def test_json_preserves_groups_and_targets(self):
        routine = _grouped_routine()

        restored = routine_from_json(routine_to_json(routine))

        assert restored == routine

    def test_tagged_target_format(self):
        data = json.loads(routine_to_json(_grouped_routine()))
        row_set = data["exercises"][1]["sets"][0]
        assert row_set["reps"] == {"type": "range", "low": 8, "high": 12}
        assert data["exercises"][2]["cadence_seconds"] == 45
        assert data["exercises"][0]["group_order"] == 0

    def test_bare_values_accepted(self):
        assert dict_to_target(10) == Exact(10)
        assert dict_to_target("2-0-1-0") == Exact("2-0-1-0")
        assert dict_to_target({"type": "min_plus", "low": 5}) == MinPlus(5.0)

    def test_invalid_targets(self):
        with pytest.raises(ValidationError):
            dict_to_target({"type": "range", "low": 5})
        with pytest.raises(ValidationError):
            dict_to_target({"type": "bogus"})
        with pytest.raises(ValidationError):
            dict_to_target({"type": "percent_of_max", "percent": 0})

    def test_metrics_default_to_present_targets(self):
        s = dict_to_workout_set({"reps": 5, "rest": {"type": "exact", "value": 90}})
        assert isinstance(s, WorkoutSet)
        assert s.metrics == ["reps", "rest"]

    def test_invalid_goal_and_group_type(self):
        with pytest.raises(ValidationError):
            dict_to_routine({"name": "x", "goal": "speed"})
        with pytest.raises(ValidationError):
            dict_to_routine({"exercises": [{"exercise_ref": "a", "group_type": "triset"}]})

    def test_not_json(self):
        with pytest.raises(ValidationError):
            routine_from_json("{not json")
        with pytest.raises(ValidationError):
            routine_from_json("[]")


class TestParseTarget:
    def test_formats(self):
        assert parse_target("8") == Exact(8)
        assert parse_target("22.5", "weight") == Exact(22.5)
        assert parse_target("8-12") == Range(8, 12)
        assert parse_target("10+") == MinPlus(10)
        assert parse_target("75%", "weight") == PercentOfMax(75)
        assert parse_target("2-0-1-0", "tempo") == Exact("2-0-1-0")

    def test_invalid(self):
        for text in ("", "abc", "12-8", "-3"):
            with pytest.raises(ValidationError):
                parse_target(text)

    def test_targets_string(self):
        members = parse_targets_string("reps=8; reps=8, weight=20")
        assert members == [
            {"reps": Exact(8)},
            {"reps": Exact(8), "weight": Exact(20)},
        ]

    def test_targets_string_errors(self):
        with pytest.raises(ValidationError):
            parse_targets_string("reps 8")
        with pytest.raises(ValidationError):
            parse_targets_string("speed=3")
        with pytest.raises(ValidationError):
            parse_targets_string(" ; ")


# ===========================================================================
# RoutineStore
# ===========================================================================


class TestRoutineStore:
    def test_save_assigns_id_and_timestamps(self, temp_dir):
        store = RoutineStore(temp_dir / "routines")

        saved = store.save(_grouped_routine())

        assert saved.id
        assert saved.created_at is not None
        assert saved.updated_at is not None
        assert (temp_dir / "routines" / f"{saved.id}.json").exists()
        assert store.load(saved.id) == saved

    def test_resave_keeps_id_and_created_at(self, temp_dir):
        store = RoutineStore(temp_dir)
        first = store.save(_grouped_routine())
        first.name = "Renamed"

        second = store.save(first)

        assert second.id == first.id
        assert second.created_at == first.created_at
        assert len(store.list_routines()) == 1

    def test_refuses_invalid_routine(self, temp_dir):
        store = RoutineStore(temp_dir)
        routine = Routine(exercises=[ExerciseEntry(exercise_ref="a")])
        with pytest.raises(ValidationError):
            store.save(routine)

    def test_list_sorted_and_skips_bad_files(self, temp_dir):
        store = RoutineStore(temp_dir)
        for name in ("Zeta", "alpha"):
            r = _grouped_routine()
            r.name = name
            store.save(r)
        (temp_dir / "broken.json").write_text("{oops", encoding="utf-8")

        names = [r.name for r in store.list_routines()]

        assert names == ["alpha", "Zeta"]

    def test_load_missing_and_delete(self, temp_dir):
        store = RoutineStore(temp_dir)
        assert store.load("nothing") is None
        saved = store.save(_grouped_routine())
        assert store.delete(saved.id)
        assert not store.delete(saved.id)
        assert not store.exists(saved.id)

    def test_rejects_path_like_ids(self, temp_dir):
        store = RoutineStore(temp_dir)
        with pytest.raises(ValidationError):
            store.load("../etc")

    def test_write_failure_raises_validation_error(self, temp_dir):
        blocker = temp_dir / "blocker"
        blocker.write_text("", encoding="utf-8")
        store = RoutineStore(blocker / "routines")

        with pytest.raises(ValidationError):
            store.save(_grouped_routine())

    def test_failed_replace_leaves_no_temp_file(self, temp_dir):
        store = RoutineStore(temp_dir)
        routine = _grouped_routine()
        routine.id = "fixed"
        (temp_dir / "fixed.json").mkdir()

        with pytest.raises(ValidationError):
            store.save(routine)

        assert not (temp_dir / "fixed.json.tmp").exists()

    def test_engine_saves_through_store(self, temp_dir):
        store = RoutineStore(temp_dir)
        engine = CompositionEngine(_grouped_routine(), catalog=_Strength())
        engine.remove_exercise(2)

        result = engine.save(store)

        assert result.ok
        assert len(store.load(result.routine.id).exercises) == 2
