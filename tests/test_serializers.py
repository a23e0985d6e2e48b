"""Serializer and compact exercise format tests."""

import json

import pytest

from workout_tracker.core.models import CompletionRecord, Exercise
from workout_tracker.io.serializers import (
    ValidationError,
    completion_to_json_line,
    dict_to_completion,
    dict_to_exercise,
    dict_to_workout,
    exercise_to_dict,
    parse_exercise_spec,
    validate_positive_int,
)


class TestExerciseDicts:
    def test_unset_optionals_omitted(self):
        d = exercise_to_dict(Exercise(id="a", name="Row", sets=3, reps="10"))
        assert d == {"id": "a", "name": "Row", "sets": 3, "reps": "10"}

    def test_missing_id_filled(self):
        ex = dict_to_exercise({"name": "Row", "sets": 3, "reps": "10"})
        assert ex.id

    def test_empty_strings_become_none(self):
        ex = dict_to_exercise({"id": "a", "name": "Row", "weight": "", "rest_time": ""})
        assert ex.weight is None
        assert ex.rest_time is None

    def test_missing_name(self):
        with pytest.raises(ValidationError, match="name"):
            dict_to_exercise({"sets": 3})

    def test_zero_sets(self):
        with pytest.raises(ValidationError):
            dict_to_exercise({"name": "Row", "sets": 0})


class TestWorkoutDicts:
    def test_defaults(self):
        w = dict_to_workout({"id": "w", "user_id": "u", "name": "Legs"})
        assert w.exercises == []
        assert w.difficulty == "Beginner"
        assert w.completions == 0
        assert w.last_completed is None

    def test_missing_user(self):
        with pytest.raises(ValidationError):
            dict_to_workout({"id": "w", "name": "Legs"})

    def test_bad_difficulty(self):
        with pytest.raises(ValidationError):
            dict_to_workout({"id": "w", "user_id": "u", "name": "Legs", "difficulty": "Expert"})


class TestCompletionDicts:
    def test_json_line_is_single_line(self):
        record = CompletionRecord(
            id="c", workout_id="w", completed_at="2024-05-01T10:00:00+00:00",
            weights=["60kg", None], notes="tired\nbut done",
        )
        line = completion_to_json_line(record)
        assert "\n" not in line
        assert json.loads(line)["notes"] == "tired\nbut done"

    def test_optional_fields_omitted(self):
        line = completion_to_json_line(CompletionRecord(id="c", workout_id="w", completed_at="x"))
        data = json.loads(line)
        assert "duration_minutes" not in data
        assert "notes" not in data

    def test_bad_duration(self):
        with pytest.raises(ValidationError):
            dict_to_completion({"id": "c", "workout_id": "w", "completed_at": "x", "duration_minutes": "long"})


class TestValidatePositiveInt:
    def test_accepts_numeric_string(self):
        assert validate_positive_int("4", "sets") == 4

    @pytest.mark.parametrize("value", [0, -1, "x", None])
    def test_rejects(self, value):
        with pytest.raises(ValidationError):
            validate_positive_int(value, "sets")


class TestParseExerciseSpec:
    def test_full(self):
        ex = parse_exercise_spec("Bench Press:3x8-10@60kg/90s")
        assert (ex.name, ex.sets, ex.reps, ex.weight, ex.rest_time) == ("Bench Press", 3, "8-10", "60kg", "90s")

    def test_minimal(self):
        ex = parse_exercise_spec("Push-up:4x12")
        assert (ex.name, ex.sets, ex.reps, ex.weight, ex.rest_time) == ("Push-up", 4, "12", None, None)

    def test_rest_without_weight(self):
        ex = parse_exercise_spec("Plank : 3 X 45s / 30")
        assert (ex.name, ex.sets, ex.reps, ex.rest_time) == ("Plank", 3, "45s", "30")

    @pytest.mark.parametrize("raw", ["Bench Press", "Bench:x10", ":3x10", "Bench:0x10"])
    def test_invalid(self, raw):
        with pytest.raises(ValidationError):
            parse_exercise_spec(raw)
