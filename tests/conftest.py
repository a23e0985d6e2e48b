"""Shared fixtures: a hand-driven clock and a recording store."""

from dataclasses import replace
from pathlib import Path

import pytest

from workout_tracker.core.engine.config_loader import SessionSettings
from workout_tracker.core.models import Exercise, Workout
from workout_tracker.io.workout_store import WorkoutStore

START_MS = 1_700_000_000_000


class FakeClock:
    """Clock that only moves when a test advances it."""

    def __init__(self, start_ms: int = START_MS):
        self.ms = start_ms

    def now_ms(self) -> int:
        return self.ms

    def advance(self, ms: int) -> None:
        self.ms += ms


class RecordingStore:
    """
    In-memory stand-in for WorkoutStore that records every write.

    Set ``fail_on`` to a method name to make that method raise.
    """

    def __init__(self, workout: Workout):
        self.workout = workout
        self.calls: list[tuple] = []
        self.fail_on: set[str] = set()

    def _maybe_fail(self, name: str) -> None:
        if name in self.fail_on:
            raise OSError(f"{name} unavailable")

    def get_workout(self, workout_id: str) -> Workout | None:
        return self.workout if workout_id == self.workout.id else None

    def replace_exercises(self, workout_id: str, exercises: list[Exercise]) -> None:
        self._maybe_fail("replace_exercises")
        self.calls.append(("replace_exercises", workout_id, list(exercises)))
        self.workout = replace(self.workout, exercises=list(exercises))

    def record_completion(self, workout_id: str, data: dict) -> None:
        self._maybe_fail("record_completion")
        self.calls.append(("record_completion", workout_id, data))

    def increment_completion_counter(self, workout_id: str) -> None:
        self._maybe_fail("increment_completion_counter")
        self.calls.append(("increment_completion_counter", workout_id))
        self.workout = replace(self.workout, completions=self.workout.completions + 1)

    def saves(self) -> list[list[Exercise]]:
        return [c[2] for c in self.calls if c[0] == "replace_exercises"]


def make_workout(user_id: str = "guest") -> Workout:
    return Workout(
        id="w1",
        user_id=user_id,
        name="Push Day",
        category="Push",
        exercises=[
            Exercise(id="bench", name="Bench Press", sets=3, reps="8-10", weight="60kg", rest_time="90s"),
            Exercise(id="dips", name="Dips", sets=3, reps="12", rest_time="60s"),
            Exercise(id="fly", name="Cable Fly", sets=2, reps="15", adjustment="5"),
        ],
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> SessionSettings:
    return SessionSettings(autosave_delay_ms=1000, saved_marker_ms=2000)


@pytest.fixture
def workout() -> Workout:
    return make_workout()


@pytest.fixture
def store(workout: Workout) -> RecordingStore:
    return RecordingStore(workout)


@pytest.fixture
def file_store(tmp_path: Path) -> WorkoutStore:
    s = WorkoutStore(tmp_path / "data")
    s.init()
    return s


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep tests away from the real ~/.workout-tracker and user env."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("WORKOUT_TRACKER_HOME", raising=False)
    monkeypatch.delenv("WORKOUT_TRACKER_USER", raising=False)
    return home
