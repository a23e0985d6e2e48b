"""
Session state machine tests.

Run against RecordingStore (conftest) so every persistence call can be
inspected and individual store methods can be made to fail.
"""

import pytest

from workout_tracker.core.errors import (
    InvalidTransition,
    PersistenceError,
    UnknownExerciseError,
)
from workout_tracker.core.models import SessionPhase
from workout_tracker.core.session import SessionController


@pytest.fixture
def session(workout, store, clock, settings) -> SessionController:
    return SessionController(workout, store, clock=clock, settings=settings)


def _names(exercises) -> list[str]:
    return [e.name for e in exercises]


class TestInitialState:
    def test_seeded_from_workout(self, session):
        assert session.phase is SessionPhase.IN_PROGRESS
        assert [s.id for s in session.exercises] == ["bench", "dips", "fly"]
        bench = session.exercise("bench")
        assert bench.actual_name == "Bench Press"
        assert bench.actual_reps == "8-10"
        assert bench.actual_weight == "60kg"
        assert bench.rest_time == "90s"
        assert not bench.completed
        assert bench.current_sets == 0

    def test_unknown_exercise(self, session):
        with pytest.raises(UnknownExerciseError):
            session.exercise("squat")

    def test_progress_empty(self, session):
        assert session.progress() == (0, 3, 0.0)


class TestToggleComplete:
    def test_complete_sets_all_sets(self, session):
        state = session.toggle_exercise_complete("bench")
        assert state.completed
        assert state.current_sets == 3

    def test_toggle_back_resets_sets(self, session):
        session.toggle_exercise_complete("bench")
        state = session.toggle_exercise_complete("bench")
        assert not state.completed
        assert state.current_sets == 0

    def test_progress_counts(self, session):
        session.toggle_exercise_complete("bench")
        done, total, percent = session.progress()
        assert (done, total) == (1, 3)
        assert percent == pytest.approx(100 / 3)


class TestEditing:
    def test_update_field_debounces_save(self, session, store, clock):
        session.begin_edit("bench")
        session.update_field("bench", "actual_reps", "8")
        clock.advance(200)
        session.update_field("bench", "actual_reps", "9")
        clock.advance(200)
        session.update_field("bench", "actual_weight", "62.5kg")
        clock.advance(999)
        session.poll()
        assert store.saves() == []

        clock.advance(1)
        session.poll()
        assert len(store.saves()) == 1
        saved = {e.id: e for e in store.saves()[0]}
        assert saved["bench"].reps == "9"
        assert saved["bench"].weight == "62.5kg"
        assert saved["dips"].reps == "12"
        assert session.autosave.is_saved("bench")

    def test_unknown_field_rejected(self, session):
        with pytest.raises(ValueError):
            session.update_field("bench", "sets", "5")

    def test_invalid_value_rolled_back(self, session, store, clock):
        """A blank name is refused and never reaches the state or the store."""
        with pytest.raises(ValueError):
            session.update_field("bench", "actual_name", "  ")
        assert session.exercise("bench").actual_name == "Bench Press"
        assert not session.autosave.is_pending("bench")
        clock.advance(5000)
        session.poll()
        assert store.saves() == []

    def test_completion_still_possible_after_refused_edit(self, session):
        session.toggle_exercise_complete("bench")
        with pytest.raises(ValueError):
            session.update_field("bench", "actual_name", "  ")
        session.request_completion()
        assert session.confirm_completion() is SessionPhase.COMPLETED

    def test_confirm_edit_saves_immediately(self, session, store):
        session.begin_edit("dips")
        session.update_field("dips", "actual_name", "Weighted Dips")
        state = session.confirm_edit("dips")
        assert not state.editing
        assert _names(store.saves()[-1])[1] == "Weighted Dips"
        assert state.exercise.name == "Weighted Dips"
        assert not session.autosave.is_pending("dips")

    def test_confirm_edit_failure_keeps_edit_mode(self, session, store):
        store.fail_on.add("replace_exercises")
        session.begin_edit("dips")
        session.update_field("dips", "actual_reps", "15")
        with pytest.raises(PersistenceError):
            session.confirm_edit("dips")
        state = session.exercise("dips")
        assert state.editing
        assert state.actual_reps == "15"
        assert isinstance(session.last_error, OSError)

    def test_discard_reverts_to_saved_and_cancels(self, session, store, clock):
        session.begin_edit("bench")
        session.update_field("bench", "actual_weight", "100kg")
        session.update_field("bench", "adjustment", "3")
        state = session.discard_edit("bench")
        assert not state.editing
        assert state.actual_weight == "60kg"
        assert state.adjustment == ""
        clock.advance(5000)
        session.poll()
        assert store.saves() == []

    def test_saved_values_become_the_new_baseline(self, session, clock):
        session.update_field("bench", "actual_reps", "6")
        clock.advance(1000)
        session.poll()
        session.update_field("bench", "actual_reps", "12")
        state = session.discard_edit("bench")
        assert state.actual_reps == "6"

    def test_failed_autosave_reported(self, workout, store, clock, settings):
        failures = []
        session = SessionController(
            workout, store, clock=clock, settings=settings,
            on_save_error=lambda eid, exc: failures.append(eid),
        )
        store.fail_on.add("replace_exercises")
        session.update_field("fly", "adjustment", "7")
        clock.advance(1000)
        session.poll()
        assert failures == ["fly"]
        assert session.exercise("fly").adjustment == "7"


class TestRestTimer:
    def test_toggle_rest_uses_parsed_duration(self, session, clock):
        assert session.toggle_rest("bench") is True
        clock.advance(30_000)
        assert session.poll() == {"bench": 60}

    def test_missing_rest_time_defaults_to_60(self, session):
        assert session.rest_remaining("fly") == 60

    def test_rest_remaining_before_start(self, session):
        assert session.rest_remaining("bench") == 90

    def test_shorter_rest_time_resets_running_timer(self, session, clock):
        session.toggle_rest("bench")
        clock.advance(10_000)
        session.update_field("bench", "rest_time", "45s")
        assert not session.rest_timer.is_active("bench")
        assert session.rest_remaining("bench") == 45

    def test_longer_rest_time_keeps_timer(self, session, clock):
        session.toggle_rest("bench")
        clock.advance(10_000)
        session.update_field("bench", "rest_time", "120s")
        assert session.rest_timer.is_active("bench")
        assert session.rest_remaining("bench") == 80

    def test_resume_after_suspension(self, session, clock):
        session.toggle_rest("dips")
        clock.advance(60_000)
        assert session.resume() == {"dips": 0}
        assert not session.rest_timer.is_active("dips")

    def test_notifier_called(self, workout, store, clock, settings):
        rung = []
        session = SessionController(workout, store, clock=clock, settings=settings, notifier=rung.append)
        session.toggle_rest("dips")
        clock.advance(61_000)
        session.poll()
        session.poll()
        assert rung == ["dips"]

    def test_reset_rest(self, session, clock):
        session.toggle_rest("dips")
        clock.advance(5_000)
        session.reset_rest("dips")
        assert session.rest_remaining("dips") == 60


class TestCompletion:
    def test_request_requires_a_completed_exercise(self, session):
        assert not session.can_request_completion
        with pytest.raises(InvalidTransition):
            session.request_completion()
        assert session.phase is SessionPhase.IN_PROGRESS

    def test_confirm_requires_request(self, session):
        session.toggle_exercise_complete("bench")
        with pytest.raises(InvalidTransition):
            session.confirm_completion()

    def test_cancel_returns_to_in_progress(self, session):
        session.toggle_exercise_complete("bench")
        assert session.request_completion() is SessionPhase.CONFIRMING_COMPLETION
        assert session.cancel_completion() is SessionPhase.IN_PROGRESS
        assert session.completed_count == 1

    def test_confirm_writes_everything(self, session, store, clock):
        session.toggle_exercise_complete("bench")
        session.update_field("bench", "actual_weight", "65kg")
        session.toggle_rest("dips")
        clock.advance(125_000)
        session.request_completion()

        phase = session.confirm_completion("felt strong")

        assert phase is SessionPhase.COMPLETED
        assert phase.leaves_view
        kinds = [c[0] for c in store.calls]
        assert kinds[-2:] == ["record_completion", "increment_completion_counter"]
        assert store.workout.exercises[0].weight == "65kg"
        assert store.workout.completions == 1

        record = next(c[2] for c in store.calls if c[0] == "record_completion")
        assert record["notes"] == "felt strong"
        assert record["category"] == "Push"
        assert record["duration_minutes"] == 2
        assert record["weights"] == ["65kg", None, None]
        bench = record["exercises"][0]
        assert bench["sets_completed"] == 3
        assert bench["completed"] is True
        assert record["exercises"][1]["sets_completed"] == 0

        assert not session.rest_timer.has_active
        assert session.autosave.pending_ids() == []

    def test_commit_failure_returns_to_confirming(self, session, store):
        session.toggle_exercise_complete("bench")
        session.request_completion()
        store.fail_on.add("record_completion")
        with pytest.raises(PersistenceError):
            session.confirm_completion()
        assert session.phase is SessionPhase.CONFIRMING_COMPLETION
        assert session.exercise("bench").completed
        assert isinstance(session.last_error, OSError)

        store.fail_on.clear()
        assert session.confirm_completion() is SessionPhase.COMPLETED

    def test_retry_after_counter_failure_records_once(self, session, store):
        session.toggle_exercise_complete("bench")
        session.request_completion()
        store.fail_on.add("increment_completion_counter")
        with pytest.raises(PersistenceError):
            session.confirm_completion()
        assert session.phase is SessionPhase.CONFIRMING_COMPLETION

        store.fail_on.clear()
        assert session.confirm_completion() is SessionPhase.COMPLETED
        kinds = [c[0] for c in store.calls]
        assert kinds.count("record_completion") == 1
        assert kinds.count("increment_completion_counter") == 1
        assert store.workout.completions == 1

    def test_retry_after_cancel_does_not_record_twice(self, session, store):
        session.toggle_exercise_complete("bench")
        session.request_completion()
        store.fail_on.add("increment_completion_counter")
        with pytest.raises(PersistenceError):
            session.confirm_completion()
        session.cancel_completion()

        store.fail_on.clear()
        session.request_completion()
        session.confirm_completion()
        assert [c[0] for c in store.calls].count("record_completion") == 1

    def test_no_edits_after_completion(self, session):
        session.toggle_exercise_complete("bench")
        session.request_completion()
        session.confirm_completion()
        with pytest.raises(InvalidTransition):
            session.toggle_exercise_complete("dips")
        assert session.poll() == {}


class TestExit:
    def test_exit_flushes_pending_before_returning(self, session, store, clock):
        session.update_field("fly", "adjustment", "6")
        clock.advance(300)
        assert session.exit() is SessionPhase.EXITED
        first = {e.id: e for e in store.saves()[0]}
        assert first["fly"].adjustment == "6"
        assert store.workout.exercises[2].adjustment == "6"
        assert session.autosave.pending_ids() == []

    def test_exit_without_completion_records_nothing(self, session, store):
        session.toggle_exercise_complete("bench")
        session.exit()
        assert "record_completion" not in [c[0] for c in store.calls]
        assert store.workout.completions == 0

    def test_exit_tears_down_timers(self, session):
        session.toggle_rest("bench")
        session.exit()
        assert not session.rest_timer.has_active

    def test_exit_from_confirmation(self, session):
        session.toggle_exercise_complete("bench")
        session.request_completion()
        assert session.exit() is SessionPhase.EXITED

    def test_exit_failure_keeps_session_for_retry(self, session, store):
        store.fail_on.add("replace_exercises")
        session.toggle_rest("bench")
        session.update_field("dips", "actual_reps", "20")
        with pytest.raises(PersistenceError):
            session.exit()
        assert session.phase is SessionPhase.IN_PROGRESS
        assert not session.rest_timer.has_active
        assert session.exercise("dips").actual_reps == "20"

        store.fail_on.clear()
        assert session.exit() is SessionPhase.EXITED
        assert store.workout.exercises[1].reps == "20"

    def test_double_exit_rejected(self, session):
        session.exit()
        with pytest.raises(InvalidTransition):
            session.exit()
