"""
The state machine for one workout run.

A SessionController owns the per-exercise state, the rest countdowns and
the pending auto-saves of a single session.  Every transition is a plain
method that returns the new SessionPhase; callers close the session view
when ``phase.leaves_view`` is true.

Phases:
    IN_PROGRESS -> CONFIRMING_COMPLETION -> COMMITTING -> COMPLETED
    IN_PROGRESS -> EXITED                 (no confirmation needed)
"""

import logging
from datetime import datetime, timezone
from typing import Any, Protocol

from .autosave import AutoSaveScheduler, ErrorFn
from .clock import Clock, SystemClock
from .engine.config_loader import SessionSettings
from .errors import InvalidTransition, PersistenceError, UnknownExerciseError
from .models import Exercise, ExerciseState, SessionPhase, Workout
from .rest_timer import RestNotifier, RestTimer, parse_rest_duration
from .session_clock import SessionClock

logger = logging.getLogger(__name__)

# Fields the user may edit while a session is running
EDITABLE_FIELDS = (
    "actual_name",
    "actual_reps",
    "actual_weight",
    "rest_time",
    "description",
    "adjustment",
)


class WorkoutRepository(Protocol):
    """Persistence operations the session engine relies on."""

    def get_workout(self, workout_id: str) -> Workout | None: ...

    def replace_exercises(self, workout_id: str, exercises: list[Exercise]) -> None: ...

    def record_completion(self, workout_id: str, data: dict[str, Any]) -> Any: ...

    def increment_completion_counter(self, workout_id: str) -> None: ...


def _performance(state: ExerciseState) -> dict[str, Any]:
    """Snapshot of one exercise for the completion record."""
    saved = state.to_exercise()
    return {
        "exercise_id": saved.id,
        "name": saved.name,
        "sets": saved.sets,
        "sets_completed": state.current_sets,
        "completed": state.completed,
        "reps": saved.reps,
        "weight": saved.weight,
        "rest_time": saved.rest_time,
        "notes": saved.notes,
        "adjustment": saved.adjustment,
        "description": saved.description,
    }


class SessionController:
    """
    Drives one workout session.

    Args:
        workout: The workout being performed
        store: Persistence collaborator
        clock: Wall-clock source (defaults to the system clock)
        settings: Timing settings (rest default, debounce, marker window)
        notifier: Called with the exercise id when a rest countdown ends
        on_save_error: Called when a debounced save fails
    """

    def __init__(
        self,
        workout: Workout,
        store: WorkoutRepository,
        clock: Clock | None = None,
        settings: SessionSettings | None = None,
        notifier: RestNotifier | None = None,
        on_save_error: ErrorFn | None = None,
    ):
        self.workout = workout
        self.store = store
        self.clock = clock or SystemClock()
        self.settings = settings or SessionSettings()
        self.phase = SessionPhase.IN_PROGRESS
        self.exercises = [ExerciseState.from_exercise(e) for e in workout.exercises]
        self._by_id = {s.id: s for s in self.exercises}
        self.session_clock = SessionClock(self.clock)
        self.rest_timer = RestTimer(self.clock, notifier)
        self.autosave: AutoSaveScheduler[Exercise] = AutoSaveScheduler(
            self._save_exercise,
            clock=self.clock,
            delay_ms=self.settings.autosave_delay_ms,
            saved_marker_ms=self.settings.saved_marker_ms,
            on_error=on_save_error,
        )
        self.last_error: Exception | None = None
        # Commit steps already written by an earlier confirm_completion() attempt
        self.completion_record: Any = None
        self._recorded = False
        self._counted = False

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def exercise(self, exercise_id: str) -> ExerciseState:
        try:
            return self._by_id[exercise_id]
        except KeyError:
            raise UnknownExerciseError(exercise_id) from None

    def _require_editable(self) -> None:
        if self.phase.is_terminal or self.phase is SessionPhase.COMMITTING:
            raise InvalidTransition(f"session is {self.phase.value}")

    def _rest_total(self, state: ExerciseState) -> int:
        return parse_rest_duration(state.rest_time, self.settings.default_rest_seconds)

    def _save_exercise(self, exercise_id: str, payload: Exercise) -> None:
        """
        Persist one exercise's edits.

        The store only supports full replacement, so the whole list is sent:
        the edited exercise from ``payload``, the others as last persisted.
        """
        exercises = [payload if s.id == exercise_id else s.exercise for s in self.exercises]
        self.store.replace_exercises(self.workout.id, exercises)
        self._by_id[exercise_id].exercise = payload

    def _teardown(self) -> None:
        self.rest_timer.clear()
        self.autosave.cancel_all()

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------

    @property
    def completed_count(self) -> int:
        return sum(1 for s in self.exercises if s.completed)

    def progress(self) -> tuple[int, int, float]:
        """Return (completed, total, percent complete)."""
        total = len(self.exercises)
        done = self.completed_count
        percent = (done / total * 100.0) if total else 0.0
        return done, total, percent

    def elapsed(self) -> str:
        return self.session_clock.elapsed()

    def poll(self) -> dict[str, int]:
        """
        One cooperative tick: fire due saves, then recompute rest countdowns.

        Returns:
            Remaining seconds for each rest timer that was active
        """
        if self.phase.is_terminal:
            return {}
        self.autosave.run_due()
        return self.rest_timer.tick()

    def resume(self) -> dict[str, int]:
        """Call when the host comes back from being suspended or hidden."""
        return self.poll()

    # ------------------------------------------------------------------
    # Exercise completion
    # ------------------------------------------------------------------

    def toggle_exercise_complete(self, exercise_id: str) -> ExerciseState:
        """Mark an exercise done (all sets) or undo that."""
        self._require_editable()
        state = self.exercise(exercise_id)
        state.completed = not state.completed
        state.current_sets = state.exercise.sets if state.completed else 0
        return state

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def begin_edit(self, exercise_id: str) -> ExerciseState:
        self._require_editable()
        state = self.exercise(exercise_id)
        state.editing = True
        return state

    def update_field(self, exercise_id: str, field: str, value: str) -> ExerciseState:
        """
        Apply a live edit and schedule its debounced save.

        Raises:
            ValueError: If ``field`` is not editable or the value would
                make the exercise invalid (the previous value is kept)
        """
        self._require_editable()
        if field not in EDITABLE_FIELDS:
            raise ValueError(f"Field {field!r} is not editable; choose from {EDITABLE_FIELDS}")
        state = self.exercise(exercise_id)
        previous = getattr(state, field)
        setattr(state, field, value)
        try:
            payload = state.to_exercise()
        except ValueError:
            setattr(state, field, previous)
            raise
        if field == "rest_time":
            self.rest_timer.sync_total(exercise_id, self._rest_total(state))
        self.autosave.schedule_save(exercise_id, payload)
        return state

    def confirm_edit(self, exercise_id: str) -> ExerciseState:
        """
        Save the exercise now and leave edit mode.

        Raises:
            PersistenceError: If the save fails (edit mode is kept)
        """
        self._require_editable()
        state = self.exercise(exercise_id)
        self.autosave.schedule_save(exercise_id, state.to_exercise(), delay_ms=0)
        if not self.autosave.flush(exercise_id):
            exc = self.autosave.errors.get(exercise_id)
            self.last_error = exc
            raise PersistenceError(f"Could not save {state.display_name}: {exc}", exercise_id)
        state.editing = False
        return state

    def discard_edit(self, exercise_id: str) -> ExerciseState:
        """Revert the exercise to its last saved values and leave edit mode."""
        self._require_editable()
        state = self.exercise(exercise_id)
        self.autosave.cancel(exercise_id)
        saved = state.exercise
        state.actual_name = saved.name
        state.actual_reps = saved.reps
        state.actual_weight = saved.weight
        state.description = saved.description or ""
        state.adjustment = saved.adjustment or ""
        if state.rest_time != saved.rest_time:
            state.rest_time = saved.rest_time
            self.rest_timer.sync_total(exercise_id, self._rest_total(state))
        state.editing = False
        return state

    # ------------------------------------------------------------------
    # Rest timer
    # ------------------------------------------------------------------

    def toggle_rest(self, exercise_id: str) -> bool:
        """Start the exercise's rest countdown, or reset it if running."""
        self._require_editable()
        state = self.exercise(exercise_id)
        return self.rest_timer.toggle(exercise_id, self._rest_total(state))

    def reset_rest(self, exercise_id: str) -> None:
        self._require_editable()
        state = self.exercise(exercise_id)
        self.rest_timer.reset(exercise_id, self._rest_total(state))

    def rest_remaining(self, exercise_id: str) -> int:
        """Seconds left on the countdown (full duration if never started)."""
        state = self.exercise(exercise_id)
        left = self.rest_timer.remaining(exercise_id)
        return self._rest_total(state) if left is None else left

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    @property
    def can_request_completion(self) -> bool:
        return self.phase is SessionPhase.IN_PROGRESS and self.completed_count > 0

    def request_completion(self) -> SessionPhase:
        """
        Ask to finish the workout; a confirmation step must follow.

        Raises:
            InvalidTransition: If no exercise is completed yet
        """
        if self.phase is not SessionPhase.IN_PROGRESS:
            raise InvalidTransition(f"cannot complete a session that is {self.phase.value}")
        if self.completed_count == 0:
            raise InvalidTransition("complete at least one exercise first")
        self.phase = SessionPhase.CONFIRMING_COMPLETION
        return self.phase

    def cancel_completion(self) -> SessionPhase:
        if self.phase is not SessionPhase.CONFIRMING_COMPLETION:
            raise InvalidTransition(f"nothing to cancel; session is {self.phase.value}")
        self.phase = SessionPhase.IN_PROGRESS
        return self.phase

    def confirm_completion(self, notes: str | None = None) -> SessionPhase:
        """
        Commit the finished workout.

        Saves the edited exercises (actual values replace planned ones),
        appends a completion record and bumps the workout's completion
        counter.  On failure the session returns to CONFIRMING_COMPLETION
        with all in-memory state intact.  Steps that already succeeded are
        remembered, so a retry never writes a second completion record or
        bumps the counter twice.

        Raises:
            InvalidTransition: If completion was not requested first
            PersistenceError: If the store rejects any write
        """
        if self.phase is not SessionPhase.CONFIRMING_COMPLETION:
            raise InvalidTransition(f"confirm requires a pending request; session is {self.phase.value}")
        if self.completed_count == 0:
            raise InvalidTransition("complete at least one exercise first")

        performed = [_performance(s) for s in self.exercises]
        saved = [s.to_exercise() for s in self.exercises]
        self.phase = SessionPhase.COMMITTING
        try:
            self.autosave.flush_all()
            self.store.replace_exercises(self.workout.id, saved)
            if not self._recorded:
                self.completion_record = self.store.record_completion(
                    self.workout.id,
                    {
                        "exercises": performed,
                        "weights": [p["weight"] for p in performed],
                        "category": self.workout.category,
                        "completed_at": datetime.now(timezone.utc).isoformat(timespec="seconds"),
                        "duration_minutes": self.session_clock.elapsed_minutes(),
                        "notes": notes,
                    },
                )
                self._recorded = True
            if not self._counted:
                self.store.increment_completion_counter(self.workout.id)
                self._counted = True
        except Exception as exc:
            logger.error("completing workout %s failed: %s", self.workout.id, exc)
            self.phase = SessionPhase.CONFIRMING_COMPLETION
            self.last_error = exc
            raise PersistenceError(f"Could not save workout: {exc}") from exc

        for state, exercise in zip(self.exercises, saved):
            state.exercise = exercise
        self.last_error = None
        self._teardown()
        self.phase = SessionPhase.COMPLETED
        logger.info("workout %s completed (%s)", self.workout.id, self.elapsed())
        return self.phase

    # ------------------------------------------------------------------
    # Exit
    # ------------------------------------------------------------------

    def exit(self) -> SessionPhase:
        """
        Leave the session without completing it.

        Pending edits are flushed and the current exercise list is saved
        before EXITED is returned.  Rest timers are stopped on every path.
        When the final save fails the session stays IN_PROGRESS with its
        edits intact, so exit() can be retried.

        Raises:
            InvalidTransition: If the session already ended or is committing
            PersistenceError: If the final save fails
        """
        if self.phase is SessionPhase.CONFIRMING_COMPLETION:
            self.cancel_completion()
        if self.phase is not SessionPhase.IN_PROGRESS:
            raise InvalidTransition(f"cannot exit a session that is {self.phase.value}")

        try:
            self.autosave.flush_all()
            saved = [s.to_exercise() for s in self.exercises]
            self.store.replace_exercises(self.workout.id, saved)
        except Exception as exc:
            logger.error("saving workout %s on exit failed: %s", self.workout.id, exc)
            self.last_error = exc
            self.rest_timer.clear()
            raise PersistenceError(f"Could not save changes: {exc}") from exc

        for state, exercise in zip(self.exercises, saved):
            state.exercise = exercise
        self.last_error = None
        self._teardown()
        self.phase = SessionPhase.EXITED
        return self.phase
