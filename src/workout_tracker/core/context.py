"""
Explicit session context.

Carries the current user, the store, the clock and the timing settings to
whatever mounts a workout session, and guarantees that only one session is
mounted at a time.  Use it as a context manager so the session is always
torn down (pending edits flushed, timers stopped) when the view goes away.
"""

import logging

from .autosave import ErrorFn
from .clock import Clock, SystemClock
from .engine.config_loader import SessionSettings
from .errors import SessionAlreadyMountedError, UnknownWorkoutError
from .rest_timer import RestNotifier
from .session import SessionController, WorkoutRepository

logger = logging.getLogger(__name__)


class SessionContext:
    """
    Owns at most one active SessionController.

    Args:
        user_id: Current user (the guest id for anonymous use)
        store: Persistence collaborator
        clock: Wall-clock source
        settings: Timing settings
        notifier: Rest-complete callback passed to each session
        on_save_error: Auto-save failure callback passed to each session
    """

    def __init__(
        self,
        user_id: str,
        store: WorkoutRepository,
        clock: Clock | None = None,
        settings: SessionSettings | None = None,
        notifier: RestNotifier | None = None,
        on_save_error: ErrorFn | None = None,
    ):
        self.user_id = user_id
        self.store = store
        self.clock = clock or SystemClock()
        self.settings = settings or SessionSettings()
        self.notifier = notifier
        self.on_save_error = on_save_error
        self.active: SessionController | None = None

    def start_session(self, workout_id: str) -> SessionController:
        """
        Mount a session for one of the current user's workouts.

        Raises:
            SessionAlreadyMountedError: If a session is still running
            UnknownWorkoutError: If the workout does not exist for this user
        """
        if self.active is not None and not self.active.phase.is_terminal:
            raise SessionAlreadyMountedError(
                f"session for workout {self.active.workout.id} is still running"
            )
        workout = self.store.get_workout(workout_id)
        if workout is None or workout.user_id != self.user_id:
            raise UnknownWorkoutError(workout_id)
        self.active = SessionController(
            workout,
            self.store,
            clock=self.clock,
            settings=self.settings,
            notifier=self.notifier,
            on_save_error=self.on_save_error,
        )
        logger.debug("mounted session for workout %s", workout_id)
        return self.active

    def end_session(self) -> None:
        """
        Unmount the active session, exiting it first if it is still running.

        The session is unmounted even when the exit save fails; the
        PersistenceError still propagates.
        """
        session = self.active
        if session is None:
            return
        try:
            if not session.phase.is_terminal:
                session.exit()
        finally:
            self.active = None
            logger.debug("unmounted session for workout %s", session.workout.id)

    def __enter__(self) -> "SessionContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.end_session()
