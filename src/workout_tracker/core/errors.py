"""Exceptions raised by the session engine."""


class SessionError(Exception):
    """Base class for session engine errors."""

    pass


class InvalidTransition(SessionError):
    """Raised when a session action is not allowed in the current phase."""

    pass


class PersistenceError(SessionError):
    """
    Raised when the store rejects a save.

    The in-memory session state is left untouched so the user can retry.
    """

    def __init__(self, message: str, entity_id: str | None = None):
        super().__init__(message)
        self.entity_id = entity_id


class SessionAlreadyMountedError(SessionError):
    """Raised when a second session is started on a context that already has one."""

    pass


class UnknownExerciseError(SessionError, KeyError):
    """Raised when an exercise id is not part of the running session."""

    pass


class UnknownWorkoutError(SessionError, KeyError):
    """Raised when a workout cannot be found for the current user."""

    pass
