"""
Data models for workout-tracker.

Core dataclasses for workout programs, the per-session exercise state, rest
timers and completion records.  Free-form fields (reps, weight, rest time)
stay strings because users type things like "10-12", "20kg" or "90s".
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from .config import DEFAULT_REPS, DEFAULT_SETS, DIFFICULTIES

Difficulty = Literal["Beginner", "Intermediate", "Advanced"]


@dataclass
class Exercise:
    """
    One exercise in a workout program (the planned values).
    """

    id: str
    name: str
    sets: int = DEFAULT_SETS
    reps: str = DEFAULT_REPS
    weight: str | None = None
    rest_time: str | None = None
    notes: str | None = None
    description: str | None = None
    adjustment: str | None = None  # machine position, e.g. "5"

    def __post_init__(self) -> None:
        """Validate exercise data."""
        if not self.name or not self.name.strip():
            raise ValueError("exercise name must be non-empty")
        if self.sets < 1:
            raise ValueError("sets must be at least 1")


@dataclass
class ExerciseState:
    """
    An exercise as it is being performed during a session.

    The ``actual_*`` fields shadow the planned values until they are saved;
    ``description`` and ``adjustment`` are edited in place.
    """

    exercise: Exercise
    completed: bool = False
    current_sets: int = 0
    editing: bool = False
    actual_name: str | None = None
    actual_reps: str | None = None
    actual_weight: str | None = None
    rest_time: str | None = None
    description: str = ""
    adjustment: str = ""

    @classmethod
    def from_exercise(cls, exercise: Exercise) -> "ExerciseState":
        """Start a session entry with the actual fields seeded from the plan."""
        return cls(
            exercise=exercise,
            actual_name=exercise.name,
            actual_reps=exercise.reps,
            actual_weight=exercise.weight,
            rest_time=exercise.rest_time,
            description=exercise.description or "",
            adjustment=exercise.adjustment or "",
        )

    @property
    def id(self) -> str:
        return self.exercise.id

    @property
    def display_name(self) -> str:
        return self.actual_name or self.exercise.name

    @property
    def display_reps(self) -> str:
        return self.actual_reps or self.exercise.reps

    @property
    def display_weight(self) -> str | None:
        return self.actual_weight or self.exercise.weight

    def to_exercise(self) -> Exercise:
        """Merge actual values over the planned ones (what gets persisted)."""
        return Exercise(
            id=self.exercise.id,
            name=self.display_name,
            sets=self.exercise.sets,
            reps=self.display_reps,
            weight=self.display_weight,
            rest_time=self.rest_time,
            notes=self.exercise.notes,
            description=self.description or None,
            adjustment=self.adjustment or None,
        )


@dataclass
class RestTimerState:
    """
    Countdown state for one exercise.

    ``start_ms`` is an epoch timestamp in milliseconds; None means the
    countdown has not been started (or was reset).
    """

    total_seconds: int
    start_ms: int | None = None
    active: bool = False

    def __post_init__(self) -> None:
        if self.total_seconds < 0:
            raise ValueError("total_seconds must be non-negative")


@dataclass
class Workout:
    """
    A workout program owned by one user.
    """

    id: str
    user_id: str
    name: str
    description: str = ""
    exercises: list[Exercise] = field(default_factory=list)
    estimated_duration: str = ""
    difficulty: Difficulty = "Beginner"
    category: str = ""
    created_at: str = ""  # ISO timestamp
    last_completed: str | None = None  # ISO timestamp
    completions: int = 0

    def __post_init__(self) -> None:
        """Validate workout data."""
        if not self.name or not self.name.strip():
            raise ValueError("workout name must be non-empty")
        if self.difficulty not in DIFFICULTIES:
            raise ValueError(f"Invalid difficulty: {self.difficulty}")
        if self.completions < 0:
            raise ValueError("completions must be non-negative")


@dataclass
class CompletionRecord:
    """
    One finished workout run, as written to the history log.
    """

    id: str
    workout_id: str
    completed_at: str  # ISO timestamp
    category: str = ""
    exercises: list[dict] = field(default_factory=list)
    weights: list[str | None] = field(default_factory=list)
    duration_minutes: int | None = None
    notes: str | None = None


class SessionPhase(str, Enum):
    """Lifecycle of one workout run."""

    IN_PROGRESS = "in_progress"
    CONFIRMING_COMPLETION = "confirming_completion"
    COMMITTING = "committing"
    COMPLETED = "completed"
    EXITED = "exited"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionPhase.COMPLETED, SessionPhase.EXITED)

    @property
    def leaves_view(self) -> bool:
        """True when the caller should close the session view."""
        return self.is_terminal
