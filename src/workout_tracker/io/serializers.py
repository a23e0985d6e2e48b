"""
JSON serialization for workout data models.

Handles conversion between dataclasses and JSON-compatible dicts, and
parsing of the compact exercise format accepted by the CLI.
"""

import json
import re
import uuid
from typing import Any

from ..core.models import CompletionRecord, Exercise, Workout


class ValidationError(Exception):
    """Raised when data validation fails."""

    pass


def new_id() -> str:
    """Return a fresh opaque record id."""
    return str(uuid.uuid4())


def validate_positive_int(value: Any, name: str) -> int:
    """
    Validate that a value is a positive integer.

    Args:
        value: Value to validate
        name: Name for error message

    Returns:
        The value as int

    Raises:
        ValidationError: If value is not an integer ≥ 1
    """
    try:
        as_int = int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name} must be an integer, got {value!r}") from e
    if as_int < 1:
        raise ValidationError(f"{name} must be at least 1, got {as_int}")
    return as_int


def _opt_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


# =============================================================================
# Exercise
# =============================================================================


def exercise_to_dict(exercise: Exercise) -> dict[str, Any]:
    """
    Convert Exercise to a JSON-compatible dict.

    Optional fields that are unset are omitted.
    """
    result: dict[str, Any] = {
        "id": exercise.id,
        "name": exercise.name,
        "sets": exercise.sets,
        "reps": exercise.reps,
    }
    for key in ("weight", "rest_time", "notes", "description", "adjustment"):
        value = getattr(exercise, key)
        if value is not None:
            result[key] = value
    return result


def dict_to_exercise(data: dict[str, Any]) -> Exercise:
    """
    Convert dict to Exercise.

    A missing id is filled with a fresh one (new exercises from the editor).

    Raises:
        ValidationError: If data is invalid
    """
    try:
        return Exercise(
            id=str(data.get("id") or new_id()),
            name=str(data["name"]),
            sets=validate_positive_int(data.get("sets", 1), "sets"),
            reps=str(data.get("reps", "")),
            weight=_opt_str(data.get("weight")),
            rest_time=_opt_str(data.get("rest_time")),
            notes=_opt_str(data.get("notes")),
            description=_opt_str(data.get("description")),
            adjustment=_opt_str(data.get("adjustment")),
        )
    except KeyError as e:
        raise ValidationError(f"Missing required field in exercise: {e}") from e
    except ValueError as e:
        raise ValidationError(f"Invalid exercise: {e}") from e


# =============================================================================
# Workout
# =============================================================================


def workout_to_dict(workout: Workout) -> dict[str, Any]:
    """Convert Workout to a JSON-compatible dict."""
    return {
        "id": workout.id,
        "user_id": workout.user_id,
        "name": workout.name,
        "description": workout.description,
        "exercises": [exercise_to_dict(e) for e in workout.exercises],
        "estimated_duration": workout.estimated_duration,
        "difficulty": workout.difficulty,
        "category": workout.category,
        "created_at": workout.created_at,
        "last_completed": workout.last_completed,
        "completions": workout.completions,
    }


def dict_to_workout(data: dict[str, Any]) -> Workout:
    """
    Convert dict to Workout.

    Raises:
        ValidationError: If data is invalid
    """
    try:
        return Workout(
            id=str(data["id"]),
            user_id=str(data["user_id"]),
            name=str(data["name"]),
            description=str(data.get("description", "")),
            exercises=[dict_to_exercise(e) for e in data.get("exercises", [])],
            estimated_duration=str(data.get("estimated_duration", "")),
            difficulty=data.get("difficulty", "Beginner"),
            category=str(data.get("category", "")),
            created_at=str(data.get("created_at", "")),
            last_completed=data.get("last_completed"),
            completions=int(data.get("completions", 0)),
        )
    except KeyError as e:
        raise ValidationError(f"Missing required field in workout: {e}") from e
    except ValueError as e:
        raise ValidationError(f"Invalid workout: {e}") from e


# =============================================================================
# Completion history
# =============================================================================


def completion_to_dict(record: CompletionRecord) -> dict[str, Any]:
    """Convert CompletionRecord to a JSON-compatible dict."""
    result: dict[str, Any] = {
        "id": record.id,
        "workout_id": record.workout_id,
        "completed_at": record.completed_at,
        "category": record.category,
        "exercises": record.exercises,
        "weights": record.weights,
    }
    if record.duration_minutes is not None:
        result["duration_minutes"] = record.duration_minutes
    if record.notes:
        result["notes"] = record.notes
    return result


def dict_to_completion(data: dict[str, Any]) -> CompletionRecord:
    """
    Convert dict to CompletionRecord.

    Raises:
        ValidationError: If data is invalid
    """
    try:
        duration = data.get("duration_minutes")
        return CompletionRecord(
            id=str(data["id"]),
            workout_id=str(data["workout_id"]),
            completed_at=str(data["completed_at"]),
            category=str(data.get("category", "")),
            exercises=list(data.get("exercises", [])),
            weights=list(data.get("weights", [])),
            duration_minutes=int(duration) if duration is not None else None,
            notes=data.get("notes"),
        )
    except KeyError as e:
        raise ValidationError(f"Missing required field in completion: {e}") from e
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid completion: {e}") from e


def completion_to_json_line(record: CompletionRecord) -> str:
    """Convert a completion record to a single JSON line (for JSONL)."""
    return json.dumps(completion_to_dict(record), separators=(",", ":"))


# =============================================================================
# Compact exercise format (CLI input)
# =============================================================================

_EXERCISE_SPEC = re.compile(
    r"""
    ^\s*(?P<name>[^:]+?)\s*:\s*        # name, up to the colon
    (?P<sets>\d+)\s*[xX]\s*            # sets, then "x"
    (?P<reps>[^@/]+?)\s*               # reps, free-form ("10", "8-12")
    (?:@\s*(?P<weight>[^/]+?)\s*)?     # optional @weight
    (?:/\s*(?P<rest>.+?)\s*)?$         # optional /rest
    """,
    re.VERBOSE,
)


def parse_exercise_spec(raw: str) -> Exercise:
    """
    Parse the compact CLI exercise format.

    Format: ``NAME:SETSxREPS[@WEIGHT][/REST]``
        "Bench Press:3x8-10@60kg/90s"
        "Plank:3x45s/30"
        "Push-up:4x12"

    Raises:
        ValidationError: If the string does not match the format
    """
    match = _EXERCISE_SPEC.match(raw)
    if match is None:
        raise ValidationError(
            f"Invalid exercise format: {raw!r}. Expected NAME:SETSxREPS[@WEIGHT][/REST]"
        )
    return dict_to_exercise(
        {
            "name": match.group("name"),
            "sets": match.group("sets"),
            "reps": match.group("reps"),
            "weight": match.group("weight"),
            "rest_time": match.group("rest"),
        }
    )
