"""
File-based storage for workouts and completion history.

Workout programs live in ``workouts.json`` (a JSON list); finished runs are
appended to ``history.jsonl``, one completion record per line.
"""

import json
import logging
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..core.config import HISTORY_LIMIT
from ..core.engine.config_loader import get_user_config_dir
from ..core.models import CompletionRecord, Exercise, Workout
from .serializers import (
    ValidationError,
    completion_to_json_line,
    dict_to_completion,
    dict_to_workout,
    exercise_to_dict,
    new_id,
    workout_to_dict,
)

logger = logging.getLogger(__name__)

# Fields a caller may change through update_workout()
_UPDATABLE = ("name", "description", "estimated_duration", "difficulty", "category", "exercises")


class WorkoutNotFoundError(KeyError):
    """Raised when a workout id does not exist in the store."""

    pass


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class WorkoutStore:
    """
    Manages workouts and completion history under one data directory.

    Every write rewrites ``workouts.json`` in full; history is append-only.
    """

    def __init__(self, data_dir: str | Path):
        """
        Initialize the store.

        Args:
            data_dir: Directory holding workouts.json and history.jsonl
        """
        self.data_dir = Path(data_dir)
        self.workouts_path = self.data_dir / "workouts.json"
        self.history_path = self.data_dir / "history.jsonl"

    def init(self) -> None:
        """
        Create the data directory and empty files if they don't exist.
        """
        self.data_dir.mkdir(parents=True, exist_ok=True)
        if not self.workouts_path.exists():
            self.workouts_path.write_text("[]\n")
        if not self.history_path.exists():
            self.history_path.touch()

    # ------------------------------------------------------------------
    # Internal I/O
    # ------------------------------------------------------------------

    def _load_all(self) -> list[Workout]:
        if not self.workouts_path.exists():
            return []
        try:
            with open(self.workouts_path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Error parsing {self.workouts_path}: {e}") from e
        if not isinstance(raw, list):
            raise ValidationError(f"{self.workouts_path} must contain a JSON list")
        return [dict_to_workout(item) for item in raw]

    def _write_all(self, workouts: list[Workout]) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        tmp = self.workouts_path.with_suffix(".json.tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump([workout_to_dict(w) for w in workouts], f, indent=2)
        tmp.replace(self.workouts_path)

    def _index_of(self, workouts: list[Workout], workout_id: str) -> int:
        for i, w in enumerate(workouts):
            if w.id == workout_id:
                return i
        raise WorkoutNotFoundError(workout_id)

    # ------------------------------------------------------------------
    # Workouts
    # ------------------------------------------------------------------

    def list_workouts(self, user_id: str) -> list[Workout]:
        """
        Return the user's workouts, newest first.
        """
        workouts = [w for w in self._load_all() if w.user_id == user_id]
        workouts.sort(key=lambda w: w.created_at, reverse=True)
        return workouts

    def get_workout(self, workout_id: str) -> Workout | None:
        for w in self._load_all():
            if w.id == workout_id:
                return w
        return None

    def create_workout(self, data: dict[str, Any]) -> Workout:
        """
        Create a workout from a dict of fields.

        ``id``, ``created_at`` and ``completions`` are assigned by the store.

        Raises:
            ValidationError: If the data is invalid
        """
        record = dict(data)
        record["id"] = new_id()
        record["created_at"] = _now_iso()
        record["completions"] = 0
        record["last_completed"] = None
        record["exercises"] = [
            e if isinstance(e, dict) else exercise_to_dict(e)
            for e in record.get("exercises", [])
        ]
        workout = dict_to_workout(record)
        workouts = self._load_all()
        workouts.append(workout)
        self._write_all(workouts)
        logger.info("created workout %s (%s)", workout.id, workout.name)
        return workout

    def update_workout(self, workout_id: str, partial: dict[str, Any]) -> Workout:
        """
        Apply a partial update to a workout.

        Raises:
            WorkoutNotFoundError: If the workout does not exist
            ValidationError: If an unknown or invalid field is given
        """
        unknown = set(partial) - set(_UPDATABLE)
        if unknown:
            raise ValidationError(f"Cannot update fields: {sorted(unknown)}")
        workouts = self._load_all()
        idx = self._index_of(workouts, workout_id)
        merged = workout_to_dict(workouts[idx])
        merged.update(partial)
        if "exercises" in partial:
            merged["exercises"] = [
                e if isinstance(e, dict) else exercise_to_dict(e) for e in partial["exercises"]
            ]
        workouts[idx] = dict_to_workout(merged)
        self._write_all(workouts)
        return workouts[idx]

    def delete_workout(self, workout_id: str) -> None:
        """
        Delete a workout.  Its completion history is kept.

        Raises:
            WorkoutNotFoundError: If the workout does not exist
        """
        workouts = self._load_all()
        idx = self._index_of(workouts, workout_id)
        del workouts[idx]
        self._write_all(workouts)
        logger.info("deleted workout %s", workout_id)

    def replace_exercises(self, workout_id: str, exercises: list[Exercise]) -> None:
        """
        Replace a workout's whole exercise list (delete-then-insert).

        Raises:
            WorkoutNotFoundError: If the workout does not exist
        """
        workouts = self._load_all()
        idx = self._index_of(workouts, workout_id)
        workouts[idx] = replace(workouts[idx], exercises=list(exercises))
        self._write_all(workouts)

    # ------------------------------------------------------------------
    # Completions
    # ------------------------------------------------------------------

    def increment_completion_counter(self, workout_id: str) -> None:
        """
        Bump the completion count and set last_completed to now.

        Raises:
            WorkoutNotFoundError: If the workout does not exist
        """
        workouts = self._load_all()
        idx = self._index_of(workouts, workout_id)
        current = workouts[idx]
        workouts[idx] = replace(
            current,
            completions=current.completions + 1,
            last_completed=_now_iso(),
        )
        self._write_all(workouts)

    def record_completion(self, workout_id: str, data: dict[str, Any]) -> CompletionRecord:
        """
        Append a completion record to the history log.

        Args:
            workout_id: Workout that was completed
            data: exercises, weights, category and optional
                duration_minutes / notes

        Raises:
            WorkoutNotFoundError: If the workout does not exist
        """
        if self.get_workout(workout_id) is None:
            raise WorkoutNotFoundError(workout_id)
        record = dict_to_completion(
            {
                "id": new_id(),
                "workout_id": workout_id,
                "completed_at": data.get("completed_at") or _now_iso(),
                "category": data.get("category", ""),
                "exercises": data.get("exercises", []),
                "weights": data.get("weights", []),
                "duration_minutes": data.get("duration_minutes"),
                "notes": data.get("notes"),
            }
        )
        self.data_dir.mkdir(parents=True, exist_ok=True)
        with open(self.history_path, "a", encoding="utf-8") as f:
            f.write(completion_to_json_line(record) + "\n")
        return record

    def load_history(self, limit: int | None = HISTORY_LIMIT) -> list[CompletionRecord]:
        """
        Load completion records, newest first.

        Raises:
            ValidationError: If a line cannot be parsed
        """
        if not self.history_path.exists():
            return []

        records: list[CompletionRecord] = []
        with open(self.history_path, "r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    records.append(dict_to_completion(json.loads(line)))
                except (json.JSONDecodeError, ValidationError) as e:
                    raise ValidationError(
                        f"Error parsing line {line_num} in {self.history_path}: {e}"
                    ) from e

        records.sort(key=lambda r: r.completed_at, reverse=True)
        return records if limit is None else records[:limit]


def get_default_data_dir() -> Path:
    """
    Get the default data directory (``$WORKOUT_TRACKER_HOME`` or ~/.workout-tracker).
    """
    return get_user_config_dir()
