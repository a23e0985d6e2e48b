"""Shared Typer app object, shared option types, and store utility."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.logging import RichHandler

from ..core.models import Workout
from ..io.identity import current_user_id
from ..io.workout_store import WorkoutStore, get_default_data_dir

# Shared --data-dir option type used across all commands
DataDirOption = Annotated[
    Optional[Path],
    typer.Option(
        "--data-dir",
        help="Directory holding workouts.json and history.jsonl "
        "(default: $WORKOUT_TRACKER_HOME or ~/.workout-tracker)",
    ),
]

JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Output machine-readable JSON"),
]

app = typer.Typer(
    name="workout-tracker",
    help="Run timed workout sessions with rest timers and auto-saved edits.",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log engine activity to stderr"),
    ] = False,
) -> None:
    """
    Workout programs, timed sessions and progress tracking.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(show_path=False)],
            force=True,
        )


def get_store(data_dir: Path | None) -> WorkoutStore:
    """Get workout store from path or default location."""
    store = WorkoutStore(data_dir if data_dir is not None else get_default_data_dir())
    store.init()
    return store


def get_user_id() -> str:
    return current_user_id()


def resolve_workout(store: WorkoutStore, user_id: str, ref: str) -> Workout | None:
    """
    Find one of the user's workouts by list number, full id or id prefix.

    Returns None when nothing (or more than one workout) matches.
    """
    workouts = store.list_workouts(user_id)
    if ref.isdigit() and 1 <= int(ref) <= len(workouts):
        return workouts[int(ref) - 1]
    matches = [w for w in workouts if w.id == ref or w.id.startswith(ref)]
    return matches[0] if len(matches) == 1 else None
