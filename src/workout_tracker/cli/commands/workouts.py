"""Workout commands: list, show, create, edit, delete."""

import json
from typing import Annotated, Optional

import typer

from ...core.config import DIFFICULTIES
from ...core.metrics import estimate_duration_minutes
from ...io.identity import is_guest
from ...io.serializers import ValidationError, parse_exercise_spec, workout_to_dict
from .. import views
from ..app import DataDirOption, JsonOption, app, get_store, get_user_id, resolve_workout


@app.command("list")
def list_workouts(
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    List your workouts (newest first).
    """
    store = get_store(data_dir)
    user_id = get_user_id()
    try:
        workouts = store.list_workouts(user_id)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps([workout_to_dict(w) for w in workouts], indent=2))
        return
    views.print_workouts(workouts, owner="guest" if is_guest(user_id) else user_id)


@app.command("show")
def show_workout(
    workout: Annotated[str, typer.Argument(help="Workout number, id or id prefix")],
    data_dir: DataDirOption = None,
) -> None:
    """
    Show one workout and its exercises.
    """
    store = get_store(data_dir)
    found = resolve_workout(store, get_user_id(), workout)
    if found is None:
        views.print_error(f"No workout matches '{workout}'")
        raise typer.Exit(1)
    views.print_workout(found)


@app.command("create")
def create_workout(
    name: Annotated[str, typer.Option("--name", "-n", help="Workout name")],
    exercise: Annotated[
        list[str],
        typer.Option(
            "--exercise",
            "-x",
            help="NAME:SETSxREPS[@WEIGHT][/REST], e.g. 'Bench Press:3x8-10@60kg/90s' (repeatable)",
        ),
    ],
    category: Annotated[str, typer.Option("--category", "-c", help="Category, e.g. Push")] = "",
    difficulty: Annotated[
        str,
        typer.Option("--difficulty", "-d", help="Beginner | Intermediate | Advanced"),
    ] = "Beginner",
    description: Annotated[str, typer.Option("--description", help="Short description")] = "",
    data_dir: DataDirOption = None,
) -> None:
    """
    Create a workout from compact exercise specs.
    """
    if difficulty not in DIFFICULTIES:
        views.print_error(f"Difficulty must be one of: {', '.join(DIFFICULTIES)}")
        raise typer.Exit(1)

    try:
        exercises = [parse_exercise_spec(raw) for raw in exercise]
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    store = get_store(data_dir)
    try:
        created = store.create_workout(
            {
                "user_id": get_user_id(),
                "name": name,
                "description": description,
                "category": category,
                "difficulty": difficulty,
                "estimated_duration": f"{estimate_duration_minutes(exercises)} min",
                "exercises": exercises,
            }
        )
    except ValidationError as e:
        views.print_error(f"Invalid workout: {e}")
        raise typer.Exit(1)

    views.print_success(f"Created '{created.name}' with {len(created.exercises)} exercise(s)")
    views.print_info(f"ID: {created.id}")


@app.command("edit")
def edit_workout(
    workout: Annotated[str, typer.Argument(help="Workout number, id or id prefix")],
    name: Annotated[Optional[str], typer.Option("--name", "-n", help="New name")] = None,
    description: Annotated[Optional[str], typer.Option("--description", help="New description")] = None,
    category: Annotated[Optional[str], typer.Option("--category", "-c", help="New category")] = None,
    difficulty: Annotated[
        Optional[str],
        typer.Option("--difficulty", "-d", help="Beginner | Intermediate | Advanced"),
    ] = None,
    exercise: Annotated[
        Optional[list[str]],
        typer.Option(
            "--exercise",
            "-x",
            help="Replace all exercises; same format as 'create' (repeatable)",
        ),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """
    Change a workout's details or replace its exercises.
    """
    if difficulty is not None and difficulty not in DIFFICULTIES:
        views.print_error(f"Difficulty must be one of: {', '.join(DIFFICULTIES)}")
        raise typer.Exit(1)

    partial: dict = {}
    if name is not None:
        partial["name"] = name
    if description is not None:
        partial["description"] = description
    if category is not None:
        partial["category"] = category
    if difficulty is not None:
        partial["difficulty"] = difficulty
    if exercise:
        try:
            exercises = [parse_exercise_spec(raw) for raw in exercise]
        except ValidationError as e:
            views.print_error(str(e))
            raise typer.Exit(1)
        partial["exercises"] = exercises
        partial["estimated_duration"] = f"{estimate_duration_minutes(exercises)} min"

    store = get_store(data_dir)
    found = resolve_workout(store, get_user_id(), workout)
    if found is None:
        views.print_error(f"No workout matches '{workout}'")
        raise typer.Exit(1)

    if not partial:
        views.print_info("Nothing to change.")
        return

    try:
        updated = store.update_workout(found.id, partial)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_success(f"Updated '{updated.name}'")


@app.command("delete")
def delete_workout(
    workout: Annotated[str, typer.Argument(help="Workout number, id or id prefix")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
    data_dir: DataDirOption = None,
) -> None:
    """
    Delete a workout (its completion history is kept).
    """
    store = get_store(data_dir)
    found = resolve_workout(store, get_user_id(), workout)
    if found is None:
        views.print_error(f"No workout matches '{workout}'")
        raise typer.Exit(1)

    if not yes and not views.confirm_action(f"Delete '{found.name}'?"):
        views.print_info("Cancelled.")
        return

    store.delete_workout(found.id)
    views.print_success(f"Deleted '{found.name}'")
