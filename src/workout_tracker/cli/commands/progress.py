"""Progress commands: history, stats."""

import json
from dataclasses import asdict
from typing import Annotated

import typer

from ...core.config import HISTORY_LIMIT
from ...core.metrics import category_breakdown, workout_stats
from ...io.serializers import ValidationError, completion_to_dict
from .. import views
from ..app import DataDirOption, JsonOption, app, get_store, get_user_id


@app.command("history")
def show_history(
    limit: Annotated[
        int,
        typer.Option("--limit", "-l", min=1, help="Maximum records to show"),
    ] = HISTORY_LIMIT,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show completed workouts, newest first.
    """
    store = get_store(data_dir)
    try:
        workouts = store.list_workouts(get_user_id())
        mine = {w.id for w in workouts}
        records = [r for r in store.load_history(limit=None) if r.workout_id in mine][:limit]
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps([completion_to_dict(r) for r in records], indent=2))
        return
    views.print_history(records, {w.id: w.name for w in workouts})


@app.command("stats")
def show_stats(
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show progress statistics and the per-category breakdown.
    """
    store = get_store(data_dir)
    try:
        workouts = store.list_workouts(get_user_id())
        mine = {w.id for w in workouts}
        history = [r for r in store.load_history(limit=None) if r.workout_id in mine]
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    stats = workout_stats(workouts, history)
    breakdown = category_breakdown(workouts)

    if json_out:
        print(json.dumps({
            **asdict(stats),
            "categories": [asdict(row) for row in breakdown],
        }, indent=2))
        return
    views.print_stats(stats, breakdown)
