"""The 'run' command: an interactive workout session."""

import time
from dataclasses import replace
from typing import Annotated, Optional

import typer
from rich.live import Live

from ...core.context import SessionContext
from ...core.engine.config_loader import load_session_settings
from ...core.errors import InvalidTransition, PersistenceError, SessionError
from ...core.session import SessionController
from .. import views
from ..app import DataDirOption, app, get_store, get_user_id, resolve_workout

# Short field names accepted by "s <n> <field> <value>"
FIELD_ALIASES = {
    "name": "actual_name",
    "reps": "actual_reps",
    "weight": "actual_weight",
    "rest": "rest_time",
    "desc": "description",
    "pos": "adjustment",
}


def _exercise_id(session: SessionController, raw: str) -> str:
    """Map a 1-based exercise number to its id."""
    try:
        index = int(raw)
    except ValueError:
        raise ValueError(f"Not an exercise number: {raw}") from None
    if index < 1 or index > len(session.exercises):
        raise ValueError(f"Enter a number between 1 and {len(session.exercises)}")
    return session.exercises[index - 1].id


def _watch_rest(session: SessionController, exercise_id: str) -> None:
    """Show a live countdown until the rest ends or the user presses Ctrl-C."""
    if not session.rest_timer.is_active(exercise_id):
        session.toggle_rest(exercise_id)
    tick = session.settings.rest_tick_seconds
    try:
        with Live(
            views.render_rest_countdown(session, exercise_id),
            console=views.console,
            refresh_per_second=max(1, round(1 / tick)),
            transient=True,
        ) as live:
            while session.rest_timer.is_active(exercise_id):
                session.poll()
                live.update(views.render_rest_countdown(session, exercise_id))
                time.sleep(tick)
    except KeyboardInterrupt:
        pass
    remaining = session.rest_remaining(exercise_id)
    if remaining == 0:
        views.print_success(f"Rest over: {session.exercise(exercise_id).display_name}")


def _complete(session: SessionController) -> None:
    if not session.can_request_completion:
        views.print_warning("Complete at least one exercise first.")
        return
    session.request_completion()
    if not views.confirm_action("Complete workout? Your progress and exercise details will be saved."):
        session.cancel_completion()
        return
    try:
        notes = views.console.input("Notes (optional): ").strip() or None
    except EOFError:
        notes = None
    try:
        session.confirm_completion(notes=notes)
    except PersistenceError as e:
        views.print_error(str(e))
        views.print_info("Nothing was lost; try completing again.")
        session.cancel_completion()
        return
    views.print_success("Workout complete. Progress and details are saved.")


def handle_command(session: SessionController, raw: str) -> None:
    """
    Apply one line of user input to the session.

    Raises:
        ValueError: On malformed input
        SessionError: If the session rejects the action
    """
    parts = raw.split(maxsplit=3)
    if not parts:
        return
    cmd = parts[0].lower()

    if cmd.isdigit():
        state = session.toggle_exercise_complete(_exercise_id(session, cmd))
        mark = "done" if state.completed else "not done"
        views.print_info(f"{state.display_name}: {mark}")
    elif cmd in ("?", "h", "help"):
        views.print_session_help()
    elif cmd == "c":
        _complete(session)
    elif cmd == "q":
        session.exit()
        views.print_success("Changes saved.")
    elif cmd == "r" and len(parts) == 2:
        exercise_id = _exercise_id(session, parts[1])
        running = session.toggle_rest(exercise_id)
        views.print_info("Rest timer started." if running else "Rest timer reset.")
    elif cmd == "w" and len(parts) == 2:
        _watch_rest(session, _exercise_id(session, parts[1]))
    elif cmd == "e" and len(parts) == 2:
        session.begin_edit(_exercise_id(session, parts[1]))
    elif cmd == "ok" and len(parts) == 2:
        state = session.confirm_edit(_exercise_id(session, parts[1]))
        views.print_success(f"Saved {state.display_name}")
    elif cmd == "x" and len(parts) == 2:
        state = session.discard_edit(_exercise_id(session, parts[1]))
        views.print_info(f"Discarded edits to {state.display_name}")
    elif cmd == "s" and len(parts) == 4:
        field = FIELD_ALIASES.get(parts[2].lower())
        if field is None:
            raise ValueError(f"Unknown field '{parts[2]}'. Use one of: {', '.join(FIELD_ALIASES)}")
        exercise_id = _exercise_id(session, parts[1])
        session.begin_edit(exercise_id)
        session.update_field(exercise_id, field, parts[3])
    else:
        raise ValueError(f"Unknown command: {raw!r} (type ? for help)")


@app.command("run")
def run_session(
    workout: Annotated[str, typer.Argument(help="Workout number, id or id prefix")],
    delay_ms: Annotated[
        Optional[int],
        typer.Option("--autosave-ms", min=0, help="Override the auto-save debounce window"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """
    Run a workout session: mark exercises done, time rests, edit on the fly.
    """
    store = get_store(data_dir)
    user_id = get_user_id()
    found = resolve_workout(store, user_id, workout)
    if found is None:
        views.print_error(f"No workout matches '{workout}'")
        raise typer.Exit(1)

    settings = load_session_settings()
    if delay_ms is not None:
        settings = replace(settings, autosave_delay_ms=delay_ms)

    def ring(_exercise_id: str) -> None:
        if settings.rest_bell:
            views.console.bell()

    def save_failed(_exercise_id: str, exc: Exception) -> None:
        views.print_error(f"Auto-save failed: {exc}")

    context = SessionContext(
        user_id,
        store,
        settings=settings,
        notifier=ring,
        on_save_error=save_failed,
    )
    try:
        with context:
            session = context.start_session(found.id)
            views.print_session_help()
            at_eof = False
            while not session.phase.leaves_view:
                session.resume()
                views.print_session(session)
                try:
                    raw = views.console.input("[bold]>[/bold] ").strip()
                except EOFError:
                    at_eof, raw = True, "q"
                # Input may have blocked for minutes; recompute before acting
                session.resume()
                try:
                    handle_command(session, raw)
                except (ValueError, InvalidTransition, PersistenceError) as e:
                    views.print_error(str(e))
                    if at_eof:
                        # No more input; leave the final save to the context
                        break
    except SessionError as e:
        views.print_error(str(e))
        raise typer.Exit(1)
