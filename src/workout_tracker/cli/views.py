"""
CLI view formatters using Rich for pretty console output.

Handles table formatting for workouts, the live session screen, history
and progress stats.
"""

from rich.console import Console, Group
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.table import Table
from rich.text import Text

from ..core.metrics import CategoryBreakdown, WorkoutStats
from ..core.models import CompletionRecord, Workout
from ..core.rest_timer import format_rest_time
from ..core.session import SessionController

console = Console()


def format_workout_table(workouts: list[Workout], owner: str = "guest") -> Table:
    """
    Format workouts as a Rich table.

    Args:
        workouts: Workouts to display
        owner: Shown in the title ("guest" when nobody is signed in)

    Returns:
        Rich Table object
    """
    table = Table(title=f"Workouts ({owner})", show_header=True, header_style="bold")
    table.add_column("#", justify="right", style="dim")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Category", style="magenta")
    table.add_column("Level")
    table.add_column("Exercises", justify="right")
    table.add_column("Done", justify="right", style="green")
    table.add_column("Last completed")

    for i, w in enumerate(workouts, 1):
        table.add_row(
            str(i),
            w.id[:8],
            w.name,
            w.category or "-",
            w.difficulty,
            str(len(w.exercises)),
            str(w.completions),
            (w.last_completed or "-")[:10],
        )

    return table


def print_workouts(workouts: list[Workout], owner: str = "guest") -> None:
    if not workouts:
        console.print("[yellow]No workouts yet. Create one with 'create'.[/yellow]")
        return
    console.print(format_workout_table(workouts, owner))


def print_workout(workout: Workout) -> None:
    """
    Print one workout with its exercises.
    """
    console.print()
    console.print(f"[bold cyan]{workout.name}[/bold cyan]  [dim]{workout.id}[/dim]")
    meta = [workout.difficulty]
    if workout.category:
        meta.append(workout.category)
    if workout.estimated_duration:
        meta.append(workout.estimated_duration)
    console.print(f"[dim]{' · '.join(meta)}[/dim]")
    if workout.description:
        console.print(workout.description)

    table = Table(show_header=True, header_style="dim")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Exercise", style="cyan")
    table.add_column("Sets", justify="right")
    table.add_column("Reps", justify="right")
    table.add_column("Weight", justify="right")
    table.add_column("Rest", justify="right")
    table.add_column("Position", justify="right", style="green")

    for i, ex in enumerate(workout.exercises, 1):
        table.add_row(
            str(i),
            ex.name,
            str(ex.sets),
            ex.reps,
            ex.weight or "-",
            ex.rest_time or "-",
            ex.adjustment or "-",
        )
    console.print(table)


def render_session(session: SessionController) -> Group:
    """
    Build the session screen: header, progress and the exercise table.
    """
    done, total, percent = session.progress()
    header = Text.assemble(
        (session.workout.name, "bold cyan"),
        "  ",
        (f"⏱ {session.elapsed()}", "dim"),
        "  ",
        (f"{done}/{total} completed", "green"),
    )
    bar = ProgressBar(total=100, completed=percent, width=40)

    saved = session.autosave.saved_ids()
    table = Table(show_header=True, header_style="dim", expand=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("", width=1)
    table.add_column("Exercise")
    table.add_column("Sets", justify="right")
    table.add_column("Reps", justify="right")
    table.add_column("Weight", justify="right")
    table.add_column("Pos", justify="right", style="green")
    table.add_column("Rest", justify="right")
    table.add_column("")

    for i, state in enumerate(session.exercises, 1):
        remaining = session.rest_remaining(state.id)
        if session.rest_timer.is_active(state.id):
            rest_cell = f"[green]{format_rest_time(remaining)}[/green]"
        elif remaining == 0:
            rest_cell = f"[bold red]{format_rest_time(remaining)}[/bold red]"
        else:
            rest_cell = format_rest_time(remaining)

        flags = []
        if state.editing:
            flags.append("[yellow]editing[/yellow]")
        if state.id in saved:
            flags.append("[blue]✓ saved[/blue]")
        if state.id in session.autosave.errors:
            flags.append("[red]save failed[/red]")

        name_style = "green" if state.completed else "white"
        table.add_row(
            str(i),
            "[green]✓[/green]" if state.completed else "○",
            f"[{name_style}]{state.display_name}[/{name_style}]",
            f"{state.current_sets}/{state.exercise.sets}",
            state.display_reps,
            state.display_weight or "-",
            state.adjustment or "-",
            rest_cell,
            " ".join(flags),
        )

    return Group(header, bar, table)


def print_session(session: SessionController) -> None:
    console.print()
    console.print(render_session(session))


def render_rest_countdown(session: SessionController, exercise_id: str) -> Panel:
    """Large countdown panel for watching one exercise's rest timer."""
    state = session.exercise(exercise_id)
    remaining = session.rest_remaining(exercise_id)
    style = "bold green" if remaining > 0 else "bold red"
    body = Text(format_rest_time(remaining), style=style, justify="center")
    return Panel(
        body,
        title=f"Rest · {state.display_name}",
        subtitle=f"session {session.elapsed()} · Ctrl-C to stop watching",
        width=44,
    )


def print_session_help() -> None:
    console.print(
        "\n[bold]Commands[/bold]\n"
        "  [cyan]<n>[/cyan]                     toggle exercise n complete\n"
        "  [cyan]r <n>[/cyan]                   start / reset rest timer\n"
        "  [cyan]w <n>[/cyan]                   watch rest countdown\n"
        "  [cyan]e <n>[/cyan]                   edit exercise\n"
        "  [cyan]s <n> <field> <value>[/cyan]   set name | reps | weight | rest | desc | pos\n"
        "  [cyan]ok <n>[/cyan]                  save edits now\n"
        "  [cyan]x <n>[/cyan]                   discard edits\n"
        "  [cyan]c[/cyan]                       complete workout\n"
        "  [cyan]q[/cyan]                       exit (changes are saved)\n"
    )


def print_history(records: list[CompletionRecord], names: dict[str, str]) -> None:
    """
    Print completion history to console.

    Args:
        records: Completion records, newest first
        names: workout id → workout name (deleted workouts show their id)
    """
    if not records:
        console.print("[yellow]No completed workouts yet.[/yellow]")
        return

    table = Table(title="History", show_header=True, header_style="bold")
    table.add_column("Completed", style="cyan")
    table.add_column("Workout")
    table.add_column("Category", style="magenta")
    table.add_column("Exercises", justify="right")
    table.add_column("Minutes", justify="right")
    table.add_column("Notes", style="dim")

    for r in records:
        done = sum(1 for e in r.exercises if e.get("completed", True))
        table.add_row(
            r.completed_at.replace("T", " ")[:16],
            names.get(r.workout_id, r.workout_id[:8]),
            r.category or "-",
            f"{done}/{len(r.exercises)}",
            str(r.duration_minutes) if r.duration_minutes is not None else "-",
            r.notes or "",
        )
    console.print(table)


def print_stats(stats: WorkoutStats, breakdown: list[CategoryBreakdown]) -> None:
    console.print()
    console.print("[bold]Progress[/bold]")
    console.print(f"  Workouts:           {stats.total_workouts}")
    console.print(f"  Total completions:  {stats.total_completions}")
    console.print(f"  This week:          {stats.this_week_workouts}")
    console.print(f"  This month:         {stats.this_month_workouts}")
    console.print(f"  Current streak:     {stats.current_streak} day(s)")

    if breakdown:
        table = Table(show_header=True, header_style="dim")
        table.add_column("Category", style="magenta")
        table.add_column("Workouts", justify="right")
        table.add_column("Completions", justify="right", style="green")
        for row in breakdown:
            table.add_row(row.category, str(row.workout_count), str(row.completion_count))
        console.print()
        console.print(table)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    try:
        response = console.input(f"{message} \\[y/N]: ")
    except EOFError:
        return False
    return response.strip().lower() in ("y", "yes")
