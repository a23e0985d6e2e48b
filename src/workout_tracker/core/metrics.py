"""
Progress metrics over workouts and completion history.

Pure functions; the CLI renders their results.
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from .config import SECONDS_PER_SET
from .models import CompletionRecord, Exercise, Workout
from .rest_timer import parse_rest_duration


@dataclass
class WorkoutStats:
    """Headline numbers for the progress screen."""

    total_workouts: int
    total_completions: int
    this_week_workouts: int
    this_month_workouts: int
    current_streak: int  # consecutive days with at least one completion


@dataclass
class CategoryBreakdown:
    category: str
    workout_count: int
    completion_count: int


def _completion_date(record: CompletionRecord) -> date:
    return datetime.fromisoformat(record.completed_at).astimezone().date()


def estimate_duration_minutes(exercises: list[Exercise]) -> int:
    """
    Estimate how long a workout takes.

    Each set counts SECONDS_PER_SET of work plus the exercise's rest time.

    >>> estimate_duration_minutes([Exercise(id="a", name="Row", sets=3, rest_time="60s")])
    5
    """
    total_seconds = 0
    for ex in exercises:
        sets = ex.sets or 1
        total_seconds += sets * SECONDS_PER_SET + sets * parse_rest_duration(ex.rest_time)
    return round(total_seconds / 60)


def current_streak(history: list[CompletionRecord], today: date) -> int:
    """
    Count consecutive days with a completion, ending today.

    A streak that ended yesterday still counts (today isn't over yet).
    """
    days = {_completion_date(r) for r in history}
    cursor = today if today in days else today - timedelta(days=1)
    streak = 0
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def workout_stats(
    workouts: list[Workout],
    history: list[CompletionRecord],
    today: date | None = None,
) -> WorkoutStats:
    """
    Summarize a user's workouts and completion history.

    Weeks start on Monday; "this month" is the calendar month of ``today``.
    """
    today = today or date.today()
    week_start = today - timedelta(days=today.weekday())
    dates = [_completion_date(r) for r in history]
    return WorkoutStats(
        total_workouts=len(workouts),
        total_completions=sum(w.completions for w in workouts),
        this_week_workouts=sum(1 for d in dates if week_start <= d <= today),
        this_month_workouts=sum(
            1 for d in dates if d.year == today.year and d.month == today.month and d <= today
        ),
        current_streak=current_streak(history, today),
    )


def category_breakdown(workouts: list[Workout]) -> list[CategoryBreakdown]:
    """Workouts and completions per category, busiest first."""
    counts: dict[str, list[int]] = defaultdict(lambda: [0, 0])
    for w in workouts:
        entry = counts[w.category or "Uncategorized"]
        entry[0] += 1
        entry[1] += w.completions
    rows = [CategoryBreakdown(cat, n, c) for cat, (n, c) in counts.items()]
    rows.sort(key=lambda r: (-r.completion_count, -r.workout_count, r.category))
    return rows
