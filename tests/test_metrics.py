"""Progress metric tests."""

from datetime import date

from workout_tracker.core.metrics import (
    category_breakdown,
    current_streak,
    estimate_duration_minutes,
    workout_stats,
)
from workout_tracker.core.models import CompletionRecord, Exercise, Workout


def _done(day: str, workout_id: str = "w1") -> CompletionRecord:
    return CompletionRecord(id=f"c-{day}", workout_id=workout_id, completed_at=f"{day}T12:00:00+00:00")


def _workout(wid: str, category: str = "", completions: int = 0) -> Workout:
    return Workout(id=wid, user_id="guest", name=wid, category=category, completions=completions)


# Wednesday
TODAY = date(2024, 5, 15)


class TestEstimateDuration:
    def test_work_plus_rest(self):
        exercises = [
            Exercise(id="a", name="Bench", sets=3, rest_time="90s"),
            Exercise(id="b", name="Dips", sets=3, rest_time="60s"),
        ]
        # 3*(40+90) + 3*(40+60) = 690 s
        assert estimate_duration_minutes(exercises) == 12

    def test_missing_rest_uses_default(self):
        assert estimate_duration_minutes([Exercise(id="a", name="Row", sets=2)]) == 3

    def test_empty(self):
        assert estimate_duration_minutes([]) == 0


class TestStreak:
    def test_consecutive_days_to_today(self):
        history = [_done("2024-05-15"), _done("2024-05-14"), _done("2024-05-13"), _done("2024-05-11")]
        assert current_streak(history, TODAY) == 3

    def test_streak_ending_yesterday_counts(self):
        history = [_done("2024-05-14"), _done("2024-05-13")]
        assert current_streak(history, TODAY) == 2

    def test_broken_streak(self):
        assert current_streak([_done("2024-05-12")], TODAY) == 0

    def test_multiple_per_day_count_once(self):
        history = [_done("2024-05-15"), _done("2024-05-15", "w2")]
        assert current_streak(history, TODAY) == 1

    def test_no_history(self):
        assert current_streak([], TODAY) == 0


class TestWorkoutStats:
    def test_counts(self):
        workouts = [_workout("w1", completions=4), _workout("w2", completions=1)]
        history = [
            _done("2024-05-15"),
            _done("2024-05-13"),  # Monday, same week
            _done("2024-05-12"),  # Sunday, previous week
            _done("2024-05-01"),
            _done("2024-04-30"),
        ]
        stats = workout_stats(workouts, history, today=TODAY)
        assert stats.total_workouts == 2
        assert stats.total_completions == 5
        assert stats.this_week_workouts == 2
        assert stats.this_month_workouts == 4
        assert stats.current_streak == 1

    def test_empty(self):
        stats = workout_stats([], [], today=TODAY)
        assert (stats.total_workouts, stats.total_completions, stats.current_streak) == (0, 0, 0)


class TestCategoryBreakdown:
    def test_grouped_and_sorted(self):
        rows = category_breakdown([
            _workout("a", "Legs", 1),
            _workout("b", "Push", 5),
            _workout("c", "Push", 2),
            _workout("d", "", 1),
            _workout("e", "Pull", 1),
        ])
        assert [(r.category, r.workout_count, r.completion_count) for r in rows] == [
            ("Push", 2, 7),
            ("Legs", 1, 1),
            ("Pull", 1, 1),
            ("Uncategorized", 1, 1),
        ]

    def test_empty(self):
        assert category_breakdown([]) == []
