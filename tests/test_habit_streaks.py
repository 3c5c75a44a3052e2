"""Tests for habit streak calculations.

These tests verify current and best streaks, including:
- Consecutive days
- Gaps in habit completion
- Weekly intervals
- Empty or malformed history data
"""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from conftest import iso_days
from habitkeeper.services.habits import (
    HabitFrequency,
    best_streak,
    compute_streaks,
    current_streak,
    step_size,
    streak_message,
)

TODAY = date(2024, 1, 7)


class TestCurrentStreak:
    """Tests for the run ending at the reference day."""

    def test_empty_history_returns_zero(self):
        assert current_streak([], "daily", today=TODAY) == 0

    def test_seven_consecutive_days(self):
        history = iso_days(date(2024, 1, 1), 7)
        assert compute_streaks(history, "daily", today=TODAY) == (7, 7)

    def test_gap_before_today_limits_run(self):
        history = ["2024-01-01", "2024-01-03"]
        assert compute_streaks(history, "daily", today=date(2024, 1, 3)) == (1, 1)

    def test_weekly_sundays(self):
        history = ["2023-12-31", "2024-01-07"]
        assert current_streak(history, "weekly", today=TODAY) == 2

    def test_weekly_ignores_days_in_between(self):
        history = ["2023-12-31", "2024-01-03", "2024-01-07"]
        assert current_streak(history, HabitFrequency.WEEKLY, today=TODAY) == 2
        assert best_streak(history, HabitFrequency.WEEKLY) == 1
        assert compute_streaks(history, HabitFrequency.WEEKLY, today=TODAY) == (2, 2)

    @pytest.mark.parametrize("older", [[], ["2024-01-06"], iso_days(date(2023, 12, 1), 37)])
    def test_missing_today_is_zero(self, older):
        assert current_streak(older, "daily", today=TODAY) == 0

    @pytest.mark.parametrize("n", [0, 1, 5, 30])
    @pytest.mark.parametrize("frequency", ["daily", "weekly"])
    def test_full_run_counts_n_plus_one(self, n, frequency):
        step = step_size(frequency)
        history = [(TODAY - timedelta(days=i * step)).isoformat() for i in range(n + 1)]
        assert current_streak(history, frequency, today=TODAY) == n + 1

    def test_malformed_entries_are_skipped(self):
        history = ["2024-01-06", "not-a-date", "2024-01-07", "2024-13-40"]
        assert current_streak(history, "daily", today=TODAY) == 2

    def test_unknown_frequency_uses_daily_step(self):
        history = ["2024-01-06", "2024-01-07"]
        assert current_streak(history, "fortnightly", today=TODAY) == 2

    @pytest.mark.parametrize("frequency", ["custom", "monthly"])
    def test_custom_and_monthly_step_one_day(self, frequency):
        assert step_size(frequency) == 1
        assert current_streak(["2024-01-06", "2024-01-07"], frequency, today=TODAY) == 2


class TestBestStreak:
    """Tests for the longest run anywhere in the history."""

    def test_empty_history(self):
        assert best_streak([], "daily") == 0

    def test_longest_run_in_the_past(self):
        history = iso_days(date(2023, 11, 1), 10) + ["2024-01-06", "2024-01-07"]
        current, best = compute_streaks(history, "daily", today=TODAY)
        assert current == 2
        assert best == 10

    def test_duplicates_do_not_extend_runs(self):
        history = ["2024-01-01", "2024-01-01", "2024-01-02"]
        assert best_streak(history, "daily") == 2

    def test_weekly_run_requires_exact_spacing(self):
        history = ["2024-01-01", "2024-01-08", "2024-01-16", "2024-01-23"]
        assert best_streak(history, "weekly") == 2

    @pytest.mark.parametrize(
        "history",
        [
            ["2024-01-01", "2024-01-02", "2024-01-05", "2024-01-06", "2024-01-07"],
            iso_days(date(2023, 10, 1), 40, step=2) + ["2024-01-07"],
            ["2024-01-07"],
            ["2023-12-31", "2024-01-03", "2024-01-07"],
            [],
        ],
    )
    @pytest.mark.parametrize("frequency", ["daily", "weekly"])
    def test_best_is_never_below_current(self, history, frequency):
        current, best = compute_streaks(history, frequency, today=TODAY)
        assert best >= current


class TestStreakMessage:
    def test_unmarked(self):
        assert streak_message(0, completed=False) == "Unmarked today's completion"

    def test_first_completion_names_habit(self):
        assert streak_message(1, completed=True, habit_name="Read") == 'Nice start on "Read"!'

    def test_milestones(self):
        assert streak_message(7, completed=True).startswith("7-day streak")
        assert streak_message(30, completed=True).startswith("30 days strong")
        assert streak_message(12, completed=True) == "Completed for today"
