"""Habit analytics: streaks, completion rates and history mutations.

Every function here is pure. ``today`` is always supplied by the caller so the
results are deterministic; history entries are ISO ``YYYY-MM-DD`` strings and
malformed entries are skipped rather than treated as errors.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Iterable

from .calendar import add_days, days_between, parse_history, parse_iso_day, to_iso

DEFAULT_WINDOW_DAYS = 90
STREAK_MILESTONES = {
    7: "7-day streak! Keep the momentum going!",
    30: "30 days strong! You're building a powerful habit.",
}


class HabitFrequency(str, Enum):
    """Supported frequency options for habits."""

    DAILY = "daily"
    WEEKLY = "weekly"
    CUSTOM = "custom"
    MONTHLY = "monthly"

    @classmethod
    def coerce(cls, value: "HabitFrequency | str | None") -> "HabitFrequency":
        """Map unknown or missing values to ``DAILY`` so analytics stay total."""

        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.DAILY

    @property
    def step_days(self) -> int:
        return 7 if self is HabitFrequency.WEEKLY else 1


def step_size(frequency: HabitFrequency | str | None) -> int:
    """Return the interval step in days for ``frequency``."""

    return HabitFrequency.coerce(frequency).step_days


def current_streak(
    history: Iterable[str],
    frequency: HabitFrequency | str | None,
    *,
    today: date,
) -> int:
    """Count consecutive completed intervals walking backwards from ``today``."""

    days = parse_history(history)
    step = step_size(frequency)
    streak = 0
    cursor = today
    while cursor in days:
        streak += 1
        cursor = add_days(cursor, -step)
    return streak


def best_streak(history: Iterable[str], frequency: HabitFrequency | str | None) -> int:
    """Return the longest run of completions spaced exactly one step apart."""

    days = sorted(parse_history(history))
    if not days:
        return 0

    step = step_size(frequency)
    longest = 0
    run = 0
    last_day: date | None = None
    for day in days:
        if last_day is not None and days_between(last_day, day) == step:
            run += 1
        else:
            longest = max(longest, run)
            run = 1
        last_day = day
    return max(longest, run)


def compute_streaks(
    history: Iterable[str],
    frequency: HabitFrequency | str | None = HabitFrequency.DAILY,
    *,
    today: date,
) -> tuple[int, int]:
    """Return (current_streak, best_streak) for a history.

    Off-interval dates between weekly completions split the sorted runs that
    ``best_streak`` measures, so the best figure is floored at the current one.
    """

    history = list(history)
    current = current_streak(history, frequency, today=today)
    return current, max(current, best_streak(history, frequency))


def expected_interval_keys(
    frequency: HabitFrequency | str | None,
    *,
    today: date,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> list[date]:
    """List the interval keys a habit should hit inside the trailing window."""

    if window_days <= 0:
        return []
    start = add_days(today, -(window_days - 1))
    step = step_size(frequency)
    return [add_days(start, offset) for offset in range(0, window_days, step)]


def round_percent(part: int, whole: int) -> int:
    """Integer percentage rounded half up."""

    if whole <= 0:
        return 0
    return (200 * part + whole) // (2 * whole)


def completion_rate(
    history: Iterable[str],
    frequency: HabitFrequency | str | None,
    *,
    today: date,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> int:
    """Return the percentage of expected intervals completed in the window."""

    keys = expected_interval_keys(frequency, today=today, window_days=window_days)
    days = parse_history(history)
    hits = sum(1 for key in keys if key in days)
    return round_percent(hits, len(keys))


def _normalized(history: Iterable[str]) -> list[str]:
    return sorted(set(history or ()))


def toggle_history(history: Iterable[str], day: date | str) -> list[str]:
    """Return a new sorted history with ``day`` removed if present, else added."""

    key = day if isinstance(day, str) else to_iso(day)
    entries = set(history or ())
    if key in entries:
        entries.discard(key)
    else:
        entries.add(key)
    return sorted(entries)


def add_completion(history: Iterable[str], day: date | str) -> list[str]:
    key = day if isinstance(day, str) else to_iso(day)
    return _normalized([*(history or ()), key])


def remove_completion(history: Iterable[str], day: date | str) -> list[str]:
    key = day if isinstance(day, str) else to_iso(day)
    return [entry for entry in _normalized(history) if entry != key]


def streak_message(streak: int, *, completed: bool, habit_name: str = "") -> str:
    """Return the feedback line shown after a completion toggle."""

    if not completed:
        return "Unmarked today's completion"
    if streak == 1:
        return f'Nice start on "{habit_name}"!' if habit_name else "Nice start!"
    return STREAK_MILESTONES.get(streak, "Completed for today")


@dataclass(slots=True)
class HabitStats:
    current_streak: int
    best_streak: int
    completion_rate: int
    window_days: int
    completed_today: bool

    def to_dict(self) -> dict:
        return {
            "currentStreak": self.current_streak,
            "bestStreak": self.best_streak,
            "completionRate": self.completion_rate,
            "windowDays": self.window_days,
            "completedToday": self.completed_today,
        }


def compute_habit_stats(
    history: Iterable[str],
    frequency: HabitFrequency | str | None,
    *,
    today: date,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> HabitStats:
    """Bundle the streak and rate figures for one habit."""

    history = list(history or ())
    current, best = compute_streaks(history, frequency, today=today)
    return HabitStats(
        current_streak=current,
        best_streak=best,
        completion_rate=completion_rate(
            history, frequency, today=today, window_days=window_days
        ),
        window_days=window_days,
        completed_today=today in parse_history(history),
    )


def is_valid_history_entry(value: object) -> bool:
    return parse_iso_day(value) is not None


__all__ = [
    "DEFAULT_WINDOW_DAYS",
    "HabitFrequency",
    "HabitStats",
    "add_completion",
    "best_streak",
    "completion_rate",
    "compute_habit_stats",
    "compute_streaks",
    "current_streak",
    "expected_interval_keys",
    "is_valid_history_entry",
    "remove_completion",
    "round_percent",
    "step_size",
    "streak_message",
    "toggle_history",
]
