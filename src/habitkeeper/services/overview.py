"""Today's progress summary across habits and todos."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Mapping, Sequence

from .calendar import parse_history, to_iso
from .habits import current_streak, round_percent


@dataclass(slots=True)
class DailyHabit:
    id: str
    name: str
    completed: bool
    streak: int


@dataclass(slots=True)
class DailyTodo:
    id: str
    title: str
    completed: bool
    priority: str


@dataclass(slots=True)
class DailySummary:
    day: date
    habits: list[DailyHabit] = field(default_factory=list)
    todos: list[DailyTodo] = field(default_factory=list)

    @property
    def habits_completed(self) -> int:
        return sum(1 for habit in self.habits if habit.completed)

    @property
    def todos_completed(self) -> int:
        return sum(1 for todo in self.todos if todo.completed)

    @property
    def habit_percent(self) -> int:
        return round_percent(self.habits_completed, len(self.habits))

    @property
    def todo_percent(self) -> int:
        return round_percent(self.todos_completed, len(self.todos))

    @property
    def remaining(self) -> int:
        return (len(self.habits) - self.habits_completed) + (len(self.todos) - self.todos_completed)

    def to_dict(self) -> dict:
        return {
            "date": to_iso(self.day),
            "habits": [
                {"id": h.id, "name": h.name, "completed": h.completed, "streak": h.streak}
                for h in self.habits
            ],
            "todos": [
                {"id": t.id, "title": t.title, "completed": t.completed, "priority": t.priority}
                for t in self.todos
            ],
            "stats": {
                "habitsCompleted": self.habits_completed,
                "habitsTotal": len(self.habits),
                "habitPercent": self.habit_percent,
                "todosCompleted": self.todos_completed,
                "todosTotal": len(self.todos),
                "todoPercent": self.todo_percent,
                "remaining": self.remaining,
            },
        }


def build_daily_summary(
    habits: Sequence[tuple[str, str, str]],
    histories: Mapping[str, Iterable[str]],
    todos: Iterable[tuple[str, str, bool, str]],
    *,
    today: date,
) -> DailySummary:
    """Assemble the summary.

    ``habits`` holds ``(id, name, frequency)`` triples, ``histories`` maps habit id
    to its completion strings and ``todos`` holds ``(id, title, completed, priority)``.
    """

    summary = DailySummary(day=today)
    for habit_id, name, frequency in habits:
        history = list(histories.get(habit_id, ()))
        summary.habits.append(
            DailyHabit(
                id=habit_id,
                name=name,
                completed=today in parse_history(history),
                streak=current_streak(history, frequency, today=today),
            )
        )
    for todo_id, title, completed, priority in todos:
        summary.todos.append(DailyTodo(id=todo_id, title=title, completed=completed, priority=priority))
    return summary


__all__ = ["DailyHabit", "DailySummary", "DailyTodo", "build_daily_summary"]
