"""SQLModel table exports."""

from .habit import Habit, HabitEntry
from .todo import Todo
from .user import User

__all__ = [
    "Habit",
    "HabitEntry",
    "Todo",
    "User",
]
