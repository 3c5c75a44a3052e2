"""SQLModel repository implementations."""

from .habit import SQLModelHabitRepository
from .todo import SQLModelTodoRepository

__all__ = ["SQLModelHabitRepository", "SQLModelTodoRepository"]
