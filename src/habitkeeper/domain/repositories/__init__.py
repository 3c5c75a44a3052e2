"""Repository protocols describing the persistence collaborator."""

from .habit import HabitRepository
from .todo import TodoRepository

__all__ = ["HabitRepository", "TodoRepository"]
