"""Blueprint exports."""

from . import auth, habits, overview, todos

__all__ = [
    "auth",
    "habits",
    "overview",
    "todos",
]
