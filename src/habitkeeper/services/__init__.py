"""Service module exports."""

from . import auth, calendar, habits, overview, sync, todos

__all__ = [
    "auth",
    "calendar",
    "habits",
    "overview",
    "sync",
    "todos",
]
