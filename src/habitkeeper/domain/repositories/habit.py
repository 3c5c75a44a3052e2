"""Habit repository protocol."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Protocol, runtime_checkable

from ...models.habit import Habit


@runtime_checkable
class HabitRepository(Protocol):
    """Repository for habits and their completion history, scoped by owner."""

    def list_for_user(self, *, user_id: int) -> list[Habit]:
        """List a user's habits, newest first."""
        ...

    def get(self, habit_id: int, *, user_id: int) -> Optional[Habit]:
        """Retrieve a habit owned by ``user_id``."""
        ...

    def create(self, habit: Habit, *, user_id: int, history: Iterable[str] = ()) -> Habit:
        """Persist a new habit with an optional initial history."""
        ...

    def update(self, habit_id: int, fields: Mapping[str, Any], *, user_id: int) -> Optional[Habit]:
        """Apply a partial-field patch; returns None when the habit is missing."""
        ...

    def delete(self, habit_id: int, *, user_id: int) -> bool:
        """Delete a habit with its history; False when nothing matched."""
        ...

    def get_history(self, habit_id: int, *, user_id: int) -> list[str]:
        """Return the sorted completion dates of one habit."""
        ...

    def histories_for(self, habit_ids: Iterable[int], *, user_id: int) -> dict[int, list[str]]:
        """Return sorted completion dates keyed by habit id."""
        ...

    def replace_history(self, habit_id: int, history: Iterable[str], *, user_id: int) -> list[str]:
        """Overwrite the completion dates of one habit."""
        ...
