"""SQLModel implementation of Habit repository."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from sqlmodel import Session, select

from ...models.habit import Habit, HabitEntry
from ..database import SessionFactory

_PATCHABLE_FIELDS = {"name", "category", "frequency", "reminder", "color"}


class SQLModelHabitRepository:
    """SQLModel-based habit repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def _owned(self, session: Session, habit_id: int, user_id: int) -> Optional[Habit]:
        return session.exec(
            select(Habit).where(Habit.id == habit_id, Habit.user_id == user_id)
        ).first()

    def list_for_user(self, *, user_id: int) -> list[Habit]:
        """List a user's habits, newest first."""
        with self.session_factory() as session:
            statement = (
                select(Habit)
                .where(Habit.user_id == user_id)
                .order_by(Habit.created_at.desc(), Habit.id.desc())  # type: ignore[union-attr]
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def get(self, habit_id: int, *, user_id: int) -> Optional[Habit]:
        """Retrieve a habit by ID."""
        with self.session_factory() as session:
            obj = self._owned(session, habit_id, user_id)
            if obj:
                session.expunge(obj)
            return obj

    def create(self, habit: Habit, *, user_id: int, history: Iterable[str] = ()) -> Habit:
        """Create a new habit."""
        with self.session_factory() as session:
            habit.user_id = user_id
            session.add(habit)
            session.flush()
            for day in sorted(set(history)):
                session.add(HabitEntry(user_id=user_id, habit_id=habit.id, occurred_on=day))
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
            return habit

    def update(self, habit_id: int, fields: Mapping[str, Any], *, user_id: int) -> Optional[Habit]:
        """Apply a partial update; unknown keys are ignored."""
        with self.session_factory() as session:
            habit = self._owned(session, habit_id, user_id)
            if habit is None:
                return None
            for key, value in fields.items():
                if key in _PATCHABLE_FIELDS:
                    setattr(habit, key, value)
            session.add(habit)
            session.commit()
            session.refresh(habit)
            session.expunge(habit)
            return habit

    def delete(self, habit_id: int, *, user_id: int) -> bool:
        """Delete a habit and its entries."""
        with self.session_factory() as session:
            habit = self._owned(session, habit_id, user_id)
            if habit is None:
                return False
            session.delete(habit)
            session.commit()
            return True

    # Habit entry operations
    def get_history(self, habit_id: int, *, user_id: int) -> list[str]:
        return self.histories_for([habit_id], user_id=user_id).get(habit_id, [])

    def histories_for(self, habit_ids: Iterable[int], *, user_id: int) -> dict[int, list[str]]:
        """Return sorted completion dates for each requested habit."""
        ids = [habit_id for habit_id in habit_ids if habit_id is not None]
        histories: dict[int, list[str]] = {habit_id: [] for habit_id in ids}
        if not ids:
            return histories
        with self.session_factory() as session:
            statement = (
                select(HabitEntry)
                .where(HabitEntry.user_id == user_id)
                .where(HabitEntry.habit_id.in_(ids))  # type: ignore[attr-defined]
                .order_by(HabitEntry.occurred_on)  # type: ignore[arg-type]
            )
            for entry in session.exec(statement).all():
                histories.setdefault(entry.habit_id, []).append(entry.occurred_on)
        return histories

    def replace_history(self, habit_id: int, history: Iterable[str], *, user_id: int) -> list[str]:
        """Overwrite a habit's entries with ``history`` (deduplicated)."""
        days = sorted(set(history))
        with self.session_factory() as session:
            if self._owned(session, habit_id, user_id) is None:
                raise LookupError(f"Habit {habit_id} not found")
            existing = session.exec(
                select(HabitEntry)
                .where(HabitEntry.user_id == user_id)
                .where(HabitEntry.habit_id == habit_id)
            ).all()
            for entry in existing:
                session.delete(entry)
            session.flush()
            for day in days:
                session.add(HabitEntry(user_id=user_id, habit_id=habit_id, occurred_on=day))
            session.commit()
        return days
