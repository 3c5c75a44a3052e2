"""SQLModel implementation of Todo repository."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from sqlmodel import Session, func, select

from ...models.todo import Todo
from ...services.todos import Priority, TaskArena, TaskNode
from ..database import SessionFactory

_PATCHABLE_FIELDS = {"title", "notes", "due_date", "priority", "completed"}


def todo_to_node(todo: Todo) -> TaskNode:
    """Convert a stored row into an arena node keyed by string id."""

    return TaskNode(
        id=str(todo.id),
        title=todo.title,
        priority=Priority(todo.priority),
        completed=todo.completed,
        notes=todo.notes or "",
        due_date=todo.due_date,
        parent_id=str(todo.parent_id) if todo.parent_id is not None else None,
    )


class SQLModelTodoRepository:
    """SQLModel-based todo repository implementation."""

    def __init__(self, session_factory: SessionFactory):
        """Initialize with a session factory."""
        self.session_factory = session_factory

    def _owned(self, session: Session, todo_id: int, user_id: int) -> Optional[Todo]:
        return session.exec(
            select(Todo).where(Todo.id == todo_id, Todo.user_id == user_id)
        ).first()

    def list_for_user(self, *, user_id: int) -> list[Todo]:
        """List todos in sibling order (position, then newest first)."""
        with self.session_factory() as session:
            statement = (
                select(Todo)
                .where(Todo.user_id == user_id)
                .order_by(Todo.position, Todo.id.desc())  # type: ignore[union-attr]
            )
            rows = list(session.exec(statement).all())
            session.expunge_all()
            return rows

    def load_arena(self, *, user_id: int) -> TaskArena:
        return TaskArena.from_rows(todo_to_node(row) for row in self.list_for_user(user_id=user_id))

    def get(self, todo_id: int, *, user_id: int) -> Optional[Todo]:
        with self.session_factory() as session:
            obj = self._owned(session, todo_id, user_id)
            if obj:
                session.expunge(obj)
            return obj

    def create(self, todo: Todo, *, user_id: int) -> Todo:
        """Create a todo. Roots go to the top of the list, subtasks to the end."""
        with self.session_factory() as session:
            if todo.parent_id is not None and self._owned(session, todo.parent_id, user_id) is None:
                raise LookupError(f"Parent todo {todo.parent_id} not found")
            if todo.parent_id is None:
                lowest = session.exec(
                    select(func.min(Todo.position)).where(
                        Todo.user_id == user_id, Todo.parent_id == None  # noqa: E711
                    )
                ).first()
                todo.position = (lowest if lowest is not None else 1) - 1
            else:
                highest = session.exec(
                    select(func.max(Todo.position)).where(
                        Todo.user_id == user_id, Todo.parent_id == todo.parent_id
                    )
                ).first()
                todo.position = (highest if highest is not None else -1) + 1
            todo.user_id = user_id
            session.add(todo)
            session.commit()
            session.refresh(todo)
            session.expunge(todo)
            return todo

    def update(self, todo_id: int, fields: Mapping[str, Any], *, user_id: int) -> Optional[Todo]:
        """Apply a partial update; unknown keys are ignored."""
        with self.session_factory() as session:
            todo = self._owned(session, todo_id, user_id)
            if todo is None:
                return None
            for key, value in fields.items():
                if key in _PATCHABLE_FIELDS:
                    setattr(todo, key, value)
            session.add(todo)
            session.commit()
            session.refresh(todo)
            session.expunge(todo)
            return todo

    def delete_subtree(self, todo_id: int, *, user_id: int) -> list[int]:
        """Delete a todo and every descendant; children are removed before parents."""
        arena = self.load_arena(user_id=user_id)
        key = str(todo_id)
        if key not in arena:
            return []
        removed = [int(task_id) for task_id in arena.subtree_ids(key)]
        with self.session_factory() as session:
            for removed_id in reversed(removed):
                row = self._owned(session, removed_id, user_id)
                if row is not None:
                    session.delete(row)
                    session.flush()
            session.commit()
        return removed

    def delete(self, todo_id: int, *, user_id: int) -> bool:
        """Delete a todo with its subtasks; False when it does not exist."""
        return bool(self.delete_subtree(todo_id, user_id=user_id))

    def set_positions(self, ordered_ids: Sequence[int], *, user_id: int) -> None:
        """Persist sibling order as given (0..n-1)."""
        with self.session_factory() as session:
            for position, todo_id in enumerate(ordered_ids):
                row = self._owned(session, todo_id, user_id)
                if row is not None:
                    row.position = position
                    session.add(row)
            session.commit()

    def set_parent(self, todo_id: int, parent_id: Optional[int], *, user_id: int) -> Optional[Todo]:
        """Re-link a todo under ``parent_id`` (``None`` for root level)."""
        with self.session_factory() as session:
            todo = self._owned(session, todo_id, user_id)
            if todo is None:
                return None
            if parent_id is not None and self._owned(session, parent_id, user_id) is None:
                raise LookupError(f"Parent todo {parent_id} not found")
            todo.parent_id = parent_id
            session.add(todo)
            session.commit()
            session.refresh(todo)
            session.expunge(todo)
            return todo
