"""Todo repository protocol."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence, runtime_checkable

from ...models.todo import Todo
from ...services.todos import TaskArena


@runtime_checkable
class TodoRepository(Protocol):
    """Repository for todos, scoped by owner."""

    def list_for_user(self, *, user_id: int) -> list[Todo]:
        ...

    def load_arena(self, *, user_id: int) -> TaskArena:
        """Load every todo of a user into an arena keyed by string id."""
        ...

    def get(self, todo_id: int, *, user_id: int) -> Optional[Todo]:
        ...

    def create(self, todo: Todo, *, user_id: int) -> Todo:
        ...

    def update(self, todo_id: int, fields: Mapping[str, Any], *, user_id: int) -> Optional[Todo]:
        ...

    def delete_subtree(self, todo_id: int, *, user_id: int) -> list[int]:
        """Delete a todo and all descendants, returning the removed ids."""
        ...

    def delete(self, todo_id: int, *, user_id: int) -> bool:
        ...

    def set_positions(self, ordered_ids: Sequence[int], *, user_id: int) -> None:
        """Persist sibling order as given."""
        ...

    def set_parent(self, todo_id: int, parent_id: Optional[int], *, user_id: int) -> Optional[Todo]:
        ...
