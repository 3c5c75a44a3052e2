"""Todo items with optional parent links forming a task tree."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, ClassVar, Optional

from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:  # pragma: no cover
    from .user import User


class Todo(SQLModel, table=True):
    """A task owned by one user; ``parent_id`` points at the enclosing task."""

    __tablename__: ClassVar[str] = "todo"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    parent_id: Optional[int] = Field(default=None, foreign_key="todo.id", index=True)
    title: str = Field(nullable=False, max_length=200)
    notes: str = Field(default="", max_length=2000)
    due_date: Optional[str] = Field(default=None, max_length=10)
    priority: str = Field(default="medium", max_length=8)
    completed: bool = Field(default=False, nullable=False)
    position: int = Field(default=0, nullable=False)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )

    user: "User" = Relationship(sa_relationship=relationship("User", back_populates="todos"))
