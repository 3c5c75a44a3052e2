"""Habits tracking data structures."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, ClassVar, Optional

from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:  # pragma: no cover
    from .user import User


class Habit(SQLModel, table=True):
    """A user-defined recurring habit."""

    __tablename__: ClassVar[str] = "habit"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    name: str = Field(nullable=False, max_length=100, index=True)
    category: str = Field(nullable=False, max_length=50)
    frequency: str = Field(default="daily", max_length=16)
    reminder: str = Field(default="", max_length=32)
    color: str = Field(default="#3B82F6", max_length=7)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )

    entries: list["HabitEntry"] = Relationship(
        back_populates="habit",
        sa_relationship=relationship(
            "HabitEntry", back_populates="habit", cascade="all, delete-orphan"
        ),
    )

    user: "User" = Relationship(sa_relationship=relationship("User", back_populates="habits"))


class HabitEntry(SQLModel, table=True):
    """Completion record for a habit on one calendar day (``YYYY-MM-DD``)."""

    __tablename__: ClassVar[str] = "habit_entry"

    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    habit_id: int = Field(foreign_key="habit.id", primary_key=True)
    occurred_on: str = Field(primary_key=True, max_length=10, index=True)

    habit: "Habit" = Relationship(
        back_populates="entries",
        sa_relationship=relationship("Habit", back_populates="entries"),
    )
