"""User model supporting authentication."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import ClassVar, Optional

from sqlalchemy.orm import relationship
from sqlmodel import Field, Relationship, SQLModel


class User(SQLModel, table=True):
    """Application user; usernames are stored lower-cased."""

    __tablename__: ClassVar[str] = "user"

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(nullable=False, unique=True, index=True, max_length=30)
    password_hash: str = Field(nullable=False, max_length=255)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    last_login: Optional[datetime] = Field(default=None)

    habits = Relationship(
        back_populates="user",
        sa_relationship=relationship("Habit", back_populates="user"),
    )
    todos = Relationship(
        back_populates="user",
        sa_relationship=relationship("Todo", back_populates="user"),
    )
