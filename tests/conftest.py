"""Pytest configuration and shared fixtures for HabitKeeper tests.

This module provides database fixtures, test data factories and a Flask client
for testing analytics, repositories and routes without touching a real data
directory.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable, Optional

import pytest
from sqlmodel import Session, SQLModel, create_engine, select

from habitkeeper import create_app
from habitkeeper.extensions import get_services
from habitkeeper.infra.database import create_session_factory
from habitkeeper.infra.repositories import SQLModelHabitRepository, SQLModelTodoRepository

# Import all models to ensure they're registered with SQLModel metadata
from habitkeeper.models import Habit, Todo, User

# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine(tmp_path):
    """Create an isolated file-backed SQLite database for each test.

    Yields:
        Engine: SQLModel engine with all tables created
    """
    engine = create_engine(f"sqlite:///{tmp_path / 'test.db'}", echo=False)
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Create a database session for a single test."""
    session = Session(db_engine, expire_on_commit=False)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory matching the one the app hands to repositories."""

    return create_session_factory(db_engine)


@pytest.fixture
def habit_repo(session_factory) -> SQLModelHabitRepository:
    return SQLModelHabitRepository(session_factory)


@pytest.fixture
def todo_repo(session_factory) -> SQLModelTodoRepository:
    return SQLModelTodoRepository(session_factory)


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def user(db_session) -> User:
    """Create a default user for scoping data."""

    existing = db_session.exec(select(User).where(User.username == "tester")).first()
    if existing:
        return existing
    u = User(username="tester", password_hash="dummy-hash")
    db_session.add(u)
    db_session.commit()
    db_session.refresh(u)
    return u


@pytest.fixture
def other_user(db_session) -> User:
    """A second account for ownership checks."""

    u = User(username="someone-else", password_hash="dummy-hash")
    db_session.add(u)
    db_session.commit()
    db_session.refresh(u)
    return u


@pytest.fixture
def habit_factory(habit_repo, user):
    """Factory for creating test habits.

    Returns:
        Callable: Function that creates and persists Habit instances
    """

    def _create_habit(
        name: str = "Test Habit",
        category: str = "Health",
        frequency: str = "daily",
        history: Iterable[str] = (),
        color: str = "#3B82F6",
        owner: Optional[User] = None,
    ) -> Habit:
        owner = owner or user
        habit = Habit(name=name, category=category, frequency=frequency, color=color, user_id=owner.id)
        return habit_repo.create(habit, user_id=owner.id, history=history)

    return _create_habit


@pytest.fixture
def todo_factory(todo_repo, user):
    """Factory for creating test todos; pass ``parent`` to create a subtask."""

    def _create_todo(
        title: str = "Test Todo",
        parent: Optional[Todo] = None,
        priority: str = "medium",
        completed: bool = False,
        notes: str = "",
        due_date: Optional[str] = None,
        owner: Optional[User] = None,
    ) -> Todo:
        owner = owner or user
        todo = Todo(
            title=title,
            parent_id=parent.id if parent is not None else None,
            priority=priority,
            completed=completed,
            notes=notes,
            due_date=due_date,
            user_id=owner.id,
        )
        return todo_repo.create(todo, user_id=owner.id)

    return _create_todo


# =============================================================================
# Flask Fixtures
# =============================================================================


@pytest.fixture
def app(tmp_path, monkeypatch):
    """Testing app whose data directory and database live under ``tmp_path``."""

    monkeypatch.setenv("HABITKEEPER_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("HABITKEEPER_DATABASE_URL", f"sqlite:///{tmp_path / 'api.db'}")
    monkeypatch.setenv("HABITKEEPER_SECRET_KEY", "test-secret-key")
    monkeypatch.setenv("HABITKEEPER_DEV_MODE", "true")
    monkeypatch.delenv("HABITKEEPER_TOKEN_TTL_DAYS", raising=False)
    monkeypatch.delenv("HABITKEEPER_COMPLETION_WINDOW", raising=False)

    app = create_app("testing")
    yield app
    get_services(app).engine.dispose()


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture
def signup(client):
    """Register an account through the API and return its auth headers."""

    def _signup(username: str = "alice", password: str = "secret1") -> dict[str, str]:
        response = client.post(
            "/api/auth/signup",
            json={"username": username, "password": password, "confirmPassword": password},
        )
        assert response.status_code == 201, response.get_json()
        return {"Authorization": f"Bearer {response.get_json()['token']}"}

    return _signup


@pytest.fixture
def auth_headers(signup) -> dict[str, str]:
    return signup()


# =============================================================================
# Helper Utilities
# =============================================================================


def iso_days(start: date, count: int, step: int = 1) -> list[str]:
    """Return ``count`` ISO dates starting at ``start`` spaced ``step`` days apart."""

    return [(start + timedelta(days=i * step)).isoformat() for i in range(count)]
