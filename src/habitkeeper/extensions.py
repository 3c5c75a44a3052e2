"""Database and repository wiring for the Flask app."""

from __future__ import annotations

from dataclasses import dataclass

from flask import Flask, current_app
from sqlalchemy.engine import Engine

from .config import BaseConfig
from .domain.repositories import HabitRepository, TodoRepository
from .infra.database import SessionFactory, bootstrap_database
from .infra.repositories import SQLModelHabitRepository, SQLModelTodoRepository

EXTENSION_KEY = "habitkeeper"


@dataclass
class AppServices:
    """Per-app engine, session factory and repositories."""

    config: BaseConfig
    engine: Engine
    session_factory: SessionFactory
    habit_repo: HabitRepository
    todo_repo: TodoRepository


def init_db(app: Flask) -> AppServices:
    """Create the engine from the app's config and attach repositories to it."""

    config: BaseConfig = app.config["HABITKEEPER_CONFIG"]
    engine, session_factory = bootstrap_database(config)
    services = AppServices(
        config=config,
        engine=engine,
        session_factory=session_factory,
        habit_repo=SQLModelHabitRepository(session_factory),
        todo_repo=SQLModelTodoRepository(session_factory),
    )
    app.extensions[EXTENSION_KEY] = services
    return services


def get_services(app: Flask | None = None) -> AppServices:
    """Return the services attached to ``app`` (or the current app)."""

    target = app or current_app
    try:
        return target.extensions[EXTENSION_KEY]
    except KeyError as exc:  # pragma: no cover - only when init_db was skipped
        raise RuntimeError("Database engine not initialized") from exc
