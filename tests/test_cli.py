"""Tests for the Flask CLI commands."""

from __future__ import annotations

import pytest

from habitkeeper.extensions import get_services
from habitkeeper.models import Habit
from habitkeeper.services.auth import get_user_by_username


def test_create_user(app):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["habitkeeper-create-user", "Carol", "--password", "secret1"])
    assert result.exit_code == 0, result.output
    assert "Created user carol" in result.output
    assert get_user_by_username("carol", get_services(app).session_factory) is not None

    again = runner.invoke(args=["habitkeeper-create-user", "carol", "--password", "secret1"])
    assert again.exit_code != 0
    assert "Username already exists" in again.output


def test_stats(app):
    runner = app.test_cli_runner()
    runner.invoke(args=["habitkeeper-create-user", "carol", "--password", "secret1"])
    services = get_services(app)
    user = get_user_by_username("carol", services.session_factory)

    empty = runner.invoke(args=["habitkeeper-stats", "carol"])
    assert "No habits yet." in empty.output

    services.habit_repo.create(
        Habit(name="Read", category="Learning", frequency="daily", user_id=user.id),
        user_id=user.id,
        history=["2024-01-06", "2024-01-07"],
    )
    result = runner.invoke(args=["habitkeeper-stats", "carol", "--today", "2024-01-07"])
    assert result.exit_code == 0, result.output
    assert "Read [daily]: current 2, best 2, 2% over 90 days" in result.output


def test_stats_unknown_user(app):
    result = app.test_cli_runner().invoke(args=["habitkeeper-stats", "nobody"])
    assert result.exit_code != 0
    assert "Unknown user" in result.output


@pytest.mark.parametrize(
    "username,password,message",
    [
        ("ab", "secret1", "Username must be at least 3 characters long"),
        ("carol", "x", "Password must be at least 6 characters long"),
    ],
)
def test_create_user_rejects_short_input(app, username, password, message):
    result = app.test_cli_runner().invoke(
        args=["habitkeeper-create-user", username, "--password", password]
    )
    assert result.exit_code != 0
    assert message in result.output
    assert get_user_by_username(username, get_services(app).session_factory) is None
