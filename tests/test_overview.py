"""Tests for the daily overview."""

from __future__ import annotations

from datetime import date

from habitkeeper.services.overview import build_daily_summary

TODAY = date(2024, 1, 7)


def test_summary_counts_and_percentages():
    summary = build_daily_summary(
        [("1", "Read", "daily"), ("2", "Gym", "weekly"), ("3", "Journal", "daily")],
        {"1": ["2024-01-06", "2024-01-07"], "2": ["2023-12-31", "2024-01-07"], "3": ["2024-01-06"]},
        [("10", "Taxes", True, "high"), ("11", "Laundry", False, "low")],
        today=TODAY,
    )

    payload = summary.to_dict()
    assert payload["date"] == "2024-01-07"
    assert payload["habits"][0] == {"id": "1", "name": "Read", "completed": True, "streak": 2}
    assert payload["habits"][1]["streak"] == 2
    assert payload["habits"][2] == {"id": "3", "name": "Journal", "completed": False, "streak": 0}
    assert payload["stats"] == {
        "habitsCompleted": 2,
        "habitsTotal": 3,
        "habitPercent": 67,
        "todosCompleted": 1,
        "todosTotal": 2,
        "todoPercent": 50,
        "remaining": 2,
    }


def test_empty_day():
    summary = build_daily_summary([], {}, [], today=TODAY)
    assert summary.habit_percent == 0
    assert summary.todo_percent == 0
    assert summary.remaining == 0


def test_overview_endpoint(client, auth_headers):
    habit = client.post(
        "/api/habits",
        json={"name": "Read", "category": "Learning", "frequency": "daily", "color": "#000000"},
        headers=auth_headers,
    ).get_json()["habit"]
    client.post(f"/api/habits/{habit['id']}/toggle", json={"date": "2024-01-07"}, headers=auth_headers)
    client.post("/api/todos", json={"title": "Taxes", "completed": True}, headers=auth_headers)
    client.post("/api/todos", json={"title": "Laundry"}, headers=auth_headers)

    response = client.get("/api/overview?today=2024-01-07", headers=auth_headers)
    overview = response.get_json()["overview"]
    assert overview["habits"] == [
        {"id": habit["id"], "name": "Read", "completed": True, "streak": 1}
    ]
    assert overview["stats"]["todosCompleted"] == 1
    assert overview["stats"]["remaining"] == 1

    later = client.get("/api/overview?today=2024-01-08", headers=auth_headers).get_json()
    assert later["overview"]["habits"][0]["completed"] is False
