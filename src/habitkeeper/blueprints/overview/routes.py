"""Daily overview route."""

from __future__ import annotations

from flask import jsonify

from ...extensions import get_services
from ...services.auth import SessionContext
from ...services.overview import build_daily_summary
from ..api import login_required, reference_today
from . import bp


@bp.get("")
@login_required
def overview(ctx: SessionContext):
    """Today's completed habits and todos for the caller."""

    today = reference_today()
    services = get_services()
    habits = services.habit_repo.list_for_user(user_id=ctx.user_id)
    histories = services.habit_repo.histories_for(
        [habit.id for habit in habits], user_id=ctx.user_id
    )
    todos = services.todo_repo.list_for_user(user_id=ctx.user_id)

    summary = build_daily_summary(
        [(str(habit.id), habit.name, habit.frequency) for habit in habits],
        {str(habit_id): entries for habit_id, entries in histories.items()},
        [(str(todo.id), todo.title, todo.completed, todo.priority) for todo in todos],
        today=today,
    )
    return jsonify({"success": True, "overview": summary.to_dict()})
