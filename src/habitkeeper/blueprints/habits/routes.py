"""Habit routes."""

from __future__ import annotations

from datetime import date

from flask import jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from ...errors import ApiError, NotFound, ValidationFailed
from ...extensions import get_services
from ...logging_config import get_logger
from ...models.habit import Habit
from ...services.auth import SessionContext
from ...services.calendar import parse_iso_day, to_iso
from ...services.habits import compute_habit_stats, current_streak, streak_message, toggle_history
from ...services.sync import PersistResult, UpdateState, run_optimistic
from ..api import json_body, login_required, parse_id, reference_today, validate
from . import bp
from .forms import HabitForm, HabitUpdateForm, ToggleForm

logger = get_logger("blueprints.habits")

MAX_WINDOW_DAYS = 3660


def _window_days() -> int:
    raw = request.args.get("window")
    if raw is None or raw == "":
        return get_services().config.COMPLETION_WINDOW_DAYS
    try:
        window = int(raw)
    except ValueError as exc:
        raise ValidationFailed("window must be a positive integer") from exc
    if not 0 < window <= MAX_WINDOW_DAYS:
        raise ValidationFailed("window must be a positive integer")
    return window


def serialize_habit(habit: Habit, history: list[str], *, today: date | None = None, window_days: int = 90) -> dict:
    """Wire shape of a habit; ``stats`` is included when ``today`` is given."""

    payload = {
        "id": str(habit.id),
        "name": habit.name,
        "category": habit.category,
        "frequency": habit.frequency,
        "reminder": habit.reminder,
        "history": list(history),
        "color": habit.color,
        "userId": str(habit.user_id),
    }
    if today is not None:
        payload["stats"] = compute_habit_stats(
            history, habit.frequency, today=today, window_days=window_days
        ).to_dict()
    return payload


def _owned_habit(habit_id: str, ctx: SessionContext) -> Habit:
    habit = get_services().habit_repo.get(parse_id(habit_id), user_id=ctx.user_id)
    if habit is None:
        raise NotFound("Habit not found")
    return habit


@bp.get("")
@login_required
def list_habits(ctx: SessionContext):
    """All habits of the caller, newest first, with streak and rate figures."""

    today = reference_today()
    window = _window_days()
    repo = get_services().habit_repo
    habits = repo.list_for_user(user_id=ctx.user_id)
    histories = repo.histories_for([habit.id for habit in habits], user_id=ctx.user_id)
    return jsonify(
        {
            "success": True,
            "habits": [
                serialize_habit(habit, histories.get(habit.id, []), today=today, window_days=window)
                for habit in habits
            ],
        }
    )


@bp.post("")
@login_required
def create_habit(ctx: SessionContext):
    form = validate(HabitForm, json_body())
    habit = Habit(
        name=form.name,
        category=form.category,
        frequency=form.frequency.value,
        reminder=form.reminder,
        color=form.color,
        user_id=ctx.user_id,
    )
    repo = get_services().habit_repo
    habit = repo.create(habit, user_id=ctx.user_id, history=form.history)
    logger.info("Habit created", extra={"user_id": ctx.user_id, "habit_id": habit.id})
    return jsonify({"success": True, "habit": serialize_habit(habit, form.history)}), 201


@bp.put("/<habit_id>")
@login_required
def update_habit(habit_id: str, ctx: SessionContext):
    """Apply a partial-field patch. A ``history`` key replaces the whole history."""

    _owned_habit(habit_id, ctx)
    patch = validate(HabitUpdateForm, json_body()).changes()
    repo = get_services().habit_repo
    key = parse_id(habit_id)

    history = None
    if "history" in patch:
        history = repo.replace_history(key, patch.pop("history"), user_id=ctx.user_id)
    habit = repo.update(key, patch, user_id=ctx.user_id)
    if habit is None:
        raise NotFound("Habit not found")
    if history is None:
        history = repo.get_history(key, user_id=ctx.user_id)
    logger.info(
        "Habit updated",
        extra={"user_id": ctx.user_id, "habit_id": habit.id, "fields": sorted(patch)},
    )
    return jsonify({"success": True, "habit": serialize_habit(habit, history)})


@bp.delete("/<habit_id>")
@login_required
def delete_habit(habit_id: str, ctx: SessionContext):
    if not get_services().habit_repo.delete(parse_id(habit_id), user_id=ctx.user_id):
        raise NotFound("Habit not found")
    logger.info("Habit deleted", extra={"user_id": ctx.user_id, "habit_id": habit_id})
    return jsonify({"success": True, "message": "Habit deleted successfully"})


@bp.post("/<habit_id>/toggle")
@login_required
def toggle_completion(habit_id: str, ctx: SessionContext):
    """Flip the completion for one day (today unless ``date`` is sent)."""

    habit = _owned_habit(habit_id, ctx)
    form = validate(ToggleForm, json_body())
    today = reference_today()
    day = parse_iso_day(form.date) if form.date else today
    repo = get_services().habit_repo
    known_good = repo.get_history(habit.id, user_id=ctx.user_id)

    def persist(history: list[str]) -> PersistResult[list[str]]:
        try:
            return PersistResult.success(repo.replace_history(habit.id, history, user_id=ctx.user_id))
        except (SQLAlchemyError, LookupError) as exc:
            logger.warning(
                "Habit history write failed",
                extra={"habit_id": habit.id, "error_type": type(exc).__name__},
            )
            return PersistResult.failure(str(exc))

    update = run_optimistic(
        known_good,
        toggle_history(known_good, day),
        persist,
        refetch=lambda: repo.get_history(habit.id, user_id=ctx.user_id),
    )
    if update.state is not UpdateState.COMMITTED:
        raise ApiError(
            "Couldn't update habit. Please try again.",
            details={"history": update.current},
        )

    history = update.current
    completed = to_iso(day) in history
    streak = current_streak(history, habit.frequency, today=today)
    return jsonify(
        {
            "success": True,
            "habit": serialize_habit(habit, history, today=today, window_days=_window_days()),
            "date": to_iso(day),
            "completed": completed,
            "message": streak_message(streak, completed=completed, habit_name=habit.name),
        }
    )


@bp.get("/<habit_id>/stats")
@login_required
def habit_stats(habit_id: str, ctx: SessionContext):
    habit = _owned_habit(habit_id, ctx)
    history = get_services().habit_repo.get_history(habit.id, user_id=ctx.user_id)
    stats = compute_habit_stats(
        history, habit.frequency, today=reference_today(), window_days=_window_days()
    )
    return jsonify({"success": True, "habitId": str(habit.id), "stats": stats.to_dict()})
