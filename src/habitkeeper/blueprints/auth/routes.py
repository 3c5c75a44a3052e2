"""Auth routes: signup, login and the current-user lookup."""

from __future__ import annotations

from flask import jsonify

from ...errors import Conflict, NotFound, Unauthorized
from ...extensions import get_services
from ...logging_config import get_logger
from ...services import auth
from ...services.auth import SessionContext
from ..api import json_body, login_required, validate
from . import bp
from .forms import LoginForm, SignupForm

logger = get_logger("blueprints.auth")


def _token_response(user, status: int = 200):
    config = get_services().config
    token = auth.issue_token(user, secret=config.SECRET_KEY, ttl_days=config.TOKEN_TTL_DAYS)
    return jsonify({"success": True, "user": auth.user_to_dict(user), "token": token}), status


@bp.post("/signup")
def signup():
    """Create an account and return a token for it."""

    form = validate(SignupForm, json_body())
    try:
        user = auth.create_user(
            username=form.username,
            password=form.password,
            session_factory=get_services().session_factory,
        )
    except auth.UsernameTaken as exc:
        raise Conflict(str(exc)) from exc
    return _token_response(user, status=201)


@bp.post("/login")
def login():
    """Exchange credentials for a token."""

    form = validate(LoginForm, json_body())
    user = auth.authenticate(
        username=form.username,
        password=form.password,
        session_factory=get_services().session_factory,
    )
    if user is None:
        raise Unauthorized("Invalid username or password")
    logger.info("User logged in", extra={"user_id": user.id})
    return _token_response(user)


@bp.get("/me")
@login_required
def me(ctx: SessionContext):
    user = auth.get_user(ctx.user_id, get_services().session_factory)
    if user is None:
        raise NotFound("User not found")
    return jsonify({"success": True, "user": auth.user_to_dict(user)})
