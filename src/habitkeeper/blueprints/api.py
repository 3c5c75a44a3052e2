"""Shared request helpers for the JSON blueprints."""

from __future__ import annotations

from datetime import date
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

from flask import request
from pydantic import BaseModel, ValidationError

from ..errors import Unauthorized, ValidationFailed
from ..extensions import get_services
from ..services import auth
from ..services.calendar import parse_iso_day

F = TypeVar("F", bound=Callable[..., Any])
M = TypeVar("M", bound=BaseModel)

_VALUE_ERROR_PREFIX = "Value error, "


def login_required(view: F) -> F:
    """Resolve the bearer token and pass the caller in as ``ctx``."""

    @wraps(view)
    def wrapper(*args: Any, **kwargs: Any):
        token = auth.token_from_header(request.headers.get("Authorization"))
        if token is None:
            raise Unauthorized("No token provided")
        services = get_services()
        ctx = auth.authenticate_token(
            token,
            secret=services.config.SECRET_KEY,
            session_factory=services.session_factory,
        )
        if ctx is None:
            raise Unauthorized("Invalid or expired token")
        return view(*args, ctx=ctx, **kwargs)

    return wrapper  # type: ignore[return-value]


def json_body() -> dict[str, Any]:
    """Return the request's JSON object body or fail with 400."""

    payload = request.get_json(silent=True)
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationFailed("Request body must be a JSON object")
    return payload


def validation_errors(exc: ValidationError) -> dict[str, list[str]]:
    """Group pydantic errors by field name."""

    structured: dict[str, list[str]] = {}
    for error in exc.errors(include_url=False):
        loc = error.get("loc", ())
        key = str(loc[0]) if loc else "__root__"
        message = str(error.get("msg", "Invalid value"))
        if message.startswith(_VALUE_ERROR_PREFIX):
            message = message[len(_VALUE_ERROR_PREFIX):]
        structured.setdefault(key, []).append(message)
    return structured


def validate(form_cls: type[M], payload: dict[str, Any]) -> M:
    """Validate ``payload`` with ``form_cls``; the first message becomes the error text."""

    try:
        return form_cls.model_validate(payload)
    except ValidationError as exc:
        details = validation_errors(exc)
        first = next(iter(details.values()))[0] if details else "Invalid request"
        raise ValidationFailed(first, details=details) from exc


def reference_today(raw: Optional[str] = None) -> date:
    """Return the ``today`` query parameter as a date, defaulting to the server's date."""

    value = raw if raw is not None else request.args.get("today")
    if not value:
        return date.today()
    parsed = parse_iso_day(value)
    if parsed is None:
        raise ValidationFailed("today must be a YYYY-MM-DD date")
    return parsed


def parse_id(raw: str) -> int:
    """Path ids are opaque strings on the wire; unknown shapes are simply not found."""

    try:
        return int(raw)
    except (TypeError, ValueError):
        return -1


__all__ = [
    "json_body",
    "login_required",
    "parse_id",
    "reference_today",
    "validate",
    "validation_errors",
]
