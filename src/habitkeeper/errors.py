"""API error types and their JSON rendering."""

from __future__ import annotations

from typing import Any, Optional

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from .logging_config import get_logger

logger = get_logger("errors")


class ApiError(Exception):
    """Base error carrying an HTTP status and a user-facing message."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, *, details: Optional[dict[str, Any]] = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationFailed(ApiError):
    status_code = 400
    default_message = "Invalid request"


class Unauthorized(ApiError):
    status_code = 401
    default_message = "Authentication required"


class NotFound(ApiError):
    status_code = 404
    default_message = "Not found"


class Conflict(ApiError):
    status_code = 409
    default_message = "Conflict"


def register_error_handlers(app: Flask) -> None:
    """Render every error raised from a view as ``{"error": ...}`` JSON."""

    @app.errorhandler(ApiError)
    def _handle_api_error(exc: ApiError):
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(HTTPException)
    def _handle_http_exception(exc: HTTPException):
        return jsonify({"error": exc.description or exc.name}), exc.code or 500

    @app.errorhandler(Exception)
    def _handle_unexpected(exc: Exception):
        logger.exception("Unhandled API error", extra={"error_type": type(exc).__name__})
        return jsonify({"error": ApiError.default_message}), 500


__all__ = [
    "ApiError",
    "Conflict",
    "NotFound",
    "Unauthorized",
    "ValidationFailed",
    "register_error_handlers",
]
