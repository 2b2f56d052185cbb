# backend/plotbook/errors.py
from __future__ import annotations


class AppError(Exception):
    """
    Base for errors that map onto an HTTP status at the route boundary.

    Raised from services and dependencies; main.create_app() registers the
    handler that renders {"error": message}.
    """

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthenticationRequired(AppError):
    status_code = 401
    default_message = "Authentication required"


class AuthorizationDenied(AppError):
    status_code = 403
    default_message = "Forbidden"


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid request"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class Conflict(AppError):
    status_code = 409
    default_message = "Conflict"


class UpstreamFailure(AppError):
    status_code = 500
    default_message = "Upstream service failed"
