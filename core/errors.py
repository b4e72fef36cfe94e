"""
Service error taxonomy.

Managers raise these; the HTTP boundary maps them to status codes in one place
(see core.middleware.error_handling).
"""

from typing import Any, Optional


class ServiceError(Exception):
    """Base class for errors that carry an HTTP status."""

    status_code: int = 500
    default_message: str = "Internal Server Error"
    retryable: bool = False

    def __init__(self, message: Optional[str] = None, **context: Any):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)


class ValidationError(ServiceError):
    """Missing or malformed input."""

    status_code = 400
    default_message = "All required fields must be provided."


class Unauthorized(ServiceError):
    """No credential was presented."""

    status_code = 401
    default_message = "Unauthorized access! Please login"


class Forbidden(ServiceError):
    """Authenticated, but not allowed to touch the target resource."""

    status_code = 403
    default_message = "You are not authorized to perform this action."


class NotFound(ServiceError):
    """Target row absent, or zero rows affected."""

    status_code = 404
    default_message = "Resource not found."


class Conflict(ServiceError):
    """Uniqueness or business-rule violation."""

    status_code = 409
    default_message = "The request conflicts with the current state."


class Unavailable(ServiceError):
    """Storage timeout or connection failure. Safe to retry."""

    status_code = 500
    default_message = "Service temporarily unavailable, please retry."
    retryable = True


class Internal(ServiceError):
    """Unexpected fault."""

    status_code = 500
