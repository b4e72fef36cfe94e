"""
Error handling with uniform status mapping and message sanitization.

Every error leaves the service as ``{"error": "<message>"}``. Service errors
carry their own status; everything unexpected becomes a 500 without internals.
"""

import logging
import re
import traceback
from typing import Any, Callable

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.errors import Conflict, Internal, ServiceError, Unavailable

logger = logging.getLogger(__name__)

# Patterns for sensitive data that should never be logged or returned
SENSITIVE_PATTERNS = [
    re.compile(r'password["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'token["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'api[_-]?key["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'secret["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'authorization["\s:]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'bearer\s+[A-Za-z0-9\-_\.]+', re.IGNORECASE),
]


def sanitize_error_message(message: str) -> str:
    """
    Remove sensitive information from error messages.

    Args:
        message: Original error message

    Returns:
        Sanitized error message
    """
    sanitized = message
    for pattern in SENSITIVE_PATTERNS:
        sanitized = pattern.sub('[REDACTED]', sanitized)
    return sanitized


def get_safe_error_details(exc: Exception, include_details: bool = False) -> dict[str, Any]:
    """Type and sanitized message of an exception, plus traceback in debug mode."""
    details = {
        "type": type(exc).__name__,
        "message": sanitize_error_message(str(exc)),
    }
    if include_details:
        details["traceback"] = traceback.format_exc()
    return details


def error_response(exc: ServiceError) -> JSONResponse:
    """Render a service error as the wire-level error body."""
    headers = {"Retry-After": "1"} if exc.retryable else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": sanitize_error_message(exc.message)},
        headers=headers,
    )


def to_service_error(exc: Exception) -> ServiceError:
    """Classify an exception that escaped the managers."""
    if isinstance(exc, ServiceError):
        return exc
    if isinstance(exc, IntegrityError):
        return Conflict("Database integrity constraint violated")
    if isinstance(exc, (OperationalError, RedisError, TimeoutError)):
        return Unavailable()
    return Internal()


class ErrorHandlingMiddleware:
    """
    Outermost catch-all.

    Service errors normally never reach here (the exception handlers render
    them); this catches whatever escaped as a bare exception.
    """

    def __init__(self, app: Callable, debug: bool = False):
        """
        Args:
            app: The ASGI application
            debug: Whether to log detailed error information
        """
        self.app = app
        self.debug = debug

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        try:
            await self.app(scope, receive, send)
        except Exception as exc:
            response = self._handle_exception(exc, scope)
            await response(scope, receive, send)

    def _handle_exception(self, exc: Exception, scope: dict) -> JSONResponse:
        request_path = scope.get("path", "unknown")
        request_method = scope.get("method", "unknown")
        service_error = to_service_error(exc)

        if isinstance(exc, SQLAlchemyError):
            logger.error(
                f"Database error: {request_method} {request_path} - {type(exc).__name__}",
                exc_info=True,
            )
        else:
            logger.error(
                f"Unhandled exception: {request_method} {request_path} - "
                f"{type(exc).__name__}: {sanitize_error_message(str(exc))}",
                exc_info=True,
            )
        if self.debug:
            logger.debug(f"Error details: {get_safe_error_details(exc, include_details=True)}")

        return error_response(service_error)


def _format_validation_errors(exc: RequestValidationError) -> str:
    """Collapse pydantic errors into one readable message."""
    messages = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"] if loc != "body")
        message = sanitize_error_message(str(error["msg"]))
        messages.append(f"{field}: {message}" if field else message)
    return "; ".join(messages) or "Invalid request."


def setup_error_handlers(app):
    """
    Set up exception handlers for FastAPI application.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        """Handle errors raised by the managers."""
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            f"{type(exc).__name__}: {request.method} {request.url.path} - "
            f"{sanitize_error_message(exc.message)}",
            extra={"context": exc.context} if exc.context else None,
        )
        return error_response(exc)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": sanitize_error_message(str(exc.detail))},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Malformed input is a 400, like every other validation failure."""
        message = _format_validation_errors(exc)
        logger.warning(f"Validation error: {request.method} {request.url.path} - {message}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": message},
        )
