"""
Core middleware package.

- Error handling with uniform ``{"error": ...}`` bodies and message sanitization
- Structured request logging with credential masking
- Bearer-token authentication backed by a shared revocation list
"""

from core.middleware.error_handling import (
    ErrorHandlingMiddleware,
    setup_error_handlers,
    sanitize_error_message,
)

from core.middleware.logging import (
    StructuredLoggingMiddleware,
    setup_logging,
    get_logger,
)

from core.middleware.authentication import (
    AuthenticationMiddleware,
    AuthenticationError,
    get_current_principal,
)

__all__ = [
    # Error handling
    "ErrorHandlingMiddleware",
    "setup_error_handlers",
    "sanitize_error_message",
    # Logging
    "StructuredLoggingMiddleware",
    "setup_logging",
    "get_logger",
    # Authentication
    "AuthenticationMiddleware",
    "AuthenticationError",
    "get_current_principal",
]
