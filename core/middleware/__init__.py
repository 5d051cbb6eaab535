"""
Core middleware package.

- Error handling that renders every failure in the response envelope
- Structured request logging with PII masking
"""

from core.middleware.error_handling import (
    ErrorHandlingMiddleware,
    build_error_response,
    error_envelope,
    sanitize_error_message,
    setup_error_handlers,
)
from core.middleware.logging import (
    StructuredFormatter,
    StructuredLoggingMiddleware,
    setup_logging,
)

__all__ = [
    # Error handling
    "ErrorHandlingMiddleware",
    "build_error_response",
    "error_envelope",
    "sanitize_error_message",
    "setup_error_handlers",
    # Logging
    "StructuredFormatter",
    "StructuredLoggingMiddleware",
    "setup_logging",
]
