"""
Error handling with security-compliant error sanitization.

Every failure leaves the API in the same envelope as a success:

    {"success": false, "data": null, "error": {"kind", "message", "details"}, "warnings": []}

Workflow errors carry their own kind and status. Infrastructure errors are
mapped here and their messages are scrubbed before they reach a client or a
log line.
"""

import logging
import re
import traceback
from typing import Any, Callable, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from redis.exceptions import ConnectionError as RedisConnectionError, RedisError
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.errors import ErrorKind, WorkflowError

logger = logging.getLogger(__name__)

# Patterns for sensitive data that should never be logged
SENSITIVE_PATTERNS = [
    re.compile(r'password["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'token["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'api[_-]?key["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'secret["\s:=]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'authorization["\s:]+[^"\s,}]+', re.IGNORECASE),
    re.compile(r'\b\d{3}-\d{2}-\d{4}\b'),  # SSN
    re.compile(r'\b\d{16}\b'),  # Credit card
]

_HTTP_KINDS = {
    status.HTTP_401_UNAUTHORIZED: ErrorKind.UNAUTHENTICATED.value,
    status.HTTP_403_FORBIDDEN: ErrorKind.FORBIDDEN.value,
    status.HTTP_404_NOT_FOUND: ErrorKind.NOT_FOUND.value,
    status.HTTP_422_UNPROCESSABLE_ENTITY: ErrorKind.VALIDATION_ERROR.value,
}


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
        sanitized = pattern.sub("[REDACTED]", sanitized)
    return sanitized


def error_envelope(
    kind: str, message: str, details: Optional[dict[str, Any]] = None
) -> dict[str, Any]:
    """Build the JSON body for a failed request."""
    error: dict[str, Any] = {"kind": kind, "message": message}
    if details:
        error["details"] = details
    return {"success": False, "data": None, "error": error, "warnings": []}


def format_validation_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """
    Format request validation errors, dropping inputs that look sensitive.

    Args:
        exc: The validation exception

    Returns:
        List of formatted validation errors
    """
    errors = []
    for error in exc.errors():
        error_dict = {
            "field": ".".join(str(loc) for loc in error["loc"]),
            "message": sanitize_error_message(error["msg"]),
            "type": error["type"],
        }
        input_value = error.get("input")
        if isinstance(input_value, (str, int, float, bool)):
            if not any(p.search(str(input_value)) for p in SENSITIVE_PATTERNS):
                error_dict["input"] = input_value
        errors.append(error_dict)
    return errors


def build_error_response(
    exc: Exception, method: str, path: str, debug: bool = False
) -> JSONResponse:
    """
    Map an exception onto a status code and error envelope.

    Args:
        exc: The exception to handle
        method: Request method, for logging
        path: Request path, for logging
        debug: Whether to include a traceback for unexpected errors

    Returns:
        JSONResponse with the error envelope
    """
    details: Optional[dict[str, Any]] = None

    if isinstance(exc, WorkflowError):
        status_code = exc.status_code
        kind = exc.kind.value
        message = sanitize_error_message(exc.message)
        details = exc.details or None
        logger.warning(f"Rejected command: {method} {path} - {kind}: {message}")

    elif isinstance(exc, RequestValidationError):
        status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
        kind = ErrorKind.VALIDATION_ERROR.value
        message = "Request validation failed"
        details = {"errors": format_validation_errors(exc)}
        logger.warning(f"Validation error: {method} {path} - {details['errors']}")

    elif isinstance(exc, StarletteHTTPException):
        status_code = exc.status_code
        kind = _HTTP_KINDS.get(status_code, "http_error")
        message = sanitize_error_message(str(exc.detail))
        logger.warning(f"HTTP exception: {method} {path} - {status_code}: {message}")

    elif isinstance(exc, StaleDataError):
        status_code = status.HTTP_409_CONFLICT
        kind = ErrorKind.CONCURRENT_MODIFICATION.value
        message = "The resource was modified concurrently, reload and retry"
        logger.warning(f"Stale write: {method} {path}")

    elif isinstance(exc, IntegrityError):
        status_code = status.HTTP_409_CONFLICT
        kind = ErrorKind.CONCURRENT_MODIFICATION.value
        message = "Database integrity constraint violated"
        logger.error(f"Database integrity error: {method} {path}", exc_info=True)

    elif isinstance(exc, OperationalError):
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        kind = "service_unavailable"
        message = "Database service temporarily unavailable"
        logger.error(f"Database operational error: {method} {path}", exc_info=True)

    elif isinstance(exc, SQLAlchemyError):
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        kind = "internal_error"
        message = "A database error occurred"
        logger.error(f"SQLAlchemy error: {method} {path}", exc_info=True)

    elif isinstance(exc, RedisConnectionError):
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        kind = "service_unavailable"
        message = "Lock service temporarily unavailable"
        logger.error(f"Redis connection error: {method} {path}", exc_info=True)

    elif isinstance(exc, RedisError):
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        kind = "internal_error"
        message = "A lock service error occurred"
        logger.error(f"Redis error: {method} {path}", exc_info=True)

    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        kind = "internal_error"
        message = "An unexpected error occurred"
        logger.error(
            f"Unhandled exception: {method} {path} - "
            f"{type(exc).__name__}: {sanitize_error_message(str(exc))}",
            exc_info=True,
        )
        if debug:
            details = {
                "type": type(exc).__name__,
                "traceback": sanitize_error_message(traceback.format_exc()),
            }

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(error_envelope(kind, message, details)),
    )


class ErrorHandlingMiddleware:
    """
    Outermost ASGI guard for anything that escapes the exception handlers.
    """

    def __init__(self, app: Callable, debug: bool = False):
        """
        Initialize error handling middleware.

        Args:
            app: The ASGI application
            debug: Whether to include detailed error information
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
            response = build_error_response(
                exc,
                scope.get("method", "unknown"),
                scope.get("path", "unknown"),
                debug=self.debug,
            )
            await response(scope, receive, send)


def setup_error_handlers(app, debug: bool = False):
    """
    Set up exception handlers for FastAPI application.

    Args:
        app: FastAPI application instance
        debug: Whether unexpected errors include a traceback
    """

    async def handle(request: Request, exc: Exception):
        return build_error_response(exc, request.method, request.url.path, debug=debug)

    app.add_exception_handler(WorkflowError, handle)
    app.add_exception_handler(RequestValidationError, handle)
    app.add_exception_handler(StarletteHTTPException, handle)
    app.add_exception_handler(SQLAlchemyError, handle)
    app.add_exception_handler(RedisError, handle)
    app.add_exception_handler(Exception, handle)
