"""Exception handlers for FastAPI.

Wires ErrorMiddleware into the application:

- AppError, ErrorList, HTTP, validation and timeout errors, every type the
  ExceptionMapper knows and any configured extra types are translated by
  `ErrorMiddleware.handle_error`
- anything else escapes to RecoveryMiddleware and becomes PANIC_RECOVERED
"""

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .base import AppError, ErrorList
from .mapping import ExceptionMapper
from .middleware import ErrorMiddleware, RecoveryMiddleware

HANDLED_EXCEPTIONS: tuple[type[Exception], ...] = (
    AppError,
    ErrorList,
    StarletteHTTPException,
    RequestValidationError,
    TimeoutError,
)


def setup_exception_handlers(
    app: FastAPI,
    middleware: ErrorMiddleware | None = None,
) -> ErrorMiddleware:
    """Register exception handlers and the recovery middleware.

    Must be called before the application starts serving requests.

    Args:
        app: FastAPI application instance
        middleware: Configured error middleware; built from settings when omitted

    Returns:
        The ErrorMiddleware used by the application
    """
    middleware = middleware or ErrorMiddleware()

    exception_types = [
        *HANDLED_EXCEPTIONS,
        *ExceptionMapper.registered_types(),
        *middleware.config.handled_exceptions,
    ]
    for exc_type in dict.fromkeys(exception_types):
        app.add_exception_handler(exc_type, middleware.handle_error)

    app.add_middleware(RecoveryMiddleware, error_middleware=middleware)
    app.state.error_middleware = middleware
    return middleware


# Alias for backwards compatibility
register_exception_handlers = setup_exception_handlers
