"""Mapping of infrastructure errors onto the error taxonomy.

Centralized exception mapping for SQLAlchemy, HTTP clients and the network layer.
"""

from collections.abc import Callable
from typing import Any

from httpx import HTTPError, HTTPStatusError, TimeoutException
from loguru import logger
from sqlalchemy.exc import DatabaseError, IntegrityError, OperationalError

from .base import AppError
from .builders import (
    conflict_error,
    external_service_error,
    internal_error,
    new_app_error,
    service_unavailable_error,
    validation_error,
)
from .types import ErrorCategory

Handler = Callable[[Any, str], AppError]


class ExceptionMapper:
    """Centralized mapping of technical exceptions to AppErrors."""

    _handlers: dict[type[BaseException], Handler] = {}

    @classmethod
    def register(cls, *exception_types: type[BaseException]) -> Callable[[Handler], Handler]:
        """Register a handler for exception types.

        Usage:
            @ExceptionMapper.register(IntegrityError)
            def _handle_integrity_error(exc: IntegrityError, operation: str) -> AppError:
                return conflict_error("DUPLICATE_RESOURCE", "Record already exists")
        """

        def decorator(handler: Handler) -> Handler:
            for exc_type in exception_types:
                cls._handlers[exc_type] = handler
            return handler

        return decorator

    @classmethod
    def registered_types(cls) -> tuple[type[BaseException], ...]:
        return tuple(cls._handlers)

    @classmethod
    def find_handler(cls, exc: BaseException) -> Handler | None:
        # Most specific registered class along the MRO wins
        for exc_type in type(exc).__mro__:
            handler = cls._handlers.get(exc_type)
            if handler is not None:
                return handler
        return None

    @classmethod
    def can_map(cls, exc: BaseException) -> bool:
        return cls.find_handler(exc) is not None

    @classmethod
    def map(cls, exc: BaseException, operation: str = "") -> AppError:
        """Map a technical exception to an AppError.

        Args:
            exc: The technical exception to map
            operation: Name of the failing operation (logged and kept in details)

        Returns:
            Mapped AppError with `exc` as its cause
        """
        if isinstance(exc, AppError):
            return exc

        handler = cls.find_handler(exc)
        if handler is not None:
            err = handler(exc, operation)
        else:
            err = internal_error("UNHANDLED_ERROR", "An unexpected error occurred")
            if operation:
                err.with_details({"operation": operation})

        if err.cause is None:
            err.cause = exc
            err.__cause__ = exc
        return err


# --- Register default handlers ---


@ExceptionMapper.register(IntegrityError)
def _handle_integrity_error(exc: IntegrityError, operation: str) -> AppError:
    """Database: integrity constraint violation."""
    err_msg = str(exc).lower()
    if "unique" in err_msg or "duplicate" in err_msg:
        return conflict_error("DUPLICATE_RESOURCE", "Record already exists").with_details(
            {"constraint": "unique"}
        )
    if "foreign key" in err_msg:
        return validation_error(
            "RELATED_RESOURCE_MISSING",
            "Related record not found",
            {"constraint": "foreign_key"},
        )
    return validation_error("CONSTRAINT_VIOLATION", "Database constraint violation")


@ExceptionMapper.register(OperationalError, DatabaseError)
def _handle_database_error(exc: Exception, operation: str) -> AppError:
    """Database: connection or operational error."""
    logger.debug(f"Database unavailable during {operation or 'unknown operation'}: {exc}")
    return service_unavailable_error("database")


@ExceptionMapper.register(TimeoutException)
def _handle_httpx_timeout(exc: TimeoutException, operation: str) -> AppError:
    """HTTPX: upstream did not answer in time."""
    try:
        target = str(exc.request.url)
    except RuntimeError:
        # .request is unset when the exception was raised outside a client call
        target = "http_client"
    return new_app_error(
        ErrorCategory.TIMEOUT,
        "UPSTREAM_TIMEOUT",
        f"Request to {target} timed out during {operation or 'request'}",
        cause=exc,
    ).with_details({"service": "http_client", "target": target})


@ExceptionMapper.register(HTTPError)
def _handle_httpx_error(exc: HTTPError, operation: str) -> AppError:
    """HTTPX: external service error."""
    err = external_service_error("http_client", operation or "request", exc)
    if isinstance(exc, HTTPStatusError):
        err.with_details({"status": exc.response.status_code})
    return err


@ExceptionMapper.register(ConnectionError)
def _handle_connection_error(exc: ConnectionError, operation: str) -> AppError:
    """Network: peer refused or dropped the connection."""
    return service_unavailable_error(operation or "upstream")
