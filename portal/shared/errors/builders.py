"""Error builders.

One constructor per category and common scenario. Builders are pure: the
only non-deterministic parts of the result are its ID and timestamp.
"""

from datetime import timedelta
from typing import Any

from .base import AppError
from .types import ErrorCategory, Severity, default_http_status

INTERNAL_USER_MESSAGE = "An internal error occurred. Please try again later."


def new_app_error(
    category: ErrorCategory,
    code: str,
    message: str,
    http_status: int | None = None,
    cause: BaseException | None = None,
) -> AppError:
    """Create an AppError with category defaults."""
    return AppError(category, code, message, http_status=http_status, cause=cause)


# ==================== Validation ====================


def validation_error(
    code: str, message: str, details: dict[str, Any] | None = None
) -> AppError:
    err = new_app_error(ErrorCategory.VALIDATION, code, message)
    if details:
        err.with_details(details)
    return err


# ==================== Authentication ====================


def authentication_error(code: str, message: str) -> AppError:
    return new_app_error(ErrorCategory.AUTHENTICATION, code, message)


def invalid_credentials_error() -> AppError:
    return authentication_error(
        "INVALID_CREDENTIALS", "Invalid username or password"
    ).with_user_message("The username or password you entered is incorrect. Please try again.")


def session_expired_error() -> AppError:
    return authentication_error("SESSION_EXPIRED", "Session has expired").with_user_message(
        "Your session has expired. Please log in again."
    )


def session_invalid_error() -> AppError:
    return authentication_error("SESSION_INVALID", "Session is invalid").with_user_message(
        "Your session is invalid. Please log in again."
    )


# ==================== Authorization ====================


def authorization_error(code: str, message: str) -> AppError:
    return new_app_error(ErrorCategory.AUTHORIZATION, code, message)


def insufficient_permissions_error() -> AppError:
    return authorization_error(
        "INSUFFICIENT_PERMISSIONS", "Insufficient permissions to perform this action"
    ).with_user_message("You don't have permission to perform this action.")


def account_suspended_error() -> AppError:
    return authorization_error(
        "ACCOUNT_SUSPENDED", "Account has been suspended"
    ).with_user_message(
        "Your account has been suspended. Please contact support for assistance."
    )


# ==================== Not found ====================


def not_found_error(resource: str, id: str = "") -> AppError:
    """Resource lookup failed.

    The message mentions the ID only when one is given:
    "User with ID '42' not found" vs "User not found".
    """
    message = f"{resource} not found"
    if id:
        message = f"{resource} with ID '{id}' not found"

    return (
        new_app_error(ErrorCategory.NOT_FOUND, "RESOURCE_NOT_FOUND", message)
        .with_details({"resource": resource, "id": id})
        .with_user_message("The requested resource could not be found.")
    )


def user_not_found_error(user_id: str) -> AppError:
    return not_found_error("User", user_id)


def session_not_found_error(session_id: str) -> AppError:
    return not_found_error("Session", session_id)


# ==================== Conflict ====================


def conflict_error(code: str, message: str) -> AppError:
    return new_app_error(ErrorCategory.CONFLICT, code, message)


def duplicate_resource_error(resource: str, field: str, value: str) -> AppError:
    message = f"{resource} with {field} '{value}' already exists"
    return (
        conflict_error("DUPLICATE_RESOURCE", message)
        .with_details({"resource": resource, "field": field, "value": value})
        .with_user_message(f"A {resource} with this {field} already exists.")
    )


def email_already_exists_error(email: str) -> AppError:
    return duplicate_resource_error("User", "email", email)


def optimistic_lock_error(resource: str) -> AppError:
    return conflict_error(
        "OPTIMISTIC_LOCK_CONFLICT",
        f"The {resource} has been modified by another process",
    ).with_user_message(
        "The resource has been modified by another user. Please refresh and try again."
    )


# ==================== Rate limit ====================


def rate_limit_error(limit: int, window: str) -> AppError:
    message = f"Rate limit exceeded: {limit} requests per {window}"
    return (
        new_app_error(ErrorCategory.RATE_LIMIT, "RATE_LIMIT_EXCEEDED", message)
        .with_details({"limit": limit, "window": window})
        .with_user_message("You have made too many requests. Please wait a moment and try again.")
    )


# ==================== Internal ====================


def internal_error(code: str, message: str, cause: BaseException | None = None) -> AppError:
    return new_app_error(ErrorCategory.INTERNAL, code, message, cause=cause).with_user_message(
        INTERNAL_USER_MESSAGE
    )


def database_error(operation: str, cause: BaseException | None = None) -> AppError:
    return internal_error(
        "DATABASE_ERROR", f"Database error during {operation}", cause
    ).with_details({"operation": operation})


def event_bus_error(operation: str, cause: BaseException | None = None) -> AppError:
    return internal_error(
        "EVENT_BUS_ERROR", f"Event bus error during {operation}", cause
    ).with_details({"operation": operation})


def panic_error(
    value: Any,
    stack: str | None = None,
    message: str = "A panic was recovered",
) -> AppError:
    """Convert an uncaught failure into a critical internal error.

    Exceptions become the cause directly; any other value is wrapped in a
    RuntimeError so the cause chain stays an exception.
    """
    cause = value if isinstance(value, BaseException) else RuntimeError(f"panic: {value}")

    details: dict[str, Any] = {"panic_value": str(value)}
    if stack:
        details["stack_trace"] = stack

    return (
        internal_error("PANIC_RECOVERED", message, cause)
        .with_severity(Severity.CRITICAL)
        .with_details(details)
    )


# ==================== External / timeout / unavailable ====================


def external_service_error(
    service: str, operation: str, cause: BaseException | None = None
) -> AppError:
    message = f"External service '{service}' error during {operation}"
    return (
        new_app_error(ErrorCategory.EXTERNAL, "EXTERNAL_SERVICE_ERROR", message, cause=cause)
        .with_details({"service": service, "operation": operation})
        .with_user_message("An external service is currently unavailable. Please try again later.")
    )


def _format_timeout(timeout: timedelta | float) -> str:
    seconds = timeout.total_seconds() if isinstance(timeout, timedelta) else float(timeout)
    return f"{seconds:g}s"


def timeout_error(operation: str, timeout: timedelta | float) -> AppError:
    """Operation exceeded its deadline; `timeout` is a timedelta or seconds."""
    formatted = _format_timeout(timeout)
    message = f"Operation '{operation}' timed out after {formatted}"
    return (
        new_app_error(ErrorCategory.TIMEOUT, "OPERATION_TIMEOUT", message)
        .with_details({"operation": operation, "timeout": formatted})
        .with_user_message("The operation took too long to complete. Please try again.")
    )


def service_unavailable_error(service: str) -> AppError:
    message = f"Service '{service}' is currently unavailable"
    return (
        new_app_error(ErrorCategory.UNAVAILABLE, "SERVICE_UNAVAILABLE", message)
        .with_details({"service": service})
        .with_user_message("The service is currently unavailable. Please try again later.")
    )


# ==================== Wrapping ====================


def wrap_error(
    err: BaseException | None,
    category: ErrorCategory,
    code: str,
    message: str,
) -> AppError | None:
    """Classify a foreign error under `category`, keeping it as the cause.

    AppErrors are returned unchanged (no re-classification) and None stays None.
    """
    if err is None:
        return None
    if isinstance(err, AppError):
        return err
    return new_app_error(category, code, message, default_http_status(category), cause=err)
