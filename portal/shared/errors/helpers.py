"""Inspection, aggregation and validation helpers for AppError."""

import traceback
from collections.abc import Callable
from http import HTTPStatus
from typing import Any, TypeVar

from .base import AppError, ErrorList
from .builders import new_app_error, panic_error, validation_error, wrap_error
from .types import ErrorCategory

T = TypeVar("T")


# ==================== Inspection ====================


def is_category(err: BaseException | None, category: ErrorCategory) -> bool:
    return isinstance(err, AppError) and err.category == category


def is_validation_error(err: BaseException | None) -> bool:
    return is_category(err, ErrorCategory.VALIDATION)


def is_authentication_error(err: BaseException | None) -> bool:
    return is_category(err, ErrorCategory.AUTHENTICATION)


def is_authorization_error(err: BaseException | None) -> bool:
    return is_category(err, ErrorCategory.AUTHORIZATION)


def is_not_found_error(err: BaseException | None) -> bool:
    return is_category(err, ErrorCategory.NOT_FOUND)


def is_conflict_error(err: BaseException | None) -> bool:
    return is_category(err, ErrorCategory.CONFLICT)


def is_rate_limit_error(err: BaseException | None) -> bool:
    return is_category(err, ErrorCategory.RATE_LIMIT)


def is_internal_error(err: BaseException | None) -> bool:
    return is_category(err, ErrorCategory.INTERNAL)


def is_external_error(err: BaseException | None) -> bool:
    return is_category(err, ErrorCategory.EXTERNAL)


def is_timeout_error(err: BaseException | None) -> bool:
    return is_category(err, ErrorCategory.TIMEOUT)


def is_unavailable_error(err: BaseException | None) -> bool:
    return is_category(err, ErrorCategory.UNAVAILABLE)


def is_retryable(err: BaseException | None) -> bool:
    return isinstance(err, AppError) and err.retryable


def get_error_code(err: BaseException | None) -> str:
    if isinstance(err, AppError):
        return err.code
    return "UNKNOWN_ERROR"


def get_category(err: BaseException | None) -> ErrorCategory:
    if isinstance(err, AppError):
        return err.category
    return ErrorCategory.INTERNAL


def get_http_status(err: BaseException | None) -> int:
    if isinstance(err, (AppError, ErrorList)):
        return err.http_status
    return int(HTTPStatus.INTERNAL_SERVER_ERROR)


def as_app_error(err: BaseException | None) -> AppError | None:
    return err if isinstance(err, AppError) else None


def as_error_list(err: BaseException | None) -> ErrorList | None:
    return err if isinstance(err, ErrorList) else None


# ==================== Aggregation ====================


def chain(*errors: BaseException | None) -> BaseException | None:
    """Combine errors into one.

    None entries are dropped; a single remaining error is returned as is;
    several become an ErrorList with foreign errors wrapped as CHAINED_ERROR.
    """
    present = [err for err in errors if err is not None]
    if not present:
        return None
    if len(present) == 1:
        return present[0]

    error_list = ErrorList()
    for err in present:
        if isinstance(err, ErrorList):
            for item in err:
                error_list.add(item)
            continue
        wrapped = wrap_error(err, ErrorCategory.INTERNAL, "CHAINED_ERROR", str(err))
        if wrapped is not None:
            error_list.add(wrapped)
    return error_list


combine = chain


class ErrorCollector:
    """Collects errors while a multi-step check runs, then reports them at once."""

    def __init__(self) -> None:
        self._errors: list[BaseException] = []

    def add(self, err: BaseException | None) -> None:
        if err is not None:
            self._errors.append(err)

    def add_if(self, condition: bool, err: BaseException | None) -> None:
        if condition and err is not None:
            self._errors.append(err)

    def has_errors(self) -> bool:
        return bool(self._errors)

    def count(self) -> int:
        return len(self._errors)

    def error(self) -> BaseException | None:
        """All collected errors as a single error, or None."""
        return chain(*self._errors)

    def errors(self) -> list[BaseException]:
        return list(self._errors)

    def clear(self) -> None:
        self._errors.clear()


# ==================== Validation ====================


def validate(condition: bool, category: ErrorCategory, code: str, message: str) -> AppError | None:
    """Return an error of `category` when the condition does not hold."""
    if condition:
        return None
    return new_app_error(category, code, message)


def validate_not_none(value: Any, field_name: str) -> AppError | None:
    if value is None:
        return validation_error(
            "FIELD_REQUIRED",
            f"Field '{field_name}' is required",
            {"field": field_name},
        )
    return None


def validate_not_empty(value: str, field_name: str) -> AppError | None:
    if value == "":
        return validation_error(
            "FIELD_REQUIRED",
            f"Field '{field_name}' cannot be empty",
            {"field": field_name},
        )
    return None


def validate_length(value: str, field_name: str, min: int, max: int) -> AppError | None:
    """Check string length; `max <= 0` disables the upper bound."""
    length = len(value)

    if length < min:
        return validation_error(
            "FIELD_TOO_SHORT",
            f"Field '{field_name}' must be at least {min} characters",
            {"field": field_name, "min_length": min, "actual_length": length},
        )

    if max > 0 and length > max:
        return validation_error(
            "FIELD_TOO_LONG",
            f"Field '{field_name}' must be at most {max} characters",
            {"field": field_name, "max_length": max, "actual_length": length},
        )

    return None


# ==================== Recovery ====================


def safe_execute(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Run `func`; AppErrors propagate, anything else is raised as PANIC_RECOVERED."""
    try:
        return func(*args, **kwargs)
    except AppError:
        raise
    except Exception as e:
        stack = "".join(traceback.format_exception(e))
        raise panic_error(e, stack) from e
