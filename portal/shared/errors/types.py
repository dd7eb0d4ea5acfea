"""Error taxonomy.

Closed set of error categories and severities plus the default tables
that stamp every AppError with its severity, HTTP status and retry hint.
"""

from enum import StrEnum
from http import HTTPStatus
from typing import Any


class ErrorCategory(StrEnum):
    """Classification tag of an application error."""

    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    RATE_LIMIT = "rate_limit"
    INTERNAL = "internal"
    EXTERNAL = "external"
    TIMEOUT = "timeout"
    UNAVAILABLE = "unavailable"


class Severity(StrEnum):
    """Ordered importance of an error: low < medium < high < critical."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """Position in the severity order (low is 0)."""
        return list(type(self)).index(self)

    def __lt__(self, other: Any) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: Any) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: Any) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: Any) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank


# ==================== Default tables ====================

DEFAULT_SEVERITY: dict[ErrorCategory, Severity] = {
    ErrorCategory.VALIDATION: Severity.LOW,
    ErrorCategory.AUTHENTICATION: Severity.LOW,
    ErrorCategory.AUTHORIZATION: Severity.LOW,
    ErrorCategory.NOT_FOUND: Severity.LOW,
    ErrorCategory.CONFLICT: Severity.MEDIUM,
    ErrorCategory.RATE_LIMIT: Severity.MEDIUM,
    ErrorCategory.INTERNAL: Severity.HIGH,
    ErrorCategory.EXTERNAL: Severity.HIGH,
    ErrorCategory.TIMEOUT: Severity.HIGH,
    ErrorCategory.UNAVAILABLE: Severity.HIGH,
}

DEFAULT_HTTP_STATUS: dict[ErrorCategory, int] = {
    ErrorCategory.VALIDATION: HTTPStatus.BAD_REQUEST,
    ErrorCategory.AUTHENTICATION: HTTPStatus.UNAUTHORIZED,
    ErrorCategory.AUTHORIZATION: HTTPStatus.FORBIDDEN,
    ErrorCategory.NOT_FOUND: HTTPStatus.NOT_FOUND,
    ErrorCategory.CONFLICT: HTTPStatus.CONFLICT,
    ErrorCategory.RATE_LIMIT: HTTPStatus.TOO_MANY_REQUESTS,
    ErrorCategory.INTERNAL: HTTPStatus.INTERNAL_SERVER_ERROR,
    ErrorCategory.EXTERNAL: HTTPStatus.BAD_GATEWAY,
    ErrorCategory.TIMEOUT: HTTPStatus.REQUEST_TIMEOUT,
    ErrorCategory.UNAVAILABLE: HTTPStatus.SERVICE_UNAVAILABLE,
}

RETRYABLE_CATEGORIES: frozenset[ErrorCategory] = frozenset(
    {
        ErrorCategory.RATE_LIMIT,
        ErrorCategory.EXTERNAL,
        ErrorCategory.TIMEOUT,
        ErrorCategory.UNAVAILABLE,
    }
)

# Framework status code -> (category, code)
STATUS_CATEGORIES: dict[int, tuple[ErrorCategory, str]] = {
    HTTPStatus.BAD_REQUEST: (ErrorCategory.VALIDATION, "BAD_REQUEST"),
    HTTPStatus.UNAUTHORIZED: (ErrorCategory.AUTHENTICATION, "UNAUTHORIZED"),
    HTTPStatus.FORBIDDEN: (ErrorCategory.AUTHORIZATION, "FORBIDDEN"),
    HTTPStatus.NOT_FOUND: (ErrorCategory.NOT_FOUND, "NOT_FOUND"),
    HTTPStatus.METHOD_NOT_ALLOWED: (ErrorCategory.VALIDATION, "METHOD_NOT_ALLOWED"),
    HTTPStatus.CONFLICT: (ErrorCategory.CONFLICT, "CONFLICT"),
    HTTPStatus.TOO_MANY_REQUESTS: (ErrorCategory.RATE_LIMIT, "RATE_LIMIT_EXCEEDED"),
    HTTPStatus.REQUEST_TIMEOUT: (ErrorCategory.TIMEOUT, "REQUEST_TIMEOUT"),
    HTTPStatus.SERVICE_UNAVAILABLE: (ErrorCategory.UNAVAILABLE, "SERVICE_UNAVAILABLE"),
}


def _as_category(category: Any) -> ErrorCategory | None:
    try:
        return ErrorCategory(category)
    except ValueError:
        return None


def default_severity(category: ErrorCategory | str) -> Severity:
    """Default severity for a category; unknown input is medium."""
    known = _as_category(category)
    if known is None:
        return Severity.MEDIUM
    return DEFAULT_SEVERITY[known]


def default_http_status(category: ErrorCategory | str) -> int:
    """Default HTTP status for a category; unknown input is 500."""
    known = _as_category(category)
    if known is None:
        return int(HTTPStatus.INTERNAL_SERVER_ERROR)
    return int(DEFAULT_HTTP_STATUS[known])


def is_retryable_by_category(category: ErrorCategory | str) -> bool:
    """Whether errors of this category are generally worth retrying."""
    return _as_category(category) in RETRYABLE_CATEGORIES


def category_for_status(status_code: int) -> tuple[ErrorCategory, str]:
    """Map a framework HTTP status onto (category, code)."""
    return STATUS_CATEGORIES.get(status_code, (ErrorCategory.INTERNAL, "INTERNAL_ERROR"))
