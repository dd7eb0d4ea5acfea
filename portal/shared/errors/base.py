"""Structured application errors.

AppError is the single error value used across the application: it carries
identity, classification, messages, details, context and the wrapped cause.
ErrorList aggregates several of them (e.g. multi-field validation).
"""

from collections.abc import Iterator, Mapping
from datetime import UTC, datetime
from http import HTTPStatus
from typing import Any
from uuid import uuid4

from portal.shared.redaction import filter_sensitive

from .schemas import ErrorBody, ErrorContext
from .types import (
    ErrorCategory,
    Severity,
    default_http_status,
    default_severity,
    is_retryable_by_category,
)


def generate_error_id() -> str:
    """Generate a unique error instance ID."""
    return str(uuid4())


class AppError(Exception):
    """Base class for all application errors.

    Defaults for severity, HTTP status and retryability come from the
    category and may be overridden after construction:

        err = not_found_error("User", "42").with_severity(Severity.MEDIUM)
    """

    def __init__(
        self,
        category: ErrorCategory,
        code: str,
        message: str,
        *,
        http_status: int | None = None,
        severity: Severity | None = None,
        retryable: bool | None = None,
        user_message: str = "",
        details: Mapping[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.id = generate_error_id()
        self.code = code
        self.category = ErrorCategory(category)
        self.severity = severity if severity is not None else default_severity(self.category)
        self.message = message
        self.user_message = user_message
        self.details: dict[str, Any] = dict(details or {})
        self.http_status = (
            http_status if http_status is not None else default_http_status(self.category)
        )
        self.retryable = (
            retryable if retryable is not None else is_retryable_by_category(self.category)
        )
        self.cause = cause
        self.timestamp = datetime.now(UTC)
        self.context = ErrorContext()

        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        text = f"[{self.code}] {self.category}: {self.message}"
        if self.cause is not None:
            text += f" (caused by: {self.cause})"
        return text

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(code={self.code!r}, category={self.category.value!r}, "
            f"message={self.message!r})"
        )

    def matches(self, other: object) -> bool:
        """Category equality: errors of the same category match regardless of code."""
        return isinstance(other, AppError) and other.category == self.category

    # ==================== Decoration ====================

    def with_context(self, context: ErrorContext | Mapping[str, Any]) -> "AppError":
        """Attach request context."""
        if not isinstance(context, ErrorContext):
            context = ErrorContext(**context)
        self.context = context
        return self

    def merge_context(self, context: ErrorContext) -> "AppError":
        """Fill in request context, keeping what lower layers attached.

        Request fields of `context` win when set. Operation and component
        already on the error are kept; metadata from both sides is merged.
        """
        current = self.context
        self.context = ErrorContext(
            operation=current.operation or context.operation,
            component=current.component or context.component,
            user_id=context.user_id or current.user_id,
            request_id=context.request_id or current.request_id,
            session_id=context.session_id or current.session_id,
            ip_address=context.ip_address or current.ip_address,
            user_agent=context.user_agent or current.user_agent,
            metadata={**current.metadata, **context.metadata},
        )
        return self

    def with_details(self, details: Mapping[str, Any]) -> "AppError":
        """Merge details into the existing map; new keys win."""
        self.details.update(details)
        return self

    def with_user_message(self, message: str) -> "AppError":
        """Set the safe-for-display message."""
        self.user_message = message
        return self

    def with_severity(self, severity: Severity) -> "AppError":
        """Override the category's default severity."""
        self.severity = Severity(severity)
        return self

    def with_http_status(self, status_code: int) -> "AppError":
        """Override the category's default HTTP status."""
        self.http_status = status_code
        return self

    # ==================== Serialization ====================

    def to_body(self) -> ErrorBody:
        """Build the client-facing error object (sensitive details removed)."""
        details = filter_sensitive(self.details)
        return ErrorBody(
            id=self.id,
            code=self.code,
            type=self.category.value,
            message=self.message,
            timestamp=self.timestamp,
            user_message=self.user_message or None,
            details=details or None,
            retryable=True if self.retryable else None,
        )

    def to_http_response(self) -> dict[str, Any]:
        """Serialize to the `{"error": {...}}` JSON envelope."""
        return {"error": self.to_body().model_dump(mode="json", exclude_none=True)}


class ErrorList(Exception):
    """Ordered collection of AppErrors reported together."""

    def __init__(self, errors: list[AppError] | None = None) -> None:
        self.errors: list[AppError] = list(errors or [])
        super().__init__()

    def __str__(self) -> str:
        if not self.errors:
            return "no errors"
        if len(self.errors) == 1:
            return str(self.errors[0])
        return f"multiple errors: {len(self.errors)} errors occurred"

    def __len__(self) -> int:
        return len(self.errors)

    def __iter__(self) -> Iterator[AppError]:
        return iter(self.errors)

    def add(self, err: AppError) -> None:
        self.errors.append(err)

    def clear(self) -> None:
        self.errors.clear()

    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def http_status(self) -> int:
        """Effective status: 200 when empty, otherwise the highest contained status."""
        if not self.errors:
            return int(HTTPStatus.OK)
        return max(err.http_status for err in self.errors)

    @property
    def severity(self) -> Severity:
        """Highest severity among the contained errors."""
        if not self.errors:
            return Severity.LOW
        return max(err.severity for err in self.errors)

    def to_http_response(self) -> dict[str, Any]:
        """Serialize; a single error collapses to the single-error envelope."""
        if len(self.errors) == 1:
            return self.errors[0].to_http_response()
        return {"errors": [err.to_http_response()["error"] for err in self.errors]}
