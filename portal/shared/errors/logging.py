"""Error logging policy.

Severity decides the log level:

    critical, high -> error
    medium         -> warning
    low            -> info, or not logged at all unless log_all_errors is on
"""

from collections.abc import Mapping
from typing import Any

from portal.shared.logging import Logger
from portal.shared.redaction import filter_sensitive

from .base import AppError
from .schemas import ErrorContext
from .types import Severity

SEVERITY_LOG_LEVELS: dict[Severity, str] = {
    Severity.CRITICAL: "error",
    Severity.HIGH: "error",
    Severity.MEDIUM: "warning",
    Severity.LOW: "info",
}

# Levels logged only when log_all_errors is enabled
OPTIONAL_SEVERITIES: frozenset[Severity] = frozenset({Severity.LOW})


def log_level_for(severity: Severity, log_all_errors: bool = True) -> str | None:
    """Logger method name for a severity, or None when the entry is suppressed."""
    if severity in OPTIONAL_SEVERITIES and not log_all_errors:
        return None
    return SEVERITY_LOG_LEVELS.get(severity, "error")


def context_log_fields(ctx: ErrorContext, request_details: bool = True) -> dict[str, Any]:
    """Non-empty context values as log fields; metadata keys get a prefix."""
    fields: dict[str, Any] = {}
    for key in ("request_id", "user_id", "session_id", "ip_address", "operation", "component"):
        value = getattr(ctx, key)
        if value:
            fields[key] = value

    if request_details:
        for key, value in ctx.metadata.items():
            fields[f"request_{key}"] = value
    return fields


def error_log_fields(
    err: AppError,
    ctx: ErrorContext | None = None,
    request_details: bool = True,
) -> dict[str, Any]:
    """Structured fields describing an error, with sensitive details removed."""
    fields: dict[str, Any] = {
        "error_id": err.id,
        "error_code": err.code,
        "error_type": err.category.value,
        "severity": err.severity.value,
        "http_status": err.http_status,
        "retryable": err.retryable,
        "error_timestamp": err.timestamp.isoformat(),
    }

    fields.update(context_log_fields(ctx or err.context, request_details))

    for key, value in filter_sensitive(err.details).items():
        fields[f"detail_{key}"] = value

    return fields


def emit(logger: Logger, level: str | None, message: str) -> bool:
    """Call the logger method for `level`; returns whether anything was logged."""
    if level is None:
        return False
    getattr(logger, level)(message)
    return True


class ErrorLogger:
    """Specialized logging of AppErrors outside the HTTP middleware (workers, jobs)."""

    def __init__(self, logger: Logger, log_all_errors: bool = True) -> None:
        self.logger = logger
        self.log_all_errors = log_all_errors

    def log_error(self, err: AppError, extra: Mapping[str, Any] | None = None) -> bool:
        """Log one entry for `err`; returns False when the severity policy suppressed it."""
        fields = error_log_fields(err)
        for key, value in err.context.metadata.items():
            fields.pop(f"request_{key}", None)
            fields[f"context_{key}"] = value
        if extra:
            fields.update(extra)

        logger = self.logger.with_fields(fields)
        if err.cause is not None:
            logger = logger.with_error(err.cause)

        level = log_level_for(err.severity, self.log_all_errors)
        return emit(logger, level, f"Error occurred: {err.message}")
