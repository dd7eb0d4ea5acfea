"""Sensitive field detection shared by error serialization and log sinks."""

import re
from collections.abc import Mapping
from typing import Any

REDACTED = "***REDACTED***"

SENSITIVE_FIELDS: tuple[str, ...] = (
    "password",
    "token",
    "secret",
    "key",
    "credential",
    "authorization",
    "session",
    "cookie",
    "private",
)

SENSITIVE_PATTERN = re.compile("|".join(SENSITIVE_FIELDS), re.IGNORECASE)


def is_sensitive_field(field: str) -> bool:
    """Check whether a field name looks like it holds a secret.

    Case-insensitive substring match: "password", "api_key" and
    "X-Session-Cookie" are all sensitive.
    """
    return bool(SENSITIVE_PATTERN.search(str(field)))


def filter_sensitive(values: Mapping[str, Any]) -> dict[str, Any]:
    """Copy a mapping without its sensitive keys, preserving order."""
    return {k: v for k, v in values.items() if not is_sensitive_field(k)}


def redact_sensitive_value(key: str, value: Any) -> Any:
    """Replace a value with a placeholder when its key is sensitive."""
    if is_sensitive_field(key):
        return REDACTED
    return value
