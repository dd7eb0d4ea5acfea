"""Pytest configuration and fixtures for portal tests."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import pytest

from portal.shared.context import clear_request_context

# ==================== Logger Fixtures ====================


@dataclass
class LogEntry:
    """One call recorded by RecordingLogger."""

    level: str
    message: str
    fields: dict[str, Any] = field(default_factory=dict)


class RecordingLogger:
    """Logger fake that records every entry with its fields.

    Derived loggers share the record list of the logger they came from.
    """

    def __init__(
        self,
        entries: list[LogEntry] | None = None,
        fields: Mapping[str, Any] | None = None,
    ) -> None:
        self.entries: list[LogEntry] = entries if entries is not None else []
        self.fields: dict[str, Any] = dict(fields or {})

    def with_fields(self, fields: Mapping[str, Any] | None) -> "RecordingLogger":
        return RecordingLogger(self.entries, {**self.fields, **(fields or {})})

    def with_error(self, err: BaseException) -> "RecordingLogger":
        return self.with_fields({"error": str(err), "error_class": type(err).__name__})

    def _record(self, level: str, message: str) -> None:
        self.entries.append(LogEntry(level, message, dict(self.fields)))

    def debug(self, message: str) -> None:
        self._record("debug", message)

    def info(self, message: str) -> None:
        self._record("info", message)

    def warning(self, message: str) -> None:
        self._record("warning", message)

    def error(self, message: str) -> None:
        self._record("error", message)

    def at(self, level: str) -> list[LogEntry]:
        """Entries recorded at `level`."""
        return [entry for entry in self.entries if entry.level == level]


@pytest.fixture
def recording_logger() -> RecordingLogger:
    """Fresh recording logger."""
    return RecordingLogger()


@pytest.fixture(autouse=True)
def _reset_request_context():
    """Keep context variables from leaking between tests."""
    yield
    clear_request_context()
