"""Structured logger abstraction.

Field composition is append-only: `with_fields` / `with_error` return a new
logger and never modify the one they were called on.

    log = StructuredLogger.from_settings().with_fields({"component": "auth"})
    log.with_error(exc).error("Login failed")
"""

from __future__ import annotations

import traceback
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from loguru import logger as _root_logger

from portal.shared.context import RequestContext

if TYPE_CHECKING:
    from loguru import Logger as LoguruCore

    from portal.core.config import Settings


@runtime_checkable
class Logger(Protocol):
    """Leveled logger with immutable field attachment."""

    def with_fields(self, fields: Mapping[str, Any] | None) -> Logger: ...

    def with_error(self, err: BaseException) -> Logger: ...

    def debug(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


def error_fields(err: BaseException) -> dict[str, Any]:
    """Fields describing an attached error."""
    return {"error": str(err), "error_class": type(err).__name__}


def stack_trace_for(err: BaseException) -> str:
    """Formatted traceback of an exception (or of its cause for AppErrors)."""
    cause = getattr(err, "cause", None) or err
    return "".join(traceback.format_exception(cause))


class LoguruLogger:
    """Logger implementation over loguru's `bind`."""

    def __init__(
        self,
        base: LoguruCore | None = None,
        fields: Mapping[str, Any] | None = None,
    ) -> None:
        self._base = base or _root_logger
        self._fields: dict[str, Any] = dict(fields or {})

    @property
    def fields(self) -> dict[str, Any]:
        return dict(self._fields)

    def with_fields(self, fields: Mapping[str, Any] | None) -> LoguruLogger:
        return LoguruLogger(self._base, {**self._fields, **(fields or {})})

    def with_error(self, err: BaseException) -> LoguruLogger:
        return self.with_fields(error_fields(err))

    def _emit(self, level: str, message: str) -> None:
        # depth=2 reports the caller of debug()/info()/... as the log origin
        self._base.bind(**self._fields).opt(depth=2).log(level, message)

    def debug(self, message: str) -> None:
        self._emit("DEBUG", message)

    def info(self, message: str) -> None:
        self._emit("INFO", message)

    def warning(self, message: str) -> None:
        self._emit("WARNING", message)

    def error(self, message: str) -> None:
        self._emit("ERROR", message)


class StructuredLogger:
    """Application logger stamping every entry with service identity.

    Adds `service`, `version` and `environment` fields, and a `stack_trace`
    field on `with_error` for AppErrors with a cause when enabled.
    """

    def __init__(
        self,
        service_name: str = "portal",
        service_version: str = "1.0.0",
        environment: str = "development",
        include_stack_trace: bool = False,
        base: Logger | None = None,
    ) -> None:
        self.service_name = service_name
        self.service_version = service_version
        self.environment = environment
        self.include_stack_trace = include_stack_trace
        self._base: Logger = base or LoguruLogger()

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> StructuredLogger:
        if settings is None:
            from portal.core.config import settings as app_settings

            settings = app_settings
        return cls(
            service_name=settings.app.name,
            service_version=settings.app.version,
            environment=settings.app.environment,
            include_stack_trace=settings.logging.include_stack_trace,
        )

    def service_fields(self) -> dict[str, Any]:
        return {
            "service": self.service_name,
            "version": self.service_version,
            "environment": self.environment,
        }

    def with_context(self, ctx: RequestContext | None = None) -> ContextLogger:
        """Logger that merges request identifiers into every entry."""
        return ContextLogger(self, ctx)

    def with_fields(self, fields: Mapping[str, Any] | None) -> Logger:
        return self._base.with_fields({**(fields or {}), **self.service_fields()})

    def with_error(self, err: BaseException) -> Logger:
        fields = {**self.service_fields(), **error_fields(err)}
        if self.include_stack_trace and getattr(err, "cause", None) is not None:
            fields["stack_trace"] = stack_trace_for(err)
        return self._base.with_fields(fields)

    def debug(self, message: str) -> None:
        self.with_fields(None).debug(message)

    def info(self, message: str) -> None:
        self.with_fields(None).info(message)

    def warning(self, message: str) -> None:
        self.with_fields(None).warning(message)

    def error(self, message: str) -> None:
        self.with_fields(None).error(message)


class ContextLogger:
    """Logger bound to a request context.

    The context is passed explicitly; when omitted it is snapshotted from the
    request-scoped context variables at construction time.
    """

    def __init__(
        self,
        parent: StructuredLogger,
        ctx: RequestContext | None = None,
        fields: Mapping[str, Any] | None = None,
    ) -> None:
        self._parent = parent
        self.ctx = ctx if ctx is not None else RequestContext.current()
        self._fields: dict[str, Any] = dict(fields or {})

    def _merged(self, fields: Mapping[str, Any] | None) -> dict[str, Any]:
        return {
            **self._fields,
            **(fields or {}),
            **self._parent.service_fields(),
            **self.ctx.as_fields(),
        }

    def with_fields(self, fields: Mapping[str, Any] | None) -> Logger:
        return self._parent.with_fields(self._merged(fields))

    def with_error(self, err: BaseException) -> Logger:
        return self._parent.with_error(err).with_fields(self._merged(None))

    def debug(self, message: str) -> None:
        self.with_fields(None).debug(message)

    def info(self, message: str) -> None:
        self.with_fields(None).info(message)

    def warning(self, message: str) -> None:
        self.with_fields(None).warning(message)

    def error(self, message: str) -> None:
        self.with_fields(None).error(message)
