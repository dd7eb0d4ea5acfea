"""Portal - Logger Configuration.

Loguru-based structured logging configuration.

This module configures a unified logger for the application:
- Loguru for application logs (pretty format, colors, structured data)
- Intercept handler for third-party library logs (uvicorn, fastapi, starlette)
- OpenTelemetry integration for trace correlation
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

from loguru import logger
from opentelemetry import trace

from portal.shared.context import RequestContext
from portal.shared.redaction import redact_sensitive_value

if TYPE_CHECKING:
    from portal.core.config import Settings

# Default trace/span IDs when no active trace
NO_TRACE = "0" * 32
NO_SPAN = "0" * 16

# Identifiers rendered as top-level fields and never redacted
CORRELATION_KEYS = ("trace_id", "span_id", "request_id", "user_id", "session_id")

# Cache for settings to avoid repeated imports
_settings_cache: Settings | None = None


def _get_settings() -> Settings:
    """Get settings lazily to avoid circular imports."""
    global _settings_cache
    if _settings_cache is None:
        from portal.core.config import settings

        _settings_cache = settings
    return _settings_cache


class InterceptHandler(logging.Handler):
    """Handler for intercepting standard logging and redirecting to Loguru.

    Uvicorn, FastAPI and Starlette use the standard logging module. To have all
    logs in the unified Loguru format, they are intercepted through this handler.
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame = logging.currentframe()
        depth = 2

        if frame:
            while frame.f_code.co_filename == logging.__file__:
                if frame.f_back:
                    frame = frame.f_back
                    depth += 1
                else:
                    break

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _otel_patcher(record: dict[str, Any]) -> None:
    """Inject OpenTelemetry trace context (or the request's trace id) into every record."""
    span = trace.get_current_span()
    ctx = span.get_span_context()

    if ctx.is_valid:
        record["extra"]["trace_id"] = trace.format_trace_id(ctx.trace_id)
        record["extra"]["span_id"] = trace.format_span_id(ctx.span_id)
        return

    record["extra"].setdefault("trace_id", RequestContext.current().trace_id or NO_TRACE)
    record["extra"].setdefault("span_id", NO_SPAN)


def build_log_entry(record: dict[str, Any], service_name: str) -> dict[str, Any]:
    """Render a loguru record as a JSON-ready dict.

    Sensitive extra fields are redacted; correlation identifiers are kept.
    """
    extra = record["extra"]
    log_entry: dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "module": extra.get("name", record["name"]),
        "function": record["function"],
        "line": record["line"],
        "trace_id": extra.get("trace_id", NO_TRACE),
        "span_id": extra.get("span_id", NO_SPAN),
        "service": extra.get("service", service_name),
    }

    for key in ("request_id", "user_id", "session_id"):
        if extra.get(key):
            log_entry[key] = extra[key]

    excluded_keys = {*CORRELATION_KEYS, "name", "service"}
    for key, value in extra.items():
        if key not in excluded_keys:
            log_entry[key] = redact_sensitive_value(key, value)

    if record.get("exception"):
        exc = record["exception"]
        log_entry["exception"] = {
            "type": exc.type.__name__ if exc.type else None,
            "value": str(exc.value) if exc.value else None,
        }

    return log_entry


def _create_json_sink(service_name: str, stream: Any) -> Any:
    """Create a JSON sink writing one entry per line to `stream`."""

    def json_sink(message: Any) -> None:
        entry = build_log_entry(message.record, service_name)
        stream.write(json.dumps(entry, ensure_ascii=False, default=str) + "\n")
        stream.flush()

    return json_sink


def _resolve_output(output: str) -> Any:
    """Map the configured output onto a stream or a log file path."""
    if output == "stdout":
        return sys.stdout
    if output == "stderr":
        return sys.stderr
    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def setup_logger(settings: Settings | None = None) -> None:
    """Configure Loguru logger.

    Sets up:
    - Console handler with colored output (dev) or JSON format (prod)
    - Optional file output
    - OpenTelemetry trace correlation
    - Third-party library log interception
    - Thread-safe logging with enqueue=True
    """
    settings = settings or _get_settings()
    log_cfg = settings.logging
    level = log_cfg.level.upper()

    logger.remove()
    logger.configure(patcher=_otel_patcher)

    is_json = log_cfg.format.lower() == "json"
    target = _resolve_output(log_cfg.output)

    if is_json:
        if isinstance(target, Path):
            logger.add(
                target,
                level=level,
                format="{message}",
                serialize=True,
                backtrace=True,
                diagnose=False,
                enqueue=True,
            )
        else:
            logger.add(
                _create_json_sink(settings.app.name, target),
                level=level,
                backtrace=True,
                diagnose=False,  # Don't expose internal state in production
                enqueue=True,
            )
    else:
        location = "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
        dev_format = (
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            + (location if log_cfg.include_caller else "")
            + "<level>{message}</level> | "
            "<dim>trace_id={extra[trace_id]}</dim>"
        )
        logger.add(
            target,
            format=dev_format,
            level=level,
            colorize=not isinstance(target, Path),
            backtrace=True,
            diagnose=settings.app.debug,
            enqueue=True,
        )

    configure_third_party_loggers(is_json)

    logger.info(
        "Logger configured",
        level=log_cfg.level,
        format="json" if is_json else "console",
        output=log_cfg.output,
    )


def configure_third_party_loggers(is_json: bool = True) -> None:
    """Route stdlib loggers of third-party libraries into Loguru.

    Also sets their levels: uvicorn access logs are noisy in production
    and httpx/httpcore are only interesting at WARNING.
    """
    logging.root.handlers = []
    logging.root.setLevel(logging.INFO)

    loggers_to_configure = [
        "",  # root logger
        "uvicorn",
        "uvicorn.access",
        "uvicorn.error",
        "fastapi",
        "starlette",
        "httpx",
        "httpcore",
    ]

    for logger_name in loggers_to_configure:
        logging_logger = logging.getLogger(logger_name)
        logging_logger.handlers.clear()
        logging_logger.addHandler(InterceptHandler())
        logging_logger.propagate = False

        if logger_name == "uvicorn.access":
            logging_logger.setLevel(logging.WARNING if is_json else logging.INFO)
        elif logger_name in ("httpx", "httpcore"):
            logging_logger.setLevel(logging.WARNING)
        else:
            logging_logger.setLevel(logging.INFO)

    logger.debug("Third-party loggers configured")


def get_logger(name: str):
    """Get a logger with the specified name.

    Args:
        name: Logger name (usually __name__ of the module)

    Returns:
        Loguru logger with bound name
    """
    return logger.bind(name=name)
