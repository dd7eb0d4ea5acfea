"""Portal - Shared Logging.

Loguru-based logging module with:
- Structured JSON logging for production
- Colored console output for development
- OpenTelemetry trace correlation
- Automatic sensitive data redaction
- Immutable structured/context logger abstraction
"""

from loguru import logger

from .config import (
    InterceptHandler,
    build_log_entry,
    configure_third_party_loggers,
    get_logger,
    setup_logger,
)
from .structured import ContextLogger, Logger, LoguruLogger, StructuredLogger

__all__ = [
    # Core logging
    "logger",
    "setup_logger",
    "get_logger",
    "build_log_entry",
    "InterceptHandler",
    "configure_third_party_loggers",
    # Structured loggers
    "Logger",
    "LoguruLogger",
    "StructuredLogger",
    "ContextLogger",
]
