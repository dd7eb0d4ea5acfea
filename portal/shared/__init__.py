"""
Shared module - cross-cutting concerns and utilities.

This module provides shared functionality used across the application:
- Context variables for request/trace IDs
- Logging utilities with Loguru
- Sensitive data redaction
"""

from .context import (
    RequestContext,
    bind_request_context,
    clear_request_context,
    get_request_id,
    get_trace_id,
    request_id_var,
    set_request_id,
    set_trace_id,
    trace_id_var,
)
from .logging import (
    get_logger,
    logger,
    setup_logger,
)

__all__ = [
    # Context
    "RequestContext",
    "bind_request_context",
    "clear_request_context",
    "get_request_id",
    "get_trace_id",
    "request_id_var",
    "set_request_id",
    "set_trace_id",
    "trace_id_var",
    # Logging
    "logger",
    "setup_logger",
    "get_logger",
]
