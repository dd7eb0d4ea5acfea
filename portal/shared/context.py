"""
Context variables for request tracing across the application.

This module provides context variables for trace, request, user and session IDs
that can be accessed from anywhere in the codebase during request processing,
and a typed snapshot of them that is passed explicitly to loggers.
"""

from contextvars import ContextVar

from pydantic import BaseModel

# Context variables for distributed tracing
trace_id_var: ContextVar[str] = ContextVar("trace_id", default="")
request_id_var: ContextVar[str] = ContextVar("request_id", default="")
user_id_var: ContextVar[str] = ContextVar("user_id", default="")
session_id_var: ContextVar[str] = ContextVar("session_id", default="")


class RequestContext(BaseModel):
    """Request-scoped identifiers merged into log entries."""

    request_id: str = ""
    user_id: str = ""
    session_id: str = ""
    trace_id: str = ""

    @classmethod
    def current(cls) -> "RequestContext":
        """Snapshot the context variables of the running request."""
        return cls(
            request_id=request_id_var.get(),
            user_id=user_id_var.get(),
            session_id=session_id_var.get(),
            trace_id=trace_id_var.get(),
        )

    def as_fields(self) -> dict[str, str]:
        """Non-empty identifiers as log fields."""
        return {k: v for k, v in self.model_dump().items() if v}


def get_trace_id() -> str:
    """Get current trace ID from context.

    Returns:
        Trace ID string or empty string if not set.
    """
    return trace_id_var.get()


def get_request_id() -> str:
    """Get current request ID from context.

    Returns:
        Request ID string or empty string if not set.
    """
    return request_id_var.get()


def set_trace_id(trace_id: str) -> None:
    trace_id_var.set(trace_id)


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def bind_request_context(
    request_id: str | None = None,
    user_id: str | None = None,
    session_id: str | None = None,
    trace_id: str | None = None,
) -> None:
    """Set request context for logging."""
    if request_id is not None:
        request_id_var.set(request_id)
    if user_id is not None:
        user_id_var.set(user_id)
    if session_id is not None:
        session_id_var.set(session_id)
    if trace_id is not None:
        trace_id_var.set(trace_id)


def clear_request_context() -> None:
    """Clear request context."""
    request_id_var.set("")
    user_id_var.set("")
    session_id_var.set("")
    trace_id_var.set("")
