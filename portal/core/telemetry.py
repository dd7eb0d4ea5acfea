"""OpenTelemetry helpers.

Only the API package is used: spans come from whatever tracer provider the
deployment installs. Without one every span is invalid and the helpers
return None.
"""

from opentelemetry import trace


def get_trace_id() -> str | None:
    """Get trace ID of current span.

    Returns:
        Trace ID as hex string or None if not in a traced context.
    """
    context = trace.get_current_span().get_span_context()
    if not context.is_valid:
        return None
    return trace.format_trace_id(context.trace_id)


def get_span_id() -> str | None:
    """Get span ID of current span.

    Returns:
        Span ID as hex string or None if not in a traced context.
    """
    context = trace.get_current_span().get_span_context()
    if not context.is_valid:
        return None
    return trace.format_span_id(context.span_id)
