"""
Request middleware.
"""

import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from portal.shared.context import bind_request_context, clear_request_context
from portal.shared.logging import logger
from portal.shared.request import (
    REQUEST_ID_HEADER,
    ensure_request_id,
    get_client_ip,
    get_session_id,
    get_user_id,
)

from .telemetry import get_trace_id

# ==================== Request Context Middleware ====================


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Binds request identifiers for logging and writes an access log.

    Adds the request ID to the request state and to every response.
    """

    # Endpoints skipped by the access log
    SKIP_LOG_ENDPOINTS: set[str] = {
        "/observability/health",
        "/observability/ready",
        "/observability/live",
    }

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = ensure_request_id(request)

        # Fall back to the request ID when tracing is disabled
        trace_id = get_trace_id() or request_id

        bind_request_context(
            request_id=request_id,
            user_id=get_user_id(request),
            session_id=get_session_id(request),
            trace_id=trace_id,
        )

        start_time = time.perf_counter()
        try:
            response = await call_next(request)

            duration = time.perf_counter() - start_time

            response.headers[REQUEST_ID_HEADER] = request_id
            response.headers["X-Trace-ID"] = trace_id

            self._log_request(request, response, duration, request_id)
            return response
        finally:
            clear_request_context()

    def _log_request(
        self,
        request: Request,
        response: Response,
        duration: float,
        request_id: str,
    ) -> None:
        """Log request details."""
        if request.url.path in self.SKIP_LOG_ENDPOINTS:
            return

        # Failed requests are logged by the error middleware itself
        level = "INFO" if response.status_code < 400 else "DEBUG"

        logger.bind(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            query_string=request.url.query or None,
            status_code=response.status_code,
            duration_ms=round(duration * 1000, 2),
            client_ip=get_client_ip(request),
            user_agent=request.headers.get("User-Agent", ""),
        ).log(level, f"{request.method} {request.url.path}")
