"""HTTP error middleware.

Per-request translation of failures into structured responses:

1. capture request context (request ID, client IP, user agent, user/session)
2. normalize whatever was raised into an AppError (or ErrorList)
3. log one structured entry per error
4. give the optional custom handler a chance to answer
5. serialize `{"error": {...}}` / `{"errors": [...]}` with the error's status
6. redact high-severity errors in responses when hiding internal errors

RecoveryMiddleware wraps the whole stack so that no exception leaves a
request unconverted.
"""

from __future__ import annotations

import asyncio
import inspect
import traceback
from collections.abc import Awaitable, Callable
from http import HTTPStatus
from typing import TYPE_CHECKING, Any

from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ConfigDict
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from portal.shared.logging import Logger, StructuredLogger
from portal.shared.redaction import is_sensitive_field
from portal.shared.request import (
    REQUEST_ID_HEADER,
    ensure_request_id,
    get_client_ip,
    get_session_id,
    get_user_id,
)

from .base import AppError, ErrorList
from .builders import internal_error, new_app_error, panic_error, validation_error
from .logging import emit, error_log_fields, log_level_for
from .mapping import ExceptionMapper
from .schemas import ErrorContext
from .types import ErrorCategory, Severity, category_for_status

if TYPE_CHECKING:
    from portal.core.config import Settings

ERROR_CODE_HEADER = "X-Error-Code"

AppFailure = AppError | ErrorList
ErrorHook = Callable[[Request, AppFailure], Response | None | Awaitable[Response | None]]


class ErrorMiddlewareConfig(BaseModel):
    """Behaviour switches of the error middleware."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    # Attach stack traces to logs (severity >= high) and to unredacted responses
    include_stack_trace: bool = False
    # Log low-severity (client) errors at info level
    log_all_errors: bool = True
    # Log method/path/query of the failing request
    log_request_details: bool = True
    # Replace severity >= high errors with a generic body in responses
    hide_internal_errors: bool = True
    # Returning a Response from the hook replaces the default JSON response
    custom_error_handler: ErrorHook | None = None
    # Extra exception types translated as errors instead of recovered as panics
    handled_exceptions: tuple[type[Exception], ...] = ()

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **overrides: Any) -> ErrorMiddlewareConfig:
        if settings is None:
            from portal.core.config import settings as app_settings

            settings = app_settings
        values: dict[str, Any] = {
            "include_stack_trace": settings.errors.include_stack_trace,
            "log_all_errors": settings.errors.log_all_errors,
            "log_request_details": settings.errors.log_request_details,
            "hide_internal_errors": settings.errors.hide_internal_errors,
        }
        values.update(overrides)
        return cls(**values)


class ErrorMiddleware:
    """Translates exceptions raised by request handlers into HTTP responses."""

    def __init__(
        self,
        logger: Logger | None = None,
        config: ErrorMiddlewareConfig | None = None,
    ) -> None:
        self.logger: Logger = logger or StructuredLogger.from_settings()
        self.config = config or ErrorMiddlewareConfig.from_settings()

    # ==================== Entry points ====================

    async def handle_error(self, request: Request, exc: Exception) -> Response:
        """Translate a handler failure into a response (steps 1-6)."""
        request_id = ensure_request_id(request)
        ctx = self.create_error_context(request, request_id)
        err = self.normalize(exc, ctx)

        for item in _flatten(err):
            self.log_error(item)

        custom = await self._run_custom_handler(request, err)
        if custom is not None:
            custom.headers.setdefault(REQUEST_ID_HEADER, request_id)
            return custom

        response = self.build_response(err, request_id)
        if isinstance(exc, StarletteHTTPException) and exc.headers:
            for key, value in exc.headers.items():
                response.headers.setdefault(key, value)
        return response

    def recover_error(self, request: Request, exc: BaseException) -> AppError:
        """Convert an uncaught exception into a logged critical AppError."""
        stack = "".join(traceback.format_exception(exc))
        request_id = ensure_request_id(request)
        ctx = self.create_error_context(request, request_id)

        err = panic_error(
            exc, stack, message="A panic occurred during request processing"
        ).with_context(ctx)
        err.severity = Severity.CRITICAL

        self.log_error(err, ctx)
        return err

    async def recover(self, request: Request, exc: BaseException) -> Response:
        """Panic path: recover, log and answer with the standard error response."""
        err = self.recover_error(request, exc)
        return self.build_response(err, err.context.request_id)

    # ==================== Context capture ====================

    def create_error_context(self, request: Request, request_id: str) -> ErrorContext:
        """Snapshot request metadata for logging and correlation."""
        return ErrorContext(
            request_id=request_id,
            ip_address=get_client_ip(request),
            user_agent=request.headers.get("User-Agent", ""),
            user_id=get_user_id(request),
            session_id=get_session_id(request),
            metadata={
                "method": request.method,
                "path": request.url.path,
                "query": request.url.query,
            },
        )

    # ==================== Normalization ====================

    def normalize(self, exc: BaseException, ctx: ErrorContext) -> AppFailure:
        """Convert any exception into an AppError (or ErrorList) carrying `ctx`."""
        if isinstance(exc, AppError):
            return exc.merge_context(ctx)

        if isinstance(exc, ErrorList):
            for item in exc:
                item.merge_context(ctx)
            return exc

        if isinstance(exc, RequestValidationError):
            return (
                validation_error(
                    "VALIDATION_FAILED",
                    "Request validation failed",
                    {"errors": validation_error_details(exc)},
                )
                .with_http_status(HTTPStatus.UNPROCESSABLE_ENTITY)
                .with_user_message("Some of the submitted data is invalid.")
                .with_context(ctx)
            )

        if isinstance(exc, StarletteHTTPException):
            return self._convert_http_error(exc, ctx)

        if isinstance(exc, asyncio.CancelledError):
            return new_app_error(
                ErrorCategory.TIMEOUT,
                "REQUEST_CANCELED",
                "Request was canceled",
                HTTPStatus.REQUEST_TIMEOUT,
            ).with_context(ctx)

        if isinstance(exc, TimeoutError):
            return new_app_error(
                ErrorCategory.TIMEOUT,
                "REQUEST_TIMEOUT",
                "Request timed out",
                HTTPStatus.REQUEST_TIMEOUT,
                cause=exc,
            ).with_context(ctx)

        if ExceptionMapper.can_map(exc):
            return ExceptionMapper.map(exc, ctx.metadata.get("path", "")).with_context(ctx)

        return internal_error("UNHANDLED_ERROR", "An unexpected error occurred", exc).with_context(
            ctx
        )

    def _convert_http_error(self, exc: StarletteHTTPException, ctx: ErrorContext) -> AppError:
        category, code = category_for_status(exc.status_code)

        message = str(exc.detail) if exc.detail else ""
        if not message:
            try:
                message = HTTPStatus(exc.status_code).phrase
            except ValueError:
                message = "HTTP error"

        err = new_app_error(category, code, message, exc.status_code).with_context(ctx)

        # Preserve the wrapped internal cause
        internal = exc.__cause__ or exc.__context__
        if internal is not None:
            err.cause = internal
            err.__cause__ = internal
        return err

    # ==================== Logging ====================

    def log_error(self, err: AppError, ctx: ErrorContext | None = None) -> bool:
        """Emit one structured entry for `err`; returns False when suppressed by policy."""
        fields = error_log_fields(err, ctx, self.config.log_request_details)

        if self.config.include_stack_trace and err.severity >= Severity.HIGH:
            if err.cause is not None:
                fields["stack_trace"] = "".join(traceback.format_exception(err.cause))
            else:
                fields["stack_trace"] = "".join(traceback.format_stack())

        logger = self.logger.with_fields(fields)
        if err.cause is not None:
            logger = logger.with_error(err.cause)

        level = log_level_for(err.severity, self.config.log_all_errors)
        return emit(logger, level, f"Error occurred: {err.message}")

    # ==================== Response ====================

    async def _run_custom_handler(self, request: Request, err: AppFailure) -> Response | None:
        handler = self.config.custom_error_handler
        if handler is None:
            return None
        result = handler(request, err)
        if inspect.isawaitable(result):
            result = await result
        return result if isinstance(result, Response) else None

    def error_payload(self, err: AppError) -> dict[str, Any]:
        """Client-facing error object, redacted when hiding internal errors."""
        body = err.to_http_response()["error"]

        if self.config.hide_internal_errors and err.severity >= Severity.HIGH:
            safe: dict[str, Any] = {
                "id": body["id"],
                "code": "INTERNAL_ERROR",
                "type": ErrorCategory.INTERNAL.value,
                "message": "An internal error occurred",
                "timestamp": body["timestamp"],
            }
            if "user_message" in body:
                safe["user_message"] = body["user_message"]
            if "retryable" in body:
                safe["retryable"] = body["retryable"]
            return safe

        if self.config.include_stack_trace and err.cause is not None:
            body["stack_trace"] = "".join(traceback.format_exception(err.cause))
        return body

    def build_response(self, err: AppFailure, request_id: str = "") -> JSONResponse:
        """Serialize an error (or error list) with its HTTP status."""
        if isinstance(err, ErrorList) and len(err) == 1:
            err = err.errors[0]

        if isinstance(err, ErrorList):
            content: dict[str, Any] = {"errors": [self.error_payload(item) for item in err]}
            code = "MULTIPLE_ERRORS" if err.has_errors() else ""
        else:
            content = {"error": self.error_payload(err)}
            code = content["error"]["code"]

        if request_id and (not isinstance(err, ErrorList) or err.has_errors()):
            content["request_id"] = request_id

        headers = {REQUEST_ID_HEADER: request_id} if request_id else {}
        if code:
            headers[ERROR_CODE_HEADER] = code

        return JSONResponse(status_code=err.http_status, content=content, headers=headers)


def validation_error_details(exc: RequestValidationError) -> list[dict[str, Any]]:
    """Request validation errors without the submitted values.

    `input` is always dropped. Constraint context is dropped too when the
    failing location names a sensitive field.
    """
    errors: list[dict[str, Any]] = []
    for error in jsonable_encoder(exc.errors()):
        error.pop("input", None)
        if any(is_sensitive_field(str(part)) for part in error.get("loc", ())):
            error.pop("ctx", None)
        errors.append(error)
    return errors


def _flatten(err: AppFailure) -> list[AppError]:
    return list(err) if isinstance(err, ErrorList) else [err]


class RecoveryMiddleware:
    """Scoped recovery block around every request.

    Any exception escaping the inner application becomes a PANIC_RECOVERED
    response. If the response had already started there is nothing left to
    answer with, so the failure is only logged.
    """

    def __init__(self, app: ASGIApp, error_middleware: ErrorMiddleware) -> None:
        self.app = app
        self.error_middleware = error_middleware

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_tracking(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_tracking)
        except Exception as exc:
            request = Request(scope)
            if response_started:
                self.error_middleware.recover_error(request, exc)
                return
            response = await self.error_middleware.recover(request, exc)
            await response(scope, receive, send)
