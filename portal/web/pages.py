"""Error page handlers.

Render a templated HTML page for browsers and a small JSON body for API
clients. Every response disables caching.
"""

from __future__ import annotations

from http import HTTPStatus
from pathlib import Path
from typing import TYPE_CHECKING, Any

from fastapi.templating import Jinja2Templates
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from portal.shared.errors import AppError, ErrorList, safe_with_fallback
from portal.shared.logging import get_logger

from .negotiation import is_api_request, is_html_request

if TYPE_CHECKING:
    from portal.core.config import Settings

logger = get_logger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

NO_CACHE_HEADERS: dict[str, str] = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}

DEFAULT_MESSAGE = "An error occurred while processing your request."

# status -> (title, message) for the generic page
STATUS_PAGES: dict[int, tuple[str, str]] = {
    400: (
        "Bad Request",
        "The request could not be understood by the server due to malformed syntax.",
    ),
    405: ("Method Not Allowed", "The HTTP method used is not allowed for this resource."),
    408: ("Request Timeout", "The server timed out waiting for the request."),
    409: (
        "Conflict",
        "The request could not be completed due to a conflict with the current state "
        "of the resource.",
    ),
    410: (
        "Gone",
        "The requested resource is no longer available and will not be available again.",
    ),
    422: (
        "Unprocessable Entity",
        "The request was well-formed but was unable to be followed due to semantic errors.",
    ),
    429: (
        "Too Many Requests",
        "You have sent too many requests in a given amount of time. Please try again later.",
    ),
    502: ("Bad Gateway", "The server received an invalid response from an upstream server."),
    503: (
        "Service Unavailable",
        "The server is currently unable to handle the request due to temporary overloading "
        "or maintenance.",
    ),
    504: ("Gateway Timeout", "The server did not receive a timely response from an upstream server."),
}

# Page titles used when rendering an application error
ERROR_TITLES: dict[int, str] = {
    400: "Bad Request",
    401: "Authentication Required",
    403: "Access Forbidden",
    404: "Page Not Found",
    405: "Method Not Allowed",
    409: "Conflict",
    422: "Validation Error",
    429: "Too Many Requests",
    500: "Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
    504: "Gateway Timeout",
}


def error_title(status_code: int) -> str:
    return ERROR_TITLES.get(status_code, "Error")


class ErrorPageHandlers:
    """Handlers for the well-known error pages and the generic fallback."""

    def __init__(
        self,
        templates: Jinja2Templates | None = None,
        show_detailed_errors: bool = False,
        log_errors: bool = True,
    ) -> None:
        self.templates = templates or Jinja2Templates(directory=str(TEMPLATES_DIR))
        self.show_detailed_errors = show_detailed_errors
        self.log_errors = log_errors

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> ErrorPageHandlers:
        if settings is None:
            from portal.core.config import settings as app_settings

            settings = app_settings
        return cls(
            show_detailed_errors=settings.error_pages.show_detailed_errors,
            log_errors=settings.error_pages.log_errors,
        )

    # ==================== Rendering ====================

    def _render(
        self,
        request: Request,
        status_code: int,
        template: str,
        code: str,
        title: str,
        message: str,
        detail: dict[str, Any] | None = None,
    ) -> Response:
        if is_html_request(request):
            context = {
                "status_code": status_code,
                "code": code,
                "title": title,
                "message": message,
                "detail": detail,
                "request_id": getattr(request.state, "request_id", ""),
            }
            return self.templates.TemplateResponse(
                request,
                template,
                context,
                status_code=status_code,
                headers=NO_CACHE_HEADERS,
            )

        return JSONResponse(
            status_code=status_code,
            content={"error": {"code": code, "message": message, "status": status_code}},
            headers=NO_CACHE_HEADERS,
        )

    def _log(self, request: Request, level: str, status_code: int, title: str) -> None:
        if self.log_errors:
            logger.log(level, f"{status_code} {title}: {request.method} {request.url.path}")

    # ==================== Well-known pages ====================

    async def handle_404(self, request: Request) -> Response:
        self._log(request, "WARNING", 404, "Not Found")
        return self._render(
            request,
            404,
            "errors/404.html",
            "NOT_FOUND",
            "Page Not Found",
            "The requested resource was not found",
        )

    async def handle_500(self, request: Request) -> Response:
        self._log(request, "ERROR", 500, "Internal Server Error")
        return self._render(
            request,
            500,
            "errors/500.html",
            "INTERNAL_ERROR",
            "Server Error",
            "An internal server error occurred",
        )

    async def handle_401(self, request: Request) -> Response:
        self._log(request, "WARNING", 401, "Unauthorized")
        return self._render(
            request,
            401,
            "errors/401.html",
            "UNAUTHORIZED",
            "Authentication Required",
            "Authentication is required to access this resource",
        )

    async def handle_403(self, request: Request) -> Response:
        self._log(request, "WARNING", 403, "Forbidden")
        return self._render(
            request,
            403,
            "errors/403.html",
            "FORBIDDEN",
            "Access Forbidden",
            "You don't have permission to access this resource",
        )

    async def handle_405(self, request: Request) -> Response:
        self._log(request, "WARNING", 405, "Method Not Allowed")
        return self._render(
            request,
            405,
            "errors/generic.html",
            "METHOD_NOT_ALLOWED",
            "Method Not Allowed",
            "The requested method is not allowed for this resource",
        )

    async def handle_generic(
        self,
        request: Request,
        status_code: int,
        title: str,
        message: str,
        code: str,
    ) -> Response:
        """Generic error page with a caller-chosen status, title and message."""
        self._log(request, "WARNING", status_code, title)
        return self._render(request, status_code, "errors/generic.html", code, title, message)

    async def handle_status(self, request: Request, code: str) -> Response:
        """Error page for a status code given as a path segment.

        401, 403, 404 and 500 get their dedicated pages; unknown codes fall
        back to a generic 500.
        """
        dedicated = {
            "401": self.handle_401,
            "403": self.handle_403,
            "404": self.handle_404,
            "500": self.handle_500,
        }
        if code in dedicated:
            return await dedicated[code](request)

        status_code = int(code) if code.isdigit() else 0
        if status_code in STATUS_PAGES:
            title, message = STATUS_PAGES[status_code]
        else:
            status_code = 500
            title, message = "Error", DEFAULT_MESSAGE
        return await self.handle_generic(request, status_code, title, message, code)

    # ==================== Error middleware hook ====================

    @safe_with_fallback(fallback=None)
    async def render_error(self, request: Request, err: AppError | ErrorList) -> Response | None:
        """Render an HTML page for a translated error.

        Returns None for API clients so the error middleware answers with its
        JSON envelope. The error has already been logged by then; a page that
        fails to render is logged too and leaves the answer to the JSON envelope.
        """
        if is_api_request(request) or not is_html_request(request):
            return None
        # Nothing to show for an empty list
        if isinstance(err, ErrorList) and not err.has_errors():
            return None

        status_code = err.http_status
        primary = err if isinstance(err, AppError) else next(iter(err), None)

        detail = None
        if self.show_detailed_errors and primary is not None:
            detail = {
                "id": primary.id,
                "code": primary.code,
                "type": primary.category.value,
                "message": primary.message,
            }

        templates = {
            401: "errors/401.html",
            403: "errors/403.html",
            404: "errors/404.html",
            500: "errors/500.html",
        }
        template = templates.get(status_code, "errors/generic.html")

        _, catalog_message = STATUS_PAGES.get(status_code, ("", DEFAULT_MESSAGE))
        message = primary.user_message if primary and primary.user_message else catalog_message
        try:
            code = HTTPStatus(status_code).phrase
        except ValueError:
            code = str(status_code)

        return self._render(
            request,
            status_code,
            template,
            code,
            error_title(status_code),
            message,
            detail,
        )
