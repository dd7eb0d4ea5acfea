"""Error page endpoints.

Direct access to the error pages, for links from templates and for checking
how each page renders.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from portal.web import ErrorPageHandlers

router = APIRouter(prefix="/error", tags=["Errors"], include_in_schema=False)


def get_error_pages(request: Request) -> ErrorPageHandlers:
    """Page handlers configured on the application."""
    pages = getattr(request.app.state, "error_pages", None)
    if pages is None:
        pages = ErrorPageHandlers.from_settings()
        request.app.state.error_pages = pages
    return pages


@router.get("/404")
async def not_found_page(
    request: Request, pages: ErrorPageHandlers = Depends(get_error_pages)
) -> Response:
    return await pages.handle_404(request)


@router.get("/500")
async def server_error_page(
    request: Request, pages: ErrorPageHandlers = Depends(get_error_pages)
) -> Response:
    return await pages.handle_500(request)


@router.get("/401")
async def unauthorized_page(
    request: Request, pages: ErrorPageHandlers = Depends(get_error_pages)
) -> Response:
    return await pages.handle_401(request)


@router.get("/403")
async def forbidden_page(
    request: Request, pages: ErrorPageHandlers = Depends(get_error_pages)
) -> Response:
    return await pages.handle_403(request)


@router.get("/generic/{code}")
async def generic_error_page(
    code: str, request: Request, pages: ErrorPageHandlers = Depends(get_error_pages)
) -> Response:
    """Error page for an arbitrary status code (unknown codes render a 500)."""
    return await pages.handle_status(request, code)
