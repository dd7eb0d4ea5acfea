"""Server-rendered error pages."""

from .negotiation import is_api_request, is_html_request
from .pages import NO_CACHE_HEADERS, ErrorPageHandlers

__all__ = [
    "ErrorPageHandlers",
    "NO_CACHE_HEADERS",
    "is_api_request",
    "is_html_request",
]
