"""HTML vs JSON content negotiation for error responses."""

from starlette.requests import Request

# User agents of API clients that expect JSON
API_TOOLS: tuple[str, ...] = ("curl", "wget", "HTTPie", "Postman", "Insomnia")
BROWSERS: tuple[str, ...] = ("Mozilla", "Chrome", "Safari", "Edge", "Opera")

API_PATH_PREFIX = "/api/"


def is_html_request(request: Request) -> bool:
    """Whether the client should get an HTML page rather than JSON.

    An explicit Accept header decides on its own. Without one the user agent
    is consulted (API tools before browsers), then the path.
    """
    accept = request.headers.get("Accept", "")
    if accept:
        return "text/html" in accept or "application/xhtml" in accept

    user_agent = request.headers.get("User-Agent", "")
    if user_agent:
        if any(tool in user_agent for tool in API_TOOLS):
            return False
        if any(browser in user_agent for browser in BROWSERS):
            return True

    return API_PATH_PREFIX not in request.url.path


def is_api_request(request: Request) -> bool:
    """Whether the request targets the JSON API."""
    if request.url.path.startswith(API_PATH_PREFIX):
        return True
    if "application/json" in request.headers.get("Accept", ""):
        return True
    if "application/json" in request.headers.get("Content-Type", ""):
        return True
    return request.headers.get("X-Requested-With") == "XMLHttpRequest"
