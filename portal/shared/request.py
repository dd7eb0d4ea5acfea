"""Helpers reading request-scoped values off a Starlette request."""

from collections.abc import Mapping
from typing import Any
from uuid import uuid4

from starlette.requests import Request

REQUEST_ID_HEADER = "X-Request-ID"


def get_client_ip(request: Request) -> str:
    """Extract the client IP, honouring proxy headers."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    if request.client:
        return request.client.host

    return "unknown"


def ensure_request_id(request: Request) -> str:
    """Request ID from state or the incoming header; generated and stored if absent."""
    request_id = getattr(request.state, "request_id", None) or request.headers.get(
        REQUEST_ID_HEADER
    )
    if not request_id:
        request_id = str(uuid4())
    request.state.request_id = request_id
    return request_id


def _identifier_of(value: Any) -> str:
    """ID of a user/session object stored in request state.

    Accepts mappings with an "id" key, objects with `get_id()` or an `id` attribute.
    """
    if value is None:
        return ""
    if isinstance(value, Mapping):
        identifier = value.get("id")
        return "" if identifier is None else str(identifier)
    get_id = getattr(value, "get_id", None)
    if callable(get_id):
        return str(get_id())
    identifier = getattr(value, "id", None)
    return "" if identifier is None else str(identifier)


def get_user_id(request: Request) -> str:
    """ID of the authenticated user, if an auth layer stored one."""
    return _identifier_of(getattr(request.state, "user", None)) or str(
        getattr(request.state, "user_id", "") or ""
    )


def get_session_id(request: Request) -> str:
    """ID of the current session, if a session layer stored one."""
    return _identifier_of(getattr(request.state, "session", None)) or str(
        getattr(request.state, "session_id", "") or ""
    )
