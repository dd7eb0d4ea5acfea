"""API routers package."""

from portal.api import errors, system

__all__ = [
    "errors",
    "system",
]
