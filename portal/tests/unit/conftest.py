"""Pytest configuration for unit tests.

Provides loguru capture and request helpers shared by the unit test modules.
"""

from typing import Any

import pytest
from loguru import logger
from starlette.requests import Request


@pytest.fixture
def loguru_records():
    """Capture loguru records emitted during the test."""
    records: list[dict[str, Any]] = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)


@pytest.fixture
def make_request():
    """Build a bare Starlette request from a path and headers."""

    def _make(
        path: str = "/",
        headers: dict[str, str] | None = None,
        method: str = "GET",
        query: str = "",
        client: tuple[str, int] | None = ("203.0.113.7", 50000),
    ) -> Request:
        scope = {
            "type": "http",
            "http_version": "1.1",
            "method": method,
            "scheme": "http",
            "server": ("testserver", 80),
            "path": path,
            "raw_path": path.encode(),
            "query_string": query.encode(),
            "headers": [
                (key.lower().encode(), value.encode()) for key, value in (headers or {}).items()
            ],
            "client": client,
            "state": {},
        }
        return Request(scope)

    return _make
