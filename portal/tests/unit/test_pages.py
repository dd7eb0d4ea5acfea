"""Unit tests for error pages and content negotiation."""

import pytest
from fastapi import FastAPI
from fastapi.templating import Jinja2Templates
from fastapi.testclient import TestClient

from portal.api import errors as errors_router
from portal.shared.errors import (
    ErrorList,
    ErrorMiddleware,
    ErrorMiddlewareConfig,
    conflict_error,
    internal_error,
    not_found_error,
    setup_exception_handlers,
    validation_error,
)
from portal.web import NO_CACHE_HEADERS, ErrorPageHandlers, is_api_request, is_html_request

HTML = {"Accept": "text/html,application/xhtml+xml"}
JSON = {"Accept": "application/json"}


@pytest.fixture
def pages() -> ErrorPageHandlers:
    return ErrorPageHandlers(log_errors=False)


@pytest.fixture
def pages_client(pages) -> TestClient:
    app = FastAPI()
    app.state.error_pages = pages
    app.include_router(errors_router.router)
    return TestClient(app)


def build_site(logger, pages: ErrorPageHandlers, **config) -> FastAPI:
    """Application answering errors with pages for browsers."""
    app = FastAPI()
    setup_exception_handlers(
        app,
        ErrorMiddleware(
            logger=logger,
            config=ErrorMiddlewareConfig(custom_error_handler=pages.render_error, **config),
        ),
    )

    @app.get("/projects/{project_id}")
    async def project(project_id: str):
        raise not_found_error("Project", project_id)

    @app.get("/api/projects/{project_id}")
    async def api_project(project_id: str):
        raise not_found_error("Project", project_id)

    @app.post("/projects")
    async def create_project():
        raise conflict_error("PROJECT_EXISTS", "Project name already exists")

    @app.get("/reports")
    async def reports():
        raise internal_error("REPORT_FAILED", "Report generation failed", OSError("disk full"))

    @app.post("/signup")
    async def signup():
        raise ErrorList(
            [
                validation_error("EMAIL_INVALID", "Email is invalid"),
                validation_error("NAME_REQUIRED", "Name is required"),
            ]
        )

    @app.get("/crash")
    async def crash():
        raise RuntimeError("boom")

    return app


class TestNegotiation:
    """Tests for HTML vs JSON detection."""

    @pytest.mark.parametrize(
        "headers, path, expected",
        [
            ({"Accept": "text/html"}, "/api/users", True),
            ({"Accept": "application/xhtml+xml"}, "/", True),
            ({"Accept": "application/json", "User-Agent": "Mozilla/5.0"}, "/", False),
            ({"User-Agent": "curl/8.4.0"}, "/dashboard", False),
            ({"User-Agent": "PostmanRuntime/7.36"}, "/dashboard", False),
            ({"User-Agent": "Mozilla/5.0 (X11; Linux x86_64)"}, "/api/users", True),
            ({}, "/dashboard", True),
            ({}, "/v1/api/users", False),
        ],
    )
    def test_is_html_request(self, make_request, headers, path, expected):
        """Test Accept, then user agent, then path decide."""
        assert is_html_request(make_request(path, headers=headers)) is expected

    @pytest.mark.parametrize(
        "headers, path, expected",
        [
            ({}, "/api/users", True),
            ({"Accept": "application/json"}, "/dashboard", True),
            ({"Content-Type": "application/json; charset=utf-8"}, "/dashboard", True),
            ({"X-Requested-With": "XMLHttpRequest"}, "/dashboard", True),
            ({"Accept": "text/html"}, "/dashboard", False),
            ({}, "/apis", False),
        ],
    )
    def test_is_api_request(self, make_request, headers, path, expected):
        """Test API detection by path and headers."""
        assert is_api_request(make_request(path, headers=headers)) is expected


class TestErrorPageRoutes:
    """Tests for the /error page endpoints."""

    @pytest.mark.parametrize(
        "path, status_code, code",
        [
            ("/error/404", 404, "NOT_FOUND"),
            ("/error/500", 500, "INTERNAL_ERROR"),
            ("/error/401", 401, "UNAUTHORIZED"),
            ("/error/403", 403, "FORBIDDEN"),
        ],
    )
    def test_json_for_api_clients(self, pages_client, path, status_code, code):
        """Test JSON bodies for non-browser clients."""
        response = pages_client.get(path, headers=JSON)

        assert response.status_code == status_code
        body = response.json()
        assert body["error"]["code"] == code
        assert body["error"]["status"] == status_code

    def test_not_found_json_message(self, pages_client):
        """Test the 404 JSON message."""
        response = pages_client.get("/error/404", headers=JSON)

        assert response.json()["error"]["message"] == "The requested resource was not found"

    def test_html_for_browsers(self, pages_client):
        """Test HTML pages for browsers."""
        response = pages_client.get("/error/404", headers=HTML)

        assert response.status_code == 404
        assert response.headers["content-type"].startswith("text/html")
        assert "Page Not Found" in response.text

    @pytest.mark.parametrize("headers", [HTML, JSON])
    def test_no_cache_headers(self, pages_client, headers):
        """Test every page disables caching."""
        response = pages_client.get("/error/403", headers=headers)

        for key, value in NO_CACHE_HEADERS.items():
            assert response.headers[key] == value

    def test_generic_catalog(self, pages_client):
        """Test catalogued codes render with their own status."""
        response = pages_client.get("/error/generic/429", headers=JSON)

        assert response.status_code == 429
        assert response.json()["error"]["code"] == "429"
        assert "too many requests" in response.json()["error"]["message"]

    def test_generic_catalog_html(self, pages_client):
        """Test catalogued codes render the generic page."""
        response = pages_client.get("/error/generic/503", headers=HTML)

        assert response.status_code == 503
        assert "Service Unavailable" in response.text

    def test_generic_dedicated_code(self, pages_client):
        """Test dedicated codes are served by their own handler."""
        response = pages_client.get("/error/generic/404", headers=JSON)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"

    @pytest.mark.parametrize("code", ["418", "teapot"])
    def test_generic_unknown_code(self, pages_client, code):
        """Test unknown codes fall back to a 500 page."""
        response = pages_client.get(f"/error/generic/{code}", headers=JSON)

        assert response.status_code == 500
        assert response.json()["error"]["message"] == (
            "An error occurred while processing your request."
        )

    def test_pages_log_when_enabled(self, loguru_records):
        """Test page handlers log the served status."""
        app = FastAPI()
        app.state.error_pages = ErrorPageHandlers(log_errors=True)
        app.include_router(errors_router.router)

        TestClient(app).get("/error/403", headers=JSON)

        messages = [record["message"] for record in loguru_records]
        assert "403 Forbidden: GET /error/403" in messages


class TestRenderError:
    """Tests for error pages rendered through the error middleware."""

    def test_browser_gets_page(self, recording_logger, pages):
        """Test an application error renders as HTML for browsers."""
        client = TestClient(build_site(recording_logger, pages))

        response = client.get("/projects/7", headers=HTML)

        assert response.status_code == 404
        assert response.headers["content-type"].startswith("text/html")
        assert "Page Not Found" in response.text
        assert response.headers["Cache-Control"] == NO_CACHE_HEADERS["Cache-Control"]
        assert response.headers["X-Request-ID"]

    def test_api_path_gets_json(self, recording_logger, pages):
        """Test API paths keep the JSON envelope even for browsers."""
        client = TestClient(build_site(recording_logger, pages))

        response = client.get("/api/projects/7", headers=HTML)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "RESOURCE_NOT_FOUND"

    def test_json_client_gets_json(self, recording_logger, pages):
        """Test JSON clients get the envelope on page routes."""
        client = TestClient(build_site(recording_logger, pages))

        response = client.post("/projects", headers=JSON)

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "PROJECT_EXISTS"

    def test_generic_page_for_other_status(self, recording_logger, pages):
        """Test statuses without a dedicated page use the generic template."""
        client = TestClient(build_site(recording_logger, pages))

        response = client.post("/projects", headers=HTML)

        assert response.status_code == 409
        assert "Conflict" in response.text

    def test_error_list_page(self, recording_logger, pages):
        """Test an error list renders one page with the highest status."""
        client = TestClient(build_site(recording_logger, pages))

        response = client.post("/signup", headers=HTML)

        assert response.status_code == 400
        assert "Bad Request" in response.text
        assert len(recording_logger.entries) == 2

    def test_details_hidden_by_default(self, recording_logger, pages):
        """Test internal codes stay off the page unless detailed errors are on."""
        client = TestClient(build_site(recording_logger, pages))

        response = client.get("/reports", headers=HTML)

        assert response.status_code == 500
        assert "REPORT_FAILED" not in response.text
        assert "Server Error" in response.text

    def test_details_shown_when_enabled(self, recording_logger):
        """Test error details on the page with show_detailed_errors."""
        pages = ErrorPageHandlers(show_detailed_errors=True, log_errors=False)
        client = TestClient(build_site(recording_logger, pages))

        response = client.get("/reports", headers=HTML)

        assert "REPORT_FAILED" in response.text
        assert "Report generation failed" in response.text

    def test_panic_stays_json(self, recording_logger, pages):
        """Test recovered panics are answered by the standard JSON response."""
        client = TestClient(build_site(recording_logger, pages))

        response = client.get("/crash", headers=HTML)

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "INTERNAL_ERROR"

    @pytest.mark.asyncio
    async def test_render_error_declines_api(self, make_request, pages):
        """Test render_error returns None for API requests."""
        request = make_request("/api/projects/7", headers={"Accept": "text/html"})

        assert await pages.render_error(request, not_found_error("Project", "7")) is None

    def test_broken_template_falls_back_to_json(self, recording_logger, tmp_path, loguru_records):
        """Test a page that fails to render leaves the answer to the JSON envelope."""
        broken = ErrorPageHandlers(
            templates=Jinja2Templates(directory=str(tmp_path)), log_errors=False
        )
        client = TestClient(build_site(recording_logger, broken))

        response = client.get("/projects/7", headers=HTML)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "RESOURCE_NOT_FOUND"
        failures = [r for r in loguru_records if r["extra"].get("error_code") == "UNHANDLED_ERROR"]
        assert len(failures) == 1
        assert failures[0]["extra"]["operation"] == "ErrorPageHandlers.render_error"
        assert failures[0]["extra"]["component"] == "portal.web.pages"
        assert failures[0]["extra"]["fallback"] == "None"

    @pytest.mark.asyncio
    async def test_render_error_declines_empty_list(self, make_request, pages):
        """Test an empty error list is left to the JSON response."""
        request = make_request("/projects", headers={"Accept": "text/html"})

        assert await pages.render_error(request, ErrorList()) is None

    def test_empty_error_list_stays_json(self, recording_logger, pages):
        """Test a raised empty error list is not rendered as a page."""
        app = build_site(recording_logger, pages)

        @app.get("/drafts")
        async def drafts():
            raise ErrorList()

        response = TestClient(app).get("/drafts", headers=HTML)

        assert response.status_code == 200
        assert response.json() == {"errors": []}
