"""FastAPI application entry point"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from portal.api import errors as errors_router
from portal.api import system as system_router
from portal.core.config import Settings, get_settings
from portal.core.middleware import RequestContextMiddleware
from portal.shared.errors import ErrorMiddleware, ErrorMiddlewareConfig, setup_exception_handlers
from portal.shared.logging import StructuredLogger, get_logger, setup_logger
from portal.web import ErrorPageHandlers

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup and shutdown events."""
    settings: Settings = app.state.settings
    logger.info(f"Starting {settings.app.name} ({settings.app.environment})...")
    yield
    logger.info("Shutting down...")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Configuration to use; the cached environment settings by default.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()
    setup_logger(settings)

    app = FastAPI(
        title=settings.app.name,
        version=settings.app.version,
        debug=settings.app.debug,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.app.debug else None,
        redoc_url="/api/redoc" if settings.app.debug else None,
        openapi_url="/api/openapi.json" if settings.app.debug else None,
    )
    app.state.settings = settings

    pages = ErrorPageHandlers.from_settings(settings)
    app.state.error_pages = pages

    # HTML pages for browsers; API clients get the JSON envelope
    error_config = ErrorMiddlewareConfig.from_settings(
        settings,
        custom_error_handler=pages.render_error if settings.error_pages.enabled else None,
    )
    error_middleware = ErrorMiddleware(
        logger=StructuredLogger.from_settings(settings),
        config=error_config,
    )

    # Register exception handlers (installs the recovery middleware)
    setup_exception_handlers(app, error_middleware)

    # Request ID binding and access log, outside the recovery scope
    app.add_middleware(RequestContextMiddleware)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.app.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Error-Code"],
    )

    if settings.error_pages.enabled:
        app.include_router(errors_router.router)

    # System router (no /api prefix - accessible at root)
    app.include_router(system_router.router)

    return app


# Create the application instance
app = create_app()
