"""Health endpoints"""

from fastapi import APIRouter
from pydantic import BaseModel, Field

from portal.core.config import settings

router = APIRouter(prefix="/observability", tags=["System"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., examples=["healthy", "unhealthy"])
    version: str | None = None
    environment: str | None = None


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint for load balancer."""
    return HealthResponse(
        status="healthy",
        version=settings.app.version,
        environment=settings.app.environment,
    )


@router.get("/ready")
async def readiness_check() -> dict[str, bool]:
    """Readiness check endpoint."""
    return {"ready": True}


@router.get("/live")
async def liveness_check() -> dict[str, bool]:
    """Liveness check endpoint."""
    return {"alive": True}
