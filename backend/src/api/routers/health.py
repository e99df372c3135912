"""Health check endpoints."""
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from core.config import Settings, get_settings

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    backend: str


@router.get("/health", response_model=HealthResponse)
async def health_check(
    settings: Settings = Depends(get_settings),
) -> HealthResponse:
    """Check application health and whether the backend is configured."""
    configured = settings.backend_configured
    return HealthResponse(
        status="healthy" if configured else "degraded",
        backend="configured" if configured else "unconfigured",
    )
