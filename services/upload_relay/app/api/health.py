"""Health check route."""

from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel

from services.upload_relay.app.api.deps import AppSettings

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["healthy", "unhealthy"]
    service: str
    version: str = "0.1.0"
    backend: str


@router.get("/health", response_model=HealthResponse)
async def health_check(settings: AppSettings) -> HealthResponse:
    """Basic health check - returns if the service is running.

    Credentials are not validated here; a missing token only surfaces on upload.
    """
    return HealthResponse(
        status="healthy",
        service=settings.service_name,
        backend=settings.backend,
    )
