"""API routes for the upload relay."""

from services.upload_relay.app.api.health import router as health_router
from services.upload_relay.app.api.upload import router as upload_router

__all__ = [
    "health_router",
    "upload_router",
]
