"""API dependencies."""

from typing import Annotated, AsyncGenerator

from fastapi import Depends

from services.upload_relay.app.backends import BaseRelayBackend, create_backend
from services.upload_relay.app.config import Settings, get_settings
from services.upload_relay.app.upload.service import UploadRelayService

AppSettings = Annotated[Settings, Depends(get_settings)]


async def get_relay_backend(settings: AppSettings) -> AsyncGenerator[BaseRelayBackend, None]:
    """Get the configured relay backend for one request."""
    backend = create_backend(settings)
    try:
        yield backend
    finally:
        await backend.close()


def get_relay_service(
    settings: AppSettings,
    backend: Annotated[BaseRelayBackend, Depends(get_relay_backend)],
) -> UploadRelayService:
    """Get relay service bound to this request's backend."""
    return UploadRelayService(backend=backend, scratch_dir=settings.scratch_dir)
