"""Cloudinary backend using an unsigned upload preset."""

import httpx

from services.upload_relay.app.backends.base import BaseRelayBackend
from services.upload_relay.app.upload.errors import ConfigurationError, RemoteRejectionError
from services.upload_relay.app.upload.schemas import CreatedFileRecord, SanitizedUpload
from services.upload_relay.app.upload.scratch import read_scratch
from shared.utils.logging import get_logger
from shared.utils.metrics import StepTimer

logger = get_logger(__name__)


class CloudinaryBackend(BaseRelayBackend):
    """Relay uploads to Cloudinary's image upload endpoint in a single call."""

    def __init__(
        self,
        cloud_name: str,
        upload_preset: str,
        api_url: str = "https://api.cloudinary.com/v1_1",
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 60.0,
    ):
        if not cloud_name or not upload_preset:
            raise ConfigurationError("Missing Cloudinary env vars")
        super().__init__(http_client=http_client, timeout=timeout)
        self.upload_preset = upload_preset
        self.upload_url = f"{api_url.rstrip('/')}/{cloud_name}/image/upload"

    @property
    def name(self) -> str:
        return "cloudinary"

    async def relay(self, upload: SanitizedUpload) -> CreatedFileRecord:
        content = await read_scratch(upload.path)

        with StepTimer(self.name, "transfer"):
            response = await self.http_client.post(
                self.upload_url,
                data={"upload_preset": self.upload_preset},
                files={"file": (upload.filename, content, upload.mime_type)},
            )

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        if not response.is_success or not payload.get("secure_url"):
            message = (payload.get("error") or {}).get("message") or "Upload failed"
            logger.warning(
                "cloudinary_upload_failed",
                status=response.status_code,
                error=message,
            )
            raise RemoteRejectionError(
                message,
                details=payload or None,
                upstream_status=response.status_code,
            )

        logger.info(
            "cloudinary_upload_created",
            public_id=payload.get("public_id"),
            size_bytes=payload.get("bytes"),
        )
        return CreatedFileRecord(
            id=str(payload.get("public_id") or ""),
            url=payload["secure_url"],
        )
