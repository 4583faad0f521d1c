"""Upload relay service: one request in, one remote file out."""

import httpx

from services.upload_relay.app.backends.base import BaseRelayBackend
from services.upload_relay.app.upload.errors import RelayError, RemoteRejectionError
from services.upload_relay.app.upload.multipart import parse_multipart
from services.upload_relay.app.upload.sanitize import sanitize_filename, sanitize_mime_type
from services.upload_relay.app.upload.schemas import SanitizedUpload, UploadResponse
from services.upload_relay.app.upload.scratch import scratch_file
from shared.utils.logging import get_logger
from shared.utils.metrics import UPLOADS_RELAYED

logger = get_logger(__name__)


class UploadRelayService:
    """Parse, sanitize and hand an upload to a relay backend."""

    def __init__(self, backend: BaseRelayBackend, scratch_dir: str):
        """Initialize relay service.

        Args:
            backend: Remote store that receives the file
            scratch_dir: Directory for the per-request scratch file
        """
        self.backend = backend
        self.scratch_dir = scratch_dir

    async def relay(self, body: bytes, content_type: str | None) -> UploadResponse:
        """Relay the ``file`` part of a multipart body.

        Args:
            body: Transport-decoded request body
            content_type: Request Content-Type header

        Returns:
            Normalized success envelope

        Raises:
            RelayError: On any client, remote or configuration defect
        """
        incoming = parse_multipart(body, content_type)

        filename = sanitize_filename(incoming.filename)
        mime_type = sanitize_mime_type(incoming.content_type)

        logger.info(
            "upload_received",
            backend=self.backend.name,
            original_filename=incoming.filename,
            declared_type=incoming.content_type,
            filename=filename,
            mime_type=mime_type,
            size_bytes=incoming.size,
        )

        try:
            async with scratch_file(incoming.data, self.scratch_dir) as path:
                record = await self.backend.relay(
                    SanitizedUpload(
                        path=path,
                        filename=filename,
                        mime_type=mime_type,
                        size=incoming.size,
                    )
                )
        except RelayError:
            UPLOADS_RELAYED.labels(backend=self.backend.name, outcome="rejected").inc()
            raise
        except httpx.HTTPError as e:
            UPLOADS_RELAYED.labels(backend=self.backend.name, outcome="error").inc()
            logger.error("upstream_request_error", backend=self.backend.name, error=str(e))
            raise RemoteRejectionError(f"Upstream request failed: {e}") from e

        UPLOADS_RELAYED.labels(backend=self.backend.name, outcome="success").inc()
        logger.info(
            "upload_relayed",
            backend=self.backend.name,
            file_id=record.id,
            url=record.url,
        )
        return UploadResponse(url=record.url, id=record.id, filename=filename, mime_type=mime_type)
