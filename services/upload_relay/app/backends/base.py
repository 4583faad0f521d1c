"""Base relay backend interface."""

from abc import ABC, abstractmethod

import httpx

from services.upload_relay.app.upload.schemas import CreatedFileRecord, SanitizedUpload


class BaseRelayBackend(ABC):
    """Abstract base class for remote file stores that receive relayed uploads."""

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 60.0,
    ):
        """Initialize backend.

        Args:
            http_client: Client to use for outbound calls; created when omitted
            timeout: Request timeout in seconds for a created client
        """
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the backend name used in logs and metrics."""
        pass

    @abstractmethod
    async def relay(self, upload: SanitizedUpload) -> CreatedFileRecord:
        """Push a sanitized upload to the remote store.

        Args:
            upload: Scratch file path plus sanitized metadata

        Returns:
            The remote record id and public URL

        Raises:
            RemoteRejectionError: If any remote step fails
        """
        pass

    async def close(self) -> None:
        """Close the HTTP client if this backend created it."""
        if self._owns_client and not self.http_client.is_closed:
            await self.http_client.aclose()
