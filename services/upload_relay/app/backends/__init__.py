"""Relay backends.

This module provides the remote file stores an upload can be relayed to:
- ShopifyBackend: Shopify Files via staged upload + filesCreate
- CloudinaryBackend: Cloudinary unsigned preset upload
"""

import httpx

from services.upload_relay.app.backends.base import BaseRelayBackend
from services.upload_relay.app.backends.cloudinary import CloudinaryBackend
from services.upload_relay.app.backends.shopify import ShopifyBackend
from services.upload_relay.app.config import Settings


def create_backend(
    settings: Settings,
    http_client: httpx.AsyncClient | None = None,
) -> BaseRelayBackend:
    """Build the backend selected by ``settings.backend``.

    Raises:
        ConfigurationError: If the selected backend's credentials are missing
    """
    if settings.backend == "cloudinary":
        return CloudinaryBackend(
            cloud_name=settings.cloudinary_cloud_name,
            upload_preset=settings.cloudinary_upload_preset,
            api_url=settings.cloudinary_api_url,
            http_client=http_client,
            timeout=settings.request_timeout_seconds,
        )
    return ShopifyBackend(
        store=settings.shopify_store,
        access_token=settings.shopify_admin_token,
        api_version=settings.shopify_api_version,
        http_client=http_client,
        timeout=settings.request_timeout_seconds,
    )


__all__ = [
    "BaseRelayBackend",
    "CloudinaryBackend",
    "ShopifyBackend",
    "create_backend",
]
