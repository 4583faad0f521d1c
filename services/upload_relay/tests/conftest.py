"""Pytest fixtures for Upload Relay tests."""

from pathlib import Path
from typing import AsyncGenerator, Callable
from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from services.upload_relay.app.api.deps import get_relay_backend
from services.upload_relay.app.backends.shopify import ShopifyBackend
from services.upload_relay.app.config import Settings, get_settings
from services.upload_relay.app.main import app

STAGED_URL = "https://shopify-staged-uploads.storage.googleapis.com/"
RESOURCE_URL = "https://shopify-staged-uploads.storage.googleapis.com/tmp/1/products/test.jpg"
FILE_URL = "https://cdn.shopify.com/s/files/1/0000/0001/files/test.jpg"
FILE_ID = "gid://shopify/MediaImage/1234567890"


@pytest.fixture
def scratch_dir(tmp_path: Path) -> Path:
    """Isolated scratch directory per test."""
    directory = tmp_path / "scratch"
    directory.mkdir()
    return directory


@pytest.fixture
def settings(scratch_dir: Path) -> Settings:
    """Settings with Shopify credentials configured."""
    return Settings(
        shopify_store="test-store.myshopify.com",
        shopify_admin_token="shpat_test_token",
        scratch_dir=str(scratch_dir),
        log_json=False,
    )


@pytest.fixture
def mock_http_client():
    """Create mock HTTP client for outbound API calls."""
    mock = AsyncMock()
    mock.post = AsyncMock()
    mock.is_closed = False
    return mock


@pytest.fixture
def staged_parameters() -> list[dict[str, str]]:
    """Staged target form parameters, in the order Shopify returns them."""
    return [
        {"name": "Content-Type", "value": "image/jpeg"},
        {"name": "success_action_status", "value": "201"},
        {"name": "acl", "value": "private"},
        {"name": "key", "value": "tmp/1/products/test.jpg"},
        {"name": "x-goog-date", "value": "20240701T000000Z"},
        {"name": "x-goog-credential", "value": "cred/20240701/auto/storage/goog4_request"},
        {"name": "x-goog-algorithm", "value": "GOOG4-RSA-SHA256"},
        {"name": "x-goog-signature", "value": "abc123"},
        {"name": "policy", "value": "eyJjb25kaXRpb25zIjpbXX0="},
    ]


@pytest.fixture
def staged_response(staged_parameters) -> httpx.Response:
    """Successful stagedUploadsCreate response."""
    return httpx.Response(
        200,
        json={
            "data": {
                "stagedUploadsCreate": {
                    "stagedTargets": [
                        {
                            "url": STAGED_URL,
                            "resourceUrl": RESOURCE_URL,
                            "parameters": staged_parameters,
                        }
                    ],
                    "userErrors": [],
                }
            }
        },
    )


@pytest.fixture
def transfer_response() -> httpx.Response:
    """Successful direct-to-storage POST response."""
    return httpx.Response(201, text="")


@pytest.fixture
def files_create_response() -> httpx.Response:
    """Successful filesCreate response with a MediaImage record."""
    return httpx.Response(
        200,
        json={
            "data": {
                "filesCreate": {
                    "files": [
                        {
                            "__typename": "MediaImage",
                            "id": FILE_ID,
                            "image": {"url": FILE_URL},
                        }
                    ],
                    "userErrors": [],
                }
            }
        },
    )


@pytest.fixture
def user_errors_response() -> Callable[[str, str], httpx.Response]:
    """Build a GraphQL response whose mutation returned a user error."""

    def _build(mutation: str, message: str) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "data": {
                    mutation: {
                        "userErrors": [{"field": ["input"], "message": message}],
                    }
                }
            },
        )

    return _build


@pytest.fixture
def shopify_backend(mock_http_client) -> ShopifyBackend:
    """Shopify backend wired to the mock HTTP client."""
    return ShopifyBackend(
        store="test-store.myshopify.com",
        access_token="shpat_test_token",
        http_client=mock_http_client,
    )


@pytest.fixture
def encode_multipart() -> Callable[..., tuple[bytes, str]]:
    """Encode form files/fields into a multipart body with httpx's encoder."""

    def _encode(files=None, data=None) -> tuple[bytes, str]:
        request = httpx.Request("POST", "http://test/upload-image", files=files, data=data)
        return request.read(), request.headers["content-type"]

    return _encode


@pytest_asyncio.fixture
async def client(settings: Settings, shopify_backend: ShopifyBackend) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client against the app with a mocked Shopify backend."""
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_relay_backend] = lambda: shopify_backend

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
