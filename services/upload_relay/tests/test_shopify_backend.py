"""Tests for the Shopify staged-upload backend."""

import json
import re
from unittest.mock import patch

import httpx
import pytest

from services.upload_relay.app.backends.shopify import FILES_CREATE, STAGED_UPLOADS_CREATE, ShopifyBackend
from services.upload_relay.app.upload.errors import ConfigurationError, RemoteRejectionError
from services.upload_relay.app.upload.schemas import SanitizedUpload, StagedTarget

from conftest import FILE_ID, FILE_URL, RESOURCE_URL, STAGED_URL

CONTENT = b"\xff\xd8\xff\xe0JPEG!!"

# name, optional filename param, payload of one multipart part
FORM_PART = re.compile(
    rb'Content-Disposition: form-data; name="([^"]+)"(; filename="[^"]*")?\r\n'
    rb"(?:[^\r\n]+\r\n)*\r\n"
    rb"(.*?)\r\n--",
    re.DOTALL,
)


@pytest.fixture
def upload(scratch_dir) -> SanitizedUpload:
    """Sanitized upload backed by a scratch file."""
    path = scratch_dir / "upload-test"
    path.write_bytes(CONTENT)
    return SanitizedUpload(path=path, filename="test.jpg", mime_type="image/jpeg", size=len(CONTENT))


class TestShopifyBackendConfig:
    """Tests for backend construction."""

    @pytest.mark.parametrize("store,token", [("", "shpat"), ("shop.myshopify.com", ""), ("", "")])
    def test_missing_credentials(self, store, token):
        """Test missing store or token is a configuration error."""
        with pytest.raises(ConfigurationError) as exc_info:
            ShopifyBackend(store=store, access_token=token)

        assert exc_info.value.message == "Missing Shopify env vars"
        assert exc_info.value.status_code == 500

    def test_graphql_url(self, shopify_backend):
        """Test the Admin API endpoint is built from store and version."""
        assert (
            shopify_backend.graphql_url
            == "https://test-store.myshopify.com/admin/api/2024-07/graphql.json"
        )


class TestShopifyGraphQL:
    """Tests for the GraphQL transport."""

    @pytest.mark.asyncio
    async def test_sends_token_and_payload(self, shopify_backend, mock_http_client):
        """Test access token header and query/variables body."""
        mock_http_client.post.return_value = httpx.Response(200, json={"data": {"shop": {}}})

        data = await shopify_backend.graphql("{ shop { name } }", {"a": 1})

        assert data == {"shop": {}}
        call = mock_http_client.post.call_args
        assert call.args[0] == shopify_backend.graphql_url
        assert call.kwargs["headers"]["X-Shopify-Access-Token"] == "shpat_test_token"
        assert call.kwargs["json"] == {"query": "{ shop { name } }", "variables": {"a": 1}}

    @pytest.mark.asyncio
    async def test_top_level_errors(self, shopify_backend, mock_http_client):
        """Test GraphQL errors are serialized into the message."""
        errors = [{"message": "Access denied for files field."}]
        mock_http_client.post.return_value = httpx.Response(200, json={"errors": errors})

        with pytest.raises(RemoteRejectionError) as exc_info:
            await shopify_backend.graphql("{ files }")

        assert exc_info.value.message == json.dumps(errors)

    @pytest.mark.asyncio
    async def test_http_error_without_json(self, shopify_backend, mock_http_client):
        """Test a non-JSON error page reports the HTTP status."""
        mock_http_client.post.return_value = httpx.Response(502, text="<html>Bad gateway</html>")

        with pytest.raises(RemoteRejectionError) as exc_info:
            await shopify_backend.graphql("{ shop { name } }")

        assert exc_info.value.message == "GraphQL HTTP 502"
        assert exc_info.value.upstream_status == 502


class TestShopifyPipeline:
    """Tests for the three-step staged upload."""

    @pytest.mark.asyncio
    async def test_full_relay(
        self,
        shopify_backend,
        mock_http_client,
        upload,
        staged_parameters,
        staged_response,
        transfer_response,
        files_create_response,
    ):
        """Test staged create, transfer and finalize run once each, in order."""
        mock_http_client.post.side_effect = [
            staged_response,
            transfer_response,
            files_create_response,
        ]

        record = await shopify_backend.relay(upload)

        assert record.id == FILE_ID
        assert record.url == FILE_URL
        assert mock_http_client.post.call_count == 3

        staged_call, transfer_call, finalize_call = mock_http_client.post.call_args_list

        assert staged_call.kwargs["json"]["query"] == STAGED_UPLOADS_CREATE
        assert staged_call.kwargs["json"]["variables"] == {
            "input": [
                {
                    "resource": "IMAGE",
                    "filename": "test.jpg",
                    "mimeType": "image/jpeg",
                    "httpMethod": "POST",
                    "fileSize": "10",
                }
            ]
        }

        assert transfer_call.args[0] == STAGED_URL
        assert transfer_call.kwargs["files"] == [
            *((p["name"], (None, p["value"])) for p in staged_parameters),
            ("file", ("test.jpg", CONTENT, "image/jpeg")),
        ]

        assert finalize_call.kwargs["json"]["query"] == FILES_CREATE
        assert finalize_call.kwargs["json"]["variables"] == {
            "files": [
                {
                    "originalSource": RESOURCE_URL,
                    "contentType": "IMAGE",
                    "alt": "test.jpg",
                    "filename": "test.jpg",
                }
            ]
        }

    @pytest.mark.asyncio
    async def test_repeated_parameter_names_replayed_in_order(
        self, shopify_backend, mock_http_client, upload, transfer_response
    ):
        """Test parameters sharing a name are all sent, in their original order."""
        target = StagedTarget(
            url=STAGED_URL,
            resource_url=RESOURCE_URL,
            parameters=[
                {"name": "key", "value": "tmp/1/test.jpg"},
                {"name": "x-amz-meta-tag", "value": "one"},
                {"name": "x-amz-meta-tag", "value": "two"},
                {"name": "policy", "value": "eyJ9"},
            ],
        )
        mock_http_client.post.return_value = transfer_response

        await shopify_backend.upload_to_target(target, upload)

        call = mock_http_client.post.call_args
        body = httpx.Request("POST", call.args[0], files=call.kwargs["files"]).read()
        parts = FORM_PART.findall(body)

        assert [(name, value) for name, _, value in parts] == [
            (b"key", b"tmp/1/test.jpg"),
            (b"x-amz-meta-tag", b"one"),
            (b"x-amz-meta-tag", b"two"),
            (b"policy", b"eyJ9"),
            (b"file", CONTENT),
        ]
        assert [bool(filename) for _, filename, _ in parts] == [False] * 4 + [True]

    @pytest.mark.asyncio
    async def test_staged_create_user_error(
        self, shopify_backend, mock_http_client, upload, user_errors_response
    ):
        """Test a user error aborts before any transfer."""
        mock_http_client.post.return_value = user_errors_response(
            "stagedUploadsCreate", "File size must be greater than 0"
        )

        with pytest.raises(RemoteRejectionError) as exc_info:
            await shopify_backend.relay(upload)

        assert exc_info.value.message == "File size must be greater than 0"
        assert mock_http_client.post.call_count == 1

    @pytest.mark.asyncio
    async def test_staged_create_without_target(self, shopify_backend, mock_http_client, upload):
        """Test an empty target list aborts the pipeline."""
        mock_http_client.post.return_value = httpx.Response(
            200,
            json={"data": {"stagedUploadsCreate": {"stagedTargets": [], "userErrors": []}}},
        )

        with pytest.raises(RemoteRejectionError) as exc_info:
            await shopify_backend.relay(upload)

        assert exc_info.value.message == "Failed stagedUploadsCreate"
        assert mock_http_client.post.call_count == 1

    @pytest.mark.asyncio
    async def test_transfer_forbidden(
        self, shopify_backend, mock_http_client, upload, staged_response
    ):
        """Test a rejected transfer reports status and body and skips finalize."""
        mock_http_client.post.side_effect = [
            staged_response,
            httpx.Response(403, text="<Error><Code>AccessDenied</Code></Error>"),
        ]

        with pytest.raises(RemoteRejectionError) as exc_info:
            await shopify_backend.relay(upload)

        assert "403" in exc_info.value.message
        assert "AccessDenied" in exc_info.value.message
        assert exc_info.value.upstream_status == 403
        assert mock_http_client.post.call_count == 2

    @pytest.mark.asyncio
    async def test_finalize_user_error(
        self,
        shopify_backend,
        mock_http_client,
        upload,
        staged_response,
        transfer_response,
        user_errors_response,
    ):
        """Test a filesCreate user error surfaces its message and flags the orphan."""
        mock_http_client.post.side_effect = [
            staged_response,
            transfer_response,
            user_errors_response("filesCreate", "Image could not be processed"),
        ]

        with patch("services.upload_relay.app.backends.shopify.logger") as mock_logger:
            with pytest.raises(RemoteRejectionError) as exc_info:
                await shopify_backend.relay(upload)

        assert exc_info.value.message == "Image could not be processed"
        mock_logger.warning.assert_called_once_with(
            "staged_upload_orphaned", resource_url=RESOURCE_URL
        )

    @pytest.mark.asyncio
    async def test_finalize_generic_file(
        self, shopify_backend, mock_http_client, upload, staged_response, transfer_response
    ):
        """Test a GenericFile record exposes its URL directly."""
        mock_http_client.post.side_effect = [
            staged_response,
            transfer_response,
            httpx.Response(
                200,
                json={
                    "data": {
                        "filesCreate": {
                            "files": [
                                {
                                    "__typename": "GenericFile",
                                    "id": "gid://shopify/GenericFile/42",
                                    "url": "https://cdn.shopify.com/files/generic.jpg",
                                }
                            ],
                            "userErrors": [],
                        }
                    }
                },
            ),
        ]

        record = await shopify_backend.relay(upload)

        assert record.id == "gid://shopify/GenericFile/42"
        assert record.url == "https://cdn.shopify.com/files/generic.jpg"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "node",
        [
            {"__typename": "MediaImage", "id": "gid://shopify/MediaImage/1", "image": None},
            {"__typename": "Video", "id": "gid://shopify/Video/1", "url": "https://x/y.mp4"},
            None,
        ],
    )
    async def test_finalize_without_url(
        self, shopify_backend, mock_http_client, upload, staged_response, transfer_response, node
    ):
        """Test records exposing neither URL shape are rejected."""
        files = [node] if node else []
        mock_http_client.post.side_effect = [
            staged_response,
            transfer_response,
            httpx.Response(200, json={"data": {"filesCreate": {"files": files, "userErrors": []}}}),
        ]

        with pytest.raises(RemoteRejectionError) as exc_info:
            await shopify_backend.relay(upload)

        assert exc_info.value.message == "No URL on created file"
