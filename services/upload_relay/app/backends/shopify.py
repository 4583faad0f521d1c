"""Shopify Files backend: staged upload followed by filesCreate."""

import json
from typing import Any

import httpx
from pydantic import ValidationError

from services.upload_relay.app.backends.base import BaseRelayBackend
from services.upload_relay.app.upload.errors import ConfigurationError, RemoteRejectionError
from services.upload_relay.app.upload.schemas import (
    CreatedFileRecord,
    SanitizedUpload,
    StagedTarget,
)
from services.upload_relay.app.upload.scratch import read_scratch
from shared.utils.logging import get_logger
from shared.utils.metrics import StepTimer

logger = get_logger(__name__)

STAGED_UPLOADS_CREATE = """
  mutation stagedUploadsCreate($input: [StagedUploadInput!]!) {
    stagedUploadsCreate(input: $input) {
      stagedTargets { url resourceUrl parameters { name value } }
      userErrors { field message }
    }
  }
"""

FILES_CREATE = """
  mutation filesCreate($files: [FileCreateInput!]!) {
    filesCreate(files: $files) {
      files {
        __typename
        ... on MediaImage { id image { url } }
        ... on GenericFile { id url }
      }
      userErrors { field message }
    }
  }
"""


def _first_user_error(result: dict[str, Any]) -> str | None:
    errors = result.get("userErrors") or []
    if not errors:
        return None
    return errors[0].get("message") or "Unknown Shopify user error"


def _file_url(node: dict[str, Any]) -> str | None:
    """Public URL of a created file, whichever variant Shopify returned."""
    typename = node.get("__typename")
    if typename == "MediaImage":
        return (node.get("image") or {}).get("url")
    if typename == "GenericFile":
        return node.get("url")
    return None


class ShopifyBackend(BaseRelayBackend):
    """Relay uploads into Shopify Files through the Admin GraphQL API.

    The flow is three sequential remote calls with no retries:

    1. ``stagedUploadsCreate`` issues a one-time upload target
    2. the bytes are POSTed straight to that target, replaying its parameters
    3. ``filesCreate`` registers the staged resource as a permanent file
    """

    def __init__(
        self,
        store: str,
        access_token: str,
        api_version: str = "2024-07",
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 60.0,
    ):
        """Initialize Shopify backend.

        Args:
            store: Store domain, e.g. your-store.myshopify.com
            access_token: Admin API token with write_files
            api_version: Admin API version segment of the GraphQL URL
            http_client: Client to use for outbound calls
            timeout: Request timeout in seconds for a created client

        Raises:
            ConfigurationError: If store or token is missing
        """
        if not store or not access_token:
            raise ConfigurationError("Missing Shopify env vars")
        super().__init__(http_client=http_client, timeout=timeout)
        self.store = store
        self.access_token = access_token
        self.graphql_url = f"https://{store}/admin/api/{api_version}/graphql.json"

    @property
    def name(self) -> str:
        return "shopify"

    async def graphql(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Execute an Admin API GraphQL operation.

        Returns:
            The ``data`` member of the response

        Raises:
            RemoteRejectionError: On non-2xx status, unparseable body or top-level errors
        """
        response = await self.http_client.post(
            self.graphql_url,
            headers={
                "Content-Type": "application/json",
                "X-Shopify-Access-Token": self.access_token,
            },
            json={"query": query, "variables": variables or {}},
        )

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        errors = payload.get("errors")
        if not response.is_success or errors:
            message = json.dumps(errors) if errors else f"GraphQL HTTP {response.status_code}"
            logger.warning(
                "shopify_graphql_failed",
                status=response.status_code,
                error=message,
            )
            raise RemoteRejectionError(message, upstream_status=response.status_code)

        return payload.get("data") or {}

    async def create_staged_target(self, upload: SanitizedUpload) -> StagedTarget:
        """Remote call 1: request a single-use staged upload target."""
        data = await self.graphql(
            STAGED_UPLOADS_CREATE,
            {
                "input": [
                    {
                        "resource": "IMAGE",
                        "filename": upload.filename,
                        "mimeType": upload.mime_type,
                        "httpMethod": "POST",
                        "fileSize": str(upload.size),
                    }
                ]
            },
        )
        result = data.get("stagedUploadsCreate") or {}
        targets = result.get("stagedTargets") or []

        user_error = _first_user_error(result)
        if user_error or not targets:
            raise RemoteRejectionError(user_error or "Failed stagedUploadsCreate")

        try:
            target = StagedTarget.model_validate(targets[0])
        except ValidationError as e:
            raise RemoteRejectionError("Malformed staged upload target") from e

        logger.info(
            "staged_target_created",
            filename=upload.filename,
            parameters=len(target.parameters),
        )
        return target

    async def upload_to_target(self, target: StagedTarget, upload: SanitizedUpload) -> None:
        """Remote call 2: POST the bytes to the staged target.

        Every staged parameter is replayed in the order received, ahead of the file.
        Parameters go out as filename-less parts so repeated names keep their position.
        """
        content = await read_scratch(upload.path)
        fields = [(param.name, (None, param.value)) for param in target.parameters]
        fields.append(("file", (upload.filename, content, upload.mime_type)))

        response = await self.http_client.post(target.url, files=fields)
        if not response.is_success:
            logger.warning(
                "staged_upload_failed",
                status=response.status_code,
                filename=upload.filename,
            )
            raise RemoteRejectionError(
                f"Staged upload failed: {response.status_code} {response.text}".rstrip(),
                upstream_status=response.status_code,
            )

    async def create_file(self, target: StagedTarget, upload: SanitizedUpload) -> CreatedFileRecord:
        """Remote call 3: register the staged resource in Shopify Files."""
        data = await self.graphql(
            FILES_CREATE,
            {
                "files": [
                    {
                        "originalSource": target.resource_url,
                        "contentType": "IMAGE",
                        "alt": upload.filename,
                        "filename": upload.filename,
                    }
                ]
            },
        )
        result = data.get("filesCreate") or {}

        user_error = _first_user_error(result)
        if user_error:
            raise RemoteRejectionError(user_error)

        files = result.get("files") or []
        node = files[0] if files else {}
        url = _file_url(node)
        if not url or not node.get("id"):
            raise RemoteRejectionError("No URL on created file")

        logger.info(
            "file_record_created",
            file_id=node["id"],
            file_type=node.get("__typename"),
        )
        return CreatedFileRecord(id=node["id"], url=url)

    async def relay(self, upload: SanitizedUpload) -> CreatedFileRecord:
        """Run the staged upload pipeline for one file."""
        with StepTimer(self.name, "staged_create"):
            target = await self.create_staged_target(upload)

        with StepTimer(self.name, "transfer"):
            await self.upload_to_target(target, upload)

        try:
            with StepTimer(self.name, "finalize"):
                return await self.create_file(target, upload)
        except RemoteRejectionError:
            # Shopify expires unused staged targets; nothing to compensate here
            logger.warning("staged_upload_orphaned", resource_url=target.resource_url)
            raise
