"""Upload relay route."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from services.upload_relay.app.api.deps import get_relay_service
from services.upload_relay.app.config import get_settings
from services.upload_relay.app.upload.errors import RelayError
from services.upload_relay.app.upload.service import UploadRelayService
from shared.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["Upload"])

RelayService = Annotated[UploadRelayService, Depends(get_relay_service)]


@router.post(get_settings().upload_path)
async def upload_image(request: Request, service: RelayService) -> JSONResponse:
    """Relay the multipart ``file`` field to the configured file store.

    Returns ``{url, id, filename, mimeType}`` on success. Failures are
    rendered as ``{error}`` by the app's RelayError handler.
    """
    body = await request.body()

    try:
        result = await service.relay(body, request.headers.get("content-type"))
    except RelayError:
        raise
    except Exception as e:
        logger.exception("upload_relay_unexpected_error", error=str(e))
        raise RelayError(str(e) or "Upload failed") from e

    return JSONResponse(status_code=200, content=result.to_content())
