"""Upload relay data model and response schemas."""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class IncomingUpload(BaseModel):
    """The ``file`` part of a multipart request, exactly as the caller sent it."""

    filename: Optional[str] = None
    content_type: Optional[str] = None
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class SanitizedUpload(BaseModel):
    """Upload bytes on disk plus metadata that is safe to send upstream."""

    path: Path
    filename: str
    mime_type: str
    size: int


class StagedParameter(BaseModel):
    """One form parameter that must be replayed on the staged POST."""

    name: str
    value: str


class StagedTarget(BaseModel):
    """Single-use upload destination issued by ``stagedUploadsCreate``."""

    url: str
    resource_url: str = Field(alias="resourceUrl")
    parameters: list[StagedParameter] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


class CreatedFileRecord(BaseModel):
    """Terminal artifact of a relay: the remote id and public URL."""

    id: str
    url: str


class UploadResponse(BaseModel):
    """Success envelope: ``{url, id, filename, mimeType}``."""

    url: str
    id: str
    filename: str
    mime_type: str = Field(alias="mimeType")

    model_config = ConfigDict(populate_by_name=True)

    def to_content(self) -> dict[str, str]:
        return self.model_dump(by_alias=True)
