"""Upload parsing, sanitization and relay orchestration."""

from services.upload_relay.app.upload.errors import (
    ClientInputError,
    ConfigurationError,
    RelayError,
    RemoteRejectionError,
)
from services.upload_relay.app.upload.sanitize import sanitize_filename, sanitize_mime_type
from services.upload_relay.app.upload.schemas import (
    CreatedFileRecord,
    IncomingUpload,
    SanitizedUpload,
    StagedTarget,
    UploadResponse,
)

__all__ = [
    "ClientInputError",
    "ConfigurationError",
    "RelayError",
    "RemoteRejectionError",
    "sanitize_filename",
    "sanitize_mime_type",
    "CreatedFileRecord",
    "IncomingUpload",
    "SanitizedUpload",
    "StagedTarget",
    "UploadResponse",
]
