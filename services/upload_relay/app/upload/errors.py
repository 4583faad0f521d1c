"""Upload relay error taxonomy."""

import re
from typing import Any

FORMAT_REJECTED_HINT = (
    "Shopify rejected the upload data format (likely MIME/filename). "
    "Try JPG/PNG and a simple filename."
)

_FORMAT_REJECTED_PATTERN = re.compile(r"did not match the expected pattern", re.IGNORECASE)


class RelayError(Exception):
    """Base error for a request that cannot be relayed."""

    status_code: int = 500

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ClientInputError(RelayError):
    """The caller sent something we cannot relay."""

    status_code = 400


class RemoteRejectionError(RelayError):
    """The remote file store refused or broke one of the pipeline steps."""

    status_code = 500

    def __init__(
        self,
        message: str,
        details: Any = None,
        upstream_status: int | None = None,
    ):
        super().__init__(message, details)
        self.upstream_status = upstream_status


class ConfigurationError(RelayError):
    """Required credentials are missing from the environment."""

    status_code = 500


def friendly_message(message: str) -> str:
    """Swap the upstream format-validation message for an actionable hint."""
    if _FORMAT_REJECTED_PATTERN.search(message):
        return FORMAT_REJECTED_HINT
    return message
