"""Shared Pydantic schemas for the upload relay."""

from shared.schemas.api_responses import ErrorResponse

__all__ = [
    "ErrorResponse",
]
