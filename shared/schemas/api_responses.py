"""Standard API response envelopes."""

from typing import Any, Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Error envelope returned by every failing request: ``{"error": ...}``."""

    error: str
    details: Optional[Any] = None

    def to_content(self) -> dict[str, Any]:
        """Render for a JSON response, leaving ``details`` out when unset."""
        return self.model_dump(exclude_none=True)
