"""Correlation ID middleware for request tracing."""

from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from shared.utils.logging import set_correlation_id

CORRELATION_ID_HEADER = "X-Correlation-ID"

# Request ids injected by the platforms the relay is deployed on, in preference order
PLATFORM_REQUEST_ID_HEADERS = (
    CORRELATION_ID_HEADER,
    "X-Nf-Request-Id",
    "X-Amzn-Trace-Id",
    "X-Vercel-Id",
)


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Reuse the platform request id as correlation id, or mint one."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        """Process request with correlation ID.

        Args:
            request: FastAPI request
            call_next: Next middleware/handler

        Returns:
            Response with correlation ID header
        """
        incoming = next(
            (request.headers[h] for h in PLATFORM_REQUEST_ID_HEADERS if request.headers.get(h)),
            None,
        )
        correlation_id = set_correlation_id(incoming)
        request.state.correlation_id = correlation_id

        response = await call_next(request)
        response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response
