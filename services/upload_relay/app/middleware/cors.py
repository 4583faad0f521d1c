"""Permissive CORS headers for browser uploads."""

from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware


class CORSHeadersMiddleware(BaseHTTPMiddleware):
    """Answer preflight requests and stamp CORS headers on every response.

    Unlike Starlette's CORSMiddleware, headers are sent whether or not the
    request carries an ``Origin``, and ``OPTIONS`` never reaches routing.
    """

    def __init__(
        self,
        app,
        allow_origin: str = "*",
        allow_methods: str = "POST, OPTIONS",
        allow_headers: str = "Content-Type, Authorization",
    ):
        super().__init__(app)
        self.headers = {
            "Access-Control-Allow-Origin": allow_origin,
            "Access-Control-Allow-Methods": allow_methods,
            "Access-Control-Allow-Headers": allow_headers,
        }

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=self.headers)

        response = await call_next(request)
        response.headers.update(self.headers)
        return response
