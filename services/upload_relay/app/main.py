"""Upload Relay - FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from services.upload_relay.app.api import health_router, upload_router
from services.upload_relay.app.config import get_settings
from services.upload_relay.app.middleware import CORSHeadersMiddleware, CorrelationMiddleware
from services.upload_relay.app.upload.errors import RelayError, friendly_message
from shared.schemas.api_responses import ErrorResponse
from shared.utils.logging import configure_logging, get_logger
from shared.utils.metrics import MetricsMiddleware, metrics_endpoint

settings = get_settings()

configure_logging(
    service_name=settings.service_name,
    log_level=settings.log_level,
    json_format=settings.log_json,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager (not run under the serverless adapter)."""
    logger.info("starting_service", service=settings.service_name, backend=settings.backend)
    yield
    logger.info("service_shutdown_complete")


app = FastAPI(
    title="Upload Relay",
    description="Relays multipart image uploads to Shopify Files or Cloudinary",
    version="0.1.0",
    lifespan=lifespan,
)

# Added innermost first: CORS wraps everything so every response carries its headers
app.add_middleware(CorrelationMiddleware)
app.add_middleware(MetricsMiddleware)
app.add_middleware(
    CORSHeadersMiddleware,
    allow_origin=settings.cors_allow_origin,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)


@app.exception_handler(RelayError)
async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    """Render relay failures as ``{"error": ...}`` with the error's status."""
    message = exc.message or "Upload failed"
    if exc.status_code >= 500:
        message = friendly_message(message)
        logger.error(
            "upload_relay_failed",
            error_type=type(exc).__name__,
            status_code=exc.status_code,
            error=exc.message,
        )
    else:
        logger.info("upload_rejected", status_code=exc.status_code, error=message)

    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=message, details=exc.details).to_content(),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Keep routing errors (404, 405) in the same ``{"error": ...}`` envelope.

    The method gate applies to the upload path only: any method other than
    POST or OPTIONS there is a 405, while unknown paths are a 404.
    """
    message = "Method not allowed" if exc.status_code == 405 else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=message).to_content(),
        headers=getattr(exc, "headers", None),
    )


app.include_router(health_router)
app.include_router(upload_router)

app.add_route("/metrics", metrics_endpoint)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "services.upload_relay.app.main:app",
        host="0.0.0.0",
        port=8080,
        reload=settings.debug,
    )
