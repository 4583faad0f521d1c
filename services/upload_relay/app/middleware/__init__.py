"""Middleware for the upload relay."""

from services.upload_relay.app.middleware.correlation import CorrelationMiddleware
from services.upload_relay.app.middleware.cors import CORSHeadersMiddleware

__all__ = ["CORSHeadersMiddleware", "CorrelationMiddleware"]
