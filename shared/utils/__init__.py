"""Shared utilities for the upload relay."""

from shared.utils.logging import configure_logging, get_correlation_id, get_logger, set_correlation_id
from shared.utils.metrics import MetricsMiddleware, StepTimer, create_counter, create_histogram

__all__ = [
    "configure_logging",
    "get_correlation_id",
    "get_logger",
    "set_correlation_id",
    "MetricsMiddleware",
    "StepTimer",
    "create_counter",
    "create_histogram",
]
