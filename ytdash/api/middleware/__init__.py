"""API middleware module."""

from ytdash.api.middleware.error_handler import ErrorHandlerMiddleware, setup_error_handler
from ytdash.api.middleware.logging import LoggingMiddleware, get_request_id, setup_logging_middleware
from ytdash.api.middleware.prometheus import PrometheusMiddleware, setup_prometheus
from ytdash.api.middleware.rate_limiter import create_limiter, setup_rate_limiter

__all__ = [
    "ErrorHandlerMiddleware",
    "LoggingMiddleware",
    "PrometheusMiddleware",
    "create_limiter",
    "get_request_id",
    "setup_error_handler",
    "setup_logging_middleware",
    "setup_prometheus",
    "setup_rate_limiter",
]
