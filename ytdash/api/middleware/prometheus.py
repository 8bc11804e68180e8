"""Prometheus request instrumentation and the /metrics endpoint.

Usage:
    app = FastAPI()
    setup_prometheus(app, settings)
"""

import logging
import re
import time
from collections.abc import Callable
from typing import Any

from fastapi import FastAPI, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware

from ytdash.core.config import Settings
from ytdash.core.constants import APP_VERSION
from ytdash.core.metrics import api_request_duration_seconds, api_requests_total, app_info

logger = logging.getLogger(__name__)

_ID_SEGMENT = re.compile(r"^/api/v1/(videos|channels)/(?!bulk-notify(?:/|$))[^/]+")


def normalize_endpoint(path: str) -> str:
    """Collapse entity ids in a path so metrics labels stay bounded.

    Args:
        path: Request path

    Returns:
        Normalized path, e.g. ``/api/v1/videos/{id}/click``
    """
    return _ID_SEGMENT.sub(lambda m: f"/api/v1/{m.group(1)}/{{id}}", path)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware to collect Prometheus metrics for API requests."""

    def __init__(self, app: Any, metrics_path: str = "/metrics") -> None:
        super().__init__(app)
        self.metrics_path = metrics_path

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        if request.url.path == self.metrics_path:
            return await call_next(request)

        start_time = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            endpoint = normalize_endpoint(request.url.path)
            api_requests_total.labels(
                method=request.method,
                endpoint=endpoint,
                status=status_code,
            ).inc()
            api_request_duration_seconds.labels(
                method=request.method,
                endpoint=endpoint,
            ).observe(time.perf_counter() - start_time)

        return response


def setup_prometheus(app: FastAPI, settings: Settings) -> None:
    """Set up Prometheus metrics and endpoint.

    Args:
        app: FastAPI application
        settings: Application settings
    """
    if not settings.prometheus_enabled:
        logger.info("Prometheus metrics disabled")
        return

    app_info.labels(version=APP_VERSION, store_backend=settings.store_backend).set(1)
    app.add_middleware(PrometheusMiddleware, metrics_path=settings.prometheus_path)

    @app.get(settings.prometheus_path, include_in_schema=False)
    async def metrics_endpoint() -> Response:
        """Prometheus metrics in text format."""
        return Response(
            content=generate_latest(REGISTRY),
            status_code=200,
            media_type=CONTENT_TYPE_LATEST,
        )

    logger.info("Prometheus metrics enabled", extra={"path": settings.prometheus_path})
