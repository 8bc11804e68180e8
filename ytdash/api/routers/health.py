"""Health check endpoints for monitoring and observability.

- GET /health - Basic health check
- GET /health/live - Liveness probe (always returns 200 if running)
- GET /health/ready - Readiness probe (checks the document store and Redis)
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from ytdash.core.constants import APP_VERSION, START_TIME
from ytdash.database.redis import get_redis_manager
from ytdash.database.store import DocumentStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def check_store_health(store: DocumentStore) -> dict[str, Any]:
    """Ping the document store.

    Returns:
        Health status dictionary
    """
    start = time.perf_counter()
    available = await store.ping()
    latency = (time.perf_counter() - start) * 1000
    return {
        "status": "healthy" if available else "unhealthy",
        "available": available,
        "backend": store.name,
        "latency_ms": round(latency, 2),
    }


@router.get(
    "/health",
    response_model=dict[str, Any],
    summary="Basic health check",
    description="Quick health check for load balancers. Returns 200 if API is responding.",
    operation_id="health_check",
)
async def health_check() -> JSONResponse:
    """Basic health check endpoint. Does not check dependencies."""
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "status": "healthy",
            "version": APP_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


@router.get(
    "/health/live",
    response_model=dict[str, Any],
    summary="Liveness probe",
    description="Returns 200 if process is running.",
    operation_id="liveness_probe",
)
async def liveness_probe() -> JSONResponse:
    uptime = (datetime.now(timezone.utc) - START_TIME).total_seconds()
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "status": "alive",
            "uptime_seconds": round(uptime, 2),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


@router.get(
    "/health/ready",
    response_model=dict[str, Any],
    summary="Readiness probe",
    description="Checks if the service can reach its document store.",
    operation_id="readiness_probe",
    responses={
        200: {"description": "Service is ready (possibly degraded)"},
        503: {"description": "Document store unreachable"},
    },
)
async def readiness_probe(request: Request) -> JSONResponse:
    """Readiness probe endpoint.

    The document store is required. Redis is optional: when it is enabled
    but unreachable the service reports ``degraded`` and stays ready.

    Returns:
        JSONResponse with readiness status
    """
    settings = request.app.state.settings

    components: dict[str, Any] = {
        "store": await check_store_health(request.app.state.store),
        "cache": {
            "status": "healthy",
            "enabled": request.app.state.cache.enabled,
            "entries": len(request.app.state.cache),
        },
    }
    if settings.redis_enabled:
        components["redis"] = await get_redis_manager().health_check()

    if components["store"]["status"] != "healthy":
        overall_status = "unhealthy"
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    elif all(comp.get("status") == "healthy" for comp in components.values()):
        overall_status = "healthy"
        status_code = status.HTTP_200_OK
    else:
        overall_status = "degraded"
        status_code = status.HTTP_200_OK

    return JSONResponse(
        status_code=status_code,
        content={
            "status": overall_status,
            "version": APP_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "components": components,
        },
    )
