"""Rate limiting using SlowAPI.

Limits are applied per client IP. Redis is used as shared storage when
configured, otherwise counters live in process memory.

Usage:
    app = FastAPI()
    setup_rate_limiter(app, settings)
"""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from ytdash.api.middleware.logging import get_request_id
from ytdash.api.models.errors import ErrorCodes
from ytdash.core.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER = 60


def rate_limit_exceeded_handler(
    request: Request,
    exc: RateLimitExceeded,
) -> JSONResponse:
    """Return a 429 response in the standard error format.

    Args:
        request: FastAPI request object
        exc: RateLimitExceeded exception

    Returns:
        JSONResponse with error details
    """
    logger.warning(
        "Rate limit exceeded",
        extra={"client_ip": get_remote_address(request), "path": request.url.path},
    )

    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "error": "RATE_LIMIT_EXCEEDED",
            "error_code": ErrorCodes.RATE_LIMIT_EXCEEDED,
            "message": "Too many requests. Please slow down.",
            "details": {"limit": str(exc.detail), "retry_after_seconds": DEFAULT_RETRY_AFTER},
            "request_id": get_request_id(request),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
        headers={"Retry-After": str(DEFAULT_RETRY_AFTER)},
    )


def create_limiter(settings: Settings) -> Limiter:
    """Create the rate limiter for the given settings.

    Returns:
        Configured Limiter instance
    """
    storage_uri = "memory://"
    if settings.rate_limit_storage == "redis" and settings.redis_enabled:
        storage_uri = settings.redis_url

    return Limiter(
        key_func=get_remote_address,
        default_limits=[f"{settings.rate_limit_per_minute}/minute"],
        storage_uri=storage_uri,
        enabled=settings.rate_limit_enabled,
        in_memory_fallback_enabled=True,
    )


def setup_rate_limiter(app: FastAPI, settings: Settings) -> Limiter:
    """Set up rate limiting middleware.

    Args:
        app: FastAPI application
        settings: Application settings

    Returns:
        Configured Limiter instance
    """
    limiter = create_limiter(settings)
    app.state.limiter = limiter

    if not settings.rate_limit_enabled:
        logger.info("Rate limiting is disabled")
        return limiter

    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    logger.info(
        "Rate limiting enabled",
        extra={
            "storage": settings.rate_limit_storage,
            "default_limit": f"{settings.rate_limit_per_minute}/minute",
        },
    )
    return limiter
