"""Main FastAPI application.

This module creates the FastAPI application with:
- Document store, query cache and settings on ``app.state``
- Middleware for error handling, logging, rate limiting and metrics
- Dashboard routers under ``/api/v1`` and health probes at the root
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ytdash.api.middleware import (
    setup_error_handler,
    setup_logging_middleware,
    setup_prometheus,
    setup_rate_limiter,
)
from ytdash.api.routers import (
    bot_router,
    cache_router,
    channels_router,
    health_router,
    settings_router,
    stats_router,
    videos_router,
)
from ytdash.core.config import Settings, get_settings_with_yaml
from ytdash.core.constants import API_TAGS, API_V1_PREFIX, APP_DESCRIPTION, APP_NAME, APP_VERSION
from ytdash.database import DocumentStore, create_document_store
from ytdash.database.redis import close_redis, init_redis
from ytdash.services import QueryCache

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Connects the document store and, when enabled, Redis on startup and
    closes both on shutdown.

    Args:
        app: FastAPI application instance

    Yields:
        None
    """
    settings: Settings = app.state.settings
    store: DocumentStore = app.state.store

    logger.info("Starting %s v%s (store=%s)", APP_NAME, APP_VERSION, store.name)

    await store.connect()

    if settings.redis_enabled:
        redis_manager = await init_redis()
        if not redis_manager.is_available:
            logger.warning("Redis unavailable, rate limiting falls back to process memory")
    else:
        logger.info("Redis disabled in configuration")

    try:
        yield
    finally:
        logger.info("Shutting down %s", APP_NAME)
        if settings.redis_enabled:
            await close_redis()
        await store.close()
        app.state.cache.clear()


def create_app(
    settings: Settings | None = None,
    store: DocumentStore | None = None,
    cache: QueryCache | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings; environment and config.yaml when omitted
        store: Document store; built from ``settings.store_backend`` when omitted
        cache: Query cache; a fresh process-local cache when omitted

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings_with_yaml()

    app = FastAPI(
        title=APP_NAME,
        description=APP_DESCRIPTION,
        version=APP_VERSION,
        lifespan=lifespan,
        openapi_tags=API_TAGS,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.state.settings = settings
    app.state.store = store or create_document_store(settings)
    app.state.cache = cache or QueryCache(
        default_ttl=settings.cache_ttl_videos,
        enabled=settings.cache_enabled,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_logging_middleware(app)
    setup_error_handler(app)
    setup_rate_limiter(app, settings)
    setup_prometheus(app, settings)

    app.include_router(videos_router, prefix=API_V1_PREFIX)
    app.include_router(channels_router, prefix=API_V1_PREFIX)
    app.include_router(stats_router, prefix=API_V1_PREFIX)
    app.include_router(settings_router, prefix=API_V1_PREFIX)
    app.include_router(cache_router, prefix=API_V1_PREFIX)
    app.include_router(bot_router, prefix=API_V1_PREFIX)
    app.include_router(health_router)

    logger.debug("Application created (store=%s)", app.state.store.name)
    return app


# Create application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "ytdash.api.app:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )
