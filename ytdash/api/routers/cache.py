"""Query cache maintenance endpoints."""

import logging

from fastapi import APIRouter, Body, Depends

from ytdash.api.dependencies import get_cache
from ytdash.api.models.requests import CacheClearRequest, CacheClearResponse, CacheInfoResponse
from ytdash.services import QueryCache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cache", tags=["cache"])


@router.get(
    "",
    response_model=CacheInfoResponse,
    summary="Inspect cache",
    operation_id="get_cache_info",
)
async def get_cache_info(cache: QueryCache = Depends(get_cache)) -> CacheInfoResponse:
    return CacheInfoResponse(enabled=cache.enabled, size=len(cache), keys=sorted(cache.keys()))


@router.post(
    "/clear",
    response_model=CacheClearResponse,
    summary="Clear cache",
    description="Drop every cached query result, or only keys starting with `prefix`.",
    operation_id="clear_cache",
)
async def clear_cache(
    request: CacheClearRequest | None = Body(default=None),
    cache: QueryCache = Depends(get_cache),
) -> CacheClearResponse:
    prefix = request.prefix if request else None
    cleared = cache.clear(prefix)
    logger.info("Cache cleared", extra={"prefix": prefix, "cleared": cleared})
    return CacheClearResponse(
        cleared=cleared,
        prefix=prefix,
        message="Cache cleared successfully",
    )
