"""Bot status and manual sync endpoints.

The polling bot runs as a separate process. These endpoints report a fixed
running status and record a sync timestamp without contacting it.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from ytdash.api.dependencies import get_settings_service
from ytdash.api.models.requests import BotStatusResponse, BotSyncResponse
from ytdash.core.constants import START_TIME
from ytdash.services import SettingsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bot", tags=["bot"])


@router.get(
    "/status",
    response_model=BotStatusResponse,
    summary="Bot status",
    operation_id="get_bot_status",
)
async def get_bot_status(
    service: SettingsService = Depends(get_settings_service),
) -> BotStatusResponse:
    uptime = (datetime.now(timezone.utc) - START_TIME).total_seconds()
    return BotStatusResponse(
        is_running=True,
        last_sync=await service.get_last_sync_time(),
        uptime_seconds=round(uptime, 2),
    )


@router.post(
    "/sync",
    response_model=BotSyncResponse,
    summary="Trigger sync",
    description="Record a completed sync. Header statistics are refreshed on next read.",
    operation_id="trigger_bot_sync",
)
async def trigger_sync(
    service: SettingsService = Depends(get_settings_service),
) -> BotSyncResponse:
    timestamp = await service.record_sync()
    logger.info("Bot sync recorded at %s", timestamp)
    return BotSyncResponse(message="Bot sync completed successfully", timestamp=timestamp)
