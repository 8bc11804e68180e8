"""Bot settings endpoints."""

from typing import Any

from fastapi import APIRouter, Body, Depends

from ytdash.api.dependencies import get_settings_service
from ytdash.api.models.errors import ErrorResponse
from ytdash.api.models.requests import SettingsUpdateResponse
from ytdash.core.schemas import BotSettings
from ytdash.services import SettingsService

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get(
    "",
    response_model=BotSettings,
    summary="Get bot settings",
    description="Stored bot configuration, or the defaults if none has been saved.",
    operation_id="get_bot_settings",
)
async def get_bot_settings(
    service: SettingsService = Depends(get_settings_service),
) -> BotSettings:
    return await service.get_bot_settings()


@router.put(
    "",
    response_model=SettingsUpdateResponse,
    summary="Update bot settings",
    description="Merge a partial configuration, e.g. `{\"polling\": {\"video_check_interval_seconds\": 120}}`.",
    operation_id="update_bot_settings",
    responses={422: {"model": ErrorResponse, "description": "Merged settings are invalid"}},
)
async def update_bot_settings(
    changes: dict[str, Any] = Body(..., examples=[{"notifications": {"init_mode": True}}]),
    service: SettingsService = Depends(get_settings_service),
) -> SettingsUpdateResponse:
    settings = await service.update_bot_settings(changes)
    return SettingsUpdateResponse(
        message="Settings updated successfully",
        settings=settings.model_dump(),
    )
