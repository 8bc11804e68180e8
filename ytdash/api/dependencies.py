"""FastAPI dependencies for the API module.

The document store, query cache and settings are created once per
application in :func:`ytdash.api.app.create_app` and kept on ``app.state``;
services are cheap wrappers built per request.
"""

from fastapi import Request

from ytdash.core.config import Settings
from ytdash.services import ChannelService, QueryCache, SettingsService, StatsService, VideoService


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_cache(request: Request) -> QueryCache:
    return request.app.state.cache


def get_video_service(request: Request) -> VideoService:
    state = request.app.state
    return VideoService(state.store, state.cache, state.settings)


def get_channel_service(request: Request) -> ChannelService:
    state = request.app.state
    return ChannelService(state.store, state.cache, state.settings)


def get_stats_service(request: Request) -> StatsService:
    state = request.app.state
    return StatsService(state.store, state.cache, state.settings)


def get_settings_service(request: Request) -> SettingsService:
    state = request.app.state
    return SettingsService(state.store, state.cache, state.settings)


def clamp_page_size(requested: int | None, default: int, settings: Settings) -> int:
    """Use the default page size when none is requested and cap it at the maximum."""
    return min(requested or default, settings.max_page_size)
