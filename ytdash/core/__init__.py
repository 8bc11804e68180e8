"""Core package for the subscription dashboard."""

from ytdash.core.config import Settings, get_settings
from ytdash.core.logging_config import (
    log_cache_invalidation,
    log_query_fallback,
    setup_logging,
)
from ytdash.core.schemas import (
    BotSettings,
    Channel,
    ChannelFilters,
    HeaderData,
    Video,
    VideoFilters,
)

__all__ = [
    "Settings",
    "get_settings",
    "Video",
    "Channel",
    "VideoFilters",
    "ChannelFilters",
    "HeaderData",
    "BotSettings",
    # Logging
    "setup_logging",
    "log_query_fallback",
    "log_cache_invalidation",
]
