"""API routers module."""

from ytdash.api.routers.bot import router as bot_router
from ytdash.api.routers.cache import router as cache_router
from ytdash.api.routers.channels import router as channels_router
from ytdash.api.routers.health import router as health_router
from ytdash.api.routers.settings import router as settings_router
from ytdash.api.routers.stats import router as stats_router
from ytdash.api.routers.videos import router as videos_router

__all__ = [
    "videos_router",
    "channels_router",
    "stats_router",
    "settings_router",
    "cache_router",
    "bot_router",
    "health_router",
]
