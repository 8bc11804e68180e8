"""Query, cache and entity services behind the HTTP API."""

from ytdash.services.cache import QueryCache, build_cache_key
from ytdash.services.channels import ChannelService
from ytdash.services.pagination import CursorPagination, OffsetPagination, PaginationStrategy
from ytdash.services.settings import SettingsService
from ytdash.services.stats import StatsService
from ytdash.services.videos import VideoService

__all__ = [
    "ChannelService",
    "CursorPagination",
    "OffsetPagination",
    "PaginationStrategy",
    "QueryCache",
    "SettingsService",
    "StatsService",
    "VideoService",
    "build_cache_key",
]
