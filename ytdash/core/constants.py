"""Application constants and metadata.

This module centralizes all application-wide constants for:
- Application metadata
- API versioning
- Collection and document names
- Cache namespaces
"""

from datetime import datetime, timezone

from ytdash import __version__

# Application start time (for uptime calculation)
START_TIME = datetime.now(timezone.utc)

# =============================================================================
# Application Metadata
# =============================================================================

APP_NAME = "YouTube Subscription Dashboard API"
APP_DESCRIPTION = """
Backend for a dashboard that tracks YouTube channel subscriptions and the
videos discovered on them.

## Features

- **Videos**: Cursor or offset paginated listing with filters and search
- **Channels**: Listing, notification toggles and bulk updates
- **Statistics**: Header counters for the dashboard
- **Bot settings**: Configuration for the polling bot

Read results are cached in-process and invalidated on every write.
"""
APP_VERSION = __version__

# =============================================================================
# API Configuration
# =============================================================================

API_V1_PREFIX = "/api/v1"

API_TAGS = [
    {"name": "videos", "description": "Discovered videos and user interaction"},
    {"name": "channels", "description": "Subscribed channels and notification flags"},
    {"name": "stats", "description": "Dashboard header statistics"},
    {"name": "settings", "description": "Bot configuration"},
    {"name": "cache", "description": "Query cache maintenance"},
    {"name": "bot", "description": "Bot status and manual sync"},
    {"name": "health", "description": "Liveness and readiness probes"},
]

# =============================================================================
# Document Store Layout
# =============================================================================

VIDEOS_COLLECTION = "videos"
CHANNELS_COLLECTION = "channels"
SETTINGS_COLLECTION = "settings"

BOT_CONFIG_DOC_ID = "bot-config"
SYNC_STATUS_DOC_ID = "sync-status"
LAST_SYNC_FIELD = "last_sync_time"

# Placeholder shown when the bot has never synced
NO_SYNC_PLACEHOLDER = "-"

# =============================================================================
# Cache Namespaces
# =============================================================================

VIDEOS_CACHE_PREFIX = "videos:"
CHANNELS_CACHE_PREFIX = "channels:"
STATS_CACHE_PREFIX = "stats:"
STATS_HEADER_CACHE_KEY = f"{STATS_CACHE_PREFIX}header"

FIRST_PAGE_TOKEN = "first"
