"""API models module."""

from ytdash.api.models.errors import (
    ErrorCodes,
    ErrorResponse,
    InternalServerErrorResponse,
    NotFoundErrorResponse,
    ValidationErrorResponse,
)
from ytdash.api.models.requests import (
    BotStatusResponse,
    BotSyncResponse,
    BulkNotifyRequest,
    BulkNotifyResponse,
    CacheClearRequest,
    CacheClearResponse,
    CacheInfoResponse,
    CreatedResponse,
    FavoriteResponse,
    MutationResponse,
    NotifyResponse,
    SettingsUpdateResponse,
)

__all__ = [
    "ErrorCodes",
    "ErrorResponse",
    "InternalServerErrorResponse",
    "NotFoundErrorResponse",
    "ValidationErrorResponse",
    "BotStatusResponse",
    "BotSyncResponse",
    "BulkNotifyRequest",
    "BulkNotifyResponse",
    "CacheClearRequest",
    "CacheClearResponse",
    "CacheInfoResponse",
    "CreatedResponse",
    "FavoriteResponse",
    "MutationResponse",
    "NotifyResponse",
    "SettingsUpdateResponse",
]
