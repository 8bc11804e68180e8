"""Pydantic models for API requests and responses."""

from typing import Any

from pydantic import BaseModel, Field, StrictBool

# =============================================================================
# Request Models
# =============================================================================


class BulkNotifyRequest(BaseModel):
    """Set the notify flag on several channels at once."""

    channel_ids: list[str] = Field(
        ...,
        description="Channel ids to update",
        examples=[["UCX6OQ3DkcsbYNE6H8uQQuVA", "UCBJycsmduvYEL83R_U4JriQ"]],
    )
    notify: StrictBool = Field(..., description="New notify flag for every channel")


class CacheClearRequest(BaseModel):
    prefix: str | None = Field(
        default=None,
        description="Only clear keys starting with this prefix, e.g. 'videos:'",
    )


# =============================================================================
# Response Models
# =============================================================================


class MutationResponse(BaseModel):
    """Acknowledgement returned by write endpoints."""

    success: bool = True
    message: str


class CreatedResponse(MutationResponse):
    id: str = Field(..., description="Id of the created document")


class FavoriteResponse(MutationResponse):
    video_id: str
    is_favorite: bool


class NotifyResponse(MutationResponse):
    channel_id: str
    notify: bool


class BulkNotifyResponse(MutationResponse):
    updated: int
    notify: bool


class CacheClearResponse(MutationResponse):
    cleared: int = Field(..., description="Number of removed cache entries")
    prefix: str | None = None


class CacheInfoResponse(BaseModel):
    enabled: bool
    size: int
    keys: list[str]


class BotStatusResponse(BaseModel):
    is_running: bool
    last_sync: str | None
    uptime_seconds: float


class BotSyncResponse(MutationResponse):
    timestamp: str


class SettingsUpdateResponse(MutationResponse):
    settings: dict[str, Any]
