"""Pydantic schemas for dashboard entities, filters and result pages."""

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

T = TypeVar("T")


# Stored timestamps compare as strings, so every writer uses this one form
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def utc_now_iso() -> str:
    """Current time as a canonical UTC timestamp string."""
    return to_iso(datetime.now(timezone.utc))


def to_iso(value: datetime | str | None, round_up: bool = False) -> str | None:
    """Render a timestamp in the canonical stored form ``YYYY-MM-DDTHH:MM:SSZ``.

    Naive datetimes are taken to be UTC. Sub-second precision is truncated,
    or rounded up to the next whole second when ``round_up`` is set, which
    keeps an inclusive lower bound from admitting earlier documents. Strings
    are passed through untouched.
    """
    if value is None or isinstance(value, str):
        return value
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    if round_up and value.microsecond:
        value += timedelta(seconds=1)
    return value.replace(microsecond=0).strftime(TIMESTAMP_FORMAT)


def is_new_video(data: dict[str, Any]) -> bool:
    """A video is new when it has not been viewed or never been clicked."""
    return not data.get("is_viewed") or not data.get("click_count")


# =============================================================================
# Entities
# =============================================================================


class Video(BaseModel):
    """Video discovered on a subscribed channel."""

    model_config = ConfigDict(extra="ignore")

    video_id: str
    title: str = ""
    channel_id: str = ""
    channel_title: str = ""
    channel_thumbnail: str | None = None
    link: str = ""
    youtube_url: str = ""
    thumbnail: str | None = None
    discovered_at: str = ""
    published_at: str | None = None
    description: str | None = None
    click_count: int = Field(default=0, ge=0)
    is_viewed: bool = False
    is_favorite: bool = False
    last_viewed_at: str | None = None

    @property
    def is_new(self) -> bool:
        return is_new_video(self.model_dump())

    @classmethod
    def from_document(cls, document_id: str, data: dict[str, Any]) -> "Video":
        return cls.model_validate({**data, "video_id": document_id})


class VideoCreate(BaseModel):
    """Payload for registering a newly discovered video."""

    video_id: str | None = Field(
        default=None,
        description="Document id to use; generated by the store when omitted",
    )
    title: str
    channel_id: str
    channel_title: str = ""
    channel_thumbnail: str | None = None
    link: str = ""
    youtube_url: str = ""
    thumbnail: str | None = None
    discovered_at: datetime | None = None
    published_at: datetime | None = None
    description: str | None = None

    def to_document(self) -> dict[str, Any]:
        """Build the stored document with interaction counters reset."""
        data = self.model_dump(exclude={"video_id", "discovered_at", "published_at"})
        data["discovered_at"] = to_iso(self.discovered_at) or utc_now_iso()
        data["published_at"] = to_iso(self.published_at)
        data["click_count"] = 0
        data["is_viewed"] = False
        data["is_favorite"] = False
        return data


class Channel(BaseModel):
    """Subscribed YouTube channel."""

    model_config = ConfigDict(extra="ignore")

    channel_id: str
    title: str = ""
    thumbnail: str | None = None
    subscriber_count: str | None = None
    last_video_id: str = ""
    last_video_title: str | None = None
    last_upload_at: str | None = None
    notify: bool = False
    subscribed_at: str = ""
    last_updated: str = ""
    rss_url: str = ""
    link: str | None = None

    @field_validator("subscriber_count", mode="before")
    @classmethod
    def _stringify_subscriber_count(cls, value: Any) -> Any:
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @classmethod
    def from_document(cls, document_id: str, data: dict[str, Any]) -> "Channel":
        return cls.model_validate({**data, "channel_id": document_id})


class ChannelCreate(BaseModel):
    """Payload for subscribing to a channel."""

    channel_id: str | None = Field(
        default=None,
        description="YouTube channel id used as document id; generated when omitted",
    )
    title: str
    thumbnail: str | None = None
    subscriber_count: str | None = None
    last_video_id: str = ""
    last_video_title: str | None = None
    last_upload_at: datetime | None = None
    notify: bool = False
    subscribed_at: datetime | None = None
    rss_url: str = ""
    link: str | None = None

    def to_document(self) -> dict[str, Any]:
        data = self.model_dump(exclude={"channel_id", "last_upload_at", "subscribed_at"})
        data["last_upload_at"] = to_iso(self.last_upload_at)
        data["subscribed_at"] = to_iso(self.subscribed_at) or utc_now_iso()
        data["last_updated"] = utc_now_iso()
        return data


# =============================================================================
# Filters
# =============================================================================


class DateRange(BaseModel):
    """Inclusive discovery-time window; either bound may be open."""

    start: datetime | None = None
    end: datetime | None = None


class _Filters(BaseModel):
    model_config = ConfigDict(frozen=True)

    def cache_signature(self) -> str:
        """Deterministic serialization used inside cache keys."""
        return json.dumps(self.model_dump(mode="json"), sort_keys=True, separators=(",", ":"))


class VideoFilters(_Filters):
    search_term: str = ""
    date_range: DateRange = Field(default_factory=DateRange)
    show_favorites_only: bool = False
    show_unviewed_only: bool = False


NotificationFilter = Literal["all", "notify-on", "notify-off"]
ChannelSortField = Literal["name", "subscribers", "last_video", "last_upload"]
SortOrder = Literal["asc", "desc"]


class ChannelFilters(_Filters):
    search_term: str = ""
    notification_filter: NotificationFilter = "all"
    sort_by: ChannelSortField = "name"
    sort_order: SortOrder = "asc"


# =============================================================================
# Result Pages
# =============================================================================


class CursorPage(BaseModel, Generic[T]):
    """Page fetched with cursor pagination."""

    mode: Literal["cursor"] = "cursor"
    items: list[T]
    page_size: int
    has_more: bool
    next_cursor: str | None = None
    fallback_used: bool = False


class OffsetPage(BaseModel, Generic[T]):
    """Page fetched with offset pagination."""

    mode: Literal["offset"] = "offset"
    items: list[T]
    page: int
    limit: int
    total: int
    has_more: bool
    fallback_used: bool = False


# =============================================================================
# Statistics
# =============================================================================


class HeaderStats(BaseModel):
    enabled_channels: int = 0
    total_channels: int = 0
    new_videos: int = 0
    total_videos: int = 0


class HeaderData(BaseModel):
    """Counters shown in the dashboard header."""

    stats: HeaderStats
    last_sync_time: str


# =============================================================================
# Bot Settings
# =============================================================================


class TelegramSettings(BaseModel):
    bot_token: str = ""
    chat_id: str = ""


class YouTubeSettings(BaseModel):
    client_secret_file: str = ""
    token_file: str = ""


class PollingSettings(BaseModel):
    video_check_interval_seconds: int = Field(default=300, ge=1)
    subscription_sync_interval_minutes: int = Field(default=60, ge=1)


class NotificationSettings(BaseModel):
    init_mode: bool = False
    global_notifications_enabled: bool = True


class BotSettings(BaseModel):
    """Configuration consumed by the polling bot."""

    model_config = ConfigDict(extra="ignore")

    telegram: TelegramSettings = Field(default_factory=TelegramSettings)
    youtube: YouTubeSettings = Field(default_factory=YouTubeSettings)
    polling: PollingSettings = Field(default_factory=PollingSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    last_updated: str | None = None
