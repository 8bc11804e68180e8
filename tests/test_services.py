"""Tests for the video, channel and settings services.

This module tests:
- Listing with filters, search refinement and caching
- Cache invalidation after every write
- Clicks, favorites and notification toggles
- Error translation at the service boundary
"""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest

from ytdash.core.exceptions import (
    AlreadyExistsError,
    ChannelNotFoundError,
    ErrorKind,
    FetchError,
    StoreError,
    UpdateError,
    VideoNotFoundError,
)
from ytdash.core.schemas import (
    ChannelCreate,
    ChannelFilters,
    DateRange,
    VideoCreate,
    VideoFilters,
)
from ytdash.services import CursorPagination, OffsetPagination


class TestListVideos:
    """Video listings are filtered, refined and cached."""

    @pytest.mark.asyncio
    async def test_newest_first(self, video_service) -> None:
        page = await video_service.list_videos()

        assert page.mode == "cursor"
        assert [v.video_id for v in page.items] == ["vid_2", "vid_1", "vid_4", "vid_3"]
        assert page.has_more is False

    @pytest.mark.asyncio
    async def test_favorites_only(self, video_service) -> None:
        page = await video_service.list_videos(VideoFilters(show_favorites_only=True))
        assert [v.video_id for v in page.items] == ["vid_1"]

    @pytest.mark.asyncio
    async def test_search_applied_after_pagination(self, video_service) -> None:
        page = await video_service.list_videos(
            VideoFilters(search_term="science"),
            CursorPagination(page_size=2),
        )

        # First raw page is vid_2, vid_1; only vid_1 matches, more rows remain
        assert [v.video_id for v in page.items] == ["vid_1"]
        assert page.has_more is True
        assert page.next_cursor is not None

    @pytest.mark.asyncio
    async def test_date_range_bounds_are_inclusive(self, video_service) -> None:
        # vid_1 was discovered at exactly 2024-08-10T10:00:00Z
        instant = datetime(2024, 8, 10, 10, 0, tzinfo=timezone.utc)

        page = await video_service.list_videos(
            VideoFilters(date_range=DateRange(start=instant, end=instant))
        )

        assert [v.video_id for v in page.items] == ["vid_1"]

    @pytest.mark.asyncio
    async def test_offset_mode_total(self, video_service) -> None:
        page = await video_service.list_videos(pagination=OffsetPagination(page=2, limit=3))

        assert page.mode == "offset"
        assert page.total == 4
        assert [v.video_id for v in page.items] == ["vid_3"]
        assert page.has_more is False

    @pytest.mark.asyncio
    async def test_second_call_served_from_cache(self, video_service, store) -> None:
        await video_service.list_videos()
        queries = len(store.query_log)

        await video_service.list_videos()

        assert len(store.query_log) == queries

    @pytest.mark.asyncio
    async def test_store_failure_becomes_fetch_error(self, video_service, store) -> None:
        store.query = AsyncMock(side_effect=StoreError(ErrorKind.TRANSIENT, "down"))

        with pytest.raises(FetchError):
            await video_service.list_videos()


class TestVideoWrites:
    """Video writes update the store and clear video and stats caches."""

    @pytest.mark.asyncio
    async def test_record_click(self, video_service, store) -> None:
        await video_service.record_click("vid_2")

        data = store.documents("videos")["vid_2"]
        assert data["click_count"] == 1
        assert data["is_viewed"] is True
        assert data["last_viewed_at"]

    @pytest.mark.asyncio
    async def test_click_invalidates_listing(self, video_service, cache) -> None:
        await video_service.list_videos()
        cache.set("stats:header", "stale")
        cache.set("channels:list:x", "kept")

        await video_service.record_click("vid_2")

        assert cache.keys() == ["channels:list:x"]

    @pytest.mark.asyncio
    async def test_click_missing_video(self, video_service) -> None:
        with pytest.raises(VideoNotFoundError):
            await video_service.record_click("nope")

    @pytest.mark.asyncio
    async def test_toggle_favorite_twice(self, video_service, store) -> None:
        assert await video_service.toggle_favorite("vid_2") is True
        assert await video_service.toggle_favorite("vid_2") is False
        assert store.documents("videos")["vid_2"]["is_favorite"] is False

    @pytest.mark.asyncio
    async def test_toggle_favorite_missing(self, video_service) -> None:
        with pytest.raises(VideoNotFoundError):
            await video_service.toggle_favorite("nope")

    @pytest.mark.asyncio
    async def test_create_resets_counters(self, video_service, store) -> None:
        video_id = await video_service.create_video(
            VideoCreate(video_id="vid_new", title="New", channel_id="UC_alpha")
        )

        data = store.documents("videos")[video_id]
        assert video_id == "vid_new"
        assert data["click_count"] == 0
        assert data["is_viewed"] is False
        assert data["discovered_at"]

    @pytest.mark.asyncio
    async def test_create_duplicate(self, video_service) -> None:
        with pytest.raises(AlreadyExistsError):
            await video_service.create_video(VideoCreate(video_id="vid_1", title="x", channel_id="c"))

    @pytest.mark.asyncio
    async def test_delete(self, video_service) -> None:
        await video_service.delete_video("vid_3")
        assert await video_service.get_video("vid_3") is None

    @pytest.mark.asyncio
    async def test_transient_write_failure(self, video_service, store) -> None:
        store.update = AsyncMock(side_effect=StoreError(ErrorKind.TRANSIENT, "down"))
        with pytest.raises(UpdateError):
            await video_service.record_click("vid_1")


class TestChannels:
    """Channel listings and notification changes."""

    @pytest.mark.asyncio
    async def test_notify_on_sorted_by_subscribers_desc(self, channel_service) -> None:
        page = await channel_service.list_channels(
            ChannelFilters(notification_filter="notify-on", sort_by="subscribers", sort_order="desc")
        )
        # subscriber_count is stored as a string, so ordering is lexicographic
        assert [c.channel_id for c in page.items] == ["UC_charlie", "UC_alpha"]
        assert page.fallback_used is False

    @pytest.mark.asyncio
    async def test_fallback_flagged_when_index_missing(self, channel_service, store) -> None:
        store.unindexed_sorts.add(("channels", "title"))

        page = await channel_service.list_channels(ChannelFilters(notification_filter="notify-off"))

        assert page.fallback_used is True
        assert {c.channel_id for c in page.items} == {"UC_bravo", "UC_delta", "UC_echo"}

    @pytest.mark.asyncio
    async def test_toggle_invalidates_channel_cache(self, channel_service, cache) -> None:
        await channel_service.list_channels()
        assert any(key.startswith("channels:") for key in cache.keys())

        assert await channel_service.toggle_notification("UC_bravo") is True

        assert not any(key.startswith("channels:") for key in cache.keys())
        page = await channel_service.list_channels(ChannelFilters(notification_filter="notify-on"))
        assert "UC_bravo" in {c.channel_id for c in page.items}

    @pytest.mark.asyncio
    async def test_toggle_missing_channel(self, channel_service) -> None:
        with pytest.raises(ChannelNotFoundError):
            await channel_service.toggle_notification("UC_gone")

    @pytest.mark.asyncio
    async def test_bulk_set(self, channel_service, store) -> None:
        await channel_service.bulk_set_notifications(["UC_bravo", "UC_delta", "UC_bravo"], True)

        docs = store.documents("channels")
        assert docs["UC_bravo"]["notify"] is True
        assert docs["UC_delta"]["notify"] is True
        assert docs["UC_bravo"]["last_updated"] == docs["UC_delta"]["last_updated"]

    @pytest.mark.asyncio
    async def test_bulk_set_missing_channel_still_invalidates(self, channel_service, cache) -> None:
        cache.set("channels:list:x", "stale")

        with pytest.raises(ChannelNotFoundError):
            await channel_service.bulk_set_notifications(["UC_alpha", "UC_gone"], False)

        assert cache.get("channels:list:x") is None

    @pytest.mark.asyncio
    async def test_bulk_set_failure_waits_for_pending_writes(self, channel_service, store) -> None:
        """Test a failed bulk update leaves no stale listing behind.

        Given: One slow update and one update for a missing channel
        When: The bulk update fails and channels are listed right after
        Then: The slow write has landed and the listing shows it
        """
        original_update = store.update

        async def slow_update(collection, document_id, changes):
            if document_id == "UC_bravo":
                await asyncio.sleep(0.05)
            await original_update(collection, document_id, changes)

        with patch.object(store, "update", AsyncMock(side_effect=slow_update)):
            with pytest.raises(ChannelNotFoundError):
                await channel_service.bulk_set_notifications(["UC_bravo", "UC_gone"], True)

            assert store.documents("channels")["UC_bravo"]["notify"] is True
            page = await channel_service.list_channels(
                ChannelFilters(notification_filter="notify-on")
            )

        assert "UC_bravo" in {c.channel_id for c in page.items}

    @pytest.mark.asyncio
    async def test_bulk_set_empty_is_noop(self, channel_service, cache) -> None:
        cache.set("channels:list:x", "kept")
        await channel_service.bulk_set_notifications([], True)
        assert cache.get("channels:list:x") == "kept"

    @pytest.mark.asyncio
    async def test_create_channel(self, channel_service) -> None:
        channel_id = await channel_service.create_channel(
            ChannelCreate(channel_id="UC_new", title="Foxtrot", subscriber_count="10")
        )
        channel = await channel_service.get_channel(channel_id)

        assert channel.title == "Foxtrot"
        assert channel.notify is False
        assert channel.last_updated


class TestSettingsService:
    @pytest.mark.asyncio
    async def test_defaults_without_document(self, settings_service) -> None:
        bot = await settings_service.get_bot_settings()
        assert bot.polling.video_check_interval_seconds == 300
        assert bot.last_updated is None

    @pytest.mark.asyncio
    async def test_partial_update_merges(self, settings_service) -> None:
        await settings_service.update_bot_settings({"telegram": {"chat_id": "42"}})
        updated = await settings_service.update_bot_settings(
            {"polling": {"video_check_interval_seconds": 120}}
        )

        assert updated.telegram.chat_id == "42"
        assert updated.polling.video_check_interval_seconds == 120
        assert updated.polling.subscription_sync_interval_minutes == 60
        assert updated.last_updated

    @pytest.mark.asyncio
    async def test_record_sync_clears_stats(self, settings_service, cache) -> None:
        cache.set("stats:header", "stale")

        timestamp = await settings_service.record_sync("2024-08-16T14:30:25Z")

        assert timestamp == "2024-08-16T14:30:25Z"
        assert await settings_service.get_last_sync_time() == timestamp
        assert cache.get("stats:header") is None
