"""Integration tests for the HTTP API against the in-memory store.

This module tests:
- Video and channel listings in both pagination modes
- Video and channel mutations and their effect on cached reads
- Header statistics, settings, cache and bot endpoints
- Health probes and request IDs
"""

from fastapi import status
from fastapi.testclient import TestClient

VIDEOS = "/api/v1/videos"
CHANNELS = "/api/v1/channels"


class TestVideoEndpoints:
    """Test video listing and interaction endpoints."""

    def test_list_videos_cursor_mode(self, client: TestClient) -> None:
        """Test default cursor listing.

        Given: Four stored videos
        When: GET /videos with page_size=3
        Then: Returns the three newest with a next cursor
        """
        response = client.get(VIDEOS, params={"page_size": 3})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["mode"] == "cursor"
        assert [v["video_id"] for v in data["items"]] == ["vid_2", "vid_1", "vid_4"]
        assert data["has_more"] is True

        follow = client.get(VIDEOS, params={"page_size": 3, "cursor": data["next_cursor"]})
        assert [v["video_id"] for v in follow.json()["items"]] == ["vid_3"]
        assert follow.json()["has_more"] is False

    def test_list_videos_offset_mode(self, client: TestClient) -> None:
        response = client.get(VIDEOS, params={"mode": "offset", "page": 1, "limit": 2})

        data = response.json()
        assert data["mode"] == "offset"
        assert data["total"] == 4
        assert data["has_more"] is True
        assert len(data["items"]) == 2

    def test_list_videos_filters(self, client: TestClient) -> None:
        response = client.get(
            VIDEOS,
            params={"unviewed_only": True, "start": "2024-08-11T00:00:00Z"},
        )

        assert [v["video_id"] for v in response.json()["items"]] == ["vid_2"]

    def test_list_videos_search(self, client: TestClient) -> None:
        response = client.get(VIDEOS, params={"search_term": "PASTA"})
        assert [v["video_id"] for v in response.json()["items"]] == ["vid_2"]

    def test_click_then_listing_reflects_it(self, client: TestClient) -> None:
        """Test writes invalidate cached listings.

        Given: A cached unviewed listing containing vid_2
        When: vid_2 is clicked
        Then: The next unviewed listing no longer contains it
        """
        before = client.get(VIDEOS, params={"unviewed_only": True}).json()
        assert "vid_2" in [v["video_id"] for v in before["items"]]

        response = client.put(f"{VIDEOS}/vid_2/click")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["success"] is True

        after = client.get(VIDEOS, params={"unviewed_only": True}).json()
        assert "vid_2" not in [v["video_id"] for v in after["items"]]

        video = client.get(f"{VIDEOS}/vid_2").json()
        assert video["click_count"] == 1
        assert video["is_viewed"] is True

    def test_toggle_favorite(self, client: TestClient) -> None:
        response = client.put(f"{VIDEOS}/vid_2/favorite")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["is_favorite"] is True

    def test_create_and_delete_video(self, client: TestClient) -> None:
        created = client.post(
            VIDEOS,
            json={
                "video_id": "vid_9",
                "title": "Fresh upload",
                "channel_id": "UC_echo",
                "channel_title": "Echo Travel",
                "discovered_at": "2024-08-20T08:00:00Z",
            },
        )
        assert created.status_code == status.HTTP_201_CREATED
        assert created.json()["id"] == "vid_9"

        newest = client.get(VIDEOS, params={"page_size": 1}).json()
        assert newest["items"][0]["video_id"] == "vid_9"

        deleted = client.delete(f"{VIDEOS}/vid_9")
        assert deleted.status_code == status.HTTP_200_OK
        assert client.get(f"{VIDEOS}/vid_9").status_code == status.HTTP_404_NOT_FOUND

    def test_page_size_clamped(self, client: TestClient, settings) -> None:
        response = client.get(VIDEOS, params={"page_size": settings.max_page_size + 500})
        assert response.json()["page_size"] == settings.max_page_size


class TestChannelEndpoints:
    """Test channel listing and notification endpoints."""

    def test_list_channels_sorted(self, client: TestClient) -> None:
        response = client.get(CHANNELS, params={"sort_by": "name", "sort_order": "desc"})

        titles = [c["title"] for c in response.json()["items"]]
        assert titles == sorted(titles, reverse=True)
        assert response.json()["fallback_used"] is False

    def test_list_channels_notification_filter(self, client: TestClient) -> None:
        response = client.get(
            CHANNELS,
            params={"notification_filter": "notify-on", "mode": "offset"},
        )

        data = response.json()
        assert data["total"] == 2
        assert {c["channel_id"] for c in data["items"]} == {"UC_alpha", "UC_charlie"}

    def test_list_channels_fallback(self, client: TestClient, store) -> None:
        store.unindexed_sorts.add(("channels", "subscriber_count"))

        response = client.get(
            CHANNELS,
            params={"notification_filter": "notify-off", "sort_by": "subscribers"},
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["fallback_used"] is True
        assert len(response.json()["items"]) == 3

    def test_toggle_notify_updates_stats(self, client: TestClient) -> None:
        before = client.get("/api/v1/stats/header").json()
        assert before["stats"]["enabled_channels"] == 2

        response = client.put(f"{CHANNELS}/UC_bravo/notify")
        assert response.json()["notify"] is True

        after = client.get("/api/v1/stats/header").json()
        assert after["stats"]["enabled_channels"] == 3

    def test_bulk_notify(self, client: TestClient) -> None:
        response = client.post(
            f"{CHANNELS}/bulk-notify",
            json={"channel_ids": ["UC_alpha", "UC_charlie"], "notify": False},
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["updated"] == 2

        stats = client.get("/api/v1/stats/header").json()
        assert stats["stats"]["enabled_channels"] == 0

    def test_create_get_delete_channel(self, client: TestClient) -> None:
        created = client.post(CHANNELS, json={"channel_id": "UC_fox", "title": "Foxtrot"})
        assert created.status_code == status.HTTP_201_CREATED

        channel = client.get(f"{CHANNELS}/UC_fox").json()
        assert channel["title"] == "Foxtrot"
        assert channel["notify"] is False

        assert client.delete(f"{CHANNELS}/UC_fox").status_code == status.HTTP_200_OK
        assert client.get(f"{CHANNELS}/UC_fox").status_code == status.HTTP_404_NOT_FOUND


class TestStatsAndSettings:
    def test_header_stats(self, client: TestClient) -> None:
        response = client.get("/api/v1/stats/header")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "stats": {
                "enabled_channels": 2,
                "total_channels": 5,
                "new_videos": 1,
                "total_videos": 4,
            },
            "last_sync_time": "-",
        }

    def test_sync_updates_last_sync_time(self, client: TestClient) -> None:
        client.get("/api/v1/stats/header")

        synced = client.post("/api/v1/bot/sync")
        assert synced.status_code == status.HTTP_200_OK

        header = client.get("/api/v1/stats/header").json()
        assert header["last_sync_time"] == synced.json()["timestamp"]

        bot = client.get("/api/v1/bot/status").json()
        assert bot["is_running"] is True
        assert bot["last_sync"] == synced.json()["timestamp"]

    def test_settings_roundtrip(self, client: TestClient) -> None:
        defaults = client.get("/api/v1/settings").json()
        assert defaults["polling"]["video_check_interval_seconds"] == 300

        response = client.put(
            "/api/v1/settings",
            json={"polling": {"video_check_interval_seconds": 120}},
        )
        assert response.status_code == status.HTTP_200_OK

        stored = client.get("/api/v1/settings").json()
        assert stored["polling"]["video_check_interval_seconds"] == 120
        assert stored["polling"]["subscription_sync_interval_minutes"] == 60


class TestCacheEndpoints:
    def test_info_and_clear(self, client: TestClient) -> None:
        client.get(VIDEOS)
        client.get(CHANNELS)

        info = client.get("/api/v1/cache").json()
        assert info["enabled"] is True
        assert info["size"] == 2

        cleared = client.post("/api/v1/cache/clear", json={"prefix": "videos:"}).json()
        assert cleared["cleared"] == 1

        remaining = client.get("/api/v1/cache").json()["keys"]
        assert all(key.startswith("channels:") for key in remaining)

    def test_clear_everything_without_body(self, client: TestClient) -> None:
        client.get(VIDEOS)
        response = client.post("/api/v1/cache/clear")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["prefix"] is None
        assert client.get("/api/v1/cache").json()["size"] == 0


class TestHealthEndpoints:
    """Test health check endpoints."""

    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "healthy"

    def test_liveness(self, client: TestClient) -> None:
        assert client.get("/health/live").json()["status"] == "alive"

    def test_readiness(self, client: TestClient) -> None:
        response = client.get("/health/ready")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "healthy"
        assert data["components"]["store"]["backend"] == "memory"
        assert "redis" not in data["components"]

    def test_request_id_echoed(self, client: TestClient) -> None:
        response = client.get("/health", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"
