"""Pytest fixtures shared by the test suite.

This module provides:
- Test settings (memory store, no Redis, no rate limiting, no metrics route)
- A controllable clock for cache TTL tests
- A seeded in-memory document store
- Services and a FastAPI test client wired to that store
"""

from collections.abc import Generator
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from ytdash.api.app import create_app
from ytdash.core.config import Settings
from ytdash.database import MemoryDocumentStore
from ytdash.services import ChannelService, QueryCache, SettingsService, StatsService, VideoService

# =============================================================================
# Sample Data
# =============================================================================

SAMPLE_CHANNELS: dict[str, dict[str, Any]] = {
    "UC_alpha": {"title": "Alpha Science", "notify": True, "subscriber_count": "1200", "last_upload_at": "2024-08-10T10:00:00Z"},
    "UC_bravo": {"title": "Bravo Cooking", "notify": False, "subscriber_count": "5400", "last_upload_at": "2024-08-12T10:00:00Z"},
    "UC_charlie": {"title": "Charlie Music", "notify": True, "subscriber_count": "300", "last_upload_at": "2024-08-01T10:00:00Z"},
    "UC_delta": {"title": "Delta Gaming", "notify": False, "subscriber_count": "98000", "last_upload_at": None},
    "UC_echo": {"title": "Echo Travel", "notify": False, "subscriber_count": "42", "last_upload_at": "2024-07-30T10:00:00Z"},
}

SAMPLE_VIDEOS: dict[str, dict[str, Any]] = {
    "vid_1": {
        "title": "Black holes explained",
        "channel_id": "UC_alpha",
        "channel_title": "Alpha Science",
        "discovered_at": "2024-08-10T10:00:00Z",
        "click_count": 3,
        "is_viewed": True,
        "is_favorite": True,
    },
    "vid_2": {
        "title": "Perfect pasta",
        "channel_id": "UC_bravo",
        "channel_title": "Bravo Cooking",
        "discovered_at": "2024-08-12T10:00:00Z",
        "click_count": 0,
        "is_viewed": False,
        "is_favorite": False,
    },
    "vid_3": {
        "title": "Piano basics",
        "channel_id": "UC_charlie",
        "channel_title": "Charlie Music",
        "discovered_at": "2024-08-01T10:00:00Z",
        "click_count": 1,
        "is_viewed": True,
        "is_favorite": False,
    },
    "vid_4": {
        "title": "Quantum science for kids",
        "channel_id": "UC_alpha",
        "channel_title": "Alpha Science",
        "discovered_at": "2024-08-05T10:00:00Z",
        "click_count": 2,
        "is_viewed": True,
        "is_favorite": False,
    },
}


def make_videos(count: int, duplicate_every: int = 3) -> dict[str, dict[str, Any]]:
    """Build ``count`` videos where every ``duplicate_every`` share a discovery time."""
    return {
        f"v{index:03d}": {
            "title": f"Video {index}",
            "channel_id": "UC_alpha",
            "channel_title": "Alpha Science",
            "discovered_at": f"2024-08-{1 + index // duplicate_every:02d}T00:00:00Z",
            "click_count": 0,
            "is_viewed": False,
            "is_favorite": index % 2 == 0,
        }
        for index in range(count)
    }


# =============================================================================
# Core Fixtures
# =============================================================================


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment's .env file."""
    return Settings(
        _env_file=None,
        store_backend="memory",
        redis_enabled=False,
        rate_limit_enabled=False,
        rate_limit_storage="memory",
        prometheus_enabled=False,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> QueryCache:
    return QueryCache(default_ttl=120, clock=clock)


@pytest.fixture
def store() -> MemoryDocumentStore:
    """Memory store seeded with five channels and four videos."""
    return MemoryDocumentStore({"channels": SAMPLE_CHANNELS, "videos": SAMPLE_VIDEOS})


# =============================================================================
# Service Fixtures
# =============================================================================


@pytest.fixture
def video_service(store: MemoryDocumentStore, cache: QueryCache, settings: Settings) -> VideoService:
    return VideoService(store, cache, settings)


@pytest.fixture
def channel_service(
    store: MemoryDocumentStore, cache: QueryCache, settings: Settings
) -> ChannelService:
    return ChannelService(store, cache, settings)


@pytest.fixture
def stats_service(store: MemoryDocumentStore, cache: QueryCache, settings: Settings) -> StatsService:
    return StatsService(store, cache, settings)


@pytest.fixture
def settings_service(
    store: MemoryDocumentStore, cache: QueryCache, settings: Settings
) -> SettingsService:
    return SettingsService(store, cache, settings)


# =============================================================================
# Application Fixtures
# =============================================================================


@pytest.fixture
def app(settings: Settings, store: MemoryDocumentStore, cache: QueryCache) -> FastAPI:
    """Create FastAPI application for testing.

    Returns:
        FastAPI application wired to the seeded memory store
    """
    return create_app(settings=settings, store=store, cache=cache)


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """Create test client for FastAPI application.

    Yields:
        TestClient instance
    """
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client
