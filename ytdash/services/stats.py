"""Dashboard header statistics."""

import asyncio
import logging
from collections.abc import Iterable

from ytdash.core.constants import (
    CHANNELS_COLLECTION,
    LAST_SYNC_FIELD,
    NO_SYNC_PLACEHOLDER,
    SETTINGS_COLLECTION,
    STATS_HEADER_CACHE_KEY,
    SYNC_STATUS_DOC_ID,
    VIDEOS_COLLECTION,
)
from ytdash.core.exceptions import StoreError
from ytdash.core.metrics import stats_enumeration_total
from ytdash.core.schemas import HeaderData, HeaderStats, is_new_video
from ytdash.database.store import Document, Limit, Operator, Where
from ytdash.services.base import StoreBackedService

logger = logging.getLogger(__name__)

NOTIFY_ENABLED = Where("notify", Operator.EQ, True)


def _count_new(videos: Iterable[Document]) -> int:
    return sum(1 for doc in videos if is_new_video(doc.data))


class StatsService(StoreBackedService):
    """Computes the counters shown in the dashboard header.

    Counts come from the store's count primitive when it works. "New" videos
    cannot be counted that way, so up to ``stats_enumeration_cap`` videos are
    enumerated for them. If any count fails, every number is recomputed from
    bounded enumeration instead.
    """

    async def get_header_stats(self) -> HeaderData:
        """Return header statistics, cached for the statistics TTL.

        Raises:
            FetchError: If the enumeration path fails as well
        """
        cached = self.cache.get(STATS_HEADER_CACHE_KEY)
        if cached is not None:
            return cached

        stats = await self._stats_from_counts()
        if stats is None:
            stats_enumeration_total.inc()
            with self.reading("statistics"):
                stats = await self._stats_from_enumeration()

        header = HeaderData(stats=stats, last_sync_time=await self._last_sync_time())
        self.cache.set(STATS_HEADER_CACHE_KEY, header, ttl=self.settings.cache_ttl_stats)
        return header

    async def _stats_from_counts(self) -> HeaderStats | None:
        results = await asyncio.gather(
            self.store.count(CHANNELS_COLLECTION),
            self.store.count(CHANNELS_COLLECTION, [NOTIFY_ENABLED]),
            self.store.count(VIDEOS_COLLECTION),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, StoreError):
                logger.warning("Count failed, computing statistics by enumeration: %s", result)
                return None
            if isinstance(result, BaseException):
                raise result

        total_channels, enabled_channels, total_videos = results
        with self.reading("videos"):
            videos = await self.store.query(
                VIDEOS_COLLECTION,
                [Limit(self.settings.stats_enumeration_cap)],
            )

        return HeaderStats(
            enabled_channels=enabled_channels,
            total_channels=total_channels,
            new_videos=_count_new(videos),
            total_videos=total_videos,
        )

    async def _stats_from_enumeration(self) -> HeaderStats:
        cap = self.settings.stats_enumeration_cap
        channels, videos = await asyncio.gather(
            self.store.query(CHANNELS_COLLECTION, [Limit(cap)]),
            self.store.query(VIDEOS_COLLECTION, [Limit(cap)]),
        )
        return HeaderStats(
            enabled_channels=sum(1 for doc in channels if doc.data.get("notify") is True),
            total_channels=len(channels),
            new_videos=_count_new(videos),
            total_videos=len(videos),
        )

    async def _last_sync_time(self) -> str:
        try:
            doc = await self.store.get(SETTINGS_COLLECTION, SYNC_STATUS_DOC_ID)
        except StoreError as e:
            logger.warning("Could not read last sync time: %s", e)
            return NO_SYNC_PLACEHOLDER

        value = doc.data.get(LAST_SYNC_FIELD) if doc is not None else None
        return str(value) if value else NO_SYNC_PLACEHOLDER
