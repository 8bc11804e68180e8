"""Video listing and interaction operations."""

import logging

from ytdash.core.constants import STATS_CACHE_PREFIX, VIDEOS_CACHE_PREFIX, VIDEOS_COLLECTION
from ytdash.core.exceptions import VideoNotFoundError
from ytdash.core.schemas import CursorPage, OffsetPage, Video, VideoCreate, VideoFilters, utc_now_iso
from ytdash.database.store import Increment
from ytdash.services.base import StoreBackedService
from ytdash.services.cache import build_cache_key
from ytdash.services.pagination import CursorPagination, PaginationStrategy
from ytdash.services.query_builder import build_video_predicates
from ytdash.services.search import VIDEO_SEARCH_FIELDS, refine_items

logger = logging.getLogger(__name__)


class VideoService(StoreBackedService):
    """Operations on discovered videos.

    Every successful write clears the ``videos:`` and ``stats:`` cache
    namespaces before returning.
    """

    invalidates = (VIDEOS_CACHE_PREFIX, STATS_CACHE_PREFIX)

    async def list_videos(
        self,
        filters: VideoFilters | None = None,
        pagination: PaginationStrategy | None = None,
    ) -> CursorPage | OffsetPage:
        """List videos newest first.

        Args:
            filters: Date range, favorite/unviewed flags and search term
            pagination: Strategy to page with; cursor pagination by default

        Returns:
            Page of videos matching the filters

        Raises:
            FetchError: If the store fails
            InvalidCursorError: If the cursor is malformed or stale
        """
        filters = filters or VideoFilters()
        pagination = pagination or CursorPagination(self.settings.default_video_page_size)

        key = build_cache_key(
            VIDEOS_CACHE_PREFIX,
            pagination.name,
            filters.cache_signature(),
            pagination.size,
            pagination.position,
        )
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        with self.reading("videos"):
            window = await pagination.fetch(
                self.store,
                VIDEOS_COLLECTION,
                build_video_predicates(filters),
                self.settings.stats_enumeration_cap,
            )

        videos = [Video.from_document(doc.id, doc.data) for doc in window.documents]
        page = pagination.build_page(
            refine_items(videos, filters.search_term, VIDEO_SEARCH_FIELDS),
            window,
        )

        self.cache.set(key, page, ttl=self.settings.cache_ttl_videos)
        return page

    async def get_video(self, video_id: str) -> Video | None:
        with self.reading(f"video {video_id}"):
            doc = await self.store.get(VIDEOS_COLLECTION, video_id)
        if doc is None:
            return None
        return Video.from_document(doc.id, doc.data)

    async def create_video(self, payload: VideoCreate) -> str:
        """Store a newly discovered video with zeroed interaction state.

        Returns:
            Id of the created video
        """
        with self.writing("create video"):
            video_id = await self.store.create(
                VIDEOS_COLLECTION,
                payload.to_document(),
                document_id=payload.video_id,
            )
        self.invalidate()
        logger.info("Created video %s", video_id)
        return video_id

    async def record_click(self, video_id: str) -> None:
        """Increment the click counter and mark the video as viewed.

        Raises:
            VideoNotFoundError: If the video does not exist
            UpdateError: If the store fails
        """
        changes = {
            "click_count": Increment(1),
            "is_viewed": True,
            "last_viewed_at": utc_now_iso(),
        }
        with self.writing("record video click", VideoNotFoundError, video_id):
            await self.store.update(VIDEOS_COLLECTION, video_id, changes)
        self.invalidate()

    async def toggle_favorite(self, video_id: str) -> bool:
        """Flip the favorite flag.

        Returns:
            The new favorite state

        Raises:
            VideoNotFoundError: If the video does not exist
            UpdateError: If the store fails
        """
        with self.writing("toggle favorite", VideoNotFoundError, video_id):
            doc = await self.store.get(VIDEOS_COLLECTION, video_id)
            if doc is None:
                raise VideoNotFoundError(video_id)
            is_favorite = not doc.data.get("is_favorite", False)
            await self.store.update(VIDEOS_COLLECTION, video_id, {"is_favorite": is_favorite})
        self.invalidate()
        return is_favorite

    async def delete_video(self, video_id: str) -> None:
        with self.writing("delete video", VideoNotFoundError, video_id):
            await self.store.delete(VIDEOS_COLLECTION, video_id)
        self.invalidate()
        logger.info("Deleted video %s", video_id)
