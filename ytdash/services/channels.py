"""Channel listing and notification management."""

import asyncio
import logging
from collections.abc import Sequence

from ytdash.core.constants import CHANNELS_CACHE_PREFIX, CHANNELS_COLLECTION, STATS_CACHE_PREFIX
from ytdash.core.exceptions import ChannelNotFoundError
from ytdash.core.schemas import (
    Channel,
    ChannelCreate,
    ChannelFilters,
    CursorPage,
    OffsetPage,
    utc_now_iso,
)
from ytdash.services.base import StoreBackedService
from ytdash.services.cache import build_cache_key
from ytdash.services.pagination import CursorPagination, PaginationStrategy
from ytdash.services.query_builder import build_channel_predicates
from ytdash.services.search import CHANNEL_SEARCH_FIELDS, refine_items

logger = logging.getLogger(__name__)


class ChannelService(StoreBackedService):
    """Operations on subscribed channels.

    Every successful write refreshes ``last_updated`` on the touched channels
    and clears the ``channels:`` and ``stats:`` cache namespaces.
    """

    invalidates = (CHANNELS_CACHE_PREFIX, STATS_CACHE_PREFIX)

    async def list_channels(
        self,
        filters: ChannelFilters | None = None,
        pagination: PaginationStrategy | None = None,
    ) -> CursorPage | OffsetPage:
        """List channels in the requested order.

        When the ordering needs an index the store does not have, the page is
        returned unordered with ``fallback_used`` set.

        Args:
            filters: Notification filter, sort options and search term
            pagination: Strategy to page with; cursor pagination by default

        Returns:
            Page of channels matching the filters
        """
        filters = filters or ChannelFilters()
        pagination = pagination or CursorPagination(self.settings.default_channel_page_size)

        key = build_cache_key(
            CHANNELS_CACHE_PREFIX,
            pagination.name,
            filters.cache_signature(),
            pagination.size,
            pagination.position,
        )
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        with self.reading("channels"):
            window = await pagination.fetch(
                self.store,
                CHANNELS_COLLECTION,
                build_channel_predicates(filters),
                self.settings.stats_enumeration_cap,
            )

        channels = [Channel.from_document(doc.id, doc.data) for doc in window.documents]
        page = pagination.build_page(
            refine_items(channels, filters.search_term, CHANNEL_SEARCH_FIELDS),
            window,
        )

        self.cache.set(key, page, ttl=self.settings.cache_ttl_channels)
        return page

    async def get_channel(self, channel_id: str) -> Channel | None:
        with self.reading(f"channel {channel_id}"):
            doc = await self.store.get(CHANNELS_COLLECTION, channel_id)
        if doc is None:
            return None
        return Channel.from_document(doc.id, doc.data)

    async def create_channel(self, payload: ChannelCreate) -> str:
        with self.writing("create channel"):
            channel_id = await self.store.create(
                CHANNELS_COLLECTION,
                payload.to_document(),
                document_id=payload.channel_id,
            )
        self.invalidate()
        logger.info("Subscribed channel %s", channel_id)
        return channel_id

    async def toggle_notification(self, channel_id: str) -> bool:
        """Flip the notify flag of a channel.

        Returns:
            The new notify state

        Raises:
            ChannelNotFoundError: If the channel does not exist
            UpdateError: If the store fails
        """
        with self.writing("toggle channel notification", ChannelNotFoundError, channel_id):
            doc = await self.store.get(CHANNELS_COLLECTION, channel_id)
            if doc is None:
                raise ChannelNotFoundError(channel_id)
            notify = not doc.data.get("notify", False)
            await self.store.update(
                CHANNELS_COLLECTION,
                channel_id,
                {"notify": notify, "last_updated": utc_now_iso()},
            )
        self.invalidate()
        return notify

    async def bulk_set_notifications(self, channel_ids: Sequence[str], notify: bool) -> None:
        """Set the notify flag on several channels concurrently.

        Every update runs to completion before the cache is cleared, even
        when some of them fail; the first failure is raised afterwards.

        Raises:
            ChannelNotFoundError: If any channel does not exist
            UpdateError: If the store fails
        """
        if not channel_ids:
            return

        timestamp = utc_now_iso()

        async def _set(channel_id: str) -> None:
            with self.writing("update channel notifications", ChannelNotFoundError, channel_id):
                await self.store.update(
                    CHANNELS_COLLECTION,
                    channel_id,
                    {"notify": notify, "last_updated": timestamp},
                )

        unique_ids = list(dict.fromkeys(channel_ids))
        results = await asyncio.gather(
            *(_set(channel_id) for channel_id in unique_ids),
            return_exceptions=True,
        )
        self.invalidate()

        failures = [result for result in results if isinstance(result, BaseException)]
        if failures:
            logger.warning(
                "Bulk notify=%s failed for %d of %d channels", notify, len(failures), len(unique_ids)
            )
            raise failures[0]
        logger.info("Set notify=%s on %d channels", notify, len(unique_ids))

    async def delete_channel(self, channel_id: str) -> None:
        with self.writing("delete channel", ChannelNotFoundError, channel_id):
            await self.store.delete(CHANNELS_COLLECTION, channel_id)
        self.invalidate()
        logger.info("Unsubscribed channel %s", channel_id)
