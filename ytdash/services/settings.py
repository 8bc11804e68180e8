"""Bot configuration and sync bookkeeping stored in the settings collection."""

import logging
from typing import Any

from ytdash.core.constants import (
    BOT_CONFIG_DOC_ID,
    LAST_SYNC_FIELD,
    SETTINGS_COLLECTION,
    STATS_CACHE_PREFIX,
    SYNC_STATUS_DOC_ID,
)
from ytdash.core.exceptions import ErrorKind, StoreError
from ytdash.core.schemas import BotSettings, utc_now_iso
from ytdash.services.base import StoreBackedService

logger = logging.getLogger(__name__)


def deep_merge(base: dict[str, Any], changes: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``changes`` into a copy of ``base``."""
    merged = dict(base)
    for key, value in changes.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class SettingsService(StoreBackedService):
    """Reads and writes the ``bot-config`` and ``sync-status`` documents."""

    invalidates = (STATS_CACHE_PREFIX,)

    async def get_bot_settings(self) -> BotSettings:
        """Return stored bot settings, or the defaults when none are stored."""
        with self.reading("settings"):
            doc = await self.store.get(SETTINGS_COLLECTION, BOT_CONFIG_DOC_ID)
        if doc is None:
            return BotSettings()
        return BotSettings.model_validate(doc.data)

    async def update_bot_settings(self, changes: dict[str, Any]) -> BotSettings:
        """Merge a partial update into the stored settings.

        Args:
            changes: Nested partial settings, e.g. ``{"polling": {...}}``

        Returns:
            The settings as stored after the update

        Raises:
            pydantic.ValidationError: If the merged settings are invalid
            UpdateError: If the store fails
        """
        current = await self.get_bot_settings()
        merged = deep_merge(current.model_dump(exclude={"last_updated"}), changes)
        merged.pop("last_updated", None)

        settings = BotSettings.model_validate({**merged, "last_updated": utc_now_iso()})
        with self.writing("update settings"):
            await self._upsert(BOT_CONFIG_DOC_ID, settings.model_dump())

        logger.info("Bot settings updated", extra={"sections": sorted(changes)})
        return settings

    async def get_last_sync_time(self) -> str | None:
        with self.reading("sync status"):
            doc = await self.store.get(SETTINGS_COLLECTION, SYNC_STATUS_DOC_ID)
        if doc is None:
            return None
        return doc.data.get(LAST_SYNC_FIELD)

    async def record_sync(self, timestamp: str | None = None) -> str:
        """Store the time of the latest bot sync.

        Returns:
            The recorded timestamp
        """
        timestamp = timestamp or utc_now_iso()
        with self.writing("record sync"):
            await self._upsert(SYNC_STATUS_DOC_ID, {LAST_SYNC_FIELD: timestamp})
        self.invalidate()
        return timestamp

    async def _upsert(self, document_id: str, data: dict[str, Any]) -> None:
        try:
            await self.store.update(SETTINGS_COLLECTION, document_id, data)
        except StoreError as e:
            if e.kind is not ErrorKind.NOT_FOUND:
                raise
            await self.store.create(SETTINGS_COLLECTION, data, document_id=document_id)
