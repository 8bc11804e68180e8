"""Shared plumbing for the entity services."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from ytdash.core.config import Settings, get_settings
from ytdash.core.exceptions import (
    AlreadyExistsError,
    ErrorKind,
    FetchError,
    NotFoundError,
    StoreError,
    UpdateError,
)
from ytdash.core.logging_config import log_cache_invalidation
from ytdash.database.store import DocumentStore
from ytdash.services.cache import QueryCache

logger = logging.getLogger(__name__)


class StoreBackedService:
    """Base class holding the store, the query cache and settings.

    Args:
        store: Document store to read from and write to
        cache: Query cache shared by all services of the process
        settings: Application settings; the cached global settings when omitted
    """

    #: Cache namespaces cleared after every successful write
    invalidates: tuple[str, ...] = ()

    def __init__(
        self,
        store: DocumentStore,
        cache: QueryCache,
        settings: Settings | None = None,
    ) -> None:
        self.store = store
        self.cache = cache
        self.settings = settings or get_settings()

    def invalidate(self) -> int:
        removed = self.cache.invalidate(*self.invalidates)
        log_cache_invalidation(logger, self.invalidates, removed)
        return removed

    @contextmanager
    def reading(self, what: str) -> Iterator[None]:
        """Turn store failures during a read into :class:`FetchError`."""
        try:
            yield
        except StoreError as e:
            logger.error("Failed to fetch %s: %s", what, e)
            raise FetchError(f"Failed to fetch {what}") from e

    @contextmanager
    def writing(
        self,
        what: str,
        not_found: type[NotFoundError] | None = None,
        entity_id: str | None = None,
    ) -> Iterator[None]:
        """Turn store failures during a write into domain errors.

        Args:
            what: Description used in log and error messages
            not_found: Error raised when the target document is missing
            entity_id: Id reported by ``not_found``
        """
        try:
            yield
        except StoreError as e:
            if e.kind is ErrorKind.NOT_FOUND and not_found is not None:
                raise not_found(entity_id or "") from e
            if e.kind is ErrorKind.ALREADY_EXISTS:
                raise AlreadyExistsError(f"Cannot {what}: {e}") from e
            logger.error("Failed to %s: %s", what, e)
            raise UpdateError(f"Failed to {what}") from e
