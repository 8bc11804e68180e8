"""Process-local query cache with per-entry TTL and prefix invalidation.

Each process (or each short-lived invocation, when the cache is disabled)
owns its own :class:`QueryCache`. Services receive the instance explicitly.
"""

import copy
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ytdash.core.constants import FIRST_PAGE_TOKEN
from ytdash.core.metrics import record_cache_invalidation, record_cache_lookup

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    key: str
    data: Any
    timestamp: float
    ttl: float

    def is_valid(self, now: float) -> bool:
        return now - self.timestamp <= self.ttl


class QueryCache:
    """Key/value snapshot store for query results.

    Values are deep-copied on write and on read so mutating a stored or a
    returned object never alters the cached snapshot. Expired entries are
    evicted on read.

    Args:
        default_ttl: TTL in seconds used when ``set`` gets none
        enabled: When False every read misses and every write is dropped
        clock: Monotonic time source, injectable for tests
    """

    def __init__(
        self,
        default_ttl: float = 300.0,
        enabled: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.default_ttl = default_ttl
        self.enabled = enabled
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None when absent or expired."""
        if not self.enabled:
            return None

        entry = self._entries.get(key)
        if entry is not None and not entry.is_valid(self._clock()):
            del self._entries[key]
            entry = None

        record_cache_lookup(key, hit=entry is not None)
        return copy.deepcopy(entry.data) if entry is not None else None

    def set(self, key: str, data: Any, ttl: float | None = None) -> None:
        if not self.enabled:
            return
        self._entries[key] = CacheEntry(
            key=key,
            data=copy.deepcopy(data),
            timestamp=self._clock(),
            ttl=self.default_ttl if ttl is None else ttl,
        )

    def clear(self, prefix: str | None = None) -> int:
        """Remove every entry, or only those whose key starts with ``prefix``.

        Returns:
            Number of removed entries
        """
        if prefix is None:
            removed = len(self._entries)
            self._entries.clear()
        else:
            doomed = [key for key in self._entries if key.startswith(prefix)]
            for key in doomed:
                del self._entries[key]
            removed = len(doomed)

        record_cache_invalidation(prefix or "", removed)
        return removed

    def invalidate(self, *prefixes: str) -> int:
        """Clear several namespaces at once."""
        return sum(self.clear(prefix) for prefix in prefixes)

    def keys(self) -> list[str]:
        """Keys currently held, including entries not yet evicted."""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


def build_cache_key(
    namespace: str,
    strategy: str,
    signature: str,
    size: int,
    position: str | int | None = None,
) -> str:
    """Build a deterministic cache key for a listing query.

    Args:
        namespace: Cache namespace prefix such as ``videos:``
        strategy: Pagination strategy name
        signature: Serialized filters
        size: Page size
        position: Cursor token or page number; the first page when None

    Returns:
        Key string starting with ``namespace``
    """
    token = FIRST_PAGE_TOKEN if position in (None, "") else str(position)
    return f"{namespace}list:{strategy}:{signature}:{size}:{token}"
