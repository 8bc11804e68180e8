"""Tests for the query cache.

This module tests:
- TTL expiry at the boundary
- Prefix invalidation
- Disabled mode
- Snapshot semantics on write and read
- Cache key construction
"""

from ytdash.services.cache import QueryCache, build_cache_key


class TestExpiry:
    """Entries live exactly as long as their TTL."""

    def test_entry_valid_at_ttl_boundary(self, cache, clock) -> None:
        cache.set("videos:a", [1, 2], ttl=10)

        clock.advance(10)
        assert cache.get("videos:a") == [1, 2]

        clock.advance(0.001)
        assert cache.get("videos:a") is None

    def test_expired_entry_is_evicted_on_read(self, cache, clock) -> None:
        cache.set("videos:a", "x", ttl=1)
        clock.advance(5)

        assert cache.get("videos:a") is None
        assert "videos:a" not in cache.keys()

    def test_default_ttl_used_when_none_given(self, clock) -> None:
        cache = QueryCache(default_ttl=30, clock=clock)
        cache.set("stats:header", {"n": 1})

        clock.advance(29)
        assert cache.get("stats:header") == {"n": 1}
        clock.advance(2)
        assert cache.get("stats:header") is None

    def test_missing_key(self, cache) -> None:
        assert cache.get("nothing") is None


class TestInvalidation:
    """Prefix clears remove exactly the matching keys."""

    def test_clear_prefix_keeps_other_namespaces(self, cache) -> None:
        cache.set("videos:list:cursor:{}:20:first", 1)
        cache.set("videos:list:offset:{}:20:2", 2)
        cache.set("channels:list:cursor:{}:50:first", 3)

        removed = cache.clear("videos:")

        assert removed == 2
        assert cache.keys() == ["channels:list:cursor:{}:50:first"]

    def test_clear_all(self, cache) -> None:
        cache.set("videos:a", 1)
        cache.set("stats:header", 2)

        assert cache.clear() == 2
        assert len(cache) == 0

    def test_invalidate_several_prefixes(self, cache) -> None:
        cache.set("videos:a", 1)
        cache.set("stats:header", 2)
        cache.set("channels:b", 3)

        assert cache.invalidate("videos:", "stats:") == 2
        assert cache.keys() == ["channels:b"]


class TestDisabledCache:
    """A disabled cache never stores anything."""

    def test_set_then_get_misses(self, clock) -> None:
        cache = QueryCache(enabled=False, clock=clock)
        cache.set("videos:a", 1)

        assert cache.get("videos:a") is None
        assert len(cache) == 0

    def test_clear_is_noop(self, clock) -> None:
        cache = QueryCache(enabled=False, clock=clock)
        assert cache.clear("videos:") == 0


class TestSnapshots:
    """Stored values are isolated from later caller mutation."""

    def test_mutating_original_does_not_change_cached_value(self, cache) -> None:
        value = {"items": [1, 2, 3]}
        cache.set("videos:a", value)

        value["items"].append(4)

        assert cache.get("videos:a") == {"items": [1, 2, 3]}

    def test_mutating_returned_value_does_not_change_cached_value(self, cache) -> None:
        cache.set("videos:a", {"items": [1, 2, 3]})

        cache.get("videos:a")["items"].clear()

        assert cache.get("videos:a") == {"items": [1, 2, 3]}


class TestCacheKeys:
    """Keys are deterministic and start with their namespace."""

    def test_first_page_token(self) -> None:
        key = build_cache_key("videos:", "cursor", '{"a":1}', 20)
        assert key == 'videos:list:cursor:{"a":1}:20:first'

    def test_position_included(self) -> None:
        assert build_cache_key("channels:", "offset", "{}", 50, 3).endswith(":50:3")

    def test_distinct_positions_give_distinct_keys(self) -> None:
        first = build_cache_key("videos:", "cursor", "{}", 20, None)
        second = build_cache_key("videos:", "cursor", "{}", 20, "abc")
        assert first != second
        assert first.startswith("videos:") and second.startswith("videos:")
