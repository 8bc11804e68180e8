"""Tests for cursor and offset pagination.

This module tests:
- Cursor encoding and rejection of malformed cursors
- Walking every cursor page: page count, no duplicates, full coverage
- Offset pages: totals and has_more consistency
- Stale cursors pointing at deleted documents
- Walking both modes when a missing index forces the equality-only retry
"""

import math
from datetime import datetime, timezone

import pytest

from ytdash.core.exceptions import InvalidCursorError
from ytdash.core.schemas import DateRange, VideoFilters
from ytdash.database import MemoryDocumentStore
from ytdash.services.pagination import (
    CursorPagination,
    OffsetPagination,
    decode_cursor,
    encode_cursor,
)
from ytdash.services.query_builder import build_video_predicates

from tests.conftest import make_videos

PREDICATES = build_video_predicates(VideoFilters())


async def walk_cursor_pages(store, page_size: int) -> list[list[str]]:
    pages: list[list[str]] = []
    cursor = None
    while True:
        strategy = CursorPagination(page_size=page_size, cursor=cursor)
        window = await strategy.fetch(store, "videos", PREDICATES)
        pages.append([doc.id for doc in window.documents])
        if not window.has_more:
            return pages
        cursor = window.next_cursor


class TestCursorTokens:
    def test_decode_recovers_id(self) -> None:
        assert decode_cursor(encode_cursor("vid_42")) == "vid_42"

    def test_token_is_opaque(self) -> None:
        assert "vid_42" not in encode_cursor("vid_42")

    @pytest.mark.parametrize("token", ["not-a-cursor", "e30", "ünïcode", "bnVsbA"])
    def test_malformed_tokens_rejected(self, token) -> None:
        with pytest.raises(InvalidCursorError):
            decode_cursor(token)


class TestCursorPagination:
    """Walking cursor pages visits every document exactly once."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("count,page_size", [(7, 3), (9, 3), (1, 5), (10, 1)])
    async def test_walk_covers_everything_once(self, count, page_size) -> None:
        documents = make_videos(count)
        store = MemoryDocumentStore({"videos": documents})

        pages = await walk_cursor_pages(store, page_size)
        seen = [doc_id for page in pages for doc_id in page]

        assert len(pages) == math.ceil(count / page_size)
        assert len(seen) == len(set(seen))
        assert set(seen) == set(documents)

    @pytest.mark.asyncio
    async def test_pages_follow_sort_order_with_id_tiebreak(self) -> None:
        documents = make_videos(7)
        store = MemoryDocumentStore({"videos": documents})

        pages = await walk_cursor_pages(store, 3)
        seen = [doc_id for page in pages for doc_id in page]

        expected = sorted(documents, key=lambda d: (documents[d]["discovered_at"], d))
        expected = sorted(expected, key=lambda d: documents[d]["discovered_at"], reverse=True)
        assert seen == expected

    @pytest.mark.asyncio
    async def test_empty_collection(self) -> None:
        store = MemoryDocumentStore()
        window = await CursorPagination(page_size=5).fetch(store, "videos", PREDICATES)

        assert window.documents == []
        assert window.has_more is False
        assert window.next_cursor is None

    @pytest.mark.asyncio
    async def test_exact_multiple_has_no_trailing_empty_page(self) -> None:
        store = MemoryDocumentStore({"videos": make_videos(6)})
        first = await CursorPagination(page_size=3).fetch(store, "videos", PREDICATES)
        second = await CursorPagination(page_size=3, cursor=first.next_cursor).fetch(
            store, "videos", PREDICATES
        )

        assert first.has_more is True
        assert len(second.documents) == 3
        assert second.has_more is False
        assert second.next_cursor is None

    @pytest.mark.asyncio
    async def test_stale_cursor_raises_invalid_cursor(self) -> None:
        store = MemoryDocumentStore({"videos": make_videos(3)})
        strategy = CursorPagination(page_size=2, cursor=encode_cursor("deleted-video"))

        with pytest.raises(InvalidCursorError):
            await strategy.fetch(store, "videos", PREDICATES)

    def test_page_size_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            CursorPagination(page_size=0)


class TestOffsetPagination:
    """Offset pages report totals consistent with has_more."""

    @pytest.mark.asyncio
    async def test_pages_and_totals(self) -> None:
        store = MemoryDocumentStore({"videos": make_videos(7)})

        windows = [
            await OffsetPagination(page=page, limit=3).fetch(store, "videos", PREDICATES)
            for page in (1, 2, 3)
        ]

        assert [len(w.documents) for w in windows] == [3, 3, 1]
        assert [w.has_more for w in windows] == [True, True, False]
        assert all(w.total == 7 for w in windows)

    @pytest.mark.asyncio
    async def test_has_more_matches_offset_arithmetic(self) -> None:
        store = MemoryDocumentStore({"videos": make_videos(5)})
        strategy = OffsetPagination(page=2, limit=2)

        window = await strategy.fetch(store, "videos", PREDICATES)

        assert window.has_more == (strategy.offset + len(window.documents) < window.total)

    @pytest.mark.asyncio
    async def test_page_past_the_end(self) -> None:
        store = MemoryDocumentStore({"videos": make_videos(2)})
        window = await OffsetPagination(page=5, limit=10).fetch(store, "videos", PREDICATES)

        assert window.documents == []
        assert window.has_more is False
        assert window.total == 2

    @pytest.mark.asyncio
    async def test_total_falls_back_to_enumeration(self) -> None:
        store = MemoryDocumentStore({"videos": make_videos(4)}, count_available=False)
        window = await OffsetPagination(page=1, limit=2).fetch(store, "videos", PREDICATES)

        assert window.total == 4
        assert window.has_more is True

    def test_offset(self) -> None:
        assert OffsetPagination(page=3, limit=20).offset == 40

    @pytest.mark.parametrize("page,limit", [(0, 10), (1, 0)])
    def test_invalid_arguments(self, page, limit) -> None:
        with pytest.raises(ValueError):
            OffsetPagination(page=page, limit=limit)


class TestPaginationWithoutIndex:
    """A missing index must not hide rows from either pagination mode."""

    IN_RANGE = ["v007", "v008", "v009"]

    @pytest.fixture
    def unindexed_store(self) -> MemoryDocumentStore:
        return MemoryDocumentStore(
            {"videos": make_videos(10, duplicate_every=1)},
            unindexed_sorts={("videos", "discovered_at")},
        )

    @pytest.fixture
    def ranged_predicates(self):
        filters = VideoFilters(
            date_range=DateRange(
                start=datetime(2024, 8, 8, tzinfo=timezone.utc),
                end=datetime(2024, 8, 10, tzinfo=timezone.utc),
            )
        )
        return build_video_predicates(filters)

    @pytest.mark.asyncio
    async def test_offset_walk_reaches_every_matching_row(
        self, unindexed_store, ranged_predicates
    ) -> None:
        seen: list[str] = []
        windows = []
        for page in (1, 2):
            strategy = OffsetPagination(page=page, limit=2)
            window = await strategy.fetch(unindexed_store, "videos", ranged_predicates)
            windows.append(window)
            seen.extend(doc.id for doc in window.documents)

        assert sorted(seen) == self.IN_RANGE
        assert [w.has_more for w in windows] == [True, False]
        assert all(w.total == 3 for w in windows)
        assert all(w.fallback_used for w in windows)

    @pytest.mark.asyncio
    async def test_offset_total_matches_rows(self, unindexed_store, ranged_predicates) -> None:
        window = await OffsetPagination(page=1, limit=50).fetch(
            unindexed_store, "videos", ranged_predicates
        )

        assert window.total == len(window.documents) == 3
        assert window.has_more is False

    @pytest.mark.asyncio
    async def test_cursor_walk_reaches_every_matching_row(
        self, unindexed_store, ranged_predicates
    ) -> None:
        seen: list[str] = []
        cursor = None
        while True:
            strategy = CursorPagination(page_size=2, cursor=cursor)
            window = await strategy.fetch(unindexed_store, "videos", ranged_predicates)
            assert window.fallback_used is True
            seen.extend(doc.id for doc in window.documents)
            if not window.has_more:
                break
            cursor = window.next_cursor

        assert sorted(seen) == self.IN_RANGE
        assert len(seen) == len(set(seen))
