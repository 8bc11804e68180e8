"""Pagination strategies shared by the listing services.

Two strategies are available and callers pick one explicitly:

- :class:`CursorPagination` fetches one row beyond the page size to learn
  whether more rows exist and returns an opaque cursor for the next page.
- :class:`OffsetPagination` skips ``(page - 1) * limit`` rows and counts the
  matching rows to report a total.

Page bookkeeping (``has_more``, ``next_cursor``) is computed on the rows the
store returned, before any in-process refinement. When an offset query falls
back to equality filters, the dropped range filters are applied before the
page is sliced so the total and the offsets describe the same rows.
"""

import asyncio
import base64
import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, ClassVar

from ytdash.core.exceptions import ErrorKind, InvalidCursorError, StoreError
from ytdash.core.schemas import CursorPage, OffsetPage
from ytdash.database.store import Document, DocumentStore, Limit, Offset, Predicate, StartAfter
from ytdash.services.query_builder import (
    QueryOutcome,
    count_matching,
    equality_only,
    run_query,
)

logger = logging.getLogger(__name__)

DEFAULT_ENUMERATION_CAP = 1000


def encode_cursor(document_id: str) -> str:
    """Wrap a document id in an opaque, URL-safe token."""
    raw = json.dumps({"after": document_id}, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode_cursor(token: str) -> str:
    """Recover the document id from a cursor token.

    Raises:
        InvalidCursorError: If the token was not produced by :func:`encode_cursor`
    """
    try:
        padded = token + "=" * (-len(token) % 4)
        payload = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
    except ValueError as e:
        raise InvalidCursorError(f"Malformed cursor: {token!r}") from e

    after = payload.get("after") if isinstance(payload, dict) else None
    if not isinstance(after, str) or not after:
        raise InvalidCursorError(f"Malformed cursor: {token!r}")
    return after


@dataclass
class PageWindow:
    """Rows of one page plus the bookkeeping needed to build a response."""

    documents: list[Document]
    has_more: bool
    next_cursor: str | None = None
    total: int | None = None
    fallback_used: bool = False


class PaginationStrategy(ABC):
    """How a listing query is split into pages."""

    name: ClassVar[str]

    @property
    @abstractmethod
    def size(self) -> int:
        """Rows per page."""

    @property
    @abstractmethod
    def position(self) -> str | None:
        """Where in the result set this page starts; None for the first page."""

    @abstractmethod
    async def fetch(
        self,
        store: DocumentStore,
        collection: str,
        predicates: Sequence[Predicate],
        enumeration_cap: int = DEFAULT_ENUMERATION_CAP,
    ) -> PageWindow:
        """Fetch the page described by this strategy."""

    @abstractmethod
    def build_page(self, items: list[Any], window: PageWindow) -> CursorPage | OffsetPage:
        """Wrap refined items and the window bookkeeping in a result page."""


@dataclass(frozen=True)
class CursorPagination(PaginationStrategy):
    """Keyset pagination: ``page_size`` rows after the row named by ``cursor``."""

    page_size: int
    cursor: str | None = None

    name: ClassVar[str] = "cursor"

    def __post_init__(self) -> None:
        if self.page_size < 1:
            raise ValueError("page_size must be at least 1")

    @property
    def size(self) -> int:
        return self.page_size

    @property
    def position(self) -> str | None:
        return self.cursor

    async def fetch(
        self,
        store: DocumentStore,
        collection: str,
        predicates: Sequence[Predicate],
        enumeration_cap: int = DEFAULT_ENUMERATION_CAP,
    ) -> PageWindow:
        after = decode_cursor(self.cursor) if self.cursor else None

        query: list[Predicate] = [*predicates, Limit(self.page_size + 1)]
        if after is not None:
            query.append(StartAfter(after))

        try:
            outcome = await run_query(store, collection, query)
        except StoreError as e:
            if after is not None and e.kind is ErrorKind.NOT_FOUND:
                raise InvalidCursorError("Cursor refers to a document that no longer exists") from e
            raise

        has_more = len(outcome.documents) > self.page_size
        page = outcome.documents[: self.page_size]
        next_cursor = encode_cursor(page[-1].id) if has_more else None

        return PageWindow(
            documents=outcome.apply_residual(page),
            has_more=has_more,
            next_cursor=next_cursor,
            fallback_used=outcome.fallback_used,
        )

    def build_page(self, items: list[Any], window: PageWindow) -> CursorPage:
        return CursorPage(
            items=items,
            page_size=self.page_size,
            has_more=window.has_more,
            next_cursor=window.next_cursor,
            fallback_used=window.fallback_used,
        )


@dataclass(frozen=True)
class OffsetPagination(PaginationStrategy):
    """Page-number pagination with a total count."""

    page: int = 1
    limit: int = 20

    name: ClassVar[str] = "offset"

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError("page must be at least 1")
        if self.limit < 1:
            raise ValueError("limit must be at least 1")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def size(self) -> int:
        return self.limit

    @property
    def position(self) -> str | None:
        return str(self.page)

    async def fetch(
        self,
        store: DocumentStore,
        collection: str,
        predicates: Sequence[Predicate],
        enumeration_cap: int = DEFAULT_ENUMERATION_CAP,
    ) -> PageWindow:
        query: list[Predicate] = [*predicates, Limit(self.limit), Offset(self.offset)]

        outcome, total = await asyncio.gather(
            run_query(store, collection, query),
            count_matching(store, collection, predicates, enumeration_cap),
        )

        if outcome.fallback_used:
            return await self._fetch_filtered(store, collection, predicates, enumeration_cap)

        return PageWindow(
            documents=outcome.documents,
            has_more=self.offset + len(outcome.documents) < total,
            total=total,
        )

    async def _fetch_filtered(
        self,
        store: DocumentStore,
        collection: str,
        predicates: Sequence[Predicate],
        enumeration_cap: int,
    ) -> PageWindow:
        # Residual filters run before slicing so offsets and total count the same rows
        kept, dropped = equality_only(predicates)
        documents = await store.query(collection, [*kept, Limit(enumeration_cap)])
        matching = QueryOutcome(documents, fallback_used=True, dropped=dropped).apply_residual(
            documents
        )

        page = matching[self.offset : self.offset + self.limit]
        return PageWindow(
            documents=page,
            has_more=self.offset + len(page) < len(matching),
            total=len(matching),
            fallback_used=True,
        )

    def build_page(self, items: list[Any], window: PageWindow) -> OffsetPage:
        return OffsetPage(
            items=items,
            page=self.page,
            limit=self.limit,
            total=window.total or 0,
            has_more=window.has_more,
            fallback_used=window.fallback_used,
        )
