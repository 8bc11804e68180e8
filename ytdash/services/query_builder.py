"""Translate dashboard filters into store predicates and run them.

Ordering predicates are always appended last. When the store rejects an
ordered query because a composite index is missing, the query is retried
once with its equality filters only; range filters dropped by the retry are
re-applied in-process and the original ordering is not restored.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from ytdash.core.exceptions import StoreError
from ytdash.core.logging_config import log_query_fallback
from ytdash.core.metrics import record_query_fallback
from ytdash.core.schemas import ChannelFilters, VideoFilters, to_iso
from ytdash.database.store import (
    Document,
    DocumentStore,
    Limit,
    Operator,
    OrderBy,
    Predicate,
    SortDirection,
    Where,
)

logger = logging.getLogger(__name__)

VIDEO_SORT_FIELD = "discovered_at"

CHANNEL_SORT_FIELDS = {
    "name": "title",
    "subscribers": "subscriber_count",
    "last_video": "last_upload_at",
    "last_upload": "last_upload_at",
}


# =============================================================================
# Predicate Builders
# =============================================================================


def build_video_predicates(filters: VideoFilters) -> list[Predicate]:
    """Build predicates for a video listing.

    The search term is never sent to the store; see
    :func:`ytdash.services.search.refine_items`.
    """
    predicates: list[Predicate] = []

    date_range = filters.date_range
    if date_range.start is not None:
        start = to_iso(date_range.start, round_up=True)
        predicates.append(Where(VIDEO_SORT_FIELD, Operator.GTE, start))
    if date_range.end is not None:
        predicates.append(Where(VIDEO_SORT_FIELD, Operator.LTE, to_iso(date_range.end)))

    if filters.show_favorites_only:
        predicates.append(Where("is_favorite", Operator.EQ, True))
    if filters.show_unviewed_only:
        predicates.append(Where("is_viewed", Operator.EQ, False))

    predicates.append(OrderBy(VIDEO_SORT_FIELD, SortDirection.DESC))
    return predicates


def build_channel_predicates(filters: ChannelFilters) -> list[Predicate]:
    """Build predicates for a channel listing."""
    predicates: list[Predicate] = []

    if filters.notification_filter == "notify-on":
        predicates.append(Where("notify", Operator.EQ, True))
    elif filters.notification_filter == "notify-off":
        predicates.append(Where("notify", Operator.EQ, False))

    predicates.append(
        OrderBy(CHANNEL_SORT_FIELDS[filters.sort_by], SortDirection(filters.sort_order))
    )
    return predicates


def has_ordering(predicates: Sequence[Predicate]) -> bool:
    return any(isinstance(p, OrderBy) for p in predicates)


def filter_predicates(predicates: Sequence[Predicate]) -> list[Where]:
    return [p for p in predicates if isinstance(p, Where)]


def equality_only(predicates: Sequence[Predicate]) -> tuple[list[Predicate], list[Predicate]]:
    """Split predicates into those kept by the fallback and those dropped.

    Equality filters and paging predicates are kept; range filters and
    orderings are dropped.
    """
    kept: list[Predicate] = []
    dropped: list[Predicate] = []
    for predicate in predicates:
        if isinstance(predicate, Where) and not predicate.is_equality:
            dropped.append(predicate)
        elif isinstance(predicate, OrderBy):
            dropped.append(predicate)
        else:
            kept.append(predicate)
    return kept, dropped


# =============================================================================
# Execution
# =============================================================================


@dataclass
class QueryOutcome:
    """Documents returned by the store and how they were obtained.

    ``documents`` is the raw store result; range filters dropped by a
    fallback still have to be applied with :meth:`apply_residual`.
    """

    documents: list[Document]
    fallback_used: bool = False
    dropped: list[Predicate] = field(default_factory=list)

    @property
    def residual_filters(self) -> list[Where]:
        return [p for p in self.dropped if isinstance(p, Where)]

    def apply_residual(self, documents: Sequence[Document]) -> list[Document]:
        residual = self.residual_filters
        if not residual:
            return list(documents)
        return [doc for doc in documents if all(w.matches(doc.data) for w in residual)]


def _describe(predicate: Predicate) -> str:
    describe = getattr(predicate, "describe", None)
    return describe() if describe else repr(predicate)


async def run_query(
    store: DocumentStore,
    collection: str,
    predicates: Sequence[Predicate],
) -> QueryOutcome:
    """Run a query, retrying with equality filters when an index is missing.

    Raises:
        StoreError: Any failure other than a missing index on an ordered query,
            or a failure of the retry itself
    """
    try:
        documents = await store.query(collection, predicates)
        return QueryOutcome(documents)
    except StoreError as e:
        if not e.is_precondition_failure or not has_ordering(predicates):
            raise
        reason = str(e)

    kept, dropped = equality_only(predicates)
    log_query_fallback(logger, collection, [_describe(p) for p in dropped], reason)
    record_query_fallback(collection)

    documents = await store.query(collection, kept)
    return QueryOutcome(documents, fallback_used=True, dropped=dropped)


async def enumerate_matching(
    store: DocumentStore,
    collection: str,
    predicates: Sequence[Predicate],
    cap: int,
) -> list[Document]:
    """Fetch at most ``cap`` documents matching the filters of ``predicates``."""
    query: list[Predicate] = [*filter_predicates(predicates), Limit(cap)]
    outcome = await run_query(store, collection, query)
    return outcome.apply_residual(outcome.documents)


async def count_matching(
    store: DocumentStore,
    collection: str,
    predicates: Sequence[Predicate],
    cap: int,
) -> int:
    """Count documents matching the filters, enumerating when counting fails.

    The enumeration result is capped at ``cap`` documents.
    """
    wheres = filter_predicates(predicates)
    try:
        return await store.count(collection, wheres)
    except StoreError as e:
        logger.warning("Count on %s failed, enumerating instead: %s", collection, e)
    return len(await enumerate_matching(store, collection, wheres, cap))
