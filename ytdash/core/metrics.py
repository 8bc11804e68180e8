"""Prometheus metrics shared by the API and the service layer.

The HTTP middleware in ``ytdash.api.middleware.prometheus`` records request
metrics; the services record cache and store behaviour through the helpers
below.
"""

from prometheus_client import Counter, Gauge, Histogram

from ytdash.core.constants import CHANNELS_CACHE_PREFIX, STATS_CACHE_PREFIX, VIDEOS_CACHE_PREFIX

# API request metrics
api_requests_total = Counter(
    "ytdash_api_requests_total",
    "Total number of API requests",
    ["method", "endpoint", "status"],
)

api_request_duration_seconds = Histogram(
    "ytdash_api_request_duration_seconds",
    "API request latency in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, float("inf")),
)

# Query cache metrics
cache_lookups_total = Counter(
    "ytdash_cache_lookups_total",
    "Query cache lookups",
    ["namespace", "result"],
)

cache_invalidations_total = Counter(
    "ytdash_cache_invalidations_total",
    "Cache entries removed by invalidation",
    ["prefix"],
)

# Document store metrics
store_operations_total = Counter(
    "ytdash_store_operations_total",
    "Total number of document store operations",
    ["operation", "collection", "status"],
)

store_operation_duration_seconds = Histogram(
    "ytdash_store_operation_duration_seconds",
    "Document store operation latency in seconds",
    ["operation", "collection"],
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1, float("inf")),
)

query_fallbacks_total = Counter(
    "ytdash_query_fallbacks_total",
    "Queries retried with equality predicates only",
    ["collection"],
)

stats_enumeration_total = Counter(
    "ytdash_stats_enumeration_total",
    "Header statistics computed by enumeration instead of counts",
)

app_info = Gauge(
    "ytdash_app_info",
    "Application information",
    ["version", "store_backend"],
)


# Known cache namespaces; any other clear prefix is reported as "custom"
CACHE_NAMESPACES = (VIDEOS_CACHE_PREFIX, CHANNELS_CACHE_PREFIX, STATS_CACHE_PREFIX)


def _namespace(key: str) -> str:
    return key.split(":", 1)[0] if ":" in key else "other"


def _prefix_label(prefix: str) -> str:
    if not prefix:
        return "*"
    return prefix if prefix in CACHE_NAMESPACES else "custom"


def record_cache_lookup(key: str, hit: bool) -> None:
    """Record a cache hit or miss.

    Args:
        key: Cache key that was looked up
        hit: Whether a live entry was found
    """
    cache_lookups_total.labels(
        namespace=_namespace(key),
        result="hit" if hit else "miss",
    ).inc()


def record_cache_invalidation(prefix: str, removed: int) -> None:
    """Record entries removed by a prefix clear."""
    if removed:
        cache_invalidations_total.labels(prefix=_prefix_label(prefix)).inc(removed)


def record_store_operation(
    operation: str,
    collection: str,
    duration_seconds: float,
    status: str = "success",
) -> None:
    """Record a document store operation.

    Args:
        operation: Operation type (get, query, create, update, delete, count)
        collection: Collection name
        duration_seconds: Operation duration
        status: Operation status
    """
    store_operations_total.labels(
        operation=operation,
        collection=collection,
        status=status,
    ).inc()

    store_operation_duration_seconds.labels(
        operation=operation,
        collection=collection,
    ).observe(duration_seconds)


def record_query_fallback(collection: str) -> None:
    """Record a query that fell back to equality predicates."""
    query_fallbacks_total.labels(collection=collection).inc()
