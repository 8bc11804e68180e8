"""MongoDB document store.

This module handles MongoDB connection management and translates store
predicates into MongoDB filters, sorts and keyset clauses.
"""

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError, OperationFailure, PyMongoError

from ytdash.core.config import get_settings
from ytdash.core.constants import CHANNELS_COLLECTION, VIDEOS_COLLECTION
from ytdash.core.exceptions import ErrorKind, StoreError
from ytdash.database.store import (
    Document,
    DocumentStore,
    Increment,
    Operator,
    OrderBy,
    Predicate,
    Where,
    not_found,
    split_predicates,
    track_operation,
)

logger = logging.getLogger(__name__)

_OPERATORS = {
    Operator.EQ: "$eq",
    Operator.GTE: "$gte",
    Operator.LTE: "$lte",
    Operator.GT: "$gt",
    Operator.LT: "$lt",
}

# Server errors raised when a sort cannot be planned or executed without an index:
# 96 OperationFailed (sort exceeded memory), 291 NoQueryExecutionPlans,
# 292 QueryExceededMemoryLimitNoDiskUseAllowed
PRECONDITION_ERROR_CODES = frozenset({96, 291, 292})


@dataclass
class MongoQuery:
    """Compiled form of a predicate list."""

    filter: dict[str, Any] = field(default_factory=dict)
    sort: list[tuple[str, int]] = field(default_factory=list)
    skip: int = 0
    limit: int | None = None


def compile_filter(wheres: Sequence[Where]) -> dict[str, Any]:
    """Merge field comparisons into one MongoDB filter document."""
    conditions: dict[str, dict[str, Any]] = {}
    for where in wheres:
        conditions.setdefault(where.field, {})[_OPERATORS[where.op]] = where.value

    compiled: dict[str, Any] = {}
    for field_name, ops in conditions.items():
        if list(ops) == ["$eq"]:
            compiled[field_name] = ops["$eq"]
        else:
            compiled[field_name] = ops
    return compiled


def keyset_clause(
    orders: Sequence[OrderBy],
    anchor_id: Any,
    anchor: dict[str, Any],
) -> dict[str, Any]:
    """Build the ``$or`` clause selecting documents after ``anchor``.

    The ordering is the given sort fields followed by ``_id`` ascending.
    Null values sort before every other value.
    """
    clauses: list[dict[str, Any]] = []
    prefix: dict[str, Any] = {}

    for order in orders:
        value = anchor.get(order.field)
        if order.descending:
            if value is not None:
                clauses.append({**prefix, order.field: {"$lt": value}})
                clauses.append({**prefix, order.field: None})
        elif value is None:
            clauses.append({**prefix, order.field: {"$ne": None}})
        else:
            clauses.append({**prefix, order.field: {"$gt": value}})
        prefix[order.field] = value

    clauses.append({**prefix, "_id": {"$gt": anchor_id}})
    return {"$or": clauses}


def compile_predicates(
    predicates: Sequence[Predicate],
    anchor: Document | None = None,
) -> MongoQuery:
    """Translate store predicates into a :class:`MongoQuery`.

    Args:
        predicates: Filters, orderings and paging predicates
        anchor: Document named by a ``StartAfter`` predicate, already fetched

    Returns:
        Compiled query
    """
    wheres, orders, limit, offset, _ = split_predicates(predicates)

    query_filter = compile_filter(wheres)
    if anchor is not None:
        keyset = keyset_clause(orders, anchor.id, anchor.data)
        query_filter = {"$and": [query_filter, keyset]} if query_filter else keyset

    sort = [(order.field, DESCENDING if order.descending else ASCENDING) for order in orders]
    sort.append(("_id", ASCENDING))

    return MongoQuery(filter=query_filter, sort=sort, skip=offset, limit=limit)


def compile_update(changes: dict[str, Any]) -> dict[str, Any]:
    """Split a partial update into ``$set`` and ``$inc`` sections."""
    update: dict[str, dict[str, Any]] = {}
    for key, value in changes.items():
        if isinstance(value, Increment):
            update.setdefault("$inc", {})[key] = value.amount
        else:
            update.setdefault("$set", {})[key] = value
    return update


def translate_error(exc: PyMongoError, collection: str) -> StoreError:
    """Classify a driver exception."""
    if isinstance(exc, DuplicateKeyError):
        kind = ErrorKind.ALREADY_EXISTS
    elif isinstance(exc, OperationFailure) and exc.code in PRECONDITION_ERROR_CODES:
        kind = ErrorKind.PRECONDITION_FAILED
    else:
        kind = ErrorKind.TRANSIENT
    return StoreError(kind, str(exc), collection=collection)


@contextmanager
def _translated(collection: str) -> Iterator[None]:
    try:
        yield
    except PyMongoError as e:
        raise translate_error(e, collection) from e


def _to_document(raw: dict[str, Any]) -> Document:
    document_id = raw.pop("_id")
    return Document(str(document_id), raw)


class MongoDocumentStore(DocumentStore):
    """:class:`DocumentStore` backed by MongoDB through motor.

    Document ids are stored as string ``_id`` values.

    Usage:
        async with MongoDocumentStore() as store:
            await store.get("videos", "abc")
    """

    name = "mongodb"

    def __init__(
        self,
        url: str | None = None,
        database: str | None = None,
        client: AsyncIOMotorClient | None = None,
    ) -> None:
        settings = get_settings()
        self.url = url or settings.mongodb_url
        self.database_name = database or settings.mongodb_database
        self.client: AsyncIOMotorClient | None = client
        self.db: AsyncIOMotorDatabase | None = None
        self._initialized = False

    async def initialize(self) -> None:
        """Initialize MongoDB connection."""
        if self._initialized:
            return
        if self.client is None:
            self.client = AsyncIOMotorClient(self.url)
        self.db = self.client[self.database_name]
        self._initialized = True

    async def connect(self) -> None:
        await self.initialize()
        try:
            await self.init_indexes()
        except PyMongoError as e:
            logger.warning("Index initialization failed: %s", e)

    async def close(self) -> None:
        """Close MongoDB connection."""
        if self.client and self._initialized:
            self.client.close()
            self._initialized = False

    async def ping(self) -> bool:
        await self.initialize()
        try:
            await self.client.admin.command("ping")
        except PyMongoError as e:
            logger.warning("MongoDB ping failed: %s", e)
            return False
        return True

    async def init_indexes(self) -> None:
        """Create the indexes used by dashboard listings."""
        videos = self.db[VIDEOS_COLLECTION]
        await videos.create_index([("discovered_at", DESCENDING), ("_id", ASCENDING)])
        await videos.create_index([("is_favorite", ASCENDING), ("discovered_at", DESCENDING)])
        await videos.create_index([("is_viewed", ASCENDING), ("discovered_at", DESCENDING)])

        channels = self.db[CHANNELS_COLLECTION]
        await channels.create_index("notify")
        for sort_field in ("title", "subscriber_count", "last_upload_at"):
            await channels.create_index([(sort_field, ASCENDING), ("_id", ASCENDING)])

    async def get(self, collection: str, document_id: str) -> Document | None:
        await self.initialize()
        with track_operation("get", collection), _translated(collection):
            raw = await self.db[collection].find_one({"_id": document_id})
        return _to_document(raw) if raw is not None else None

    async def query(self, collection: str, predicates: Sequence[Predicate]) -> list[Document]:
        await self.initialize()
        _, _, _, _, start_after = split_predicates(predicates)

        with track_operation("query", collection), _translated(collection):
            anchor = None
            if start_after is not None:
                anchor = await self.get(collection, start_after)
                if anchor is None:
                    raise not_found(collection, start_after)

            compiled = compile_predicates(predicates, anchor)
            cursor = self.db[collection].find(compiled.filter).sort(compiled.sort)
            if compiled.skip:
                cursor = cursor.skip(compiled.skip)
            if compiled.limit is not None:
                cursor = cursor.limit(compiled.limit)

            return [_to_document(raw) async for raw in cursor]

    async def create(
        self,
        collection: str,
        data: dict[str, Any],
        document_id: str | None = None,
    ) -> str:
        await self.initialize()
        document_id = document_id or str(ObjectId())
        with track_operation("create", collection), _translated(collection):
            await self.db[collection].insert_one({**data, "_id": document_id})
        return document_id

    async def update(self, collection: str, document_id: str, changes: dict[str, Any]) -> None:
        await self.initialize()
        with track_operation("update", collection), _translated(collection):
            result = await self.db[collection].update_one(
                {"_id": document_id},
                compile_update(changes),
            )
            if result.matched_count == 0:
                raise not_found(collection, document_id)

    async def delete(self, collection: str, document_id: str) -> None:
        await self.initialize()
        with track_operation("delete", collection), _translated(collection):
            result = await self.db[collection].delete_one({"_id": document_id})
            if result.deleted_count == 0:
                raise not_found(collection, document_id)

    async def count(self, collection: str, predicates: Sequence[Predicate] = ()) -> int:
        await self.initialize()
        wheres, _, _, _, _ = split_predicates(predicates)
        with track_operation("count", collection), _translated(collection):
            return await self.db[collection].count_documents(compile_filter(wheres))
