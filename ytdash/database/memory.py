"""In-process document store.

Used for local development (``STORE_BACKEND=memory``) and by the test suite.
It follows the same query semantics as the MongoDB store and can simulate
missing indexes and an unavailable count primitive.
"""

import copy
import logging
import uuid
from collections.abc import Iterable, Sequence
from typing import Any

from ytdash.core.exceptions import ErrorKind, StoreError
from ytdash.database.store import (
    Document,
    DocumentStore,
    Increment,
    OrderBy,
    Predicate,
    not_found,
    split_predicates,
    track_operation,
)

logger = logging.getLogger(__name__)


def _sort_key(value: Any) -> tuple[int, Any]:
    # Missing/None first, then numbers, then strings, like the database type order
    if value is None:
        return (0, 0)
    if isinstance(value, (bool, int, float)):
        return (1, value)
    if isinstance(value, str):
        return (2, value)
    return (3, str(value))


class MemoryDocumentStore(DocumentStore):
    """Dictionary-backed :class:`DocumentStore`.

    Args:
        collections: Initial documents as ``{collection: {id: data}}``
        unindexed_sorts: ``(collection, field)`` pairs whose ordering has no
            composite index; filtered queries ordering by them fail with
            ``PRECONDITION_FAILED``
        count_available: When False, ``count`` fails with ``TRANSIENT``
    """

    name = "memory"

    def __init__(
        self,
        collections: dict[str, dict[str, dict[str, Any]]] | None = None,
        unindexed_sorts: Iterable[tuple[str, str]] = (),
        count_available: bool = True,
    ) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {
            name: {doc_id: copy.deepcopy(data) for doc_id, data in docs.items()}
            for name, docs in (collections or {}).items()
        }
        self.unindexed_sorts = set(unindexed_sorts)
        self.count_available = count_available
        self.query_log: list[tuple[str, tuple[Predicate, ...]]] = []

    def _collection(self, name: str) -> dict[str, dict[str, Any]]:
        return self._collections.setdefault(name, {})

    def documents(self, collection: str) -> dict[str, dict[str, Any]]:
        """Snapshot of a collection, keyed by document id."""
        return copy.deepcopy(self._collection(collection))

    async def get(self, collection: str, document_id: str) -> Document | None:
        with track_operation("get", collection):
            data = self._collection(collection).get(document_id)
            if data is None:
                return None
            return Document(document_id, copy.deepcopy(data))

    async def query(self, collection: str, predicates: Sequence[Predicate]) -> list[Document]:
        with track_operation("query", collection):
            self.query_log.append((collection, tuple(predicates)))
            wheres, orders, limit, offset, start_after = split_predicates(predicates)

            if wheres:
                for order in orders:
                    if (collection, order.field) in self.unindexed_sorts:
                        raise StoreError(
                            ErrorKind.PRECONDITION_FAILED,
                            f"The query requires an index on {collection}.{order.field}",
                            collection=collection,
                        )

            docs = self._collection(collection)
            matched = [
                (doc_id, data)
                for doc_id, data in docs.items()
                if all(where.matches(data) for where in wheres)
            ]
            ordered = self._order(matched, orders)

            if start_after is not None:
                anchor = docs.get(start_after)
                if anchor is None:
                    raise not_found(collection, start_after)
                if all(doc_id != start_after for doc_id, _ in ordered):
                    ordered = self._order(ordered + [(start_after, anchor)], orders)
                position = next(i for i, (doc_id, _) in enumerate(ordered) if doc_id == start_after)
                ordered = ordered[position + 1 :]

            ordered = ordered[offset:]
            if limit is not None:
                ordered = ordered[:limit]

            return [Document(doc_id, copy.deepcopy(data)) for doc_id, data in ordered]

    @staticmethod
    def _order(
        rows: list[tuple[str, dict[str, Any]]],
        orders: list[OrderBy],
    ) -> list[tuple[str, dict[str, Any]]]:
        # Stable sorts applied from the last ordering to the first, on top of the id order
        result = sorted(rows, key=lambda row: row[0])
        for order in reversed(orders):
            result.sort(
                key=lambda row, f=order.field: _sort_key(row[1].get(f)),
                reverse=order.descending,
            )
        return result

    async def create(
        self,
        collection: str,
        data: dict[str, Any],
        document_id: str | None = None,
    ) -> str:
        with track_operation("create", collection):
            docs = self._collection(collection)
            document_id = document_id or uuid.uuid4().hex
            if document_id in docs:
                raise StoreError(
                    ErrorKind.ALREADY_EXISTS,
                    f"Document {document_id} already exists in {collection}",
                    collection=collection,
                )
            docs[document_id] = copy.deepcopy(data)
            return document_id

    async def update(self, collection: str, document_id: str, changes: dict[str, Any]) -> None:
        with track_operation("update", collection):
            data = self._collection(collection).get(document_id)
            if data is None:
                raise not_found(collection, document_id)
            for key, value in changes.items():
                if isinstance(value, Increment):
                    data[key] = (data.get(key) or 0) + value.amount
                else:
                    data[key] = copy.deepcopy(value)

    async def delete(self, collection: str, document_id: str) -> None:
        with track_operation("delete", collection):
            docs = self._collection(collection)
            if document_id not in docs:
                raise not_found(collection, document_id)
            del docs[document_id]

    async def count(self, collection: str, predicates: Sequence[Predicate] = ()) -> int:
        with track_operation("count", collection):
            if not self.count_available:
                raise StoreError(
                    ErrorKind.TRANSIENT,
                    "Count aggregation is unavailable",
                    collection=collection,
                )
            wheres, _, _, _, _ = split_predicates(predicates)
            return sum(
                1
                for data in self._collection(collection).values()
                if all(where.matches(data) for where in wheres)
            )
