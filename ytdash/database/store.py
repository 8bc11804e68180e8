"""Document store abstraction.

Services talk to the database through :class:`DocumentStore` using small
predicate objects instead of a driver-specific query language. Every failure
leaves the store as a :class:`~ytdash.core.exceptions.StoreError` carrying an
:class:`~ytdash.core.exceptions.ErrorKind`, so callers never inspect driver
exceptions or message strings.
"""

import time
from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from ytdash.core.exceptions import ErrorKind, StoreError
from ytdash.core.metrics import record_store_operation

# =============================================================================
# Documents
# =============================================================================


@dataclass
class Document:
    """Stored document: its id plus every other field."""

    id: str
    data: dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Predicates
# =============================================================================


class Operator(str, Enum):
    EQ = "=="
    GTE = ">="
    LTE = "<="
    GT = ">"
    LT = "<"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


_MISSING = object()


@dataclass(frozen=True)
class Where:
    """Field comparison filter."""

    field: str
    op: Operator
    value: Any

    @property
    def is_equality(self) -> bool:
        return self.op is Operator.EQ

    def matches(self, data: dict[str, Any]) -> bool:
        """Evaluate the filter against a document's fields.

        Documents missing the field never match, mirroring how the database
        treats absent fields in comparisons.
        """
        current = data.get(self.field, _MISSING)
        if current is _MISSING:
            return False
        if self.op is Operator.EQ:
            return bool(current == self.value)
        if current is None or self.value is None:
            return False
        try:
            if self.op is Operator.GTE:
                return bool(current >= self.value)
            if self.op is Operator.LTE:
                return bool(current <= self.value)
            if self.op is Operator.GT:
                return bool(current > self.value)
            return bool(current < self.value)
        except TypeError:
            return False

    def describe(self) -> str:
        return f"{self.field} {self.op.value} {self.value!r}"


@dataclass(frozen=True)
class OrderBy:
    field: str
    direction: SortDirection = SortDirection.ASC

    @property
    def descending(self) -> bool:
        return self.direction is SortDirection.DESC

    def describe(self) -> str:
        return f"order by {self.field} {self.direction.value}"


@dataclass(frozen=True)
class Limit:
    count: int


@dataclass(frozen=True)
class Offset:
    count: int


@dataclass(frozen=True)
class StartAfter:
    """Resume after the given document in the query's ordering."""

    document_id: str


Predicate = Union[Where, OrderBy, Limit, Offset, StartAfter]


@dataclass(frozen=True)
class Increment:
    """Update value that atomically adds ``amount`` to the stored number."""

    amount: int = 1


def split_predicates(predicates: Sequence[Predicate]) -> tuple[
    list[Where], list[OrderBy], int | None, int, str | None
]:
    """Separate a predicate list into filters, orderings and paging values.

    Returns:
        Tuple of (filters, orderings, limit, offset, start_after_id)
    """
    wheres: list[Where] = []
    orders: list[OrderBy] = []
    limit: int | None = None
    offset = 0
    start_after: str | None = None

    for predicate in predicates:
        if isinstance(predicate, Where):
            wheres.append(predicate)
        elif isinstance(predicate, OrderBy):
            orders.append(predicate)
        elif isinstance(predicate, Limit):
            limit = predicate.count
        elif isinstance(predicate, Offset):
            offset = predicate.count
        elif isinstance(predicate, StartAfter):
            start_after = predicate.document_id

    return wheres, orders, limit, offset, start_after


@contextmanager
def track_operation(operation: str, collection: str) -> Iterator[None]:
    """Record duration and outcome of a store call in Prometheus."""
    start = time.perf_counter()
    status = "success"
    try:
        yield
    except StoreError as e:
        status = e.kind.value
        raise
    finally:
        record_store_operation(operation, collection, time.perf_counter() - start, status)


# =============================================================================
# Store Interface
# =============================================================================


class DocumentStore(ABC):
    """Async document store used by the service layer.

    Implementations raise :class:`StoreError` for every failure. Reads of a
    single document return ``None`` when it does not exist; writes targeting
    a missing document raise with ``ErrorKind.NOT_FOUND``.
    """

    name = "store"

    async def connect(self) -> None:
        """Open connections and prepare indexes."""

    async def close(self) -> None:
        """Release connections."""

    async def ping(self) -> bool:
        """Return True when the backend is reachable."""
        return True

    async def __aenter__(self) -> "DocumentStore":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    @abstractmethod
    async def get(self, collection: str, document_id: str) -> Document | None:
        """Fetch one document by id."""

    @abstractmethod
    async def query(self, collection: str, predicates: Sequence[Predicate]) -> list[Document]:
        """Run a filtered, ordered and paged query.

        Orderings are always followed by an ascending document id tiebreak so
        paging never repeats or skips documents with equal sort values.
        """

    @abstractmethod
    async def create(
        self,
        collection: str,
        data: dict[str, Any],
        document_id: str | None = None,
    ) -> str:
        """Insert a document and return its id."""

    @abstractmethod
    async def update(self, collection: str, document_id: str, changes: dict[str, Any]) -> None:
        """Apply a partial update; values may be :class:`Increment`."""

    @abstractmethod
    async def delete(self, collection: str, document_id: str) -> None:
        """Remove a document."""

    @abstractmethod
    async def count(self, collection: str, predicates: Sequence[Predicate] = ()) -> int:
        """Count documents matching the filter predicates."""


def not_found(collection: str, document_id: str) -> StoreError:
    return StoreError(
        ErrorKind.NOT_FOUND,
        f"Document {document_id} not found in {collection}",
        collection=collection,
    )
