"""Document store backends.

Usage:
    store = create_document_store(get_settings())
    async with store:
        doc = await store.get("videos", "abc")
"""

from ytdash.core.config import Settings
from ytdash.database.memory import MemoryDocumentStore
from ytdash.database.mongo import MongoDocumentStore
from ytdash.database.store import (
    Document,
    DocumentStore,
    Increment,
    Limit,
    Offset,
    Operator,
    OrderBy,
    Predicate,
    SortDirection,
    StartAfter,
    Where,
)


def create_document_store(settings: Settings) -> DocumentStore:
    """Build the store selected by ``STORE_BACKEND``."""
    if settings.uses_memory_store:
        return MemoryDocumentStore()
    return MongoDocumentStore(url=settings.mongodb_url, database=settings.mongodb_database)


__all__ = [
    "Document",
    "DocumentStore",
    "Increment",
    "Limit",
    "MemoryDocumentStore",
    "MongoDocumentStore",
    "Offset",
    "Operator",
    "OrderBy",
    "Predicate",
    "SortDirection",
    "StartAfter",
    "Where",
    "create_document_store",
]
