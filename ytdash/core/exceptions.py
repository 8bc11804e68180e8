"""Custom exceptions for the subscription dashboard."""

from enum import Enum


class ErrorKind(str, Enum):
    """Classification of document store failures."""

    NOT_FOUND = "not_found"
    PRECONDITION_FAILED = "precondition_failed"
    TRANSIENT = "transient"
    ALREADY_EXISTS = "already_exists"


class DashboardError(Exception):
    """Base exception for dashboard errors."""

    pass


class StoreError(DashboardError):
    """A document store call failed.

    Attributes:
        kind: What went wrong, decided by the store implementation
        collection: Collection the call targeted, if any
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        collection: str | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.collection = collection

    @property
    def is_precondition_failure(self) -> bool:
        return self.kind is ErrorKind.PRECONDITION_FAILED


class NotFoundError(DashboardError):
    """Requested entity does not exist."""

    entity = "document"

    def __init__(self, entity_id: str) -> None:
        super().__init__(f"{self.entity.capitalize()} {entity_id} not found")
        self.entity_id = entity_id


class VideoNotFoundError(NotFoundError):
    """Video does not exist."""

    entity = "video"


class ChannelNotFoundError(NotFoundError):
    """Channel does not exist."""

    entity = "channel"


class FetchError(DashboardError):
    """Reading from the document store failed."""

    pass


class UpdateError(DashboardError):
    """Writing to the document store failed."""

    pass


class AlreadyExistsError(DashboardError):
    """An entity with the given id already exists."""

    pass


class InvalidCursorError(DashboardError):
    """Pagination cursor is malformed or points at a removed document."""

    pass
