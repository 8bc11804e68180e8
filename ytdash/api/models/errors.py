"""Error response models for the API.

All errors share one body format and carry a request_id for tracing.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response model.

    Attributes:
        error: Error type identifier (e.g., "VALIDATION_ERROR", "NOT_FOUND")
        error_code: Machine-readable error code for programmatic handling
        message: Human-readable error message
        details: Additional error context
        request_id: Unique request identifier for tracing
        timestamp: ISO 8601 timestamp of when the error occurred
    """

    error: str = Field(
        ...,
        description="Error type identifier",
        examples=["NOT_FOUND"],
    )
    error_code: str = Field(
        ...,
        description="Machine-readable error code",
        examples=["VIDEO_NOT_FOUND"],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=["Video abc123 not found"],
    )
    details: dict[str, Any] | None = Field(
        default=None,
        description="Additional error details and context",
    )
    request_id: str = Field(
        ...,
        description="Unique request identifier for tracing",
        examples=["3f1c2a9e-5b7d-4c1e-9a0f-2d6b8e4c7a31"],
    )
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        description="ISO 8601 timestamp of error occurrence",
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "error": "NOT_FOUND",
                "error_code": "CHANNEL_NOT_FOUND",
                "message": "Channel UCX6OQ3DkcsbYNE6H8uQQuVA not found",
                "details": {"channel_id": "UCX6OQ3DkcsbYNE6H8uQQuVA"},
                "request_id": "3f1c2a9e-5b7d-4c1e-9a0f-2d6b8e4c7a31",
                "timestamp": "2024-08-16T14:30:25Z",
            }
        }
    }


class ValidationErrorResponse(ErrorResponse):
    """Request body, query or path parameters failed validation."""

    error: str = Field(default="VALIDATION_ERROR", frozen=True)
    details: dict[str, Any] = Field(  # type: ignore[assignment]
        default_factory=dict,
        description="Validation errors by field",
    )


class NotFoundErrorResponse(ErrorResponse):
    """A requested video or channel does not exist."""

    error: str = Field(default="NOT_FOUND", frozen=True)
    error_code: str = Field(
        ...,
        description="Specific not found error code",
        examples=["VIDEO_NOT_FOUND", "CHANNEL_NOT_FOUND"],
    )


class InternalServerErrorResponse(ErrorResponse):
    """Unexpected failure; internal details are not leaked."""

    error: str = Field(default="INTERNAL_SERVER_ERROR", frozen=True)
    error_code: str = Field(default="INTERNAL_ERROR")
    message: str = Field(
        default="An unexpected error occurred. Please try again later.",
        description="Generic error message to avoid leaking internal details",
    )
    details: dict[str, Any] | None = Field(default=None)


# Error code constants for consistent usage across the codebase
class ErrorCodes:
    """Standardized error codes for the API."""

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_PARAMETER = "INVALID_PARAMETER"
    INVALID_CURSOR = "INVALID_CURSOR"

    # Not found errors
    NOT_FOUND = "NOT_FOUND"
    VIDEO_NOT_FOUND = "VIDEO_NOT_FOUND"
    CHANNEL_NOT_FOUND = "CHANNEL_NOT_FOUND"

    # Conflicts
    ALREADY_EXISTS = "ALREADY_EXISTS"

    # Rate limiting
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Server errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    FETCH_FAILED = "FETCH_FAILED"
    UPDATE_FAILED = "UPDATE_FAILED"
