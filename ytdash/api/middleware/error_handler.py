"""Error handler middleware for standardized error responses.

Domain exceptions raised by the services are mapped to HTTP status codes
here, so routers only deal with the successful path.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from ytdash.api.middleware.logging import get_request_id
from ytdash.api.models.errors import (
    ErrorCodes,
    ErrorResponse,
    InternalServerErrorResponse,
    NotFoundErrorResponse,
    ValidationErrorResponse,
)
from ytdash.core.exceptions import (
    AlreadyExistsError,
    ChannelNotFoundError,
    DashboardError,
    FetchError,
    InvalidCursorError,
    NotFoundError,
    UpdateError,
    VideoNotFoundError,
)

logger = logging.getLogger(__name__)

# (exception type, status code, error type, error code), most specific first
DOMAIN_ERROR_MAP: list[tuple[type[DashboardError], int, str, str]] = [
    (VideoNotFoundError, status.HTTP_404_NOT_FOUND, "NOT_FOUND", ErrorCodes.VIDEO_NOT_FOUND),
    (ChannelNotFoundError, status.HTTP_404_NOT_FOUND, "NOT_FOUND", ErrorCodes.CHANNEL_NOT_FOUND),
    (NotFoundError, status.HTTP_404_NOT_FOUND, "NOT_FOUND", ErrorCodes.NOT_FOUND),
    (InvalidCursorError, status.HTTP_400_BAD_REQUEST, "BAD_REQUEST", ErrorCodes.INVALID_CURSOR),
    (AlreadyExistsError, status.HTTP_409_CONFLICT, "CONFLICT", ErrorCodes.ALREADY_EXISTS),
    (FetchError, status.HTTP_500_INTERNAL_SERVER_ERROR, "FETCH_FAILED", ErrorCodes.FETCH_FAILED),
    (UpdateError, status.HTTP_500_INTERNAL_SERVER_ERROR, "UPDATE_FAILED", ErrorCodes.UPDATE_FAILED),
]


def classify_domain_error(exc: DashboardError) -> tuple[int, str, str]:
    """Return (status code, error type, error code) for a domain exception."""
    for exc_type, status_code, error_type, error_code in DOMAIN_ERROR_MAP:
        if isinstance(exc, exc_type):
            return status_code, error_type, error_code
    return (
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_SERVER_ERROR",
        ErrorCodes.INTERNAL_ERROR,
    )


class ErrorHandlerMiddleware:
    """Global error handler for the FastAPI application.

    This middleware:
    - Maps dashboard exceptions to status codes
    - Converts validation and HTTP errors to the standard ErrorResponse
    - Logs errors with request context

    Usage:
        app = FastAPI()
        setup_error_handler(app)
    """

    def __init__(self, app: FastAPI) -> None:
        self.app = app
        self._register_exception_handlers()

    def _register_exception_handlers(self) -> None:
        """Register exception handlers for different exception types."""
        self.app.add_exception_handler(DashboardError, self._handle_dashboard_error)
        self.app.add_exception_handler(RequestValidationError, self._handle_validation_error)
        self.app.add_exception_handler(ValidationError, self._handle_validation_error)
        self.app.add_exception_handler(StarletteHTTPException, self._handle_http_exception)
        self.app.add_exception_handler(Exception, self._handle_generic_exception)

    async def _handle_dashboard_error(
        self,
        request: Request,
        exc: DashboardError,
    ) -> JSONResponse:
        """Handle exceptions raised by the service layer.

        Args:
            request: FastAPI request object
            exc: The domain exception

        Returns:
            JSONResponse with standardized error format
        """
        request_id = get_request_id(request)
        status_code, error_type, error_code = classify_domain_error(exc)

        details: dict[str, Any] | None = None
        if isinstance(exc, NotFoundError):
            details = {f"{exc.entity}_id": exc.entity_id}

        if status_code >= 500:
            logger.error(
                "%s on %s %s: %s",
                error_code,
                request.method,
                request.url.path,
                exc,
                extra={"request_id": request_id, "error_type": type(exc).__name__},
            )
        else:
            logger.info(
                "%s error",
                error_code,
                extra={"request_id": request_id, "path": request.url.path},
            )

        if error_type == "NOT_FOUND":
            error_response: ErrorResponse = NotFoundErrorResponse(
                error_code=error_code,
                message=str(exc),
                details=details,
                request_id=request_id,
            )
        else:
            error_response = ErrorResponse(
                error=error_type,
                error_code=error_code,
                message=str(exc),
                details=details,
                request_id=request_id,
            )

        return JSONResponse(status_code=status_code, content=error_response.model_dump())

    async def _handle_validation_error(
        self,
        request: Request,
        exc: RequestValidationError | ValidationError,
    ) -> JSONResponse:
        """Handle validation errors from request parsing.

        Args:
            request: FastAPI request object
            exc: Validation exception

        Returns:
            JSONResponse with validation error details
        """
        request_id = get_request_id(request)

        errors: list[dict[str, Any]] = [
            {
                "field": ".".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
            }
            for error in exc.errors()
        ]

        error_response = ValidationErrorResponse(
            error_code=ErrorCodes.VALIDATION_ERROR,
            message="Request validation failed",
            details={"errors": errors},
            request_id=request_id,
        )

        logger.info(
            "Validation error",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "validation_errors": errors,
            },
        )

        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=error_response.model_dump(),
        )

    async def _handle_http_exception(
        self,
        request: Request,
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        """Handle HTTP exceptions (404, 405, 429 etc.).

        Args:
            request: FastAPI request object
            exc: HTTP exception

        Returns:
            JSONResponse with appropriate error format
        """
        request_id = get_request_id(request)
        status_code = exc.status_code
        detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)

        if status_code == status.HTTP_404_NOT_FOUND:
            error_response: ErrorResponse = NotFoundErrorResponse(
                error_code=ErrorCodes.NOT_FOUND,
                message=detail,
                request_id=request_id,
            )
        elif status_code == status.HTTP_400_BAD_REQUEST:
            error_response = ErrorResponse(
                error="BAD_REQUEST",
                error_code=ErrorCodes.INVALID_PARAMETER,
                message=detail,
                request_id=request_id,
            )
        elif status_code == status.HTTP_429_TOO_MANY_REQUESTS:
            error_response = ErrorResponse(
                error="RATE_LIMIT_EXCEEDED",
                error_code=ErrorCodes.RATE_LIMIT_EXCEEDED,
                message=detail,
                request_id=request_id,
            )
        else:
            error_response = ErrorResponse(
                error="HTTP_ERROR",
                error_code=f"HTTP_{status_code}",
                message=detail,
                request_id=request_id,
            )

        logger.info(
            "HTTP %s error",
            status_code,
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": status_code,
            },
        )

        return JSONResponse(
            status_code=status_code,
            content=error_response.model_dump(),
            headers=getattr(exc, "headers", None),
        )

    async def _handle_generic_exception(
        self,
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Handle generic unhandled exceptions.

        Args:
            request: FastAPI request object
            exc: The exception that was raised

        Returns:
            JSONResponse with standardized error format
        """
        request_id = get_request_id(request)

        logger.exception(
            "Unhandled exception",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "client_ip": request.client.host if request.client else "unknown",
            },
        )

        error_response = InternalServerErrorResponse(
            request_id=request_id,
            details={"error_type": type(exc).__name__},
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_response.model_dump(),
        )


def setup_error_handler(app: FastAPI) -> None:
    """Register the global exception handlers on the application.

    Args:
        app: FastAPI application instance
    """
    ErrorHandlerMiddleware(app)
    logger.debug("Error handler middleware initialized")
