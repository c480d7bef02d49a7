"""
Error taxonomy and exception handlers for consistent error responses.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from fastapi.responses import JSONResponse

from snippet_vault.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine
    from typing import Any

    from fastapi import FastAPI, Request
    from starlette.requests import Request as StarletteRequest

    ExceptionHandler = Callable[
        [StarletteRequest, Exception],
        Coroutine[Any, Any, JSONResponse],
    ]


class ServiceError(Exception):
    """
    Base exception for service errors.

    Attributes:
        error: Machine-readable error code
        message: Human-readable description
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        error: str,
        message: str,
        status_code: int,
        details: dict[str, object] | None = None,
    ) -> None:
        self.error = error
        self.message = message
        self.status_code = status_code
        if details is None:
            self.details: dict[str, object] = {}
        else:
            self.details = details
        super().__init__(message)


class InvalidInputError(ServiceError):
    """Empty or malformed text, id or domain. Caller error, not retried."""

    def __init__(self, message: str, details: dict[str, object] | None = None) -> None:
        super().__init__("invalid_input", message, 400, details)


class InvalidVectorError(ServiceError):
    """Dimension mismatch, non-finite component or zero-norm vector."""

    def __init__(self, reason: str, details: dict[str, object] | None = None) -> None:
        self.reason = reason
        super().__init__("invalid_vector", f"Invalid vector: {reason}", 422, details)


class MissingEmbeddingError(ServiceError):
    """A cached vector was requested for an id that was never ensured."""

    def __init__(self, item_id: str) -> None:
        self.item_id = item_id
        super().__init__(
            "missing_embedding",
            f"Missing embedding for snippet {item_id}.",
            500,
            {"snippet_id": item_id},
        )


class EmbedderUnavailableError(ServiceError):
    """Model assets or runtime backends required by the embedder are missing."""

    def __init__(self, message: str, details: dict[str, object] | None = None) -> None:
        super().__init__("embedder_unavailable", message, 503, details)


class EmbeddingFailedError(ServiceError):
    """The embedder failed while computing a vector."""

    def __init__(self, message: str, details: dict[str, object] | None = None) -> None:
        super().__init__("embedding_failed", message, 502, details)


class StorageFailureError(ServiceError):
    """A persistence read or write failed. In-memory state is kept."""

    def __init__(
        self,
        message: str,
        details: dict[str, object] | None = None,
        error: str = "storage_failure",
        status_code: int = 503,
    ) -> None:
        super().__init__(error, message, status_code, details)


class StorageDecodeError(StorageFailureError):
    """Persisted data does not match the expected schema."""

    def __init__(self, message: str, details: dict[str, object] | None = None) -> None:
        super().__init__(message, details, error="storage_decode_error", status_code=500)


class NotFoundError(ServiceError):
    """The requested snippet does not exist in the given domain."""

    def __init__(self, item_id: str, domain: str) -> None:
        super().__init__(
            "not_found",
            f"Snippet '{item_id}' not found in {domain} storage.",
            404,
            {"snippet_id": item_id, "domain": domain},
        )


class DuplicateInTargetError(ServiceError):
    """A snippet with the same id already exists in the target domain."""

    def __init__(self, item_id: str, domain: str) -> None:
        super().__init__(
            "duplicate_in_target",
            f"Snippet '{item_id}' already exists in {domain} storage.",
            409,
            {"snippet_id": item_id, "domain": domain},
        )


async def service_error_handler(
    request: Request,
    exc: ServiceError,
) -> JSONResponse:
    """Handle ServiceError exceptions."""
    logger = get_logger(__name__)
    logger.warning(
        "Service error",
        extra={
            "error_code": exc.error,
            "error_message": exc.message,
            "status_code": exc.status_code,
            "details": exc.details,
            "path": str(request.url.path),
            "method": request.method,
        },
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error,
            "message": exc.message,
            "details": exc.details,
        },
    )


async def unhandled_exception_handler(
    request: Request,
    _exc: Exception,
) -> JSONResponse:
    """
    Handle unexpected exceptions.

    Logs full traceback but returns sanitized error to client.
    """
    logger = get_logger(__name__)
    logger.exception(
        "Unhandled exception",
        extra={
            "path": str(request.url.path),
            "method": request.method,
        },
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_error",
            "message": "An unexpected error occurred",
            "details": {},
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the app."""
    app.add_exception_handler(
        ServiceError,
        cast("ExceptionHandler", service_error_handler),
    )
    app.add_exception_handler(Exception, unhandled_exception_handler)
