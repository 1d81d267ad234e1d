# services/api/core/errors.py
"""
Error taxonomy for the drawing tracking service.

Every error carries the HTTP status it maps to, so routers and the
exception handlers in main.py can render a structured body without
re-classifying the failure.
"""
from __future__ import annotations


class DrawingServiceError(Exception):
    """Base class for all failures surfaced across the HTTP boundary."""

    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(DrawingServiceError):
    """Malformed or missing caller data. Never retried."""

    status_code = 400
    default_message = "Invalid input"


class Unauthorized(DrawingServiceError):
    status_code = 401
    default_message = "Unauthorized"


class NotFound(DrawingServiceError):
    status_code = 404
    default_message = "Not found"


class StorageError(DrawingServiceError):
    """
    Blob write/read failure.

    Safe to retry: every save attempt writes under a fresh blob name.
    """

    status_code = 500
    default_message = "Failed to upload annotated PDF"


class PersistenceError(DrawingServiceError):
    """
    Metadata write failed after the blob was stored.

    NOT safely retryable. The blob named in `orphan_blob` is left behind
    and needs manual reconciliation.
    """

    status_code = 500
    default_message = "Failed to save annotations"

    def __init__(self, message: str | None = None, orphan_blob: str | None = None) -> None:
        super().__init__(message)
        self.orphan_blob = orphan_blob


class UpstreamFetchError(DrawingServiceError):
    """One of the drawing sources failed; no partial result is returned."""

    status_code = 500
    default_message = "Failed to fetch drawings"
