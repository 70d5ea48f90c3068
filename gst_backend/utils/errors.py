"""
Error taxonomy for the GST dashboard backend.

Every error carries the HTTP status the API layer reports for it. Storage
and extraction errors never reach the client as HTTP errors: the store
absorbs read failures and the upload routes embed extraction failures in
a successful response.
"""

from fastapi import Request
from fastapi.responses import JSONResponse


class BackendError(Exception):
    """Base class for errors raised by the backend."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(BackendError):
    """Missing or malformed required field."""
    status_code = 400


class PayloadTooLarge(BackendError):
    """Request body exceeded its size cap."""
    status_code = 413


class NotFound(BackendError):
    status_code = 404


class StorageReadError(BackendError):
    """Backing file missing or corrupt."""


class ExtractionError(BackendError):
    """Extraction subprocess exited non-zero, timed out, or could not start."""


def error_response(message: str, status_code: int) -> JSONResponse:
    """Create the ``{"error": message}`` payload used by every endpoint."""
    return JSONResponse(status_code=status_code, content={"error": message})


async def backend_error_handler(request: Request, exc: BackendError) -> JSONResponse:
    return error_response(exc.message, exc.status_code)
