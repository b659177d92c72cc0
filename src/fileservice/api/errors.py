"""RFC 7807 problem-details error responses for the File Service API.

Routers raise ``ApiError`` subclasses. Storage errors raised by the blob layer
are mapped to HTTP status codes here, so the core never sees HTTP.
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from fileservice.storage.errors import (
    BackendFaultError,
    BlobConflictError,
    InvalidTagFormatError,
    SigningUnavailableError,
    StorageError,
)

logger = logging.getLogger(__name__)

PROBLEM_JSON = "application/problem+json"


class ProblemDetails(BaseModel):
    """RFC 7807 problem details body."""

    type: str = "about:blank"
    title: str
    status: int
    detail: str | None = None
    instance: str | None = None


class ApiError(HTTPException):
    """Base exception for File Service API errors."""

    def __init__(self, status_code: int, title: str, detail: str):
        self.title = title
        self.detail_text = detail
        super().__init__(status_code=status_code, detail=detail)

    def to_problem(self, instance: str | None = None) -> ProblemDetails:
        """Convert to a problem-details body."""
        return ProblemDetails(
            title=self.title,
            status=self.status_code,
            detail=self.detail_text,
            instance=instance,
        )


class NotFoundError(ApiError):
    """Blob not found (404)."""

    def __init__(self, blob_name: str):
        super().__init__(
            status_code=404,
            title="Blob Not Found",
            detail=f"The blob '{blob_name}' does not exist.",
        )


class ConflictError(ApiError):
    """Blob already exists (409)."""

    def __init__(self, blob_name: str):
        super().__init__(
            status_code=409,
            title="Conflict: File already exists",
            detail=f"The blob '{blob_name}' already exists. Set overwriteFile to replace it.",
        )


class BadRequestError(ApiError):
    """Invalid request (400)."""

    def __init__(self, detail: str, title: str = "Invalid Request"):
        super().__init__(status_code=400, title=title, detail=detail)


class InternalServerError(ApiError):
    """Internal server error (500)."""

    def __init__(self, detail: str = "An unexpected error occurred"):
        super().__init__(status_code=500, title="Internal Server Error", detail=detail)


def to_api_error(exc: StorageError) -> ApiError:
    """Map a storage error to the API error returned to the caller."""
    if isinstance(exc, BlobConflictError):
        return ConflictError(exc.blob_name or "")
    if isinstance(exc, InvalidTagFormatError):
        return BadRequestError(exc.message, title="Invalid tag format")
    if isinstance(exc, SigningUnavailableError):
        return InternalServerError("A SAS URL could not be generated for this blob.")
    if isinstance(exc, BackendFaultError):
        return InternalServerError("The storage backend failed to process the request.")
    return InternalServerError()


def _problem_response(error: ApiError, request: Request) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_problem(instance=request.url.path).model_dump(exclude_none=True),
        media_type=PROBLEM_JSON,
        headers=error.headers,
    )


async def api_exception_handler(request: Request, exc: ApiError) -> JSONResponse:
    """Exception handler for File Service API errors."""
    return _problem_response(exc, request)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render plain HTTPExceptions (auth failures) as problem details."""
    error = ApiError(exc.status_code, title="Request Failed", detail=str(exc.detail))
    error.headers = exc.headers
    return _problem_response(error, request)


async def storage_exception_handler(request: Request, exc: StorageError) -> JSONResponse:
    """Exception handler for errors raised by the blob layer."""
    error = to_api_error(exc)
    if error.status_code >= 500:
        logger.error(f"Storage failure on {request.method} {request.url.path}: {exc}")
    return _problem_response(error, request)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Exception handler for unexpected errors."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return _problem_response(InternalServerError(), request)
