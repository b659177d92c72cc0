"""Storage error types.

The blob layer reports failures through this hierarchy and never through HTTP
status codes. A missing object is not an error for download, update and
delete: those operations return ``None``/``False`` instead.
"""

from __future__ import annotations


class StorageError(Exception):
    """Base exception for blob storage operations.

    Attributes:
        message: Human-readable error message.
        blob_name: Name of the blob involved (if applicable).
    """

    def __init__(self, message: str, *, blob_name: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.blob_name = blob_name

    def __str__(self) -> str:
        if self.blob_name:
            return f"{self.message} blob={self.blob_name}"
        return self.message


class BlobConflictError(StorageError):
    """Raised when a create-only upload collides with an existing blob."""

    def __init__(self, blob_name: str) -> None:
        super().__init__(f"Blob '{blob_name}' already exists", blob_name=blob_name)


class InvalidTagFormatError(StorageError):
    """Raised when a tag filter is malformed.

    Either the caller-side ``key=value`` parser rejected the input or the
    backend refused the tag query expression.
    """


class SigningUnavailableError(StorageError):
    """Raised when a delegated-access URL cannot be signed."""


class BackendFaultError(StorageError):
    """Raised for any other backend failure (network, auth, quota)."""
