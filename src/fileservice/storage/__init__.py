"""Blob abstraction layer for the File Service API.

Provides the single choke point for object-store access:
- Azure Blob Storage backend (create-only uploads, tag queries, merges)
- SAS URL issuance for delegated read/write access
- Typed storage errors mapped to HTTP responses by the API layer
"""

from fileservice.storage.azure import AzureBlobStorage
from fileservice.storage.base import (
    AccessTokenIssuer,
    AccessUrl,
    BlobDownload,
    BlobStorage,
    BlobSummary,
    MetadataKey,
    SasPermission,
)
from fileservice.storage.errors import (
    BackendFaultError,
    BlobConflictError,
    InvalidTagFormatError,
    SigningUnavailableError,
    StorageError,
)
from fileservice.storage.factory import get_blob_storage, get_token_issuer
from fileservice.storage.sas import AzureSasTokenIssuer

__all__ = [
    "AccessTokenIssuer",
    "AccessUrl",
    "AzureBlobStorage",
    "AzureSasTokenIssuer",
    "BackendFaultError",
    "BlobConflictError",
    "BlobDownload",
    "BlobStorage",
    "BlobSummary",
    "InvalidTagFormatError",
    "MetadataKey",
    "SasPermission",
    "SigningUnavailableError",
    "StorageError",
    "get_blob_storage",
    "get_token_issuer",
]
