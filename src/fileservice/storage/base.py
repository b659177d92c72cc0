"""Base blob storage interface.

Defines the abstract interfaces for the blob abstraction layer and the
delegated-access token issuer, plus the value types they return.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import BinaryIO

DEFAULT_CONTENT_TYPE = "application/octet-stream"
DEFAULT_SAS_EXPIRY_MINUTES = 30


class MetadataKey(str, Enum):
    """Metadata keys stamped on every upload."""

    CONTENT_TYPE = "ContentType"
    UPLOADED_BY = "UploadedBy"
    UPLOADED_AT = "UploadedAt"
    API_VERSION = "ApiVersion"


class SasPermission(str, Enum):
    """Capability sets a delegated-access URL can carry."""

    READ = "read"
    CREATE_WRITE = "create+write"


@dataclass
class BlobSummary:
    """A stored blob with its side-data."""

    name: str
    uri: str
    metadata: dict[str, str] = field(default_factory=dict)
    tags: dict[str, str] = field(default_factory=dict)


@dataclass
class BlobDownload:
    """An open download of a blob's content."""

    name: str
    stream: AsyncIterator[bytes]
    content_type: str = DEFAULT_CONTENT_TYPE
    size_bytes: int | None = None


@dataclass(frozen=True)
class AccessUrl:
    """A URL embedding a time-limited, capability-scoped signature."""

    blob_name: str
    url: str
    permission: SasPermission
    expires_on: datetime


class BlobStorage(ABC):
    """Abstract base class for blob storage backends."""

    @abstractmethod
    async def upload(
        self,
        content: bytes | BinaryIO,
        name: str,
        metadata: Mapping[str, str] | None = None,
        tags: Mapping[str, str] | None = None,
        overwrite: bool = False,
        content_type: str | None = None,
    ) -> str:
        """Upload content under ``name`` and return the blob URI.

        Args:
            content: Binary content or file-like object
            name: Blob name, possibly including a virtual folder path
            metadata: Optional metadata attached with the write
            tags: Optional tags attached after the write
            overwrite: Replace an existing blob instead of failing
            content_type: MIME type recorded on the blob

        Returns:
            Canonical URI of the stored blob

        Raises:
            BlobConflictError: If ``overwrite`` is False and the blob exists
        """
        ...

    @abstractmethod
    async def list_files(self, path_prefix: str | None = None) -> list[BlobSummary]:
        """List every blob, optionally keeping only names under ``path_prefix``."""
        ...

    @abstractmethod
    async def query_by_tags(
        self,
        tag_filters: Mapping[str, str] | None,
        path_prefix: str | None = None,
    ) -> list[BlobSummary]:
        """Return blobs whose tags match every filter exactly.

        An empty filter map returns an empty list, never the whole container.

        Raises:
            InvalidTagFormatError: If the backend rejects the tag expression
        """
        ...

    @abstractmethod
    async def download(self, name: str) -> BlobDownload | None:
        """Open a blob for reading, or return None if it does not exist."""
        ...

    @abstractmethod
    async def update(
        self,
        name: str,
        metadata_patch: Mapping[str, str] | None = None,
        tags_patch: Mapping[str, str] | None = None,
    ) -> bool:
        """Merge patches into a blob's metadata and tags.

        Returns:
            True if the blob existed and was updated, False if it does not exist
        """
        ...

    @abstractmethod
    async def delete(self, name: str) -> bool:
        """Delete a blob.

        Returns:
            True if deleted, False if not found
        """
        ...

    async def check_health(self) -> bool:
        """Return True if the backend is reachable."""
        return True

    async def close(self) -> None:
        """Release backend connections."""
        return None


class AccessTokenIssuer(ABC):
    """Issues delegated-access URLs for single blobs."""

    @abstractmethod
    async def issue_read_token(
        self, name: str, ttl_minutes: int = DEFAULT_SAS_EXPIRY_MINUTES
    ) -> AccessUrl:
        """Issue a read-only URL for ``name`` expiring in ``ttl_minutes``.

        Raises:
            SigningUnavailableError: If the backend cannot sign
        """
        ...

    @abstractmethod
    async def issue_write_token(
        self, name: str, ttl_minutes: int = DEFAULT_SAS_EXPIRY_MINUTES
    ) -> AccessUrl:
        """Issue a create-and-write URL for ``name`` expiring in ``ttl_minutes``.

        Raises:
            SigningUnavailableError: If the backend cannot sign
        """
        ...
