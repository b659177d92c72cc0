"""Request and response models for the File Service API.

JSON field names are camelCase; Python attributes are snake_case.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from fileservice.storage.base import AccessUrl, BlobSummary, SasPermission


class BlobResponse(BaseModel):
    """A single file stored in blob storage, with its metadata and tags."""

    model_config = {"populate_by_name": True}

    blob_name: str = Field(alias="blobName")
    blob_uri: str = Field(alias="blobUri")
    metadata: dict[str, str] = Field(default_factory=dict)
    tags: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_summary(cls, summary: BlobSummary) -> BlobResponse:
        return cls(
            blob_name=summary.name,
            blob_uri=summary.uri,
            metadata=summary.metadata,
            tags=summary.tags,
        )


class QueryFilesByTagsRequest(BaseModel):
    """Structured tag query body."""

    model_config = {"populate_by_name": True}

    tags: dict[str, str]
    file_path_prefix: str | None = Field(default=None, alias="filePathPrefix")


class UpdateFileRequest(BaseModel):
    """Metadata and/or tag patches for an existing file."""

    metadata: dict[str, str] | None = None
    tags: dict[str, str] | None = None


class SasUrlResponse(BaseModel):
    """A delegated-access URL for one blob."""

    model_config = {"populate_by_name": True}

    blob_name: str = Field(alias="blobName")
    sas_uri: str = Field(alias="sasUri")
    permission: SasPermission
    expires_on: datetime = Field(alias="expiresOn")

    @classmethod
    def from_access_url(cls, access_url: AccessUrl) -> SasUrlResponse:
        return cls(
            blob_name=access_url.blob_name,
            sas_uri=access_url.url,
            permission=access_url.permission,
            expires_on=access_url.expires_on,
        )
