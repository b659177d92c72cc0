"""Blob storage factory for the File Service API."""

from __future__ import annotations

from fileservice.config import settings
from fileservice.storage.azure import AzureBlobStorage
from fileservice.storage.base import AccessTokenIssuer, BlobStorage
from fileservice.storage.sas import AzureSasTokenIssuer

_storage: AzureBlobStorage | None = None
_issuer: AccessTokenIssuer | None = None


def _get_azure_storage() -> AzureBlobStorage:
    global _storage
    if _storage is not None:
        return _storage

    if not settings.azure_container:
        raise ValueError("AZURE_CONTAINER is required")
    if not settings.azure_connection_string and not settings.azure_account_url:
        raise ValueError(
            "Azure storage requires AZURE_STORAGE_CONNECTION_STRING or AZURE_ACCOUNT_URL"
        )

    _storage = AzureBlobStorage(
        container=settings.azure_container,
        connection_string=settings.azure_connection_string,
        account_url=settings.azure_account_url,
        credential=settings.azure_account_key,
    )
    return _storage


def get_blob_storage() -> BlobStorage:
    """Return a singleton BlobStorage based on settings."""
    return _get_azure_storage()


def get_token_issuer() -> AccessTokenIssuer:
    """Return a singleton SAS issuer sharing the storage service client."""
    global _issuer
    if _issuer is None:
        storage = _get_azure_storage()
        _issuer = AzureSasTokenIssuer(container=storage.container, get_client=storage.get_client)
    return _issuer


async def close_blob_storage() -> None:
    """Close the storage client if one was created."""
    global _storage, _issuer
    if _storage is not None:
        await _storage.close()
    _storage = None
    _issuer = None
