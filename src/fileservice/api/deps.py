"""Shared FastAPI dependencies for the File Service API routers."""

from __future__ import annotations

import logging

from fileservice.api.errors import InternalServerError
from fileservice.storage.base import AccessTokenIssuer, BlobStorage
from fileservice.storage.factory import get_blob_storage, get_token_issuer

logger = logging.getLogger(__name__)


def get_storage() -> BlobStorage:
    """FastAPI dependency returning the configured blob storage."""
    try:
        return get_blob_storage()
    except ValueError as exc:
        logger.error(f"Blob storage is not configured: {exc}")
        raise InternalServerError("Blob storage is not configured.") from exc


def get_issuer() -> AccessTokenIssuer:
    """FastAPI dependency returning the configured SAS issuer."""
    try:
        return get_token_issuer()
    except ValueError as exc:
        logger.error(f"Blob storage is not configured: {exc}")
        raise InternalServerError("Blob storage is not configured.") from exc
