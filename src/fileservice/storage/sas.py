"""Shared Access Signature (SAS) URL issuance for Azure Blob Storage.

Produces time-limited, capability-scoped URLs for a single blob:
- Read-only URLs (``sp=r``) for downloads
- Create-and-write URLs (``sp=cw``) for direct uploads

Signing uses the account key when the service client holds one. With an
Azure AD token credential a user delegation key is requested instead. The
blob itself is never touched, so a URL can be issued for a name that does not
exist yet.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from azure.core.exceptions import HttpResponseError
from azure.storage.blob import BlobSasPermissions, generate_blob_sas

from fileservice.storage.base import (
    DEFAULT_SAS_EXPIRY_MINUTES,
    AccessTokenIssuer,
    AccessUrl,
    SasPermission,
)
from fileservice.storage.errors import SigningUnavailableError

logger = logging.getLogger(__name__)

# Lower bound on the lifetime of a requested user delegation key
_MIN_DELEGATION_KEY_LIFETIME = timedelta(minutes=1)


class AzureSasTokenIssuer(AccessTokenIssuer):
    """Issues blob SAS URLs using the storage service client."""

    def __init__(self, container: str, get_client: Callable[[], Awaitable[Any]]) -> None:
        self.container = container
        self._get_client = get_client

    async def issue_read_token(
        self, name: str, ttl_minutes: int = DEFAULT_SAS_EXPIRY_MINUTES
    ) -> AccessUrl:
        return await self._issue(
            name, SasPermission.READ, BlobSasPermissions(read=True), ttl_minutes
        )

    async def issue_write_token(
        self, name: str, ttl_minutes: int = DEFAULT_SAS_EXPIRY_MINUTES
    ) -> AccessUrl:
        return await self._issue(
            name,
            SasPermission.CREATE_WRITE,
            BlobSasPermissions(create=True, write=True),
            ttl_minutes,
        )

    async def _issue(
        self,
        name: str,
        permission: SasPermission,
        sas_permissions: BlobSasPermissions,
        ttl_minutes: int,
    ) -> AccessUrl:
        if ttl_minutes < 0:
            raise ValueError("ttl_minutes must not be negative")

        client = await self._get_client()
        expires_on = datetime.now(timezone.utc) + timedelta(minutes=ttl_minutes)
        signing_kwargs = await self._signing_credential(client, name, expires_on)

        try:
            token = generate_blob_sas(
                account_name=client.account_name,
                container_name=self.container,
                blob_name=name,
                permission=sas_permissions,
                expiry=expires_on,
                **signing_kwargs,
            )
        except (TypeError, ValueError) as exc:
            raise SigningUnavailableError(
                f"Could not sign SAS URL: {exc}", blob_name=name
            ) from exc

        blob_client = client.get_blob_client(container=self.container, blob=name)
        logger.info(
            f"Issued {permission.value} SAS URL for '{name}' expiring {expires_on.isoformat()}"
        )
        return AccessUrl(
            blob_name=name,
            url=f"{blob_client.url}?{token}",
            permission=permission,
            expires_on=expires_on,
        )

    async def _signing_credential(
        self, client: Any, name: str, expires_on: datetime
    ) -> dict[str, Any]:
        """Return the keyword arguments generate_blob_sas needs to sign."""
        credential = getattr(client, "credential", None)

        account_key = getattr(credential, "account_key", None)
        if account_key:
            return {"account_key": account_key}

        if credential is not None and hasattr(credential, "get_token"):
            now = datetime.now(timezone.utc)
            try:
                delegation_key = await client.get_user_delegation_key(
                    key_start_time=now,
                    key_expiry_time=max(expires_on, now + _MIN_DELEGATION_KEY_LIFETIME),
                )
            except HttpResponseError as exc:
                logger.warning(f"User delegation key request refused: {exc}")
                raise SigningUnavailableError(
                    "Service identity cannot obtain a user delegation key", blob_name=name
                ) from exc
            return {"user_delegation_key": delegation_key}

        logger.warning("SAS requested but the storage client holds no signing credential")
        raise SigningUnavailableError(
            "Storage client has no account key or token credential to sign with",
            blob_name=name,
        )
