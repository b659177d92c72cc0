"""SAS URL endpoints.

- GET /v1/sas/read/{fileName}   - Read-only SAS URL
- GET /v1/sas/write/{fileName}  - Create-and-write SAS URL

No existence check is made: a write URL is typically issued for a blob that
does not exist yet.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from fileservice.api.deps import get_issuer
from fileservice.api.models import SasUrlResponse
from fileservice.config import settings
from fileservice.security.deps import require_policy
from fileservice.security.roles import Policy
from fileservice.storage.base import AccessTokenIssuer

router = APIRouter(prefix="/v1/sas", tags=["SAS Tokens"])

IssuerDep = Annotated[AccessTokenIssuer, Depends(get_issuer)]
ExpiryQuery = Annotated[
    int | None,
    Query(alias="expiryMinutes", ge=0, description="Minutes until the URL expires"),
]


@router.get(
    "/read/{file_name:path}",
    dependencies=[Depends(require_policy(Policy.SAS_TOKEN_READ_ACCESS))],
)
async def get_read_sas_url(
    file_name: str,
    issuer: IssuerDep,
    expiry_minutes: ExpiryQuery = None,
) -> SasUrlResponse:
    """Generate a time-limited read-only SAS URL for a blob."""
    ttl = settings.sas_token_expiration_minutes if expiry_minutes is None else expiry_minutes
    access_url = await issuer.issue_read_token(file_name, ttl)
    return SasUrlResponse.from_access_url(access_url)


@router.get(
    "/write/{file_name:path}",
    dependencies=[Depends(require_policy(Policy.SAS_TOKEN_WRITE_ACCESS))],
)
async def get_write_sas_url(
    file_name: str,
    issuer: IssuerDep,
    expiry_minutes: ExpiryQuery = None,
) -> SasUrlResponse:
    """Generate a time-limited create-and-write SAS URL for a blob."""
    ttl = settings.sas_token_expiration_minutes if expiry_minutes is None else expiry_minutes
    access_url = await issuer.issue_write_token(file_name, ttl)
    return SasUrlResponse.from_access_url(access_url)
