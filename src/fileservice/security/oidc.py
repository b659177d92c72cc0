"""Azure AD (OIDC) bearer token validation.

Access tokens are RS256 JWTs signed with one of the issuer's published keys.
Validation checks:
- the signature, against the JWKS key named by the token's ``kid``
- expiry and issuer
- audience, against the API's App ID URI and its client ID (Azure AD puts
  either one in ``aud`` depending on how the caller requested the token)

App roles are read from the ``roles`` claim (application permissions) and
from ``scp`` (delegated permissions).
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any

import httpx
from jose import JWTError, jwt
from jose.exceptions import ExpiredSignatureError

from fileservice.config import settings

logger = logging.getLogger(__name__)


def derive_jwks_uri(issuer: str) -> str:
    """Locate the signing keys for an issuer.

    Example:
        https://login.microsoftonline.com/<tenant>/v2.0
        -> https://login.microsoftonline.com/<tenant>/discovery/v2.0/keys
    """
    base = issuer.rstrip("/")
    if base.endswith("/v2.0"):
        return f"{base.removesuffix('/v2.0')}/discovery/v2.0/keys"
    return f"{base}/.well-known/jwks.json"


@dataclass
class OIDCConfig:
    issuer: str
    audiences: tuple[str, ...]
    roles_claim: str = "roles"
    jwks_uri: str = ""
    jwks_cache_seconds: int = 3600

    def __post_init__(self) -> None:
        if not self.jwks_uri:
            self.jwks_uri = derive_jwks_uri(self.issuer)


@dataclass
class User:
    """The authenticated caller."""

    sub: str  # object ID of the user or service principal
    name: str | None = None
    roles: list[str] = field(default_factory=list)
    tenant_id: str | None = None
    claims: dict[str, Any] = field(default_factory=dict)

    @property
    def is_admin(self) -> bool:
        return "admin" in self.roles

    def has_role(self, role: str) -> bool:
        return self.is_admin or role in self.roles


class InvalidTokenError(Exception):
    """Raised when a bearer token is rejected."""


class TokenValidator:
    """Validates Azure AD access tokens against the issuer's JWKS."""

    def __init__(self, config: OIDCConfig):
        self.config = config
        self._keys: dict[str, dict[str, Any]] = {}
        self._keys_fetched_at: float | None = None

    async def validate_token(self, token: str) -> User:
        """Validate ``token`` (without the "Bearer " prefix) and build the caller.

        Raises:
            InvalidTokenError: If the token is malformed, expired, signed with
                an unknown key, or issued for another audience
        """
        try:
            kid = jwt.get_unverified_header(token).get("kid")
        except JWTError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e

        key = await self._signing_key(kid)

        try:
            claims = jwt.decode(
                token,
                key,
                algorithms=["RS256"],
                issuer=self.config.issuer,
                options={"verify_aud": False},
            )
        except ExpiredSignatureError as e:
            raise InvalidTokenError("Token has expired") from e
        except JWTError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e

        audience = claims.get("aud")
        presented = audience if isinstance(audience, list) else [audience]
        if not any(aud in self.config.audiences for aud in presented):
            raise InvalidTokenError(f"Token audience '{audience}' is not accepted")

        return User(
            sub=claims.get("oid") or claims.get("sub", ""),
            name=claims.get("preferred_username") or claims.get("name") or claims.get("appid"),
            roles=self.extract_roles(claims),
            tenant_id=claims.get("tid"),
            claims=claims,
        )

    def extract_roles(self, claims: dict[str, Any]) -> list[str]:
        roles: set[str] = set()

        app_roles = claims.get(self.config.roles_claim)
        if isinstance(app_roles, str):
            roles.add(app_roles)
        elif isinstance(app_roles, list):
            roles.update(str(role) for role in app_roles)

        scopes = claims.get("scp")
        if isinstance(scopes, str):
            roles.update(scopes.split())

        return sorted(roles)

    async def _signing_key(self, kid: str | None) -> dict[str, Any]:
        """Find the JWKS key for ``kid``, refetching once on a miss (key rotation)."""
        if self._keys_stale():
            await self._refresh_keys()

        if kid not in self._keys:
            await self._refresh_keys()
            if kid not in self._keys:
                raise InvalidTokenError(f"Token signed with unknown key '{kid}'")

        return self._keys[kid]

    def _keys_stale(self) -> bool:
        if self._keys_fetched_at is None:
            return True
        return time.monotonic() - self._keys_fetched_at >= self.config.jwks_cache_seconds

    async def _refresh_keys(self) -> None:
        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.get(self.config.jwks_uri)
                response.raise_for_status()
                jwks = response.json()
        except httpx.HTTPError as e:
            if self._keys:
                logger.warning(f"JWKS refresh failed, keeping cached keys: {e}")
                return
            raise InvalidTokenError(f"Failed to fetch JWKS: {e}") from e

        self._keys = {key["kid"]: key for key in jwks.get("keys", []) if "kid" in key}
        self._keys_fetched_at = time.monotonic()
        logger.info(f"Loaded {len(self._keys)} signing keys from {self.config.jwks_uri}")


_validator: TokenValidator | None = None


def get_token_validator() -> TokenValidator | None:
    """Return the process-wide validator, or None when OIDC is not configured."""
    global _validator

    if not settings.oidc_issuer:
        return None

    if _validator is None:
        _validator = TokenValidator(
            OIDCConfig(
                issuer=settings.oidc_issuer,
                audiences=settings.oidc_audiences,
                roles_claim=settings.oidc_roles_claim or "roles",
                jwks_cache_seconds=settings.oidc_jwks_cache_seconds,
            )
        )

    return _validator
