"""Authentication and policy dependencies.

Routers guard each endpoint with one policy:

    @router.get("/files")
    async def list_files(user: Annotated[User, Depends(require_policy(Policy.BLOB_READ_ACCESS))]):
        ...

Without an OIDC issuer configured every request runs as ``ANONYMOUS_USER``,
which holds the admin role.
"""

from __future__ import annotations

from typing import Annotated, Awaitable, Callable

from fastapi import Depends, Header, HTTPException, Request, status

from fileservice.observability.logging import user_id_var
from fileservice.security.oidc import InvalidTokenError, User, get_token_validator
from fileservice.security.roles import POLICY_ROLES, Policy, Role

ANONYMOUS_USER = User(sub="System", name="Anonymous", roles=[Role.ADMIN.value])


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _bearer_token(authorization: str | None) -> str:
    if authorization is None:
        raise _unauthorized("Authentication required")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise _unauthorized("Invalid authorization header format")
    return token


async def current_user(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> User:
    """Resolve the caller and bind it to the request and log context."""
    validator = get_token_validator()

    if validator is None:
        user = ANONYMOUS_USER
    else:
        try:
            user = await validator.validate_token(_bearer_token(authorization))
        except InvalidTokenError as e:
            raise _unauthorized(str(e)) from e

    request.state.user = user
    user_id_var.set(user.sub)
    return user


def require_policy(policy: Policy) -> Callable[..., Awaitable[User]]:
    """Build a dependency that rejects callers lacking the role behind ``policy``."""
    role = POLICY_ROLES[policy].value

    async def check(user: Annotated[User, Depends(current_user)]) -> User:
        if not user.has_role(role):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{role}' required by policy '{policy.value}'",
            )
        return user

    return check
