"""Authentication and authorization for the File Service API.

Bearer tokens are validated against an OIDC issuer and mapped to app roles.
"""

from fileservice.security.deps import current_user, require_policy
from fileservice.security.oidc import InvalidTokenError, User
from fileservice.security.roles import Policy, Role

__all__ = [
    "InvalidTokenError",
    "Policy",
    "Role",
    "User",
    "current_user",
    "require_policy",
]
