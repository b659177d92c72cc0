"""Role-based access policies for the File Service API.

Each endpoint group is guarded by a policy that maps to one app role:
- BlobReadAccess      -> BlobReader      (list, query, download)
- BlobWriteAccess     -> BlobWriter      (upload, update, delete)
- SasTokenReadAccess  -> SasTokenReader  (read SAS URLs)
- SasTokenWriteAccess -> SasTokenWriter  (write SAS URLs)

The ``admin`` role satisfies every policy.
"""

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """App roles assigned to callers."""

    BLOB_READER = "BlobReader"
    BLOB_WRITER = "BlobWriter"
    SAS_TOKEN_READER = "SasTokenReader"
    SAS_TOKEN_WRITER = "SasTokenWriter"
    ADMIN = "admin"


class Policy(str, Enum):
    """Authorization policies referenced by routers."""

    BLOB_READ_ACCESS = "BlobReadAccess"
    BLOB_WRITE_ACCESS = "BlobWriteAccess"
    SAS_TOKEN_READ_ACCESS = "SasTokenReadAccess"
    SAS_TOKEN_WRITE_ACCESS = "SasTokenWriteAccess"


POLICY_ROLES: dict[Policy, Role] = {
    Policy.BLOB_READ_ACCESS: Role.BLOB_READER,
    Policy.BLOB_WRITE_ACCESS: Role.BLOB_WRITER,
    Policy.SAS_TOKEN_READ_ACCESS: Role.SAS_TOKEN_READER,
    Policy.SAS_TOKEN_WRITE_ACCESS: Role.SAS_TOKEN_WRITER,
}
