"""File endpoints backed by the blob abstraction layer.

- GET    /v1/files                       - List files (optional pathPrefix)
- GET    /v1/files/tags-query            - Query files by "k=v,k2=v2" tags
- POST   /v1/files/tags-query            - Query files by a JSON tag map
- POST   /v1/files/upload                - Upload a file (multipart/form-data)
- GET    /v1/files/download/{fileName}   - Download a file
- PUT    /v1/files/{fileName}            - Merge metadata and/or tags
- DELETE /v1/files/{fileName}            - Delete a file
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile
from starlette.responses import StreamingResponse

from fileservice.api.deps import get_storage
from fileservice.api.errors import BadRequestError, NotFoundError
from fileservice.api.models import BlobResponse, QueryFilesByTagsRequest, UpdateFileRequest
from fileservice.api.tag_parsing import canonicalize_map, parse_key_value_pairs
from fileservice.security.deps import require_policy
from fileservice.security.oidc import User
from fileservice.security.roles import Policy
from fileservice.storage.base import DEFAULT_CONTENT_TYPE, BlobStorage, MetadataKey
from fileservice.storage.blob_utils import build_blob_name

logger = logging.getLogger(__name__)

API_VERSION = "V1"

router = APIRouter(prefix="/v1/files", tags=["Files"])

StorageDep = Annotated[BlobStorage, Depends(get_storage)]
PathPrefixQuery = Annotated[
    str | None,
    Query(alias="pathPrefix", description="Only return files whose name starts with this prefix"),
]


@router.get(
    "",
    dependencies=[Depends(require_policy(Policy.BLOB_READ_ACCESS))],
)
async def list_files(
    storage: StorageDep,
    path_prefix: PathPrefixQuery = None,
) -> list[BlobResponse]:
    """List all files, optionally under a virtual folder."""
    blobs = await storage.list_files(path_prefix)
    return [BlobResponse.from_summary(blob) for blob in blobs]


@router.get(
    "/tags-query",
    dependencies=[Depends(require_policy(Policy.BLOB_READ_ACCESS))],
)
async def query_files_by_tags(
    storage: StorageDep,
    tags: Annotated[
        str | None,
        Query(description='Tag filters, e.g. "category=images,author=John Doe"'),
    ] = None,
    path_prefix: PathPrefixQuery = None,
) -> list[BlobResponse]:
    """Query files whose tags match every given key=value pair."""
    if tags is None or not tags.strip():
        raise BadRequestError(
            "The 'tags' query parameter must not be empty.", title="Tags required"
        )

    tag_filters = parse_key_value_pairs(tags, strict=True)
    blobs = await storage.query_by_tags(tag_filters, path_prefix)
    return [BlobResponse.from_summary(blob) for blob in blobs]


@router.post(
    "/tags-query",
    dependencies=[Depends(require_policy(Policy.BLOB_READ_ACCESS))],
)
async def query_files_by_tags_body(
    request: QueryFilesByTagsRequest,
    storage: StorageDep,
) -> list[BlobResponse]:
    """Query files by a structured tag map."""
    tag_filters = canonicalize_map(request.tags)
    blobs = await storage.query_by_tags(tag_filters, request.file_path_prefix)
    return [BlobResponse.from_summary(blob) for blob in blobs]


def _stamp_upload_metadata(
    metadata: dict[str, str], user: User, content_type: str
) -> dict[str, str]:
    """Replace any caller spelling of the standard keys with the stamped values.

    Azure metadata names are case-insensitive, so ``uploadedby`` and
    ``UploadedBy`` would collide on the service.
    """
    reserved = {key.value.casefold() for key in MetadataKey}
    stamped = {key: value for key, value in metadata.items() if key.casefold() not in reserved}
    stamped[MetadataKey.UPLOADED_AT.value] = datetime.now(timezone.utc).isoformat()
    stamped[MetadataKey.UPLOADED_BY.value] = user.sub
    stamped[MetadataKey.CONTENT_TYPE.value] = content_type
    stamped[MetadataKey.API_VERSION.value] = API_VERSION
    return stamped


@router.post("/upload")
async def upload_file(
    storage: StorageDep,
    user: Annotated[User, Depends(require_policy(Policy.BLOB_WRITE_ACCESS))],
    file: UploadFile = File(...),
    file_path_prefix: Annotated[str | None, Form(alias="filePathPrefix")] = None,
    metadata: Annotated[str | None, Form(description="key=value,key2=value2")] = None,
    tags: Annotated[str | None, Form(description="key=value,key2=value2")] = None,
    overwrite_file: Annotated[bool, Form(alias="overwriteFile")] = False,
) -> BlobResponse:
    """Upload a file with optional metadata, tags and virtual folder.

    Uploads are create-only unless ``overwriteFile`` is true; a name collision
    returns 409.
    """
    if not file.filename:
        raise BadRequestError("No file was uploaded. Please attach a file and try again.")

    tag_map = parse_key_value_pairs(tags, strict=False)
    metadata_map = parse_key_value_pairs(metadata, strict=False)

    content_type = file.content_type or DEFAULT_CONTENT_TYPE
    metadata_map = _stamp_upload_metadata(metadata_map, user, content_type)

    blob_name = build_blob_name(file_path_prefix, file.filename)
    content = await file.read()

    blob_uri = await storage.upload(
        content,
        blob_name,
        metadata=metadata_map,
        tags=tag_map,
        overwrite=overwrite_file,
        content_type=content_type,
    )

    return BlobResponse(
        blob_name=blob_name,
        blob_uri=blob_uri,
        metadata=metadata_map,
        tags=tag_map,
    )


@router.get(
    "/download/{file_name:path}",
    dependencies=[Depends(require_policy(Policy.BLOB_READ_ACCESS))],
)
async def download_file(file_name: str, storage: StorageDep) -> StreamingResponse:
    """Stream a file's content."""
    download = await storage.download(file_name)
    if download is None:
        raise NotFoundError(file_name)

    filename = file_name.rsplit("/", 1)[-1]
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
    if download.size_bytes is not None:
        headers["Content-Length"] = str(download.size_bytes)

    return StreamingResponse(
        download.stream,
        media_type=download.content_type,
        headers=headers,
    )


@router.put(
    "/{file_name:path}",
    dependencies=[Depends(require_policy(Policy.BLOB_WRITE_ACCESS))],
)
async def update_file(
    file_name: str,
    request: UpdateFileRequest,
    storage: StorageDep,
) -> Response:
    """Merge metadata and/or tags into an existing file."""
    metadata_patch = canonicalize_map(request.metadata)
    tags_patch = canonicalize_map(request.tags)

    if not metadata_patch and not tags_patch:
        raise BadRequestError(
            "You must provide either metadata or tags to update.",
            title="No Updates Provided",
        )

    updated = await storage.update(file_name, metadata_patch, tags_patch)
    if not updated:
        raise NotFoundError(file_name)

    return Response(status_code=200)


@router.delete(
    "/{file_name:path}",
    dependencies=[Depends(require_policy(Policy.BLOB_WRITE_ACCESS))],
)
async def delete_file(file_name: str, storage: StorageDep) -> Response:
    """Delete a file."""
    deleted = await storage.delete(file_name)
    if not deleted:
        raise NotFoundError(file_name)

    return Response(status_code=200)
