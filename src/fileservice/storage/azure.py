"""Azure Blob Storage backend."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Iterator, Mapping
from contextlib import contextmanager
from typing import Any, BinaryIO, cast

from azure.core.exceptions import (
    AzureError,
    HttpResponseError,
    ResourceExistsError,
    ResourceNotFoundError,
)
from azure.storage.blob import ContentSettings

from fileservice.storage.base import DEFAULT_CONTENT_TYPE, BlobDownload, BlobStorage, BlobSummary
from fileservice.storage.blob_utils import (
    build_tag_filter_expression,
    matches_prefix,
    merge_map,
    or_empty_on_missing,
)
from fileservice.storage.errors import (
    BackendFaultError,
    BlobConflictError,
    InvalidTagFormatError,
    StorageError,
)

logger = logging.getLogger(__name__)

# Blobs whose metadata and tags are fetched at once on list and query
SIDE_DATA_CONCURRENCY = 32


class AzureBlobStorage(BlobStorage):
    """Azure Blob Storage implementation using azure-storage-blob aio client.

    The service client is created lazily and reused. The container client is
    resolved on every operation and created if it does not exist yet.
    """

    def __init__(
        self,
        container: str,
        connection_string: str | None = None,
        account_url: str | None = None,
        credential: Any | None = None,
        side_data_concurrency: int = SIDE_DATA_CONCURRENCY,
    ) -> None:
        self.container = container
        self.side_data_concurrency = side_data_concurrency
        self.connection_string = connection_string
        self.account_url = account_url
        self.credential = credential
        self._client: Any | None = None
        self._owned_credential: Any | None = None

    async def get_client(self) -> Any:
        """Get or create BlobServiceClient."""
        if self._client is None:
            from azure.storage.blob.aio import BlobServiceClient

            if self.connection_string:
                self._client = BlobServiceClient.from_connection_string(self.connection_string)
            elif self.account_url:
                credential = self.credential
                if credential is None:
                    from azure.identity.aio import DefaultAzureCredential

                    credential = DefaultAzureCredential()
                    self._owned_credential = credential
                self._client = BlobServiceClient(
                    account_url=self.account_url, credential=credential
                )
            else:
                raise ValueError(
                    "Azure storage requires AZURE_STORAGE_CONNECTION_STRING or AZURE_ACCOUNT_URL"
                )

        return self._client

    async def _get_container(self) -> Any:
        """Resolve the container client, creating the container if missing."""
        client = await self.get_client()
        container_client = client.get_container_client(self.container)
        try:
            await container_client.create_container()
            logger.info(f"Created blob container '{self.container}'")
        except ResourceExistsError:
            pass
        return container_client

    @contextmanager
    def _translate_errors(self, operation: str, blob_name: str | None = None) -> Iterator[None]:
        """Wrap unexpected Azure errors in BackendFaultError."""
        try:
            yield
        except StorageError:
            raise
        except AzureError as exc:
            logger.error(f"Azure blob {operation} failed for '{blob_name or self.container}': {exc}")
            raise BackendFaultError(
                f"Azure blob storage {operation} failed", blob_name=blob_name
            ) from exc

    async def upload(
        self,
        content: bytes | BinaryIO,
        name: str,
        metadata: Mapping[str, str] | None = None,
        tags: Mapping[str, str] | None = None,
        overwrite: bool = False,
        content_type: str | None = None,
    ) -> str:
        """Upload a blob; create-only unless ``overwrite`` is set."""
        if isinstance(content, bytes):
            content_bytes = content
        else:
            content_bytes = content.read()

        with self._translate_errors("upload", name):
            container_client = await self._get_container()
            blob_client = container_client.get_blob_client(name)

            try:
                # overwrite=False sends If-None-Match: * so the service rejects collisions
                await blob_client.upload_blob(
                    content_bytes,
                    overwrite=overwrite,
                    metadata=dict(metadata) if metadata else None,
                    content_settings=ContentSettings(
                        content_type=content_type or DEFAULT_CONTENT_TYPE
                    ),
                )
            except ResourceExistsError as exc:
                logger.warning(f"Upload rejected, blob '{name}' already exists")
                raise BlobConflictError(name) from exc

            if tags:
                await blob_client.set_blob_tags(dict(tags))

        logger.info(f"Uploaded blob '{name}' ({len(content_bytes)} bytes, overwrite={overwrite})")
        return cast(str, blob_client.url)

    async def list_files(self, path_prefix: str | None = None) -> list[BlobSummary]:
        """List all blobs, filtering by prefix client-side."""
        with self._translate_errors("list"):
            container_client = await self._get_container()
            names = [
                blob.name
                async for blob in container_client.list_blobs()
                if matches_prefix(blob.name, path_prefix)
            ]
            return await self._summarize_all(container_client, names)

    async def query_by_tags(
        self,
        tag_filters: Mapping[str, str] | None,
        path_prefix: str | None = None,
    ) -> list[BlobSummary]:
        """Find blobs through the blob index tag query."""
        if not tag_filters:
            return []

        expression = build_tag_filter_expression(tag_filters)
        logger.debug(f"Querying blobs by tags: {expression}")

        with self._translate_errors("tag query"):
            container_client = await self._get_container()
            try:
                names = [
                    blob.name
                    async for blob in container_client.find_blobs_by_tags(expression)
                    if matches_prefix(blob.name, path_prefix)
                ]
            except HttpResponseError as exc:
                if exc.status_code == 400:
                    raise InvalidTagFormatError(
                        f"Invalid tag filter expression {expression!r}: {exc.message}"
                    ) from exc
                raise
            return await self._summarize_all(container_client, names)

    async def download(self, name: str) -> BlobDownload | None:
        """Open a blob for streaming, or return None if missing."""
        with self._translate_errors("download", name):
            container_client = await self._get_container()
            blob_client = container_client.get_blob_client(name)

            if not await blob_client.exists():
                return None

            try:
                downloader = await blob_client.download_blob()
            except ResourceNotFoundError:
                return None

        content_settings = getattr(downloader.properties, "content_settings", None)
        return BlobDownload(
            name=name,
            stream=self._iter_chunks(downloader, name),
            content_type=getattr(content_settings, "content_type", None) or DEFAULT_CONTENT_TYPE,
            size_bytes=downloader.size,
        )

    async def _iter_chunks(self, downloader: Any, name: str) -> AsyncIterator[bytes]:
        with self._translate_errors("download", name):
            async for chunk in downloader.chunks():
                yield cast(bytes, chunk)

    async def update(
        self,
        name: str,
        metadata_patch: Mapping[str, str] | None = None,
        tags_patch: Mapping[str, str] | None = None,
    ) -> bool:
        """Merge metadata and tag patches into an existing blob."""
        with self._translate_errors("update", name):
            container_client = await self._get_container()
            blob_client = container_client.get_blob_client(name)

            if not await blob_client.exists():
                return False

            try:
                if metadata_patch:
                    existing = await or_empty_on_missing(self._fetch_metadata(blob_client))
                    await blob_client.set_blob_metadata(merge_map(existing, metadata_patch))

                if tags_patch:
                    existing_tags = await or_empty_on_missing(blob_client.get_blob_tags())
                    await blob_client.set_blob_tags(merge_map(existing_tags, tags_patch))
            except ResourceNotFoundError:
                # Deleted between the existence probe and the write
                return False

        logger.info(
            f"Updated blob '{name}' (metadata={bool(metadata_patch)}, tags={bool(tags_patch)})"
        )
        return True

    async def delete(self, name: str) -> bool:
        """Delete a blob and its snapshots."""
        with self._translate_errors("delete", name):
            container_client = await self._get_container()
            blob_client = container_client.get_blob_client(name)

            try:
                await blob_client.delete_blob(delete_snapshots="include")
            except ResourceNotFoundError:
                return False

        logger.info(f"Deleted blob '{name}'")
        return True

    async def check_health(self) -> bool:
        """Check that the container is reachable."""
        try:
            client = await self.get_client()
            # Reachability only; the container itself is created on first use
            await client.get_container_client(self.container).exists()
            return True
        except (AzureError, ValueError) as exc:
            logger.warning(f"Azure blob storage health check failed: {exc}")
            return False

    async def close(self) -> None:
        """Close the underlying client."""
        if self._client is not None:
            await self._client.close()
            self._client = None
        if self._owned_credential is not None:
            await self._owned_credential.close()
            self._owned_credential = None

    async def _summarize_all(self, container_client: Any, names: list[str]) -> list[BlobSummary]:
        """Fetch side data for ``names``, ``side_data_concurrency`` blobs at a time.

        The first failing fetch cancels the rest and is raised as-is.
        """
        limit = asyncio.Semaphore(self.side_data_concurrency)
        try:
            async with asyncio.TaskGroup() as group:
                tasks = [
                    group.create_task(self._summarize(container_client, name, limit))
                    for name in names
                ]
        except ExceptionGroup as errors:
            raise errors.exceptions[0] from None
        return [task.result() for task in tasks]

    async def _summarize(
        self, container_client: Any, name: str, limit: asyncio.Semaphore
    ) -> BlobSummary:
        blob_client = container_client.get_blob_client(name)
        async with limit:
            metadata = await or_empty_on_missing(self._fetch_metadata(blob_client))
            tags = await or_empty_on_missing(blob_client.get_blob_tags())
        return BlobSummary(name=name, uri=blob_client.url, metadata=metadata, tags=tags)

    @staticmethod
    async def _fetch_metadata(blob_client: Any) -> dict[str, str]:
        properties = await blob_client.get_blob_properties()
        return dict(properties.metadata or {})
