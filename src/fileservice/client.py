"""Async HTTP client for the File Service API.

Usage:
    async with FileServiceClient(
        "https://files.example.com",
        token_provider=AzureAdTokenProvider("api://file-service/.default"),
    ) as client:
        blobs = await client.list_files(path_prefix="images")
        uri = (await client.upload_file("cat.png", data, file_path_prefix="images")).blob_uri
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator, Awaitable, Callable, Mapping
from types import TracebackType
from typing import Any
from urllib.parse import quote

import httpx

from fileservice.api.models import BlobResponse, SasUrlResponse

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Awaitable[str]]


class FileServiceApiError(Exception):
    """Raised when the API answers with an unexpected error status."""

    def __init__(self, status_code: int, title: str, detail: str | None = None) -> None:
        super().__init__(f"{status_code} {title}: {detail}" if detail else f"{status_code} {title}")
        self.status_code = status_code
        self.title = title
        self.detail = detail

    @classmethod
    def from_response(cls, response: httpx.Response) -> FileServiceApiError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        return cls(
            status_code=response.status_code,
            title=str(body.get("title") or response.reason_phrase),
            detail=body.get("detail"),
        )


class BearerTokenAuth(httpx.Auth):
    """Adds a bearer token from an async provider to every request."""

    def __init__(self, token_provider: TokenProvider) -> None:
        self._token_provider = token_provider

    async def async_auth_flow(
        self, request: httpx.Request
    ) -> AsyncGenerator[httpx.Request, httpx.Response]:
        token = await self._token_provider()
        request.headers["Authorization"] = f"Bearer {token}"
        yield request


class AzureAdTokenProvider:
    """Acquires Azure AD access tokens with DefaultAzureCredential."""

    def __init__(self, scope: str, credential: Any | None = None) -> None:
        self.scope = scope
        if credential is None:
            from azure.identity.aio import DefaultAzureCredential

            credential = DefaultAzureCredential()
        self._credential = credential

    async def __call__(self) -> str:
        access_token = await self._credential.get_token(self.scope)
        return str(access_token.token)

    async def close(self) -> None:
        await self._credential.close()


def _path(name: str) -> str:
    return quote(name, safe="/")


def _join_pairs(mapping: Mapping[str, str] | None) -> str | None:
    if not mapping:
        return None
    return ",".join(f"{key}={value}" for key, value in mapping.items())


class FileServiceClient:
    """Typed client for the /v1/files and /v1/sas endpoints."""

    def __init__(
        self,
        base_url: str,
        token_provider: TokenProvider | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            auth=BearerTokenAuth(token_provider) if token_provider else None,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> FileServiceClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def list_files(self, path_prefix: str | None = None) -> list[BlobResponse]:
        params = {"pathPrefix": path_prefix} if path_prefix else None
        response = await self._client.get("/v1/files", params=params)
        self._raise_for_status(response)
        return [BlobResponse.model_validate(item) for item in response.json()]

    async def query_files_by_tags(
        self, tags: Mapping[str, str], path_prefix: str | None = None
    ) -> list[BlobResponse]:
        payload: dict[str, Any] = {"tags": dict(tags)}
        if path_prefix:
            payload["filePathPrefix"] = path_prefix
        response = await self._client.post("/v1/files/tags-query", json=payload)
        self._raise_for_status(response)
        return [BlobResponse.model_validate(item) for item in response.json()]

    async def upload_file(
        self,
        file_name: str,
        content: bytes,
        content_type: str = "application/octet-stream",
        metadata: Mapping[str, str] | None = None,
        tags: Mapping[str, str] | None = None,
        file_path_prefix: str | None = None,
        overwrite: bool = False,
    ) -> BlobResponse:
        """Upload a file. Raises FileServiceApiError (409) on a name collision."""
        data: dict[str, str] = {"overwriteFile": "true" if overwrite else "false"}
        if file_path_prefix:
            data["filePathPrefix"] = file_path_prefix
        metadata_field = _join_pairs(metadata)
        if metadata_field:
            data["metadata"] = metadata_field
        tags_field = _join_pairs(tags)
        if tags_field:
            data["tags"] = tags_field

        response = await self._client.post(
            "/v1/files/upload",
            data=data,
            files={"file": (file_name, content, content_type)},
        )
        self._raise_for_status(response)
        return BlobResponse.model_validate(response.json())

    async def download_file(self, file_name: str) -> bytes | None:
        """Return the file content, or None if it does not exist."""
        response = await self._client.get(f"/v1/files/download/{_path(file_name)}")
        if response.status_code == 404:
            return None
        self._raise_for_status(response)
        return response.content

    async def update_file(
        self,
        file_name: str,
        metadata: Mapping[str, str] | None = None,
        tags: Mapping[str, str] | None = None,
    ) -> bool:
        """Merge metadata/tags. Returns False if the file does not exist."""
        payload = {
            "metadata": dict(metadata) if metadata else None,
            "tags": dict(tags) if tags else None,
        }
        response = await self._client.put(f"/v1/files/{_path(file_name)}", json=payload)
        if response.status_code == 404:
            return False
        self._raise_for_status(response)
        return True

    async def delete_file(self, file_name: str) -> bool:
        """Delete a file. Returns False if the file does not exist."""
        response = await self._client.delete(f"/v1/files/{_path(file_name)}")
        if response.status_code == 404:
            return False
        self._raise_for_status(response)
        return True

    async def get_read_sas_url(
        self, file_name: str, expiry_minutes: int | None = None
    ) -> SasUrlResponse:
        return await self._get_sas("read", file_name, expiry_minutes)

    async def get_write_sas_url(
        self, file_name: str, expiry_minutes: int | None = None
    ) -> SasUrlResponse:
        return await self._get_sas("write", file_name, expiry_minutes)

    async def _get_sas(
        self, kind: str, file_name: str, expiry_minutes: int | None
    ) -> SasUrlResponse:
        params = {"expiryMinutes": expiry_minutes} if expiry_minutes is not None else None
        response = await self._client.get(f"/v1/sas/{kind}/{_path(file_name)}", params=params)
        self._raise_for_status(response)
        return SasUrlResponse.model_validate(response.json())

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.is_success:
            return
        error = FileServiceApiError.from_response(response)
        logger.debug(f"File Service API error: {error}")
        raise error
