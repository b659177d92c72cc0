"""Tests for the async File Service API client against the real app."""

from __future__ import annotations

from types import SimpleNamespace

import httpx
import pytest
from fastapi import FastAPI

from fileservice.client import (
    AzureAdTokenProvider,
    FileServiceApiError,
    FileServiceClient,
)
from fileservice.storage.base import SasPermission
from tests.fakes import InMemoryBlobStorage


@pytest.fixture
def api_client(app: FastAPI) -> FileServiceClient:
    return FileServiceClient("http://testserver", transport=httpx.ASGITransport(app=app))


@pytest.mark.asyncio
async def test_upload_list_and_download(
    api_client: FileServiceClient, memory_storage: InMemoryBlobStorage
) -> None:
    async with api_client as client:
        uploaded = await client.upload_file(
            "cat.png",
            b"meow",
            content_type="image/png",
            metadata={"owner": "alice"},
            tags={"category": "images"},
            file_path_prefix="images",
        )
        listed = await client.list_files(path_prefix="images")
        content = await client.download_file("images/cat.png")
        missing = await client.download_file("images/dog.png")

    assert uploaded.blob_name == "images/cat.png"
    assert uploaded.tags == {"category": "images"}
    assert [blob.blob_name for blob in listed] == ["images/cat.png"]
    assert content == b"meow"
    assert missing is None


@pytest.mark.asyncio
async def test_upload_conflict_raises(api_client: FileServiceClient) -> None:
    async with api_client as client:
        await client.upload_file("a.txt", b"1")

        with pytest.raises(FileServiceApiError) as exc_info:
            await client.upload_file("a.txt", b"2")

        replaced = await client.upload_file("a.txt", b"3", overwrite=True)

    assert exc_info.value.status_code == 409
    assert exc_info.value.title == "Conflict: File already exists"
    assert replaced.blob_name == "a.txt"


@pytest.mark.asyncio
async def test_query_update_and_delete(
    api_client: FileServiceClient, memory_storage: InMemoryBlobStorage
) -> None:
    async with api_client as client:
        await client.upload_file("a.txt", b"1", tags={"status": "draft"})
        drafts = await client.query_files_by_tags({"status": "draft"})
        updated = await client.update_file("a.txt", tags={"status": "final"})
        missing_update = await client.update_file("nope.txt", metadata={"a": "1"})
        finals = await client.query_files_by_tags({"status": "final"})
        deleted = await client.delete_file("a.txt")
        deleted_again = await client.delete_file("a.txt")

    assert [blob.blob_name for blob in drafts] == ["a.txt"]
    assert updated is True
    assert missing_update is False
    assert [blob.blob_name for blob in finals] == ["a.txt"]
    assert deleted is True
    assert deleted_again is False


@pytest.mark.asyncio
async def test_sas_urls(api_client: FileServiceClient) -> None:
    async with api_client as client:
        read = await client.get_read_sas_url("images/cat.png", expiry_minutes=5)
        write = await client.get_write_sas_url("images/new.png")

    assert read.permission is SasPermission.READ
    assert read.blob_name == "images/cat.png"
    assert write.permission is SasPermission.CREATE_WRITE


@pytest.mark.asyncio
async def test_bearer_token_attached() -> None:
    seen: list[str | None] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers.get("Authorization"))
        return httpx.Response(200, json=[])

    async def token_provider() -> str:
        return "token-123"

    async with FileServiceClient(
        "http://testserver",
        token_provider=token_provider,
        transport=httpx.MockTransport(handler),
    ) as client:
        assert await client.list_files() == []

    assert seen == ["Bearer token-123"]


@pytest.mark.asyncio
async def test_error_without_problem_body() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(502, text="bad gateway"))

    async with FileServiceClient("http://testserver", transport=transport) as client:
        with pytest.raises(FileServiceApiError) as exc_info:
            await client.delete_file("a.txt")

    assert exc_info.value.status_code == 502
    assert exc_info.value.title == "Bad Gateway"


@pytest.mark.asyncio
async def test_azure_ad_token_provider() -> None:
    class FakeCredential:
        def __init__(self) -> None:
            self.scopes: list[str] = []
            self.closed = False

        async def get_token(self, scope: str) -> SimpleNamespace:
            self.scopes.append(scope)
            return SimpleNamespace(token="aad-token")

        async def close(self) -> None:
            self.closed = True

    credential = FakeCredential()
    provider = AzureAdTokenProvider("api://file-service/.default", credential=credential)

    assert await provider() == "aad-token"
    await provider.close()
    assert credential.scopes == ["api://file-service/.default"]
    assert credential.closed
