"""Tests for the /v1/files endpoints."""

from __future__ import annotations

from datetime import datetime

from fastapi.testclient import TestClient

from tests.fakes import InMemoryBlobStorage


def _upload(client: TestClient, name: str = "cat.png", content: bytes = b"meow", **data: str):
    return client.post(
        "/v1/files/upload",
        files={"file": (name, content, "image/png")},
        data=data,
    )


class TestUpload:
    def test_upload_into_virtual_folder(
        self, client: TestClient, memory_storage: InMemoryBlobStorage
    ) -> None:
        response = _upload(
            client,
            filePathPrefix="images",
            tags="category=images",
            metadata="owner=alice",
        )

        assert response.status_code == 200
        body = response.json()
        assert body["blobName"] == "images/cat.png"
        assert body["blobUri"].endswith("/files/images/cat.png")
        assert body["tags"] == {"category": "images"}
        assert body["metadata"]["owner"] == "alice"
        assert memory_storage.blobs["images/cat.png"] == b"meow"

    def test_upload_stamps_standard_metadata(
        self, client: TestClient, memory_storage: InMemoryBlobStorage
    ) -> None:
        response = _upload(client)

        metadata = response.json()["metadata"]
        assert metadata["UploadedBy"] == "System"
        assert metadata["ContentType"] == "image/png"
        assert metadata["ApiVersion"] == "V1"
        datetime.fromisoformat(metadata["UploadedAt"])
        assert memory_storage.metadata["cat.png"] == metadata
        assert memory_storage.content_types["cat.png"] == "image/png"

    def test_upload_standard_keys_replace_caller_spellings(
        self, client: TestClient, memory_storage: InMemoryBlobStorage
    ) -> None:
        response = _upload(client, metadata="uploadedby=mallory,CONTENTTYPE=text/plain,team=ops")

        metadata = response.json()["metadata"]
        assert metadata["UploadedBy"] == "System"
        assert metadata["ContentType"] == "image/png"
        assert metadata["team"] == "ops"
        assert "uploadedby" not in metadata
        assert "CONTENTTYPE" not in metadata
        assert sorted(key.casefold() for key in metadata) == [
            "apiversion",
            "contenttype",
            "team",
            "uploadedat",
            "uploadedby",
        ]
        assert memory_storage.metadata["cat.png"] == metadata

    def test_upload_conflict_returns_409(
        self, client: TestClient, memory_storage: InMemoryBlobStorage
    ) -> None:
        assert _upload(client, content=b"v1").status_code == 200

        response = _upload(client, content=b"v2")

        assert response.status_code == 409
        assert response.headers["content-type"].startswith("application/problem+json")
        assert response.json()["title"] == "Conflict: File already exists"
        assert memory_storage.blobs["cat.png"] == b"v1"

    def test_upload_overwrite(self, client: TestClient, memory_storage: InMemoryBlobStorage) -> None:
        _upload(client, content=b"v1")

        response = _upload(client, content=b"v2", overwriteFile="true")

        assert response.status_code == 200
        assert memory_storage.blobs["cat.png"] == b"v2"

    def test_malformed_tags_are_ignored(
        self, client: TestClient, memory_storage: InMemoryBlobStorage
    ) -> None:
        response = _upload(client, tags="category=images,broken")

        assert response.status_code == 200
        assert response.json()["tags"] == {}
        assert memory_storage.tags["cat.png"] == {}

    def test_upload_without_file_is_rejected(self, client: TestClient) -> None:
        response = client.post("/v1/files/upload", data={"filePathPrefix": "images"})

        assert response.status_code == 422


class TestListAndQuery:
    def test_list_with_prefix(self, client: TestClient) -> None:
        _upload(client, "cat.png", filePathPrefix="images")
        _upload(client, "readme.md", filePathPrefix="docs")

        everything = client.get("/v1/files").json()
        images = client.get("/v1/files", params={"pathPrefix": "Images/"}).json()

        assert sorted(item["blobName"] for item in everything) == [
            "docs/readme.md",
            "images/cat.png",
        ]
        assert [item["blobName"] for item in images] == ["images/cat.png"]

    def test_query_by_tags_string(self, client: TestClient) -> None:
        _upload(client, "a.png", tags="category=images,author=a")
        _upload(client, "b.png", tags="category=images,author=b")

        response = client.get(
            "/v1/files/tags-query", params={"tags": "category=images, author=a"}
        )

        assert response.status_code == 200
        assert [item["blobName"] for item in response.json()] == ["a.png"]

    def test_query_by_tags_requires_tags(self, client: TestClient) -> None:
        response = client.get("/v1/files/tags-query", params={"tags": "  "})

        assert response.status_code == 400
        assert response.json()["title"] == "Tags required"

    def test_query_by_tags_malformed(self, client: TestClient) -> None:
        response = client.get("/v1/files/tags-query", params={"tags": "category"})

        assert response.status_code == 400
        body = response.json()
        assert body["title"] == "Invalid tag format"
        assert "key=value" in body["detail"]
        assert body["instance"] == "/v1/files/tags-query"

    def test_query_by_tags_body(self, client: TestClient) -> None:
        _upload(client, "a.png", filePathPrefix="images", tags="category=images")
        _upload(client, "b.png", filePathPrefix="archive", tags="category=images")

        response = client.post(
            "/v1/files/tags-query",
            json={"tags": {" category ": "images"}, "filePathPrefix": "images"},
        )

        assert response.status_code == 200
        assert [item["blobName"] for item in response.json()] == ["images/a.png"]

    def test_query_by_empty_tag_map_returns_nothing(self, client: TestClient) -> None:
        _upload(client, "a.png", tags="category=images")

        response = client.post("/v1/files/tags-query", json={"tags": {}})

        assert response.status_code == 200
        assert response.json() == []


class TestDownload:
    def test_download_streams_content(self, client: TestClient) -> None:
        _upload(client, "cat.png", content=b"0123456789", filePathPrefix="images")

        response = client.get("/v1/files/download/images/cat.png")

        assert response.status_code == 200
        assert response.content == b"0123456789"
        assert response.headers["content-type"] == "image/png"
        assert response.headers["content-length"] == "10"
        assert response.headers["content-disposition"] == 'attachment; filename="cat.png"'

    def test_download_missing(self, client: TestClient) -> None:
        response = client.get("/v1/files/download/nope.txt")

        assert response.status_code == 404
        assert response.json()["title"] == "Blob Not Found"


class TestUpdate:
    def test_update_merges(self, client: TestClient, memory_storage: InMemoryBlobStorage) -> None:
        _upload(client, metadata="author=a", tags="status=draft")

        response = client.put(
            "/v1/files/cat.png",
            json={"metadata": {"author": "b"}, "tags": {"status": "final"}},
        )

        assert response.status_code == 200
        assert memory_storage.metadata["cat.png"]["author"] == "b"
        assert memory_storage.metadata["cat.png"]["UploadedBy"] == "System"
        assert memory_storage.tags["cat.png"] == {"status": "final"}

    def test_update_requires_a_patch(self, client: TestClient) -> None:
        _upload(client)

        response = client.put("/v1/files/cat.png", json={"metadata": {}, "tags": None})

        assert response.status_code == 400
        assert response.json()["title"] == "No Updates Provided"

    def test_update_missing(self, client: TestClient) -> None:
        response = client.put("/v1/files/nope.txt", json={"tags": {"a": "1"}})

        assert response.status_code == 404


class TestDelete:
    def test_delete_then_missing(self, client: TestClient) -> None:
        _upload(client, filePathPrefix="images")

        first = client.delete("/v1/files/images/cat.png")
        second = client.delete("/v1/files/images/cat.png")

        assert first.status_code == 200
        assert second.status_code == 404
        assert client.get("/v1/files").json() == []
