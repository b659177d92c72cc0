"""Global pytest configuration and fixtures.

Provides a TestClient wired to in-memory storage and SAS issuer doubles
through FastAPI dependency overrides.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from fileservice.api.app import create_app
from fileservice.api.deps import get_issuer, get_storage
from tests.fakes import FakeTokenIssuer, InMemoryBlobStorage


@pytest.fixture
def memory_storage() -> InMemoryBlobStorage:
    return InMemoryBlobStorage()


@pytest.fixture
def token_issuer() -> FakeTokenIssuer:
    return FakeTokenIssuer()


@pytest.fixture
def app(memory_storage: InMemoryBlobStorage, token_issuer: FakeTokenIssuer) -> FastAPI:
    app = create_app()
    app.dependency_overrides[get_storage] = lambda: memory_storage
    app.dependency_overrides[get_issuer] = lambda: token_issuer
    return app


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    yield TestClient(app)
