"""Tests for request context and security headers middleware."""

from __future__ import annotations

import logging

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from fileservice.api.middleware import CorrelationMiddleware, SecurityHeadersMiddleware
from fileservice.observability.logging import correlation_id_var, request_id_var


@pytest.fixture
def bare_app() -> FastAPI:
    app = FastAPI()

    @app.get("/test")
    async def test_endpoint() -> dict[str, str]:
        return {"request_id": request_id_var.get(), "correlation_id": correlation_id_var.get()}

    @app.get("/v1/sas/read/{name}")
    async def sas(name: str) -> dict[str, str]:
        return {"sasUri": f"https://acct/files/{name}?sig=x"}

    @app.get("/health")
    async def health() -> str:
        return "OK"

    return app


class TestSecurityHeadersMiddleware:
    def test_baseline_headers_added(self, bare_app: FastAPI) -> None:
        bare_app.add_middleware(SecurityHeadersMiddleware)

        response = TestClient(bare_app).get("/test")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["Referrer-Policy"] == "no-referrer"
        assert response.headers["Strict-Transport-Security"] == (
            "max-age=31536000; includeSubDomains"
        )
        assert "Cache-Control" not in response.headers

    def test_sas_responses_are_not_cacheable(self, bare_app: FastAPI) -> None:
        bare_app.add_middleware(SecurityHeadersMiddleware)

        response = TestClient(bare_app).get("/v1/sas/read/a.txt")

        assert response.headers["Cache-Control"] == "no-store"
        assert response.headers["Pragma"] == "no-cache"

    def test_hsts_can_be_disabled(self, bare_app: FastAPI) -> None:
        bare_app.add_middleware(SecurityHeadersMiddleware, enable_hsts=False, hsts_max_age=60)

        response = TestClient(bare_app).get("/test")

        assert "Strict-Transport-Security" not in response.headers


class TestCorrelationMiddleware:
    def test_generates_request_id(self, bare_app: FastAPI) -> None:
        bare_app.add_middleware(CorrelationMiddleware)

        response = TestClient(bare_app).get("/test")

        request_id = response.headers["x-request-id"]
        assert request_id
        assert response.headers["x-correlation-id"] == request_id
        assert response.json()["request_id"] == request_id

    def test_propagates_incoming_ids(self, bare_app: FastAPI) -> None:
        bare_app.add_middleware(CorrelationMiddleware)

        response = TestClient(bare_app).get(
            "/test", headers={"x-request-id": "req-1", "x-correlation-id": "corr-1"}
        )

        assert response.headers["x-request-id"] == "req-1"
        assert response.json() == {"request_id": "req-1", "correlation_id": "corr-1"}
        assert request_id_var.get() == ""

    def test_accepts_azure_client_request_id(self, bare_app: FastAPI) -> None:
        bare_app.add_middleware(CorrelationMiddleware)

        response = TestClient(bare_app).get("/test", headers={"x-ms-client-request-id": "ms-1"})

        assert response.headers["x-request-id"] == "ms-1"

    def test_access_log(self, bare_app: FastAPI, caplog: pytest.LogCaptureFixture) -> None:
        bare_app.add_middleware(CorrelationMiddleware)
        client = TestClient(bare_app)

        with caplog.at_level(logging.INFO, logger="fileservice.access"):
            client.get("/health")
            client.get("/test")

        records = [r for r in caplog.records if r.name == "fileservice.access"]
        assert len(records) == 1
        assert records[0].getMessage() == "GET /test -> 200"
        assert records[0].status_code == 200
