from __future__ import annotations

import pytest

from fileservice.config import settings
from fileservice.storage import factory
from fileservice.storage.azure import AzureBlobStorage
from fileservice.storage.sas import AzureSasTokenIssuer


@pytest.fixture(autouse=True)
def reset_singletons(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(factory, "_storage", None)
    monkeypatch.setattr(factory, "_issuer", None)
    monkeypatch.setattr(settings, "azure_container", "files")
    monkeypatch.setattr(settings, "azure_connection_string", None)
    monkeypatch.setattr(settings, "azure_account_url", "https://acct.blob.core.windows.net")
    monkeypatch.setattr(settings, "azure_account_key", None)


def test_storage_is_a_singleton() -> None:
    storage = factory.get_blob_storage()

    assert isinstance(storage, AzureBlobStorage)
    assert storage.container == "files"
    assert factory.get_blob_storage() is storage


def test_issuer_shares_storage_client() -> None:
    issuer = factory.get_token_issuer()

    assert isinstance(issuer, AzureSasTokenIssuer)
    assert issuer.container == "files"
    assert factory.get_token_issuer() is issuer


def test_missing_connection_details(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "azure_account_url", None)

    with pytest.raises(ValueError, match="AZURE_ACCOUNT_URL"):
        factory.get_blob_storage()


def test_missing_container(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "azure_container", "")

    with pytest.raises(ValueError, match="AZURE_CONTAINER"):
        factory.get_blob_storage()


@pytest.mark.asyncio
async def test_close_resets_singletons() -> None:
    factory.get_token_issuer()

    await factory.close_blob_storage()

    assert factory._storage is None
    assert factory._issuer is None
