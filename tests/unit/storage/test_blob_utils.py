from __future__ import annotations

import pytest
from azure.core.exceptions import ResourceNotFoundError

from fileservice.storage.blob_utils import (
    build_blob_name,
    build_tag_filter_expression,
    matches_prefix,
    merge_map,
    or_empty_on_missing,
)


@pytest.mark.parametrize(
    ("prefix", "expected"),
    [
        (None, "cat.png"),
        ("", "cat.png"),
        ("   ", "cat.png"),
        ("images", "images/cat.png"),
        ("images/", "images/cat.png"),
        ("a/b//", "a/b/cat.png"),
    ],
)
def test_build_blob_name(prefix: str | None, expected: str) -> None:
    assert build_blob_name(prefix, "cat.png") == expected


def test_matches_prefix() -> None:
    assert matches_prefix("Images/cat.png", "images/")
    assert matches_prefix("anything", None)
    assert matches_prefix("anything", "")
    assert not matches_prefix("docs/readme.md", "images")


def test_merge_map_overlays_patch() -> None:
    existing = {"author": "a", "dept": "x"}

    merged = merge_map(existing, {"author": "b", "new": "1"})

    assert merged == {"author": "b", "dept": "x", "new": "1"}
    assert existing == {"author": "a", "dept": "x"}
    assert merge_map(None, {"k": "v"}) == {"k": "v"}


def test_build_tag_filter_expression() -> None:
    assert build_tag_filter_expression({"category": "images"}) == "\"category\"='images'"
    assert (
        build_tag_filter_expression({"category": "images", "author": "John Doe"})
        == "\"category\"='images' AND \"author\"='John Doe'"
    )


@pytest.mark.asyncio
async def test_or_empty_on_missing() -> None:
    async def present() -> dict[str, str]:
        return {"k": "v"}

    async def missing() -> dict[str, str]:
        raise ResourceNotFoundError("gone")

    async def nothing() -> None:
        return None

    assert await or_empty_on_missing(present()) == {"k": "v"}
    assert await or_empty_on_missing(missing()) == {}
    assert await or_empty_on_missing(nothing()) == {}
