"""Helpers shared by blob storage backends.

Naming, prefix filtering, tag query construction and the merge and safe-fetch
policies live here so that they can be exercised without a backend.
"""

from __future__ import annotations

from collections.abc import Awaitable, Mapping

from azure.core.exceptions import ResourceNotFoundError


def build_blob_name(path_prefix: str | None, base_name: str) -> str:
    """Compose the effective blob name for a virtual folder.

    Example:
        build_blob_name("images/", "cat.png") -> "images/cat.png"
        build_blob_name(None, "cat.png")      -> "cat.png"
    """
    if not path_prefix or not path_prefix.strip():
        return base_name
    return f"{path_prefix.rstrip('/')}/{base_name}"


def matches_prefix(name: str, path_prefix: str | None) -> bool:
    """Case-insensitive ``startswith`` check; no prefix matches everything."""
    if not path_prefix:
        return True
    return name.lower().startswith(path_prefix.lower())


def merge_map(existing: Mapping[str, str] | None, patch: Mapping[str, str]) -> dict[str, str]:
    """Overlay ``patch`` onto ``existing`` key by key.

    Keys absent from the patch keep their existing value. This is a plain
    read-modify-write step, not a compare-and-swap.
    """
    merged = dict(existing or {})
    merged.update(patch)
    return merged


def build_tag_filter_expression(tag_filters: Mapping[str, str]) -> str:
    """Build a blob index tag query matching all filters.

    Example:
        {"category": "images", "author": "a"}
        -> "\"category\"='images' AND \"author\"='a'"
    """
    return " AND ".join(f"\"{key}\"='{value}'" for key, value in tag_filters.items())


async def or_empty_on_missing(fetch: Awaitable[Mapping[str, str] | None]) -> dict[str, str]:
    """Await a side-data fetch, treating a missing blob as an empty map.

    Used on list and query paths where a blob may be deleted between
    enumeration and the detail fetch.
    """
    try:
        result = await fetch
    except ResourceNotFoundError:
        return {}
    return dict(result or {})
