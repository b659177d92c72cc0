"""Tag and metadata parsing for incoming requests.

Two request shapes carry key/value maps:
- a delimited string, ``"key1=value1,key2=value2"`` (query strings, form fields)
- a structured JSON object (request bodies)

Both adapters produce the same canonical ``dict[str, str]``: keys and values
trimmed, keys de-duplicated case-insensitively (first spelling kept, last
value wins). The blob layer only ever sees the canonical form.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from fileservice.storage.errors import InvalidTagFormatError

logger = logging.getLogger(__name__)


def _canonical(pairs: Iterable[tuple[str, str]]) -> dict[str, str]:
    result: dict[str, str] = {}
    spellings: dict[str, str] = {}
    for key, value in pairs:
        folded = key.casefold()
        spelling = spellings.setdefault(folded, key)
        result[spelling] = value
    return result


def canonicalize_map(mapping: Mapping[str, str] | None) -> dict[str, str]:
    """Canonicalize a structured key/value map from a request body."""
    if not mapping:
        return {}
    return _canonical((key.strip(), value.strip()) for key, value in mapping.items())


def parse_key_value_pairs(raw: str | None, strict: bool = True) -> dict[str, str]:
    """Parse ``"key1=value1,key2=value2"`` into a canonical map.

    Args:
        raw: Comma separated ``key=value`` tokens. Empty segments are skipped.
        strict: Raise on blank input or a malformed token. When False, the
            same conditions return an empty map.

    Raises:
        InvalidTagFormatError: In strict mode, for blank input or a token
            without ``=`` or with a blank key
    """
    if raw is None or not raw.strip():
        if strict:
            raise InvalidTagFormatError("Input string must not be empty.")
        return {}

    pairs: list[tuple[str, str]] = []
    for token in (t for t in raw.split(",") if t):
        key, sep, value = token.partition("=")
        if not sep or not key.strip():
            if strict:
                raise InvalidTagFormatError(
                    f"'{token}' is invalid. Input must be in key=value format."
                )
            logger.warning(f"Ignoring malformed key=value input: '{token}' is invalid")
            return {}
        pairs.append((key.strip(), value.strip()))

    return _canonical(pairs)
