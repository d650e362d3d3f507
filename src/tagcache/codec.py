"""Encoding of payloads and tag lists stored in entry hashes.

Payloads are wrapped in a JSON envelope ``{"data": value}`` so that the
value type survives the round-trip (a stored ``None`` or ``0`` is still a
hit). Decoding never raises: it returns a ``DecodedPayload`` whose ``ok``
flag tells the caller whether the record is usable.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

import orjson

from tagcache.errors import InvalidTagError
from tagcache.keys import TAG_DELIMITER

_ENVELOPE_KEY = "data"


@dataclass(frozen=True)
class DecodedPayload:
    """Result of decoding a stored payload."""

    value: Any = None
    ok: bool = True
    error: str | None = None

    @classmethod
    def corrupt(cls, error: str) -> DecodedPayload:
        return cls(value=None, ok=False, error=error)


def encode_payload(value: Any) -> bytes:
    """Serialize a value into the JSON envelope.

    Raises:
        TypeError: If the value is not JSON serializable
    """
    return orjson.dumps({_ENVELOPE_KEY: value})


def decode_payload(raw: bytes | str) -> DecodedPayload:
    """Decode a stored envelope into a ``DecodedPayload``."""
    try:
        parsed = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        return DecodedPayload.corrupt(f"invalid JSON: {e}")

    if not isinstance(parsed, dict) or _ENVELOPE_KEY not in parsed:
        return DecodedPayload.corrupt("missing data envelope")

    return DecodedPayload(value=parsed[_ENVELOPE_KEY])


def normalize_tags(tags: Iterable[str] | str | None) -> list[str]:
    """Turn caller input into a de-duplicated tag list.

    A single string is treated as one tag. Order of first appearance is kept.

    Raises:
        InvalidTagError: If a tag is empty or contains the delimiter
    """
    if tags is None:
        return []
    if isinstance(tags, str):
        tags = [tags] if tags else []

    result = list(dict.fromkeys(tags))
    for tag in result:
        if not tag:
            raise InvalidTagError(tag, "tag must not be empty")
        if TAG_DELIMITER in tag:
            raise InvalidTagError(tag, f"tag must not contain {TAG_DELIMITER!r}")
    return result


def join_tags(tags: Iterable[str]) -> str:
    return TAG_DELIMITER.join(tags)


def split_tags(raw: bytes | str | None) -> list[str]:
    """Split a stored tag field; a missing or empty field yields no tags.

    Bytes that are not valid UTF-8 are replaced rather than raising, so a
    damaged record can still be removed.
    """
    if raw is None:
        return []
    if isinstance(raw, bytes):
        raw = raw.decode(errors="replace")
    if not raw:
        return []
    return raw.split(TAG_DELIMITER)
