"""Opaque pagination cursors and the `{items, pagination}` envelope.

A cursor is the unpadded URL-safe base64 encoding of the full "next" URL returned by the API
(filters included), so continuing a listing is just fetching that URL again.
"""

from __future__ import annotations

import base64
import binascii
import re
from typing import Any, Generic, TypeVar
from urllib.parse import urlparse

from pydantic import BaseModel, Field

T = TypeVar("T")

_CURSOR_ALPHABET = re.compile(r"^[A-Za-z0-9_-]+$")


def encode_cursor(url: str) -> str:
    return base64.urlsafe_b64encode(url.encode("utf-8")).decode("ascii").rstrip("=")


def decode_cursor(cursor: str) -> str | None:
    """Return the URL a cursor was built from, or None if it isn't one of ours."""

    if not isinstance(cursor, str) or not _CURSOR_ALPHABET.match(cursor):
        return None
    if len(cursor) % 4 == 1:
        return None

    padded = cursor + "=" * (-len(cursor) % 4)
    try:
        url = base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None

    # Reject non-canonical encodings (stray trailing bits decode to the same bytes).
    if encode_cursor(url) != cursor:
        return None

    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        return None
    return url


def cursor_target(cursor: str, base_url: str) -> str | None:
    """Decode `cursor` and accept it only if it continues a listing under `base_url`."""

    url = decode_cursor(cursor)
    if url is None or not url.startswith(base_url.rstrip("/") + "/"):
        return None
    return url


class PaginationMeta(BaseModel):
    returned: int = Field(ge=0)
    has_more: bool
    next_cursor: str | None = None


class PaginatedResult(BaseModel, Generic[T]):
    items: list[T]
    pagination: PaginationMeta

    def to_json(self) -> dict[str, Any]:
        """Serialise for callers; `next_cursor` is omitted rather than null when absent."""

        payload = self.model_dump(mode="json")
        if payload["pagination"].get("next_cursor") is None:
            payload["pagination"].pop("next_cursor", None)
        return payload


def build_page(items: list[T], next_url: str | None, *, reverse: bool = False) -> PaginatedResult[T]:
    """Wrap one fetched page.

    `reverse` is used by comment listings on their first page only (newest-first display);
    pages reached through a cursor keep the API's order.
    """

    page_items = list(reversed(items)) if reverse else list(items)
    return PaginatedResult[T](
        items=page_items,
        pagination=PaginationMeta(
            returned=len(page_items),
            has_more=next_url is not None,
            next_cursor=encode_cursor(next_url) if next_url is not None else None,
        ),
    )
