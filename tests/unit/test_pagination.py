"""Unit tests for cursor encoding and the pagination envelope."""

from __future__ import annotations

import pytest

from fizzy_orchestrator.orchestrator.fizzy.pagination import (
    build_page,
    decode_cursor,
    encode_cursor,
)


@pytest.mark.parametrize(
    "url",
    [
        "https://app.fizzy.do/897362094/cards?page=2",
        "https://app.fizzy.do/acme/cards?board_ids%5B%5D=b1&tag_ids%5B%5D=t%C3%A9&page=3",
        "http://localhost:3000/acme/boards?page=10",
    ],
)
def test_decode_returns_exactly_the_encoded_url(url: str) -> None:
    cursor = encode_cursor(url)

    assert "=" not in cursor
    assert decode_cursor(cursor) == url


@pytest.mark.parametrize(
    "cursor",
    [
        "",
        "not a cursor!",
        "abc=",
        "a",  # a single trailing sextet can't be valid base64
        encode_cursor("ftp://example.com/file"),
        encode_cursor("just some text"),
        encode_cursor("https://"),
    ],
)
def test_decode_rejects_anything_else(cursor: str) -> None:
    assert decode_cursor(cursor) is None


def test_decode_rejects_non_canonical_encoding() -> None:
    cursor = encode_cursor("https://a.io/x")
    # Flip the unused low bits of the last character: same bytes, different text.
    last = cursor[-1]
    alphabet = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"
    tampered = cursor[:-1] + alphabet[alphabet.index(last) + 1]

    assert decode_cursor(tampered) is None


def test_build_page_sets_cursor_only_when_there_is_more() -> None:
    last = build_page([1, 2], None)
    more = build_page([1, 2], "https://app.fizzy.do/acme/tags?page=2")

    assert last.pagination.returned == 2
    assert last.pagination.has_more is False
    assert "next_cursor" not in last.to_json()["pagination"]

    assert more.pagination.has_more is True
    assert decode_cursor(more.pagination.next_cursor or "") == "https://app.fizzy.do/acme/tags?page=2"
    assert more.to_json()["pagination"]["next_cursor"] == more.pagination.next_cursor


def test_build_page_reverse() -> None:
    page = build_page(["c1", "c2", "c3"], None, reverse=True)

    assert page.items == ["c3", "c2", "c1"]
    assert page.pagination.returned == 3
