"""Unit tests for rich-text conversion and upload helpers."""

from __future__ import annotations

import pytest

from fizzy_orchestrator.orchestrator.fizzy.markdown import html_to_markdown, markdown_to_html
from fizzy_orchestrator.orchestrator.fizzy.upload import compute_checksum, embed_attachment


def test_markdown_renders_inline_and_block_markup() -> None:
    html = markdown_to_html("# Plan\n\n- **first**\n- ~~second~~")

    assert "<h1>Plan</h1>" in html
    assert "<strong>first</strong>" in html
    assert "<s>second</s>" in html


def test_markdown_tables_are_enabled() -> None:
    html = markdown_to_html("| a | b |\n|---|---|\n| 1 | 2 |")

    assert "<table>" in html
    assert "<td>1</td>" in html


@pytest.mark.parametrize("empty", [None, ""])
def test_empty_input_converts_to_empty_string(empty: str | None) -> None:
    assert markdown_to_html(empty) == ""
    assert html_to_markdown(empty) == ""


def test_html_converts_back_to_markdown() -> None:
    markdown = html_to_markdown("<h1>Title</h1><ul><li>a</li><li>b</li></ul>")

    assert markdown.startswith("# Title")
    assert "- a" in markdown
    assert "- b" in markdown


def test_checksum_is_base64_md5() -> None:
    # md5("hello") = 5d41402abc4b2a76b9719d911017c592
    assert compute_checksum(b"hello") == "XUFAKrxLKna5cZ2REBfFkg=="


def test_embedded_attachment_escapes_signed_id() -> None:
    assert embed_attachment('a"b') == '<action-text-attachment sgid="a&quot;b"></action-text-attachment>'
