"""Markdown <-> HTML for rich-text fields.

Fizzy stores card descriptions and comment bodies as HTML. Callers write and read Markdown.
"""

from __future__ import annotations

from markdown_it import MarkdownIt
from markdownify import ATX, markdownify

_renderer = MarkdownIt("commonmark").enable(["table", "strikethrough"])


def markdown_to_html(text: str | None) -> str:
    if not text:
        return ""
    return _renderer.render(text)


def html_to_markdown(html: str | None) -> str:
    if not html:
        return ""
    return markdownify(html, heading_style=ATX, bullets="-").strip()
