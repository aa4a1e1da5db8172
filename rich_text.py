"""Prismic structured-text rendering (plain text and HTML)."""

from __future__ import annotations

import html
from typing import Any, Iterable, Protocol

_HEADING_TYPES = {f"heading{level}": f"h{level}" for level in range(1, 7)}
_SPAN_TAGS = {"strong": "strong", "em": "em"}


class RichTextRenderer(Protocol):
    """What the pages need from a rich-text formatter."""

    def as_text(self, blocks: Iterable[dict[str, Any]]) -> str: ...

    def as_html(self, blocks: Iterable[dict[str, Any]]) -> str: ...


class PrismicRichText:
    """Default renderer for Prismic rich-text fields."""

    def __init__(self, join_string: str = " ") -> None:
        self.join_string = join_string

    def as_text(self, blocks: Iterable[dict[str, Any]]) -> str:
        return self.join_string.join(
            block.get("text") or "" for block in blocks if isinstance(block, dict)
        )

    def as_html(self, blocks: Iterable[dict[str, Any]]) -> str:
        parts: list[str] = []
        open_list: str | None = None

        for block in blocks:
            if not isinstance(block, dict):
                continue
            block_type = block.get("type") or "paragraph"
            list_tag = {"list-item": "ul", "o-list-item": "ol"}.get(block_type)

            if open_list and list_tag != open_list:
                parts.append(f"</{open_list}>")
                open_list = None
            if list_tag and open_list is None:
                parts.append(f"<{list_tag}>")
                open_list = list_tag

            parts.append(_render_block(block_type, block))

        if open_list:
            parts.append(f"</{open_list}>")
        return "".join(parts)


def _render_block(block_type: str, block: dict[str, Any]) -> str:
    if block_type == "image":
        url = html.escape(block.get("url") or "", quote=True)
        alt = html.escape(block.get("alt") or "", quote=True)
        return f'<p class="block-img"><img src="{url}" alt="{alt}" /></p>'
    if block_type == "embed":
        oembed = block.get("oembed") or {}
        embed_url = html.escape(oembed.get("embed_url") or "", quote=True)
        embed_type = html.escape(oembed.get("type") or "", quote=True)
        # oEmbed html comes from the provider and is trusted markup.
        return f'<div data-oembed="{embed_url}" data-oembed-type="{embed_type}">{oembed.get("html") or ""}</div>'

    content = _render_spans(block.get("text") or "", block.get("spans") or [])
    if block_type in _HEADING_TYPES:
        tag = _HEADING_TYPES[block_type]
        return f"<{tag}>{content}</{tag}>"
    if block_type in ("list-item", "o-list-item"):
        return f"<li>{content}</li>"
    if block_type == "preformatted":
        return f"<pre>{content}</pre>"
    return f"<p>{content}</p>"


def _render_spans(text: str, spans: list[dict[str, Any]]) -> str:
    cleaned = []
    for span in spans:
        if not isinstance(span, dict):
            continue
        start, end = span.get("start"), span.get("end")
        if isinstance(start, int) and isinstance(end, int) and 0 <= start < end <= len(text):
            cleaned.append(span)
    cleaned.sort(key=lambda s: (s["start"], -s["end"]))
    return _serialize(text, cleaned, 0, len(text))


def _serialize(text: str, spans: list[dict[str, Any]], start: int, end: int) -> str:
    out: list[str] = []
    cursor = start
    index = 0
    while index < len(spans):
        span = spans[index]
        span_start = max(span["start"], cursor)
        span_end = min(span["end"], end)
        index += 1
        if span_start >= span_end:
            continue

        # Spans starting inside this one are nested, clipped at its end.
        children: list[dict[str, Any]] = []
        while index < len(spans) and spans[index]["start"] < span_end:
            child = spans[index]
            children.append({**child, "end": min(child["end"], span_end)})
            index += 1

        out.append(_escape_text(text[cursor:span_start]))
        out.append(_wrap(span, _serialize(text, children, span_start, span_end)))
        cursor = span_end

    out.append(_escape_text(text[cursor:end]))
    return "".join(out)


def _wrap(span: dict[str, Any], inner: str) -> str:
    span_type = span.get("type")
    if span_type in _SPAN_TAGS:
        tag = _SPAN_TAGS[span_type]
        return f"<{tag}>{inner}</{tag}>"
    if span_type == "hyperlink":
        data = span.get("data") or {}
        href = html.escape(data.get("url") or "", quote=True)
        target = data.get("target")
        target_attr = f' target="{html.escape(target, quote=True)}" rel="noopener"' if target else ""
        return f'<a href="{href}"{target_attr}>{inner}</a>'
    if span_type == "label":
        label = html.escape(str((span.get("data") or {}).get("label") or ""), quote=True)
        return f'<span class="{label}">{inner}</span>'
    return inner


def _escape_text(value: str) -> str:
    return html.escape(value, quote=False).replace("\n", "<br />")
