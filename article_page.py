"""Article page data: static paths, single-post fetch and derived values."""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass
from typing import Any, Iterable

from models import AdjacentLink, Article, ContentSection, PageResult
from prismic_client import PrismicClient, at, get_prismic_client, parse_timestamp
from rich_text import RichTextRenderer

POST_TYPE = "post"
WORDS_PER_MINUTE = 200
_DEFAULT_REVALIDATE_SECONDS = 60 * 60
PATHS_PAGE_SIZE = 100
ORDER_OLDER = "[document.first_publication_date desc]"
ORDER_NEWER = "[document.first_publication_date]"

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StaticPaths:
    slugs: tuple[str, ...]
    fallback: bool = True


@dataclass(frozen=True, slots=True)
class ArticlePageProps:
    article: Article
    preview: bool = False


def get_static_paths(client: PrismicClient | None = None) -> StaticPaths:
    """List every post slug, following pagination until exhausted.

    Slugs not listed here are still served: the host resolves them lazily.
    """
    client = client or get_prismic_client()
    response = client.query([at("document.type", POST_TYPE)], page_size=PATHS_PAGE_SIZE)

    slugs: list[str] = []
    while True:
        for document in response["results"]:
            uid = document.get("uid") if isinstance(document, dict) else None
            if isinstance(uid, str) and uid:
                slugs.append(uid)
        next_page = response.get("next_page")
        if not next_page:
            break
        response = client.fetch_page(next_page)

    LOGGER.info("Static paths: %s post slugs", len(slugs))
    return StaticPaths(slugs=tuple(slugs))


def get_static_props(
    slug: str,
    client: PrismicClient | None = None,
    preview: bool = False,
    preview_ref: str | None = None,
) -> PageResult:
    """Fetch one post plus its older and newer neighbours.

    Returns a not-found result when the slug matches no document; the
    neighbour queries are skipped in that case.
    """
    client = client or get_prismic_client()
    document = client.get_by_uid(POST_TYPE, slug, ref=preview_ref)
    if document is None:
        LOGGER.info("No post document for slug=%s", slug)
        return PageResult(not_found=True, revalidate=revalidate_seconds())

    prev_response = _neighbour_query(client, document, ORDER_OLDER, preview_ref)
    next_response = _neighbour_query(client, document, ORDER_NEWER, preview_ref)

    article = to_article(
        document,
        prev=to_adjacent_link(prev_response),
        next_=to_adjacent_link(next_response),
    )
    return PageResult(
        props=ArticlePageProps(article=article, preview=preview),
        revalidate=revalidate_seconds(),
    )


def _neighbour_query(
    client: PrismicClient,
    document: dict[str, Any],
    orderings: str,
    preview_ref: str | None,
) -> dict[str, Any]:
    return client.query(
        at("document.type", POST_TYPE),
        page_size=1,
        after=document.get("id"),
        orderings=orderings,
        ref=preview_ref,
    )


def to_article(
    document: dict[str, Any],
    prev: AdjacentLink | None = None,
    next_: AdjacentLink | None = None,
) -> Article:
    data = document.get("data") if isinstance(document.get("data"), dict) else {}
    banner = data.get("banner") if isinstance(data.get("banner"), dict) else {}
    return Article(
        slug=_as_str(document.get("uid")),
        first_published_at=parse_timestamp(document.get("first_publication_date")),
        last_published_at=parse_timestamp(document.get("last_publication_date")),
        title=_as_str(data.get("title")),
        subtitle=_as_str(data.get("subtitle")),
        banner_url=_as_str(banner.get("url")),
        author=_as_str(data.get("author")),
        content=tuple(_to_sections(data.get("content"))),
        next=next_,
        prev=prev,
    )


def to_adjacent_link(response: dict[str, Any]) -> AdjacentLink | None:
    """Pick the single neighbour out of a one-result query, if any."""
    results = response.get("results") or []
    if not results or not isinstance(results[0], dict):
        return None
    document = results[0]
    uid = _as_str(document.get("uid"))
    if not uid:
        return None
    data = document.get("data") if isinstance(document.get("data"), dict) else {}
    return AdjacentLink(slug=uid, title=_as_str(data.get("title")))


def _to_sections(raw: Any) -> Iterable[ContentSection]:
    if not isinstance(raw, list):
        return
    for item in raw:
        if not isinstance(item, dict):
            continue
        body = item.get("body") if isinstance(item.get("body"), list) else []
        yield ContentSection(
            heading=_as_str(item.get("heading")),
            body=tuple(block for block in body if isinstance(block, dict)),
        )


def estimate_reading_time(sections: Iterable[ContentSection], renderer: RichTextRenderer) -> int:
    """Minutes to read the sections at WORDS_PER_MINUTE, rounded up."""
    words = 0
    for section in sections:
        words += len(section.heading.split())
        words += len(renderer.as_text(section.body).split())
    return math.ceil(words / WORDS_PER_MINUTE)


def is_edited(article: Article) -> bool:
    return article.last_published_at is not None and article.last_published_at != article.first_published_at


def _as_str(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def revalidate_seconds() -> int:
    """Seconds before a rendered article is stale (REVALIDATE_SECONDS, default 1h)."""
    return int(os.getenv("REVALIDATE_SECONDS", _DEFAULT_REVALIDATE_SECONDS))
