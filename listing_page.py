"""Home page data: first page of post summaries and the "load more" step."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

import requests

from models import (
    ArticleSummary,
    ListingState,
    LoadMoreFailure,
    LoadMoreResult,
    LoadMoreSuccess,
    PageResult,
    PaginatedListing,
)
from prismic_client import (
    ContentClientError,
    MalformedResponseError,
    PrismicClient,
    at,
    get_prismic_client,
    parse_timestamp,
)

POST_TYPE = "post"
PAGE_SIZE = 3
LISTING_FIELDS = ["post.title", "post.subtitle", "post.author"]

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ListingPageProps:
    listing: PaginatedListing
    preview: bool = False


def get_static_props(
    client: PrismicClient | None = None,
    preview: bool = False,
    preview_ref: str | None = None,
) -> PageResult:
    """Fetch the first page of summaries. Backend failures propagate."""
    client = client or get_prismic_client()
    response = client.query(
        [at("document.type", POST_TYPE)],
        fetch=LISTING_FIELDS,
        page_size=PAGE_SIZE,
        ref=preview_ref,
    )
    listing = parse_listing_payload(response)
    LOGGER.info(
        "Listing loaded: items=%s has_next=%s preview=%s",
        len(listing.items),
        listing.next_page_cursor is not None,
        preview,
    )
    return PageResult(props=ListingPageProps(listing=listing, preview=preview))


def parse_listing_payload(payload: Any) -> PaginatedListing:
    """Turn a search response into summaries plus the next-page cursor."""
    if not isinstance(payload, dict) or not isinstance(payload.get("results"), list):
        raise MalformedResponseError("Listing payload must be an object with a results list")

    items = tuple(
        to_article_summary(document)
        for document in payload["results"]
        # Without a uid there is no page to link to.
        if isinstance(document, dict) and _as_str(document.get("uid"))
    )
    next_page = payload.get("next_page")
    return PaginatedListing(
        items=items,
        next_page_cursor=next_page if isinstance(next_page, str) and next_page else None,
    )


def to_article_summary(document: dict[str, Any]) -> ArticleSummary:
    data = document.get("data") if isinstance(document.get("data"), dict) else {}
    return ArticleSummary(
        slug=_as_str(document.get("uid")),
        first_published_at=parse_timestamp(document.get("first_publication_date")),
        title=_as_str(data.get("title")),
        subtitle=_as_str(data.get("subtitle")),
        author=_as_str(data.get("author")),
    )


def load_more(state: ListingState, fetch_page: Callable[[str], Any]) -> LoadMoreResult:
    """Follow the cursor once and append the next page to the state.

    ``fetch_page`` dereferences the cursor URL and returns the decoded JSON
    body. Appended items keep backend order and are not deduplicated.
    """
    if not state.has_more:
        return LoadMoreFailure(state=state, reason="listing has no next page")

    try:
        page = parse_listing_payload(fetch_page(state.cursor))
    except (ContentClientError, requests.RequestException, ValueError) as exc:
        LOGGER.warning("Load more failed for cursor=%s: %s", state.cursor, exc)
        return LoadMoreFailure(state=state, reason=str(exc) or exc.__class__.__name__)

    LOGGER.info("Load more appended=%s has_next=%s", len(page.items), page.next_page_cursor is not None)
    return LoadMoreSuccess(
        state=ListingState(items=state.items + page.items, cursor=page.next_page_cursor)
    )


def _as_str(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""
