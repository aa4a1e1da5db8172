"""Shared typed models for the blog pages."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True, slots=True)
class ArticleSummary:
    """Listing-relevant slice of a post document."""

    slug: str
    first_published_at: datetime | None
    title: str
    subtitle: str
    author: str


@dataclass(frozen=True, slots=True)
class PaginatedListing:
    """One page of summaries plus the opaque cursor to the next page."""

    items: tuple[ArticleSummary, ...]
    next_page_cursor: str | None


@dataclass(frozen=True, slots=True)
class ListingState:
    """Client-held listing: everything loaded so far and where to continue."""

    items: tuple[ArticleSummary, ...]
    cursor: str | None

    @property
    def has_more(self) -> bool:
        return bool(self.cursor)

    @classmethod
    def from_listing(cls, listing: PaginatedListing) -> ListingState:
        return cls(items=listing.items, cursor=listing.next_page_cursor)


@dataclass(frozen=True, slots=True)
class LoadMoreSuccess:
    state: ListingState

    ok = True


@dataclass(frozen=True, slots=True)
class LoadMoreFailure:
    """Failed pagination step; `state` is the untouched prior state."""

    state: ListingState
    reason: str

    ok = False


LoadMoreResult = LoadMoreSuccess | LoadMoreFailure


@dataclass(frozen=True, slots=True)
class AdjacentLink:
    slug: str
    title: str


@dataclass(frozen=True, slots=True)
class ContentSection:
    """A heading followed by raw rich-text blocks."""

    heading: str
    body: tuple[dict[str, Any], ...]


@dataclass(frozen=True, slots=True)
class Article:
    slug: str
    first_published_at: datetime | None
    last_published_at: datetime | None
    title: str
    subtitle: str
    banner_url: str
    author: str
    content: tuple[ContentSection, ...]
    next: AdjacentLink | None = None
    prev: AdjacentLink | None = None


@dataclass(frozen=True, slots=True)
class PageResult:
    """What a page data function hands to the host.

    `revalidate` is the number of seconds after which a cached render is stale;
    None means the render never goes stale.
    """

    props: Any = None
    revalidate: int | None = None
    not_found: bool = False
