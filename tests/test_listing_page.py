from __future__ import annotations

from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest
import requests

from conftest import FakePrismicClient, make_post
from listing_page import get_static_props, load_more, parse_listing_payload, to_article_summary
from models import ArticleSummary, ListingState, LoadMoreFailure, LoadMoreSuccess
from prismic_client import ContentClientError, MalformedResponseError


def _summary(slug: str) -> ArticleSummary:
    return ArticleSummary(slug=slug, first_published_at=None, title=slug, subtitle="", author="")


def _page(*slugs: str, next_page: str | None = None) -> dict:
    return {
        "results": [make_post(slug, "2021-01-01T00:00:00+0000") for slug in slugs],
        "next_page": next_page,
    }


def test_static_props_fetches_first_page_of_three(fake_client: FakePrismicClient) -> None:
    fake_client.documents.append(make_post("post-d", "2021-04-01T10:00:00+0000"))

    result = get_static_props(fake_client)
    listing = result.props.listing

    assert [item.slug for item in listing.items] == ["post-d", "post-c", "post-b"]
    assert listing.next_page_cursor is not None
    assert result.props.preview is False
    assert result.revalidate is None

    call = fake_client.calls[0]
    assert call["page_size"] == 3
    assert call["predicates"] == ['[at(document.type, "post")]']
    assert call["fetch"] == ["post.title", "post.subtitle", "post.author"]
    assert call["ref"] is None


def test_static_props_without_more_pages_has_no_cursor(fake_client: FakePrismicClient) -> None:
    listing = get_static_props(fake_client).props.listing

    assert len(listing.items) == 3
    assert listing.next_page_cursor is None


def test_static_props_threads_preview_ref(fake_client: FakePrismicClient) -> None:
    result = get_static_props(fake_client, preview=True, preview_ref="preview-token")

    assert result.props.preview is True
    assert all(call["ref"] == "preview-token" for call in fake_client.calls)


def test_static_props_propagates_backend_failure() -> None:
    client = MagicMock()
    client.query.side_effect = ContentClientError("Prismic down")

    with pytest.raises(ContentClientError):
        get_static_props(client)


def test_to_article_summary_keeps_listing_fields_only() -> None:
    summary = to_article_summary(make_post("post-a", "2021-03-25T19:25:28+0000"))

    assert summary == ArticleSummary(
        slug="post-a",
        first_published_at=datetime(2021, 3, 25, 19, 25, 28, tzinfo=UTC),
        title="Title post-a",
        subtitle="Subtitle post-a",
        author="Joseph Oliveira",
    )


def test_parse_listing_payload_rejects_wrong_shape() -> None:
    with pytest.raises(MalformedResponseError):
        parse_listing_payload({"items": []})


def test_parse_listing_payload_skips_documents_without_uid() -> None:
    orphan = make_post("", "2021-02-01T00:00:00+0000", doc_id="no-uid")
    missing = {k: v for k, v in make_post("x", "2021-02-02T00:00:00+0000").items() if k != "uid"}

    listing = parse_listing_payload({"results": [orphan, make_post("post-a", "2021-01-01T00:00:00+0000"), missing]})

    assert [item.slug for item in listing.items] == ["post-a"]


def test_load_more_appends_in_backend_order_and_replaces_cursor() -> None:
    state = ListingState(items=(_summary("post-1"), _summary("post-2")), cursor="/page2")
    fetched: list[str] = []

    def fetch_page(url: str) -> dict:
        fetched.append(url)
        return _page("post-3", "post-4", next_page="/page3")

    result = load_more(state, fetch_page)

    assert isinstance(result, LoadMoreSuccess)
    assert result.ok is True
    assert fetched == ["/page2"]
    assert [item.slug for item in result.state.items] == ["post-1", "post-2", "post-3", "post-4"]
    assert result.state.cursor == "/page3"
    assert result.state.has_more is True


def test_load_more_last_page_removes_control() -> None:
    state = ListingState(items=(_summary("post-1"),), cursor="/page2")

    result = load_more(state, lambda url: _page("post-2", next_page=None))

    assert result.state.cursor is None
    assert result.state.has_more is False


def test_load_more_does_not_deduplicate() -> None:
    state = ListingState(items=(_summary("post-1"),), cursor="/page2")

    result = load_more(state, lambda url: _page("post-1"))

    assert [item.slug for item in result.state.items] == ["post-1", "post-1"]


def test_load_more_network_failure_returns_prior_state() -> None:
    state = ListingState(items=(_summary("post-1"),), cursor="/page2")

    def fetch_page(url: str) -> dict:
        raise requests.ConnectionError("connection reset")

    result = load_more(state, fetch_page)

    assert isinstance(result, LoadMoreFailure)
    assert result.ok is False
    assert result.state is state
    assert "connection reset" in result.reason


def test_load_more_malformed_payload_is_a_failure() -> None:
    state = ListingState(items=(), cursor="/page2")

    result = load_more(state, lambda url: ["not", "a", "page"])

    assert isinstance(result, LoadMoreFailure)
    assert result.state is state


def test_load_more_on_exhausted_listing_is_a_failure() -> None:
    state = ListingState(items=(_summary("post-1"),), cursor=None)
    fetch_page = MagicMock()

    result = load_more(state, fetch_page)

    assert isinstance(result, LoadMoreFailure)
    fetch_page.assert_not_called()


def test_load_more_follows_real_cursor_from_initial_listing(fake_client: FakePrismicClient) -> None:
    for n in range(4, 8):
        fake_client.documents.append(make_post(f"post-{n}", f"2021-0{n}-01T10:00:00+0000"))
    state = ListingState.from_listing(get_static_props(fake_client).props.listing)

    while state.has_more:
        result = load_more(state, fake_client.fetch_page)
        assert result.ok
        state = result.state

    assert len(state.items) == 7
    assert len({item.slug for item in state.items}) == 7
