from __future__ import annotations

from typing import Any

import pytest

ENDPOINT = "https://spacetraveling.cdn.prismic.io/api/v2"


def make_post(
    uid: str,
    published: str,
    *,
    doc_id: str | None = None,
    last_published: str | None = None,
    title: str | None = None,
    content: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Minimal Prismic `post` document."""
    return {
        "id": doc_id or f"id-{uid}",
        "uid": uid,
        "type": "post",
        "first_publication_date": published,
        "last_publication_date": last_published or published,
        "data": {
            "title": title or f"Title {uid}",
            "subtitle": f"Subtitle {uid}",
            "author": "Joseph Oliveira",
            "banner": {"url": f"https://images.prismic.io/{uid}.png"},
            "content": content if content is not None else [],
        },
    }


class FakePrismicClient:
    """In-memory stand-in honouring pageSize, after and orderings like Prismic."""

    endpoint = ENDPOINT

    def __init__(self, documents: list[dict[str, Any]]) -> None:
        self.documents = list(documents)
        self.calls: list[dict[str, Any]] = []
        self.pages: dict[str, dict[str, Any]] = {}

    def query(self, predicates, *, fetch=None, page_size=None, ref=None, after=None, orderings=None):
        self.calls.append(
            {
                "method": "query",
                "predicates": predicates,
                "fetch": fetch,
                "page_size": page_size,
                "ref": ref,
                "after": after,
                "orderings": orderings,
            }
        )
        newest_first = orderings is None or "desc" in orderings
        ordered = sorted(self.documents, key=lambda d: d["first_publication_date"], reverse=newest_first)
        if after is not None:
            ids = [d["id"] for d in ordered]
            ordered = ordered[ids.index(after) + 1:] if after in ids else []
        return self._paginate(ordered, page_size or 20, 1)

    def _paginate(self, ordered: list[dict[str, Any]], page_size: int, page: int) -> dict[str, Any]:
        start = (page - 1) * page_size
        chunk = ordered[start:start + page_size]
        next_page = None
        if start + page_size < len(ordered):
            next_page = f"{ENDPOINT}/documents/search?page={page + 1}&pageSize={page_size}"
            self.pages[next_page] = self._paginate(ordered, page_size, page + 1)
        return {"page": page, "results": chunk, "next_page": next_page}

    def fetch_page(self, url: str) -> dict[str, Any]:
        self.calls.append({"method": "fetch_page", "url": url})
        return self.pages[url]

    def get_by_uid(self, doc_type: str, uid: str, *, ref=None):
        self.calls.append({"method": "get_by_uid", "type": doc_type, "uid": uid, "ref": ref})
        return next((d for d in self.documents if d["type"] == doc_type and d["uid"] == uid), None)

    def get_by_id(self, doc_id: str, *, ref=None):
        self.calls.append({"method": "get_by_id", "id": doc_id, "ref": ref})
        return next((d for d in self.documents if d["id"] == doc_id), None)


@pytest.fixture
def three_posts() -> list[dict[str, Any]]:
    """Posts A < B < C by first publication date."""
    return [
        make_post("post-a", "2021-01-01T10:00:00+0000"),
        make_post("post-b", "2021-02-01T10:00:00+0000"),
        make_post("post-c", "2021-03-01T10:00:00+0000"),
    ]


@pytest.fixture
def fake_client(three_posts: list[dict[str, Any]]) -> FakePrismicClient:
    return FakePrismicClient(three_posts)
