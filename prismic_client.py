"""Prismic REST API v2 client used by the page data functions."""

from __future__ import annotations

import logging
import os
import re
from datetime import UTC, datetime
from typing import Any, Iterable
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import requests

REQUEST_TIMEOUT_SECONDS = 20
PREVIEW_COOKIE = "io.prismic.preview"

LOGGER = logging.getLogger(__name__)


class ContentClientError(RuntimeError):
    """Prismic could not be reached or answered with an error."""


class MalformedResponseError(ContentClientError):
    """Prismic answered with JSON of an unexpected shape."""


def at(path: str, value: str) -> str:
    """Build an `at` predicate, e.g. ``[at(document.type, "post")]``."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'[at({path}, "{escaped}")]'


class PrismicClient:
    """Thin request wrapper around one Prismic repository.

    The master ref is looked up once per client and reused; pass an explicit
    ``ref`` (e.g. a preview token) to read another content snapshot.
    """

    def __init__(self, endpoint: str, access_token: str | None = None) -> None:
        if not endpoint:
            raise ValueError("Prismic API endpoint is required")
        self.endpoint = endpoint.rstrip("/")
        self.access_token = access_token
        self._master_ref: str | None = None

    def master_ref(self) -> str:
        if self._master_ref is None:
            api = self._get_json(self.endpoint, {})
            refs = api.get("refs") if isinstance(api, dict) else None
            if not isinstance(refs, list):
                raise MalformedResponseError("Prismic API response has no refs list")
            master = next(
                (r for r in refs if isinstance(r, dict) and r.get("isMasterRef")),
                None,
            )
            if master is None or not master.get("ref"):
                raise MalformedResponseError("Prismic API response has no master ref")
            self._master_ref = str(master["ref"])
            LOGGER.debug("Prismic master ref=%s", self._master_ref)
        return self._master_ref

    def query(
        self,
        predicates: str | Iterable[str],
        *,
        fetch: Iterable[str] | None = None,
        page_size: int | None = None,
        ref: str | None = None,
        after: str | None = None,
        orderings: str | None = None,
    ) -> dict[str, Any]:
        """Run a documents search and return the raw response body."""
        if isinstance(predicates, str):
            predicates = [predicates]
        params: dict[str, Any] = {
            "ref": ref or self.master_ref(),
            "q": f"[{''.join(predicates)}]",
        }
        if fetch:
            params["fetch"] = ",".join(fetch)
        if page_size is not None:
            params["pageSize"] = page_size
        if after:
            params["after"] = after
        if orderings:
            params["orderings"] = orderings

        body = self._get_json(f"{self.endpoint}/documents/search", params)
        _check_search_shape(body)
        LOGGER.info(
            "Prismic query q=%s returned=%s next_page=%s",
            params["q"],
            len(body["results"]),
            bool(body.get("next_page")),
        )
        return body

    def get_by_uid(self, doc_type: str, uid: str, *, ref: str | None = None) -> dict[str, Any] | None:
        body = self.query(at(f"my.{doc_type}.uid", uid), page_size=1, ref=ref)
        return _first_result(body)

    def get_by_id(self, doc_id: str, *, ref: str | None = None) -> dict[str, Any] | None:
        body = self.query(at("document.id", doc_id), page_size=1, ref=ref)
        return _first_result(body)

    def fetch_page(self, url: str) -> dict[str, Any]:
        """Dereference a `next_page` cursor URL.

        Cursors handed to browsers have the access token stripped (see
        `strip_access_token`); it is re-attached here when missing.
        """
        params = None
        if self.access_token and "access_token" not in dict(parse_qsl(urlsplit(url).query)):
            params = {"access_token": self.access_token}
        body = self._get_json(url, params)
        _check_search_shape(body)
        return body

    def _get_json(self, url: str, params: dict[str, Any] | None) -> Any:
        if params is not None and self.access_token:
            params = {**params, "access_token": self.access_token}
        try:
            response = requests.get(url, params=params, timeout=REQUEST_TIMEOUT_SECONDS)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise ContentClientError(f"Prismic request failed for {url}: {exc}") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise ContentClientError(f"Prismic returned non-JSON body for {url}") from exc


def strip_access_token(url: str) -> str:
    """Drop the `access_token` query parameter from a Prismic cursor URL."""
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != "access_token"]
    return urlunsplit(parts._replace(query=urlencode(query)))


def get_prismic_client() -> PrismicClient:
    """Build a client from PRISMIC_API_ENDPOINT / PRISMIC_ACCESS_TOKEN."""
    endpoint = os.getenv("PRISMIC_API_ENDPOINT")
    if not endpoint:
        raise RuntimeError("PRISMIC_API_ENDPOINT environment variable is required")
    return PrismicClient(endpoint, access_token=os.getenv("PRISMIC_ACCESS_TOKEN") or None)


def _check_search_shape(body: Any) -> None:
    if not isinstance(body, dict) or not isinstance(body.get("results"), list):
        raise MalformedResponseError("Unexpected Prismic search payload: expected a results list")


def _first_result(body: dict[str, Any]) -> dict[str, Any] | None:
    results = body["results"]
    return results[0] if results and isinstance(results[0], dict) else None


def parse_timestamp(raw: Any) -> datetime | None:
    """Parse a Prismic publication timestamp into an aware UTC datetime."""
    if not isinstance(raw, str) or not raw.strip():
        return None

    # Prismic sends offsets without a colon, e.g. 2021-03-25T19:25:28+0000.
    value = re.sub(r"([+-]\d{2})(\d{2})$", r"\1:\2", raw.strip().replace("Z", "+00:00"))
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)
