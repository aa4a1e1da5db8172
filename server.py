"""On-demand host for the blog pages, with soft revalidation and preview routes."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from http.cookies import SimpleCookie
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Callable
from urllib.parse import parse_qs, quote, unquote, urlparse

import article_page
import listing_page
from html_render import (
    render_article_page,
    render_listing_page,
    render_load_more_json,
    render_loading_page,
    render_not_found_page,
)
from models import ListingState, LoadMoreSuccess, PageResult
from page_cache import CachedPage, PageCache
from prismic_client import PREVIEW_COOKIE, ContentClientError, PrismicClient, get_prismic_client
from rich_text import PrismicRichText, RichTextRenderer

LOGGER = logging.getLogger(__name__)

HTML = "text/html; charset=utf-8"
JSON = "application/json; charset=utf-8"


@dataclass
class Response:
    status: int
    body: str = ""
    content_type: str = HTML
    headers: dict[str, str] = field(default_factory=dict)


class BlogSite:
    """Socket-free core of the server: maps requests to rendered pages."""

    def __init__(
        self,
        client_factory: Callable[[], PrismicClient] = get_prismic_client,
        renderer: RichTextRenderer | None = None,
        cache: PageCache | None = None,
    ) -> None:
        self.client_factory = client_factory
        self.renderer = renderer or PrismicRichText()
        self.cache = cache or PageCache()

    def render_listing(self, preview_ref: str | None = None) -> Response:
        def generate() -> tuple[int, str, int | None]:
            result = listing_page.get_static_props(
                self.client_factory(), preview=bool(preview_ref), preview_ref=preview_ref
            )
            return 200, render_listing_page(result.props), result.revalidate

        return self._serve("/", generate, preview_ref)

    def render_article(self, slug: str, preview_ref: str | None = None) -> Response:
        def generate() -> tuple[int, str, int | None]:
            result = article_page.get_static_props(
                slug, self.client_factory(), preview=bool(preview_ref), preview_ref=preview_ref
            )
            return self._article_response(result)

        return self._serve(f"/post/{slug}", generate, preview_ref)

    def _article_response(self, result: PageResult) -> tuple[int, str, int | None]:
        if result.not_found:
            return 404, render_not_found_page(), result.revalidate
        return 200, render_article_page(result.props, self.renderer), result.revalidate

    def _serve(
        self,
        key: str,
        generate: Callable[[], tuple[int, str, int | None]],
        preview_ref: str | None,
    ) -> Response:
        # Draft content is never cached.
        if preview_ref:
            status, body, _ = generate()
            return Response(status, body)

        entry = self.cache.get(key)
        if entry is not None and not self.cache.is_stale(entry):
            return _from_cache(entry)

        if not self.cache.try_begin(key):
            if entry is not None:
                return _from_cache(entry)
            return Response(200, render_loading_page())

        try:
            status, body, revalidate = generate()
        except ContentClientError as exc:
            if entry is None:
                raise
            LOGGER.warning("Regeneration failed for %s, serving stale page: %s", key, exc)
            return _from_cache(entry)
        finally:
            self.cache.finish(key)

        LOGGER.info("Generated %s status=%s revalidate=%s", key, status, revalidate)
        return _from_cache(self.cache.put(key, body, status=status, revalidate=revalidate))

    def load_more(self, cursor: str) -> Response:
        client = self.client_factory()
        if not _same_origin(cursor, client.endpoint):
            return Response(400, json.dumps({"error": "cursor does not belong to this repository"}), JSON)

        result = listing_page.load_more(ListingState(items=(), cursor=cursor), client.fetch_page)
        if isinstance(result, LoadMoreSuccess):
            return Response(200, render_load_more_json(result.state, result.state.items), JSON)
        return Response(502, json.dumps({"error": result.reason}), JSON)

    def enter_preview(self, token: str, document_id: str | None) -> Response:
        location = "/"
        if document_id:
            document = self.client_factory().get_by_id(document_id, ref=token)
            if document and document.get("type") == article_page.POST_TYPE and document.get("uid"):
                location = f"/post/{quote(document['uid'], safe='')}"
        cookie = SimpleCookie()
        cookie[PREVIEW_COOKIE] = token
        cookie[PREVIEW_COOKIE]["path"] = "/"
        cookie[PREVIEW_COOKIE]["samesite"] = "Lax"
        return Response(307, headers={"Location": location, "Set-Cookie": cookie[PREVIEW_COOKIE].OutputString()})

    def exit_preview(self) -> Response:
        cookie = SimpleCookie()
        cookie[PREVIEW_COOKIE] = ""
        cookie[PREVIEW_COOKIE]["path"] = "/"
        cookie[PREVIEW_COOKIE]["max-age"] = 0
        return Response(307, headers={"Location": "/", "Set-Cookie": cookie[PREVIEW_COOKIE].OutputString()})

    def handle(self, path: str, cookie_header: str | None = None) -> Response:
        """Route one GET request."""
        parsed = urlparse(path)
        query = parse_qs(parsed.query)
        preview_ref = _preview_ref(cookie_header)

        if parsed.path == "/":
            return self.render_listing(preview_ref)
        if parsed.path.startswith("/post/"):
            slug = unquote(parsed.path[len("/post/"):].strip("/"))
            if not slug or "/" in slug:
                return Response(404, render_not_found_page())
            return self.render_article(slug, preview_ref)
        if parsed.path == "/api/posts":
            cursor = (query.get("cursor") or [""])[0]
            if not cursor:
                return Response(400, json.dumps({"error": "cursor is required"}), JSON)
            return self.load_more(cursor)
        if parsed.path == "/api/preview":
            token = (query.get("token") or [""])[0]
            if not token:
                return Response(400, "Missing preview token", "text/plain; charset=utf-8")
            return self.enter_preview(token, (query.get("documentId") or [None])[0])
        if parsed.path == "/api/exit-preview":
            return self.exit_preview()
        return Response(404, render_not_found_page())


def make_handler(site: BlogSite) -> type[BaseHTTPRequestHandler]:
    class RequestHandler(BaseHTTPRequestHandler):
        def do_GET(self) -> None:
            try:
                response = site.handle(self.path, self.headers.get("Cookie"))
            except Exception:
                LOGGER.exception("Request failed: %s", self.path)
                response = Response(500, "Internal Server Error", "text/plain; charset=utf-8")

            body = response.body.encode("utf-8")
            self.send_response(response.status)
            self.send_header("Content-Type", response.content_type)
            self.send_header("Content-Length", str(len(body)))
            for name, value in response.headers.items():
                self.send_header(name, value)
            self.end_headers()
            self.wfile.write(body)

        def log_message(self, format: str, *args: object) -> None:
            LOGGER.info("%s - %s", self.address_string(), format % args)

    return RequestHandler


def serve(site: BlogSite, host: str, port: int) -> None:
    server = ThreadingHTTPServer((host, port), make_handler(site))
    LOGGER.info("Serving blog on http://%s:%s", host, port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        LOGGER.info("Server stopped.")
    finally:
        server.server_close()


def _from_cache(entry: CachedPage) -> Response:
    return Response(entry.status, entry.body)


def _preview_ref(cookie_header: str | None) -> str | None:
    if not cookie_header:
        return None
    cookie = SimpleCookie()
    cookie.load(cookie_header)
    morsel = cookie.get(PREVIEW_COOKIE)
    return morsel.value if morsel is not None and morsel.value else None


def _same_origin(url: str, endpoint: str) -> bool:
    target, base = urlparse(url), urlparse(endpoint)
    return target.scheme in ("http", "https") and (target.scheme, target.netloc) == (base.scheme, base.netloc)
