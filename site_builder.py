"""Static build: pre-render the listing and every known article to disk."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import article_page
import listing_page
from html_render import LOAD_MORE_PATH, render_article_page, render_listing_page, render_not_found_page
from prismic_client import PrismicClient, get_prismic_client
from rich_text import PrismicRichText, RichTextRenderer

SITE_OUTPUT_DIR = os.getenv("SITE_OUTPUT_DIR", "out")

LOGGER = logging.getLogger(__name__)


def build_site(
    output_dir: str | Path = SITE_OUTPUT_DIR,
    client: PrismicClient | None = None,
    renderer: RichTextRenderer | None = None,
) -> int:
    """Write index.html, post/<slug>/index.html and 404.html under output_dir.

    Returns the number of article pages written. Any backend failure aborts
    the build.
    """
    output = Path(output_dir)
    client = client or get_prismic_client()
    renderer = renderer or PrismicRichText()

    listing = listing_page.get_static_props(client)
    _write(output / "index.html", render_listing_page(listing.props, _load_more_endpoint(client)))

    paths = article_page.get_static_paths(client)
    written = 0
    for slug in paths.slugs:
        result = article_page.get_static_props(slug, client)
        if result.not_found:
            LOGGER.warning("Skipping slug=%s: listed but not resolvable", slug)
            continue
        _write(output / "post" / slug / "index.html", render_article_page(result.props, renderer))
        written += 1

    _write(output / "404.html", render_not_found_page())
    LOGGER.info("Static build complete: output=%s articles=%s", output, written)
    return written


def _load_more_endpoint(client: PrismicClient) -> str | None:
    # Public repositories are paginated straight from the browser.
    if not getattr(client, "access_token", None):
        return None
    LOGGER.warning(
        "Private Prismic repository: load more on the static listing needs the server at %s",
        LOAD_MORE_PATH,
    )
    return LOAD_MORE_PATH


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    tmp_path.write_text(content, encoding="utf-8")
    os.replace(tmp_path, path)
