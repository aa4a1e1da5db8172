"""HTML views for the listing, article, loading and not-found pages."""

from __future__ import annotations

import html
import json
import os
from datetime import datetime
from urllib.parse import quote

from article_page import ArticlePageProps, estimate_reading_time, is_edited
from listing_page import ListingPageProps
from models import AdjacentLink, ArticleSummary, ListingState
from prismic_client import strip_access_token
from rich_text import RichTextRenderer

SITE_NAME = "spacetraveling"
EXIT_PREVIEW_PATH = "/api/exit-preview"
LOAD_MORE_PATH = "/api/posts"
UTTERANCES_SCRIPT_URL = "https://utteranc.es/client.js"

_PT_BR_MONTHS = ["jan", "fev", "mar", "abr", "mai", "jun", "jul", "ago", "set", "out", "nov", "dez"]

_LOAD_MORE_SCRIPT = """
<script>
var MONTHS = ["jan", "fev", "mar", "abr", "mai", "jun", "jul", "ago", "set", "out", "nov", "dez"];

function formatDate(raw) {
  if (!raw) { return ""; }
  var date = new Date(raw.replace(/([+-]\\d{2})(\\d{2})$/, "$1:$2"));
  if (isNaN(date.getTime())) { return ""; }
  var day = String(date.getUTCDate()).padStart(2, "0");
  return day + " " + MONTHS[date.getUTCMonth()] + " " + date.getUTCFullYear();
}

function element(tag, className, text) {
  var node = document.createElement(tag);
  if (className) { node.className = className; }
  if (text !== undefined) { node.textContent = text || ""; }
  return node;
}

function postNode(result) {
  var data = result.data || {};
  var link = element("a");
  link.href = "/post/" + encodeURIComponent(result.uid);
  link.appendChild(element("h1", "", data.title));
  link.appendChild(element("h2", "", data.subtitle));
  var info = element("div", "info");
  info.appendChild(element("span", "date", formatDate(result.first_publication_date)));
  info.appendChild(element("span", "author", data.author));
  link.appendChild(info);
  var post = element("div", "post");
  post.appendChild(link);
  return post;
}

document.querySelectorAll("[data-load-more]").forEach(function (button) {
  button.addEventListener("click", function () {
    var cursor = button.dataset.cursor;
    var endpoint = button.dataset.endpoint;
    fetch(endpoint ? endpoint + "?cursor=" + encodeURIComponent(cursor) : cursor)
      .then(function (response) {
        if (!response.ok) { throw new Error("HTTP " + response.status); }
        return response.json();
      })
      .then(function (data) {
        (data.results || []).forEach(function (result) {
          if (result && result.uid) { button.parentNode.insertBefore(postNode(result), button); }
        });
        if (data.next_page) { button.dataset.cursor = data.next_page; } else { button.remove(); }
      })
      .catch(function (error) {
        button.dataset.error = String(error);
        button.textContent = "Falha ao carregar, tente novamente";
      });
  });
});
</script>
"""



def format_publication_date(value: datetime | None) -> str:
    """`dd MMM yyyy` with Brazilian Portuguese month abbreviations."""
    if value is None:
        return ""
    return f"{value.day:02d} {_PT_BR_MONTHS[value.month - 1]} {value.year}"


def format_edit_timestamp(value: datetime | None) -> str:
    if value is None:
        return ""
    return f"{format_publication_date(value)}, às {value.hour:02d}:{value.minute:02d}"


def render_summaries(items: tuple[ArticleSummary, ...] | list[ArticleSummary]) -> str:
    parts = []
    for item in items:
        if not item.slug:
            continue
        parts.append(
            '<div class="post">'
            f'<a href="{_post_href(item.slug)}">'
            f"<h1>{_text(item.title)}</h1>"
            f"<h2>{_text(item.subtitle)}</h2>"
            '<div class="info">'
            f'<span class="date">{_text(format_publication_date(item.first_published_at))}</span>'
            f'<span class="author">{_text(item.author)}</span>'
            "</div></a></div>"
        )
    return "".join(parts)


def render_listing_page(props: ListingPageProps, load_more_endpoint: str | None = LOAD_MORE_PATH) -> str:
    """Listing markup.

    With `load_more_endpoint` unset the page script dereferences the cursor
    against Prismic itself, which is how statically built pages paginate.
    """
    state = ListingState.from_listing(props.listing)
    load_more = ""
    if state.has_more:
        endpoint = f' data-endpoint="{_attr(load_more_endpoint)}"' if load_more_endpoint else ""
        load_more = (
            f'<button type="button" data-load-more{endpoint} '
            f'data-cursor="{_attr(strip_access_token(state.cursor or ""))}">Carregar mais posts</button>'
        )
    body = (
        '<main class="contentContainer"><section class="listPosts">'
        f"{render_summaries(state.items)}{load_more}"
        f"</section>{_preview_aside(props.preview)}</main>"
    )
    return _document(f"Inicio | {SITE_NAME}", body, script=_LOAD_MORE_SCRIPT if state.has_more else "")


def render_article_page(props: ArticlePageProps, renderer: RichTextRenderer) -> str:
    article = props.article
    minutes = estimate_reading_time(article.content, renderer)

    edited = ""
    if is_edited(article):
        edited = f'<div class="editTime">* editado em {_text(format_edit_timestamp(article.last_published_at))}</div>'

    sections = "".join(
        f'<div class="heading">{_text(section.heading)}</div>'
        f'<div class="body">{renderer.as_html(section.body)}</div>'
        for section in article.content
    )
    banner = f'<img class="banner" src="{_attr(article.banner_url)}" alt="" />' if article.banner_url else ""
    body = (
        f'{banner}<main class="container"><article class="post">'
        f'<h1 class="postTitle">{_text(article.title)}</h1>'
        '<div class="info">'
        f'<span class="date">{_text(format_publication_date(article.first_published_at))}</span>'
        f'<span class="author">{_text(article.author)}</span>'
        f'<span class="readingTime">{minutes} min</span>'
        f"{edited}</div>"
        f'<div class="content">{sections}</div>'
        "</article>"
        f'<div class="postsNav">{_nav_link(article.prev, "Post anterior")}{_nav_link(article.next, "Próximo post")}</div>'
        f"{_comments()}{_preview_aside(props.preview)}</main>"
    )
    return _document(f"{article.title} | {SITE_NAME}", body)


def render_loading_page() -> str:
    body = '<main class="container"><div class="loading">Carregando...</div></main>'
    return _document(SITE_NAME, body, head='<meta http-equiv="refresh" content="1" />')


def render_not_found_page() -> str:
    body = '<main class="container"><h1>Post não encontrado</h1><a href="/">Voltar para o início</a></main>'
    return _document(f"Não encontrado | {SITE_NAME}", body)


def render_load_more_json(state: ListingState, appended: tuple[ArticleSummary, ...]) -> str:
    """Body for the load-more endpoint, shaped like a Prismic search response."""
    return json.dumps(
        {
            "results": [
                {
                    "uid": item.slug,
                    "first_publication_date": item.first_published_at.isoformat() if item.first_published_at else None,
                    "data": {"title": item.title, "subtitle": item.subtitle, "author": item.author},
                }
                for item in appended
                if item.slug
            ],
            "next_page": strip_access_token(state.cursor) if state.cursor else None,
        },
        ensure_ascii=False,
    )


def _nav_link(link: AdjacentLink | None, label: str) -> str:
    if link is None or not link.slug:
        return ""
    return f'<div><span>{_text(link.title)}</span><a href="{_post_href(link.slug)}">{label}</a></div>'


def _comments() -> str:
    repo = os.getenv("UTTERANCES_REPO")
    if not repo:
        return ""
    theme = os.getenv("UTTERANCES_THEME", "github-dark")
    return (
        '<div id="inject-comments-for-uterances"></div>'
        f'<script src="{UTTERANCES_SCRIPT_URL}" repo="{_attr(repo)}" issue-term="pathname" '
        f'theme="{_attr(theme)}" crossorigin="anonymous" async></script>'
    )


def _preview_aside(preview: bool) -> str:
    if not preview:
        return ""
    return f'<aside><a href="{EXIT_PREVIEW_PATH}">Sair do modo Preview</a></aside>'


def _document(title: str, body: str, head: str = "", script: str = "") -> str:
    return (
        '<!DOCTYPE html>\n<html lang="pt-BR"><head><meta charset="utf-8" />'
        f"<title>{_text(title)}</title>{head}</head>"
        f"<body>{body}{script}</body></html>\n"
    )


def _text(value: str) -> str:
    return html.escape(value, quote=False)


def _attr(value: str) -> str:
    return html.escape(value, quote=True)


def _post_href(slug: str) -> str:
    return _attr(f"/post/{quote(slug, safe='')}")
