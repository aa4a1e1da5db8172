from rich_text import PrismicRichText

RENDERER = PrismicRichText()


def test_as_text_joins_blocks_with_space() -> None:
    blocks = [
        {"type": "heading2", "text": "Title", "spans": []},
        {"type": "paragraph", "text": "Body text", "spans": []},
        {"type": "image", "url": "https://img"},
    ]

    assert RENDERER.as_text(blocks) == "Title Body text "


def test_as_html_paragraph_and_headings() -> None:
    blocks = [
        {"type": "heading1", "text": "Big", "spans": []},
        {"type": "heading6", "text": "Small", "spans": []},
        {"type": "paragraph", "text": "Plain", "spans": []},
        {"type": "preformatted", "text": "x = 1", "spans": []},
    ]

    assert RENDERER.as_html(blocks) == "<h1>Big</h1><h6>Small</h6><p>Plain</p><pre>x = 1</pre>"


def test_as_html_groups_list_items() -> None:
    blocks = [
        {"type": "list-item", "text": "a", "spans": []},
        {"type": "list-item", "text": "b", "spans": []},
        {"type": "o-list-item", "text": "one", "spans": []},
        {"type": "paragraph", "text": "after", "spans": []},
    ]

    assert RENDERER.as_html(blocks) == (
        "<ul><li>a</li><li>b</li></ul><ol><li>one</li></ol><p>after</p>"
    )


def test_as_html_closes_trailing_list() -> None:
    assert RENDERER.as_html([{"type": "list-item", "text": "a", "spans": []}]) == "<ul><li>a</li></ul>"


def test_as_html_spans_and_links() -> None:
    block = {
        "type": "paragraph",
        "text": "Read the docs now",
        "spans": [
            {"start": 0, "end": 4, "type": "strong"},
            {"start": 9, "end": 13, "type": "hyperlink", "data": {"url": "https://prismic.io", "target": "_blank"}},
        ],
    }

    assert RENDERER.as_html([block]) == (
        '<p><strong>Read</strong> the <a href="https://prismic.io" target="_blank" rel="noopener">docs</a> now</p>'
    )


def test_as_html_nested_spans() -> None:
    block = {
        "type": "paragraph",
        "text": "bold and italic",
        "spans": [
            {"start": 9, "end": 15, "type": "em"},
            {"start": 0, "end": 15, "type": "strong"},
        ],
    }

    assert RENDERER.as_html([block]) == "<p><strong>bold and <em>italic</em></strong></p>"


def test_as_html_escapes_text_and_keeps_line_breaks() -> None:
    block = {"type": "paragraph", "text": "<script>\nx & y", "spans": []}

    assert RENDERER.as_html([block]) == "<p>&lt;script&gt;<br />x &amp; y</p>"


def test_as_html_ignores_out_of_range_spans() -> None:
    block = {"type": "paragraph", "text": "short", "spans": [{"start": 2, "end": 99, "type": "em"}]}

    assert RENDERER.as_html([block]) == "<p>short</p>"


def test_as_html_image_and_label() -> None:
    blocks = [
        {"type": "image", "url": "https://images.prismic.io/a.png", "alt": 'a "cat"'},
        {"type": "paragraph", "text": "tagged", "spans": [{"start": 0, "end": 6, "type": "label", "data": {"label": "highlight"}}]},
    ]

    assert RENDERER.as_html(blocks) == (
        '<p class="block-img"><img src="https://images.prismic.io/a.png" alt="a &quot;cat&quot;" /></p>'
        '<p><span class="highlight">tagged</span></p>'
    )
