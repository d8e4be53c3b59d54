"""Integration tests for PlaywrightDocumentTree.

Skipped unless Playwright and a Chromium build are installed.
"""

import pytest

sync_api = pytest.importorskip("playwright.sync_api")

from selrows.common.document_tree import DocumentTree  # noqa: E402
from selrows.common.exceptions import InvalidSelectorException  # noqa: E402
from selrows.common.lxml_document_tree import LxmlDocumentTree  # noqa: E402
from selrows.data_types import SelectorPair  # noqa: E402
from selrows.driver.playwright_document_tree import (  # noqa: E402
    PlaywrightDocumentTree,
    is_selector_error,
)
from selrows.extractor import HtmlContentExtractor  # noqa: E402

FEED_HTML = """
<html>
<body>
    <div id="feed">
        <div class="post"><h2>First</h2><a href="/1">more</a></div>
        <div class="post"><h2>Second</h2></div>
    </div>
    <input id="agree" type="checkbox" checked>
</body>
</html>
"""


@pytest.fixture(scope="module")
def browser():
    with sync_api.sync_playwright() as p:
        try:
            browser = p.chromium.launch()
        except sync_api.Error as e:
            pytest.skip(f"Chromium not available: {e.message}")
        yield browser
        browser.close()


@pytest.fixture
def tree(browser):
    page = browser.new_page()
    page.set_content(FEED_HTML)
    yield PlaywrightDocumentTree(page)
    page.close()


def test_satisfies_protocol(tree):
    assert isinstance(tree, DocumentTree)


def test_query_all(tree):
    assert len(tree.query_all(".post")) == 2
    assert tree.query_all("table") == []


def test_scoped_query(tree):
    first_post = tree.query_all(".post")[0]
    headings = tree.query_all("h2", first_post)

    assert [tree.get_property(h, "innerText") for h in headings] == ["First"]


def test_dom_property(tree):
    checkbox = tree.query_all("#agree")[0]
    assert tree.get_property(checkbox, "checked") == "true"
    assert tree.get_property(checkbox, "tagName") == "INPUT"


def test_href_property_is_absolute(tree):
    link = tree.query_all(".post a")[0]
    assert tree.get_property(link, "href").endswith("/1")


def test_unknown_property_falls_back_to_attribute(tree):
    post = tree.query_all(".post")[0]
    assert tree.get_property(post, "data-missing") is None


def test_invalid_selector(tree):
    with pytest.raises(InvalidSelectorException):
        tree.query_all("p[[[")


def test_snapshot(tree):
    snapshot = tree.snapshot()

    assert isinstance(snapshot, LxmlDocumentTree)
    assert len(snapshot.query_all(".post")) == 2


def test_passes_over_a_growing_page(tree):
    """Rows added by script between passes shall be returned alone."""
    extractor = HtmlContentExtractor(
        {
            "selectorPairs": [
                {"contentSelector": ".post h2"},
                {"contentSelector": ".post a", "contentProperty": "href"},
            ]
        }
    )

    first = extractor.run(extractor.request_for(tree))
    tree.page.evaluate(
        """() => {
            const post = document.createElement("div");
            post.className = "post";
            post.innerHTML = "<h2>Third</h2>";
            document.getElementById("feed").appendChild(post);
        }"""
    )
    second = extractor.run(extractor.request_for(tree))

    assert [row[0] for row in first.rows] == ["First", "Second"]
    assert first.rows[1][1] == ""
    assert second.rows == [["Third", ""]]


def test_single_pair_over_snapshot(tree):
    extractor = HtmlContentExtractor(
        {"selectorPairs": [SelectorPair(content_selector="#feed h2")]}
    )

    rows = extractor.extract_content(tree.snapshot())

    assert rows == [["First"], ["Second"]]


@pytest.mark.parametrize(
    "message",
    [
        'Unexpected token "[" while parsing css selector "p[[["',
        "SyntaxError: 'p[[[' is not a valid selector",
        'Unknown engine "foo" while parsing selector foo=bar',
    ],
)
def test_selector_syntax_errors_are_recognized(message):
    assert is_selector_error(sync_api.Error(message))


@pytest.mark.parametrize(
    "message",
    [
        "Target page, context or browser has been closed",
        "Execution context was destroyed, most likely because of a "
        "navigation",
    ],
)
def test_other_errors_are_not_selector_errors(message):
    assert not is_selector_error(sync_api.Error(message))


def test_closed_page_error_propagates(browser):
    """A query on a closed page shall fail loudly, not read as no rows."""
    page = browser.new_page()
    page.set_content(FEED_HTML)
    tree = PlaywrightDocumentTree(page)
    extractor = HtmlContentExtractor(
        {
            "selectorPairs": [
                {"contentSelector": ".post h2"},
                {"contentSelector": ".post a"},
            ]
        }
    )
    page.close()

    with pytest.raises(sync_api.Error) as exc_info:
        tree.query_all(".post h2")
    assert not isinstance(exc_info.value, InvalidSelectorException)

    with pytest.raises(sync_api.Error):
        extractor.run(extractor.request_for(tree))


def test_child_combinator_after_base(tree):
    extractor = HtmlContentExtractor(
        {
            "selectorPairs": [
                {"contentSelector": "#feed > .post > h2"},
                {"contentSelector": "#feed > .post"},
            ]
        }
    )

    rows = extractor.extract_content(tree)

    assert [row[0] for row in rows] == ["First", "Second"]


def test_dispose_releases_handles(tree):
    extractor = HtmlContentExtractor(
        {
            "selectorPairs": [
                {"contentSelector": ".post h2"},
                {"contentSelector": ".post a"},
            ]
        }
    )

    extractor.extract_content(tree)
    assert tree.handle_count > 0

    tree.dispose()

    assert tree.handle_count == 0
    assert len(tree.query_all(".post")) == 2


def test_context_manager_disposes(browser):
    page = browser.new_page()
    page.set_content(FEED_HTML)
    try:
        with PlaywrightDocumentTree(page) as tree:
            tree.query_all(".post")
            assert tree.handle_count == 2
        assert tree.handle_count == 0
    finally:
        page.close()
