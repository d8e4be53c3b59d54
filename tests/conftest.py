"""Shared fixtures for extraction tests."""

from collections.abc import Callable

import pytest

from selrows.common.lxml_document_tree import LxmlDocumentTree
from selrows.data_types import SelectorPair

LISTING_URL = "https://shop.example.com/catalog/"


@pytest.fixture
def listing_html() -> str:
    """A product listing with a repeating .item block.

    The second item has no price and the third item is empty.
    """
    return """
    <html>
    <body>
        <h1>Catalog</h1>
        <ul id="items">
            <li class="item" data-sku="A1">
                <a class="title" href="/p/1"> T1 </a>
                <span class="price">P1</span>
            </li>
            <li class="item" data-sku="A2">
                <a class="title" href="/p/2">T2</a>
            </li>
            <li class="item"></li>
        </ul>
    </body>
    </html>
    """


@pytest.fixture
def make_tree() -> Callable[[str], LxmlDocumentTree]:
    """Factory parsing an HTML string into an LxmlDocumentTree."""

    def _make(html: str, url: str = LISTING_URL) -> LxmlDocumentTree:
        return LxmlDocumentTree.from_html(html, url)

    return _make


@pytest.fixture
def listing_tree(
    listing_html: str, make_tree: Callable[[str], LxmlDocumentTree]
) -> LxmlDocumentTree:
    return make_tree(listing_html)


@pytest.fixture
def item_pairs() -> list[SelectorPair]:
    """Title and price of each .item."""
    return [
        SelectorPair(label="title", content_selector=".item .title"),
        SelectorPair(label="price", content_selector=".item .price"),
    ]
