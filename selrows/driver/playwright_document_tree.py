"""Playwright-backed DocumentTree for live, JavaScript-rendered pages.

Queries run against the page's current DOM, so repeated passes see content
added since the previous pass (infinite scroll, "load more" widgets).
Element handles are Playwright ElementHandle objects.

Every handle a query returns keeps a reference alive in the browser until
it is disposed. Use one tree per pass and dispose it afterwards, or use it
as a context manager.

Uses Playwright's sync API: the extraction engine is synchronous and a
pass blocks on each query.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from playwright.sync_api import ElementHandle, Page
from playwright.sync_api import Error as PlaywrightError

from selrows.common.exceptions import InvalidSelectorException
from selrows.common.lxml_document_tree import LxmlDocumentTree

logger = logging.getLogger(__name__)

# Messages Playwright uses when the selector itself cannot be parsed. Any
# other error (closed page, navigation, crash) is not the selector's fault.
_SELECTOR_SYNTAX_ERROR = re.compile(
    r"while parsing (?:css )?selector|is not a valid selector"
    r"|unknown engine|unexpected token",
    re.IGNORECASE,
)


def is_selector_error(error: PlaywrightError) -> bool:
    """Whether a Playwright error reports an unparseable selector."""
    return bool(_SELECTOR_SYNTAX_ERROR.search(error.message or ""))


class PlaywrightDocumentTree:
    """DocumentTree over a live Playwright page.

    Args:
        page: An open Playwright sync Page.

    Example::

        with sync_playwright() as p:
            page = p.chromium.launch().new_page()
            page.goto(url)
            with PlaywrightDocumentTree(page) as tree:
                result = extractor.run(extractor.request_for(tree))
    """

    def __init__(self, page: Page) -> None:
        self.page = page
        self._handles: list[ElementHandle] = []

    def __enter__(self) -> PlaywrightDocumentTree:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.dispose()

    @property
    def url(self) -> str:
        return self.page.url

    @property
    def handle_count(self) -> int:
        """Number of element handles returned and not yet disposed."""
        return len(self._handles)

    def query_all(
        self, selector: str, scope: ElementHandle | None = None
    ) -> list[ElementHandle]:
        try:
            if scope is None:
                handles = self.page.query_selector_all(selector)
            else:
                handles = scope.query_selector_all(selector)
        except PlaywrightError as e:
            if not is_selector_error(e):
                raise
            raise InvalidSelectorException(
                selector=selector,
                description=selector,
                url=self.url,
                error=e.message,
            ) from e
        self._handles.extend(handles)
        return handles

    def get_property(self, element: ElementHandle, name: str) -> str | None:
        js_handle = element.get_property(name)
        try:
            value: Any = js_handle.json_value()
        finally:
            js_handle.dispose()
        if value is None:
            # Not a DOM property; fall back to the attribute
            return element.get_attribute(name)
        if isinstance(value, str):
            return value
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (dict, list)):
            logger.debug(f"Property {name!r} is not a scalar, skipping")
            return None
        return str(value)

    def dispose(self) -> None:
        """Release every element handle returned by this tree.

        Handles of a page that has since closed or navigated are already
        gone, so errors while disposing them are logged and ignored.
        """
        handles, self._handles = self._handles, []
        for handle in handles:
            try:
                handle.dispose()
            except PlaywrightError as e:
                logger.debug(f"Could not dispose element handle: {e.message}")
        if handles:
            logger.debug(f"Disposed {len(handles)} element handles")

    def snapshot(self) -> LxmlDocumentTree:
        """Serialize the current DOM into a static tree.

        Returns:
            LxmlDocumentTree parsed from ``page.content()``.
        """
        return LxmlDocumentTree.from_html(self.page.content(), self.url)
