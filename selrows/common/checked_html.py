"""Checked HTML element wrapper for safe CSS querying.

This module provides CheckedHtmlElement, a wrapper around
lxml.html.HtmlElement that compiles CSS selectors through cssselect and
reports syntax errors as InvalidSelectorException instead of leaking
parser internals to callers.
"""

from __future__ import annotations

import re
from functools import lru_cache

from cssselect import HTMLTranslator, SelectorError
from lxml import etree
from lxml.html import HtmlElement

from selrows.common.exceptions import InvalidSelectorException

_translator = HTMLTranslator()

# Root queries may match the root itself, scoped queries only match
# descendants, as Element.querySelectorAll does.
ROOT_PREFIX = "descendant-or-self::"
SCOPED_PREFIX = "descendant::"
CHILD_PREFIX = "child::"

# Leading ":scope" of a scoped query, with an optional combinator after it
_SCOPE_ANCHOR = re.compile(r"^:scope(?:\s*([>+~])\s*|\s+|$)")


@lru_cache(maxsize=512)
def css_to_xpath(selector: str, prefix: str = ROOT_PREFIX) -> str:
    """Translate a CSS selector to XPath.

    Args:
        selector: CSS selector expression.
        prefix: XPath axis prefix applied to each selector group.

    Returns:
        The equivalent XPath expression.

    Raises:
        SelectorError: If the selector is not valid CSS.
    """
    return _translator.css_to_xpath(selector, prefix=prefix)


class CheckedHtmlElement:
    """Wrapper around HtmlElement with checked CSS queries.

    checked_css() compiles the selector, runs it against the wrapped element
    and wraps each match so nested queries get the same checking.
    """

    def __init__(self, element: HtmlElement, url: str = "") -> None:
        """Initialize the checked element wrapper.

        Args:
            element: The lxml HtmlElement to wrap.
            url: Optional URL for error context.
        """
        self._element = element
        self._url = url

    @property
    def element(self) -> HtmlElement:
        """The wrapped lxml element."""
        return self._element

    def checked_css(
        self,
        selector: str,
        description: str,
        scoped: bool = False,
    ) -> list[CheckedHtmlElement]:
        """Execute a CSS selector query.

        Args:
            selector: CSS selector expression.
            description: Human-readable description of what's being selected.
            scoped: If True, only descendants of this element can match. A
                leading ``:scope`` refers to this element, so
                ``:scope > li`` matches its direct ``<li>`` children only.

        Returns:
            List of matching CheckedHtmlElements in document order. An empty
            list is a valid result.

        Raises:
            InvalidSelectorException: If the selector is not valid CSS.

        Example::

            tree = CheckedHtmlElement(lxml.html.fromstring(html))
            for item in tree.checked_css("li.item", "items"):
                titles = item.checked_css("h2", "title", scoped=True)
        """
        query = selector
        prefix = SCOPED_PREFIX if scoped else ROOT_PREFIX
        anchor = _SCOPE_ANCHOR.match(selector) if scoped else None
        if anchor is not None:
            combinator = anchor.group(1)
            rest = selector[anchor.end() :]
            if not rest:
                if combinator:
                    raise InvalidSelectorException(
                        selector=selector,
                        description=description,
                        url=self._url,
                        error=f"Nothing follows {combinator!r}",
                    )
                return [self]
            if combinator in ("+", "~"):
                # Siblings of the scope are never inside it
                return []
            if combinator == ">":
                prefix = CHILD_PREFIX
            query = rest

        try:
            xpath = css_to_xpath(query, prefix)
            results = self._element.xpath(xpath)
        except (SelectorError, etree.XPathError) as e:
            raise InvalidSelectorException(
                selector=selector,
                description=description,
                url=self._url,
                error=str(e),
            ) from e

        return [
            CheckedHtmlElement(result, self._url)
            for result in results
            if isinstance(result, HtmlElement)
        ]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, CheckedHtmlElement):
            return self._element is other._element
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._element)

    def __getattr__(self, name: str):
        """Delegate all other attributes to the wrapped element.

        This allows CheckedHtmlElement to be used as a drop-in replacement for
        HtmlElement, while adding the checked methods.
        """
        return getattr(self._element, name)
