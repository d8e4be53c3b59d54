"""LxmlDocumentTree implementation backed by a parsed static snapshot.

This is the standard DocumentTree used for serialized documents: a
previously fetched HTML body, or a DOM snapshot serialized from a live
browser page. Element handles are CheckedHtmlElement instances.

Property names follow browser DOM naming where a DOM property has no
attribute counterpart (``innerText``, ``innerHTML``, ...). Any other name
is read as an attribute.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from html import escape
from urllib.parse import urljoin

from lxml import etree
from lxml import html as lxml_html

from selrows.common.checked_html import CheckedHtmlElement
from selrows.common.exceptions import DocumentParseException

logger = logging.getLogger(__name__)

_XML_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")


def _inner_html(element: CheckedHtmlElement) -> str:
    elem = element.element
    leading = escape(elem.text, quote=False) if elem.text else ""
    return leading + "".join(
        lxml_html.tostring(child, encoding="unicode") for child in elem
    )


def _outer_html(element: CheckedHtmlElement) -> str:
    return lxml_html.tostring(
        element.element, encoding="unicode", with_tail=False
    )


_DOM_PROPERTIES: dict[str, Callable[[CheckedHtmlElement], str]] = {
    "innerText": lambda element: element.text_content(),
    "textContent": lambda element: element.text_content(),
    "text": lambda element: element.text_content(),
    "innerHTML": _inner_html,
    "outerHTML": _outer_html,
    "tagName": lambda element: element.tag.upper(),
}

# DOM property name -> attribute name, where they differ
_ATTRIBUTE_ALIASES = {
    "className": "class",
    "htmlFor": "for",
}

# Attributes whose DOM property is the absolute URL
_URL_ATTRIBUTES = frozenset({"href", "src", "action"})


class LxmlDocumentTree:
    """DocumentTree over an lxml element tree.

    Attributes:
        root: The CheckedHtmlElement every unscoped query starts from.
        url: Base URL for resolving relative ``href``/``src`` values.
    """

    def __init__(
        self,
        root: CheckedHtmlElement | lxml_html.HtmlElement,
        url: str = "",
    ) -> None:
        """Initialize LxmlDocumentTree.

        Args:
            root: Parsed root element, plain or already wrapped.
            url: Base URL for resolving relative URLs.
        """
        if not isinstance(root, CheckedHtmlElement):
            root = CheckedHtmlElement(root, url)
        self.root = root
        self.url = url

    @classmethod
    def from_html(cls, data: str | bytes, url: str = "") -> LxmlDocumentTree:
        """Parse serialized markup into a tree.

        Passes raw bytes to lxml so it can detect the encoding from a BOM or
        ``<meta charset>``. A leading XML declaration is dropped from text
        input, since lxml refuses one in a decoded string. Blank input is an
        empty document with nothing to match.

        Args:
            data: HTML document or fragment.
            url: URL the markup was obtained from.

        Returns:
            LxmlDocumentTree rooted at the parsed document element.

        Raises:
            DocumentParseException: If lxml cannot build a tree from the data.
        """
        if isinstance(data, str):
            data = _XML_DECLARATION.sub("", data, count=1)

        if not data.strip():
            logger.debug(f"Empty document at {url or '<unknown>'}")
            return cls(lxml_html.Element("html"), url)

        try:
            root = lxml_html.fromstring(data)
        except (etree.ParserError, ValueError) as e:
            raise DocumentParseException(
                f"Failed to parse HTML: {e}",
                url,
                {"length": len(data)},
            ) from e
        return cls(root, url)

    def query_all(
        self, selector: str, scope: CheckedHtmlElement | None = None
    ) -> list[CheckedHtmlElement]:
        if scope is None:
            return self.root.checked_css(selector, selector)
        return scope.checked_css(selector, selector, scoped=True)

    def get_property(
        self, element: CheckedHtmlElement, name: str
    ) -> str | None:
        reader = _DOM_PROPERTIES.get(name)
        if reader is not None:
            return reader(element)

        attribute = _ATTRIBUTE_ALIASES.get(name, name)
        value = element.get(attribute)
        if value is not None and self.url and attribute in _URL_ATTRIBUTES:
            return urljoin(self.url, value)
        return value
