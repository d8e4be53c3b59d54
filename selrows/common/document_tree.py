"""DocumentTree protocol for driver-agnostic element queries.

The extraction engine only needs two capabilities from a document: find
elements by selector, optionally within a previously found element, and
read a named property from an element. Any object providing them can be
handed to the engine, whether it wraps a parsed static snapshot (lxml) or
a live browser page (Playwright).

Element handles are opaque to the engine. A handle returned by one tree
must only ever be passed back to that same tree.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

#: Property read when a selector pair does not name one.
DEFAULT_CONTENT_PROPERTY = "innerText"


@runtime_checkable
class DocumentTree(Protocol):
    """Protocol for querying elements and reading their properties.

    Implementations raise InvalidSelectorException for selectors they cannot
    compile. A selector that matches nothing is not an error and yields an
    empty sequence.
    """

    def query_all(
        self, selector: str, scope: Any | None = None
    ) -> Sequence[Any]:
        """Query elements by CSS selector.

        Args:
            selector: CSS selector expression.
            scope: Optional element handle previously returned by this tree.
                When given, only descendants of it can match.

        Returns:
            Matching element handles in document order.

        Raises:
            InvalidSelectorException: If the selector cannot be compiled.
        """
        ...

    def get_property(self, element: Any, name: str) -> str | None:
        """Read a property or attribute from an element.

        Args:
            element: Element handle previously returned by query_all().
            name: Property name such as ``innerText`` or an attribute name
                such as ``href``.

        Returns:
            The value as a string, or None if the element does not have it.
        """
        ...
