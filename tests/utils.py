"""Test utilities for extraction tests.

This module provides an in-memory DocumentTree so engine behavior can be
tested without parsing HTML.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from selrows.common.exceptions import InvalidSelectorException


@dataclass(eq=False)
class FakeElement:
    """Element whose query results are spelled out up front.

    Attributes:
        properties: Values returned by get_property().
        matches: Selector -> elements matched within this element.
    """

    properties: dict[str, str | None] = field(default_factory=dict)
    matches: dict[str, list[FakeElement]] = field(default_factory=dict)


def text(value: str | None) -> FakeElement:
    """Shorthand for an element with only an innerText."""
    return FakeElement(properties={"innerText": value})


class FakeDocumentTree:
    """DocumentTree answering queries from FakeElement.matches.

    Records every query so tests can check what the engine asked for.
    """

    def __init__(
        self,
        root: FakeElement,
        invalid_selectors: frozenset[str] = frozenset(),
    ) -> None:
        self.root = root
        self.invalid_selectors = invalid_selectors
        self.queries: list[tuple[str, FakeElement | None]] = []

    def query_all(
        self, selector: str, scope: FakeElement | None = None
    ) -> list[FakeElement]:
        self.queries.append((selector, scope))
        if selector in self.invalid_selectors:
            raise InvalidSelectorException(selector, selector)
        return list((scope or self.root).matches.get(selector, []))

    def get_property(self, element: FakeElement, name: str) -> str | None:
        return element.properties.get(name)
