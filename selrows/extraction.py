"""Building blocks of an extraction pass.

Each function here covers one step of turning selector pairs into content
rows:

- infer_selector_base: longest selector prefix shared by every pair
- read_values: query one selector and read a property from each match
- transform_to_content_rows: pad ragged per-selector columns and transpose
- ContentDeduplicator: drop rows already emitted by earlier passes

HtmlContentExtractor in selrows.extractor strings them together.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from typing import Any

from selrows.common.document_tree import DocumentTree
from selrows.common.exceptions import InvalidSelectorException
from selrows.data_types import ContentRow, SelectorPair

logger = logging.getLogger(__name__)

#: Separator between column values in a deduplication key. Values are not
#: escaped, so two rows can collide if a value contains it.
ROW_KEY_SEPARATOR = ","

_FRAGMENT = re.compile(r"\S+")

# Scoped selectors starting with one of these are anchored to the scope
_COMBINATORS = (">", "+", "~")

SCOPE_PSEUDO_CLASS = ":scope"


def infer_selector_base(
    selector_pairs: Sequence[SelectorPair],
) -> str | None:
    """Find the longest leading selector path shared by every pair.

    The first pair's selector is split on whitespace and a candidate prefix
    is grown one fragment at a time. A candidate is the first selector's
    literal text up to the end of a fragment, so fragments may be separated
    by any run of whitespace. Every selector must start with the
    candidate as a plain string prefix. Growth stops at the first fragment
    some selector does not share.

    A base is only meaningful for two or more pairs, so a single pair always
    yields None.

    Args:
        selector_pairs: The configured pairs.

    Returns:
        The shared prefix, or None if the first fragment is not shared.

    Examples:
        >>> pairs = [
        ...     SelectorPair(content_selector=".item .title"),
        ...     SelectorPair(content_selector=".item .price"),
        ... ]
        >>> infer_selector_base(pairs)
        '.item'
    """
    if len(selector_pairs) < 2:
        return None

    selectors = [pair.content_selector for pair in selector_pairs]
    fragment_ends = [
        match.end() for match in _FRAGMENT.finditer(selectors[0])
    ]

    selector_base = None
    for end in fragment_ends:
        candidate = selectors[0][:end]
        if not all(selector.startswith(candidate) for selector in selectors):
            return selector_base
        selector_base = candidate
    return selector_base


def strip_selector_base(selector: str, selector_base: str) -> str:
    """Remove the base prefix from a selector.

    A remainder that starts with a combinator (``> li``) is anchored to the
    scope element as ``:scope > li``, so it is queried relative to the base
    element rather than as a bare descendant.

    Args:
        selector: A selector starting with ``selector_base``.
        selector_base: The inferred base.

    Returns:
        The remainder, trimmed. Empty when the selector is the base itself.
    """
    remainder = selector.replace(selector_base, "", 1).strip()
    if remainder.startswith(_COMBINATORS):
        return f"{SCOPE_PSEUDO_CLASS} {remainder}"
    return remainder


def read_values(
    tree: DocumentTree,
    selector: str,
    content_property: str,
    scope: Any | None = None,
) -> list[str]:
    """Read a property from every element matching a selector.

    Values are trimmed, then missing and empty values are dropped. Dropping
    happens before row alignment, so it shortens the column and changes how
    it is padded.

    An empty selector within a scope reads the scope element itself. A
    selector the tree cannot compile is logged and read as no values, so one
    bad pair does not stop the others from being extracted.

    Args:
        tree: The document to query.
        selector: CSS selector, relative to ``scope`` if given.
        content_property: Property or attribute to read.
        scope: Optional element to search within.

    Returns:
        The non-empty trimmed values, in document order.
    """
    if scope is not None and not selector:
        elements: Sequence[Any] = [scope]
    else:
        try:
            elements = tree.query_all(selector, scope)
        except InvalidSelectorException as e:
            logger.warning(f"Skipping selector {selector!r}: {e.message}")
            return []

    values = []
    for element in elements:
        value = tree.get_property(element, content_property)
        if value is None:
            continue
        value = value.strip()
        if value:
            values.append(value)
    return values


def transform_to_content_rows(
    content_by_selector: Sequence[Sequence[str]],
) -> list[ContentRow]:
    """Turn per-selector value columns into rows.

    Columns shorter than the longest one are padded by repeating their own
    last value, or with ``""`` if they are empty. Row ``r`` then holds the
    ``r``-th value of every column.

    Args:
        content_by_selector: One list of values per selector pair.

    Returns:
        ``max(len(column))`` rows of ``len(content_by_selector)`` values.

    Examples:
        >>> transform_to_content_rows([["a1", "a2", "a3"], ["b1"], []])
        [['a1', 'b1', ''], ['a2', 'b1', ''], ['a3', 'b1', '']]
    """
    max_length = max(
        (len(column) for column in content_by_selector), default=0
    )

    padded: list[list[str]] = []
    for column in content_by_selector:
        last_value = column[-1] if column else ""
        padded.append(
            list(column) + [last_value] * (max_length - len(column))
        )

    return [[column[idx] for column in padded] for idx in range(max_length)]


def row_key(row: Iterable[str]) -> str:
    """Canonical deduplication key of a row."""
    return ROW_KEY_SEPARATOR.join(row)


class ContentDeduplicator:
    """Remembers the rows emitted so far and filters out repeats.

    One instance belongs to one extractor, so rows are only suppressed
    across passes over the same target. Keys are exact string joins: two
    rows that render the same text are duplicates even if they came from
    different elements.
    """

    def __init__(self) -> None:
        self._seen: set[str] = set()

    @property
    def seen_count(self) -> int:
        """Number of distinct rows emitted so far."""
        return len(self._seen)

    def diff_and_merge(self, rows: Iterable[ContentRow]) -> list[ContentRow]:
        """Return the rows not seen before and remember them.

        Args:
            rows: Rows computed by the current pass, in order.

        Returns:
            The new rows, in encounter order. A row repeated within ``rows``
            is returned once.
        """
        new_rows = []
        for row in rows:
            key = row_key(row)
            if key in self._seen:
                continue
            self._seen.add(key)
            new_rows.append(row)
        return new_rows
