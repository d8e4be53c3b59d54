"""HtmlContentExtractor: selector-pair driven row extraction.

An extractor is created once per target document and run once per pass.
Pages that keep changing while they are watched (infinite scroll,
paginated widgets) can be passed to the same extractor repeatedly: each
pass returns only the rows earlier passes did not.

A pass goes through these steps:

1. Infer a base selector shared by every pair and check it matches
2. Query each pair within every base element, or globally without a base
3. Pad and transpose the per-pair values into rows
4. Drop rows emitted by earlier passes

Example::

    extractor = HtmlContentExtractor(
        {
            "selectorPairs": [
                {"contentSelector": ".item .title"},
                {"contentSelector": ".item a", "contentProperty": "href"},
            ]
        }
    )
    result = extractor.apply(resource)
    for row in result.rows:
        print(dict(zip(extractor.content_keys(), row)))
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from selrows.common.document_tree import DocumentTree
from selrows.common.exceptions import InvalidSelectorException
from selrows.common.lxml_document_tree import LxmlDocumentTree
from selrows.data_types import (
    ContentRow,
    ExtractionRequest,
    ExtractionResult,
    ExtractorOptions,
    Resource,
    SelectorPair,
)
from selrows.extraction import (
    ContentDeduplicator,
    infer_selector_base,
    read_values,
    strip_selector_base,
    transform_to_content_rows,
)

logger = logging.getLogger(__name__)


class HtmlContentExtractor:
    """Extracts rows of content from HTML documents using CSS selectors.

    Attributes:
        options: The validated configuration.
        deduplicator: Rows emitted so far by this instance.
    """

    def __init__(
        self, options: ExtractorOptions | Mapping[str, Any]
    ) -> None:
        """Initialize the extractor.

        Args:
            options: Validated options, or a mapping validated into them.

        Raises:
            pydantic.ValidationError: If a mapping does not describe valid
                options.
        """
        if not isinstance(options, ExtractorOptions):
            options = ExtractorOptions.model_validate(options)
        self.options = options
        self.deduplicator = ContentDeduplicator()

    @property
    def selector_pairs(self) -> list[SelectorPair]:
        return self.options.selector_pairs

    def content_keys(self) -> list[str]:
        """Column names, one per selector pair."""
        return [pair.key for pair in self.selector_pairs]

    def is_applicable(self, resource: Resource | None) -> bool:
        """Whether this extractor should run against a resource.

        Depends only on the configuration and the resource's declared
        content type, never on the document's contents.

        Args:
            resource: The target resource.

        Returns:
            False if there is no resource, no selector pair is configured, or
            the resource is not declared as HTML.
        """
        if resource is None:
            return False
        if not self.selector_pairs:
            return False
        return resource.is_html

    def request_for(self, tree: DocumentTree) -> ExtractionRequest:
        """Build a pass request over ``tree`` from the configured options."""
        return ExtractionRequest(
            selector_pairs=self.selector_pairs,
            dom_read=self.options.dom_read,
            tree=tree,
        )

    def apply(
        self, resource: Resource, tree: DocumentTree | None = None
    ) -> ExtractionResult:
        """Run one pass against a resource.

        Args:
            resource: The target resource.
            tree: Live tree of the resource. When omitted the resource's
                serialized data is parsed with lxml.

        Returns:
            ExtractionResult with the rows not returned by earlier passes, or
            a not-applicable result if the resource does not qualify.

        Raises:
            DocumentParseException: If no tree is given and the resource's
                data cannot be parsed.
        """
        if not self.is_applicable(resource):
            logger.debug(f"Extractor not applicable to {resource!r}")
            return ExtractionResult.not_applicable()

        logger.info(f"Applying extractor to {resource.url}")
        if tree is None:
            tree = LxmlDocumentTree.from_html(
                resource.data or "", resource.url
            )
        return self.run(self.request_for(tree))

    def run(self, request: ExtractionRequest) -> ExtractionResult:
        """Run one extraction pass.

        Args:
            request: The selector pairs and tree for this pass.

        Returns:
            ExtractionResult with the rows not returned by earlier passes.
        """
        if not request.selector_pairs:
            return ExtractionResult.not_applicable()

        current_content = self.extract_content(
            request.tree, request.selector_pairs
        )
        rows = self.deduplicator.diff_and_merge(current_content)
        logger.info(
            f"Extracted {len(current_content)} rows, {len(rows)} new, "
            f"{self.deduplicator.seen_count} seen in total"
        )
        return ExtractionResult(applicable=True, rows=rows)

    def extract_content(
        self,
        tree: DocumentTree,
        selector_pairs: Sequence[SelectorPair] | None = None,
    ) -> list[ContentRow]:
        """Extract every row currently in the tree, seen or not.

        Args:
            tree: The document to query.
            selector_pairs: Pairs to extract. Defaults to the configured ones.

        Returns:
            Aligned rows in base-element order, then within-base order.
        """
        if selector_pairs is None:
            selector_pairs = self.selector_pairs

        selector_base, base_elements = self.resolve_selector_base(
            tree, selector_pairs
        )
        if selector_base is None:
            return self._extract_global(tree, selector_pairs)
        return self._extract_scoped(
            tree, selector_pairs, selector_base, base_elements
        )

    def resolve_selector_base(
        self, tree: DocumentTree, selector_pairs: Sequence[SelectorPair]
    ) -> tuple[str | None, Sequence[Any]]:
        """Infer the base selector and find the elements it matches.

        Returns:
            ``(base, elements)``, or ``(None, [])`` when no shared prefix
            exists or it matches nothing in the tree.
        """
        candidate = infer_selector_base(selector_pairs)
        if candidate is None:
            return None, []

        try:
            base_elements = tree.query_all(candidate)
        except InvalidSelectorException as e:
            logger.debug(f"Base selector {candidate!r} unusable: {e.message}")
            return None, []

        if not base_elements:
            logger.debug(f"Base selector {candidate!r} matches nothing")
            return None, []

        logger.debug(
            f"Base selector {candidate!r} matches "
            f"{len(base_elements)} elements"
        )
        return candidate, base_elements

    def _extract_scoped(
        self,
        tree: DocumentTree,
        selector_pairs: Sequence[SelectorPair],
        selector_base: str,
        base_elements: Sequence[Any],
    ) -> list[ContentRow]:
        suffix_selectors = [
            strip_selector_base(pair.content_selector, selector_base)
            for pair in selector_pairs
        ]

        rows: list[ContentRow] = []
        for base_element in base_elements:
            content_by_selector = [
                read_values(
                    tree, suffix_selector, pair.content_property, base_element
                )
                for suffix_selector, pair in zip(
                    suffix_selectors, selector_pairs
                )
            ]

            # skip repeating blocks without any content
            if not any(content_by_selector):
                continue

            rows.extend(transform_to_content_rows(content_by_selector))
        return rows

    def _extract_global(
        self, tree: DocumentTree, selector_pairs: Sequence[SelectorPair]
    ) -> list[ContentRow]:
        content_by_selector = [
            read_values(tree, pair.content_selector, pair.content_property)
            for pair in selector_pairs
        ]
        for pair, values in zip(selector_pairs, content_by_selector):
            logger.debug(f"{pair.content_selector!r}: {len(values)} values")
        return transform_to_content_rows(content_by_selector)
