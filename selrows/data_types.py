"""Data types for the extraction engine.

This module defines the types passed between callers and the extraction
engine:

1. Configuration - SelectorPair and ExtractorOptions, validated with Pydantic
2. Input - Resource (the target being scraped) and ExtractionRequest (one pass)
3. Output - ContentRow and ExtractionResult

Configuration models accept both the camelCase keys used in JSON option
files (``selectorPairs``, ``contentSelector``) and snake_case field names.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from selrows.common.document_tree import (
    DEFAULT_CONTENT_PROPERTY,
    DocumentTree,
)

#: One extracted row: a value per selector pair, in selector pair order.
ContentRow = list[str]

_HTML_CONTENT_TYPE = re.compile(r"html", re.IGNORECASE)

NonEmptyStr = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1)
]


class SelectorPair(BaseModel):
    """One extraction rule: a CSS selector and the property to read.

    Attributes:
        label: Optional column name. Defaults to the selector.
        content_selector: CSS selector for the elements holding the content.
        content_property: Property or attribute read from each element.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    label: str | None = None
    content_selector: NonEmptyStr = Field(alias="contentSelector")
    content_property: NonEmptyStr = Field(
        default=DEFAULT_CONTENT_PROPERTY, alias="contentProperty"
    )

    @property
    def key(self) -> str:
        """Column name for this pair."""
        return self.label or self.content_selector


class ExtractorOptions(BaseModel):
    """Declarative extractor configuration.

    Attributes:
        dom_read: Read the live document tree rather than a serialized copy.
            The engine does not consult this flag; it tells the caller which
            tree to build.
        selector_pairs: Extraction rules, one per output column.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        title="Extract Html Content",
        json_schema_extra={
            "description": "Scrapes html content using CSS selectors."
        },
    )

    dom_read: bool = Field(default=True, alias="domRead")
    selector_pairs: list[SelectorPair] = Field(
        alias="selectorPairs",
        min_length=1,
        description=(
            "CSS selectors to be applied. By default the innerText property "
            "is scraped but another one can be named per selector."
        ),
    )

    @classmethod
    def json_schema(cls) -> dict[str, Any]:
        """JSON Schema of the options, using the camelCase keys."""
        return cls.model_json_schema(by_alias=True)


@dataclass(frozen=True)
class Resource:
    """A document targeted by the extractor.

    Attributes:
        url: Location of the document.
        content_type: Declared content kind, e.g. ``text/html; charset=utf-8``.
        data: Serialized document, when it has been fetched already.
    """

    url: str
    content_type: str | None = None
    data: bytes | str | None = None

    @property
    def is_html(self) -> bool:
        """Whether the declared content kind is an HTML-like document."""
        return bool(
            self.content_type and _HTML_CONTENT_TYPE.search(self.content_type)
        )


@dataclass(frozen=True)
class ExtractionRequest:
    """Input to one extraction pass.

    Attributes:
        selector_pairs: Extraction rules, one per output column.
        dom_read: Whether ``tree`` is a live tree or a serialized snapshot.
        tree: The document to query.
    """

    selector_pairs: Sequence[SelectorPair]
    dom_read: bool
    tree: DocumentTree


@dataclass(frozen=True)
class ExtractionResult:
    """Output of one extraction pass.

    Attributes:
        applicable: False when the extractor declined to run.
        rows: Rows not emitted by any previous pass on the same extractor.
    """

    applicable: bool
    rows: list[ContentRow] = field(default_factory=list)

    @classmethod
    def not_applicable(cls) -> ExtractionResult:
        return cls(applicable=False)
