"""Tests for selector base inference.

Key behaviors tested:
- A single selector pair never has a base
- The base is the longest whitespace-separated prefix shared by every
  selector
- Sharing is checked as a plain string prefix, not fragment by fragment
- Selectors with no shared first fragment have no base
- The base is removed from each selector before scoped queries
- A remainder starting with a combinator is anchored with :scope
"""

import pytest

from selrows.data_types import SelectorPair
from selrows.extraction import infer_selector_base, strip_selector_base


def pairs(*selectors: str) -> list[SelectorPair]:
    return [SelectorPair(content_selector=s) for s in selectors]


class TestInferSelectorBase:
    def test_single_pair_has_no_base(self) -> None:
        """A lone selector pair shall never produce a base."""
        assert infer_selector_base(pairs(".item .title")) is None

    def test_no_pairs_has_no_base(self) -> None:
        assert infer_selector_base([]) is None

    def test_shared_leading_fragment(self) -> None:
        """Selectors sharing their first fragment shall use it as base."""
        assert infer_selector_base(pairs(".item .title", ".item .price")) == (
            ".item"
        )

    def test_longest_shared_prefix_wins(self) -> None:
        """Growth shall continue while every selector shares the prefix."""
        base = infer_selector_base(
            pairs(
                "#main ul.results li .name",
                "#main ul.results li .price",
                "#main ul.results li a.more",
            )
        )
        assert base == "#main ul.results li"

    def test_no_shared_first_fragment(self) -> None:
        """Selectors without a shared first fragment shall have no base."""
        assert infer_selector_base(pairs(".title", ".price")) is None

    def test_any_selector_breaking_the_prefix_stops_growth(self) -> None:
        base = infer_selector_base(
            pairs("table tr td.a", "table tr td.b", "table thead th")
        )
        assert base == "table"

    def test_prefix_match_is_string_based(self) -> None:
        """A fragment only needs to be a string prefix of other selectors."""
        assert infer_selector_base(pairs(".row .a", ".rows .b")) == ".row"

    def test_identical_selectors_share_everything(self) -> None:
        base = infer_selector_base(pairs(".item a", ".item a"))
        assert base == ".item a"

    @pytest.mark.parametrize(
        "selectors",
        [
            (".item\n.title", ".item\n.price"),
            (".item\t.title", ".item  .price"),
            (".item  .title", ".item .price"),
        ],
    )
    def test_fragments_split_on_any_whitespace(
        self, selectors: tuple[str, str]
    ) -> None:
        """Newlines, tabs and repeated spaces shall separate fragments."""
        assert infer_selector_base(pairs(*selectors)) == ".item"

    def test_multiline_selectors_keep_deeper_base(self) -> None:
        base = infer_selector_base(
            pairs("#main\n  ul li .name", "#main\n  ul li .price")
        )
        assert base == "#main\n  ul li"

    def test_selector_equal_to_base(self) -> None:
        """A selector that is itself the prefix of the others is the base."""
        assert infer_selector_base(pairs(".item", ".item .title")) == ".item"

    @pytest.mark.parametrize(
        "selectors",
        [
            (".item .title", ".item .price"),
            ("div.list > p span", "div.list > p em", "div.list > p"),
            ("ul li", "ul li a", "ul"),
        ],
    )
    def test_base_is_prefix_of_every_selector(
        self, selectors: tuple[str, ...]
    ) -> None:
        base = infer_selector_base(pairs(*selectors))
        assert base is not None
        assert all(selector.startswith(base) for selector in selectors)


class TestStripSelectorBase:
    def test_removes_base_and_trims(self) -> None:
        assert strip_selector_base(".item .title", ".item") == ".title"

    def test_child_combinator_is_anchored_to_scope(self) -> None:
        """A remainder starting with ">" shall be queried from the scope."""
        assert strip_selector_base("ul > li > a", "ul") == ":scope > li > a"

    @pytest.mark.parametrize("combinator", ["+", "~"])
    def test_sibling_combinator_is_anchored_to_scope(
        self, combinator: str
    ) -> None:
        remainder = strip_selector_base(f"h2 {combinator} p", "h2")
        assert remainder == f":scope {combinator} p"

    def test_descendant_remainder_is_not_anchored(self) -> None:
        assert strip_selector_base("ul li > a", "ul") == "li > a"

    def test_selector_equal_to_base_is_empty(self) -> None:
        assert strip_selector_base(".item", ".item") == ""

    def test_only_first_occurrence_is_removed(self) -> None:
        assert strip_selector_base("div div span", "div") == "div span"
