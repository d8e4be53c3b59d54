"""
Selector-driven tabular content extraction.

This module provides an extraction engine that turns pairs of CSS
selectors and element properties into aligned content rows, and
suppresses rows already emitted when the same page is scraped again.

See DESIGN.md for how the pieces fit together.
"""
