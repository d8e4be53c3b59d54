"""Exception types for extraction errors.

This module defines the exception hierarchy raised by document tree
providers. The extraction engine itself never raises for missing content:
empty matches and inapplicable resources are modeled as negative results.
"""

from typing import Any


class ExtractionException(Exception):
    """Base class for document tree and extraction errors.

    Carries the URL of the document being read and an optional dict of
    context (selector, property, parser error) that is rendered into the
    exception message.
    """

    def __init__(
        self,
        message: str,
        url: str = "",
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable description of the error.
            url: The URL of the document that triggered this error.
            context: Optional dict of additional context.
        """
        self.message = message
        self.url = url
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with context.

        Returns:
            Formatted error message string.
        """
        parts = [self.message]
        if self.url:
            parts.append(f"URL: {self.url}")

        if self.context:
            parts.append("Context:")
            for key, value in self.context.items():
                parts.append(f"  {key}: {value}")

        return "\n".join(parts)


class InvalidSelectorException(ExtractionException):
    """Raised when a selector cannot be compiled by the tree provider.

    Attributes:
        selector: The selector that failed to compile.
        description: Human-readable description of what was being selected.
    """

    def __init__(
        self,
        selector: str,
        description: str,
        url: str = "",
        error: str | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            selector: The selector that failed to compile.
            description: Human-readable description of what was being selected.
            url: The URL of the document being queried.
            error: The underlying parser error message, if any.
        """
        self.selector = selector
        self.description = description

        context: dict[str, Any] = {"selector": selector}
        if error:
            context["error"] = error

        super().__init__(
            f"Invalid selector for '{description}': {selector!r}",
            url,
            context,
        )


class DocumentParseException(ExtractionException):
    """Raised when serialized markup cannot be parsed into a tree."""
