"""Error taxonomy for the node tree parser.

Parse-time failures derive from ``ParseError`` and are normally delivered inside
a ``ParseResult`` instead of being raised. Misuse of the tree API raises
``InvalidNodeOperationError``, which is deliberately not a ``ParseError``.
"""

from typing import Optional


class XMLNodeTreeError(Exception):
    """Base exception for every error raised by this package."""


class ParseError(XMLNodeTreeError):
    """A document could not be turned into a node tree.

    Attributes:
        message: Human-readable description of the failure
        line: 1-based line number where the failure was detected, if known
        column: 0-based column where the failure was detected, if known
    """

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column

    @property
    def kind(self) -> str:
        """Short name of the failure category."""
        return type(self).__name__

    def __str__(self) -> str:
        if self.line is None:
            return self.message
        return f"{self.message} (line {self.line}, column {self.column or 0})"


class EmptyInputError(ParseError):
    """The input is empty, whitespace-only or contains no element."""


class MalformedDocumentError(ParseError):
    """Start and end tags do not nest, or elements are left unclosed."""


class EncodingError(ParseError):
    """The input cannot be read as valid text for the chosen parse mode."""


class InvalidNodeOperationError(XMLNodeTreeError, TypeError):
    """An operation was attempted that the node type does not support."""
