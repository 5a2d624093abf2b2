"""Stack-validated grammar for WordML documents.

Key Components:
    DocumentParser: Header, root element and trailing input checks
    ParseError: Base of one exception class per failure kind
    SourcePosition: Line, column and offset of a failure
"""

from .cursor import Cursor, SourcePosition
from .errors import (
    InvalidTagNameError,
    MalformedHeaderError,
    MaxDepthExceededError,
    ParseError,
    ParseErrorKind,
    TagMismatchError,
    TrailingInputError,
    UnexpectedCharacterError,
    UnexpectedEndOfInputError,
    UnterminatedAttributeValueError,
    UnterminatedTagError,
)
from .parser import DocumentParser, find_trailing_input, parse_document

__all__ = [
    "Cursor",
    "SourcePosition",
    "InvalidTagNameError",
    "MalformedHeaderError",
    "MaxDepthExceededError",
    "ParseError",
    "ParseErrorKind",
    "TagMismatchError",
    "TrailingInputError",
    "UnexpectedCharacterError",
    "UnexpectedEndOfInputError",
    "UnterminatedAttributeValueError",
    "UnterminatedTagError",
    "DocumentParser",
    "find_trailing_input",
    "parse_document",
]
