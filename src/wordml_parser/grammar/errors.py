"""Parse failure kinds.

Every failure aborts the whole parse. Each kind has its own exception class
so callers can catch exactly what they care about, and every instance carries
the ``SourcePosition`` where the failing rule started.
"""

from enum import Enum, auto
from typing import Any, ClassVar, Dict

from wordml_parser.shared.errors import WordMLError

from .cursor import SourcePosition


class ParseErrorKind(Enum):
    """Reasons a parse can fail."""

    MALFORMED_HEADER = auto()
    INVALID_TAG_NAME = auto()
    UNTERMINATED_TAG = auto()
    TAG_MISMATCH = auto()
    UNTERMINATED_ATTRIBUTE_VALUE = auto()
    UNEXPECTED_END_OF_INPUT = auto()
    UNEXPECTED_CHARACTER = auto()
    TRAILING_INPUT = auto()
    MAX_DEPTH_EXCEEDED = auto()


class ParseError(WordMLError):
    """Base class for all parse failures."""

    kind: ClassVar[ParseErrorKind]

    def __init__(self, message: str, position: SourcePosition) -> None:
        super().__init__(f"{message} at {position}")
        self.message = message
        self.position = position

    @property
    def offset(self) -> int:
        return self.position.offset

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.name,
            "message": self.message,
            "position": self.position.to_dict(),
        }


class MalformedHeaderError(ParseError):
    kind = ParseErrorKind.MALFORMED_HEADER


class InvalidTagNameError(ParseError):
    kind = ParseErrorKind.INVALID_TAG_NAME


class UnterminatedTagError(ParseError):
    kind = ParseErrorKind.UNTERMINATED_TAG


class TagMismatchError(ParseError):
    """Closing tag name differs from the innermost open tag name."""

    kind = ParseErrorKind.TAG_MISMATCH

    def __init__(self, expected: str, found: str, position: SourcePosition) -> None:
        super().__init__(
            f"Closing tag 'w:{found}' does not match open tag 'w:{expected}'",
            position,
        )
        self.expected = expected
        self.found = found

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["expected"] = self.expected
        result["found"] = self.found
        return result


class UnterminatedAttributeValueError(ParseError):
    kind = ParseErrorKind.UNTERMINATED_ATTRIBUTE_VALUE


class UnexpectedEndOfInputError(ParseError):
    kind = ParseErrorKind.UNEXPECTED_END_OF_INPUT


class UnexpectedCharacterError(ParseError):
    kind = ParseErrorKind.UNEXPECTED_CHARACTER


class TrailingInputError(ParseError):
    kind = ParseErrorKind.TRAILING_INPUT


class MaxDepthExceededError(ParseError):
    kind = ParseErrorKind.MAX_DEPTH_EXCEEDED
