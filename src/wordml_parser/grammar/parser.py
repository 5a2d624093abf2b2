"""Stack-validated parser for the WordML tag grammar.

The parser reads the header line, then exactly one root element, keeping the
currently open container elements on an explicit stack. Every closing tag is
checked against the top of the stack as soon as it is read, so mismatches
abort immediately and no partial tree ever escapes.

Stages:
    1. Header: ``<`` ... ``>`` with ``<>`` pairs treated as content, then a newline
    2. Root element: self-closing tag or container with nested content
    3. Trailing input: whitespace only, unless the policy is lenient
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from wordml_parser.document.nodes import (
    ATTRIBUTE_NAME_PATTERN,
    LOCAL_NAME_PATTERN,
    TAG_PREFIX,
    Attribute,
    ContainerElement,
    Document,
    Element,
    Node,
    SelfClosingElement,
    Text,
)
from wordml_parser.shared.config import ParserConfig, TrailingInputPolicy
from wordml_parser.shared.logging import get_logger

from .cursor import Cursor
from .errors import (
    InvalidTagNameError,
    MalformedHeaderError,
    MaxDepthExceededError,
    TagMismatchError,
    TrailingInputError,
    UnexpectedCharacterError,
    UnexpectedEndOfInputError,
    UnterminatedAttributeValueError,
    UnterminatedTagError,
)

_TEXT_RUN = re.compile(r"[^<>]+")
_ATTRIBUTE_START = re.compile(r"[A-Za-z_]")
_NON_WHITESPACE = re.compile(r"[^ \n\r]")


@dataclass
class _OpenElement:
    """Container whose closing tag has not been read yet."""

    name: str
    attributes: Tuple[Attribute, ...]
    offset: int
    children: List[Node] = field(default_factory=list)

    def close(self) -> ContainerElement:
        return ContainerElement(self.name, self.attributes, tuple(self.children))


def find_trailing_input(text: str, end: int) -> Optional[int]:
    """Offset of the first non-whitespace character at or after ``end``."""
    found = _NON_WHITESPACE.search(text, end)
    return found.start() if found is not None else None


class DocumentParser:
    """Parse WordML text into an immutable ``Document``.

    The parser holds configuration only. Cursor and element stack live in
    the call frame, so one instance can serve several threads at once.

    Example:
        >>> parser = DocumentParser()
        >>> document = parser.parse('<?xml version="1.0"?>\\n<w:p>Hi</w:p>')
        >>> document.root.texts()
        'Hi'
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.config = config or ParserConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "document_parser")

    def parse(self, text: str) -> Document:
        """Parse a complete document, raising a ``ParseError`` on failure."""
        document, end = self.parse_prefix(text)
        self.check_trailing_input(text, end)
        return document

    def parse_prefix(self, text: str) -> Tuple[Document, int]:
        """Parse header and root element without looking past the root.

        Returns the document and the offset just after the root's last ``>``.
        """
        if not isinstance(text, str):
            raise TypeError(f"Input must be a string, got {type(text).__name__}")

        cursor = Cursor(text)
        header = self._read_header(cursor)
        cursor.skip_whitespace()
        if cursor.at_end():
            raise UnexpectedEndOfInputError(
                "Expected a root element after the header", cursor.position()
            )
        root = self._read_element(cursor)
        document = Document(header, root)

        if self.logger.is_enabled_for(logging.DEBUG):
            self.logger.debug(
                "Parsed document",
                extra={
                    "root": root.qualified_name,
                    "elements": document.total_elements,
                    "characters": cursor.offset,
                },
            )
        return document, cursor.offset

    def parse_element(self, text: str) -> Element:
        """Parse a single element fragment that has no header line."""
        if not isinstance(text, str):
            raise TypeError(f"Input must be a string, got {type(text).__name__}")

        cursor = Cursor(text)
        cursor.skip_whitespace()
        if cursor.at_end():
            raise UnexpectedEndOfInputError("Expected an element", cursor.position())
        element = self._read_element(cursor)
        self.check_trailing_input(text, cursor.offset)
        return element

    def check_trailing_input(self, text: str, end: int) -> Optional[int]:
        """Apply the trailing input policy to whatever follows ``end``.

        Returns the offset of ignored trailing input under the lenient
        policy, or None when only whitespace follows.
        """
        trailing = find_trailing_input(text, end)
        if trailing is None:
            return None

        position = Cursor(text).position(trailing)
        if self.config.trailing_input is TrailingInputPolicy.STRICT:
            raise TrailingInputError(
                "Unexpected content after the root element", position
            )
        self.logger.warning(
            "Ignoring trailing input after the root element",
            extra={
                "line": position.line,
                "column": position.column,
                "ignored_characters": len(text) - trailing,
            },
        )
        return trailing

    # Header

    def _read_header(self, cursor: Cursor) -> str:
        text = cursor.text
        if not cursor.startswith("<"):
            raise MalformedHeaderError(
                "Document must start with a '<...>' header line", cursor.position()
            )

        index = 1
        length = len(text)
        while index < length:
            if text.startswith("<>", index):
                index += 2
            elif text[index] == ">":
                break
            else:
                index += 1
        else:
            raise MalformedHeaderError("Header is not terminated by '>'", cursor.position())

        header = text[: index + 1]
        cursor.offset = index + 1
        for newline in ("\r\n", "\n", "\r"):
            if cursor.startswith(newline):
                cursor.advance(len(newline))
                return header
        raise MalformedHeaderError(
            "Header must be followed by a newline", cursor.position()
        )

    # Elements

    def _read_element(self, cursor: Cursor) -> Element:
        """Read one element and its whole subtree, starting at ``<``."""
        first = self._read_start_tag(cursor, depth=0)
        if isinstance(first, SelfClosingElement):
            return first

        stack: List[_OpenElement] = [first]
        while True:
            current = stack[-1]
            cursor.skip_whitespace()
            if cursor.at_end():
                opened = cursor.position(current.offset)
                raise UnexpectedEndOfInputError(
                    f"Element '{TAG_PREFIX}{current.name}' opened at {opened} "
                    f"is never closed",
                    cursor.position(),
                )

            char = cursor.peek()
            if char == "<":
                if cursor.startswith("</"):
                    self._read_end_tag(cursor, current)
                    stack.pop()
                    closed = current.close()
                    if not stack:
                        return closed
                    stack[-1].children.append(closed)
                else:
                    child = self._read_start_tag(cursor, depth=len(stack))
                    if isinstance(child, _OpenElement):
                        stack.append(child)
                    else:
                        current.children.append(child)
            elif char == ">":
                raise UnexpectedCharacterError(
                    "Unexpected '>' in element content", cursor.position()
                )
            else:
                run = cursor.match(_TEXT_RUN)
                current.children.append(Text(run.group()))  # type: ignore[union-attr]

    def _read_start_tag(
        self, cursor: Cursor, depth: int
    ) -> Union[SelfClosingElement, _OpenElement]:
        start = cursor.offset
        cursor.advance()
        cursor.skip_whitespace()
        name = self._read_tag_name(cursor, start)

        if depth + 1 > self.config.max_depth:
            raise MaxDepthExceededError(
                f"Element '{TAG_PREFIX}{name}' exceeds the maximum nesting depth "
                f"of {self.config.max_depth}",
                cursor.position(start),
            )

        attributes: List[Attribute] = []
        while True:
            separated = cursor.skip_whitespace()
            if cursor.at_end():
                raise UnterminatedTagError(
                    f"Tag '{TAG_PREFIX}{name}' is not terminated by '>'",
                    cursor.position(start),
                )
            if cursor.startswith("/>"):
                cursor.advance(2)
                return SelfClosingElement(name, tuple(attributes))

            char = cursor.peek()
            if char == ">":
                cursor.advance()
                return _OpenElement(name, tuple(attributes), start)
            if char == "<":
                raise UnterminatedTagError(
                    f"Tag '{TAG_PREFIX}{name}' is not terminated by '>'",
                    cursor.position(start),
                )
            if _ATTRIBUTE_START.match(char):
                if not separated:
                    raise UnexpectedCharacterError(
                        "Attributes must be preceded by whitespace", cursor.position()
                    )
                attributes.append(self._read_attribute(cursor))
                continue
            raise UnexpectedCharacterError(
                f"Unexpected character {char!r} in tag '{TAG_PREFIX}{name}'",
                cursor.position(),
            )

    def _read_end_tag(self, cursor: Cursor, current: _OpenElement) -> None:
        start = cursor.offset
        cursor.advance(2)
        cursor.skip_whitespace()
        name = self._read_tag_name(cursor, start)
        if name != current.name:
            raise TagMismatchError(current.name, name, cursor.position(start))

        cursor.skip_whitespace()
        if cursor.at_end() or cursor.peek() != ">":
            raise UnterminatedTagError(
                f"Closing tag '{TAG_PREFIX}{name}' is not terminated by '>'",
                cursor.position(start),
            )
        cursor.advance()

    def _read_tag_name(self, cursor: Cursor, tag_start: int) -> str:
        if cursor.at_end():
            raise UnterminatedTagError(
                "Tag is not terminated by '>'", cursor.position(tag_start)
            )
        if not cursor.startswith(TAG_PREFIX):
            raise InvalidTagNameError(
                f"Tag name must start with '{TAG_PREFIX}'", cursor.position()
            )

        name_start = cursor.offset
        cursor.advance(len(TAG_PREFIX))
        found = cursor.match(LOCAL_NAME_PATTERN)
        if found is None:
            raise InvalidTagNameError(
                f"Tag name '{TAG_PREFIX}' must be followed by letters or digits",
                cursor.position(name_start),
            )
        return found.group()

    # Attributes

    def _read_attribute(self, cursor: Cursor) -> Attribute:
        found = cursor.match(ATTRIBUTE_NAME_PATTERN)
        name = found.group()  # type: ignore[union-attr]

        cursor.skip_whitespace()
        self._expect(cursor, "=", f"Expected '=' after attribute '{name}'")
        cursor.skip_whitespace()
        self._expect(cursor, '"', f"Expected '\"' to open the value of attribute '{name}'")
        return Attribute(name, self._read_quoted_value(cursor, name))

    @staticmethod
    def _expect(cursor: Cursor, char: str, message: str) -> None:
        if cursor.at_end():
            raise UnexpectedEndOfInputError(message, cursor.position())
        if cursor.peek() != char:
            raise UnexpectedCharacterError(
                f"{message}, found {cursor.peek()!r}", cursor.position()
            )
        cursor.advance()

    @staticmethod
    def _read_quoted_value(cursor: Cursor, name: str) -> str:
        """Read up to the closing quote; ``\\"`` is kept verbatim."""
        text = cursor.text
        value_start = cursor.offset
        index = value_start
        while True:
            quote = text.find('"', index)
            if quote == -1:
                raise UnterminatedAttributeValueError(
                    f"Value of attribute '{name}' is never closed",
                    cursor.position(value_start - 1),
                )
            # A backslash right before the quote always starts a \" pair.
            if quote > value_start and text[quote - 1] == "\\":
                index = quote + 1
                continue
            cursor.offset = quote + 1
            return text[value_start:quote]


def parse_document(text: str, config: Optional[ParserConfig] = None) -> Document:
    """Parse ``text`` with a one-off ``DocumentParser``."""
    return DocumentParser(config).parse(text)
