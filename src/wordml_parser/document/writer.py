"""Serialize document trees back to the tag grammar.

The output parses back to an equal tree. Whitespace between tags is not
reproduced because the parser never stores it. Trees that could not survive
that round trip (text with markup characters, text starting with whitespace,
adjacent text nodes, unescaped quotes) raise ``SerializationError``.
"""

import io
from typing import List, TextIO, Union

from wordml_parser.shared.errors import SerializationError

from .nodes import Attribute, Document, Element, Node, Text

LEADING_WHITESPACE = " \n\r"


def _check_attribute_value(attr: Attribute) -> None:
    value = attr.value
    index = 0
    while index < len(value):
        if value.startswith('\\"', index):
            index += 2
        elif value[index] == '"':
            raise SerializationError(
                f"Attribute {attr.name!r} contains an unescaped quote at index {index}"
            )
        else:
            index += 1
    if value.endswith("\\"):
        raise SerializationError(
            f"Attribute {attr.name!r} ends with a backslash that would escape "
            f"its closing quote"
        )


def _check_text(text: Text) -> None:
    if "<" in text.value or ">" in text.value:
        raise SerializationError(
            f"Text cannot contain '<' or '>': {text.value[:40]!r}"
        )


def _check_children(element: Element) -> None:
    # The parser skips whitespace before every inner node and reads text
    # runs greedily, so these shapes cannot come back from a re-parse.
    previous_is_text = False
    for index, node in enumerate(element.nodes):
        is_text = isinstance(node, Text)
        if is_text and previous_is_text:
            raise SerializationError(
                f"Element {element.qualified_name!r} has adjacent text nodes "
                f"at index {index - 1} and {index}"
            )
        if is_text and node.value[0] in LEADING_WHITESPACE:
            raise SerializationError(
                f"Text in {element.qualified_name!r} cannot start with whitespace: "
                f"{node.value[:40]!r}"
            )
        previous_is_text = is_text


def _open_tag(element: Element) -> str:
    parts = [f"<{element.qualified_name}"]
    for attr in element.attributes:
        _check_attribute_value(attr)
        parts.append(f' {attr.name}="{attr.value}"')
    parts.append("/>" if element.is_self_closing else ">")
    return "".join(parts)


def write_element(element: Element, stream: TextIO) -> None:
    """Write one element and its subtree to ``stream``.

    Iterative, so deep trees do not hit the interpreter recursion limit.
    """
    # Plain strings on the stack are pending closing tags.
    stack: List[Union[Node, str]] = [element]
    while stack:
        item = stack.pop()
        if isinstance(item, str):
            stream.write(item)
        elif isinstance(item, Text):
            _check_text(item)
            stream.write(item.value)
        else:
            stream.write(_open_tag(item))
            if not item.is_self_closing:
                _check_children(item)
                stack.append(f"</{item.qualified_name}>")
                stack.extend(reversed(item.nodes))


def write_document(document: Document, stream: TextIO) -> None:
    """Write header, newline and root element to ``stream``."""
    stream.write(document.header)
    stream.write("\n")
    write_element(document.root, stream)


def element_to_string(element: Element) -> str:
    buffer = io.StringIO()
    write_element(element, buffer)
    return buffer.getvalue()


def document_to_string(document: Document) -> str:
    buffer = io.StringIO()
    write_document(document, buffer)
    return buffer.getvalue()
