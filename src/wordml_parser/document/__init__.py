"""Document tree model for WordML parsing.

Key Components:
    Document: Header line plus exactly one root element
    SelfClosingElement / ContainerElement: The two element shapes
    Attribute, Text: Leaf values kept verbatim from the source
    write_document / render_outline: Serialization and debug dumps
"""

from .nodes import (
    DEFAULT_HEADER,
    TAG_PREFIX,
    Attribute,
    ContainerElement,
    Document,
    Element,
    Node,
    SelfClosingElement,
    Text,
    local_name,
)
from .outline import render_outline
from .writer import (
    document_to_string,
    element_to_string,
    write_document,
    write_element,
)

__all__ = [
    "DEFAULT_HEADER",
    "TAG_PREFIX",
    "Attribute",
    "ContainerElement",
    "Document",
    "Element",
    "Node",
    "SelfClosingElement",
    "Text",
    "local_name",
    "render_outline",
    "document_to_string",
    "element_to_string",
    "write_document",
    "write_element",
]
