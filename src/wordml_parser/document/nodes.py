"""Immutable tree model for parsed WordML documents.

An element is one of two shapes: ``SelfClosingElement`` carries no children
at all, ``ContainerElement`` carries an ordered tuple of child nodes. Both
store the local tag name; the mandatory ``w:`` prefix is implied and restored
by ``qualified_name``. Nodes hold no references to their parents.

Builders follow the value-object style: ``with_attr``, ``with_element`` and
friends return a new element and never modify the receiver.
"""

import re
from dataclasses import dataclass, field, replace
from typing import (
    Any,
    Callable,
    Dict,
    Iterator,
    List,
    Optional,
    TextIO,
    Tuple,
    Type,
    TypeVar,
    Union,
)

TAG_PREFIX = "w:"
DEFAULT_HEADER = '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'

LOCAL_NAME_PATTERN = re.compile(r"[A-Za-z0-9]+")
ATTRIBUTE_NAME_PATTERN = re.compile(
    r"[A-Za-z_][A-Za-z0-9_.-]*(?::[A-Za-z_][A-Za-z0-9_.-]*)?"
)

T = TypeVar("T")
_E = TypeVar("_E", bound="_ElementBase")


def local_name(name: str) -> str:
    """Strip the ``w:`` prefix from a tag name if present."""
    if name.startswith(TAG_PREFIX):
        return name[len(TAG_PREFIX):]
    return name


@dataclass(frozen=True)
class Attribute:
    """Single attribute with its raw, undecoded value."""

    name: str
    value: str

    def __post_init__(self) -> None:
        """Validate attribute values."""
        if not isinstance(self.name, str) or not isinstance(self.value, str):
            raise TypeError("Attribute name and value must be strings")
        if not ATTRIBUTE_NAME_PATTERN.fullmatch(self.name):
            raise ValueError(f"Invalid attribute name: {self.name!r}")

    @property
    def prefix(self) -> Optional[str]:
        """Get namespace prefix if present."""
        if ":" in self.name:
            return self.name.split(":", 1)[0]
        return None

    @property
    def local_name(self) -> str:
        """Get attribute name without namespace prefix."""
        if ":" in self.name:
            return self.name.split(":", 1)[1]
        return self.name

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "value": self.value}


@dataclass(frozen=True)
class Text:
    """Run of character data between tags, kept verbatim."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            raise TypeError("Text value must be a string")
        if not self.value:
            raise ValueError("Text value cannot be empty")

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "text", "value": self.value}


@dataclass(frozen=True)
class _ElementBase:
    """Fields and navigation shared by both element shapes."""

    name: str
    attributes: Tuple[Attribute, ...] = ()

    def __post_init__(self) -> None:
        """Validate element values and freeze sequences."""
        if not isinstance(self.name, str) or not LOCAL_NAME_PATTERN.fullmatch(self.name):
            raise ValueError(
                f"Element name must be a non-empty alphanumeric local name: {self.name!r}"
            )
        attributes = tuple(self.attributes)
        for attr in attributes:
            if not isinstance(attr, Attribute):
                raise TypeError("Element attributes must be Attribute instances")
        object.__setattr__(self, "attributes", attributes)

    @classmethod
    def new(cls: Type[_E], name: str) -> _E:
        """Create an empty element, accepting ``w:``-prefixed names."""
        return cls(local_name(name))

    @property
    def qualified_name(self) -> str:
        """Tag name as written in the document, including ``w:``."""
        return f"{TAG_PREFIX}{self.name}"

    @property
    def is_self_closing(self) -> bool:
        return isinstance(self, SelfClosingElement)

    @property
    def nodes(self) -> Tuple["Node", ...]:
        """Child nodes in document order; always empty for self-closing tags."""
        return ()

    # Child access

    def child_elements(self) -> List["Element"]:
        """All direct child elements, skipping text nodes."""
        return [node for node in self.nodes if isinstance(node, _ElementBase)]

    def get_child(self, name: str) -> Optional["Element"]:
        """Find first direct child element with matching tag name."""
        wanted = local_name(name)
        for child in self.child_elements():
            if child.name == wanted:
                return child
        return None

    def get_children(self, name: str) -> List["Element"]:
        """Find all direct child elements with matching tag name."""
        wanted = local_name(name)
        return [child for child in self.child_elements() if child.name == wanted]

    def has_child(self, name: str) -> bool:
        return self.get_child(name) is not None

    # Attribute access

    def get_attr(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get the first attribute value with this name, or ``default``."""
        for attr in self.attributes:
            if attr.name == name:
                return attr.value
        return default

    def has_attr(self, name: str) -> bool:
        return any(attr.name == name for attr in self.attributes)

    def get_attr_parsed(self, name: str, converter: Callable[[str], T]) -> Optional[T]:
        """Convert an attribute value, returning None if absent or unconvertible.

        Example:
            >>> size = run_properties.get_child("sz")
            >>> size.get_attr_parsed("w:val", int)
            24
        """
        value = self.get_attr(name)
        if value is None:
            return None
        try:
            return converter(value)
        except (ValueError, TypeError):
            return None

    def get_child_attr_parsed(
        self, child_name: str, attr_name: str, converter: Callable[[str], T]
    ) -> Optional[T]:
        child = self.get_child(child_name)
        if child is None:
            return None
        return child.get_attr_parsed(attr_name, converter)

    # Text access

    def texts(self) -> str:
        """Concatenate the direct text children."""
        return "".join(node.value for node in self.nodes if isinstance(node, Text))

    def child_texts(self, name: str) -> Optional[str]:
        child = self.get_child(name)
        if child is None:
            return None
        return child.texts()

    # Traversal

    def iter_with_depth(self) -> Iterator[Tuple["Element", int]]:
        """Depth-first, pre-order walk yielding ``(element, depth)``; self is depth 0."""
        stack: List[Tuple[Element, int]] = [(self, 0)]  # type: ignore[list-item]
        while stack:
            element, depth = stack.pop()
            yield element, depth
            children = element.child_elements()
            stack.extend((child, depth + 1) for child in reversed(children))

    def iter(self) -> Iterator["Element"]:
        """Depth-first, pre-order walk over this element and its descendants."""
        for element, _ in self.iter_with_depth():
            yield element

    def find(self, name: str) -> Optional["Element"]:
        """Find first descendant element (excluding self) with matching name."""
        wanted = local_name(name)
        for element in self.iter():
            if element is not self and element.name == wanted:
                return element
        return None

    def find_all(self, name: str) -> List["Element"]:
        """Find all descendant elements (excluding self) with matching name."""
        wanted = local_name(name)
        return [
            element for element in self.iter()
            if element is not self and element.name == wanted
        ]

    # Builders

    def with_attr(self: _E, name: str, value: Any) -> _E:
        """Return a copy with one more attribute appended."""
        return replace(self, attributes=self.attributes + (Attribute(name, str(value)),))

    def with_node(self, node: "Node") -> "ContainerElement":
        """Return a container holding the existing children plus ``node``."""
        if not isinstance(node, (Text, _ElementBase)):
            raise TypeError("Child must be an element or a Text instance")
        return ContainerElement(self.name, self.attributes, self.nodes + (node,))

    def with_element(self, element: "Element") -> "ContainerElement":
        if not isinstance(element, _ElementBase):
            raise TypeError("Child must be an element instance")
        return self.with_node(element)

    def with_text(self, text: str) -> "ContainerElement":
        return self.with_node(Text(text))

    # Serialization

    def to_dict(self) -> Dict[str, Any]:
        """Convert element to dictionary representation."""
        result: Dict[str, Any] = {
            "type": "element",
            "name": self.name,
            "self_closing": self.is_self_closing,
            "attributes": [attr.to_dict() for attr in self.attributes],
        }
        if not self.is_self_closing:
            result["children"] = [node.to_dict() for node in self.nodes]
        return result

    def to_string(self) -> str:
        """Serialize this element back to the tag grammar."""
        from .writer import element_to_string
        return element_to_string(self)  # type: ignore[arg-type]


@dataclass(frozen=True)
class SelfClosingElement(_ElementBase):
    """Element written inline as ``<w:name .../>``; it has no children."""


@dataclass(frozen=True)
class ContainerElement(_ElementBase):
    """Element with explicit open and close tags around its child nodes."""

    children: Tuple["Node", ...] = field(default=())

    def __post_init__(self) -> None:
        super().__post_init__()
        children = tuple(self.children)
        for child in children:
            if not isinstance(child, (Text, _ElementBase)):
                raise TypeError("Children must be elements or Text instances")
        object.__setattr__(self, "children", children)

    @classmethod
    def empty(cls, name: str) -> "ContainerElement":
        """Container with no children, written as ``<w:name></w:name>``."""
        return cls.new(name)

    @property
    def nodes(self) -> Tuple["Node", ...]:
        return self.children


Element = Union[SelfClosingElement, ContainerElement]
Node = Union[SelfClosingElement, ContainerElement, Text]


@dataclass(frozen=True)
class Document:
    """A parsed document: opaque header line plus exactly one root element."""

    header: str
    root: Element

    def __post_init__(self) -> None:
        """Validate document structure."""
        if not isinstance(self.header, str) or not (
            self.header.startswith("<") and self.header.endswith(">")
        ):
            raise ValueError("Header must be delimited by '<' and '>'")
        if not isinstance(self.root, _ElementBase):
            raise TypeError("Document root must be an element")

    @classmethod
    def with_default_header(cls, root: Element) -> "Document":
        return cls(DEFAULT_HEADER, root)

    def iter_elements(self) -> Iterator[Element]:
        """Iterate over all elements in document order."""
        return self.root.iter()

    def find(self, name: str) -> Optional[Element]:
        """Find first element (root included) with matching tag name."""
        if self.root.name == local_name(name):
            return self.root
        return self.root.find(name)

    def find_all(self, name: str) -> List[Element]:
        """Find all elements (root included) with matching tag name."""
        results: List[Element] = []
        if self.root.name == local_name(name):
            results.append(self.root)
        results.extend(self.root.find_all(name))
        return results

    @property
    def total_elements(self) -> int:
        return sum(1 for _ in self.iter_elements())

    @property
    def total_attributes(self) -> int:
        return sum(len(element.attributes) for element in self.iter_elements())

    @property
    def total_text_nodes(self) -> int:
        return sum(
            1 for element in self.iter_elements()
            for node in element.nodes if isinstance(node, Text)
        )

    @property
    def max_depth(self) -> int:
        return max(depth for _, depth in self.root.iter_with_depth())

    def to_dict(self) -> Dict[str, Any]:
        """Convert document to dictionary representation."""
        return {
            "header": self.header,
            "total_elements": self.total_elements,
            "total_attributes": self.total_attributes,
            "max_depth": self.max_depth,
            "root": self.root.to_dict(),
        }

    def to_string(self) -> str:
        from .writer import document_to_string
        return document_to_string(self)

    def write_to(self, stream: TextIO) -> None:
        from .writer import write_document
        write_document(self, stream)
