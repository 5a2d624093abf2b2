"""Integration adapters for handing parsed WordML to other libraries.

This module provides bidirectional conversion between ``Document`` trees and
lxml element trees or pandas DataFrames, with the same never-fail reporting
as the parsing API: conversions return a ``ConversionResult`` instead of
raising.
"""

import threading
import time
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import (
    Any,
    Callable,
    Deque,
    Dict,
    Iterator,
    List,
    Optional,
    Tuple,
    Type,
    Union,
)

from wordml_parser.document.nodes import (
    DEFAULT_HEADER,
    Attribute,
    ContainerElement,
    Document,
    Element,
    Node,
    SelfClosingElement,
    Text,
    local_name,
)
from wordml_parser.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    SerializationError,
    get_logger,
)

from .result import ParseResult

W_NAMESPACE = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"

_WHITESPACE = " \n\r"
_STATS_WINDOW = 1000


class AdapterType(Enum):
    """Types of integration adapters."""

    XML_LIBRARY = auto()     # XML processing libraries (lxml)
    DATA_FRAME = auto()      # DataFrame libraries (pandas)


class ConversionDirection(Enum):
    """Direction of data conversion."""

    TO_TARGET = auto()      # Convert from Document to target format
    FROM_TARGET = auto()    # Convert from target format to Document


@dataclass
class AdapterMetadata:
    """Metadata about an integration adapter."""

    name: str
    version: str
    adapter_type: AdapterType
    target_library: str
    supported_versions: List[str]
    description: str
    author: str = "wordml-parser"
    compatibility_notes: Optional[str] = None


@dataclass
class ConversionResult:
    """Result of a conversion operation."""

    success: bool
    converted_data: Any
    original_data: Any
    conversion_time_ms: float
    direction: ConversionDirection = ConversionDirection.TO_TARGET
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)


class _ConversionTimings:
    """Sliding window of conversion times for one adapter instance."""

    def __init__(self) -> None:
        self._times: Deque[float] = deque(maxlen=_STATS_WINDOW)
        self._lock = threading.Lock()

    def record(self, conversion_time_ms: float) -> None:
        with self._lock:
            self._times.append(conversion_time_ms)

    def statistics(self) -> Dict[str, float]:
        with self._lock:
            times = list(self._times)
        if not times:
            return {}
        return {
            "count": len(times),
            "average_ms": sum(times) / len(times),
            "min_ms": min(times),
            "max_ms": max(times),
            "total_ms": sum(times),
        }


def _document_of(source: Union[Document, ParseResult]) -> Document:
    if isinstance(source, Document):
        return source
    if isinstance(source, ParseResult):
        if not source.success or source.document is None:
            raise SerializationError("ParseResult is not successful or has no document")
        return source.document
    raise SerializationError(
        f"Expected a Document or ParseResult, got {type(source).__name__}"
    )


class IntegrationAdapter(ABC):
    """Abstract base class for all integration adapters.

    Subclasses implement the two conversions in ``_to_target`` and
    ``_from_target`` and may raise freely there; the public ``to_target``
    and ``from_target`` wrappers turn failures into error results, log
    them and record timings.
    """

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        """Initialize the integration adapter.

        Args:
            correlation_id: Optional correlation ID for request tracking
        """
        self.correlation_id = correlation_id
        self._logger = get_logger(__name__, correlation_id, self.__class__.__name__)
        self._timings = _ConversionTimings()

    @property
    @abstractmethod
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the target library is installed."""

    @abstractmethod
    def _to_target(self, document: Document) -> Tuple[Any, Dict[str, Any]]:
        """Return the converted object and result metadata."""

    @abstractmethod
    def _from_target(self, target_data: Any) -> Tuple[Document, Dict[str, Any]]:
        """Return the rebuilt document and result metadata."""

    def to_target(self, source: Union[Document, ParseResult]) -> ConversionResult:
        """Convert a document (or successful ParseResult) to the target format.

        Args:
            source: Parsed document, or the result that holds it

        Returns:
            ConversionResult containing the converted data and metadata
        """
        return self._convert(
            ConversionDirection.TO_TARGET,
            source,
            lambda: self._to_target(_document_of(source)),
        )

    def from_target(self, target_data: Any) -> ConversionResult:
        """Convert target-format data back to a ``Document``.

        Args:
            target_data: Data in target format

        Returns:
            ConversionResult whose ``converted_data`` is a Document
        """
        return self._convert(
            ConversionDirection.FROM_TARGET,
            target_data,
            lambda: self._from_target(target_data),
        )

    def _convert(
        self,
        direction: ConversionDirection,
        original: Any,
        operation: Callable[[], Tuple[Any, Dict[str, Any]]],
    ) -> ConversionResult:
        start_time = time.time()
        if not self.is_available():
            return self._create_error_result(
                f"{self.metadata.target_library} is not installed",
                original,
                direction,
            )
        try:
            converted, metadata = operation()
        except (SerializationError, ValueError, TypeError, KeyError) as e:
            processing_time = (time.time() - start_time) * 1000
            self._logger.warning(
                "Conversion failed",
                extra={"direction": direction.name, "error": str(e)},
            )
            return self._create_error_result(str(e), original, direction, processing_time)

        processing_time = (time.time() - start_time) * 1000
        self._timings.record(processing_time)
        self._logger.debug(
            "Conversion completed",
            extra={"direction": direction.name, "conversion_time_ms": processing_time},
        )
        return ConversionResult(
            success=True,
            converted_data=converted,
            original_data=original,
            conversion_time_ms=processing_time,
            direction=direction,
            metadata=metadata,
        )

    def get_performance_stats(self) -> Dict[str, float]:
        """Get conversion timing statistics for this adapter."""
        return self._timings.statistics()

    def _create_error_result(
        self,
        error_message: str,
        original_data: Any,
        direction: ConversionDirection,
        conversion_time_ms: float = 0.0
    ) -> ConversionResult:
        """Create a ConversionResult for error conditions."""
        return ConversionResult(
            success=False,
            converted_data=None,
            original_data=original_data,
            conversion_time_ms=conversion_time_ms,
            direction=direction,
            errors=[error_message],
            diagnostics=[
                DiagnosticEntry(
                    severity=DiagnosticSeverity.ERROR,
                    message=error_message,
                    component=self.__class__.__name__,
                    correlation_id=self.correlation_id
                )
            ]
        )


class AdapterRegistry:
    """Registry for managing integration adapters."""

    def __init__(self) -> None:
        """Initialize the adapter registry."""
        self._adapters: Dict[str, Type[IntegrationAdapter]] = {}
        self._lock = threading.RLock()

    def register(self, adapter_class: Type[IntegrationAdapter]) -> None:
        """Register an adapter class under its metadata name.

        Args:
            adapter_class: Adapter class to register
        """
        with self._lock:
            metadata = adapter_class().metadata
            self._adapters[metadata.name] = adapter_class

    def get_adapter(
        self,
        adapter_name: str,
        correlation_id: Optional[str] = None
    ) -> Optional[IntegrationAdapter]:
        """Get an adapter instance by name.

        Args:
            adapter_name: Name of the adapter
            correlation_id: Optional correlation ID

        Returns:
            Adapter instance if registered and available, None otherwise
        """
        with self._lock:
            adapter_class = self._adapters.get(adapter_name)
        if adapter_class is None:
            return None
        instance = adapter_class(correlation_id)
        return instance if instance.is_available() else None

    def list_available_adapters(self) -> List[AdapterMetadata]:
        """List metadata of every registered adapter whose library is installed."""
        with self._lock:
            adapter_classes = list(self._adapters.values())
        instances = [adapter_class() for adapter_class in adapter_classes]
        return [instance.metadata for instance in instances if instance.is_available()]

    def get_adapters_by_type(self, adapter_type: AdapterType) -> List[str]:
        """Get names of available adapters of one type."""
        return [
            metadata.name for metadata in self.list_available_adapters()
            if metadata.adapter_type == adapter_type
        ]


# Global adapter registry instance
_adapter_registry = AdapterRegistry()


def register_adapter(adapter_class: Type[IntegrationAdapter]) -> None:
    """Register an integration adapter globally."""
    _adapter_registry.register(adapter_class)


def get_adapter(
    adapter_name: str,
    correlation_id: Optional[str] = None
) -> Optional[IntegrationAdapter]:
    """Get a registered adapter instance, or None if unknown or unavailable."""
    return _adapter_registry.get_adapter(adapter_name, correlation_id)


def list_available_adapters() -> List[AdapterMetadata]:
    """List all available integration adapters."""
    return _adapter_registry.list_available_adapters()


def get_adapters_by_type(adapter_type: AdapterType) -> List[str]:
    """Get adapter names by type."""
    return _adapter_registry.get_adapters_by_type(adapter_type)


def _text_node(value: Optional[str]) -> Optional[Text]:
    """Text as the grammar would store it: no leading whitespace, never blank."""
    if not value:
        return None
    stripped = value.lstrip(_WHITESPACE)
    return Text(stripped) if stripped else None


@dataclass
class _LxmlFrame:
    """Element being rebuilt from lxml whose children are not all read yet."""

    source: Any
    name: str
    attributes: Tuple[Attribute, ...]
    children: Iterator[Any]
    nodes: List[Node] = field(default_factory=list)

    def close(self) -> Element:
        if not self.nodes:
            return SelfClosingElement(self.name, self.attributes)
        return ContainerElement(self.name, self.attributes, tuple(self.nodes))


class LxmlAdapter(IntegrationAdapter):
    """Adapter for bidirectional conversion with lxml.etree.

    ``w:`` resolves to the WordprocessingML main namespace unless an
    ``xmlns:w`` declaration says otherwise; other attribute prefixes need an
    ``xmlns:`` declaration in scope. Attribute values and text are copied
    verbatim, so entity references stay undecoded on the way in.
    """

    @property
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""
        return AdapterMetadata(
            name="lxml",
            version="1.0.0",
            adapter_type=AdapterType.XML_LIBRARY,
            target_library="lxml",
            supported_versions=["4.0+"],
            description="Bidirectional conversion between Document and lxml.etree",
            compatibility_notes=(
                "An implicit w: namespace becomes an explicit xmlns:w "
                "declaration when converting back"
            ),
        )

    def is_available(self) -> bool:
        """Check if lxml is available."""
        try:
            import lxml.etree  # noqa: F401
        except ImportError:
            return False
        return True

    def _to_target(self, document: Document) -> Tuple[Any, Dict[str, Any]]:
        import lxml.etree as etree

        base_scope = {"w": W_NAMESPACE, "xml": XML_NAMESPACE}
        lxml_root, root_scope = self._make_lxml_element(
            document.root, base_scope, None, etree, is_root=True
        )

        stack = [(document.root, lxml_root, root_scope)]
        while stack:
            element, target, scope = stack.pop()
            last_child = None
            for node in element.nodes:
                if isinstance(node, Text):
                    if last_child is None:
                        target.text = (target.text or "") + node.value
                    else:
                        last_child.tail = (last_child.tail or "") + node.value
                    continue
                child, child_scope = self._make_lxml_element(node, scope, target, etree)
                last_child = child
                stack.append((node, child, child_scope))

        return lxml_root, {
            "lxml_version": etree.LXML_VERSION,
            "element_count": sum(1 for _ in lxml_root.iter()),
        }

    @staticmethod
    def _make_lxml_element(
        element: Element,
        parent_scope: Dict[str, str],
        parent: Any,
        etree: Any,
        is_root: bool = False,
    ) -> Tuple[Any, Dict[str, str]]:
        nsmap: Dict[Optional[str], str] = {}
        for attr in element.attributes:
            if attr.name == "xmlns":
                nsmap[None] = attr.value
            elif attr.prefix == "xmlns":
                nsmap[attr.local_name] = attr.value

        scope = dict(parent_scope)
        scope.update({prefix: uri for prefix, uri in nsmap.items() if prefix is not None})
        if is_root and "w" not in nsmap:
            nsmap["w"] = scope["w"]

        tag = f"{{{scope['w']}}}{element.name}"
        if parent is None:
            lxml_element = etree.Element(tag, nsmap=nsmap)
        else:
            lxml_element = etree.SubElement(parent, tag, nsmap=nsmap or None)

        for attr in element.attributes:
            if attr.name == "xmlns" or attr.prefix == "xmlns":
                continue
            if attr.prefix is None:
                lxml_element.set(attr.name, attr.value)
                continue
            uri = scope.get(attr.prefix)
            if uri is None:
                raise SerializationError(
                    f"Attribute {attr.name!r} on {element.qualified_name} uses "
                    f"undeclared prefix {attr.prefix!r}"
                )
            lxml_element.set(f"{{{uri}}}{attr.local_name}", attr.value)

        return lxml_element, scope

    def _from_target(self, target_data: Any) -> Tuple[Document, Dict[str, Any]]:
        import lxml.etree as etree

        if isinstance(target_data, etree._ElementTree):
            target_data = target_data.getroot()
        if not isinstance(target_data, etree._Element) or not isinstance(target_data.tag, str):
            raise SerializationError("Target data is not an lxml element")

        stack = [self._open_frame(target_data, {}, etree)]
        while True:
            frame = stack[-1]
            child = next(frame.children, None)
            if child is None:
                stack.pop()
                element = frame.close()
                if not stack:
                    break
                parent = stack[-1]
                parent.nodes.append(element)
                tail = _text_node(frame.source.tail)
                if tail is not None:
                    parent.nodes.append(tail)
                continue
            if not isinstance(child.tag, str):
                # Comments and processing instructions; keep their tail text
                tail = _text_node(child.tail)
                if tail is not None:
                    frame.nodes.append(tail)
                continue
            stack.append(self._open_frame(child, frame.source.nsmap, etree))

        document = Document(DEFAULT_HEADER, element)
        return document, {"original_tag": target_data.tag}

    @staticmethod
    def _open_frame(source: Any, parent_nsmap: Dict[Optional[str], str], etree: Any) -> _LxmlFrame:
        qname = etree.QName(source)
        w_namespace = source.nsmap.get("w", W_NAMESPACE)
        if qname.namespace != w_namespace:
            raise SerializationError(
                f"Element {source.tag!r} is not in the w: namespace {w_namespace}"
            )

        attributes: List[Attribute] = []
        for prefix, uri in source.nsmap.items():
            if parent_nsmap.get(prefix) != uri:
                name = "xmlns" if prefix is None else f"xmlns:{prefix}"
                attributes.append(Attribute(name, uri))

        for key, value in source.attrib.items():
            attr_qname = etree.QName(key)
            if attr_qname.namespace is None:
                attributes.append(Attribute(key, value))
                continue
            if attr_qname.namespace == XML_NAMESPACE:
                prefix = "xml"
            else:
                prefixes = [
                    candidate for candidate, uri in source.nsmap.items()
                    if uri == attr_qname.namespace and candidate is not None
                ]
                if not prefixes:
                    raise SerializationError(f"No prefix declared for attribute {key!r}")
                prefix = prefixes[0]
            attributes.append(Attribute(f"{prefix}:{attr_qname.localname}", value))

        frame = _LxmlFrame(
            source=source,
            name=qname.localname,
            attributes=tuple(attributes),
            children=iter(source),
        )
        text = _text_node(source.text)
        if text is not None:
            frame.nodes.append(text)
        return frame


@dataclass
class _RowFrame:
    name: str
    attributes: Tuple[Attribute, ...]
    self_closing: bool
    row_number: int
    nodes: List[Node] = field(default_factory=list)

    def close(self) -> Element:
        if self.self_closing:
            if self.nodes:
                raise SerializationError(
                    f"Row {self.row_number} is marked self-closing but has content"
                )
            return SelfClosingElement(self.name, self.attributes)
        return ContainerElement(self.name, self.attributes, tuple(self.nodes))


class PandasAdapter(IntegrationAdapter):
    """Adapter for conversion to and from a pandas DataFrame.

    One row per element in document order, with columns ``path``, ``name``,
    ``depth``, ``self_closing``, ``text`` and one ``attr_<name>`` column per
    attribute name. Converting back places each row's text before its child
    elements, so mixed content is not reproduced exactly.
    """

    BASE_COLUMNS = ["path", "name", "depth", "self_closing", "text"]
    ATTRIBUTE_PREFIX = "attr_"

    @property
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""
        return AdapterMetadata(
            name="pandas",
            version="1.0.0",
            adapter_type=AdapterType.DATA_FRAME,
            target_library="pandas",
            supported_versions=["1.0+"],
            description="One-row-per-element DataFrame view of a Document"
        )

    def is_available(self) -> bool:
        """Check if pandas is available."""
        try:
            import pandas  # noqa: F401
        except ImportError:
            return False
        return True

    def _to_target(self, document: Document) -> Tuple[Any, Dict[str, Any]]:
        import pandas as pd

        rows = self._extract_rows(document.root)
        attribute_columns: List[str] = []
        for row in rows:
            for column in row:
                if column.startswith(self.ATTRIBUTE_PREFIX) and column not in attribute_columns:
                    attribute_columns.append(column)

        df = pd.DataFrame(rows, columns=self.BASE_COLUMNS + attribute_columns)
        return df, {
            "dataframe_shape": df.shape,
            "column_count": len(df.columns),
            "row_count": len(df),
            "columns": list(df.columns),
        }

    def _extract_rows(self, root: Element) -> List[Dict[str, Any]]:
        """One row per element, pre-order, with an indexed path per row."""
        rows: List[Dict[str, Any]] = []
        stack: List[Tuple[Element, str, int]] = [(root, f"/{root.qualified_name}", 0)]
        while stack:
            element, path, depth = stack.pop()
            row: Dict[str, Any] = {
                "path": path,
                "name": element.qualified_name,
                "depth": depth,
                "self_closing": element.is_self_closing,
                "text": element.texts(),
            }
            for attr in element.attributes:
                row.setdefault(f"{self.ATTRIBUTE_PREFIX}{attr.name}", attr.value)
            rows.append(row)

            children = element.child_elements()
            for index in reversed(range(len(children))):
                child = children[index]
                stack.append((child, f"{path}/{child.qualified_name}[{index}]", depth + 1))
        return rows

    def _from_target(self, target_data: Any) -> Tuple[Document, Dict[str, Any]]:
        import pandas as pd

        if not isinstance(target_data, pd.DataFrame):
            raise SerializationError("Target data is not a pandas DataFrame")
        missing = [
            column for column in ("name", "depth", "self_closing")
            if column not in target_data.columns
        ]
        if missing:
            raise SerializationError(f"DataFrame is missing columns: {', '.join(missing)}")
        if target_data.empty:
            raise SerializationError("DataFrame has no rows")

        attribute_columns = [
            column for column in target_data.columns
            if str(column).startswith(self.ATTRIBUTE_PREFIX)
        ]
        root: Optional[Element] = None
        stack: List[_RowFrame] = []

        for row_number, row in enumerate(target_data.to_dict("records")):
            depth = int(row["depth"])
            while len(stack) > depth:
                closed = stack.pop().close()
                if stack:
                    stack[-1].nodes.append(closed)
                else:
                    root = closed
            if root is not None:
                raise SerializationError(f"Row {row_number} starts a second root element")
            if depth != len(stack):
                raise SerializationError(
                    f"Row {row_number} has depth {depth} but its parent is at depth {len(stack) - 1}"
                )

            attributes = tuple(
                Attribute(column[len(self.ATTRIBUTE_PREFIX):], str(row[column]))
                for column in attribute_columns
                if not pd.isna(row[column])
            )
            frame = _RowFrame(
                name=local_name(str(row["name"])),
                attributes=attributes,
                self_closing=bool(row["self_closing"]),
                row_number=row_number,
            )
            text = row.get("text")
            if isinstance(text, str) and text:
                frame.nodes.append(Text(text))
            stack.append(frame)

        while stack:
            closed = stack.pop().close()
            if stack:
                stack[-1].nodes.append(closed)
            else:
                root = closed

        document = Document(DEFAULT_HEADER, root)  # type: ignore[arg-type]
        return document, {"dataframe_shape": target_data.shape}


# Auto-register adapters; availability is checked when they are requested
register_adapter(LxmlAdapter)
register_adapter(PandasAdapter)
