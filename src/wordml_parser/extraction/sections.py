"""Section properties (``w:sectPr``): page size, margins and layout grid.

A body ends with a ``w:sectPr`` describing the last section of the
document. Page measurements are in twentieths of a point, as stored.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional, Tuple, Union

from wordml_parser.document.nodes import Document, Element
from wordml_parser.shared.errors import ExtractionError

from .paragraphs import Paragraph, body_of, read_paragraph

DEFAULT_TEXT_DIRECTION = "lrTb"
MARGIN_FIELDS = ("top", "right", "bottom", "left", "header", "footer", "gutter")

_ON_VALUES = {"true", "1", "on"}
_OFF_VALUES = {"false", "0", "off"}


def parse_on_off(value: str) -> bool:
    """Convert an OOXML on/off value; raises ValueError for anything else."""
    lowered = value.lower()
    if lowered in _ON_VALUES:
        return True
    if lowered in _OFF_VALUES:
        return False
    raise ValueError(f"Not an on/off value: {value!r}")


@dataclass(frozen=True)
class PageMargin:
    top: int
    right: int
    bottom: int
    left: int
    header: int
    footer: int
    gutter: int

    def to_dict(self) -> Dict[str, int]:
        return {name: getattr(self, name) for name in MARGIN_FIELDS}


@dataclass(frozen=True)
class DocumentGrid:
    """``w:docGrid``; any attribute may be absent."""

    char_space: Optional[int] = None
    line_pitch: Optional[int] = None
    grid_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "char_space": self.char_space,
            "line_pitch": self.line_pitch,
            "grid_type": self.grid_type,
        }


@dataclass(frozen=True)
class Section:
    """Page setup of one document section."""

    page_width: int
    page_height: int
    margin: PageMargin
    page_type: Optional[str] = None
    page_number_format: Optional[str] = None
    form_protection: Optional[bool] = None
    text_direction: str = DEFAULT_TEXT_DIRECTION
    document_grid: Optional[DocumentGrid] = None

    @property
    def page_size(self) -> Tuple[int, int]:
        return (self.page_width, self.page_height)

    @property
    def content_margins(self) -> Tuple[int, int, int, int]:
        """Top, right, bottom and left distance from the page edge to the body.

        The header and footer distances add to the top and bottom margins.
        """
        margin = self.margin
        return (
            margin.header + margin.top,
            margin.right,
            margin.bottom + margin.footer,
            margin.left,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "page_width": self.page_width,
            "page_height": self.page_height,
            "margin": self.margin.to_dict(),
            "page_type": self.page_type,
            "page_number_format": self.page_number_format,
            "form_protection": self.form_protection,
            "text_direction": self.text_direction,
            "document_grid": self.document_grid.to_dict() if self.document_grid else None,
        }


def _required_int(element: Element, attr_name: str) -> int:
    value = element.get_attr_parsed(attr_name, int)
    if value is None:
        raise ExtractionError(
            f"{element.qualified_name} must have an integer {attr_name} attribute"
        )
    return value


def _read_page_margin(section_properties: Element) -> PageMargin:
    margin = section_properties.get_child("w:pgMar")
    if margin is None:
        raise ExtractionError("Section must have page margins (w:pgMar)")
    return PageMargin(**{name: _required_int(margin, f"w:{name}") for name in MARGIN_FIELDS})


def _read_form_protection(section_properties: Element) -> Optional[bool]:
    form_protection = section_properties.get_child("w:formProt")
    if form_protection is None:
        return None
    # A bare <w:formProt/> switches protection on
    if not form_protection.has_attr("w:val"):
        return True
    return form_protection.get_attr_parsed("w:val", parse_on_off)


def _read_document_grid(section_properties: Element) -> Optional[DocumentGrid]:
    grid = section_properties.get_child("w:docGrid")
    if grid is None:
        return None
    return DocumentGrid(
        char_space=grid.get_attr_parsed("w:charSpace", int),
        line_pitch=grid.get_attr_parsed("w:linePitch", int),
        grid_type=grid.get_attr("w:type"),
    )


def read_section_properties(section_properties: Element) -> Section:
    """Reduce a ``w:sectPr`` element.

    Raises:
        ExtractionError: If the page size or any page margin is missing
    """
    page_size = section_properties.get_child("w:pgSz")
    if page_size is None:
        raise ExtractionError("Section must have a page size (w:pgSz)")

    text_direction = section_properties.get_child_attr_parsed("w:textDirection", "w:val", str)
    return Section(
        page_width=_required_int(page_size, "w:w"),
        page_height=_required_int(page_size, "w:h"),
        margin=_read_page_margin(section_properties),
        page_type=section_properties.get_child_attr_parsed("w:type", "w:val", str),
        page_number_format=section_properties.get_child_attr_parsed(
            "w:pgNumType", "w:fmt", str
        ),
        form_protection=_read_form_protection(section_properties),
        text_direction=text_direction or DEFAULT_TEXT_DIRECTION,
        document_grid=_read_document_grid(section_properties),
    )


def iter_body(document: Document) -> Iterator[Union[Paragraph, Section]]:
    """Yield paragraphs and section breaks of the body in document order.

    Other body content (tables, bookmarks) is skipped.

    Raises:
        ExtractionError: If the document has no body or a section is incomplete
    """
    for element in body_of(document).child_elements():
        if element.name == "p":
            yield read_paragraph(element)
        elif element.name == "sectPr":
            yield read_section_properties(element)


def read_section(document: Document) -> Optional[Section]:
    """Return the last ``w:sectPr`` of the body, or None if there is none."""
    sections = body_of(document).get_children("w:sectPr")
    if not sections:
        return None
    return read_section_properties(sections[-1])
