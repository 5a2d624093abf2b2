"""Paragraph, run and font extraction from parsed WordprocessingML.

Only the structure needed to lay out plain text is pulled out: each
``w:p`` under ``w:body`` with its justification and spacing, and each
``w:r`` with its ``w:t`` text and the common run properties. Measurements
are returned as stored: sizes in half-points, spacing in twentieths of a
point.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from wordml_parser.document.nodes import Document, Element
from wordml_parser.shared.errors import ExtractionError


@dataclass(frozen=True)
class Run:
    """Text run with its formatting.

    ``size`` is ``w:sz`` and ``size_cs`` is ``w:szCs``, the size used for
    complex-script characters.
    """

    text: str
    bold: bool = False
    italic: bool = False
    underline: bool = False
    size: Optional[int] = None
    size_cs: Optional[int] = None
    font: Optional[str] = None
    color: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "bold": self.bold,
            "italic": self.italic,
            "underline": self.underline,
            "size": self.size,
            "size_cs": self.size_cs,
            "font": self.font,
            "color": self.color,
        }


@dataclass(frozen=True)
class Spacing:
    """``w:pPr/w:spacing``: line pitch and the space before and after."""

    line: Optional[int] = None
    line_rule: Optional[str] = None  # auto, exact or atLeast
    before: Optional[int] = None
    after: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "line": self.line,
            "line_rule": self.line_rule,
            "before": self.before,
            "after": self.after,
        }


@dataclass(frozen=True)
class Paragraph:
    """A ``w:p`` element reduced to its attributes, runs and layout properties."""

    attributes: Tuple[Tuple[str, str], ...] = ()
    runs: Tuple[Run, ...] = field(default=())
    justification: Optional[str] = None
    spacing: Optional[Spacing] = None

    @property
    def text(self) -> str:
        return "".join(run.text for run in self.runs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "attributes": dict(self.attributes),
            "justification": self.justification,
            "spacing": self.spacing.to_dict() if self.spacing else None,
            "text": self.text,
            "runs": [run.to_dict() for run in self.runs],
        }


def _read_run(run: Element) -> Optional[Run]:
    text_element = run.get_child("w:t")
    if text_element is None:
        return None

    properties = run.get_child("w:rPr")
    if properties is None:
        return Run(text=text_element.texts())

    return Run(
        text=text_element.texts(),
        bold=properties.has_child("w:b"),
        italic=properties.has_child("w:i"),
        underline=properties.has_child("w:u"),
        size=properties.get_child_attr_parsed("w:sz", "w:val", int),
        size_cs=properties.get_child_attr_parsed("w:szCs", "w:val", int),
        font=properties.get_child_attr_parsed("w:rFonts", "w:ascii", str),
        color=properties.get_child_attr_parsed("w:color", "w:val", str),
    )


def read_spacing(paragraph_properties: Element) -> Optional[Spacing]:
    """Read ``w:spacing`` from a ``w:pPr`` element; None if it has none."""
    spacing = paragraph_properties.get_child("w:spacing")
    if spacing is None:
        return None
    return Spacing(
        line=spacing.get_attr_parsed("w:line", int),
        line_rule=spacing.get_attr("w:lineRule"),
        before=spacing.get_attr_parsed("w:before", int),
        after=spacing.get_attr_parsed("w:after", int),
    )


def read_paragraph(paragraph: Element) -> Paragraph:
    """Reduce one ``w:p`` element; runs without a ``w:t`` are skipped."""
    justification = None
    spacing = None
    paragraph_properties = paragraph.get_child("w:pPr")
    if paragraph_properties is not None:
        justification = paragraph_properties.get_child_attr_parsed("w:jc", "w:val", str)
        spacing = read_spacing(paragraph_properties)

    runs: List[Run] = []
    for run_element in paragraph.get_children("w:r"):
        run = _read_run(run_element)
        if run is not None:
            runs.append(run)

    return Paragraph(
        attributes=tuple((attr.name, attr.value) for attr in paragraph.attributes),
        runs=tuple(runs),
        justification=justification,
        spacing=spacing,
    )


def body_of(document: Document) -> Element:
    """Return the ``w:body`` of a ``w:document``.

    Raises:
        ExtractionError: If the root is not ``w:document`` or has no ``w:body``
    """
    root = document.root
    if root.name != "document":
        raise ExtractionError(
            f"Invalid document root element name: {root.qualified_name!r}"
        )
    body = root.get_child("w:body")
    if body is None:
        raise ExtractionError("Document has no w:body element")
    return body


def iter_paragraphs(document: Document) -> Iterator[Paragraph]:
    """Yield the body paragraphs of a ``w:document`` in order.

    Raises:
        ExtractionError: If the root is not ``w:document`` or has no ``w:body``
    """
    for paragraph in body_of(document).get_children("w:p"):
        yield read_paragraph(paragraph)


def font_names(font_table: Document) -> List[str]:
    """List the ``w:name`` of every ``w:font`` in a font table part.

    Raises:
        ExtractionError: If a font has no name
    """
    names: List[str] = []
    for font in font_table.root.get_children("w:font"):
        name = font.get_attr("w:name")
        if name is None:
            raise ExtractionError("Font must have a w:name attribute")
        names.append(name)
    return names


def document_text(document: Document, separator: str = "\n") -> str:
    """Plain text of all body paragraphs joined by ``separator``."""
    return separator.join(paragraph.text for paragraph in iter_paragraphs(document))
