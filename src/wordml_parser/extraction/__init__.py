"""Paragraph, section and font extraction from parsed WordprocessingML parts."""

from .paragraphs import (
    Paragraph,
    Run,
    Spacing,
    body_of,
    document_text,
    font_names,
    iter_paragraphs,
    read_paragraph,
    read_spacing,
)
from .sections import (
    DocumentGrid,
    PageMargin,
    Section,
    iter_body,
    parse_on_off,
    read_section,
    read_section_properties,
)

__all__ = [
    "DocumentGrid",
    "PageMargin",
    "Paragraph",
    "Run",
    "Section",
    "Spacing",
    "body_of",
    "document_text",
    "font_names",
    "iter_body",
    "iter_paragraphs",
    "parse_on_off",
    "read_paragraph",
    "read_section",
    "read_section_properties",
    "read_spacing",
]
