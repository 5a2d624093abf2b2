"""Public parsing API with progressive disclosure.

Level 1 functions return a ``ParseResult`` and never raise for bad input;
``WordMLParser`` adds reusable configuration and usage statistics.
"""

from .adapters import (
    AdapterMetadata,
    AdapterRegistry,
    AdapterType,
    ConversionDirection,
    ConversionResult,
    IntegrationAdapter,
    LxmlAdapter,
    PandasAdapter,
    get_adapter,
    get_adapters_by_type,
    list_available_adapters,
    register_adapter,
)
from .docx import (
    DOCUMENT_PART,
    FONT_TABLE_PART,
    STYLES_PART,
    DocxError,
    list_docx_parts,
    read_docx_part,
)
from .parser import WordMLParser, parse, parse_docx, parse_file, parse_string
from .result import ParseResult

__all__ = [
    "AdapterMetadata",
    "AdapterRegistry",
    "AdapterType",
    "ConversionDirection",
    "ConversionResult",
    "IntegrationAdapter",
    "LxmlAdapter",
    "PandasAdapter",
    "get_adapter",
    "get_adapters_by_type",
    "list_available_adapters",
    "register_adapter",
    "DOCUMENT_PART",
    "FONT_TABLE_PART",
    "STYLES_PART",
    "DocxError",
    "list_docx_parts",
    "read_docx_part",
    "WordMLParser",
    "parse",
    "parse_docx",
    "parse_file",
    "parse_string",
    "ParseResult",
]
