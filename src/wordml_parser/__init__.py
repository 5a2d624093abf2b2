"""WordML Parser.

A stack-validated parser for the WordprocessingML dialect found in ``.docx``
files: a header line followed by one root element whose tags all carry the
``w:`` prefix. Every closing tag is checked against the innermost open tag,
and any malformation aborts the parse with a positioned, typed error.

Progressive API Disclosure:
- Level 1: Simple functions - parse(), parse_string(), parse_file(), parse_docx()
- Level 2: Configured parser - WordMLParser class
- Level 3: Core grammar - DocumentParser, raising ParseError subclasses
"""

__version__ = "0.1.0"
__author__ = "WordML Parser Team"

# Progressive API disclosure - Level 1: Simple functions
# Progressive API disclosure - Level 2: Advanced configuration
from .api import ParseResult, WordMLParser, parse, parse_docx, parse_file, parse_string

# Tree model
from .document import (
    Attribute,
    ContainerElement,
    Document,
    SelfClosingElement,
    Text,
)

# Core grammar and its errors
from .grammar import DocumentParser, ParseError, ParseErrorKind, parse_document

# Configuration classes for advanced usage
from .shared import ParserConfig, TrailingInputPolicy, WordMLError

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple parsing functions
    "parse",
    "parse_string",
    "parse_file",
    "parse_docx",

    # Level 2: Advanced parser class
    "WordMLParser",

    # Level 3: Core grammar
    "DocumentParser",
    "parse_document",
    "ParseError",
    "ParseErrorKind",

    # Result objects and data structures
    "ParseResult",
    "Document",
    "SelfClosingElement",
    "ContainerElement",
    "Attribute",
    "Text",

    # Configuration
    "ParserConfig",
    "TrailingInputPolicy",
    "WordMLError",
]
