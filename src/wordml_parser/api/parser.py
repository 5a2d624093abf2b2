"""Core parser API with progressive disclosure for WordML parsing.

This module provides the main parsing API, from simple module-level functions
to a reusable parser class. Following the never-fail philosophy, every entry
point returns a ``ParseResult`` instead of raising for bad input.
"""

import threading
import time
from pathlib import Path
from typing import Any, BinaryIO, Dict, Optional, TextIO, Union

from wordml_parser.grammar import (
    DocumentParser,
    ParseError,
    SourcePosition,
    TagMismatchError,
)
from wordml_parser.shared import (
    DiagnosticSeverity,
    ParserConfig,
    get_logger,
)

from .docx import DOCUMENT_PART, DocxError, read_docx_part
from .result import ParseResult

# Type definitions for input data
InputType = Union[str, bytes, BinaryIO, TextIO, Path]

# Constants for API operations
PREVIEW_LENGTH = 100  # Max length for content preview in logs
MS_PER_SECOND = 1000  # Milliseconds per second conversion
UTF8_BOM = "\ufeff"


def parse(
    input_data: InputType,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> ParseResult:
    """Parse WordML from various input sources with automatic type detection.

    Strings are treated as document text, bytes are decoded as UTF-8,
    ``Path`` objects are read from disk (``.docx`` archives through their
    document part) and anything with a ``read`` method is read first.

    Args:
        input_data: Document content as string, bytes, file-like object, or Path
        config: Optional parser configuration
        correlation_id: Optional correlation ID for request tracking

    Returns:
        ParseResult holding the document or the error that stopped the parse

    Examples:
        >>> result = parse('<?xml version="1.0"?>\\n<w:p><w:r/></w:p>')
        >>> result.document.root.qualified_name
        'w:p'

        >>> parse(Path("report.docx")).success
        True
    """
    start_time = time.time()
    logger = get_logger(__name__, correlation_id, "parse")

    logger.info(
        "Starting universal parse operation",
        extra={
            "input_type": type(input_data).__name__,
            "has_correlation_id": correlation_id is not None
        }
    )

    try:
        if isinstance(input_data, str):
            return parse_string(input_data, config, correlation_id)
        if isinstance(input_data, bytes):
            return _parse_content(input_data, config, correlation_id, source=None)
        if isinstance(input_data, Path):
            if input_data.suffix.lower() == ".docx":
                return parse_docx(input_data, config=config, correlation_id=correlation_id)
            return parse_file(input_data, config=config, correlation_id=correlation_id)
        if hasattr(input_data, "read"):
            return _parse_file_like_object(input_data, config, correlation_id)

        processing_time = (time.time() - start_time) * MS_PER_SECOND
        return _create_error_result(
            f"Unsupported input type: {type(input_data).__name__}",
            correlation_id,
            processing_time
        )

    except Exception as e:
        # Never-fail guarantee: return error result with diagnostics
        processing_time = (time.time() - start_time) * MS_PER_SECOND
        logger.exception(
            "Parse operation failed",
            extra={"processing_time_ms": processing_time}
        )
        return _create_error_result(
            f"Parse operation failed: {e}",
            correlation_id,
            processing_time
        )


def parse_string(
    text: str,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> ParseResult:
    """Parse WordML from a string.

    Args:
        text: Document content, header line first
        config: Optional parser configuration
        correlation_id: Optional correlation ID for request tracking

    Returns:
        ParseResult holding the document or the error that stopped the parse

    Examples:
        >>> result = parse_string('<?xml?>\\n<w:t xml:space="preserve">Hi </w:t>')
        >>> result.document.root.get_attr("xml:space")
        'preserve'

        >>> result = parse_string('<?xml?>\\n<w:p></w:r>')
        >>> result.error.expected, result.error.found
        ('p', 'r')
    """
    logger = get_logger(__name__, correlation_id, "parse_string")
    logger.info(
        "Starting string parse operation",
        extra={
            "content_length": len(text),
            "preview": (
                text[:PREVIEW_LENGTH] + "..."
                if len(text) > PREVIEW_LENGTH else text
            )
        }
    )
    return _parse_content(text, config, correlation_id, source=None)


def parse_file(
    file_path: Union[str, Path],
    encoding: Optional[str] = None,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> ParseResult:
    """Parse WordML from a file.

    Without ``encoding`` the file is read as bytes and decoded as UTF-8.

    Args:
        file_path: Path to the document (string or Path object)
        encoding: Optional encoding override
        config: Optional parser configuration
        correlation_id: Optional correlation ID for request tracking

    Returns:
        ParseResult holding the document or the error that stopped the parse

    Examples:
        >>> result = parse_file('missing.xml')
        >>> result.success
        False
        >>> 'not found' in result.diagnostics[0].message.lower()
        True
    """
    start_time = time.time()
    logger = get_logger(__name__, correlation_id, "parse_file")

    # Convert to Path object for consistent handling
    path_obj = Path(file_path)

    logger.info(
        "Starting file parse operation",
        extra={
            "file_path": str(path_obj),
            "encoding_override": encoding
        }
    )

    error_message = None
    if not path_obj.exists():
        error_message = f"File not found: {path_obj}"
    elif not path_obj.is_file():
        error_message = f"Path is not a file: {path_obj}"

    if error_message:
        processing_time = (time.time() - start_time) * MS_PER_SECOND
        return _create_error_result(
            error_message, correlation_id, processing_time, source=str(path_obj)
        )

    try:
        if encoding:
            with path_obj.open(encoding=encoding, newline="") as file:
                content: Union[str, bytes] = file.read()
        else:
            with path_obj.open("rb") as file:
                content = file.read()

    except PermissionError:
        processing_time = (time.time() - start_time) * MS_PER_SECOND
        return _create_error_result(
            f"Permission denied accessing file: {path_obj}",
            correlation_id,
            processing_time,
            source=str(path_obj)
        )

    except (OSError, UnicodeDecodeError, LookupError) as e:
        processing_time = (time.time() - start_time) * MS_PER_SECOND
        logger.warning(
            "File could not be read",
            extra={"file_path": str(path_obj), "error": str(e)}
        )
        return _create_error_result(
            f"Cannot read file {path_obj}: {e}",
            correlation_id,
            processing_time,
            source=str(path_obj)
        )

    return _parse_content(content, config, correlation_id, source=str(path_obj))


def parse_docx(
    file_path: Union[str, Path],
    part: str = DOCUMENT_PART,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> ParseResult:
    """Parse one WordprocessingML part of a ``.docx`` archive.

    Args:
        file_path: Path to the ``.docx`` archive
        part: Part name inside the archive
        config: Optional parser configuration
        correlation_id: Optional correlation ID for request tracking

    Returns:
        ParseResult holding the document or the error that stopped the parse

    Examples:
        >>> result = parse_docx("report.docx")
        >>> result.document.root.qualified_name
        'w:document'

        >>> fonts = parse_docx("report.docx", part="word/fontTable.xml")
    """
    start_time = time.time()
    logger = get_logger(__name__, correlation_id, "parse_docx")
    source = f"{file_path}!{part}"

    logger.info(
        "Starting docx parse operation",
        extra={"file_path": str(file_path), "part": part}
    )

    try:
        content = read_docx_part(file_path, part)
    except DocxError as e:
        processing_time = (time.time() - start_time) * MS_PER_SECOND
        logger.warning("Docx part could not be read", extra={"error": str(e)})
        return _create_error_result(str(e), correlation_id, processing_time, source=source)

    return _parse_content(content, config, correlation_id, source=source)


def _decode(content: bytes, config: ParserConfig) -> str:
    """Decode bytes as UTF-8, dropping a byte order mark if configured."""
    return content.decode("utf-8-sig" if config.strip_bom else "utf-8")


def _parse_content(
    content: Union[str, bytes],
    config: Optional[ParserConfig],
    correlation_id: Optional[str],
    source: Optional[str]
) -> ParseResult:
    """Internal function running the grammar over in-memory content.

    Args:
        content: Document content as string or bytes
        config: Optional parser configuration
        correlation_id: Optional correlation ID for request tracking
        source: File name recorded in the result, if any

    Returns:
        ParseResult with the document or the parse error
    """
    start_time = time.time()
    config = config or ParserConfig()
    logger = get_logger(__name__, correlation_id, "parse_content")

    if isinstance(content, bytes):
        try:
            text = _decode(content, config)
        except UnicodeDecodeError as e:
            processing_time = (time.time() - start_time) * MS_PER_SECOND
            logger.warning(
                "Input is not valid UTF-8",
                extra={"source": source, "error": str(e)}
            )
            return _create_error_result(
                f"Input is not valid UTF-8: {e}",
                correlation_id,
                processing_time,
                source=source,
                details={"byte_offset": e.start}
            )
    else:
        text = content
        if config.strip_bom and text.startswith(UTF8_BOM):
            text = text[len(UTF8_BOM):]

    parser = DocumentParser(config, correlation_id)
    try:
        document, end = parser.parse_prefix(text)
        trailing = parser.check_trailing_input(text, end)

    except ParseError as error:
        processing_time = (time.time() - start_time) * MS_PER_SECOND
        logger.warning(
            "Parse failed",
            extra={
                "source": source,
                "kind": error.kind.name,
                "line": error.position.line,
                "column": error.position.column,
            }
        )
        result = ParseResult(
            success=False,
            error=error,
            correlation_id=correlation_id,
            source=source
        )
        result.add_diagnostic(
            DiagnosticSeverity.CRITICAL,
            error.message,
            "document_parser",
            position=error.position.to_dict(),
            details=_error_details(error)
        )
        result.performance.characters_processed = len(text)
        if config.include_timing:
            result.performance.processing_time_ms = processing_time
        return result

    result = ParseResult(document=document, correlation_id=correlation_id, source=source)
    if trailing is not None:
        result.trailing_input_ignored = True
        position = SourcePosition.from_offset(text, trailing).to_dict()
        result.add_diagnostic(
            DiagnosticSeverity.WARNING,
            "Trailing input after the root element was ignored",
            "document_parser",
            position=position,
            details={"ignored_characters": len(text) - trailing}
        )

    metrics = result.performance
    metrics.characters_processed = len(text)
    metrics.elements_parsed = document.total_elements
    metrics.attributes_parsed = document.total_attributes
    metrics.text_nodes_parsed = document.total_text_nodes
    metrics.max_depth = document.max_depth
    if config.include_timing:
        metrics.processing_time_ms = (time.time() - start_time) * MS_PER_SECOND

    logger.info(
        "Content parsing completed",
        extra={
            "source": source,
            "element_count": metrics.elements_parsed,
            "processing_time_ms": metrics.processing_time_ms,
            "trailing_input_ignored": result.trailing_input_ignored
        }
    )
    return result


def _error_details(error: ParseError) -> Dict[str, Any]:
    details: Dict[str, Any] = {"kind": error.kind.name}
    if isinstance(error, TagMismatchError):
        details["expected"] = error.expected
        details["found"] = error.found
    return details


def _parse_file_like_object(
    file_obj: Union[BinaryIO, TextIO],
    config: Optional[ParserConfig],
    correlation_id: Optional[str]
) -> ParseResult:
    """Internal function to parse file-like objects.

    Args:
        file_obj: File-like object to parse
        config: Optional parser configuration
        correlation_id: Optional correlation ID for request tracking

    Returns:
        ParseResult with parsing information
    """
    start_time = time.time()
    logger = get_logger(__name__, correlation_id, "parse_filelike")

    try:
        content = file_obj.read()
    except (OSError, UnicodeDecodeError) as e:
        processing_time = (time.time() - start_time) * MS_PER_SECOND
        logger.warning("File-like object could not be read", extra={"error": str(e)})
        return _create_error_result(
            f"File-like object could not be read: {e}",
            correlation_id,
            processing_time
        )

    logger.info(
        "File-like object read",
        extra={
            "content_length": len(content) if content else 0,
            "content_type": type(content).__name__
        }
    )
    source = getattr(file_obj, "name", None)
    return _parse_content(
        content, config, correlation_id, source=str(source) if source else None
    )


def _create_error_result(
    error_message: str,
    correlation_id: Optional[str],
    processing_time: float,
    source: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None
) -> ParseResult:
    """Create error result following never-fail philosophy.

    Args:
        error_message: Error description
        correlation_id: Optional correlation ID
        processing_time: Processing time in milliseconds
        source: File name the failure relates to, if any
        details: Extra diagnostic details

    Returns:
        ParseResult with error information
    """
    result = ParseResult(success=False, correlation_id=correlation_id, source=source)
    result.performance.processing_time_ms = processing_time

    result.add_diagnostic(
        DiagnosticSeverity.CRITICAL,
        error_message,
        "api_parser",
        details=details
    )

    return result


class WordMLParser:
    """Reusable parser holding a configuration and usage statistics.

    Statistics are updated under a lock, so one instance can be shared by
    worker threads.

    Attributes:
        config: Current parser configuration
        correlation_id: Correlation ID for request tracking

    Examples:
        Basic usage with default configuration:
        >>> parser = WordMLParser()
        >>> result = parser.parse('<?xml?>\\n<w:body></w:body>')
        >>> result.success
        True

        Lenient handling of trailing input:
        >>> parser = WordMLParser(ParserConfig.lenient())
        >>> parser.parse('<?xml?>\\n<w:p/>junk').trailing_input_ignored
        True
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize the parser.

        Args:
            config: Parser configuration (defaults to strict)
            correlation_id: Optional correlation ID for request tracking
        """
        self.config = config or ParserConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "wordml_parser")

        # Parser state for multi-parse scenarios
        self._lock = threading.Lock()
        self._parse_count = 0
        self._successful_parses = 0
        self._total_processing_time = 0.0
        self._total_characters = 0

        self.logger.info(
            "WordMLParser initialized",
            extra={"config_name": self.config.name, "trailing_input": self.config.trailing_input.name}
        )

    def parse(
        self,
        input_data: InputType,
        config_override: Optional[ParserConfig] = None,
        correlation_id_override: Optional[str] = None
    ) -> ParseResult:
        """Parse with this parser's configuration.

        Args:
            input_data: Document content as any supported input type
            config_override: Optional configuration for this parse only
            correlation_id_override: Optional correlation ID for this parse only

        Returns:
            ParseResult holding the document or the error that stopped the parse
        """
        result = parse(
            input_data,
            config=config_override or self.config,
            correlation_id=correlation_id_override or self.correlation_id
        )
        self._record(result)
        return result

    def parse_docx(self, file_path: Union[str, Path], part: str = DOCUMENT_PART) -> ParseResult:
        """Parse one part of a ``.docx`` archive with this parser's configuration."""
        result = parse_docx(
            file_path, part, config=self.config, correlation_id=self.correlation_id
        )
        self._record(result)
        return result

    def _record(self, result: ParseResult) -> None:
        with self._lock:
            self._parse_count += 1
            self._total_processing_time += result.performance.processing_time_ms
            self._total_characters += result.performance.characters_processed
            if result.success:
                self._successful_parses += 1
            parse_count = self._parse_count
            success_rate = self._successful_parses / self._parse_count

        self.logger.debug(
            "Configured parse completed",
            extra={
                "success": result.success,
                "total_parses": parse_count,
                "success_rate": success_rate
            }
        )

    def reconfigure(self, config: Optional[ParserConfig] = None, **overrides: Any) -> None:
        """Replace the configuration, optionally overriding single fields.

        Args:
            config: New configuration (keeps the current one if omitted)
            **overrides: Field values applied on top, see ``ParserConfig.override``

        Examples:
            >>> parser.reconfigure(max_depth=64)
            >>> parser.config.max_depth
            64
        """
        new_config = config or self.config
        if overrides:
            new_config = new_config.override(**overrides)
        self.config = new_config

        self.logger.info(
            "Parser reconfigured",
            extra={
                "config_replaced": config is not None,
                "overridden_fields": sorted(overrides)
            }
        )

    @property
    def statistics(self) -> Dict[str, Any]:
        """Get parser usage statistics.

        Returns:
            Dictionary with parse counts, success rate and timing totals
        """
        with self._lock:
            parse_count = self._parse_count
            successful = self._successful_parses
            total_time = self._total_processing_time
            total_characters = self._total_characters

        return {
            "total_parses": parse_count,
            "successful_parses": successful,
            "failed_parses": parse_count - successful,
            "success_rate": successful / parse_count if parse_count > 0 else 0.0,
            "total_processing_time_ms": total_time,
            "average_processing_time_ms": (
                total_time / parse_count if parse_count > 0 else 0.0
            ),
            "total_characters": total_characters,
            "correlation_id": self.correlation_id,
        }

    def reset_statistics(self) -> None:
        """Reset parser usage statistics."""
        with self._lock:
            self._parse_count = 0
            self._successful_parses = 0
            self._total_processing_time = 0.0
            self._total_characters = 0

        self.logger.info("Parser statistics reset")
