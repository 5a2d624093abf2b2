"""Tests for the parsing API with progressive disclosure.

Tests the module-level parse functions and the WordMLParser class, making
sure bad input always comes back as a failed ParseResult and never as an
exception.
"""

import io
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from wordml_parser.api.parser import (
    WordMLParser,
    parse,
    parse_docx,
    parse_file,
    parse_string,
)
from wordml_parser.api.result import ParseResult
from wordml_parser.grammar import ParseErrorKind, TagMismatchError
from wordml_parser.shared import (
    ConfigValidationError,
    DiagnosticSeverity,
    ParserConfig,
    TrailingInputPolicy,
)

SIMPLE = '<?xml version="1.0"?>\n<w:p w:rsidR="00A1"><w:r><w:t>Hi</w:t></w:r></w:p>'


class TestSimpleParsingFunctions:
    """Test Level 1: Simple module-level parsing functions."""

    def test_parse_string_basic(self, document_xml):
        """Test basic string parsing functionality."""
        result = parse_string(document_xml)

        assert isinstance(result, ParseResult)
        assert result.success is True
        assert result.error is None
        assert result.document.root.qualified_name == "w:document"
        assert result.element_count == 19
        assert result.performance.max_depth == 5
        assert result.performance.attributes_parsed == 6
        assert result.performance.characters_processed == len(document_xml)
        assert result.diagnostics == []

    def test_parse_string_malformed(self):
        """Test a malformed document becomes a failed result."""
        result = parse_string('<?xml version="1.0"?>\n<w:p><w:r>')

        assert result.success is False
        assert result.document is None
        assert result.error.kind is ParseErrorKind.UNEXPECTED_END_OF_INPUT
        assert result.has_errors() is True

        diagnostic = result.diagnostics[0]
        assert diagnostic.severity is DiagnosticSeverity.CRITICAL
        assert diagnostic.component == "document_parser"
        assert diagnostic.position["line"] == 2
        assert diagnostic.details["kind"] == "UNEXPECTED_END_OF_INPUT"

    def test_parse_string_mismatch_details(self):
        """Test expected and found names reach the diagnostic."""
        result = parse_string('<?xml?>\n<w:p></w:r>')

        assert isinstance(result.error, TagMismatchError)
        assert result.diagnostics[0].details == {
            "kind": "TAG_MISMATCH", "expected": "p", "found": "r",
        }

    def test_parse_string_multiline_header(self):
        """Test a header spanning lines parses instead of raising."""
        result = parse_string('<?xml version="1.0"\n?>\n<w:a/>')

        assert result.success is True
        assert result.document.header == '<?xml version="1.0"\n?>'
        assert result.diagnostics == []

    def test_parse_string_empty(self):
        """Test empty input."""
        result = parse_string("")

        assert result.success is False
        assert result.error.kind is ParseErrorKind.MALFORMED_HEADER

    def test_parse_string_strips_bom(self):
        """Test a leading byte order mark in text input."""
        result = parse_string("\ufeff" + SIMPLE)

        assert result.success is True
        assert result.document.header == '<?xml version="1.0"?>'

    def test_parse_universal_string(self):
        """Test universal parse function with string input."""
        result = parse(SIMPLE)

        assert result.success is True
        assert result.document.find("w:t").texts() == "Hi"

    def test_parse_universal_bytes(self):
        """Test universal parse function with bytes input."""
        result = parse(SIMPLE.encode("utf-8"))

        assert result.success is True
        assert result.document.root.get_attr("w:rsidR") == "00A1"

    def test_parse_bytes_with_bom(self):
        """Test the UTF-8 signature is removed from bytes."""
        result = parse(b"\xef\xbb\xbf" + SIMPLE.encode("utf-8"))

        assert result.success is True

    def test_parse_bytes_keep_bom(self):
        """Test disabling strip_bom leaves the mark in front of the header."""
        config = ParserConfig(strip_bom=False)

        result = parse(b"\xef\xbb\xbf" + SIMPLE.encode("utf-8"), config=config)

        assert result.success is False
        assert result.error.kind is ParseErrorKind.MALFORMED_HEADER

    def test_parse_invalid_utf8(self):
        """Test undecodable bytes fail before the grammar runs."""
        result = parse(b'<?xml?>\n<w:t>\xff\xfe</w:t>')

        assert result.success is False
        assert result.error is None
        assert "not valid UTF-8" in result.diagnostics[0].message
        assert result.diagnostics[0].details == {"byte_offset": 13}

    def test_parse_universal_unknown_type(self):
        """Test unsupported input types."""
        result = parse(12345)  # type: ignore[arg-type]

        assert result.success is False
        assert "Unsupported input type: int" in result.diagnostics[0].message
        assert result.diagnostics[0].component == "api_parser"

    def test_parse_with_binary_file_like_object(self):
        """Test parsing from a binary stream."""
        result = parse(io.BytesIO(SIMPLE.encode("utf-8")))

        assert result.success is True

    def test_parse_with_text_file_like_object(self):
        """Test parsing from a text stream."""
        result = parse(io.StringIO(SIMPLE))

        assert result.success is True
        assert result.source is None

    def test_parse_file_like_read_error(self):
        """Test a stream that fails to read."""

        class BrokenStream:
            def read(self):
                raise OSError("device not ready")

        result = parse(BrokenStream())  # type: ignore[arg-type]

        assert result.success is False
        assert "device not ready" in result.diagnostics[0].message

    def test_parse_lenient_trailing_input(self):
        """Test ignored trailing input is reported as a warning."""
        config = ParserConfig(trailing_input=TrailingInputPolicy.LENIENT)

        result = parse_string(SIMPLE + "\n<w:p/>", config=config)

        assert result.success is True
        assert result.trailing_input_ignored is True
        warnings = result.get_diagnostics_by_severity(DiagnosticSeverity.WARNING)
        assert len(warnings) == 1
        assert warnings[0].position["line"] == 3
        assert warnings[0].details == {"ignored_characters": 6}
        assert result.has_errors() is False

    def test_parse_strict_trailing_input(self):
        """Test the strict default fails on trailing input."""
        result = parse_string(SIMPLE + "x")

        assert result.success is False
        assert result.error.kind is ParseErrorKind.TRAILING_INPUT

    def test_timing_can_be_disabled(self):
        """Test include_timing=False leaves processing time at zero."""
        result = parse_string(SIMPLE, config=ParserConfig(include_timing=False))

        assert result.processing_time_ms == 0.0

    def test_correlation_id_propagates(self):
        """Test the correlation ID reaches result and diagnostics."""
        result = parse_string("<bad", correlation_id="req-7")

        assert result.correlation_id == "req-7"
        assert result.diagnostics[0].correlation_id == "req-7"


class TestFileParsing:
    """Test parsing from files and .docx archives."""

    def test_parse_file_basic(self, tmp_path, document_xml):
        """Test reading a document part from disk."""
        path = tmp_path / "document.xml"
        path.write_text(document_xml, encoding="utf-8")

        result = parse_file(path)

        assert result.success is True
        assert result.source == str(path)
        assert result.element_count == 19

    def test_parse_file_with_string_path(self, tmp_path):
        """Test string paths are accepted."""
        path = tmp_path / "p.xml"
        path.write_text(SIMPLE, encoding="utf-8")

        assert parse_file(str(path)).success is True

    def test_parse_file_nonexistent(self, tmp_path):
        """Test missing files."""
        path = tmp_path / "missing.xml"

        result = parse_file(path)

        assert result.success is False
        assert "not found" in result.diagnostics[0].message.lower()
        assert result.source == str(path)

    def test_parse_file_directory(self, tmp_path):
        """Test a directory is not a file."""
        result = parse_file(tmp_path)

        assert result.success is False
        assert "not a file" in result.diagnostics[0].message

    def test_parse_file_encoding_override(self, tmp_path):
        """Test reading a UTF-16 file with an explicit encoding."""
        path = tmp_path / "utf16.xml"
        path.write_text(SIMPLE, encoding="utf-16")

        result = parse_file(path, encoding="utf-16")

        assert result.success is True
        assert result.document.find("w:t").texts() == "Hi"

    def test_parse_file_keeps_carriage_returns(self, tmp_path):
        """Test newline translation is disabled for text reads."""
        path = tmp_path / "crlf.xml"
        path.write_bytes(b'<?xml?>\r\n<w:p>a\r\nb</w:p>')

        result = parse_file(path, encoding="utf-8")

        assert result.document.root.texts() == "a\r\nb"

    def test_parse_file_wrong_encoding(self, tmp_path):
        """Test decode failures with an explicit encoding."""
        path = tmp_path / "latin.xml"
        path.write_bytes(b"<?xml?>\n<w:t>caf\xe9</w:t>")

        result = parse_file(path, encoding="ascii")

        assert result.success is False
        assert "Cannot read file" in result.diagnostics[0].message

    def test_parse_file_unknown_encoding(self, tmp_path):
        """Test an encoding name Python does not know."""
        path = tmp_path / "p.xml"
        path.write_text(SIMPLE, encoding="utf-8")

        result = parse_file(path, encoding="no-such-codec")

        assert result.success is False

    def test_parse_path_object(self, tmp_path):
        """Test universal parse with a Path."""
        path = tmp_path / "p.xml"
        path.write_text(SIMPLE, encoding="utf-8")

        result = parse(path)

        assert result.success is True
        assert result.source == str(path)

    def test_parse_docx(self, make_docx):
        """Test the document part of an archive."""
        path = make_docx()

        result = parse_docx(path)

        assert result.success is True
        assert result.document.root.qualified_name == "w:document"
        assert result.source == f"{path}!word/document.xml"

    def test_parse_docx_other_part(self, make_docx):
        """Test choosing another part."""
        result = parse_docx(make_docx(), part="word/fontTable.xml")

        assert result.success is True
        assert result.document.root.qualified_name == "w:fonts"

    def test_parse_docx_through_universal_parse(self, make_docx):
        """Test Path inputs ending in .docx are opened as archives."""
        result = parse(make_docx())

        assert result.success is True
        assert result.document.find("w:body") is not None

    def test_parse_docx_missing_part(self, make_docx):
        """Test an archive without the requested part."""
        path = make_docx(parts={"word/styles.xml": SIMPLE})

        result = parse_docx(path)

        assert result.success is False
        assert "no part named 'word/document.xml'" in result.diagnostics[0].message

    def test_parse_docx_not_a_zip(self, tmp_path):
        """Test a file that is not a zip archive."""
        path = tmp_path / "fake.docx"
        path.write_text(SIMPLE, encoding="utf-8")

        result = parse_docx(path)

        assert result.success is False
        assert "Not a valid .docx archive" in result.diagnostics[0].message

    def test_parse_docx_missing_file(self, tmp_path):
        """Test a missing archive."""
        result = parse_docx(tmp_path / "missing.docx")

        assert result.success is False
        assert "File not found" in result.diagnostics[0].message

    def test_parse_docx_malformed_part(self, make_docx):
        """Test grammar errors inside an archive."""
        path = make_docx(parts={"word/document.xml": "<?xml?>\n<w:document><w:body>"})

        result = parse_docx(path)

        assert result.success is False
        assert result.error.kind is ParseErrorKind.UNEXPECTED_END_OF_INPUT


class TestWordMLParser:
    """Test Level 2: Reusable configured parser."""

    def test_basic_initialization(self):
        """Test default construction."""
        parser = WordMLParser()

        assert parser.config == ParserConfig()
        assert parser.correlation_id is None
        assert parser.statistics["total_parses"] == 0

    def test_initialization_with_config(self):
        """Test construction with a preset."""
        parser = WordMLParser(ParserConfig.lenient(), correlation_id="batch-1")

        result = parser.parse(SIMPLE + "junk")

        assert result.success is True
        assert result.trailing_input_ignored is True
        assert result.correlation_id == "batch-1"

    def test_parser_reuse_statistics(self):
        """Test counters across several parses."""
        parser = WordMLParser()

        parser.parse(SIMPLE)
        parser.parse(SIMPLE.encode("utf-8"))
        parser.parse("<broken")

        stats = parser.statistics
        assert stats["total_parses"] == 3
        assert stats["successful_parses"] == 2
        assert stats["failed_parses"] == 1
        assert stats["success_rate"] == pytest.approx(2 / 3)
        assert stats["total_characters"] == 2 * len(SIMPLE) + len("<broken")

    def test_configuration_override(self):
        """Test a per-call configuration leaves the parser unchanged."""
        parser = WordMLParser()

        result = parser.parse(SIMPLE + "x", config_override=ParserConfig.lenient())

        assert result.success is True
        assert parser.config.trailing_input is TrailingInputPolicy.STRICT

    def test_correlation_id_override(self):
        """Test a per-call correlation ID."""
        parser = WordMLParser(correlation_id="default")

        result = parser.parse(SIMPLE, correlation_id_override="one-off")

        assert result.correlation_id == "one-off"

    def test_reconfigure_parser(self):
        """Test replacing and overriding the configuration."""
        parser = WordMLParser()

        parser.reconfigure(max_depth=1)
        assert parser.config.max_depth == 1
        assert parser.parse(SIMPLE).error.kind is ParseErrorKind.MAX_DEPTH_EXCEEDED

        parser.reconfigure(ParserConfig.lenient(), max_depth=8)
        assert parser.config.trailing_input is TrailingInputPolicy.LENIENT
        assert parser.config.max_depth == 8

    def test_reconfigure_unknown_field(self):
        """Test unknown override names."""
        parser = WordMLParser()

        with pytest.raises(ConfigValidationError):
            parser.reconfigure(recovery=True)

    def test_reset_statistics(self):
        """Test statistics reset."""
        parser = WordMLParser()
        parser.parse(SIMPLE)

        parser.reset_statistics()

        assert parser.statistics["total_parses"] == 0
        assert parser.statistics["success_rate"] == 0.0

    def test_parse_docx_counts(self, make_docx):
        """Test archive parses are recorded too."""
        parser = WordMLParser()

        result = parser.parse_docx(make_docx(), part="word/fontTable.xml")

        assert result.success is True
        assert parser.statistics["total_parses"] == 1

    def test_shared_between_threads(self):
        """Test statistics stay consistent under concurrent use."""
        parser = WordMLParser()
        inputs = [SIMPLE if i % 2 else "<broken" for i in range(40)]

        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(parser.parse, inputs))

        assert sum(1 for r in results if r.success) == 20
        assert parser.statistics["total_parses"] == 40
        assert parser.statistics["successful_parses"] == 20

    def test_never_fail_advanced_parser(self):
        """Test bad input of every kind comes back as results."""
        parser = WordMLParser()

        for bad in ["", "<", b"\xff", 3.5, None, Path("/no/such/file.xml")]:
            result = parser.parse(bad)  # type: ignore[arg-type]
            assert isinstance(result, ParseResult)
            assert result.success is False
