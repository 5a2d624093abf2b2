"""Tests for the ParseResult container."""

import json

import pytest

from wordml_parser.api import ParseResult, parse_string
from wordml_parser.document import DEFAULT_HEADER, Document, SelfClosingElement
from wordml_parser.grammar import UnterminatedTagError
from wordml_parser.shared import DiagnosticSeverity

GOOD = '<?xml?>\n<w:p w:a="1"><w:r/></w:p>'
BAD = '<?xml?>\n<w:p w:a="1"'


class TestParseResultConsistency:
    """Test suite for result validation."""

    def test_success_requires_document(self):
        """Test a successful result must carry a document."""
        with pytest.raises(ValueError, match="requires a document"):
            ParseResult()

    def test_error_cannot_be_successful(self):
        """Test error and success are exclusive."""
        document = Document(DEFAULT_HEADER, SelfClosingElement("p"))
        error = parse_string(BAD).error

        with pytest.raises(ValueError, match="cannot be successful"):
            ParseResult(document=document, error=error)

    def test_failed_result_without_error(self):
        """Test failures before the grammar carry no ParseError."""
        result = ParseResult(success=False)

        assert result.element_count == 0
        assert result.has_errors() is False


class TestParseResultDiagnostics:
    """Test suite for diagnostic helpers."""

    def test_add_and_filter(self):
        """Test adding entries and filtering by severity."""
        result = ParseResult(success=False, correlation_id="cid")

        result.add_diagnostic(DiagnosticSeverity.WARNING, "first", "tests")
        result.add_diagnostic(
            DiagnosticSeverity.CRITICAL, "second", "tests",
            position={"line": 1, "column": 1, "offset": 0},
        )

        assert len(result.get_diagnostics_by_severity(DiagnosticSeverity.WARNING)) == 1
        assert result.has_errors() is True
        assert result.diagnostics[1].correlation_id == "cid"


class TestRaiseForError:
    """Test suite for converting results back to exceptions."""

    def test_returns_document(self):
        """Test successful results return their document."""
        result = parse_string(GOOD)

        assert result.raise_for_error() is result.document

    def test_raises_parse_error(self):
        """Test grammar failures re-raise the original error."""
        result = parse_string(BAD)

        with pytest.raises(UnterminatedTagError) as exc_info:
            result.raise_for_error()

        assert exc_info.value is result.error

    def test_raises_value_error_without_parse_error(self):
        """Test failures outside the grammar."""
        result = ParseResult(success=False)
        result.add_diagnostic(DiagnosticSeverity.CRITICAL, "File not found: x.xml", "api")

        with pytest.raises(ValueError, match="File not found"):
            result.raise_for_error()


class TestSummaryAndSerialization:
    """Test suite for flat and nested views."""

    def test_summary_success(self):
        """Test the flat summary of a parsed document."""
        summary = parse_string(GOOD).summary()

        assert summary["success"] is True
        assert summary["root"] == "w:p"
        assert summary["elements"] == 2
        assert summary["attributes"] == 1
        assert summary["max_depth"] == 1
        assert summary["error_kind"] is None
        assert summary["error"] is None

    def test_summary_failure(self):
        """Test the flat summary of a failed parse."""
        summary = parse_string(BAD).summary()

        assert summary["success"] is False
        assert summary["root"] is None
        assert summary["elements"] == 0
        assert summary["error_kind"] == "UNTERMINATED_TAG"
        assert "line 2, column 1" in summary["error"]

    def test_summary_failure_without_parse_error(self):
        """Test the error message falls back to diagnostics."""
        result = ParseResult(success=False)
        result.add_diagnostic(DiagnosticSeverity.CRITICAL, "Permission denied", "api")

        assert result.summary()["error"] == "Permission denied"

    def test_to_dict_is_json_serializable(self):
        """Test the nested view can be dumped as JSON."""
        data = parse_string(GOOD).to_dict()

        restored = json.loads(json.dumps(data))
        assert restored["document"]["root"]["name"] == "p"
        assert restored["error"] is None
        assert restored["performance"]["elements_parsed"] == 2

    def test_to_dict_without_document(self):
        """Test leaving the tree out."""
        data = parse_string(BAD).to_dict(include_document=False)

        assert "document" not in data
        assert data["error"]["kind"] == "UNTERMINATED_TAG"
        assert data["diagnostics"][0]["severity"] == "CRITICAL"
