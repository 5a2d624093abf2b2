"""Tests for paragraph, run and font extraction."""

import pytest

from wordml_parser.api import FONT_TABLE_PART, parse_docx
from wordml_parser.extraction import (
    Paragraph,
    Run,
    Spacing,
    document_text,
    font_names,
    iter_paragraphs,
    read_paragraph,
)
from wordml_parser.grammar import parse_document
from wordml_parser.shared import ExtractionError

H = '<?xml version="1.0"?>\n'


class TestIterParagraphs:
    """Test suite for body paragraph extraction."""

    def test_paragraphs_and_runs(self, document_xml):
        """Test formatting is read from run properties."""
        paragraphs = list(iter_paragraphs(parse_document(document_xml)))

        assert len(paragraphs) == 2
        first, second = paragraphs
        assert first.attributes == (("w:rsidR", "00A1"),)
        assert first.justification == "center"
        assert first.runs == (
            Run("Hello ", bold=True, size=28, font="Calibri"),
            Run("world"),
        )
        assert second.justification is None
        assert second.runs == (Run("Second", italic=True, color="FF0000"),)

    def test_paragraph_text(self, document_xml):
        """Test run texts are concatenated."""
        first = next(iter_paragraphs(parse_document(document_xml)))

        assert first.text == "Hello world"

    def test_document_text(self, document_xml):
        """Test plain text of the whole body."""
        document = parse_document(document_xml)

        assert document_text(document) == "Hello world\nSecond"
        assert document_text(document, separator=" | ") == "Hello world | Second"

    def test_wrong_root(self):
        """Test a part that is not a document body."""
        with pytest.raises(ExtractionError, match="Invalid document root"):
            list(iter_paragraphs(parse_document(H + "<w:fonts/>")))

    def test_missing_body(self):
        """Test a document without w:body."""
        with pytest.raises(ExtractionError, match="no w:body"):
            list(iter_paragraphs(parse_document(H + "<w:document></w:document>")))

    def test_empty_body(self):
        """Test a body without paragraphs."""
        document = parse_document(H + "<w:document><w:body><w:sectPr/></w:body></w:document>")

        assert list(iter_paragraphs(document)) == []


class TestReadParagraph:
    """Test suite for single paragraph reduction."""

    def test_runs_without_text_are_skipped(self):
        """Test runs holding only breaks or drawings."""
        paragraph = parse_document(
            H + "<w:p><w:r><w:br/></w:r><w:r><w:t>x</w:t></w:r></w:p>"
        ).root

        assert read_paragraph(paragraph).runs == (Run("x"),)

    def test_underline_and_bad_size(self):
        """Test underline and an unparseable size."""
        paragraph = parse_document(
            H + '<w:p><w:r><w:rPr><w:u w:val="single"/><w:sz w:val="big"/></w:rPr>'
            "<w:t>u</w:t></w:r></w:p>"
        ).root

        run = read_paragraph(paragraph).runs[0]
        assert run.underline is True
        assert run.size is None

    def test_complex_script_size(self):
        """Test w:szCs is read next to w:sz."""
        paragraph = parse_document(
            H + '<w:p><w:r><w:rPr><w:sz w:val="24"/><w:szCs w:val="26"/></w:rPr>'
            "<w:t>x</w:t></w:r></w:p>"
        ).root

        run = read_paragraph(paragraph).runs[0]
        assert run.size == 24
        assert run.size_cs == 26
        assert run.to_dict()["size_cs"] == 26

    def test_spacing(self):
        """Test line pitch and paragraph spacing from w:pPr."""
        paragraph = parse_document(
            H + '<w:p><w:pPr><w:spacing w:before="120" w:after="240" '
            'w:line="360" w:lineRule="auto"/></w:pPr></w:p>'
        ).root

        assert read_paragraph(paragraph).spacing == Spacing(
            line=360, line_rule="auto", before=120, after=240
        )

    def test_partial_spacing(self):
        """Test missing or unparseable spacing attributes are None."""
        paragraph = parse_document(
            H + '<w:p><w:pPr><w:spacing w:after="x"/></w:pPr></w:p>'
        ).root

        assert read_paragraph(paragraph).spacing == Spacing()

    def test_no_spacing(self, document_xml):
        """Test paragraphs without w:spacing."""
        first = next(iter_paragraphs(parse_document(document_xml)))

        assert first.spacing is None
        assert first.to_dict()["spacing"] is None

    def test_empty_paragraph(self):
        """Test a self-closing paragraph."""
        paragraph = read_paragraph(parse_document(H + "<w:p/>").root)

        assert paragraph == Paragraph()
        assert paragraph.text == ""

    def test_to_dict(self, document_xml):
        """Test the dictionary view."""
        first = next(iter_paragraphs(parse_document(document_xml)))

        data = first.to_dict()

        assert data["attributes"] == {"w:rsidR": "00A1"}
        assert data["text"] == "Hello world"
        assert data["runs"][0]["bold"] is True
        assert data["runs"][1]["size"] is None


class TestFontNames:
    """Test suite for font table extraction."""

    def test_font_table_from_docx(self, make_docx):
        """Test reading the font table part of an archive."""
        result = parse_docx(make_docx(), part=FONT_TABLE_PART)

        assert font_names(result.raise_for_error()) == ["Calibri", "Times New Roman"]

    def test_font_without_name(self):
        """Test every font needs a w:name."""
        document = parse_document(H + '<w:fonts><w:font w:name="A"/><w:font/></w:fonts>')

        with pytest.raises(ExtractionError, match="w:name"):
            font_names(document)
