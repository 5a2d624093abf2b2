"""Tests for section property extraction."""

import pytest

from wordml_parser.extraction import (
    DocumentGrid,
    PageMargin,
    Paragraph,
    Section,
    iter_body,
    parse_on_off,
    read_section,
    read_section_properties,
)
from wordml_parser.grammar import parse_document
from wordml_parser.shared import ExtractionError

H = '<?xml version="1.0"?>\n'

PAGE = '<w:pgSz w:w="11906" w:h="16838"/>'
MARGIN = (
    '<w:pgMar w:top="1134" w:right="850" w:bottom="1134" w:left="1701" '
    'w:header="708" w:footer="708" w:gutter="0"/>'
)
SECTION = (
    "<w:sectPr>" + PAGE + MARGIN
    + '<w:type w:val="nextPage"/><w:pgNumType w:fmt="decimal"/>'
    + '<w:formProt w:val="false"/><w:textDirection w:val="tbRl"/>'
    + '<w:docGrid w:type="lines" w:linePitch="360" w:charSpace="4096"/>'
    + "</w:sectPr>"
)
DOCUMENT = (
    H + "<w:document><w:body>"
    + "<w:p><w:r><w:t>One</w:t></w:r></w:p>"
    + "<w:tbl/>"
    + "<w:p><w:r><w:t>Two</w:t></w:r></w:p>"
    + SECTION
    + "</w:body></w:document>"
)


def section_element(inner: str):
    return parse_document(H + "<w:sectPr>" + inner + "</w:sectPr>").root


class TestReadSectionProperties:
    """Test suite for w:sectPr reduction."""

    def test_full_section(self):
        """Test every supported property is read."""
        section = read_section(parse_document(DOCUMENT))

        assert section == Section(
            page_width=11906,
            page_height=16838,
            margin=PageMargin(
                top=1134, right=850, bottom=1134, left=1701,
                header=708, footer=708, gutter=0,
            ),
            page_type="nextPage",
            page_number_format="decimal",
            form_protection=False,
            text_direction="tbRl",
            document_grid=DocumentGrid(char_space=4096, line_pitch=360, grid_type="lines"),
        )

    def test_minimal_section_defaults(self):
        """Test optional properties fall back to defaults."""
        section = read_section_properties(section_element(PAGE + MARGIN))

        assert section.page_type is None
        assert section.page_number_format is None
        assert section.form_protection is None
        assert section.text_direction == "lrTb"
        assert section.document_grid is None

    def test_size_and_content_margins(self):
        """Test header and footer add to the top and bottom margins."""
        section = read_section_properties(section_element(PAGE + MARGIN))

        assert section.page_size == (11906, 16838)
        assert section.content_margins == (1842, 850, 1842, 1701)

    def test_bare_form_protection(self):
        """Test <w:formProt/> without a value means on."""
        section = read_section_properties(section_element(PAGE + MARGIN + "<w:formProt/>"))

        assert section.form_protection is True

    def test_partial_document_grid(self):
        """Test a grid with only a line pitch."""
        section = read_section_properties(
            section_element(PAGE + MARGIN + '<w:docGrid w:linePitch="360"/>')
        )

        assert section.document_grid == DocumentGrid(line_pitch=360)

    def test_missing_page_size(self):
        """Test a section needs w:pgSz."""
        with pytest.raises(ExtractionError, match="page size"):
            read_section_properties(section_element(MARGIN))

    def test_missing_page_margins(self):
        """Test a section needs w:pgMar."""
        with pytest.raises(ExtractionError, match="page margins"):
            read_section_properties(section_element(PAGE))

    def test_incomplete_page_margin(self):
        """Test every margin attribute is required."""
        margin = MARGIN.replace(' w:gutter="0"', "")

        with pytest.raises(ExtractionError, match="w:gutter"):
            read_section_properties(section_element(PAGE + margin))

    def test_non_numeric_page_width(self):
        """Test page dimensions must be integers."""
        with pytest.raises(ExtractionError, match="w:w"):
            read_section_properties(
                section_element('<w:pgSz w:w="wide" w:h="1"/>' + MARGIN)
            )

    def test_to_dict(self):
        """Test the dictionary view."""
        data = read_section(parse_document(DOCUMENT)).to_dict()

        assert data["margin"]["left"] == 1701
        assert data["document_grid"]["grid_type"] == "lines"
        assert data["form_protection"] is False


class TestReadSection:
    """Test suite for locating the body section."""

    def test_no_section(self, document_xml):
        """Test a body without w:sectPr."""
        assert read_section(parse_document(document_xml)) is None

    def test_last_section_wins(self):
        """Test the final w:sectPr describes the document."""
        first = "<w:sectPr>" + '<w:pgSz w:w="1" w:h="2"/>' + MARGIN + "</w:sectPr>"
        document = parse_document(
            H + "<w:document><w:body>" + first + SECTION + "</w:body></w:document>"
        )

        assert read_section(document).page_width == 11906

    def test_wrong_root(self):
        """Test a part that is not a document body."""
        with pytest.raises(ExtractionError, match="Invalid document root"):
            read_section(parse_document(H + "<w:fonts/>"))


class TestIterBody:
    """Test suite for ordered body content."""

    def test_paragraphs_and_sections_in_order(self):
        """Test tables are skipped and the section is kept."""
        items = list(iter_body(parse_document(DOCUMENT)))

        assert [type(item) for item in items] == [Paragraph, Paragraph, Section]
        assert [item.text for item in items[:2]] == ["One", "Two"]

    def test_incomplete_section_raises(self):
        """Test a broken section is reported, not dropped."""
        document = parse_document(
            H + "<w:document><w:body><w:sectPr/></w:body></w:document>"
        )

        with pytest.raises(ExtractionError, match="page size"):
            list(iter_body(document))


class TestParseOnOff:
    """Test suite for on/off values."""

    @pytest.mark.parametrize("value", ["true", "1", "on", "True"])
    def test_on(self, value):
        """Test values that switch a property on."""
        assert parse_on_off(value) is True

    @pytest.mark.parametrize("value", ["false", "0", "off"])
    def test_off(self, value):
        """Test values that switch a property off."""
        assert parse_on_off(value) is False

    def test_invalid(self):
        """Test anything else is rejected."""
        with pytest.raises(ValueError, match="on/off"):
            parse_on_off("maybe")
