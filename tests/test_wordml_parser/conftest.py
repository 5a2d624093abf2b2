"""Shared fixtures for wordml_parser tests."""

import zipfile
from pathlib import Path
from typing import Callable, Dict, Optional

import pytest

HEADER = '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'

DOCUMENT_XML = HEADER + """
<w:document xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main">
  <w:body>
    <w:p w:rsidR="00A1">
      <w:pPr><w:jc w:val="center"/></w:pPr>
      <w:r>
        <w:rPr><w:b/><w:sz w:val="28"/><w:rFonts w:ascii="Calibri"/></w:rPr>
        <w:t>Hello </w:t>
      </w:r>
      <w:r><w:t>world</w:t></w:r>
    </w:p>
    <w:p>
      <w:r><w:rPr><w:i/><w:color w:val="FF0000"/></w:rPr><w:t>Second</w:t></w:r>
    </w:p>
  </w:body>
</w:document>
"""

FONT_TABLE_XML = HEADER + """
<w:fonts xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main">
  <w:font w:name="Calibri"><w:panose1 w:val="020F0502020204030204"/></w:font>
  <w:font w:name="Times New Roman"/>
</w:fonts>
"""


@pytest.fixture
def document_xml() -> str:
    """Text of a small two-paragraph document part."""
    return DOCUMENT_XML


@pytest.fixture
def make_docx(tmp_path: Path) -> Callable[..., Path]:
    """Build a ``.docx`` archive in ``tmp_path`` from part names and texts."""

    def _make(name: str = "sample.docx", parts: Optional[Dict[str, str]] = None) -> Path:
        if parts is None:
            parts = {
                "word/document.xml": DOCUMENT_XML,
                "word/fontTable.xml": FONT_TABLE_XML,
            }
        path = tmp_path / name
        with zipfile.ZipFile(path, "w") as archive:
            archive.writestr("[Content_Types].xml", "<Types/>")
            for part, text in parts.items():
                archive.writestr(part, text.encode("utf-8"))
        return path

    return _make
