#!/usr/bin/env python3
"""
Quick Start Guide for the WordML Parser.

This example walks through parsing a document part, inspecting the tree,
handling failures, building a tree in code and converting it for other tools.
"""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from wordml_parser import (
    ContainerElement,
    Document,
    ParserConfig,
    SelfClosingElement,
    WordMLParser,
    parse_string,
)
from wordml_parser.api import get_adapter
from wordml_parser.document import render_outline
from wordml_parser.extraction import iter_paragraphs

DOCUMENT_XML = """<?xml version="1.0" encoding="UTF-8" standalone="yes"?>
<w:document xmlns:w="http://schemas.openxmlformats.org/wordprocessingml/2006/main">
  <w:body>
    <w:p>
      <w:pPr><w:jc w:val="center"/></w:pPr>
      <w:r><w:rPr><w:b/><w:sz w:val="32"/></w:rPr><w:t>Quick start</w:t></w:r>
    </w:p>
    <w:p><w:r><w:t>Every closing tag is checked.</w:t></w:r></w:p>
  </w:body>
</w:document>
"""


def quick_start_example():
    """Quick start example showing basic usage."""

    print("🚀 QUICK START - WordML Parser")
    print("=" * 45)

    # Step 1: Parse a document part
    print("\n📄 Step 1: Parsing")
    print("-" * 30)

    result = parse_string(DOCUMENT_XML)
    document = result.document

    print(f"✅ Parse success: {result.success}")
    print(f"📊 Elements: {document.total_elements}, depth: {document.max_depth}")
    print(f"⏱️  Time: {result.performance.processing_time_ms:.2f}ms")

    # Step 2: Look at the tree
    print("\n🌳 Step 2: Tree outline")
    print("-" * 30)
    print(render_outline(document.root))

    for paragraph in iter_paragraphs(document):
        print(f"📝 {paragraph.justification or 'left'}: {paragraph.text}")

    # Step 3: Failures carry a kind and a position
    print("\n🔍 Step 3: Error reporting")
    print("-" * 30)

    broken = parse_string('<?xml version="1.0"?>\n<w:p><w:r></w:p>')
    print(f"❌ Parse success: {broken.success}")
    print(f"   {broken.error.kind.name}: {broken.error}")


def building_example():
    """Build a tree in code and write it back out."""

    print("\n🔧 Building documents")
    print("-" * 30)

    run = ContainerElement.empty("r").with_element(
        ContainerElement.empty("t").with_text("Built in code")
    )
    paragraph = SelfClosingElement.new("w:p").with_attr("w:rsidR", "00A1").with_element(run)
    document = Document.with_default_header(paragraph)

    print(document.to_string())


def configuration_example():
    """Trailing input policies on a reusable parser."""

    print("\n⚙️  Configuration")
    print("-" * 30)

    text = '<?xml version="1.0"?>\n<w:p/>\n<w:p/>'
    for config in (ParserConfig.strict(), ParserConfig.lenient()):
        parser = WordMLParser(config)
        result = parser.parse(text)
        print(f"{config.name}: success={result.success}, "
              f"trailing ignored={result.trailing_input_ignored}")


def adapters_example():
    """Convert a parsed document to pandas, if installed."""

    print("\n🐼 Adapters")
    print("-" * 30)

    adapter = get_adapter("pandas")
    if adapter is None:
        print("pandas is not installed")
        return

    conversion = adapter.to_target(parse_string(DOCUMENT_XML))
    print(conversion.converted_data[["path", "depth", "text"]].head(8))


def main():
    """Run all examples."""
    quick_start_example()
    building_example()
    configuration_example()
    adapters_example()

    print("\n🎉 Done! See `wordml --help` for the command-line tool.")


if __name__ == "__main__":
    main()
