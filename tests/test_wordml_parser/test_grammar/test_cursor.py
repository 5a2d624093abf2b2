"""Tests for the input cursor and source positions."""

import re

import pytest

from wordml_parser.grammar.cursor import WHITESPACE_CHARS, Cursor, SourcePosition


class TestSourcePosition:
    """Test suite for SourcePosition."""

    def test_valid_position(self):
        """Test creating a valid position."""
        position = SourcePosition(line=3, column=7, offset=40)

        assert str(position) == "line 3, column 7"
        assert position.to_dict() == {"line": 3, "column": 7, "offset": 40}

    @pytest.mark.parametrize("line,column,offset", [(0, 1, 0), (1, 0, 0), (1, 1, -1)])
    def test_invalid_position(self, line, column, offset):
        """Test validation of line, column and offset."""
        with pytest.raises(ValueError):
            SourcePosition(line=line, column=column, offset=offset)

    def test_from_offset_first_line(self):
        """Test offsets on the first line."""
        assert SourcePosition.from_offset("abc", 0) == SourcePosition(1, 1, 0)
        assert SourcePosition.from_offset("abc", 2) == SourcePosition(1, 3, 2)

    def test_from_offset_later_lines(self):
        """Test lines and columns after newlines are 1-based."""
        text = "ab\ncd\n\nef"

        assert SourcePosition.from_offset(text, 3) == SourcePosition(2, 1, 3)
        assert SourcePosition.from_offset(text, 4) == SourcePosition(2, 2, 4)
        assert SourcePosition.from_offset(text, 6) == SourcePosition(3, 1, 6)
        assert SourcePosition.from_offset(text, 8) == SourcePosition(4, 2, 8)

    def test_from_offset_at_end(self):
        """Test the end-of-input offset is a valid position."""
        assert SourcePosition.from_offset("ab\n", 3) == SourcePosition(2, 1, 3)
        assert SourcePosition.from_offset("", 0) == SourcePosition(1, 1, 0)

    def test_from_offset_clamps(self):
        """Test out-of-range offsets are clamped to the input."""
        assert SourcePosition.from_offset("ab", 10).offset == 2


class TestCursor:
    """Test suite for Cursor."""

    def test_whitespace_characters(self):
        """Test only space, newline and carriage return count as whitespace."""
        assert set(WHITESPACE_CHARS) == {" ", "\n", "\r"}

    def test_peek_and_advance(self):
        """Test basic movement."""
        cursor = Cursor("<w:p>")

        assert cursor.peek() == "<"
        cursor.advance()
        assert cursor.peek() == "w"
        cursor.advance(3)
        assert cursor.peek() == ">"
        cursor.advance()
        assert cursor.at_end() is True

    def test_startswith(self):
        """Test prefix checks at the current offset."""
        cursor = Cursor("a</w:p>", offset=1)

        assert cursor.startswith("</") is True
        assert cursor.startswith("/>") is False

    def test_skip_whitespace(self):
        """Test skipping reports whether anything was consumed."""
        cursor = Cursor(" \r\n x")

        assert cursor.skip_whitespace() is True
        assert cursor.peek() == "x"
        assert cursor.skip_whitespace() is False
        assert cursor.offset == 4

    def test_skip_whitespace_keeps_tabs(self):
        """Test tabs are not treated as whitespace."""
        cursor = Cursor("\tx")

        assert cursor.skip_whitespace() is False
        assert cursor.offset == 0

    def test_match_advances_on_success(self):
        """Test pattern matches move the cursor only when they succeed."""
        cursor = Cursor("abc123<")
        letters = re.compile(r"[a-z]+")

        found = cursor.match(letters)
        assert found is not None and found.group() == "abc"
        assert cursor.offset == 3

        assert cursor.match(letters) is None
        assert cursor.offset == 3

    def test_position(self):
        """Test position at the cursor and at an explicit offset."""
        cursor = Cursor("ab\ncd", offset=4)

        assert cursor.position() == SourcePosition(2, 2, 4)
        assert cursor.position(0) == SourcePosition(1, 1, 0)
