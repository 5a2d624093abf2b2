"""Input cursor and source positions for the tag grammar."""

import re
from dataclasses import dataclass
from typing import Dict, Match, Optional, Pattern

WHITESPACE_CHARS = " \n\r"
_WHITESPACE_RUN = re.compile(r"[ \n\r]*")


@dataclass(frozen=True)
class SourcePosition:
    """Position in the input: 0-based offset, 1-based line and column."""

    line: int
    column: int
    offset: int

    def __post_init__(self) -> None:
        """Validate position values."""
        if self.line < 1:
            raise ValueError("Line number must be >= 1")
        if self.column < 1:
            raise ValueError("Column number must be >= 1")
        if self.offset < 0:
            raise ValueError("Offset must be >= 0")

    @classmethod
    def from_offset(cls, text: str, offset: int) -> "SourcePosition":
        """Compute line and column for ``offset`` within ``text``."""
        offset = max(0, min(offset, len(text)))
        line = text.count("\n", 0, offset) + 1
        column = offset - text.rfind("\n", 0, offset)
        return cls(line=line, column=column, offset=offset)

    def to_dict(self) -> Dict[str, int]:
        return {"line": self.line, "column": self.column, "offset": self.offset}

    def __str__(self) -> str:
        return f"line {self.line}, column {self.column}"


class Cursor:
    """Read position over an in-memory input string.

    A cursor is private to a single parse call, which is what makes one
    parser instance safe to share between threads.

    Whitespace (``WHITESPACE_CHARS``) is space, ``\\n`` and also ``\\r``, so
    CRLF and old Mac line endings are skipped like ``\\n``; the header may
    likewise end with ``\\r\\n`` or a lone ``\\r``. Tabs are not whitespace
    and are read as text.
    """

    __slots__ = ("text", "offset")

    def __init__(self, text: str, offset: int = 0) -> None:
        self.text = text
        self.offset = offset

    def at_end(self) -> bool:
        return self.offset >= len(self.text)

    def peek(self) -> str:
        """Current character; callers check ``at_end`` first."""
        return self.text[self.offset]

    def startswith(self, prefix: str) -> bool:
        return self.text.startswith(prefix, self.offset)

    def advance(self, count: int = 1) -> None:
        self.offset += count

    def skip_whitespace(self) -> bool:
        """Skip spaces and newlines; return True if anything was skipped."""
        end = _WHITESPACE_RUN.match(self.text, self.offset).end()  # type: ignore[union-attr]
        skipped = end > self.offset
        self.offset = end
        return skipped

    def match(self, pattern: Pattern[str]) -> Optional[Match[str]]:
        """Match ``pattern`` here and move past it on success."""
        found = pattern.match(self.text, self.offset)
        if found is not None:
            self.offset = found.end()
        return found

    def position(self, offset: Optional[int] = None) -> SourcePosition:
        return SourcePosition.from_offset(
            self.text, self.offset if offset is None else offset
        )
