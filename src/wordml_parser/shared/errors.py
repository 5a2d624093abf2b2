"""Root of the package exception hierarchy."""


class WordMLError(Exception):
    """Base class for every error raised by wordml_parser."""


class SerializationError(WordMLError):
    """Raised when a tree cannot be written back in the tag grammar."""


class ExtractionError(WordMLError):
    """Raised when a parsed tree lacks the structure an extractor needs."""
