"""Result object returned by every API-level parse entry point."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from wordml_parser.document.nodes import Document
from wordml_parser.grammar.errors import ParseError
from wordml_parser.shared.result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    PerformanceMetrics,
)


@dataclass
class ParseResult:
    """Outcome of one parse: either a document or the error that stopped it.

    API functions never raise for bad input. Check ``success``, or call
    ``raise_for_error`` to get exception semantics back.

    Examples:
        >>> result = parse_string('<?xml?>\\n<w:p/>')
        >>> result.success
        True
        >>> parse_string('<?xml?>\\n<w:p>').error.kind.name
        'UNEXPECTED_END_OF_INPUT'
    """

    # Core results
    document: Optional[Document] = None
    error: Optional[ParseError] = None
    success: bool = True

    # Metadata and diagnostics
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    correlation_id: Optional[str] = None
    source: Optional[str] = None
    trailing_input_ignored: bool = False

    def __post_init__(self) -> None:
        """Validate result consistency."""
        if self.success and self.document is None:
            raise ValueError("A successful result requires a document")
        if self.error is not None and self.success:
            raise ValueError("A result carrying an error cannot be successful")

    @property
    def element_count(self) -> int:
        """Get total number of elements in document."""
        return self.document.total_elements if self.document else 0

    @property
    def processing_time_ms(self) -> float:
        return self.performance.processing_time_ms

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        position: Optional[Dict[str, int]] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Add diagnostic entry to result."""
        self.diagnostics.append(
            DiagnosticEntry(
                severity=severity,
                message=message,
                component=component,
                position=position,
                details=details,
                correlation_id=self.correlation_id,
            )
        )

    def get_diagnostics_by_severity(
        self, severity: DiagnosticSeverity
    ) -> List[DiagnosticEntry]:
        return [diag for diag in self.diagnostics if diag.severity == severity]

    def has_errors(self) -> bool:
        """Check if result contains any error diagnostics."""
        return any(diag.is_error for diag in self.diagnostics)

    def raise_for_error(self) -> Document:
        """Return the document, or raise the error that prevented one.

        Failures that happened before the grammar ran (unreadable file,
        undecodable bytes) have no ``ParseError`` and surface as ``ValueError``.
        """
        if self.document is not None:
            return self.document
        if self.error is not None:
            raise self.error
        messages = [diag.message for diag in self.diagnostics if diag.is_error]
        raise ValueError(messages[0] if messages else "Parse failed")

    def summary(self) -> Dict[str, Any]:
        """Short, flat view used by the CLI text and CSV formats."""
        summary: Dict[str, Any] = {
            "source": self.source,
            "success": self.success,
            "root": self.document.root.qualified_name if self.document else None,
            "elements": self.element_count,
            "attributes": self.document.total_attributes if self.document else 0,
            "max_depth": self.document.max_depth if self.document else 0,
            "processing_time_ms": round(self.performance.processing_time_ms, 3),
            "trailing_input_ignored": self.trailing_input_ignored,
            "error_kind": self.error.kind.name if self.error else None,
            "error": None,
        }
        if self.error is not None:
            summary["error"] = str(self.error)
        elif not self.success:
            errors = [diag.message for diag in self.diagnostics if diag.is_error]
            summary["error"] = errors[0] if errors else None
        return summary

    def to_dict(self, include_document: bool = True) -> Dict[str, Any]:
        """Convert result to a JSON-friendly dictionary."""
        result: Dict[str, Any] = {
            "source": self.source,
            "success": self.success,
            "correlation_id": self.correlation_id,
            "trailing_input_ignored": self.trailing_input_ignored,
            "error": self.error.to_dict() if self.error else None,
            "diagnostics": [diag.to_dict() for diag in self.diagnostics],
            "performance": self.performance.to_dict(),
        }
        if include_document:
            result["document"] = self.document.to_dict() if self.document else None
        return result
