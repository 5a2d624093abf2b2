"""Shared utilities for WordML parsing.

This module provides the configuration object, diagnostic and metric types,
the exception root and the correlation-aware logger used across all layers.
"""

from .config import (
    ConfigError,
    ConfigValidationError,
    ParserConfig,
    TrailingInputPolicy,
)
from .errors import ExtractionError, SerializationError, WordMLError
from .logging import (
    CorrelationLogger,
    configure_logging,
    get_logger,
)
from .result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    PerformanceMetrics,
)

__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "ParserConfig",
    "TrailingInputPolicy",
    "ExtractionError",
    "SerializationError",
    "WordMLError",
    "CorrelationLogger",
    "configure_logging",
    "get_logger",
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "PerformanceMetrics",
]
