"""Structured logging utilities for WordML parsing.

Every record carries the component name and an optional correlation ID in
``extra`` so log lines from one parse can be grouped together.
"""

import logging
from typing import Any, Dict, Optional

LOG_FORMAT = "%(asctime)s %(levelname)s [%(component)s] %(message)s"


class CorrelationLogger:
    """Wraps a stdlib logger and stamps component and correlation ID on records."""

    def __init__(
        self,
        name: str,
        correlation_id: Optional[str] = None,
        component: Optional[str] = None
    ) -> None:
        self.logger = logging.getLogger(name)
        self.correlation_id = correlation_id
        # grammar.parser -> "parser" unless a component is given
        self.component = component or name.split(".")[-1]

    def _context(self, extra: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        context: Dict[str, Any] = {
            "component": self.component,
            "correlation_id": self.correlation_id,
        }
        if extra:
            context.update(extra)
        return context

    def _log(self, level: int, message: str, extra: Optional[Dict[str, Any]],
             exc_info: bool = False) -> None:
        if self.logger.isEnabledFor(level):
            self.logger.log(level, message, extra=self._context(extra), exc_info=exc_info)

    def is_enabled_for(self, level: int) -> bool:
        """Let callers skip building expensive ``extra`` payloads."""
        return self.logger.isEnabledFor(level)

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.DEBUG, message, extra)

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.INFO, message, extra)

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        self._log(logging.WARNING, message, extra)

    def exception(self, message: str, extra: Optional[Dict[str, Any]] = None) -> None:
        """Log at ERROR with the active exception's traceback."""
        self._log(logging.ERROR, message, extra, exc_info=True)


class _ComponentDefaultsFilter(logging.Filter):
    """Fill in ``component`` for records emitted outside CorrelationLogger."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "component"):
            record.component = record.name.split(".")[-1]
        return True


def get_logger(
    name: str,
    correlation_id: Optional[str] = None,
    component: Optional[str] = None
) -> CorrelationLogger:
    """Create a logger for one module, optionally tied to one parse.

    Args:
        name: Module name, usually ``__name__``
        correlation_id: ID shared by every record of one parse call
        component: Label shown in brackets in CLI log lines
    """
    return CorrelationLogger(name, correlation_id, component)


def configure_logging(level: str = "INFO") -> None:
    """Send records at ``level`` and above to stderr in the CLI format.

    Args:
        level: One of DEBUG, INFO, WARNING, ERROR, CRITICAL
    """
    handler = logging.StreamHandler()
    handler.addFilter(_ComponentDefaultsFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.basicConfig(level=getattr(logging, level), handlers=[handler], force=True)
