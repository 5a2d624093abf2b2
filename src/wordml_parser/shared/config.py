"""Configuration for WordML parsing.

``ParserConfig`` is immutable so one instance can be shared by every thread
that parses with it. Use ``override`` to derive variants.
"""

import json
from dataclasses import dataclass, fields, replace
from enum import Enum, auto
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from wordml_parser.shared.errors import WordMLError

VALID_LOGGING_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class TrailingInputPolicy(Enum):
    """What to do with non-whitespace input after the root element closes."""

    STRICT = auto()    # Reject the document
    LENIENT = auto()   # Ignore the remainder and report a warning


class ConfigError(WordMLError):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass(frozen=True)
class ParserConfig:
    """Configuration shared by the grammar, API and CLI layers."""

    trailing_input: TrailingInputPolicy = TrailingInputPolicy.STRICT
    max_depth: int = 256
    strip_bom: bool = True
    include_timing: bool = True
    logging_level: str = "INFO"

    # Metadata
    name: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the configuration."""
        if not isinstance(self.trailing_input, TrailingInputPolicy):
            raise ConfigValidationError(
                f"trailing_input must be a TrailingInputPolicy, "
                f"got {self.trailing_input!r}",
                field_name="trailing_input",
                suggestions=[policy.name for policy in TrailingInputPolicy],
            )
        if isinstance(self.max_depth, bool) or not isinstance(self.max_depth, int):
            raise ConfigValidationError(
                "max_depth must be an integer", field_name="max_depth"
            )
        if self.max_depth <= 0:
            raise ConfigValidationError(
                "max_depth must be > 0",
                field_name="max_depth",
                suggestions=["Use the default of 256"],
            )
        if self.logging_level not in VALID_LOGGING_LEVELS:
            raise ConfigValidationError(
                f"logging_level must be one of {VALID_LOGGING_LEVELS}",
                field_name="logging_level",
                suggestions=VALID_LOGGING_LEVELS,
            )

    @property
    def is_strict(self) -> bool:
        return self.trailing_input is TrailingInputPolicy.STRICT

    def override(self, **kwargs: Any) -> "ParserConfig":
        """Create a new configuration with specific overrides.

        Example:
            >>> config = ParserConfig().override(max_depth=64)
            >>> config.max_depth
            64
        """
        known = {f.name for f in fields(self)}
        unknown = sorted(set(kwargs) - known)
        if unknown:
            raise ConfigValidationError(
                f"Unknown configuration fields: {', '.join(unknown)}",
                field_name=unknown[0],
                suggestions=sorted(known),
            )
        return replace(self, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        result: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            result[f.name] = value.name if isinstance(value, Enum) else value
        return result

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParserConfig":
        """Create configuration from dictionary.

        Unknown keys are rejected; enum fields accept their member name.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigValidationError(
                f"Unknown configuration fields: {', '.join(unknown)}",
                field_name=unknown[0],
                suggestions=sorted(known),
            )

        values = dict(data)
        policy = values.get("trailing_input")
        if isinstance(policy, str):
            try:
                values["trailing_input"] = TrailingInputPolicy[policy.upper()]
            except KeyError as e:
                raise ConfigValidationError(
                    f"Unknown trailing_input policy: {policy}",
                    field_name="trailing_input",
                    suggestions=[p.name for p in TrailingInputPolicy],
                ) from e
        return cls(**values)

    @classmethod
    def from_json(cls, json_str: str) -> "ParserConfig":
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid configuration JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration JSON must be an object")
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> "ParserConfig":
        """Load configuration from a JSON file."""
        path = Path(config_path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Could not read configuration file {path}: {e}") from e
        return cls.from_json(text)

    # Preset factory methods
    @classmethod
    def strict(cls) -> "ParserConfig":
        """Preset that rejects anything after the root element."""
        return cls(
            trailing_input=TrailingInputPolicy.STRICT,
            name="strict",
            description="Reject documents with trailing input after the root element",
        )

    @classmethod
    def lenient(cls) -> "ParserConfig":
        """Preset that ignores trailing input after the root element."""
        return cls(
            trailing_input=TrailingInputPolicy.LENIENT,
            name="lenient",
            description="Ignore trailing input after the root element",
        )
