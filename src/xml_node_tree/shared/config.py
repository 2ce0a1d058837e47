"""Configuration classes for parsing, serialization and loading.

All configuration objects are frozen dataclasses validated on construction,
so a configuration instance can be shared between parsers and threads.
"""

import codecs
import json
from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, List, Optional, Type, TypeVar

# Default chunk size handed to the XML lexer, in characters
DEFAULT_CHUNK_SIZE = 65536

# Timeout for URL loading, in seconds
DEFAULT_TIMEOUT_SECONDS = 60.0

_ConfigT = TypeVar("_ConfigT", bound="_SerializableConfig")


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


class _SerializableConfig:
    """Dictionary and JSON conversion shared by the configuration classes."""

    def override(self: _ConfigT, **changes: Any) -> _ConfigT:
        """Create a new configuration with specific fields replaced.

        Example:
            >>> ParserConfig().override(html_mode=True).html_mode
            True
        """
        _check_field_names(type(self), changes)
        return replace(self, **changes)  # type: ignore[type-var]

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        return asdict(self)  # type: ignore[call-overload]

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls: Type[_ConfigT], data: Dict[str, Any]) -> _ConfigT:
        """Create configuration from dictionary.

        Raises:
            ConfigValidationError: If the dictionary names unknown fields
        """
        _check_field_names(cls, data)
        return cls(**data)

    @classmethod
    def from_json(cls: Type[_ConfigT], json_str: str) -> _ConfigT:
        """Create configuration from JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid configuration JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration JSON must be an object")
        return cls.from_dict(data)


def _check_field_names(config_class: type, data: Dict[str, Any]) -> None:
    known = {f.name for f in fields(config_class)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigValidationError(
            f"Unknown {config_class.__name__} field(s): {', '.join(unknown)}",
            field_name=unknown[0],
            suggestions=sorted(known),
        )


@dataclass(frozen=True)
class ParserConfig(_SerializableConfig):
    """Configuration for turning document text into a node tree.

    Attributes:
        html_mode: Use the lenient HTML lexer and keep text verbatim
        chunk_size: Number of characters handed to the XML lexer at a time
        html_fallback_encoding: Encoding tried for undeclared, non-UTF-8
            bytes in HTML mode
        correlation_id: Default correlation ID for log records
    """

    html_mode: bool = False
    chunk_size: int = DEFAULT_CHUNK_SIZE
    html_fallback_encoding: str = "cp1252"
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate parser configuration."""
        if not isinstance(self.html_mode, bool):
            raise ConfigValidationError("html_mode must be a bool", "html_mode")
        if self.chunk_size <= 0:
            raise ConfigValidationError("chunk_size must be > 0", "chunk_size")
        try:
            codecs.lookup(self.html_fallback_encoding)
        except LookupError as e:
            raise ConfigValidationError(
                f"Unknown html_fallback_encoding: {self.html_fallback_encoding}",
                "html_fallback_encoding",
                suggestions=["cp1252", "latin-1", "utf-8"],
            ) from e

    @classmethod
    def xml(cls) -> "ParserConfig":
        """Strict XML preset: whitespace around text is trimmed."""
        return cls(html_mode=False)

    @classmethod
    def html(cls) -> "ParserConfig":
        """Lenient HTML preset: text is preserved verbatim."""
        return cls(html_mode=True)


@dataclass(frozen=True)
class SerializerConfig(_SerializableConfig):
    """Configuration for writing node trees back to markup.

    Attributes:
        indent: Indentation unit used per nesting level by pretty output
        sort_attributes: Emit attributes sorted by name instead of in
            insertion order
        self_close_empty: Emit ``<name/>`` for elements without content
    """

    indent: str = "  "
    sort_attributes: bool = False
    self_close_empty: bool = True

    def __post_init__(self) -> None:
        """Validate serializer configuration."""
        if self.indent.strip(" \t"):
            raise ConfigValidationError(
                "indent may only contain spaces and tabs", "indent"
            )


@dataclass(frozen=True)
class LoaderConfig(_SerializableConfig):
    """Configuration for the URL loader.

    Attributes:
        timeout_seconds: Timeout handed to the HTTP client
        expect_binary_data: Leave ``response_string`` unset on success
        user_agent: Value of the User-Agent header, if any
    """

    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    expect_binary_data: bool = False
    user_agent: Optional[str] = "xml-node-tree/0.1.0"

    def __post_init__(self) -> None:
        """Validate loader configuration."""
        if self.timeout_seconds <= 0:
            raise ConfigValidationError(
                "timeout_seconds must be > 0", "timeout_seconds"
            )
