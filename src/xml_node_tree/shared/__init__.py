"""Shared utilities for the node tree parser.

This module provides the configuration objects, the error taxonomy, diagnostic
types and the correlation-aware logger used across all layers.
"""

from .config import (
    ConfigError,
    ConfigValidationError,
    LoaderConfig,
    ParserConfig,
    SerializerConfig,
)
from .errors import (
    EmptyInputError,
    EncodingError,
    InvalidNodeOperationError,
    MalformedDocumentError,
    ParseError,
    XMLNodeTreeError,
)
from .logging import CorrelationLogger, get_logger
from .result import DiagnosticEntry, DiagnosticSeverity, PerformanceMetrics

__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "CorrelationLogger",
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "EmptyInputError",
    "EncodingError",
    "InvalidNodeOperationError",
    "LoaderConfig",
    "MalformedDocumentError",
    "ParseError",
    "ParserConfig",
    "PerformanceMetrics",
    "SerializerConfig",
    "XMLNodeTreeError",
    "get_logger",
]
