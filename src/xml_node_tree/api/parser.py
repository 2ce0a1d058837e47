"""Parser API with progressive disclosure.

Level 1 is a set of module functions (``parse``, ``parse_xml``, ``parse_html``,
``parse_file``). Level 2 is ``NodeTreeParser``, a configured parser that can
be reused and keeps usage statistics.

Parsing is synchronous: every call blocks until the whole input has been
consumed. Parse failures never raise; they are returned as the ``error`` of
the ``ParseResult``.
"""

import time
from pathlib import Path
from typing import Any, BinaryIO, Dict, Optional, TextIO, Union

from xml_node_tree.character import (
    check_xml_characters,
    decode_document,
    strip_invalid_characters,
)
from xml_node_tree.shared import (
    DiagnosticSeverity,
    EmptyInputError,
    EncodingError,
    ParseError,
    ParserConfig,
    get_logger,
)
from xml_node_tree.tokenization import create_tokenizer
from xml_node_tree.tree import ParseResult, TreeBuilder

# Type definitions for input data
InputType = Union[str, bytes, bytearray, BinaryIO, TextIO, Path]

PREVIEW_LENGTH = 100  # Max length for content preview in logs
MS_PER_SECOND = 1000


class NodeTreeParser:
    """Configured, reusable parser producing node trees.

    Attributes:
        config: Parser configuration
        correlation_id: Correlation ID for request tracking

    Examples:
        >>> parser = NodeTreeParser()
        >>> result = parser.parse('<root attr="5"><child> 42 </child></root>')
        >>> result.root.child_named("child").text
        '42'

        >>> html = NodeTreeParser(ParserConfig.html())
        >>> html.parse("<p>one<br>two</p>").root.first_child().name
        'br'
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.config = config or ParserConfig()
        self.correlation_id = correlation_id or self.config.correlation_id
        self.logger = get_logger(__name__, self.correlation_id, "node_tree_parser")

        self._parse_count = 0
        self._successful_parses = 0
        self._total_processing_time = 0.0

    def parse(
        self,
        input_data: InputType,
        html_mode: Optional[bool] = None,
        correlation_id_override: Optional[str] = None,
    ) -> ParseResult:
        """Parse a document held in memory, in a file object or at a path.

        Args:
            input_data: Document as str, bytes, file-like object or Path
            html_mode: Overrides ``config.html_mode`` for this call
            correlation_id_override: Optional correlation ID for this call

        Returns:
            ParseResult with the root node or a structured error

        Raises:
            TypeError: If ``input_data`` has an unsupported type
        """
        if isinstance(input_data, Path):
            return self.parse_file(
                input_data, html_mode, correlation_id_override=correlation_id_override
            )
        if isinstance(input_data, (str, bytes, bytearray)):
            content = input_data
        elif hasattr(input_data, "read"):
            content = input_data.read()
        else:
            raise TypeError(
                f"Unsupported input type: {type(input_data).__name__}"
            )
        return self._parse_content(
            content,
            self.config.html_mode if html_mode is None else html_mode,
            correlation_id_override or self.correlation_id,
        )

    def parse_file(
        self,
        file_path: Union[str, Path],
        html_mode: Optional[bool] = None,
        encoding: Optional[str] = None,
        correlation_id_override: Optional[str] = None,
    ) -> ParseResult:
        """Parse the document stored at ``file_path``.

        Args:
            file_path: Path to the document
            html_mode: Overrides ``config.html_mode`` for this call
            encoding: Encoding override; detected from the content if None
            correlation_id_override: Optional correlation ID for this call

        Raises:
            OSError: If the file cannot be read
        """
        path = Path(file_path)
        html_mode = self.config.html_mode if html_mode is None else html_mode
        correlation_id = correlation_id_override or self.correlation_id
        raw = path.read_bytes()

        self.logger.info(
            "Parsing file",
            extra={"file_path": str(path), "encoding_override": encoding},
        )
        if encoding is None:
            return self._parse_content(raw, html_mode, correlation_id)

        try:
            content = raw.decode(encoding)
        except (LookupError, UnicodeDecodeError) as e:
            result = ParseResult(html_mode=html_mode, correlation_id=correlation_id)
            result.error = EncodingError(f"Cannot decode {path} as {encoding}: {e}")
            self._record(result)
            return result
        result = self._parse_content(content, html_mode, correlation_id)
        result.encoding = encoding
        return result

    def _parse_content(
        self,
        content: Union[str, bytes, bytearray],
        html_mode: bool,
        correlation_id: Optional[str],
    ) -> ParseResult:
        start_time = time.time()
        logger = self.logger.bind(correlation_id)
        result = ParseResult(html_mode=html_mode, correlation_id=correlation_id)

        logger.debug(
            "Starting parse",
            extra={
                "content_length": len(content),
                "html_mode": html_mode,
                "preview": content[:PREVIEW_LENGTH],
            },
        )

        try:
            decoded = decode_document(
                content, html_mode, self.config.html_fallback_encoding
            )
            result.encoding = decoded.encoding
            for issue in decoded.issues:
                result.add_diagnostic(DiagnosticSeverity.WARNING, issue, "encoding")

            text = decoded.text
            if not text.strip():
                raise EmptyInputError("Input is empty or contains only whitespace")
            text = self._check_characters(text, html_mode, result)
            result.performance.characters_processed = len(text)

            tokenizer = create_tokenizer(self.config, correlation_id, html_mode)
            builder = TreeBuilder(html_mode, correlation_id)
            try:
                result.root = builder.build(tokenizer.iter_events(text))
            finally:
                result.diagnostics.extend(tokenizer.diagnostics)
                result.performance.events_processed = builder.events_processed
                result.performance.nodes_created = builder.nodes_created

        except ParseError as e:
            result.root = None
            result.error = e
            logger.debug(
                "Parse failed",
                extra={"error_type": e.kind, "error_message": e.message},
            )

        result.performance.processing_time_ms = (
            (time.time() - start_time) * MS_PER_SECOND
        )
        self._record(result)

        logger.info(
            "Parse completed",
            extra={
                "success": result.success,
                "nodes_created": result.performance.nodes_created,
                "repair_count": result.repair_count,
                "processing_time_ms": result.performance.processing_time_ms,
            },
        )
        return result

    def _check_characters(
        self, text: str, html_mode: bool, result: ParseResult
    ) -> str:
        if not html_mode:
            check_xml_characters(text)
            return text
        cleaned, removed = strip_invalid_characters(text)
        if removed:
            result.add_diagnostic(
                DiagnosticSeverity.WARNING,
                f"Removed {removed} character(s) not allowed in XML",
                "character_validation",
                details={"removed": removed},
            )
        return cleaned

    def _record(self, result: ParseResult) -> None:
        self._parse_count += 1
        self._total_processing_time += result.performance.processing_time_ms
        if result.success:
            self._successful_parses += 1

    def reconfigure(self, config: ParserConfig) -> None:
        """Replace the parser configuration."""
        self.config = config
        self.logger.info("Parser reconfigured", extra={"html_mode": config.html_mode})

    @property
    def statistics(self) -> Dict[str, Any]:
        """Get parser usage statistics."""
        return {
            "total_parses": self._parse_count,
            "successful_parses": self._successful_parses,
            "success_rate": (
                self._successful_parses / self._parse_count
                if self._parse_count > 0 else 0.0
            ),
            "total_processing_time_ms": self._total_processing_time,
            "average_processing_time_ms": (
                self._total_processing_time / self._parse_count
                if self._parse_count > 0 else 0.0
            ),
            "correlation_id": self.correlation_id,
        }

    def reset_statistics(self) -> None:
        """Reset parser usage statistics."""
        self._parse_count = 0
        self._successful_parses = 0
        self._total_processing_time = 0.0


def parse(
    input_data: InputType,
    html_mode: bool = False,
    correlation_id: Optional[str] = None,
) -> ParseResult:
    """Parse a document from a string, bytes, file object or Path.

    Examples:
        >>> result = parse('<a><b/></a>')
        >>> result.success, result.root.name
        (True, 'a')

        >>> parse('<a><b></a>').error.kind
        'MalformedDocumentError'
    """
    parser = NodeTreeParser(ParserConfig(html_mode=html_mode), correlation_id)
    return parser.parse(input_data)


def parse_xml(xml_string: Union[str, bytes], correlation_id: Optional[str] = None) -> ParseResult:
    """Parse strict XML; text is trimmed and whitespace-only text dropped."""
    return parse(xml_string, html_mode=False, correlation_id=correlation_id)


def parse_html(html_string: Union[str, bytes], correlation_id: Optional[str] = None) -> ParseResult:
    """Parse HTML leniently; text is kept verbatim."""
    return parse(html_string, html_mode=True, correlation_id=correlation_id)


def parse_file(
    file_path: Union[str, Path],
    html_mode: bool = False,
    encoding: Optional[str] = None,
    correlation_id: Optional[str] = None,
) -> ParseResult:
    """Parse the document stored at ``file_path``.

    Raises:
        OSError: If the file cannot be read
    """
    parser = NodeTreeParser(ParserConfig(html_mode=html_mode), correlation_id)
    return parser.parse_file(file_path, encoding=encoding)
