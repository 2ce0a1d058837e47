"""Stack-based construction of node trees from tokenizer events.

``TreeBuilder`` is a small state machine::

    IDLE --StartElement--> BUILDING --last EndElement--> DONE
      \\                        |
       +------ any error ------+--> FAILED

It keeps an explicit stack of open elements together with one text buffer per
open element. When an element closes, its buffer becomes the element's own
text: trimmed (and dropped when only whitespace) in XML mode, verbatim in
HTML mode.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Iterable, List, NoReturn, Optional

from xml_node_tree.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    EmptyInputError,
    MalformedDocumentError,
    ParseError,
    PerformanceMetrics,
    get_logger,
)
from xml_node_tree.tokenization import (
    Characters,
    EndElement,
    ParseEvent,
    StartElement,
)

from .node import Node


class BuilderState(Enum):
    """States of the tree builder."""

    IDLE = auto()       # No element seen yet
    BUILDING = auto()   # At least one element open
    DONE = auto()       # Root element closed
    FAILED = auto()     # Malformed event stream detected


@dataclass
class _OpenElement:
    node: Node
    text_parts: List[str] = field(default_factory=list)


class TreeBuilder:
    """Builds a single node tree from a stream of events.

    Attributes:
        html_mode: Keep character data verbatim instead of trimming it
        state: Current builder state
        nodes_created: Number of element nodes created so far
        events_processed: Number of events consumed so far
    """

    def __init__(
        self, html_mode: bool = False, correlation_id: Optional[str] = None
    ) -> None:
        self.html_mode = html_mode
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "tree_builder")
        self.reset()

    def reset(self) -> None:
        """Return to the IDLE state, discarding any partial tree."""
        self.state = BuilderState.IDLE
        self._stack: List[_OpenElement] = []
        self._root: Optional[Node] = None
        self._error: Optional[ParseError] = None
        self.nodes_created = 0
        self.events_processed = 0

    @property
    def root(self) -> Optional[Node]:
        """The root element once the builder is DONE, else None."""
        return self._root if self.state is BuilderState.DONE else None

    @property
    def open_elements(self) -> List[str]:
        """Names of the currently open elements, outermost first."""
        return [entry.node.name for entry in self._stack]

    def feed(self, event: ParseEvent) -> None:
        """Consume one event.

        Raises:
            MalformedDocumentError: If the event does not fit the tree so far
            TypeError: If ``event`` is not a tokenizer event
        """
        if self.state is BuilderState.FAILED:
            raise MalformedDocumentError(
                f"Tree builder already failed: {self._error}"
            )
        self.events_processed += 1
        if isinstance(event, StartElement):
            self.start_element(event.name, event.attributes, event.line, event.column)
        elif isinstance(event, EndElement):
            self.end_element(event.name, event.line, event.column)
        elif isinstance(event, Characters):
            self.characters(event.text, event.line, event.column)
        else:
            raise TypeError(f"Unsupported event type: {type(event).__name__}")

    def start_element(
        self,
        name: str,
        attributes: Optional[Dict[str, str]] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> Node:
        """Open a new element as a child of the current element."""
        if self.state is BuilderState.DONE:
            self._fail(f"Element <{name}> after the root element", line, column)

        node = Node(name=name, attributes=dict(attributes or {}))
        self.nodes_created += 1
        if self._stack:
            self._stack[-1].node.add_child(node)
        else:
            self._root = node
        self._stack.append(_OpenElement(node))
        self.state = BuilderState.BUILDING
        return node

    def end_element(
        self,
        name: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> Node:
        """Close the current element, which must be called ``name``."""
        if not self._stack:
            self._fail(f"End tag </{name}> without open element", line, column)

        current = self._stack[-1].node
        if current.name != name:
            self._fail(
                f"End tag </{name}> does not match open element <{current.name}>",
                line,
                column,
            )

        entry = self._stack.pop()
        entry.node.text = self._finish_text(entry.text_parts)
        if not self._stack:
            self.state = BuilderState.DONE
        return entry.node

    def characters(
        self,
        text: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> None:
        """Append character data to the current element's text buffer."""
        if self._stack:
            self._stack[-1].text_parts.append(text)
        elif text.strip():
            self._fail("Character data outside the root element", line, column)

    def close(self) -> Node:
        """Finish the stream and return the root element.

        Raises:
            EmptyInputError: If no element was seen
            MalformedDocumentError: If elements are still open
        """
        if self.state is BuilderState.FAILED:
            raise MalformedDocumentError(
                f"Tree builder already failed: {self._error}"
            )
        if self.state is BuilderState.IDLE:
            self.state = BuilderState.FAILED
            self._error = EmptyInputError("Document contains no element")
            raise self._error
        if self._stack:
            self._fail(f"Unclosed element(s): {', '.join(self.open_elements)}")

        assert self._root is not None
        return self._root

    def build(self, events: Iterable[ParseEvent]) -> Node:
        """Consume all ``events`` and return the root element."""
        self.reset()
        for event in events:
            self.feed(event)
        root = self.close()
        self.logger.debug(
            "Tree built",
            extra={
                "nodes_created": self.nodes_created,
                "events_processed": self.events_processed,
            },
        )
        return root

    def _finish_text(self, parts: List[str]) -> Optional[str]:
        text = "".join(parts)
        if not self.html_mode:
            text = text.strip()
        return text or None

    def _fail(
        self, message: str, line: Optional[int] = None, column: Optional[int] = None
    ) -> NoReturn:
        self.state = BuilderState.FAILED
        self._error = MalformedDocumentError(message, line, column)
        raise self._error


@dataclass
class ParseResult:
    """Outcome of parsing one document.

    Either ``root`` holds the finished tree and ``success`` is True, or
    ``error`` describes why no tree could be produced.
    """

    root: Optional[Node] = None
    error: Optional[ParseError] = None
    html_mode: bool = False
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    encoding: Optional[str] = None
    correlation_id: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.root is not None and self.error is None

    @property
    def processing_time_ms(self) -> float:
        """Get processing time in milliseconds."""
        return self.performance.processing_time_ms

    def unwrap(self) -> Node:
        """Return the root element or raise the parse error."""
        if self.error is not None:
            raise self.error
        if self.root is None:
            raise EmptyInputError("Parse produced no root element")
        return self.root

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        position: Optional[Dict[str, int]] = None,
        details: Optional[Dict[str, Any]] = None,
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
        """Get diagnostics of specific severity level."""
        return [diag for diag in self.diagnostics if diag.severity == severity]

    @property
    def repair_count(self) -> int:
        """Number of repairs the HTML tokenizer applied."""
        return len(self.get_diagnostics_by_severity(DiagnosticSeverity.WARNING))

    def summary(self) -> Dict[str, Any]:
        """Get summary statistics for the parse result."""
        summary: Dict[str, Any] = {
            "success": self.success,
            "html_mode": self.html_mode,
            "encoding": self.encoding,
            "root": self.root.name if self.root is not None else None,
            "repair_count": self.repair_count,
            "processing_time_ms": self.performance.processing_time_ms,
            "nodes_created": self.performance.nodes_created,
            "events_processed": self.performance.events_processed,
            "diagnostics": [diag.to_dict() for diag in self.diagnostics],
        }
        if self.error is not None:
            summary["error"] = {
                "type": self.error.kind,
                "message": self.error.message,
                "line": self.error.line,
                "column": self.error.column,
            }
        return summary
