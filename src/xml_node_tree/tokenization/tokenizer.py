"""Event tokenizers for XML and lenient HTML input.

Both tokenizers turn decoded document text into a lazy stream of
``StartElement``, ``EndElement`` and ``Characters`` events:

- ``XMLEventTokenizer`` drives the expat lexer with namespace processing off,
  so qualified names and ``xmlns`` attributes pass through unchanged.
- ``HTMLEventTokenizer`` drives ``html.parser`` and repairs the event stream
  (void elements, implied end tags, stray end tags, unclosed elements, names XML
  cannot express) so that it is always balanced and serializes to
  well-formed XML.
"""

from abc import ABC, abstractmethod
from collections import deque
from html.parser import HTMLParser
from typing import Deque, Dict, Iterator, List, Optional, Sequence, Set, Tuple
from xml.parsers import expat

from xml_node_tree.character import is_xml_name
from xml_node_tree.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    EmptyInputError,
    EncodingError,
    MalformedDocumentError,
    ParseError,
    ParserConfig,
    get_logger,
)

from .events import Characters, EndElement, ParseEvent, StartElement

# HTML elements that never have content or an end tag
VOID_ELEMENTS = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
})

# Elements whose start tag closes an open sibling of the same name
IMPLICITLY_CLOSED_ELEMENTS = frozenset({
    "dd", "dt", "li", "option", "p", "td", "th", "tr",
})

_ENCODING_ERROR_CODES = frozenset(
    expat.errors.codes[message]
    for message in (
        expat.errors.XML_ERROR_BAD_CHAR_REF,
        expat.errors.XML_ERROR_INCORRECT_ENCODING,
        expat.errors.XML_ERROR_UNKNOWN_ENCODING,
    )
)
_NO_ELEMENTS_CODE = expat.errors.codes[expat.errors.XML_ERROR_NO_ELEMENTS]


class EventTokenizer(ABC):
    """Base class for tokenizers feeding the tree builder.

    Attributes:
        config: Parser configuration (chunk size)
        diagnostics: Repairs and notes recorded during the last run
    """

    component = "tokenizer"

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.config = config or ParserConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, self.component)
        self.diagnostics: List[DiagnosticEntry] = []

    @abstractmethod
    def iter_events(self, text: str) -> Iterator[ParseEvent]:
        """Yield the events of ``text`` in document order.

        Raises:
            ParseError: When the lexer cannot continue
        """

    def tokenize(self, text: str) -> List[ParseEvent]:
        """Return all events of ``text`` as a list."""
        return list(self.iter_events(text))

    def _chunks(self, text: str) -> Iterator[Tuple[str, bool]]:
        size = self.config.chunk_size
        if not text:
            yield "", True
            return
        for start in range(0, len(text), size):
            yield text[start:start + size], start + size >= len(text)

    def _note(
        self,
        message: str,
        position: Optional[Tuple[int, int]] = None,
        severity: DiagnosticSeverity = DiagnosticSeverity.WARNING,
    ) -> None:
        self.diagnostics.append(
            DiagnosticEntry(
                severity=severity,
                message=message,
                component=self.component,
                position=(
                    {"line": position[0], "column": position[1]} if position else None
                ),
                correlation_id=self.correlation_id,
            )
        )
        self.logger.debug(message, extra={"position": position})


class XMLEventTokenizer(EventTokenizer):
    """Strict XML tokenizer on top of expat."""

    component = "xml_tokenizer"

    def iter_events(self, text: str) -> Iterator[ParseEvent]:
        self.diagnostics = []
        pending: Deque[ParseEvent] = deque()
        saw_element = False

        parser = expat.ParserCreate(encoding="utf-8")
        parser.buffer_text = True
        parser.ordered_attributes = False

        def start(name: str, attributes: Dict[str, str]) -> None:
            nonlocal saw_element
            saw_element = True
            pending.append(StartElement(
                name, attributes, parser.CurrentLineNumber, parser.CurrentColumnNumber
            ))

        def end(name: str) -> None:
            pending.append(EndElement(
                name, parser.CurrentLineNumber, parser.CurrentColumnNumber
            ))

        def characters(data: str) -> None:
            pending.append(Characters(
                data, parser.CurrentLineNumber, parser.CurrentColumnNumber
            ))

        parser.StartElementHandler = start
        parser.EndElementHandler = end
        parser.CharacterDataHandler = characters

        for chunk, is_final in self._chunks(text):
            try:
                parser.Parse(chunk.encode("utf-8"), is_final)
            except expat.ExpatError as e:
                while pending:
                    yield pending.popleft()
                raise self._translate_error(e, saw_element) from e
            while pending:
                yield pending.popleft()

    def _translate_error(
        self, error: expat.ExpatError, saw_element: bool
    ) -> ParseError:
        message = expat.errors.messages.get(error.code, str(error))
        if error.code == _NO_ELEMENTS_CODE:
            if not saw_element:
                return EmptyInputError(
                    "Document contains no element", error.lineno, error.offset
                )
            return MalformedDocumentError(
                "Unclosed element at end of input", error.lineno, error.offset
            )
        if error.code in _ENCODING_ERROR_CODES:
            return EncodingError(
                f"Invalid character data: {message}", error.lineno, error.offset
            )
        return MalformedDocumentError(
            f"Malformed document: {message}", error.lineno, error.offset
        )


class _HTMLEventLexer(HTMLParser):
    """Forwards ``html.parser`` callbacks to an ``HTMLEventTokenizer``."""

    def __init__(self, tokenizer: "HTMLEventTokenizer") -> None:
        super().__init__(convert_charrefs=True)
        self._tokenizer = tokenizer

    def handle_starttag(
        self, tag: str, attrs: Sequence[Tuple[str, Optional[str]]]
    ) -> None:
        self._tokenizer._start(tag, attrs, self.getpos(), self_closing=False)

    def handle_startendtag(
        self, tag: str, attrs: Sequence[Tuple[str, Optional[str]]]
    ) -> None:
        self._tokenizer._start(tag, attrs, self.getpos(), self_closing=True)

    def handle_endtag(self, tag: str) -> None:
        self._tokenizer._end(tag, self.getpos())

    def handle_data(self, data: str) -> None:
        self._tokenizer._characters(data, self.getpos())


class HTMLEventTokenizer(EventTokenizer):
    """Lenient HTML tokenizer that always yields a balanced event stream."""

    component = "html_tokenizer"

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        super().__init__(config, correlation_id)
        self._pending: Deque[ParseEvent] = deque()
        self._open: List[str] = []
        self._dropped_tags: Set[str] = set()
        self._root_seen = False

    def iter_events(self, text: str) -> Iterator[ParseEvent]:
        self.diagnostics = []
        self._pending.clear()
        self._open = []
        self._dropped_tags = set()
        self._root_seen = False
        lexer = _HTMLEventLexer(self)

        for chunk, is_final in self._chunks(text):
            lexer.feed(chunk)
            if is_final:
                lexer.close()
            while self._pending:
                yield self._pending.popleft()

        position = lexer.getpos()
        while self._open:
            name = self._open.pop()
            self._note(f"Closed element <{name}> left open at end of input", position)
            yield EndElement(name, *position)

    def _start(
        self,
        tag: str,
        attrs: Sequence[Tuple[str, Optional[str]]],
        position: Tuple[int, int],
        self_closing: bool,
    ) -> None:
        if not is_xml_name(tag):
            # Content stays with the enclosing element
            self._dropped_tags.add(tag)
            self._note(f"Dropped tags of <{tag}>: not an XML name", position)
            return

        if tag in IMPLICITLY_CLOSED_ELEMENTS and self._open and self._open[-1] == tag:
            self._open.pop()
            self._note(f"Implicitly closed <{tag}> before a new <{tag}>", position)
            self._pending.append(EndElement(tag, *position))

        if not self._open and self._root_seen:
            self._note(
                f"Element <{tag}> follows the top-level element; "
                "wrap HTML fragments in a single element",
                position,
            )
        self._root_seen = True

        attributes: Dict[str, str] = {}
        for name, value in attrs:
            if not is_xml_name(name):
                self._note(
                    f"Dropped attribute '{name}' on <{tag}>: not an XML name", position
                )
                continue
            if name in attributes:
                self._note(f"Ignored duplicate attribute '{name}' on <{tag}>", position)
                continue
            attributes[name] = value if value is not None else ""

        self._pending.append(StartElement(tag, attributes, *position))
        if self_closing or tag in VOID_ELEMENTS:
            self._pending.append(EndElement(tag, *position))
        else:
            self._open.append(tag)

    def _end(self, tag: str, position: Tuple[int, int]) -> None:
        if tag in self._dropped_tags:
            return
        if tag not in self._open:
            self._note(f"Dropped end tag </{tag}> without open element", position)
            return
        while self._open:
            name = self._open.pop()
            if name != tag:
                self._note(f"Closed element <{name}> implied by </{tag}>", position)
            self._pending.append(EndElement(name, *position))
            if name == tag:
                break

    def _characters(self, data: str, position: Tuple[int, int]) -> None:
        if not self._open:
            if data.strip():
                self._note("Dropped text outside the root element", position)
            return
        self._pending.append(Characters(data, *position))


def create_tokenizer(
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None,
    html_mode: Optional[bool] = None,
) -> EventTokenizer:
    """Return the tokenizer matching the parse mode.

    Args:
        config: Parser configuration
        correlation_id: Optional correlation ID for request tracking
        html_mode: Overrides ``config.html_mode`` when given
    """
    config = config or ParserConfig()
    if html_mode is None:
        html_mode = config.html_mode
    if html_mode:
        return HTMLEventTokenizer(config, correlation_id)
    return XMLEventTokenizer(config, correlation_id)
