"""Lexical events consumed by the tree builder.

A tokenizer turns document text into a flat sequence of three event kinds.
The tree builder only ever sees these events, so it can be driven by a real
lexer or by a synthetic list in tests.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import ClassVar, Dict, Optional, Union


class EventType(Enum):
    """Kinds of events produced by a tokenizer."""

    START_ELEMENT = auto()
    END_ELEMENT = auto()
    CHARACTERS = auto()


@dataclass(frozen=True)
class StartElement:
    """An element was opened."""

    name: str
    attributes: Dict[str, str] = field(default_factory=dict)
    line: Optional[int] = None
    column: Optional[int] = None

    type: ClassVar[EventType] = EventType.START_ELEMENT


@dataclass(frozen=True)
class EndElement:
    """An element was closed."""

    name: str
    line: Optional[int] = None
    column: Optional[int] = None

    type: ClassVar[EventType] = EventType.END_ELEMENT


@dataclass(frozen=True)
class Characters:
    """Character data appeared inside the currently open element."""

    text: str
    line: Optional[int] = None
    column: Optional[int] = None

    type: ClassVar[EventType] = EventType.CHARACTERS


ParseEvent = Union[StartElement, EndElement, Characters]
