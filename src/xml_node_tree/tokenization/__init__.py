"""Tokenization layer: lexical events and the XML / HTML event tokenizers.

Key Components:
    StartElement, EndElement, Characters: the three event kinds
    XMLEventTokenizer: strict tokenizer on top of expat
    HTMLEventTokenizer: lenient tokenizer on top of html.parser
"""

from .events import Characters, EndElement, EventType, ParseEvent, StartElement
from .tokenizer import (
    IMPLICITLY_CLOSED_ELEMENTS,
    VOID_ELEMENTS,
    EventTokenizer,
    HTMLEventTokenizer,
    XMLEventTokenizer,
    create_tokenizer,
)

__all__ = [
    "Characters",
    "EndElement",
    "EventTokenizer",
    "EventType",
    "HTMLEventTokenizer",
    "IMPLICITLY_CLOSED_ELEMENTS",
    "ParseEvent",
    "StartElement",
    "VOID_ELEMENTS",
    "XMLEventTokenizer",
    "create_tokenizer",
]
