"""Tree layer: node model, stack-based tree builder and serializer.

Key Components:
    Node: Element with name, attributes, children and own text
    TextNode: Text leaf that cannot have children or attributes
    TreeBuilder: Builds a tree from StartElement/EndElement/Characters events
    ParseResult: Root node or structured failure of one parse
    XMLSerializer: Compact and indented XML output
"""

from .builder import BuilderState, ParseResult, TreeBuilder
from .node import BaseNode, Node, TextNode
from .serializer import XMLSerializer, escape_attribute, escape_text

__all__ = [
    "BaseNode",
    "BuilderState",
    "Node",
    "ParseResult",
    "TextNode",
    "TreeBuilder",
    "XMLSerializer",
    "escape_attribute",
    "escape_text",
]
