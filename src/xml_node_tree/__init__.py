"""XML Node Tree.

Parses XML and HTML documents into a lightweight tree of element and text
nodes, with typed attribute accessors and compact or pretty serialization.

Progressive API Disclosure:
- Level 1: Simple functions - parse(), parse_xml(), parse_html(), parse_file()
- Level 2: Configured parser - NodeTreeParser class
- Level 3: Building and editing trees - Node, TextNode
"""

__version__ = "0.1.0"
__author__ = "XML Node Tree Team"

# Progressive API disclosure - Level 1: Simple functions
# Progressive API disclosure - Level 2: Advanced configuration
from .api import NodeTreeParser, parse, parse_file, parse_html, parse_xml

# Configuration classes for advanced usage
from .shared.config import LoaderConfig, ParserConfig, SerializerConfig

# Error taxonomy
from .shared.errors import (
    EmptyInputError,
    EncodingError,
    InvalidNodeOperationError,
    MalformedDocumentError,
    ParseError,
    XMLNodeTreeError,
)

# Core result objects and data structures
from .tree import Node, ParseResult, TextNode, XMLSerializer

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple parsing functions
    "parse",
    "parse_xml",
    "parse_html",
    "parse_file",

    # Level 2: Advanced parser class
    "NodeTreeParser",

    # Result objects and data structures
    "Node",
    "ParseResult",
    "TextNode",
    "XMLSerializer",

    # Errors
    "EmptyInputError",
    "EncodingError",
    "InvalidNodeOperationError",
    "MalformedDocumentError",
    "ParseError",
    "XMLNodeTreeError",

    # Configuration classes for advanced usage
    "LoaderConfig",
    "ParserConfig",
    "SerializerConfig",
]
