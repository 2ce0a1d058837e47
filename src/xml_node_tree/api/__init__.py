"""Public parsing API and library integration adapters."""

from .adapters import (
    AdapterMetadata,
    BeautifulSoupAdapter,
    ConversionResult,
    IntegrationAdapter,
    LxmlAdapter,
    get_adapter,
    list_available_adapters,
    register_adapter,
)
from .parser import NodeTreeParser, parse, parse_file, parse_html, parse_xml

__all__ = [
    "AdapterMetadata",
    "BeautifulSoupAdapter",
    "ConversionResult",
    "IntegrationAdapter",
    "LxmlAdapter",
    "NodeTreeParser",
    "get_adapter",
    "list_available_adapters",
    "parse",
    "parse_file",
    "parse_html",
    "parse_xml",
    "register_adapter",
]
