"""Serialization of node trees to compact or indented XML text.

Output is always well-formed XML, whatever mode the tree was parsed in.
Element content is written as the element's own text followed by its
children in document order.
"""

from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Tuple

from xml_node_tree.shared import SerializerConfig

if TYPE_CHECKING:
    from .node import BaseNode


def escape_text(text: str) -> str:
    """Escape character data for use between tags.

    Carriage returns are written as references; a raw one would be read
    back as a line feed.
    """
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace("\r", "&#13;")
    )


def escape_attribute(value: str) -> str:
    """Escape an attribute value for use inside double quotes.

    Tabs and line breaks are written as references; raw ones would be
    normalized to spaces when the value is read back.
    """
    return (
        escape_text(value)
        .replace('"', "&quot;")
        .replace("'", "&apos;")
        .replace("\t", "&#9;")
        .replace("\n", "&#10;")
    )


class XMLSerializer:
    """Writes nodes as markup according to a ``SerializerConfig``."""

    def __init__(self, config: Optional[SerializerConfig] = None) -> None:
        self.config = config or SerializerConfig()

    def serialize(self, node: "BaseNode") -> str:
        """Serialize ``node`` and its full subtree on a single line."""
        if node.is_text:
            return escape_text(node.text or "")
        content = self.serialize_content(node)
        if not content and self.config.self_close_empty:
            return f"<{node.name}{self._attributes(node.attributes)}/>"
        return f"{self._open_tag(node)}{content}</{node.name}>"

    def serialize_content(self, node: "BaseNode") -> str:
        """Serialize the content of ``node`` without its own tags."""
        parts: List[str] = []
        if node.text:
            parts.append(escape_text(node.text))
        parts.extend(self.serialize(child) for child in node.children)
        return "".join(parts)

    def serialize_pretty(self, node: "BaseNode") -> str:
        """Serialize ``node`` with one child per line, indented per depth."""
        return "\n".join(self._pretty_lines(node, 0))

    def _pretty_lines(self, node: "BaseNode", depth: int) -> Iterable[str]:
        prefix = self.config.indent * depth
        if node.is_text:
            yield prefix + escape_text(node.text or "")
            return
        if not node.children:
            yield prefix + self.serialize(node)
            return

        yield prefix + self._open_tag(node)
        if node.text:
            yield prefix + self.config.indent + escape_text(node.text)
        for child in node.children:
            yield from self._pretty_lines(child, depth + 1)
        yield f"{prefix}</{node.name}>"

    def _open_tag(self, node: "BaseNode") -> str:
        return f"<{node.name}{self._attributes(node.attributes)}>"

    def _attributes(self, attributes: Dict[str, str]) -> str:
        items: Iterable[Tuple[str, str]] = attributes.items()
        if self.config.sort_attributes:
            items = sorted(items)
        return "".join(
            f' {name}="{escape_attribute(value)}"' for name, value in items
        )
