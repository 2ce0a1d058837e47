"""Node model for parsed XML and HTML documents.

Two node kinds exist. ``Node`` is an element with a name, attributes, ordered
children and optional own text. ``TextNode`` is a pure text leaf: its
children and attributes are permanently empty and cannot be changed.

A node owns its children. The back-reference to the parent is a weak
reference, so holding a child never keeps its parent alive.
"""

import weakref
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from xml_node_tree.character import is_xml_name
from xml_node_tree.shared import InvalidNodeOperationError, SerializerConfig

from .serializer import XMLSerializer

# Attribute values read as false by bool_attr, compared case-insensitively
FALSE_ATTRIBUTE_VALUES = frozenset({"null", "0", "false", "no"})

# Text values read as true by bool_value, compared case-insensitively
TRUE_TEXT_VALUES = frozenset({"true", "yes", "1"})

_NO_ATTRIBUTES: Mapping[str, str] = MappingProxyType({})


class BaseNode(ABC):
    """Behaviour shared by element and text nodes."""

    is_text = False
    name: Optional[str]
    attributes: Mapping[str, str]
    children: Sequence["BaseNode"]
    text: Optional[str]

    _parent_ref: Optional["weakref.ReferenceType[Node]"] = None

    @property
    def parent(self) -> Optional["Node"]:
        """The enclosing element, or None for a root or detached node."""
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    def _set_parent(self, parent: Optional["Node"]) -> None:
        self._parent_ref = weakref.ref(parent) if parent is not None else None

    # Attributes

    def attr(self, name: str) -> Optional[str]:
        """Return the value of attribute ``name``, or None if it is not set."""
        return self.attributes.get(name)

    def num_attr(self, name: str) -> Optional[Decimal]:
        """Return attribute ``name`` as a decimal number.

        Missing attributes and values that are not finite decimal numbers
        both give None.
        """
        value = self.attr(name)
        if value is None:
            return None
        try:
            number = Decimal(value.strip())
        except InvalidOperation:
            return None
        return number if number.is_finite() else None

    def bool_attr(self, name: str) -> bool:
        """Interpret attribute ``name`` as a flag.

        Returns False if the attribute is missing, empty, or reads ``null``,
        ``0``, ``false`` or ``no`` in any case; True otherwise.
        """
        value = (self.attr(name) or "").strip()
        return bool(value) and value.lower() not in FALSE_ATTRIBUTE_VALUES

    # Body values

    def bool_value(self) -> bool:
        """Return True if the own text reads ``true``, ``yes`` or ``1``."""
        return (self.text or "").strip().lower() in TRUE_TEXT_VALUES

    # Child nodes

    def first_child(self) -> Optional["BaseNode"]:
        """Return the first child node, or None."""
        return self.children[0] if self.children else None

    def child_named(self, name: str) -> Optional["BaseNode"]:
        """Return the first direct child called ``name``, or None."""
        for child in self.children:
            if child.name == name:
                return child
        return None

    def children_named(self, name: str) -> List["BaseNode"]:
        """Return all direct children called ``name`` in document order."""
        return [child for child in self.children if child.name == name]

    def iter_descendants(self) -> Iterator["BaseNode"]:
        """Yield all descendants in document order (depth first)."""
        for child in self.children:
            yield child
            yield from child.iter_descendants()

    @property
    def depth(self) -> int:
        """Number of ancestors (a root has depth 0)."""
        depth = 0
        node = self.parent
        while node is not None:
            depth += 1
            node = node.parent
        return depth

    @property
    def path(self) -> str:
        """XPath-like location such as ``/root/item[2]``."""
        step = self.name if self.name is not None else "text()"
        parent = self.parent
        if parent is None:
            return f"/{step}"
        siblings = [c for c in parent.children if c.name == self.name]
        if len(siblings) > 1:
            position = next(i for i, c in enumerate(siblings, 1) if c is self)
            step = f"{step}[{position}]"
        return f"{parent.path}/{step}"

    # Generating XML

    def xml(self, config: Optional[SerializerConfig] = None) -> str:
        """Return this node and its subtree as compact XML."""
        return XMLSerializer(config).serialize(self)

    def child_xml(self, config: Optional[SerializerConfig] = None) -> str:
        """Return the content of this node as XML, without its own tags."""
        return XMLSerializer(config).serialize_content(self)

    def pretty_xml(self, config: Optional[SerializerConfig] = None) -> str:
        """Return this node and its subtree as indented XML."""
        return XMLSerializer(config).serialize_pretty(self)

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """Structural snapshot of this node and its subtree."""


@dataclass(eq=False, repr=False)
class Node(BaseNode):
    """An element node.

    Attributes:
        name: Element name, never empty
        attributes: Attribute values by unique attribute name
        children: Child nodes in document order
        text: Character data directly inside this element, if any
    """

    name: str
    attributes: Dict[str, str] = field(default_factory=dict)
    children: List[BaseNode] = field(default_factory=list)
    text: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the element and adopt children passed in."""
        if not isinstance(self.name, str) or not self.name:
            raise ValueError("Element name cannot be empty")
        if not is_xml_name(self.name):
            raise ValueError(f"Invalid element name: {self.name!r}")
        for key, value in self.attributes.items():
            _check_attribute(key, value)
        children, self.children = self.children, []
        for child in children:
            self.add_child(child)

    @classmethod
    def create(
        cls, name: str, attributes: Optional[Mapping[str, str]] = None
    ) -> "Node":
        """Create an element without children or parent."""
        return cls(name=name, attributes=dict(attributes or {}))

    def set_attr(self, name: str, value: str) -> None:
        """Set or replace attribute ``name``.

        Raises:
            ValueError: If ``name`` is empty or not an XML name
            TypeError: If ``name`` or ``value`` is not a string
        """
        _check_attribute(name, value)
        self.attributes[name] = value

    def add_child(self, node: BaseNode) -> None:
        """Append ``node`` and make this element its parent.

        A node that already has a parent is detached from it first.

        Raises:
            TypeError: If ``node`` is not a node
            ValueError: If ``node`` is this element or one of its ancestors
        """
        _check_node(node)
        ancestor: Optional[BaseNode] = self
        while ancestor is not None:
            if ancestor is node:
                raise ValueError("A node cannot become its own descendant")
            ancestor = ancestor.parent

        previous = node.parent
        if previous is not None:
            previous.remove_child(node)
        self.children.append(node)
        node._set_parent(self)

    def remove_child(self, node: BaseNode) -> bool:
        """Detach ``node`` from this element.

        Returns:
            True if ``node`` was a child, False otherwise
        """
        for index, child in enumerate(self.children):
            if child is node:
                del self.children[index]
                node._set_parent(None)
                return True
        return False

    def to_dict(self) -> Dict[str, Any]:
        """Structural snapshot: name, attributes, text and children."""
        result: Dict[str, Any] = {
            "name": self.name,
            "attributes": dict(self.attributes),
        }
        if self.text is not None:
            result["text"] = self.text
        if self.children:
            result["children"] = [child.to_dict() for child in self.children]
        return result

    def __repr__(self) -> str:
        return (
            f"Node(name={self.name!r}, attributes={self.attributes!r}, "
            f"children={len(self.children)}, text={self.text!r})"
        )


@dataclass(eq=False, repr=False)
class TextNode(BaseNode):
    """A text leaf. Text nodes cannot have child nodes or attributes."""

    text: str

    is_text = True

    def __post_init__(self) -> None:
        if not isinstance(self.text, str):
            raise TypeError("Text node content must be a string")

    @property
    def name(self) -> None:
        return None

    @property
    def attributes(self) -> Mapping[str, str]:
        return _NO_ATTRIBUTES

    @property
    def children(self) -> Tuple[()]:
        return ()

    @classmethod
    def create(cls, text: str) -> "TextNode":
        """Create a text leaf holding ``text``."""
        return cls(text=text)

    def add_child(self, node: BaseNode) -> None:
        """Always rejected.

        Raises:
            InvalidNodeOperationError: Text nodes cannot have child nodes
        """
        raise InvalidNodeOperationError("Text nodes cannot have child nodes")

    def set_attr(self, name: str, value: str) -> None:
        """Always rejected.

        Raises:
            InvalidNodeOperationError: Text nodes cannot have attributes
        """
        raise InvalidNodeOperationError("Text nodes cannot have attributes")

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text}

    def __repr__(self) -> str:
        return f"TextNode(text={self.text!r})"


def _check_node(node: Any) -> None:
    if not isinstance(node, BaseNode):
        raise TypeError(f"Child must be a node, got {type(node).__name__}")


def _check_attribute(name: Any, value: Any) -> None:
    if not isinstance(name, str) or not isinstance(value, str):
        raise TypeError("Attribute name and value must be strings")
    if not name:
        raise ValueError("Attribute name cannot be empty")
    if not is_xml_name(name):
        raise ValueError(f"Invalid attribute name: {name!r}")
