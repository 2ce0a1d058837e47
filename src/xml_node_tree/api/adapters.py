"""Integration adapters for lxml and BeautifulSoup.

Adapters convert node trees to and from the object models of other XML
libraries. Conversions never raise: failures come back as an unsuccessful
``ConversionResult`` carrying the error message and an ERROR diagnostic.
The target libraries are imported lazily so that the core parser works
without them.
"""

import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type

from xml_node_tree.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    get_logger,
)
from xml_node_tree.tree import Node

MS_PER_SECOND = 1000
XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"


@dataclass
class AdapterMetadata:
    """Metadata about an integration adapter."""

    name: str
    target_library: str
    description: str


@dataclass
class ConversionResult:
    """Result of a conversion operation."""

    success: bool
    converted_data: Any
    original_data: Any
    conversion_time_ms: float
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)


class IntegrationAdapter(ABC):
    """Abstract base class for all integration adapters.

    ``to_target`` turns a ``Node`` into the target library's representation;
    ``from_target`` turns the target representation back into a ``Node``.
    """

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        self.correlation_id = correlation_id
        self._logger = get_logger(__name__, correlation_id, self.__class__.__name__)

    @property
    @abstractmethod
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check whether the target library can be imported."""

    @abstractmethod
    def to_target(self, node: Node) -> ConversionResult:
        """Convert a node tree to the target representation."""

    @abstractmethod
    def from_target(self, target_data: Any) -> ConversionResult:
        """Convert the target representation to a node tree."""

    def _create_success_result(
        self,
        converted_data: Any,
        original_data: Any,
        start_time: float,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> ConversionResult:
        processing_time = (time.time() - start_time) * MS_PER_SECOND
        self._logger.debug(
            "Conversion completed",
            extra={"adapter": self.metadata.name, "conversion_time_ms": processing_time},
        )
        return ConversionResult(
            success=True,
            converted_data=converted_data,
            original_data=original_data,
            conversion_time_ms=processing_time,
            metadata=metadata or {},
        )

    def _create_error_result(
        self,
        error_message: str,
        original_data: Any,
        start_time: float,
    ) -> ConversionResult:
        """Create a ConversionResult for error conditions."""
        self._logger.warning(
            "Conversion failed",
            extra={"adapter": self.metadata.name, "error_message": error_message},
        )
        return ConversionResult(
            success=False,
            converted_data=None,
            original_data=original_data,
            conversion_time_ms=(time.time() - start_time) * MS_PER_SECOND,
            errors=[error_message],
            diagnostics=[
                DiagnosticEntry(
                    severity=DiagnosticSeverity.ERROR,
                    message=error_message,
                    component=self.__class__.__name__,
                    correlation_id=self.correlation_id,
                )
            ],
        )


class LxmlAdapter(IntegrationAdapter):
    """Adapter for bidirectional conversion with lxml.etree.

    Text nodes of an application-built tree become ``text`` or ``tail``
    strings in lxml. In the other direction the element text and the tails
    of its children are concatenated into the node's own text; comments and
    processing instructions are skipped.
    """

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="lxml",
            target_library="lxml",
            description="Bidirectional conversion between Node and lxml.etree",
        )

    def is_available(self) -> bool:
        try:
            import lxml.etree  # noqa: F401
            return True
        except ImportError:
            return False

    def to_target(self, node: Node) -> ConversionResult:
        """Convert ``node`` to an ``lxml.etree._Element``."""
        start_time = time.time()
        if not isinstance(node, Node):
            return self._create_error_result(
                f"Expected an element Node, got {type(node).__name__}",
                node,
                start_time,
            )
        try:
            import lxml.etree as etree

            element = self._to_lxml(node, etree)
        except (ImportError, ValueError, TypeError) as e:
            return self._create_error_result(
                f"Failed to convert to lxml: {e}", node, start_time
            )
        return self._create_success_result(
            element,
            node,
            start_time,
            {"lxml_version": etree.LXML_VERSION},
        )

    def from_target(self, target_data: Any) -> ConversionResult:
        """Convert an lxml element or element tree to a ``Node``."""
        start_time = time.time()
        element = target_data.getroot() if hasattr(target_data, "getroot") else target_data
        if not isinstance(getattr(element, "tag", None), str):
            return self._create_error_result(
                "Target data is not an lxml element", target_data, start_time
            )
        try:
            node = self._from_lxml(element, {})
        except (ValueError, TypeError) as e:
            return self._create_error_result(
                f"Failed to convert from lxml: {e}", target_data, start_time
            )
        return self._create_success_result(
            node, target_data, start_time, {"original_tag": element.tag}
        )

    def _to_lxml(
        self, node: Node, etree: Any, scope: Optional[Dict[Optional[str], str]] = None
    ) -> Any:
        declared: Dict[Optional[str], str] = {}
        attributes: Dict[str, str] = {}
        for key, value in node.attributes.items():
            if key == "xmlns":
                declared[None] = value
            elif key.startswith("xmlns:"):
                declared[key[len("xmlns:"):]] = value
            else:
                attributes[key] = value
        scope = {**(scope or {}), **declared}

        element = etree.Element(
            _clark_name(node.name, scope, is_attribute=False),
            attrib={
                _clark_name(key, scope, is_attribute=True): value
                for key, value in attributes.items()
            },
            nsmap={prefix: uri for prefix, uri in declared.items() if uri},
        )
        element.text = node.text
        last_child = None
        for child in node.children:
            if child.is_text:
                if last_child is None:
                    element.text = (element.text or "") + child.text
                else:
                    last_child.tail = (last_child.tail or "") + child.text
                continue
            last_child = self._to_lxml(child, etree, scope)
            element.append(last_child)
        return element

    def _from_lxml(self, element: Any, parent_nsmap: Dict[Optional[str], str]) -> Node:
        nsmap = dict(element.nsmap)
        node = Node.create(_qualified_name(element.tag, nsmap))
        for prefix, uri in nsmap.items():
            if parent_nsmap.get(prefix) != uri:
                node.set_attr(f"xmlns:{prefix}" if prefix else "xmlns", uri)
        for key, value in element.attrib.items():
            node.set_attr(_qualified_name(key, nsmap), value)

        text_parts = [element.text or ""]
        for child in element:
            if isinstance(child.tag, str):
                node.add_child(self._from_lxml(child, nsmap))
            text_parts.append(child.tail or "")
        node.text = "".join(text_parts) or None
        return node


class BeautifulSoupAdapter(IntegrationAdapter):
    """Adapter for bidirectional conversion with BeautifulSoup.

    Conversions go through markup: the node tree is serialized and handed to
    BeautifulSoup's XML builder, and soups are converted back by re-parsing
    their markup.
    """

    def __init__(self, correlation_id: Optional[str] = None, html_mode: bool = False) -> None:
        super().__init__(correlation_id)
        self.html_mode = html_mode

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="beautifulsoup",
            target_library="beautifulsoup4",
            description="Bidirectional conversion between Node and BeautifulSoup",
        )

    def is_available(self) -> bool:
        try:
            from bs4 import BeautifulSoup  # noqa: F401
            return True
        except ImportError:
            return False

    def to_target(self, node: Node) -> ConversionResult:
        """Convert ``node`` to a ``BeautifulSoup`` document."""
        start_time = time.time()
        if not isinstance(node, Node):
            return self._create_error_result(
                f"Expected an element Node, got {type(node).__name__}",
                node,
                start_time,
            )
        try:
            from bs4 import BeautifulSoup, FeatureNotFound

            markup = node.xml()
            soup = BeautifulSoup(markup, "xml")
        except (ImportError, FeatureNotFound) as e:
            return self._create_error_result(
                f"Failed to convert to BeautifulSoup: {e}", node, start_time
            )
        return self._create_success_result(
            soup, node, start_time, {"parser_name": "xml", "xml_length": len(markup)}
        )

    def from_target(self, target_data: Any) -> ConversionResult:
        """Convert a ``BeautifulSoup`` document or ``Tag`` to a ``Node``."""
        from xml_node_tree.api.parser import parse

        start_time = time.time()
        if not hasattr(target_data, "decode_contents"):
            return self._create_error_result(
                "Target data is not a BeautifulSoup object", target_data, start_time
            )
        markup = str(target_data)
        result = parse(markup, html_mode=self.html_mode, correlation_id=self.correlation_id)
        if not result.success:
            return self._create_error_result(
                f"Failed to convert from BeautifulSoup: {result.error}",
                target_data,
                start_time,
            )
        conversion = self._create_success_result(
            result.root, target_data, start_time, {"xml_length": len(markup)}
        )
        conversion.diagnostics.extend(result.diagnostics)
        return conversion


def _clark_name(
    name: str, scope: Dict[Optional[str], str], is_attribute: bool
) -> str:
    """Turn a ``prefix:local`` name into lxml's ``{uri}local`` form.

    Unprefixed attributes are never in a namespace; unprefixed elements take
    the default namespace in ``scope``.

    Raises:
        ValueError: If the prefix has no namespace declaration in scope
    """
    prefix, sep, local = name.partition(":")
    if not sep:
        uri = None if is_attribute else scope.get(None)
        return f"{{{uri}}}{name}" if uri else name
    if prefix == "xml":
        return f"{{{XML_NAMESPACE}}}{local}"
    uri = scope.get(prefix)
    if not uri:
        raise ValueError(f"Unbound namespace prefix '{prefix}' in '{name}'")
    return f"{{{uri}}}{local}"


def _qualified_name(name: str, nsmap: Dict[Optional[str], str]) -> str:
    """Turn an lxml ``{uri}local`` name into a ``prefix:local`` name."""
    if not name.startswith("{"):
        return name
    uri, local = name[1:].split("}", 1)
    if uri == XML_NAMESPACE:
        return f"xml:{local}"
    for prefix, ns_uri in nsmap.items():
        if ns_uri == uri and prefix:
            return f"{prefix}:{local}"
    return local


class AdapterRegistry:
    """Registry for managing integration adapters."""

    def __init__(self) -> None:
        self._adapters: Dict[str, Type[IntegrationAdapter]] = {}
        self._lock = threading.RLock()

    def register(self, adapter_class: Type[IntegrationAdapter]) -> None:
        """Register an adapter class under its metadata name."""
        with self._lock:
            self._adapters[adapter_class().metadata.name] = adapter_class

    def get_adapter(
        self,
        adapter_name: str,
        correlation_id: Optional[str] = None,
    ) -> Optional[IntegrationAdapter]:
        """Get an adapter instance by name.

        Returns:
            Adapter instance if registered and available, None otherwise
        """
        with self._lock:
            adapter_class = self._adapters.get(adapter_name)
        if adapter_class is None:
            return None
        instance = adapter_class(correlation_id)
        return instance if instance.is_available() else None

    def list_available_adapters(self) -> List[AdapterMetadata]:
        """List metadata of every registered adapter whose library is importable."""
        with self._lock:
            adapter_classes = list(self._adapters.values())
        available = []
        for adapter_class in adapter_classes:
            instance = adapter_class()
            if instance.is_available():
                available.append(instance.metadata)
        return available


# Global adapter registry instance
_adapter_registry = AdapterRegistry()
_adapter_registry.register(LxmlAdapter)
_adapter_registry.register(BeautifulSoupAdapter)


def register_adapter(adapter_class: Type[IntegrationAdapter]) -> None:
    """Register an integration adapter globally."""
    _adapter_registry.register(adapter_class)


def get_adapter(
    adapter_name: str,
    correlation_id: Optional[str] = None,
) -> Optional[IntegrationAdapter]:
    """Get a registered adapter instance, or None if unknown or unavailable."""
    return _adapter_registry.get_adapter(adapter_name, correlation_id)


def list_available_adapters() -> List[AdapterMetadata]:
    """List all available integration adapters."""
    return _adapter_registry.list_available_adapters()
