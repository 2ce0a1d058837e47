"""Tests for the lxml and BeautifulSoup integration adapters."""

import time
from typing import Any

import lxml.etree as etree
import pytest
from bs4 import BeautifulSoup

from xml_node_tree.api import parse_xml
from xml_node_tree.api.adapters import (
    AdapterMetadata,
    AdapterRegistry,
    BeautifulSoupAdapter,
    ConversionResult,
    IntegrationAdapter,
    LxmlAdapter,
    get_adapter,
    list_available_adapters,
)
from xml_node_tree.shared import DiagnosticSeverity
from xml_node_tree.tree import Node, TextNode


class FakeAdapter(IntegrationAdapter):
    """Adapter whose availability is controlled by the test."""

    def __init__(self, correlation_id: str = None, available: bool = True):
        super().__init__(correlation_id)
        self._available = available

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="fake", target_library="fake-lib", description="Test adapter"
        )

    def is_available(self) -> bool:
        return self._available

    def to_target(self, node: Node) -> ConversionResult:
        return self._create_success_result(node.name, node, time.time())

    def from_target(self, target_data: Any) -> ConversionResult:
        return self._create_error_result("not supported", target_data, time.time())


class UnavailableAdapter(FakeAdapter):
    """Adapter reporting a missing library."""

    def __init__(self, correlation_id: str = None):
        super().__init__(correlation_id, available=False)


@pytest.fixture
def catalog():
    """<catalog><book id="1"><title>XML</title></book></catalog>"""
    root = Node.create("catalog")
    book = Node.create("book", {"id": "1"})
    book.add_child(Node(name="title", text="XML"))
    root.add_child(book)
    return root


class TestIntegrationAdapter:
    """Test the adapter base class helpers."""

    def test_success_result(self):
        """Test successful conversion results."""
        node = Node.create("a")
        result = FakeAdapter().to_target(node)
        assert result.success
        assert result.converted_data == "a"
        assert result.original_data is node
        assert result.conversion_time_ms >= 0

    def test_error_result(self):
        """Test failed conversion results carry an error diagnostic."""
        result = FakeAdapter("cid").from_target("data")
        assert not result.success
        assert result.converted_data is None
        assert result.errors == ["not supported"]
        assert result.diagnostics[0].severity is DiagnosticSeverity.ERROR
        assert result.diagnostics[0].correlation_id == "cid"


class TestAdapterRegistry:
    """Test adapter registration and lookup."""

    def test_register_and_get(self):
        """Test lookup by metadata name."""
        registry = AdapterRegistry()
        registry.register(FakeAdapter)
        adapter = registry.get_adapter("fake", "cid")
        assert isinstance(adapter, FakeAdapter)
        assert adapter.correlation_id == "cid"

    def test_unknown_adapter(self):
        """Test lookup of an unregistered name."""
        assert AdapterRegistry().get_adapter("missing") is None

    def test_unavailable_adapter(self):
        """Test that unavailable adapters are hidden."""
        registry = AdapterRegistry()
        registry.register(UnavailableAdapter)
        assert registry.get_adapter("fake") is None
        assert registry.list_available_adapters() == []

    def test_builtin_adapters_registered(self):
        """Test the global registry."""
        names = {metadata.name for metadata in list_available_adapters()}
        assert {"lxml", "beautifulsoup"} <= names
        assert isinstance(get_adapter("lxml"), LxmlAdapter)
        assert isinstance(get_adapter("beautifulsoup"), BeautifulSoupAdapter)
        assert get_adapter("pandas") is None


class TestLxmlAdapter:
    """Test conversion to and from lxml elements."""

    def test_metadata_and_availability(self):
        """Test adapter description."""
        adapter = LxmlAdapter()
        assert adapter.metadata.name == "lxml"
        assert adapter.is_available()

    def test_to_target(self, catalog):
        """Test building an lxml tree."""
        result = LxmlAdapter().to_target(catalog)
        assert result.success
        element = result.converted_data
        assert element.tag == "catalog"
        assert element.find("book").get("id") == "1"
        assert etree.tostring(element, encoding="unicode") == catalog.xml()

    def test_text_nodes_become_text_and_tails(self):
        """Test mapping text leaves onto lxml text and tail."""
        node = Node.create("p")
        node.add_child(TextNode.create("a "))
        node.add_child(Node(name="b", text="bold"))
        node.add_child(TextNode.create(" c"))
        element = LxmlAdapter().to_target(node).converted_data
        assert element.text == "a "
        assert element[0].tail == " c"

    def test_to_target_rejects_text_node(self):
        """Test that only elements convert."""
        assert not LxmlAdapter().to_target(TextNode.create("x")).success

    def test_to_target_namespaces(self):
        """Test that prefixes resolve against in-scope declarations."""
        node = parse_xml(
            '<x:a xmlns:x="urn:x" xmlns="urn:d"><x:b x:k="1" plain="2"/><c/></x:a>'
        ).unwrap()
        result = LxmlAdapter().to_target(node)
        assert result.success
        element = result.converted_data
        assert element.tag == "{urn:x}a"
        assert element.nsmap == {"x": "urn:x", None: "urn:d"}
        assert element[0].tag == "{urn:x}b"
        assert dict(element[0].attrib) == {"{urn:x}k": "1", "plain": "2"}
        assert element[1].tag == "{urn:d}c"

        back = LxmlAdapter().from_target(element).converted_data
        assert back.to_dict() == node.to_dict()

    def test_to_target_xml_prefix(self):
        """Test the predeclared xml prefix."""
        node = Node.create("a", {"xml:lang": "en"})
        element = LxmlAdapter().to_target(node).converted_data
        assert element.get("{http://www.w3.org/XML/1998/namespace}lang") == "en"

    def test_to_target_unbound_prefix(self):
        """Test that undeclared prefixes become failed results."""
        result = LxmlAdapter().to_target(Node.create("ns:item"))
        assert not result.success
        assert "Failed to convert to lxml" in result.errors[0]
        assert "Unbound namespace prefix 'ns'" in result.errors[0]

    def test_from_target(self):
        """Test converting an lxml tree into nodes."""
        element = etree.fromstring(
            '<r xmlns:x="urn:x" x:a="1" xml:lang="en">'
            "head<x:c>t</x:c>tail<!-- skipped --><?pi skipped?>end</r>"
        )
        result = LxmlAdapter().from_target(element)
        assert result.success
        node = result.converted_data
        assert node.name == "r"
        assert node.attributes == {"xmlns:x": "urn:x", "x:a": "1", "xml:lang": "en"}
        assert node.text == "headtailend"
        assert [child.name for child in node.children] == ["x:c"]
        assert node.first_child().text == "t"
        assert node.first_child().parent is node

    def test_from_target_default_namespace(self):
        """Test that default namespaces are declared once."""
        element = etree.fromstring('<r xmlns="urn:d"><c/></r>')
        node = LxmlAdapter().from_target(element).converted_data
        assert node.xml() == '<r xmlns="urn:d"><c/></r>'

    def test_from_target_element_tree(self):
        """Test ElementTree input."""
        tree = etree.ElementTree(etree.fromstring("<a><b/></a>"))
        assert LxmlAdapter().from_target(tree).converted_data.name == "a"

    def test_from_target_invalid_data(self):
        """Test non-element input."""
        result = LxmlAdapter().from_target("<a/>")
        assert not result.success

    def test_round_trip(self, catalog):
        """Test that converting there and back preserves structure."""
        adapter = LxmlAdapter()
        element = adapter.to_target(catalog).converted_data
        assert adapter.from_target(element).converted_data.to_dict() == catalog.to_dict()


class TestBeautifulSoupAdapter:
    """Test conversion to and from BeautifulSoup."""

    def test_metadata_and_availability(self):
        """Test adapter description."""
        adapter = BeautifulSoupAdapter()
        assert adapter.metadata.target_library == "beautifulsoup4"
        assert adapter.is_available()

    def test_to_target(self, catalog):
        """Test building a soup."""
        result = BeautifulSoupAdapter().to_target(catalog)
        assert result.success
        soup = result.converted_data
        assert soup.find("title").get_text() == "XML"
        assert soup.find("book")["id"] == "1"

    def test_from_target_soup(self, catalog):
        """Test converting a whole soup."""
        soup = BeautifulSoup(catalog.xml(), "xml")
        result = BeautifulSoupAdapter().from_target(soup)
        assert result.success
        assert result.converted_data.to_dict() == catalog.to_dict()

    def test_from_target_tag(self, catalog):
        """Test converting a single tag."""
        soup = BeautifulSoup(catalog.xml(), "xml")
        node = BeautifulSoupAdapter().from_target(soup.find("book")).converted_data
        assert node.name == "book"
        assert node.child_named("title").text == "XML"

    def test_from_target_html(self):
        """Test HTML soups with a lenient adapter."""
        soup = BeautifulSoup("<p>a<br>b</p>", "html.parser")
        result = BeautifulSoupAdapter(html_mode=True).from_target(soup)
        assert result.success
        assert result.converted_data.text == "ab"

    def test_from_target_invalid_data(self):
        """Test input that is not a soup."""
        result = BeautifulSoupAdapter().from_target(42)
        assert not result.success
        assert "not a BeautifulSoup object" in result.errors[0]

    def test_from_target_parse_failure(self):
        """Test soups whose markup is not a single document."""
        soup = BeautifulSoup("<p>a</p><p>b</p>", "html.parser")
        result = BeautifulSoupAdapter().from_target(soup)
        assert not result.success
        assert "Failed to convert from BeautifulSoup" in result.errors[0]
