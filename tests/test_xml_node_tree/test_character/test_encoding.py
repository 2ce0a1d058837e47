"""Tests for document decoding and encoding detection."""

import codecs

import pytest

from xml_node_tree.character import (
    DecodedText,
    DetectionMethod,
    EncodingDetector,
    decode_document,
)
from xml_node_tree.shared import EncodingError


class TestEncodingDetector:
    """Test BOM and declaration detection."""

    @pytest.mark.parametrize(
        "bom, expected",
        [
            (codecs.BOM_UTF8, "utf-8"),
            (codecs.BOM_UTF16_LE, "utf-16-le"),
            (codecs.BOM_UTF16_BE, "utf-16-be"),
            (codecs.BOM_UTF32_LE, "utf-32-le"),
            (codecs.BOM_UTF32_BE, "utf-32-be"),
        ],
    )
    def test_detect_bom(self, bom, expected):
        """Test each supported byte order mark."""
        assert EncodingDetector().detect_bom(bom + b"<a/>") == (expected, len(bom))

    def test_detect_bom_absent(self):
        """Test input without BOM."""
        assert EncodingDetector().detect_bom(b"<a/>") is None

    def test_detect_xml_declaration(self):
        """Test encoding from the XML declaration, canonicalized."""
        data = b'<?xml version="1.0" encoding="ISO-8859-1"?><a/>'
        assert EncodingDetector().detect_declared(data, html_mode=False) == "iso8859-1"

    def test_detect_html_meta_charset(self):
        """Test encoding from a meta charset in HTML mode."""
        data = b'<html><head><meta charset="windows-1252"></head></html>'
        assert EncodingDetector().detect_declared(data, html_mode=True) == "cp1252"

    def test_meta_ignored_in_xml_mode(self):
        """Test that XML mode only reads the XML declaration."""
        data = b'<html><meta charset="windows-1252"/></html>'
        assert EncodingDetector().detect_declared(data, html_mode=False) is None

    def test_unknown_declared_encoding_raises(self):
        """Test an unknown declared encoding."""
        data = b'<?xml version="1.0" encoding="klingon-8"?><a/>'
        with pytest.raises(EncodingError, match="klingon-8"):
            EncodingDetector().detect_declared(data, html_mode=False)


class TestDecodeDocument:
    """Test the decoding pipeline."""

    def test_text_input_passes_through(self):
        """Test that str input is returned as is."""
        decoded = decode_document("<a/>")
        assert isinstance(decoded, DecodedText)
        assert decoded.text == "<a/>"
        assert decoded.method is DetectionMethod.NONE

    def test_text_input_bom_is_stripped(self):
        """Test that a leading BOM character is removed from str input."""
        bom = codecs.BOM_UTF8.decode("utf-8")
        assert decode_document(bom + "<a/>").text == "<a/>"

    def test_utf8_bytes(self):
        """Test plain UTF-8 bytes."""
        decoded = decode_document("<a>café</a>".encode("utf-8"))
        assert decoded.text == "<a>café</a>"
        assert decoded.encoding == "utf-8"
        assert decoded.method is DetectionMethod.UTF8_VALIDATION

    def test_utf16_bom(self):
        """Test UTF-16 input with BOM."""
        data = codecs.BOM_UTF16_LE + "<a>ü</a>".encode("utf-16-le")
        decoded = decode_document(data)
        assert decoded.text == "<a>ü</a>"
        assert decoded.method is DetectionMethod.BOM

    def test_declared_latin1(self):
        """Test decoding through the declared encoding."""
        data = '<?xml version="1.0" encoding="latin-1"?><a>é</a>'.encode("latin-1")
        decoded = decode_document(data)
        assert decoded.text.endswith("<a>é</a>")
        assert decoded.method is DetectionMethod.DECLARATION

    def test_bytearray_accepted(self):
        """Test bytearray input."""
        assert decode_document(bytearray(b"<a/>")).text == "<a/>"

    def test_invalid_utf8_raises_in_xml_mode(self):
        """Test that XML mode never guesses."""
        with pytest.raises(EncodingError, match="not valid UTF-8"):
            decode_document(b"<a>\xff\xfe\xfa</a>")

    def test_invalid_utf8_falls_back_in_html_mode(self):
        """Test the HTML fallback encoding."""
        decoded = decode_document("<p>é</p>".encode("cp1252"), html_mode=True)
        assert decoded.text == "<p>é</p>"
        assert decoded.method is DetectionMethod.FALLBACK
        assert decoded.encoding == "cp1252"

    def test_undecodable_declared_bytes_replaced_in_html_mode(self):
        """Test that HTML mode replaces undecodable bytes and records an issue."""
        data = b'<meta charset="utf-8"><p>\xff</p>'
        decoded = decode_document(data, html_mode=True)
        assert "<p>" in decoded.text
        assert decoded.issues

    def test_undecodable_declared_bytes_raise_in_xml_mode(self):
        """Test strict decoding of the declared encoding."""
        data = b'<?xml version="1.0" encoding="utf-8"?><a>\xff</a>'
        with pytest.raises(EncodingError):
            decode_document(data)

    def test_unsupported_type_raises(self):
        """Test non-text input."""
        with pytest.raises(TypeError):
            decode_document(42)  # type: ignore[arg-type]
