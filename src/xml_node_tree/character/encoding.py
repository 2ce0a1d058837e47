"""Input decoding with BOM, declaration and fallback detection.

Detection runs in sequence: byte order mark, declared encoding (the XML
declaration, or a ``<meta charset>`` in HTML mode), strict UTF-8, and in HTML
mode a final fallback encoding. XML mode never guesses: bytes that are not
valid in the detected encoding raise ``EncodingError``.
"""

import codecs
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, List, Optional, Tuple, Union

from xml_node_tree.shared.errors import EncodingError

# Only the head of a document is searched for declarations
DECLARATION_SCAN_BYTES = 1024

BOM_CHARACTER = "\ufeff"


class DetectionMethod(Enum):
    """How the encoding of a document was determined."""

    NONE = "none"  # input was already text
    BOM = "bom"
    DECLARATION = "declaration"
    UTF8_VALIDATION = "utf8_validation"
    FALLBACK = "fallback"


@dataclass
class DecodedText:
    """Decoded document text with detection metadata.

    Attributes:
        text: The decoded text, without byte order mark
        encoding: Canonical codec name used for decoding
        method: Detection method that chose the encoding
        issues: Problems tolerated while decoding (HTML mode only)
    """

    text: str
    encoding: str
    method: DetectionMethod
    issues: List[str] = field(default_factory=list)


class EncodingDetector:
    """Determine the encoding of raw document bytes."""

    # Longest patterns first so UTF-32 wins over UTF-16
    BOM_PATTERNS: ClassVar[List[Tuple[bytes, str]]] = [
        (codecs.BOM_UTF32_LE, "utf-32-le"),
        (codecs.BOM_UTF32_BE, "utf-32-be"),
        (codecs.BOM_UTF8, "utf-8"),
        (codecs.BOM_UTF16_LE, "utf-16-le"),
        (codecs.BOM_UTF16_BE, "utf-16-be"),
    ]

    XML_DECLARATION_PATTERN = re.compile(
        rb'^\s*<\?xml\s[^>]*?encoding\s*=\s*["\']([A-Za-z0-9._:-]+)["\']'
    )
    HTML_META_PATTERN = re.compile(
        rb'<meta\s[^>]*?charset\s*=\s*["\']?([A-Za-z0-9._:-]+)', re.IGNORECASE
    )

    def detect_bom(self, data: bytes) -> Optional[Tuple[str, int]]:
        """Return the encoding and BOM length if ``data`` starts with a BOM."""
        for bom, encoding in self.BOM_PATTERNS:
            if data.startswith(bom):
                return encoding, len(bom)
        return None

    def detect_declared(self, data: bytes, html_mode: bool) -> Optional[str]:
        """Return the encoding declared inside the document head, if any.

        Raises:
            EncodingError: If the declared encoding is unknown
        """
        head = data[:DECLARATION_SCAN_BYTES]
        pattern = self.HTML_META_PATTERN if html_mode else self.XML_DECLARATION_PATTERN
        match = pattern.search(head)
        if not match:
            return None
        declared = match.group(1).decode("ascii")
        try:
            return codecs.lookup(declared).name
        except LookupError as e:
            raise EncodingError(f"Unknown declared encoding: {declared}") from e


def decode_document(
    data: Union[str, bytes],
    html_mode: bool = False,
    fallback_encoding: str = "cp1252",
) -> DecodedText:
    """Decode raw input into document text.

    Args:
        data: Document as text or bytes
        html_mode: Apply HTML detection rules and tolerate undecodable bytes
        fallback_encoding: Encoding tried last in HTML mode

    Returns:
        DecodedText holding the text and how its encoding was found

    Raises:
        EncodingError: If the input cannot be decoded in XML mode
        TypeError: If ``data`` is neither str nor bytes
    """
    if isinstance(data, str):
        return DecodedText(_strip_bom(data), "utf-8", DetectionMethod.NONE)
    if not isinstance(data, (bytes, bytearray)):
        raise TypeError(f"Cannot decode input of type {type(data).__name__}")

    data = bytes(data)
    detector = EncodingDetector()

    bom = detector.detect_bom(data)
    if bom is not None:
        encoding, bom_length = bom
        return _decode_strict(
            data[bom_length:], encoding, DetectionMethod.BOM, html_mode
        )

    declared = detector.detect_declared(data, html_mode)
    if declared is not None:
        return _decode_strict(data, declared, DetectionMethod.DECLARATION, html_mode)

    try:
        return DecodedText(
            data.decode("utf-8"), "utf-8", DetectionMethod.UTF8_VALIDATION
        )
    except UnicodeDecodeError as e:
        if not html_mode:
            raise EncodingError(
                f"Input is not valid UTF-8 and declares no encoding: {e.reason} "
                f"at byte {e.start}"
            ) from e

    return _decode_strict(
        data, codecs.lookup(fallback_encoding).name, DetectionMethod.FALLBACK, True
    )


def _decode_strict(
    data: bytes, encoding: str, method: DetectionMethod, html_mode: bool
) -> DecodedText:
    try:
        return DecodedText(_strip_bom(data.decode(encoding)), encoding, method)
    except UnicodeDecodeError as e:
        if not html_mode:
            raise EncodingError(
                f"Input is not valid {encoding}: {e.reason} at byte {e.start}"
            ) from e
        text = data.decode(encoding, errors="replace")
        return DecodedText(
            _strip_bom(text),
            encoding,
            method,
            issues=[f"Undecodable bytes replaced while decoding as {encoding}"],
        )


def _strip_bom(text: str) -> str:
    return text[1:] if text.startswith(BOM_CHARACTER) else text
