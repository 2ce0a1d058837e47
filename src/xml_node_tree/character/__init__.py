"""Character processing layer: decoding and XML 1.0 character checks."""

from .encoding import DecodedText, DetectionMethod, EncodingDetector, decode_document
from .validation import (
    check_xml_characters,
    find_invalid_character,
    is_xml_name,
    line_and_column,
    strip_invalid_characters,
)

__all__ = [
    "DecodedText",
    "DetectionMethod",
    "EncodingDetector",
    "check_xml_characters",
    "decode_document",
    "find_invalid_character",
    "is_xml_name",
    "line_and_column",
    "strip_invalid_characters",
]
