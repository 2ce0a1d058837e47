"""XML 1.0 character validity checks."""

import re
from typing import Optional, Tuple

from xml_node_tree.shared.errors import EncodingError

# Complement of the XML 1.0 ``Char`` production
_INVALID_XML_CHAR = re.compile(
    "[^\t\n\r\u0020-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]"
)


def find_invalid_character(text: str) -> Optional[int]:
    """Return the offset of the first character not allowed in XML 1.0."""
    match = _INVALID_XML_CHAR.search(text)
    return match.start() if match else None


def line_and_column(text: str, offset: int) -> Tuple[int, int]:
    """Translate a character offset into a 1-based line and 0-based column."""
    line = text.count("\n", 0, offset) + 1
    column = offset - (text.rfind("\n", 0, offset) + 1)
    return line, column


def check_xml_characters(text: str) -> None:
    """Raise ``EncodingError`` if ``text`` holds characters invalid in XML 1.0.

    Args:
        text: Decoded document text

    Raises:
        EncodingError: For the first invalid code point found
    """
    offset = find_invalid_character(text)
    if offset is None:
        return
    line, column = line_and_column(text, offset)
    raise EncodingError(
        f"Invalid XML character U+{ord(text[offset]):04X} at offset {offset}",
        line=line,
        column=column,
    )


def strip_invalid_characters(text: str) -> Tuple[str, int]:
    """Remove characters invalid in XML 1.0.

    Returns:
        The cleaned text and the number of characters removed
    """
    return _INVALID_XML_CHAR.subn("", text)


_NAME_START_CHARS = (
    ":A-Z_a-z\xc0-\xd6\xd8-\xf6\xf8-\u02ff\u0370-\u037d\u037f-\u1fff"
    "\u200c-\u200d\u2070-\u218f\u2c00-\u2fef\u3001-\ud7ff\uf900-\ufdcf"
    "\ufdf0-\ufffd\U00010000-\U000effff"
)

# XML 1.0 ``Name`` production
_XML_NAME = re.compile(
    f"[{_NAME_START_CHARS}][{_NAME_START_CHARS}\\-.0-9\xb7\u0300-\u036f\u203f-\u2040]*"
)


def is_xml_name(name: str) -> bool:
    """Return True if ``name`` can be used as an element or attribute name."""
    return _XML_NAME.fullmatch(name) is not None
