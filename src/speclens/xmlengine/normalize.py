"""XML payload normalization and namespace-agnostic element helpers."""

from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from collections.abc import Iterator

from speclens.core.errors import SpecParseError

# NUL, byte order mark, zero-width space
_STRIP_CHARS = ("\x00", "\ufeff", "\u200b")

# str input is already decoded, so any declared encoding is dropped
_XML_DECLARATION = re.compile(r"^<\?xml[^>]*\?>")


def normalize_xml_payload(text: str) -> str:
    """Strip padding characters and anything preceding the first element.

    Spec blobs come out of fixed-width storage and can carry NUL padding, a
    BOM or zero-width spaces. Idempotent.
    """
    cleaned = text
    for char in _STRIP_CHARS:
        cleaned = cleaned.replace(char, "")
    cleaned = cleaned.lstrip()
    start = cleaned.find("<")
    if start > 0:
        cleaned = cleaned[start:]
    return cleaned


def parse_xml(text: str, *, spec_key: str | None = None) -> ET.Element:
    """Normalize and parse a spec XML payload, returning the root element."""
    try:
        return ET.fromstring(_XML_DECLARATION.sub("", normalize_xml_payload(text), count=1))
    except (ET.ParseError, ValueError) as e:
        raise SpecParseError(f"Malformed spec XML: {e}", cause=e).with_context(spec_key=spec_key) from e


def local_name(element: ET.Element) -> str:
    """Tag without its ``{namespace}`` prefix."""
    tag = element.tag
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def descendants(element: ET.Element) -> Iterator[ET.Element]:
    """All descendants in document order, excluding ``element`` itself."""
    iterator = element.iter()
    next(iterator)
    for child in iterator:
        if isinstance(child.tag, str):
            yield child


def first_descendant(element: ET.Element, name: str | None = None) -> ET.Element | None:
    """First descendant, optionally with local name ``name``."""
    for child in descendants(element):
        if name is None or local_name(child) == name:
            return child
    return None


def children(element: ET.Element, name: str | None = None) -> list[ET.Element]:
    """Direct children, optionally filtered by local name."""
    return [child for child in element if isinstance(child.tag, str) and (name is None or local_name(child) == name)]


def attr(element: ET.Element | None, name: str) -> str | None:
    """Attribute value by local name (namespaced attributes included)."""
    if element is None:
        return None
    value = element.get(name)
    if value is not None:
        return value
    for key, candidate in element.attrib.items():
        if key.rsplit("}", 1)[-1] == name:
            return candidate
    return None


def text_content(element: ET.Element) -> str:
    """Concatenated text of the element and its descendants."""
    return "".join(element.itertext())


__all__ = [
    "attr",
    "children",
    "descendants",
    "first_descendant",
    "local_name",
    "normalize_xml_payload",
    "parse_xml",
    "text_content",
]
