"""
Pure formatting and qualifier helpers used by the readable renderer.

Every function here is total and side-effect free so it can be tested (and
reused by another renderer) on its own.

Examples:
    >>> format_file_io_operation(" fetch_single ")
    'FetchSingle'
    >>> format_business_function_param_line("INOUT", "A", "B")
    'A <-> B'
    >>> split_qualifier("BF Test")
    ('BF', 'Test')
"""

from __future__ import annotations

import xml.etree.ElementTree as ET

from speclens.xmlengine.normalize import descendants, local_name, text_content

QUALIFIER_TOKENS = frozenset({"BF", "VA", "SV", "CO"})

FILE_IO_OPERATIONS = {
    "FETCH_SINGLE": "FetchSingle",
    "FETCH_NEXT": "FetchNext",
    "SELECT": "Select",
    "DELETE": "Delete",
    "UPDATE": "Update",
    "INSERT": "Insert",
}

INDENT_GUIDE = "|   "


def format_file_io_operation(raw: str | None) -> str:
    """Readable name of a file I/O operation token."""
    if raw is None or not raw.strip():
        return "Operation"
    trimmed = raw.strip()
    return FILE_IO_OPERATIONS.get(trimmed.upper(), trimmed.replace("_", ""))


def format_literal_value(literal: ET.Element) -> str:
    """Render a literal operand element.

    A ``LiteralString`` child is double-quoted, any other ``Literal*`` child
    (``LiteralNumeric``, ...) is returned raw, and without one the element's
    own text is used.
    """
    for child in descendants(literal):
        name = local_name(child)
        if name.lower().startswith("literal"):
            value = text_content(child).strip()
            if name.lower() == "literalstring":
                return f'"{value}"'
            return value
    return text_content(literal).strip()


def _direction(copy_word: str | None) -> str:
    return copy_word.strip().upper() if copy_word else ""


def format_file_io_param_line(copy_word: str | None, left: str, right: str) -> str:
    """``OUT`` → ``L <- R``, ``IN`` → ``L -> R``, anything else ``L = R``."""
    direction = _direction(copy_word)
    if direction == "OUT":
        return f"{left} <- {right}"
    if direction == "IN":
        return f"{left} -> {right}"
    return f"{left} = {right}"


def format_business_function_param_line(copy_word: str | None, left: str, right: str) -> str:
    """``OUT`` → ``L <- R``, ``INOUT`` → ``L <-> R``, anything else ``L -> R``."""
    direction = _direction(copy_word)
    if direction == "OUT":
        return f"{left} <- {right}"
    if direction == "INOUT":
        return f"{left} <-> {right}"
    return f"{left} -> {right}"


def split_qualifier(text: str | None) -> tuple[str | None, str]:
    """Split a leading BF/VA/SV/CO qualifier off ``text``.

    Returns ``(qualifier, remainder)``; the qualifier is upper-cased, and
    ``(None, text)`` comes back when the first token is not a qualifier.
    """
    trimmed = (text or "").strip()
    if not trimmed:
        return None, ""
    parts = trimmed.split(None, 1)
    if len(parts) < 2 or parts[0].upper() not in QUALIFIER_TOKENS:
        return None, trimmed
    return parts[0].upper(), parts[1].strip()


def prefix_qualifier(qualifier: str | None, value: str) -> str:
    if qualifier is None or not qualifier.strip():
        return value
    return f"{qualifier} {value}"


def apply_qualifier(fallback: str, resolved: str | None) -> str | None:
    """Carry the qualifier of ``fallback`` over to a resolved display name.

    Returns ``resolved`` unchanged when it is blank or ``fallback`` has no
    qualifier.
    """
    if resolved is None or not resolved.strip():
        return resolved
    qualifier, _ = split_qualifier(fallback)
    return prefix_qualifier(qualifier, resolved)


def indent_line(text: str, level: int) -> str:
    """Prefix ``level`` tab characters; non-positive levels leave the text alone."""
    if level <= 0:
        return text
    return "\t" * level + text


def apply_indent_guides(text: str, guide: str = INDENT_GUIDE) -> str:
    """Replace each leading tab of every line with ``guide``."""
    if not text:
        return text
    lines = []
    for line in text.split("\n"):
        stripped = line.lstrip("\t")
        tabs = len(line) - len(stripped)
        lines.append(guide * tabs + stripped if tabs else line)
    return "\n".join(lines)


__all__ = [
    "FILE_IO_OPERATIONS",
    "INDENT_GUIDE",
    "QUALIFIER_TOKENS",
    "apply_indent_guides",
    "apply_qualifier",
    "format_business_function_param_line",
    "format_file_io_operation",
    "format_file_io_param_line",
    "format_literal_value",
    "indent_line",
    "prefix_qualifier",
    "split_qualifier",
]
