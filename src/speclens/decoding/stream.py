"""
Event rules spec stream: header heuristic and record reader.

A decoded event rules stream is either a single record or a multi-record
envelope. Record header::

    record length   4 or 8 bytes
    format word     4 bytes
    event spec key  37 chars, UTF-16 or single-byte, contains '-'
    sequence        uint16
    record type     int16, low byte in 1..40

Multi-record envelope::

    total length    4 or 8 bytes
    event spec key  37 chars
    record count    int32 in 1..200000
    records...      each starting with its own record length

``looks_like_spec`` accepts a buffer when either shape matches under either
byte order.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from speclens.models import ByteOrder, SpecRecord

EVENT_SPEC_KEY_CHARS = 37
FORMAT_SIZE = 4
SEQUENCE_SIZE = 2
RECORD_TYPE_SIZE = 2
COUNT_SIZE = 4
MAX_RECORD_COUNT = 200_000
MAX_BASE_RECORD_TYPE = 40

SIZE_LENGTH_CANDIDATES = (4, 8)
CHAR_SIZE_CANDIDATES = (2, 1)


class RecordType(IntEnum):
    """Base record types (low byte of the record type word)."""

    EVENT = 1
    BUSINESS_FUNCTION = 2
    WHILE = 3
    END_WHILE = 4
    IF = 5
    ELSE = 6
    END_IF = 7
    COMMENT = 9
    ASSIGN = 12
    SYSTEM_FUNCTION = 14
    FORM_INTERCONNECT = 15
    OPTIONS = 16
    NAMED_EVENT_RULE = 17
    VARIABLE = 18
    REPORT_INTERCONNECT = 19
    FILE_IO = 20
    ELSE_IF = 23


def record_type_name(record_type: int) -> str:
    try:
        return RecordType(record_type).name
    except ValueError:
        return f"TYPE {record_type}"


@dataclass(frozen=True)
class _RecordHeader:
    size_length: int
    char_size: int
    record_length: int
    event_spec_key: str
    sequence: int
    record_type: int


def _read_int(buffer: bytes, offset: int, size: int, byte_order: ByteOrder, *, signed: bool = True) -> int | None:
    if offset < 0 or offset + size > len(buffer):
        return None
    return int.from_bytes(buffer[offset : offset + size], byte_order.value, signed=signed)


def _read_fixed_string(buffer: bytes, offset: int, char_count: int, char_size: int, byte_order: ByteOrder) -> str:
    if offset < 0 or offset >= len(buffer) or char_count <= 0:
        return ""
    chunk = buffer[offset : offset + char_count * char_size]
    if char_size == 1:
        text = chunk.decode("ascii", errors="replace")
    else:
        if len(chunk) % 2:
            chunk = chunk[:-1]
        text = chunk.decode("utf-16-le" if byte_order is ByteOrder.LITTLE else "utf-16-be", errors="ignore")
    return text.rstrip("\x00 ")


def _valid_event_spec_key(value: str) -> bool:
    return bool(value.strip()) and "-" in value.strip()


def _read_record_header(buffer: bytes, size_length: int, char_size: int, byte_order: ByteOrder) -> _RecordHeader | None:
    key_bytes = EVENT_SPEC_KEY_CHARS * char_size
    header_size = size_length + FORMAT_SIZE + key_bytes + SEQUENCE_SIZE + RECORD_TYPE_SIZE
    if len(buffer) < header_size:
        return None

    record_length = _read_int(buffer, 0, size_length, byte_order)
    if record_length is None or record_length <= 0 or record_length > len(buffer):
        return None

    key_offset = size_length + FORMAT_SIZE
    sequence_offset = key_offset + key_bytes
    type_offset = sequence_offset + SEQUENCE_SIZE

    record_type = _read_int(buffer, type_offset, RECORD_TYPE_SIZE, byte_order)
    if record_type is None:
        return None
    base_type = record_type & 0xFF
    if base_type <= 0 or base_type > MAX_BASE_RECORD_TYPE:
        return None

    event_spec_key = _read_fixed_string(buffer, key_offset, EVENT_SPEC_KEY_CHARS, char_size, byte_order)
    if not _valid_event_spec_key(event_spec_key):
        return None

    sequence = _read_int(buffer, sequence_offset, SEQUENCE_SIZE, byte_order, signed=False) or 0
    return _RecordHeader(
        size_length=size_length,
        char_size=char_size,
        record_length=record_length,
        event_spec_key=event_spec_key.strip(),
        sequence=sequence,
        record_type=base_type,
    )


def _find_record_header(buffer: bytes, byte_order: ByteOrder) -> _RecordHeader | None:
    for size_length in SIZE_LENGTH_CANDIDATES:
        for char_size in CHAR_SIZE_CANDIDATES:
            header = _read_record_header(buffer, size_length, char_size, byte_order)
            if header is not None:
                return header
    return None


def _find_multi_header(buffer: bytes, byte_order: ByteOrder) -> tuple[int, int, int] | None:
    """Return (record_count, records_offset, size_length) for a multi-record envelope."""
    for size_length in SIZE_LENGTH_CANDIDATES:
        for char_size in CHAR_SIZE_CANDIDATES:
            key_bytes = EVENT_SPEC_KEY_CHARS * char_size
            header_size = size_length + key_bytes + COUNT_SIZE
            if len(buffer) < header_size:
                continue
            total_length = _read_int(buffer, 0, size_length, byte_order)
            if total_length is None or total_length <= 0 or total_length > len(buffer):
                continue
            key = _read_fixed_string(buffer, size_length, EVENT_SPEC_KEY_CHARS, char_size, byte_order)
            if not _valid_event_spec_key(key):
                continue
            count = _read_int(buffer, size_length + key_bytes, COUNT_SIZE, byte_order)
            if count is None or count <= 0 or count > MAX_RECORD_COUNT:
                continue
            return count, header_size, size_length
    return None


def looks_like_spec(buffer: bytes, byte_order: ByteOrder | None = None) -> bool:
    """Heuristic: does ``buffer`` begin with an event rules record or envelope header?

    With ``byte_order=None`` both byte orders are tried, little endian first.
    """
    if not buffer:
        return False
    orders = (byte_order,) if byte_order is not None else (ByteOrder.LITTLE, ByteOrder.BIG)
    for order in orders:
        if _find_record_header(buffer, order) is not None:
            return True
        if _find_multi_header(buffer, order) is not None:
            return True
    return False


def _to_record(header: _RecordHeader, offset: int, fallback_sequence: int) -> SpecRecord:
    return SpecRecord(
        offset=offset,
        length=header.record_length,
        sequence=header.sequence or fallback_sequence,
        record_type=header.record_type,
        record_type_name=record_type_name(header.record_type),
        event_spec_key=header.event_spec_key,
    )


def read_spec_records(
    payload: bytes,
    byte_order: ByteOrder = ByteOrder.LITTLE,
    *,
    fallback_sequence: int = 0,
) -> list[SpecRecord]:
    """List the records of a decoded event rules stream.

    A multi-record envelope is walked record by record; a record length that
    runs past the buffer abandons the walk and the buffer is read as a single
    record instead. Records whose header does not parse are skipped.
    Returns an empty list when nothing parses.
    """
    multi = _find_multi_header(payload, byte_order)
    if multi is not None:
        count, cursor, size_length = multi
        records: list[SpecRecord] = []
        for _ in range(count):
            length = _read_int(payload, cursor, size_length, byte_order)
            if length is None or length <= 0 or length > len(payload) - cursor:
                records = []
                break
            header = _find_record_header(payload[cursor : cursor + length], byte_order)
            if header is not None:
                records.append(_to_record(header, cursor, fallback_sequence))
            cursor += length
        if records:
            return records

    header = _find_record_header(payload, byte_order)
    if header is None:
        return []
    return [_to_record(header, 0, fallback_sequence)]


__all__ = [
    "EVENT_SPEC_KEY_CHARS",
    "RecordType",
    "looks_like_spec",
    "read_spec_records",
    "record_type_name",
]
