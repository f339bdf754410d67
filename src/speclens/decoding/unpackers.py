"""
Default byte-layout strategies for the two encoding families.

Both layouts are replaceable: ``SpecBlobDecoder`` accepts any
``SpecUnpacker`` per family.

Plain (length-prefixed)::

    uint32 payload length | payload

Versioned container::

    b"B733" | uint32 code page | int32 OS type | uint32 payload length | payload

Numeric fields are read in the byte order of the hypothesis under test.
"""

from __future__ import annotations

from speclens.core.protocols import UnpackOutcome
from speclens.models import ByteOrder, DecodeStatus

CONTAINER_MAGIC = b"B733"


def _u32(buffer: bytes, offset: int, byte_order: ByteOrder, *, signed: bool = False) -> int:
    return int.from_bytes(buffer[offset : offset + 4], byte_order.value, signed=signed)


class LengthPrefixedUnpacker:
    """Plain family: a 4-byte declared length followed by the spec stream."""

    prefix_size = 4

    def unpack(self, buffer: bytes, byte_order: ByteOrder) -> UnpackOutcome:
        if len(buffer) < self.prefix_size:
            return UnpackOutcome(DecodeStatus.FORMAT_MISMATCH, error="buffer shorter than length prefix")

        declared = _u32(buffer, 0, byte_order)
        if declared == 0:
            return UnpackOutcome(DecodeStatus.FORMAT_MISMATCH, error="declared length is zero")

        available = len(buffer) - self.prefix_size
        if declared > available:
            return UnpackOutcome(
                DecodeStatus.TRUNCATED,
                error=f"declared length {declared} exceeds {available} available bytes",
            )

        start = self.prefix_size
        return UnpackOutcome(DecodeStatus.SUCCESS, payload=bytes(buffer[start : start + declared]))


class VersionedContainerUnpacker:
    """Container family: magic-tagged envelope carrying code page and OS type."""

    magic = CONTAINER_MAGIC
    header_size = len(CONTAINER_MAGIC) + 12

    def unpack(self, buffer: bytes, byte_order: ByteOrder) -> UnpackOutcome:
        if not buffer.startswith(self.magic):
            return UnpackOutcome(DecodeStatus.FORMAT_MISMATCH, error="container magic not found")

        if len(buffer) < self.header_size:
            return UnpackOutcome(DecodeStatus.TRUNCATED, error="container header incomplete")

        base = len(self.magic)
        code_page = _u32(buffer, base, byte_order)
        os_type = _u32(buffer, base + 4, byte_order, signed=True)
        declared = _u32(buffer, base + 8, byte_order)

        available = len(buffer) - self.header_size
        if declared > available:
            return UnpackOutcome(
                DecodeStatus.TRUNCATED,
                error=f"declared length {declared} exceeds {available} available bytes",
                code_page=code_page,
                os_type=os_type,
            )
        if declared == 0:
            return UnpackOutcome(
                DecodeStatus.FORMAT_MISMATCH,
                error="container payload is empty",
                code_page=code_page,
                os_type=os_type,
            )

        return UnpackOutcome(
            DecodeStatus.SUCCESS,
            payload=bytes(buffer[self.header_size : self.header_size + declared]),
            code_page=code_page,
            os_type=os_type,
        )


__all__ = ["CONTAINER_MAGIC", "LengthPrefixedUnpacker", "VersionedContainerUnpacker"]
