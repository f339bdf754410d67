"""
Decode attempts and diagnostics produced by the spec blob decoder.

Every hypothesis the decoder tries is recorded as an immutable
``DecodeAttempt``; the four attempts for one buffer form an ``AttemptSet``.
Diagnostics exist for troubleshooting only: rendering never depends on them.

Tags:
    decoding, diagnostics, speclens

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


class EncodingFamily(str, Enum):
    PLAIN = "plain"
    CONTAINER = "container"


class ByteOrder(str, Enum):
    LITTLE = "little"
    BIG = "big"


class DecodeStatus(str, Enum):
    """Outcome of one decode hypothesis.

    Attributes:
        SUCCESS: Layout matched and the payload was unpacked
        FORMAT_MISMATCH: Header bytes failed the magic/shape check
        TRUNCATED: Declared length exceeds the available bytes
        ERROR: The strategy raised while unpacking
        NOT_ATTEMPTED: Sentinel for hypotheses never evaluated
    """

    SUCCESS = "success"
    FORMAT_MISMATCH = "format_mismatch"
    TRUNCATED = "truncated"
    ERROR = "error"
    NOT_ATTEMPTED = "not_attempted"


class PayloadSource(str, Enum):
    RAW = "raw"
    DECOMPRESSED = "decompressed"


@dataclass(frozen=True)
class DecodeAttempt:
    """One decode hypothesis and its outcome."""

    family: EncodingFamily
    byte_order: ByteOrder
    status: DecodeStatus = DecodeStatus.NOT_ATTEMPTED
    unpacked_length: int = 0
    looks_like_spec: bool = False
    error: str | None = None
    # Container family only
    code_page: int | None = None
    os_type: int | None = None

    @classmethod
    def empty(cls, family: EncodingFamily, byte_order: ByteOrder) -> DecodeAttempt:
        """The "not attempted" sentinel for a hypothesis."""
        return cls(family=family, byte_order=byte_order)

    @property
    def succeeded(self) -> bool:
        return self.status is DecodeStatus.SUCCESS

    @property
    def qualifies(self) -> bool:
        """Success and the unpacked bytes look like a spec stream."""
        return self.succeeded and self.looks_like_spec

    @property
    def label(self) -> str:
        return f"{self.family.value}/{self.byte_order.value}"

    def to_dict(self) -> dict[str, Any]:
        result = {k: (v.value if isinstance(v, Enum) else v) for k, v in asdict(self).items()}
        return {k: v for k, v in result.items() if v is not None}


HYPOTHESIS_ORDER: tuple[tuple[EncodingFamily, ByteOrder], ...] = (
    (EncodingFamily.PLAIN, ByteOrder.LITTLE),
    (EncodingFamily.PLAIN, ByteOrder.BIG),
    (EncodingFamily.CONTAINER, ByteOrder.LITTLE),
    (EncodingFamily.CONTAINER, ByteOrder.BIG),
)


@dataclass(frozen=True)
class AttemptSet:
    """The four attempts for one buffer, iterated in selection priority order."""

    plain_little: DecodeAttempt
    plain_big: DecodeAttempt
    container_little: DecodeAttempt
    container_big: DecodeAttempt

    @classmethod
    def empty(cls) -> AttemptSet:
        return cls(*(DecodeAttempt.empty(family, order) for family, order in HYPOTHESIS_ORDER))

    def __iter__(self) -> Iterator[DecodeAttempt]:
        yield self.plain_little
        yield self.plain_big
        yield self.container_little
        yield self.container_big

    def first_qualifying(self) -> DecodeAttempt | None:
        return next((attempt for attempt in self if attempt.qualifies), None)

    def to_dict(self) -> dict[str, Any]:
        return {attempt.label: attempt.to_dict() for attempt in self}


@dataclass(frozen=True)
class DecodeDiagnostics:
    """Everything the decoder learned about one raw payload."""

    sequence: int
    blob_size: int
    head_hex: str
    raw_looks_like_spec: bool
    raw: AttemptSet
    decompressed: bool = False
    decompressed_size: int = 0
    decompressed_looks_like_spec: bool = False
    decompressed_attempts: AttemptSet = field(default_factory=AttemptSet.empty)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "sequence": self.sequence,
            "blob_size": self.blob_size,
            "head_hex": self.head_hex,
            "raw_looks_like_spec": self.raw_looks_like_spec,
            "raw": self.raw.to_dict(),
        }
        if self.decompressed:
            result.update(
                decompressed_size=self.decompressed_size,
                decompressed_looks_like_spec=self.decompressed_looks_like_spec,
                decompressed_attempts=self.decompressed_attempts.to_dict(),
            )
        return result


@dataclass(frozen=True)
class DecodeResult:
    """The selected payload, or a failure when no hypothesis qualified."""

    payload: bytes = b""
    attempt: DecodeAttempt | None = None
    source: PayloadSource | None = None

    @property
    def succeeded(self) -> bool:
        return self.attempt is not None

    @classmethod
    def failed(cls) -> DecodeResult:
        return cls()


@dataclass(frozen=True)
class SpecRecord:
    """One record header read from a decoded event rules stream."""

    offset: int
    length: int
    sequence: int
    record_type: int
    record_type_name: str
    event_spec_key: str
