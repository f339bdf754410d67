"""
Spec Blob Decoder - multi-hypothesis decoding of raw spec payloads.

Manifesto:
    Spec blobs arrive in one of several undocumented encodings. Rather than
    nest try/except around unpack routines, the decoder evaluates an ordered
    list of hypotheses, each a pure function returning a tagged outcome, and
    folds over them with a fixed priority:

    - **Ordered:** plain/little, plain/big, container/little, container/big
    - **Canonical first:** decompressed attempts beat raw attempts
    - **Never raises:** malformed input is a failed result plus diagnostics
    - **Fully diagnosable:** every attempt is recorded, winner or not

Architecture:
    ::

        decode(raw)
          ├── raw AttemptSet          (4 hypotheses)
          ├── decompress? (deflate, zlib; size capped)
          │     └── decompressed AttemptSet (4 hypotheses)
          └── select: decompressed.first_qualifying()
                      or raw.first_qualifying()
                      or DecodeResult.failed()

Examples:
    >>> decoder = SpecBlobDecoder()
    >>> result, diagnostics = decoder.decode(blob, sequence=3)
    >>> result.succeeded, result.attempt.label
    (True, 'plain/little')
    >>> diagnostics.head_hex[:11]
    '1A 00 00 00'

Tags:
    decoding, heuristics, diagnostics, zlib, speclens

Doc-Types:
    - API Reference
    - Technical Design
"""

from __future__ import annotations

import zlib

from speclens.core.errors import ValidationError
from speclens.core.logging import get_logger
from speclens.core.protocols import SpecUnpacker, UnpackOutcome
from speclens.core.settings import get_settings
from speclens.decoding.stream import looks_like_spec
from speclens.decoding.unpackers import LengthPrefixedUnpacker, VersionedContainerUnpacker
from speclens.models import (
    AttemptSet,
    ByteOrder,
    DecodeAttempt,
    DecodeDiagnostics,
    DecodeResult,
    DecodeStatus,
    EncodingFamily,
    PayloadSource,
)
from speclens.models.diagnostics import HYPOTHESIS_ORDER

logger = get_logger(__name__)

# raw deflate first, then zlib-wrapped
_DECOMPRESS_WBITS = (-15, 15)


def to_hex(data: bytes, max_bytes: int) -> str:
    """Space separated upper-case hex of the first ``max_bytes`` bytes."""
    return " ".join(f"{byte:02X}" for byte in data[:max_bytes])


def try_decompress(data: bytes, max_bytes: int) -> bytes | None:
    """Inflate ``data`` as raw deflate or zlib; ``None`` when neither fits.

    Output larger than ``max_bytes`` or a stream that does not end cleanly
    counts as "not compressed".
    """
    if not data:
        return None
    for wbits in _DECOMPRESS_WBITS:
        inflater = zlib.decompressobj(wbits)
        try:
            output = inflater.decompress(data, max_bytes + 1)
        except zlib.error:
            continue
        if not inflater.eof or not output or len(output) > max_bytes:
            continue
        return output
    return None


class SpecBlobDecoder:
    """Evaluate decode hypotheses over a raw spec blob.

    Args:
        plain: Strategy for the plain (length-prefixed) family
        container: Strategy for the versioned-container family
        head_hex_bytes: Bytes captured in ``DecodeDiagnostics.head_hex``
        max_unpacked_bytes: Upper bound for decompressed output
    """

    def __init__(
        self,
        *,
        plain: SpecUnpacker | None = None,
        container: SpecUnpacker | None = None,
        head_hex_bytes: int | None = None,
        max_unpacked_bytes: int | None = None,
    ):
        settings = get_settings()
        self._strategies: dict[EncodingFamily, SpecUnpacker] = {
            EncodingFamily.PLAIN: plain or LengthPrefixedUnpacker(),
            EncodingFamily.CONTAINER: container or VersionedContainerUnpacker(),
        }
        self.head_hex_bytes = settings.decode_head_hex_bytes if head_hex_bytes is None else head_hex_bytes
        self.max_unpacked_bytes = (
            settings.decode_max_unpacked_bytes if max_unpacked_bytes is None else max_unpacked_bytes
        )

    # =========================================================================
    # HYPOTHESES
    # =========================================================================

    def attempt(self, buffer: bytes, family: EncodingFamily, byte_order: ByteOrder) -> DecodeAttempt:
        """Evaluate one hypothesis. Never raises."""
        return self._evaluate(buffer, family, byte_order)[0]

    def _evaluate(self, buffer: bytes, family: EncodingFamily, byte_order: ByteOrder) -> tuple[DecodeAttempt, bytes]:
        try:
            outcome = self._strategies[family].unpack(buffer, byte_order)
        except Exception as e:  # strategy bug, recorded per attempt
            logger.warning("decode_strategy_error", family=family.value, byte_order=byte_order.value, error=str(e))
            return DecodeAttempt(family=family, byte_order=byte_order, status=DecodeStatus.ERROR, error=str(e)), b""

        return self._to_attempt(outcome, family, byte_order), outcome.payload

    @staticmethod
    def _to_attempt(outcome: UnpackOutcome, family: EncodingFamily, byte_order: ByteOrder) -> DecodeAttempt:
        container_fields = {}
        if family is EncodingFamily.CONTAINER:
            container_fields = {"code_page": outcome.code_page, "os_type": outcome.os_type}

        if outcome.status is not DecodeStatus.SUCCESS:
            return DecodeAttempt(
                family=family,
                byte_order=byte_order,
                status=outcome.status,
                error=outcome.error,
                **container_fields,
            )

        return DecodeAttempt(
            family=family,
            byte_order=byte_order,
            status=DecodeStatus.SUCCESS,
            unpacked_length=len(outcome.payload),
            looks_like_spec=looks_like_spec(outcome.payload),
            **container_fields,
        )

    def attempt_all(self, buffer: bytes) -> tuple[AttemptSet, dict[str, bytes]]:
        """Evaluate all four hypotheses in priority order.

        Returns the attempts and the unpacked payload of every successful one,
        keyed by attempt label.
        """
        attempts = []
        payloads: dict[str, bytes] = {}
        for family, byte_order in HYPOTHESIS_ORDER:
            attempt, payload = self._evaluate(buffer, family, byte_order)
            if attempt.succeeded:
                payloads[attempt.label] = payload
            attempts.append(attempt)
        return AttemptSet(*attempts), payloads

    # =========================================================================
    # DECODE
    # =========================================================================

    def decode(
        self,
        raw: bytes,
        *,
        compressed: bool | None = None,
        sequence: int = 0,
    ) -> tuple[DecodeResult, DecodeDiagnostics]:
        """Decode a raw spec blob.

        Args:
            raw: Raw payload bytes (may be empty)
            compressed: True forces decompression, False skips it, None auto-detects
            sequence: Record sequence number, carried into diagnostics

        Returns:
            (result, diagnostics); ``result.succeeded`` is False when no
            hypothesis qualified.

        Raises:
            ValidationError: ``raw`` is not a bytes-like object
        """
        if raw is None or not isinstance(raw, (bytes, bytearray, memoryview)):
            raise ValidationError("raw spec payload must be bytes", field="raw", value=type(raw).__name__)
        raw = bytes(raw)

        raw_attempts, raw_payloads = self.attempt_all(raw)

        decompressed = None
        if compressed is not False:
            decompressed = try_decompress(raw, self.max_unpacked_bytes)
            if decompressed is None and compressed:
                logger.warning("decompress_failed", sequence=sequence, blob_size=len(raw))

        if decompressed is not None:
            dec_attempts, dec_payloads = self.attempt_all(decompressed)
            diagnostics = DecodeDiagnostics(
                sequence=sequence,
                blob_size=len(raw),
                head_hex=to_hex(raw, self.head_hex_bytes),
                raw_looks_like_spec=looks_like_spec(raw),
                raw=raw_attempts,
                decompressed=True,
                decompressed_size=len(decompressed),
                decompressed_looks_like_spec=looks_like_spec(decompressed),
                decompressed_attempts=dec_attempts,
            )
        else:
            dec_attempts, dec_payloads = None, {}
            diagnostics = DecodeDiagnostics(
                sequence=sequence,
                blob_size=len(raw),
                head_hex=to_hex(raw, self.head_hex_bytes),
                raw_looks_like_spec=looks_like_spec(raw),
                raw=raw_attempts,
            )

        result = self._select(raw_attempts, raw_payloads, dec_attempts, dec_payloads)
        if result.succeeded:
            logger.debug(
                "decode_selected",
                sequence=sequence,
                attempt=result.attempt.label,
                source=result.source.value,
                unpacked_length=result.attempt.unpacked_length,
            )
        else:
            logger.warning("decode_failed", **diagnostics.to_dict())
        return result, diagnostics

    @staticmethod
    def _select(
        raw_attempts: AttemptSet,
        raw_payloads: dict[str, bytes],
        dec_attempts: AttemptSet | None,
        dec_payloads: dict[str, bytes],
    ) -> DecodeResult:
        if dec_attempts is not None:
            winner = dec_attempts.first_qualifying()
            if winner is not None:
                return DecodeResult(dec_payloads[winner.label], winner, PayloadSource.DECOMPRESSED)

        winner = raw_attempts.first_qualifying()
        if winner is not None:
            return DecodeResult(raw_payloads[winner.label], winner, PayloadSource.RAW)

        return DecodeResult.failed()


__all__ = ["SpecBlobDecoder", "to_hex", "try_decompress"]
