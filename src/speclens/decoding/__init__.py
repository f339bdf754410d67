"""
Spec blob decoding: hypotheses, layout strategies and the spec-stream heuristic.
"""

from speclens.decoding.decoder import SpecBlobDecoder, to_hex, try_decompress
from speclens.decoding.stream import RecordType, looks_like_spec, read_spec_records, record_type_name
from speclens.decoding.unpackers import CONTAINER_MAGIC, LengthPrefixedUnpacker, VersionedContainerUnpacker

__all__ = [
    "CONTAINER_MAGIC",
    "LengthPrefixedUnpacker",
    "RecordType",
    "SpecBlobDecoder",
    "VersionedContainerUnpacker",
    "looks_like_spec",
    "read_spec_records",
    "record_type_name",
    "to_hex",
    "try_decompress",
]
