"""
Value types shared by the decoder, the XML engine and the resolver.

All types are frozen dataclasses; nothing here performs I/O.
"""

from speclens.models.catalog import DataDictionaryTitle, IndexInfo, ObjectInfo, ObjectType
from speclens.models.diagnostics import (
    AttemptSet,
    ByteOrder,
    DecodeAttempt,
    DecodeDiagnostics,
    DecodeResult,
    DecodeStatus,
    EncodingFamily,
    PayloadSource,
    SpecRecord,
)
from speclens.models.documents import STATUS_EMPTY, STATUS_LOADED, FormattedResult, SpecXmlDocument

__all__ = [
    # Catalog
    "DataDictionaryTitle",
    "IndexInfo",
    "ObjectInfo",
    "ObjectType",
    # Decoding
    "AttemptSet",
    "ByteOrder",
    "DecodeAttempt",
    "DecodeDiagnostics",
    "DecodeResult",
    "DecodeStatus",
    "EncodingFamily",
    "PayloadSource",
    "SpecRecord",
    # Documents
    "FormattedResult",
    "SpecXmlDocument",
    "STATUS_EMPTY",
    "STATUS_LOADED",
]
