"""
Collaborator protocols for the SpecLens engine.

Manifesto:
    The engine never talks to the ERP runtime itself. Everything it needs
    from outside (spec XML, catalog rows, index and dictionary metadata)
    comes through ``MetadataQueryService``, so the same resolver runs against
    a live session, a recorded fixture or ``speclens.testing``.

Architecture:
    ::

        MetadataQueryService (async)
        ├── fetch_event_rules_xml(event_spec_key)       → [SpecXmlDocument]
        ├── fetch_data_structure_xml(template_name)     → [SpecXmlDocument]
        ├── query_objects(type, pattern, max_results)   → [ObjectInfo]
        ├── fetch_table_indexes(table_name)             → [IndexInfo]
        └── fetch_data_dictionary_titles(data_items)    → [DataDictionaryTitle]

        SpecUnpacker (sync)
        └── unpack(buffer, byte_order)                  → UnpackOutcome

Guardrails:
    ❌ DON'T: Retry or time out inside the engine
    ✅ DO: Let collaborator failures propagate; retry belongs to the service

Tags:
    protocol, collaborator, metadata, speclens

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from speclens.models import (
    ByteOrder,
    DataDictionaryTitle,
    DecodeStatus,
    IndexInfo,
    ObjectInfo,
    SpecXmlDocument,
)


@runtime_checkable
class MetadataQueryService(Protocol):
    """Async metadata/spec query collaborator.

    Every method may suspend; the engine issues independent calls
    concurrently. An empty sequence means "nothing found".
    """

    async def fetch_event_rules_xml(self, event_spec_key: str) -> Sequence[SpecXmlDocument]:
        """Event rules XML documents for an event spec key."""
        ...

    async def fetch_data_structure_xml(self, template_name: str) -> Sequence[SpecXmlDocument]:
        """Data structure template XML documents for a template name."""
        ...

    async def query_objects(self, object_type: str, name_pattern: str, max_results: int) -> Sequence[ObjectInfo]:
        """Object catalog rows matching a wildcard pattern (``*`` suffix)."""
        ...

    async def fetch_table_indexes(self, table_name: str) -> Sequence[IndexInfo]:
        """Index metadata for a table."""
        ...

    async def fetch_data_dictionary_titles(self, data_items: Sequence[str]) -> Sequence[DataDictionaryTitle]:
        """Titles for a batch of data items; unknown items are simply absent."""
        ...


@dataclass(frozen=True)
class UnpackOutcome:
    """Tagged result of one byte-layout strategy applied to one buffer."""

    status: DecodeStatus
    payload: bytes = b""
    error: str | None = None
    code_page: int | None = None
    os_type: int | None = None


@runtime_checkable
class SpecUnpacker(Protocol):
    """Byte-level layout strategy for one encoding family.

    Implementations are pure and must not raise for malformed input:
    a shape failure is ``FORMAT_MISMATCH``, a short buffer ``TRUNCATED``.
    """

    def unpack(self, buffer: bytes, byte_order: ByteOrder) -> UnpackOutcome: ...


__all__ = ["MetadataQueryService", "SpecUnpacker", "UnpackOutcome"]
