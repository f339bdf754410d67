"""In-memory metadata service -- deterministic collaborator for testing.

Manifesto:
Resolver behaviour (single flight, batching, degradation) is only visible
through the calls it makes. ``InMemoryMetadataService`` serves canned
documents and catalog rows from dicts, records every call, and can hold
fetches in flight behind a gate so concurrency can be tested without
sleeps.

ARCHITECTURE
────────────
::

    InMemoryMetadataService
      ├── event_rules          {event_spec_key: [SpecXmlDocument]}
      ├── data_structures      {template_name:  [SpecXmlDocument]}
      ├── objects              [ObjectInfo]            (wildcard queries)
      ├── indexes              {table_name: [IndexInfo]}
      ├── titles               {data_item: DataDictionaryTitle}
      ├── .calls               → list of (method, argument)
      ├── .call_count(method)  → calls made to one method
      └── .gate                → asyncio.Event every fetch waits on

Example::

    service = InMemoryMetadataService()
    service.add_template("D0001", template_xml)
    service.add_event_rules("EV1", event_xml)
    resolver = SpecResolver(service)
    await resolver.get_formatted_event_rules("EV1", "D0001")
    assert service.call_count("fetch_data_structure_xml") == 1

Tags:
    speclens, testing, mock, metadata

Doc-Types:
    api-reference
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from typing import Any

from speclens.models import DataDictionaryTitle, IndexInfo, ObjectInfo, SpecXmlDocument


@dataclass
class InMemoryMetadataService:
    """Dict-backed ``MetadataQueryService``.

    Attributes:
        event_rules: Event rules documents by event spec key.
        data_structures: Template documents by template name.
        objects: Object catalog rows searched by ``query_objects``.
        indexes: Table indexes by table name.
        titles: Data dictionary titles by data item.
        gate: When set, every call waits for the event before answering.
        error: When set, every call raises it.
    """

    event_rules: dict[str, list[SpecXmlDocument]] = field(default_factory=dict)
    data_structures: dict[str, list[SpecXmlDocument]] = field(default_factory=dict)
    objects: list[ObjectInfo] = field(default_factory=list)
    indexes: dict[str, list[IndexInfo]] = field(default_factory=dict)
    titles: dict[str, DataDictionaryTitle] = field(default_factory=dict)
    gate: asyncio.Event | None = None
    error: Exception | None = None

    # Tracking
    calls: list[tuple[str, Any]] = field(default_factory=list, repr=False)

    # ── Fixture helpers ──────────────────────────────────────────

    def add_event_rules(self, event_spec_key: str, *xml: str) -> None:
        self.event_rules.setdefault(event_spec_key, []).extend(SpecXmlDocument(event_spec_key, text) for text in xml)

    def add_template(self, template_name: str, xml: str) -> None:
        self.data_structures.setdefault(template_name, []).append(SpecXmlDocument(template_name, xml))

    def add_object(self, object_name: str, object_type: str = "BSFN", description: str | None = None) -> None:
        self.objects.append(ObjectInfo(object_name=object_name, object_type=object_type, description=description))

    def add_index(self, table_name: str, index: IndexInfo) -> None:
        self.indexes.setdefault(table_name, []).append(index)

    def add_title(self, data_item: str, title1: str, title2: str | None = None) -> None:
        self.titles[data_item.upper()] = DataDictionaryTitle(data_item=data_item, title1=title1, title2=title2)

    def call_count(self, method: str | None = None) -> int:
        """Calls made to ``method``, or all calls."""
        if method is None:
            return len(self.calls)
        return sum(1 for name, _ in self.calls if name == method)

    def reset(self) -> None:
        self.calls.clear()

    # ── MetadataQueryService ─────────────────────────────────────

    async def fetch_event_rules_xml(self, event_spec_key: str) -> Sequence[SpecXmlDocument]:
        await self._enter("fetch_event_rules_xml", event_spec_key)
        return list(self.event_rules.get(event_spec_key, []))

    async def fetch_data_structure_xml(self, template_name: str) -> Sequence[SpecXmlDocument]:
        await self._enter("fetch_data_structure_xml", template_name)
        return list(self.data_structures.get(template_name, []))

    async def query_objects(self, object_type: str, name_pattern: str, max_results: int) -> Sequence[ObjectInfo]:
        await self._enter("query_objects", (object_type, name_pattern, max_results))
        pattern = name_pattern.upper()
        matches = [
            info
            for info in self.objects
            if info.object_type == object_type and fnmatchcase(info.object_name.upper(), pattern)
        ]
        return matches[:max_results]

    async def fetch_table_indexes(self, table_name: str) -> Sequence[IndexInfo]:
        await self._enter("fetch_table_indexes", table_name)
        return list(self.indexes.get(table_name, []))

    async def fetch_data_dictionary_titles(self, data_items: Sequence[str]) -> Sequence[DataDictionaryTitle]:
        await self._enter("fetch_data_dictionary_titles", tuple(data_items))
        return [self.titles[item.upper()] for item in data_items if item.upper() in self.titles]

    async def _enter(self, method: str, argument: Any) -> None:
        self.calls.append((method, argument))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error


__all__ = ["InMemoryMetadataService"]
