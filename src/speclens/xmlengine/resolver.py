"""
Spec Resolver - fetch, cache and render event rules against a metadata service.

The resolver is the async seam of the engine. It fetches spec documents and
catalog metadata through a ``MetadataQueryService``, owns the per-instance
caches for parsed templates, table indexes, data dictionary titles and
business function names, and drives the pure builder and renderer.

Manifesto:
    Rendering needs every cross-reference resolved up front, so one
    formatting call fetches in batches (all tables, one title lookup, all
    templates, all business function names) instead of once per parameter.
    Caches belong to the resolver instance: a new resolver sees fresh data,
    two resolvers never share state.

Architecture:
    ::

        get_formatted_event_rules(event_spec_key, template_name)
            │
            ├── gather ─┬─ fetch_event_rules_xml(event_spec_key)
            │           └─ get_data_structure_template(template_name)   (cached)
            │
            ├── build_event_tree() per event document
            │
            ├── prefetch ─┬─ gather: table indexes  (cached per table)
            │             │          templates      (cached per name, degrade on miss)
            │             │          BSFN names     (cached per name, degrade on miss)
            │             └─ data dictionary titles (one batch for data items + index keys)
            │
            └── ReadableErRenderer.render() per document ─► FormattedResult

Guardrails:
    ❌ DON'T: Cache a failed or cancelled load
    ✅ DO: Use AsyncSingleFlightCache so concurrent callers share one fetch

    ❌ DON'T: Abort a render because a secondary template is missing
    ✅ DO: Log a warning and let the renderer fall back to ``Param {id}``

Examples:
    >>> resolver = SpecResolver(service)
    >>> result = await resolver.get_formatted_event_rules("EV1", "D0001")
    >>> result.status_message
    'Event rules loaded.'
    >>> await resolver.resolve_business_function_name("D1234")
    'B1234_ENGINE'

Tags:
    resolver, cache, asyncio, event-rules, speclens

Doc-Types:
    - API Reference
    - Technical Design
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, field

from speclens.core.cache import AsyncSingleFlightCache
from speclens.core.errors import (
    BusinessFunctionNotFoundError,
    EventRulesNotFoundError,
    NotFoundError,
    SpecParseError,
    TemplateNotFoundError,
    ValidationError,
)
from speclens.core.logging import LogContext, get_logger
from speclens.core.protocols import MetadataQueryService
from speclens.core.settings import SpecLensSettings, get_settings
from speclens.models import (
    STATUS_EMPTY,
    STATUS_LOADED,
    FormattedResult,
    IndexInfo,
    ObjectType,
    SpecXmlDocument,
)
from speclens.xmlengine.builder import build_event_tree
from speclens.xmlengine.renderer import ReadableErRenderer
from speclens.xmlengine.template import DataStructureTemplate, format_template
from speclens.xmlengine.tree import EventRulesTree

logger = get_logger(__name__)


def _name_key(name: str) -> str:
    return name.strip().upper()


def business_function_candidate(template_name: str) -> str:
    """Business function name guessed from a template name (``D1234`` → ``B1234``)."""
    name = template_name.strip()
    if len(name) > 1 and name[0] in "Dd":
        return f"B{name[1:]}"
    return name


def derive_template_name(object_name: str | None, data_structure_name: str | None = None) -> str:
    """Template name for an object's event rules.

    An explicit data structure name wins; otherwise a leading ``B`` becomes
    ``D`` (``B0001`` → ``D0001``) and any other name is used as is.
    """
    if data_structure_name and data_structure_name.strip():
        return data_structure_name.strip()
    if object_name is None or not object_name.strip():
        return ""
    name = object_name.strip()
    if len(name) > 1 and name[0] in "Bb":
        return f"D{name[1:]}"
    return name


def _first_document(documents: Iterable[SpecXmlDocument]) -> SpecXmlDocument | None:
    return next((document for document in documents if not document.is_blank), None)


def _require(value: str | None, field_name: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field_name} is required.", field=field_name, value=value)
    return value.strip()


@dataclass
class _Prefetched:
    """Everything one render needs, keyed by upper-cased name."""

    templates: dict[str, DataStructureTemplate] = field(default_factory=dict)
    indexes: dict[str, tuple[IndexInfo, ...]] = field(default_factory=dict)
    engine_names: dict[str, str] = field(default_factory=dict)
    titles: dict[str, str] = field(default_factory=dict)

    def template(self, name: str) -> DataStructureTemplate | None:
        return self.templates.get(_name_key(name))

    def table_indexes(self, table_name: str) -> tuple[IndexInfo, ...]:
        return self.indexes.get(_name_key(table_name), ())

    def engine_name(self, template_name: str) -> str:
        if not template_name or not template_name.strip():
            return ""
        return self.engine_names.get(_name_key(template_name)) or business_function_candidate(template_name)


class SpecResolver:
    """Resolve templates, catalog names and formatted event rules for one session.

    Args:
        service: Metadata query collaborator
        settings: Engine settings; ``get_settings()`` when omitted
    """

    def __init__(self, service: MetadataQueryService, *, settings: SpecLensSettings | None = None):
        self._service = service
        self._settings = settings or get_settings()
        self._templates: AsyncSingleFlightCache[DataStructureTemplate] = AsyncSingleFlightCache(
            name="templates", key_fn=_name_key
        )
        self._engine_names: AsyncSingleFlightCache[str] = AsyncSingleFlightCache(
            name="business-function-names", key_fn=_name_key
        )
        self._indexes: AsyncSingleFlightCache[tuple[IndexInfo, ...]] = AsyncSingleFlightCache(
            name="table-indexes", key_fn=_name_key
        )
        # data item -> title, None when the dictionary has no title
        self._titles: dict[str, str | None] = {}

    # =========================================================================
    # TEMPLATES
    # =========================================================================

    async def get_data_structure_template(self, template_name: str) -> DataStructureTemplate:
        """Parsed template, fetched and parsed at most once per name.

        Raises:
            ValidationError: ``template_name`` is blank
            TemplateNotFoundError: the service has no document for the name
            SpecParseError: the document is not well-formed XML
        """
        name = _require(template_name, "template_name")
        return await self._templates.get_or_load(name, lambda: self._load_template(name))

    async def _load_template(self, template_name: str) -> DataStructureTemplate:
        document = _first_document(await self._service.fetch_data_structure_xml(template_name))
        if document is None:
            raise TemplateNotFoundError(template_name)
        return DataStructureTemplate.parse(template_name, document.xml)

    async def get_formatted_template(self, template_name: str) -> str:
        """Template items as numbered lines in display order."""
        return format_template(await self.get_data_structure_template(template_name))

    # =========================================================================
    # CATALOG
    # =========================================================================

    async def resolve_business_function_name(self, template_name: str) -> str:
        """Business function object name for a data structure template.

        Raises:
            ValidationError: ``template_name`` is blank
            BusinessFunctionNotFoundError: no catalog object matches
        """
        name = _require(template_name, "template_name")
        return await self._engine_names.get_or_load(name, lambda: self._load_engine_name(name))

    async def _load_engine_name(self, template_name: str) -> str:
        pattern = f"{business_function_candidate(template_name)}*"
        matches = await self._service.query_objects(
            ObjectType.BUSINESS_FUNCTION.value, pattern, self._settings.catalog_result_cap
        )
        if not matches:
            raise BusinessFunctionNotFoundError(template_name, pattern)
        return matches[0].object_name

    async def get_table_indexes(self, table_name: str) -> tuple[IndexInfo, ...]:
        """Index metadata for a table; empty for a blank name."""
        if table_name is None or not table_name.strip():
            return ()
        name = table_name.strip()
        return await self._indexes.get_or_load(name, lambda: self._load_indexes(name))

    async def _load_indexes(self, table_name: str) -> tuple[IndexInfo, ...]:
        return tuple(await self._service.fetch_table_indexes(table_name))

    async def get_data_dictionary_titles(self, data_items: Iterable[str]) -> dict[str, str]:
        """Titles for the given data items, fetched in one batch for uncached items.

        Items without a title are left out of the result (and remembered so
        they are not fetched again).
        """
        items: dict[str, str] = {}
        for item in data_items:
            if item and item.strip():
                items.setdefault(_name_key(item), item.strip())

        missing = [item for key, item in items.items() if key not in self._titles]
        if missing:
            for title in await self._service.fetch_data_dictionary_titles(missing):
                if title.data_item and title.data_item.strip():
                    self._titles[_name_key(title.data_item)] = title.combined_title or None
            for item in missing:
                self._titles.setdefault(_name_key(item), None)
            logger.debug("data_dictionary_titles_fetched", requested=len(missing))

        return {item: self._titles[key] for key, item in items.items() if self._titles.get(key)}

    # =========================================================================
    # EVENT RULES
    # =========================================================================

    async def get_formatted_event_rules(self, event_spec_key: str, template_name: str) -> FormattedResult:
        """Readable text for every event rules document of ``event_spec_key``.

        Raises:
            ValidationError: a blank argument
            EventRulesNotFoundError: no event rules document
            TemplateNotFoundError: no document for ``template_name``
            SpecParseError: malformed event rules or primary template XML
        """
        key = _require(event_spec_key, "event_spec_key")
        name = _require(template_name, "template_name")

        async with LogContext(event_spec_key=key, template_name=name):
            documents, primary = await asyncio.gather(
                self._fetch_event_documents(key),
                self.get_data_structure_template(name),
            )
            trees = [build_event_tree(document.xml, event_spec_key=document.spec_key or key) for document in documents]
            prefetched = await self._prefetch(trees, primary)

            renderer = ReadableErRenderer(
                prefetched.template,
                prefetched.titles,
                prefetched.table_indexes,
                prefetched.engine_name,
                primary_template=primary,
                indent_guide=self._settings.indent_guide,
            )
            rendered = [renderer.render(tree) for tree in trees]
            text = "\n\n".join(part.rstrip() for part in rendered if part.strip())

            if not text:
                logger.info("event_rules_empty", documents=len(documents))
                return FormattedResult(text="", status_message=STATUS_EMPTY, template_name=name, event_spec_key=key)

            logger.info("event_rules_formatted", documents=len(documents), lines=text.count("\n") + 1)
            return FormattedResult(text=text, status_message=STATUS_LOADED, template_name=name, event_spec_key=key)

    async def get_formatted_event_rules_for_object(
        self,
        object_name: str,
        event_spec_key: str,
        data_structure_name: str | None = None,
    ) -> FormattedResult:
        """Format event rules for a catalog object, deriving its template name."""
        template_name = derive_template_name(object_name, data_structure_name)
        return await self.get_formatted_event_rules(event_spec_key, template_name)

    async def _fetch_event_documents(self, event_spec_key: str) -> list[SpecXmlDocument]:
        documents = [d for d in await self._service.fetch_event_rules_xml(event_spec_key) if not d.is_blank]
        if not documents:
            raise EventRulesNotFoundError(event_spec_key)
        return documents

    async def _prefetch(self, trees: list[EventRulesTree], primary: DataStructureTemplate) -> _Prefetched:
        primary_names = {_name_key(name) for name in (primary.template_name, primary.declared_name) if name}
        tables = _distinct(name for tree in trees for name in tree.table_names())
        template_names = [
            name
            for name in _distinct(name for tree in trees for name in tree.template_names())
            if _name_key(name) not in primary_names
        ]
        bsfn_templates = _distinct(name for tree in trees for name in tree.business_function_templates())

        index_sets, templates, engine_names = await asyncio.gather(
            asyncio.gather(*(self.get_table_indexes(table) for table in tables)),
            asyncio.gather(*(self._template_or_none(template) for template in template_names)),
            asyncio.gather(*(self._engine_name_or_candidate(template) for template in bsfn_templates)),
        )

        prefetched = _Prefetched()
        for name in primary_names:
            prefetched.templates[name] = primary
        for template_name, template in zip(template_names, templates):
            if template is not None:
                prefetched.templates[_name_key(template_name)] = template
        for table, indexes in zip(tables, index_sets):
            prefetched.indexes[_name_key(table)] = indexes
        for template_name, engine_name in zip(bsfn_templates, engine_names):
            prefetched.engine_names[_name_key(template_name)] = engine_name

        data_items = [item for tree in trees for item in tree.data_items()]
        data_items.extend(key for indexes in index_sets for index in indexes for key in index.key_columns)
        prefetched.titles = await self.get_data_dictionary_titles(data_items)

        logger.debug(
            "render_prefetched",
            tables=len(tables),
            templates=len(prefetched.templates),
            business_functions=len(bsfn_templates),
            titles=len(prefetched.titles),
        )
        return prefetched

    async def _template_or_none(self, template_name: str) -> DataStructureTemplate | None:
        try:
            return await self.get_data_structure_template(template_name)
        except (NotFoundError, SpecParseError) as e:
            logger.warning("template_unresolved", template_name=template_name, error=e.to_dict())
            return None

    async def _engine_name_or_candidate(self, template_name: str) -> str:
        try:
            return await self.resolve_business_function_name(template_name)
        except BusinessFunctionNotFoundError as e:
            logger.warning("business_function_unresolved", template_name=template_name, error=e.to_dict())
            return business_function_candidate(template_name)


def _distinct(names: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result = []
    for name in names:
        key = _name_key(name)
        if key and key not in seen:
            seen.add(key)
            result.append(name.strip())
    return result


__all__ = ["SpecResolver", "business_function_candidate", "derive_template_name"]
