"""
Data Structure Template Model.

A data structure template is the named, ordered parameter list a business
function (or form) is called with. Templates arrive as spec XML::

    <root szTmplName="D0001" szDescription="Address Book Fetch">
      <Template>
        <Item ItemID="1" DisplaySequence="1" CopyWord="IN"
              DDAlias="AN8" FieldName="mnAddressNumber" />
        ...
      </Template>
    </root>

Items missing any of ItemID, DisplaySequence, CopyWord, DDAlias or FieldName
are not template items and are skipped. On duplicate ids the first item wins.

Examples:
    >>> template = DataStructureTemplate.parse("D0001", xml)
    >>> template.try_get_item("1").display_name
    'mnAddressNumber [AN8]'
    >>> template.try_get_item("missing") is None
    True
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from speclens.core.errors import ValidationError
from speclens.core.logging import get_logger
from speclens.xmlengine.normalize import attr, descendants, first_descendant, parse_xml

logger = get_logger(__name__)

DESCRIPTION_ATTRIBUTES = ("szDescription", "szDesc", "szTitle", "szTemplateDesc", "szTemplateName")
TEMPLATE_NAME_ATTRIBUTES = ("szTmplName", "szTemplateName", "szName")


@dataclass(frozen=True)
class TemplateItem:
    """One parameter slot of a data structure template."""

    id: str
    display_sequence: str
    copy_word: str
    alias: str
    field_name: str

    @property
    def display_name(self) -> str:
        return f"{self.field_name} [{self.alias}]"

    @classmethod
    def from_element(cls, element: ET.Element) -> TemplateItem | None:
        values = [attr(element, name) for name in ("ItemID", "DisplaySequence", "CopyWord", "DDAlias", "FieldName")]
        if any(value is None or not value.strip() for value in values):
            return None
        item_id, sequence, copy_word, alias, field_name = (value.strip() for value in values)
        return cls(item_id, sequence, copy_word, alias, field_name)


def _sequence_key(item: TemplateItem) -> tuple[int, float, str]:
    try:
        return (0, float(item.display_sequence), item.id)
    except ValueError:
        return (1, 0.0, item.display_sequence)


@dataclass(frozen=True, eq=False)
class DataStructureTemplate:
    """Parsed template; immutable and shared by every render that references it."""

    template_name: str
    description: str | None = None
    items_by_id: Mapping[str, TemplateItem] = field(default_factory=dict)
    declared_name: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.items_by_id, MappingProxyType):
            object.__setattr__(self, "items_by_id", MappingProxyType(dict(self.items_by_id)))

    def try_get_item(self, item_id: str | None) -> TemplateItem | None:
        """Item by id; ``None`` for blank or unknown ids. Never raises."""
        if item_id is None or not isinstance(item_id, str) or not item_id.strip():
            return None
        return self.items_by_id.get(item_id.strip())

    @property
    def items(self) -> list[TemplateItem]:
        """Items in display sequence order."""
        return sorted(self.items_by_id.values(), key=_sequence_key)

    def __len__(self) -> int:
        return len(self.items_by_id)

    @classmethod
    def parse(cls, template_name: str, xml: str) -> DataStructureTemplate:
        """Parse template XML.

        Raises:
            ValidationError: ``template_name`` or ``xml`` is blank
            SpecParseError: ``xml`` is not well-formed
        """
        if not template_name or not template_name.strip():
            raise ValidationError("Template name is required.", field="template_name", value=template_name)
        if not xml or not xml.strip():
            raise ValidationError("Template XML is required.", field="xml").with_context(
                template_name=template_name
            )

        root = parse_xml(xml, spec_key=template_name)
        items: dict[str, TemplateItem] = {}
        skipped = 0
        template_root = first_descendant(root)
        if template_root is not None:
            for element in descendants(template_root):
                item = TemplateItem.from_element(element)
                if item is None:
                    skipped += 1
                    continue
                items.setdefault(item.id, item)

        template = cls(
            template_name=template_name.strip(),
            description=first_attribute(root, DESCRIPTION_ATTRIBUTES),
            items_by_id=items,
            declared_name=find_template_name(root),
        )
        logger.debug("template_parsed", template_name=template.template_name, items=len(items), skipped=skipped)
        return template


def first_attribute(element: ET.Element, names: tuple[str, ...]) -> str | None:
    """First non-blank attribute among ``names``, trimmed."""
    for name in names:
        value = attr(element, name)
        if value and value.strip():
            return value.strip()
    return None


def find_template_name(root: ET.Element) -> str | None:
    """Template name declared inside template XML (root attribute or first ``szTmplName``)."""
    declared = first_attribute(root, TEMPLATE_NAME_ATTRIBUTES)
    if declared:
        return declared
    for element in descendants(root):
        for key, value in element.attrib.items():
            if key.rsplit("}", 1)[-1].lower() == "sztmplname" and value.strip():
                return value.strip()
    return None


def format_template(template: DataStructureTemplate) -> str:
    """One line per item in display order: ``"{seq}. {copy word} {field} [{alias}]"``."""
    return "\n".join(f"{item.display_sequence}. {item.copy_word} {item.display_name}" for item in template.items)


__all__ = [
    "DataStructureTemplate",
    "TemplateItem",
    "find_template_name",
    "first_attribute",
    "format_template",
]
