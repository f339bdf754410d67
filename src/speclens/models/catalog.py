"""Object catalog, table index and data dictionary records returned by the metadata service."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ObjectType(str, Enum):
    """Object catalog types the engine queries."""

    BUSINESS_FUNCTION = "BSFN"
    NAMED_EVENT_RULE = "NER"
    DATA_STRUCTURE = "DSTR"
    TABLE = "TBLE"
    APPLICATION = "APPL"
    REPORT = "UBE"


@dataclass(frozen=True)
class ObjectInfo:
    """One object catalog row."""

    object_name: str
    object_type: str = ObjectType.BUSINESS_FUNCTION.value
    description: str | None = None
    system_code: str | None = None
    product_code: str | None = None


@dataclass(frozen=True)
class IndexInfo:
    """Table index metadata with ordered key columns (data item aliases)."""

    id: int
    name: str
    is_primary: bool = False
    key_columns: tuple[str, ...] = field(default_factory=tuple)

    @property
    def display_name(self) -> str:
        return f"{self.name} (Primary)" if self.is_primary else self.name


@dataclass(frozen=True)
class DataDictionaryTitle:
    """Two-line data dictionary title for one data item."""

    data_item: str
    title1: str | None = None
    title2: str | None = None

    @property
    def combined_title(self) -> str:
        parts = [part.strip() for part in (self.title1, self.title2) if part and part.strip()]
        return " ".join(parts)
