"""Spec documents fetched from the metadata service and the formatted render result."""

from __future__ import annotations

from dataclasses import dataclass

STATUS_LOADED = "Event rules loaded."
STATUS_EMPTY = "No formatted event rules available."


@dataclass(frozen=True)
class SpecXmlDocument:
    """A normalized XML payload for one logical spec.

    Attributes:
        spec_key: Event spec key or template name the document was fetched by
        xml: XML text (may still carry padding; normalized before parsing)
        record_count: Number of source spec records assembled into ``xml``
    """

    spec_key: str
    xml: str
    record_count: int = 1

    @property
    def is_blank(self) -> bool:
        return not self.xml or not self.xml.strip()


@dataclass(frozen=True)
class FormattedResult:
    """Readable event rules text plus the keys used to produce it."""

    text: str
    status_message: str
    template_name: str | None = None
    event_spec_key: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()
