# overlap_scout/models.py
"""
Data models shared by the OverlapScout pipeline.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from overlap_scout.errors import MalformedInput

__all__ = ("SOURCES", "AHREFS", "RUM", "OPPORTUNITIES", "Site", "SourceDataset")

AHREFS = "ahrefs"
RUM = "rum"
OPPORTUNITIES = "opportunities"
SOURCES: tuple[str, ...] = (AHREFS, RUM, OPPORTUNITIES)

# per-source record fields: (label field, pages field)
_RECORD_FIELDS: Dict[str, tuple[str, str]] = {
    AHREFS: ("siteBaseURL", "topPages"),
    RUM: ("siteBaseURL", "topPages"),
    OPPORTUNITIES: ("domain", "extractedLinks"),
}


@dataclass(frozen=True, slots=True)
class Site:
    """One customer property: opaque id plus base URL."""

    id: str
    base_url: str

    @classmethod
    def from_record(cls, record: Any) -> Site:
        if not isinstance(record, Mapping):
            raise MalformedInput("sites", f"expected an object, got {type(record).__name__}")
        try:
            return cls(id=str(record["id"]), base_url=str(record["baseURL"]))
        except KeyError as exc:
            raise MalformedInput("sites", f"site record is missing field {exc.args[0]!r}") from exc

    def to_record(self) -> Dict[str, str]:
        return {"baseURL": self.base_url, "id": self.id}


@dataclass(frozen=True, slots=True)
class SourceDataset:
    """URL list of one site as reported by one source.

    ``pages`` is ``None`` when the record exists but carries no page list
    (e.g. an extraction error record).
    """

    source: str
    site_id: str
    label: str
    pages: Optional[List[str]] = field(default=None)

    @classmethod
    def from_record(cls, record: Any, source: str) -> SourceDataset:
        if source not in _RECORD_FIELDS:
            raise MalformedInput(source, f"unknown source, expected one of {', '.join(SOURCES)}")
        if not isinstance(record, Mapping):
            raise MalformedInput(source, f"expected an object, got {type(record).__name__}")
        if "siteId" not in record:
            raise MalformedInput(source, "record is missing field 'siteId'")
        label_field, pages_field = _RECORD_FIELDS[source]
        pages = record.get(pages_field)
        if pages is not None and not isinstance(pages, list):
            raise MalformedInput(source, f"field {pages_field!r} must be a list")
        return cls(
            source=source,
            site_id=str(record["siteId"] or ""),
            label=str(record.get(label_field) or ""),
            pages=[str(p) for p in pages] if pages is not None else None,
        )

    def to_record(self) -> Dict[str, Any]:
        label_field, pages_field = _RECORD_FIELDS[self.source]
        return {"siteId": self.site_id, label_field: self.label, pages_field: self.pages}
