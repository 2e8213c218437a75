# File: overlap_scout/overlap.py
"""overlap_scout.overlap: Пересечения списков top-страниц между источниками ahrefs, rum и opportunities."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Sequence

from overlap_scout.errors import MalformedInput, SiteNotFoundInSource
from overlap_scout.logger import logger
from overlap_scout.models import AHREFS, OPPORTUNITIES, RUM, SOURCES, Site, SourceDataset

__all__ = [
    "DEFAULT_TOP_N",
    "OverlapResult",
    "OverlapEngine",
    "intersection",
    "percentage",
    "compute_overlap",
    "index_datasets",
]

DEFAULT_TOP_N = 200


def intersection(first: Iterable[str], *others: Iterable[str]) -> List[str]:
    """Элементы first, встречающиеся во всех others; порядок как в first, без повторов."""
    other_sets = [set(o) for o in others]
    return [item for item in dict.fromkeys(first) if all(item in s for s in other_sets)]


def percentage(count: int, denominator: int) -> float:
    """Доля count от фиксированного знаменателя (top N), в процентах с двумя знаками."""
    if denominator <= 0:
        raise ValueError(f"denominator must be positive, got {denominator}")
    return round(count / denominator * 100, 2)


@dataclass(slots=True)
class OverlapResult:
    """Результат пересечения для одного сайта."""

    overlap_all: List[str]
    overlap_ahrefs_opportunities: List[str]
    overlap_rum_opportunities: List[str]

    def metrics(self, denominator: int = DEFAULT_TOP_N) -> Dict[str, Dict[str, Any]]:
        """Пары {count, percentage} для каждого списка."""
        return {
            name: {"count": len(pages), "percentage": percentage(len(pages), denominator)}
            for name, pages in self.as_dict().items()
        }

    def as_dict(self) -> Dict[str, List[str]]:
        return {
            "overlapAll": self.overlap_all,
            "overlapAhrefsOpportunities": self.overlap_ahrefs_opportunities,
            "overlapRumOpportunities": self.overlap_rum_opportunities,
        }


def compute_overlap(sources: Mapping[str, Sequence[str]]) -> OverlapResult:
    """Считает пересечения для трёх именованных источников.

    overlapAhrefsOpportunities намеренно не учитывает rum, а
    overlapRumOpportunities не учитывает ahrefs.
    """
    missing = [name for name in SOURCES if name not in sources]
    if missing:
        raise MalformedInput("overlap", f"missing sources: {', '.join(missing)}")
    ahrefs = sources[AHREFS]
    rum = sources[RUM]
    opportunities = sources[OPPORTUNITIES]
    return OverlapResult(
        overlap_all=intersection(ahrefs, rum, opportunities),
        overlap_ahrefs_opportunities=intersection(ahrefs, opportunities),
        overlap_rum_opportunities=intersection(rum, opportunities),
    )


def index_datasets(records: Iterable[SourceDataset]) -> Dict[str, SourceDataset]:
    """Индекс siteId -> запись. Записи с пустым siteId не индексируются."""
    index: Dict[str, SourceDataset] = {}
    for record in records:
        if not record.site_id:
            logger.debug("Skipping %s record without siteId (%s)", record.source, record.label)
            continue
        if record.site_id in index:
            raise MalformedInput(record.source, f"duplicate siteId {record.site_id!r}")
        index[record.site_id] = record
    return index


class OverlapEngine:
    """Сопоставляет наборы данных источников по siteId и считает статистику пересечений."""

    def __init__(
        self,
        datasets: Mapping[str, Iterable[SourceDataset]],
        top_n: int = DEFAULT_TOP_N,
    ) -> None:
        if top_n <= 0:
            raise ValueError(f"top_n must be positive, got {top_n}")
        self.top_n = top_n
        self._indexes = {name: index_datasets(records) for name, records in datasets.items()}

    def pages_for(self, source: str, site_id: str) -> List[str]:
        """Страницы сайта в источнике; без записи SiteNotFoundInSource."""
        index = self._indexes.get(source)
        if index is None or site_id not in index:
            raise SiteNotFoundInSource(source, site_id)
        pages = index[site_id].pages
        if pages is None:
            raise MalformedInput(source, f"site {site_id!r} has no page list")
        return pages

    def compute(self, site_id: str) -> OverlapResult:
        return compute_overlap({name: self.pages_for(name, site_id) for name in SOURCES})

    def site_stats(self, site: Site) -> Dict[str, Any]:
        """Плоская строка статистики для отчётов JSON/CSV."""
        result = self.compute(site.id)
        metrics = result.metrics(self.top_n)
        row: Dict[str, Any] = {"siteId": site.id, "siteBaseURL": site.base_url}
        for name, metric in metrics.items():
            row[name] = metric["count"]
            row[f"{name}Percentage"] = metric["percentage"]
        logger.info(
            "%s: all=%d ahrefs∩opp=%d rum∩opp=%d",
            site.base_url,
            row["overlapAll"],
            row["overlapAhrefsOpportunities"],
            row["overlapRumOpportunities"],
        )
        return row
