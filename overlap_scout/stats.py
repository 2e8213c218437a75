# File: overlap_scout/stats.py
"""overlap_scout.stats: Сводная статистика по группам URL и по спискам top-страниц."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping

__all__ = ["STATS_KEY", "TOTAL_KEY", "annotate", "top_pages_summary"]

STATS_KEY = "stats"
TOTAL_KEY = "totalUrls"


def annotate(groups: Mapping[str, Any]) -> Dict[str, Any]:
    """Добавляет в начало объекта блок ``stats`` с числом элементов каждой группы.

    Значения, которые не являются списком, считаются как 0. Существующий блок
    ``stats`` заменяется и в подсчёт не входит. Остальные ключи не меняются.
    """
    payload = {name: value for name, value in groups.items() if name != STATS_KEY}
    stats: Dict[str, int] = {TOTAL_KEY: 0}
    for name, value in payload.items():
        count = len(value) if isinstance(value, list) else 0
        stats[name] = count
        stats[TOTAL_KEY] += count
    return {STATS_KEY: stats, **payload}


def top_pages_summary(records: Iterable[Mapping[str, Any]], pages_field: str = "topPages") -> Dict[str, Any]:
    """Количество страниц по сайтам: итог, среднее, минимум, максимум и детали по сайтам."""
    details: List[Dict[str, Any]] = []
    for number, record in enumerate(records, start=1):
        pages = record.get(pages_field)
        details.append(
            {
                "siteNumber": number,
                "siteId": record.get("siteId", ""),
                "siteBaseURL": str(record.get("siteBaseURL", "")).strip(),
                "topPagesCount": len(pages) if isinstance(pages, list) else 0,
            }
        )

    counts = [d["topPagesCount"] for d in details]
    total_sites = len(counts)
    total_pages = sum(counts)
    with_pages = sum(1 for c in counts if c > 0)
    return {
        "totalSites": total_sites,
        "totalPages": total_pages,
        "averagePagesPerSite": round(total_pages / total_sites, 2) if total_sites else 0.0,
        "minPages": min(counts) if counts else 0,
        "maxPages": max(counts) if counts else 0,
        "sitesWithTopPages": with_pages,
        "sitesWithoutTopPages": total_sites - with_pages,
        "siteDetails": details,
    }
