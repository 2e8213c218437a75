# File: overlap_scout/opportunities.py
"""overlap_scout.opportunities: Ссылки из данных аудита (opportunities) и их преобразования.

* извлечение ссылок сайта из выгрузки opportunities;
* группировка ссылок по типу opportunity;
* разворот ``тип -> [url]`` в ``url -> [тип]`` и проверка дубликатов;
* строки таблицы для выгрузки в CSV.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from overlap_scout.errors import MalformedInput
from overlap_scout.extractor import DEFAULT_TARGET_KEYS, KeyExtractor, unique_values
from overlap_scout.logger import logger
from overlap_scout.stats import STATS_KEY
from overlap_scout.utils import filter_by_domain, remove_duplicates

__all__ = [
    "OPPORTUNITY_TYPES",
    "OPPORTUNITY_PRIORITIES",
    "OPPORTUNITY_LABELS",
    "UNDEFINED_TYPE",
    "VerifyResult",
    "extract_site_links",
    "group_by_type",
    "reshape",
    "reshape_summary",
    "find_duplicates",
    "verify",
    "spreadsheet_rows",
    "sort_rows",
    "summarize_rows",
    "SPREADSHEET_HEADERS",
]

UNDEFINED_TYPE = "undefined"

OPPORTUNITY_TYPES: tuple[str, ...] = (
    "broken-backlinks",
    "broken-internal-links",
    "cwv",
    "sitemap",
    "high-page-views-low-form-views",
    "alt-text",
    "meta-tags",
)

OPPORTUNITY_PRIORITIES: Dict[str, str] = {
    "broken-backlinks": "High",
    "broken-internal-links": "High",
    "cwv": "High",
    "sitemap": "Medium",
    "high-page-views-low-form-views": "Medium",
    "alt-text": "Low",
    "meta-tags": "Low",
}

OPPORTUNITY_LABELS: Dict[str, str] = {
    "sitemap": "Missing from Sitemap",
    "high-page-views-low-form-views": "High Page Views, Low Form Views",
    "alt-text": "Missing Alt Text",
    "cwv": "Core Web Vitals Issues",
    "meta-tags": "Meta Tags Issues",
    "broken-internal-links": "Broken Internal Links",
    "broken-backlinks": "Broken Backlinks",
}

_PRIORITY_ORDER = {"High": 1, "Medium": 2, "Low": 3}
_DEFAULT_PRIORITY = "Medium"
_MAX_EXAMPLES = 5

SPREADSHEET_HEADERS: tuple[str, ...] = ("Site", "Opportunity Type", "Priority", "URL", "Full URL")


# --------------------------------------------------------------------------- #
# Извлечение ссылок                                                           #
# --------------------------------------------------------------------------- #


def extract_site_links(
    tree: Any,
    domain: str,
    site_id: str,
    *,
    target_keys: Iterable[str] = DEFAULT_TARGET_KEYS,
    file_path: Optional[str] = None,
) -> Dict[str, Any]:
    """Запись набора opportunities для одного сайта: ссылки домена без схемы и www."""
    records = KeyExtractor(target_keys).extract(tree)
    values = unique_values(records)
    links = filter_by_domain(values, domain)
    logger.info(
        "%s: %d matches, %d unique values, %d contain the domain",
        domain,
        len(records),
        len(values),
        len(links),
    )
    return {"domain": domain, "siteId": site_id, "filePath": file_path, "extractedLinks": links}


def group_by_type(
    opportunities: Sequence[Any],
    domain: str,
    *,
    target_keys: Iterable[str] = DEFAULT_TARGET_KEYS,
) -> Dict[str, List[str]]:
    """Группирует opportunities по полю ``type`` и собирает ссылки домена для каждой группы."""
    if not isinstance(opportunities, list):
        raise MalformedInput("opportunities", "expected a list of opportunity objects")

    grouped: Dict[str, List[Any]] = {}
    for item in opportunities:
        kind = item.get("type") if isinstance(item, Mapping) else None
        grouped.setdefault(kind or UNDEFINED_TYPE, []).append(item)

    extractor = KeyExtractor(target_keys)
    result: Dict[str, List[str]] = {}
    for kind, items in grouped.items():
        values = unique_values(extractor.extract(items))
        result[kind] = remove_duplicates(filter_by_domain(values, domain))
        logger.debug("Type %s: %d items, %d links", kind, len(items), len(result[kind]))
    return result


# --------------------------------------------------------------------------- #
# Разворот и проверка дубликатов                                              #
# --------------------------------------------------------------------------- #


def reshape(by_type: Mapping[str, Any]) -> Dict[str, List[str]]:
    """``{тип: [url]}`` -> ``{url: [тип]}``; типы у URL без повторов, в порядке появления."""
    by_url: Dict[str, Dict[str, None]] = {}
    for kind, urls in by_type.items():
        if kind == STATS_KEY:
            continue
        if not isinstance(urls, list):
            raise MalformedInput("opportunities", f"value of {kind!r} must be a list of URLs")
        for url in urls:
            by_url.setdefault(url, {})[kind] = None
    return {url: list(kinds) for url, kinds in by_url.items()}


def reshape_summary(by_type: Mapping[str, Any], by_url: Mapping[str, Sequence[str]]) -> Dict[str, int]:
    return {
        "totalUrls": len(by_url),
        "totalOpportunityTypes": sum(1 for kind in by_type if kind != STATS_KEY),
        "urlsWithMultipleOpportunities": sum(1 for kinds in by_url.values() if len(kinds) > 1),
    }


def find_duplicates(items: Iterable[str]) -> List[str]:
    """Значения, встречающиеся больше одного раза (каждое по разу)."""
    seen: set[str] = set()
    duplicates: Dict[str, None] = {}
    for item in items:
        if item in seen:
            duplicates[item] = None
        seen.add(item)
    return list(duplicates)


@dataclass(slots=True)
class VerifyResult:
    """Итог проверки: очищенная карта и статистика удалённых повторов."""

    cleaned: Dict[str, Any]
    urls_affected: int = 0
    duplicates_removed: int = 0
    examples: List[Dict[str, Any]] = field(default_factory=list)


def verify(by_url: Mapping[str, Any]) -> VerifyResult:
    """Удаляет повторы типов у каждого URL. Повторный запуск на cleaned ничего не удаляет.

    Блок ``stats`` переносится в ``cleaned`` без изменений; любое другое
    значение, не являющееся списком, -> :class:`MalformedInput`.
    """
    result = VerifyResult(cleaned={})
    for url, kinds in by_url.items():
        if url == STATS_KEY:
            result.cleaned[url] = kinds
            continue
        if not isinstance(kinds, list):
            raise MalformedInput("opportunities", f"value of {url!r} must be a list of opportunity types")
        unique = remove_duplicates(kinds)
        result.cleaned[url] = unique
        removed = len(kinds) - len(unique)
        if not removed:
            continue
        result.urls_affected += 1
        result.duplicates_removed += removed
        if len(result.examples) < _MAX_EXAMPLES:
            result.examples.append(
                {
                    "url": url,
                    "duplicates": find_duplicates(kinds),
                    "originalCount": len(kinds),
                    "cleanedCount": len(unique),
                }
            )
    return result


# --------------------------------------------------------------------------- #
# Таблица opportunities                                                       #
# --------------------------------------------------------------------------- #


def spreadsheet_rows(site: str, by_type: Mapping[str, Any]) -> List[Dict[str, str]]:
    """Строки таблицы для известных типов opportunity одного сайта."""
    rows: List[Dict[str, str]] = []
    for kind in OPPORTUNITY_TYPES:
        urls = by_type.get(kind)
        if not isinstance(urls, list):
            continue
        for url in urls:
            rows.append(
                {
                    "Site": site,
                    "Opportunity Type": OPPORTUNITY_LABELS.get(kind, kind),
                    "Priority": OPPORTUNITY_PRIORITIES.get(kind, _DEFAULT_PRIORITY),
                    "URL": url,
                    "Full URL": url if url.startswith("http") else f"https://{url}",
                }
            )
    return rows


def sort_rows(rows: Iterable[Dict[str, str]]) -> List[Dict[str, str]]:
    """High -> Medium -> Low, затем по сайту."""
    return sorted(rows, key=lambda r: (_PRIORITY_ORDER.get(r["Priority"], 99), r["Site"]))


def summarize_rows(rows: Sequence[Mapping[str, str]]) -> Dict[str, Any]:
    summary: Dict[str, Any] = {
        "totalUrls": len(rows),
        "bySite": {},
        "byOpportunityType": {},
        "byPriority": {},
    }
    for row in rows:
        for bucket, column in (
            ("bySite", "Site"),
            ("byOpportunityType", "Opportunity Type"),
            ("byPriority", "Priority"),
        ):
            summary[bucket][row[column]] = summary[bucket].get(row[column], 0) + 1
    return summary
