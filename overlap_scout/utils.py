# File: overlap_scout/utils.py
"""overlap_scout.utils: Нормализация URL, фильтрация по домену и удаление дубликатов."""

from __future__ import annotations

from typing import Any, Collection, Hashable, Iterable, List, Sequence

from overlap_scout.logger import logger

__all__: Sequence[str] = (
    "normalize_url",
    "filter_by_domain",
    "clean_domain",
    "remove_duplicates",
)

# https проверяется первым
_SCHEME_PREFIXES = ("https://", "http://")
_WWW_PREFIX = "www."


def normalize_url(raw: str) -> str:
    """Убирает схему (https:// или http://) и один ведущий ``www.``, регистр не важен.

    Остальная часть строки не меняется: слеши, query и регистр сохраняются.
    """
    value = raw
    for prefix in _SCHEME_PREFIXES:
        if value.lower().startswith(prefix):
            value = value[len(prefix):]
            break
    if value.lower().startswith(_WWW_PREFIX):
        value = value[len(_WWW_PREFIX):]
    return value


def filter_by_domain(values: Iterable[Any], domain: str) -> List[str]:
    """Оставляет значения, содержащие domain (без учёта регистра), и нормализует их.

    Проверяется вхождение подстроки, а не совпадение хоста: ``a.com`` найдётся в ``xa.com``.
    Дубликаты не удаляются.
    """
    needle = domain.lower()
    kept = [normalize_url(str(value)) for value in values if needle in str(value).lower()]
    logger.debug("Domain filter %r kept %d values", domain, len(kept))
    return kept


def clean_domain(base_url: str) -> str:
    """Домен сайта для фильтрации: baseURL в нижнем регистре без схемы и ``www.``."""
    return normalize_url(base_url.strip().lower()).rstrip("/")


def remove_duplicates(items: Collection[Hashable]) -> List[Any]:
    """Удаляет дубликаты, сохраняя порядок первого появления."""
    unique = list(dict.fromkeys(items))
    removed = len(items) - len(unique)
    if removed:
        logger.debug("Removed %d duplicate values", removed)
    return unique
