# File: overlap_scout/loader.py
"""overlap_scout.loader: Чтение JSON-артефактов и операции над списками сайтов."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence, Tuple, Union

from overlap_scout.errors import MalformedInput
from overlap_scout.logger import logger
from overlap_scout.manifest import MANIFEST_NAME
from overlap_scout.models import Site, SourceDataset
from overlap_scout.utils import normalize_url

__all__ = [
    "read_json",
    "list_json_files",
    "load_sites",
    "load_dataset",
    "merge_datasets",
    "find_missing_sites",
]


def read_json(path: Union[str, Path]) -> Any:
    """Читает JSON-файл; ошибка разбора превращается в MalformedInput."""
    p = Path(path)
    try:
        return json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise MalformedInput(str(p), f"invalid JSON: {exc}") from exc


def list_json_files(directory: Union[str, Path]) -> List[Path]:
    """JSON-файлы каталога в алфавитном порядке (manifest.json не включается)."""
    d = Path(directory)
    if not d.is_dir():
        raise FileNotFoundError(f"Directory not found: {d}")
    return sorted(p for p in d.iterdir() if p.suffix == ".json" and p.name != MANIFEST_NAME)


def _expect_list(data: Any, source: str) -> List[Any]:
    if not isinstance(data, list):
        raise MalformedInput(source, f"expected a JSON array, got {type(data).__name__}")
    return data


def load_sites(path: Union[str, Path]) -> List[Site]:
    data = _expect_list(read_json(path), str(path))
    sites = [Site.from_record(record) for record in data]
    logger.info("Loaded %d sites from %s", len(sites), path)
    return sites


def load_dataset(path: Union[str, Path], source: str) -> List[SourceDataset]:
    data = _expect_list(read_json(path), str(path))
    records = [SourceDataset.from_record(record, source) for record in data]
    logger.info("Loaded %d %s records from %s", len(records), source, path)
    return records


def merge_datasets(
    primary: Sequence[Mapping[str, Any]],
    supplement: Sequence[Mapping[str, Any]],
    key: str = "siteBaseURL",
) -> Tuple[List[Dict[str, Any]], int, int]:
    """Дополняет primary записями supplement.

    Пустые ``topPages`` и ``siteId`` существующих записей заполняются из
    supplement, неизвестные сайты добавляются. Возвращает (merged, updated, added),
    merged отсортирован по ``key``.
    """
    merged: Dict[str, Dict[str, Any]] = {record[key]: dict(record) for record in primary}
    updated = added = 0
    for record in supplement:
        existing = merged.get(record[key])
        if existing is None:
            logger.info("Adding new site: %s", record[key])
            merged[record[key]] = dict(record)
            added += 1
            continue
        if record.get("topPages") and not existing.get("topPages"):
            logger.info("Updating %s: adding %d top pages", record[key], len(record["topPages"]))
            existing["topPages"] = list(record["topPages"])
            updated += 1
        if record.get("siteId") and not existing.get("siteId"):
            logger.info("Updating %s: adding siteId", record[key])
            existing["siteId"] = record["siteId"]
            updated += 1
    return sorted(merged.values(), key=lambda r: str(r[key])), updated, added


def _host_key(url: str) -> str:
    return normalize_url(url.strip()).rstrip("/").lower()


def find_missing_sites(
    sites: Sequence[Site],
    records: Sequence[Mapping[str, Any]],
    key: str = "siteBaseURL",
) -> Tuple[List[Site], List[Site]]:
    """Делит сайты на (missing, found) по наличию записи; ``www.`` и схема не учитываются."""
    known = {_host_key(str(record.get(key, ""))) for record in records}
    missing: List[Site] = []
    found: List[Site] = []
    for site in sites:
        (found if _host_key(site.base_url) in known else missing).append(site)
    return missing, found
