# overlap_scout/extractor.py
"""
Key extraction: walks an arbitrary JSON tree and collects the values stored
under a set of target field names.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Set

from overlap_scout.logger import logger

__all__ = (
    "DEFAULT_TARGET_KEYS",
    "ExtractedValue",
    "KeyExtractor",
    "extract_values",
    "unique_values",
    "group_by_key",
)

DEFAULT_TARGET_KEYS: tuple[str, ...] = ("pageUrl", "urlFrom", "url", "url_from", "page")

ROOT_PATH = "root"


@dataclass(slots=True)
class ExtractedValue:
    """One occurrence of a target field: its name, value and location in the tree."""

    key: str
    value: Any
    path: str


def _identity(*parts: Any) -> str:
    # values may be dicts or lists, so identity goes through canonical JSON
    return json.dumps(parts, sort_keys=True, ensure_ascii=False, default=str)


class KeyExtractor:
    """Collects every value reachable under one of ``target_keys``.

    A matching field is emitted and, when it holds a dict or list, also
    descended into. Records are unique by (key, value, path); the same value
    found at two paths yields two records.

    The tree must be acyclic.
    """

    def __init__(self, target_keys: Iterable[str] = DEFAULT_TARGET_KEYS) -> None:
        self.target_keys: Set[str] = set(target_keys)

    def extract(self, tree: Any) -> List[ExtractedValue]:
        results: List[ExtractedValue] = []
        seen: Set[str] = set()
        self._walk(tree, ROOT_PATH, results, seen)
        logger.debug("Extracted %d values for keys %s", len(results), sorted(self.target_keys))
        return results

    def _walk(self, node: Any, path: str, results: List[ExtractedValue], seen: Set[str]) -> None:
        if isinstance(node, list):
            for index, item in enumerate(node):
                self._walk(item, f"{path}[{index}]", results, seen)
            return
        if not isinstance(node, dict):
            return
        for key, value in node.items():
            child_path = f"{path}.{key}"
            if key in self.target_keys and value is not None:
                ident = _identity(key, value, child_path)
                if ident not in seen:
                    seen.add(ident)
                    results.append(ExtractedValue(key=key, value=value, path=child_path))
            if isinstance(value, (dict, list)):
                self._walk(value, child_path, results, seen)


def extract_values(tree: Any, target_keys: Iterable[str] = DEFAULT_TARGET_KEYS) -> List[ExtractedValue]:
    """Shortcut for ``KeyExtractor(target_keys).extract(tree)``."""
    return KeyExtractor(target_keys).extract(tree)


def unique_values(records: Iterable[ExtractedValue]) -> List[Any]:
    """Distinct values across all records, in order of first occurrence."""
    seen: Set[str] = set()
    values: List[Any] = []
    for record in records:
        ident = _identity(record.value)
        if ident in seen:
            continue
        seen.add(ident)
        values.append(record.value)
    return values


def group_by_key(records: Iterable[ExtractedValue]) -> Dict[str, List[ExtractedValue]]:
    """Records grouped by the field name they were found under."""
    grouped: Dict[str, List[ExtractedValue]] = {}
    for record in records:
        grouped.setdefault(record.key, []).append(record)
    return grouped
