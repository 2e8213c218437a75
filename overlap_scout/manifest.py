# File: overlap_scout/manifest.py
"""overlap_scout.manifest: Файл-спутник, связывающий имена артефактов с сайтами.

Вместо разбора siteId или домена из имени файла каждый каталог с
артефактами по сайтам содержит ``manifest.json``::

    {"entries": {"site_opportunities_<id>.json": {"siteId": "...", "domain": "...", "baseURL": "..."}}}
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from overlap_scout.errors import MalformedInput
from overlap_scout.models import Site
from overlap_scout.utils import clean_domain

__all__ = ["MANIFEST_NAME", "ManifestEntry", "Manifest", "load_manifest", "save_manifest"]

MANIFEST_NAME = "manifest.json"


class ManifestEntry(BaseModel):
    """Сайт, к которому относится один файл."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    site_id: str = Field(..., alias="siteId")
    domain: str
    base_url: str = Field("", alias="baseURL")

    @classmethod
    def for_site(cls, site: Site) -> ManifestEntry:
        return cls(site_id=site.id, domain=clean_domain(site.base_url), base_url=site.base_url)


class Manifest(BaseModel):
    entries: Dict[str, ManifestEntry] = Field(default_factory=dict)

    def add(self, filename: str, site: Site) -> None:
        self.entries[filename] = ManifestEntry.for_site(site)

    def lookup(self, filename: str) -> Optional[ManifestEntry]:
        return self.entries.get(filename)


def load_manifest(directory: Union[str, Path]) -> Manifest:
    """Читает manifest.json каталога; без файла FileNotFoundError."""
    path = Path(directory) / MANIFEST_NAME
    if not path.is_file():
        raise FileNotFoundError(f"Manifest not found: {path}")
    try:
        return Manifest.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as exc:
        raise MalformedInput(str(path), f"invalid manifest: {exc}") from exc


def save_manifest(manifest: Manifest, directory: Union[str, Path]) -> Path:
    path = Path(directory) / MANIFEST_NAME
    path.parent.mkdir(parents=True, exist_ok=True)
    data = manifest.model_dump(by_alias=True)
    path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
    return path
