# File: tests/conftest.py
import json
from pathlib import Path
from typing import Any, Dict, List

import pytest

from overlap_scout.config import AnalyticsConfig
from overlap_scout.manifest import Manifest, save_manifest
from overlap_scout.models import Site


def write_json(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def no_token_env(monkeypatch):
    """Токен из окружения не должен влиять на тесты."""
    monkeypatch.delenv("OVERLAP_SCOUT_TOKEN", raising=False)


@pytest.fixture()
def sites() -> List[Site]:
    return [
        Site(id="site-1", base_url="https://www.sunstar.com"),
        Site(id="site-2", base_url="https://other.com"),
    ]


@pytest.fixture()
def basic_config() -> AnalyticsConfig:
    """
    Return a config pointing at a local API, used by engine and client tests.
    """
    return AnalyticsConfig(
        api_base_url="http://127.0.0.1:9/api/v1",
        api_token="test-token",
        timeout=2.0,
        concurrency=2,
    )


@pytest.fixture()
def opportunities_payload() -> List[Dict[str, Any]]:
    """
    Provide an opportunities export of one site with nested suggestion data.
    """
    return [
        {
            "id": "opp-1",
            "type": "broken-backlinks",
            "suggestions": [
                {"url_from": "https://www.sunstar.com/p1", "url_to": "https://elsewhere.org/x"},
                {"url_from": "https://sunstar.com/p2"},
            ],
        },
        {
            "id": "opp-2",
            "type": "cwv",
            "suggestions": [{"pageUrl": "https://sunstar.com/p1", "metrics": {"lcp": 2.1}}],
        },
        {"id": "opp-3", "suggestions": [{"url": "http://sunstar.com/p3"}]},
    ]


@pytest.fixture()
def opportunities_dir(tmp_path, sites, opportunities_payload) -> Path:
    """
    Directory of per-site opportunity exports plus its manifest.
    """
    directory = tmp_path / "opportunities"
    write_json(directory / "site_opportunities_site-1.json", opportunities_payload)
    write_json(directory / "site_opportunities_site-2.json", [{"type": "sitemap", "url": "other.com/a"}])
    manifest = Manifest()
    manifest.add("site_opportunities_site-1.json", sites[0])
    manifest.add("site_opportunities_site-2.json", sites[1])
    save_manifest(manifest, directory)
    return directory


@pytest.fixture()
def json_writer():
    """Функция записи JSON-файла для подготовки входных артефактов."""
    return write_json
