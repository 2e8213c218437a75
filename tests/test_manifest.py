# File: tests/test_manifest.py
import json

import pytest

from overlap_scout.errors import MalformedInput
from overlap_scout.manifest import MANIFEST_NAME, Manifest, ManifestEntry, load_manifest, save_manifest
from overlap_scout.models import Site


def test_save_and_load_manifest(tmp_path):
    manifest = Manifest()
    manifest.add("site_opportunities_s1.json", Site("s1", "https://www.Sunstar.com/"))
    path = save_manifest(manifest, tmp_path / "out")
    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw == {
        "entries": {
            "site_opportunities_s1.json": {"siteId": "s1", "domain": "sunstar.com", "baseURL": "https://www.Sunstar.com/"}
        }
    }
    loaded = load_manifest(tmp_path / "out")
    assert loaded.lookup("site_opportunities_s1.json") == ManifestEntry(
        site_id="s1", domain="sunstar.com", base_url="https://www.Sunstar.com/"
    )
    assert loaded.lookup("other.json") is None


def test_load_manifest_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_manifest(tmp_path)


def test_load_manifest_invalid(tmp_path):
    (tmp_path / MANIFEST_NAME).write_text('{"entries": {"a.json": {"domain": "a.com"}}}', encoding="utf-8")
    with pytest.raises(MalformedInput):
        load_manifest(tmp_path)
