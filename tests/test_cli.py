# File: tests/test_cli.py
"""Тесты для CLI (`overlap_scout/cli.py`) с использованием click.testing.CliRunner.
Проверяют команды, `--version`, а также обработку ошибок.
"""
import json

import pytest
from click.testing import CliRunner

import overlap_scout.engine as engine_module
from overlap_scout.cli import cli
from overlap_scout.models import Site


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    """Без configs/default.yaml в рабочем каталоге используются значения по умолчанию."""
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def patch_client(monkeypatch):
    """Патчим ApiClient движка, чтобы команды сбора данных не ходили в сеть."""

    class DummyClient:
        def __init__(self, config, session=None):
            pass

        async def __aenter__(self):
            return self

        async def __aexit__(self, *exc_info):
            return None

        async def site_by_base_url(self, base_url):
            return Site(id="site-1", base_url=base_url)

        async def ahrefs_top_pages(self, site):
            return {"siteBaseURL": site.base_url, "siteId": site.id, "topPages": ["sunstar.com/a"]}

        async def opportunities(self, site_id):
            return [{"id": "o1", "type": "cwv", "suggestions": [{"pageUrl": "https://sunstar.com/a"}]}]

    monkeypatch.setattr(engine_module, "ApiClient", DummyClient)


@pytest.fixture()
def overlap_inputs(tmp_path, json_writer):
    sites = [{"id": "s1", "baseURL": "https://sunstar.com"}, {"id": "s2", "baseURL": "https://other.com"}]
    return {
        "sites": json_writer(tmp_path / "sites.json", sites),
        "ahrefs": json_writer(
            tmp_path / "ahrefs.json",
            [{"siteId": "s1", "siteBaseURL": "https://sunstar.com", "topPages": ["sunstar.com/a", "sunstar.com/b"]}],
        ),
        "rum": json_writer(
            tmp_path / "rum.json",
            [{"siteId": "s1", "siteBaseURL": "https://sunstar.com", "topPages": ["sunstar.com/b", "sunstar.com/c"]}],
        ),
        "opportunities": json_writer(
            tmp_path / "opps.json",
            [{"siteId": "s1", "domain": "sunstar.com", "extractedLinks": ["sunstar.com/a", "sunstar.com/b"]}],
        ),
    }


def test_version_option():
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "OverlapScout" in result.output


def test_show_config(tmp_path):
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text("top_n: 100\napi_token: hidden\n", encoding="utf-8")

    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "config"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["top_n"] == 100
    assert "api_token" not in data


def test_invalid_config_exits(tmp_path):
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text("top_n: -1\n", encoding="utf-8")
    result = CliRunner().invoke(cli, ["--config", str(cfg_file), "config"])
    assert result.exit_code == 1
    assert "Ошибка загрузки конфигурации" in result.output


def test_overlap_reports(tmp_path, overlap_inputs):
    out_json = tmp_path / "out" / "stats.json"
    out_csv = tmp_path / "out" / "stats.csv"
    out_html = tmp_path / "out" / "stats.html"
    args = ["overlap"]
    for name in ("sites", "ahrefs", "rum", "opportunities"):
        args += [f"--{name}", str(overlap_inputs[name])]
    args += ["--json", str(out_json), "--csv", str(out_csv), "--html", str(out_html)]

    result = CliRunner().invoke(cli, args)
    assert result.exit_code == 0
    assert "Succeeded: 1, failed: 1" in result.output

    rows = json.loads(out_json.read_text(encoding="utf-8"))
    assert rows == [
        {
            "siteId": "s1",
            "siteBaseURL": "https://sunstar.com",
            "overlapAll": 1,
            "overlapAllPercentage": 0.5,
            "overlapAhrefsOpportunities": 2,
            "overlapAhrefsOpportunitiesPercentage": 1.0,
            "overlapRumOpportunities": 1,
            "overlapRumOpportunitiesPercentage": 0.5,
        }
    ]
    assert out_csv.read_text(encoding="utf-8").splitlines()[1].startswith('"s1","https://sunstar.com",1,0.5')
    assert "sunstar.com" in out_html.read_text(encoding="utf-8")


def test_overlap_malformed_dataset(tmp_path, overlap_inputs):
    overlap_inputs["rum"].write_text("{oops", encoding="utf-8")
    args = ["overlap"]
    for name in ("sites", "ahrefs", "rum", "opportunities"):
        args += [f"--{name}", str(overlap_inputs[name])]
    result = CliRunner().invoke(cli, args)
    assert result.exit_code == 1


def test_sites_top_pages_opportunities(tmp_path, patch_client):
    runner = CliRunner()
    sites_file = tmp_path / "sites.json"
    result = runner.invoke(cli, ["sites", "https://sunstar.com", "-o", str(sites_file)])
    assert result.exit_code == 0
    assert json.loads(sites_file.read_text(encoding="utf-8")) == [{"baseURL": "https://sunstar.com", "id": "site-1"}]

    pages_file = tmp_path / "ahrefs.json"
    result = runner.invoke(cli, ["top-pages", "--sites", str(sites_file), "-o", str(pages_file)])
    assert result.exit_code == 0
    assert json.loads(pages_file.read_text(encoding="utf-8"))[0]["topPages"] == ["sunstar.com/a"]

    out_dir = tmp_path / "opps"
    result = runner.invoke(cli, ["opportunities", "--sites", str(sites_file), "-o", str(out_dir)])
    assert result.exit_code == 0
    assert (out_dir / "site_opportunities_site-1.json").exists()
    assert (out_dir / "manifest.json").exists()

    links_file = tmp_path / "links.json"
    result = runner.invoke(cli, ["extract-links", "-i", str(out_dir), "-o", str(links_file)])
    assert result.exit_code == 0
    links = json.loads(links_file.read_text(encoding="utf-8"))
    assert links[0]["extractedLinks"] == ["sunstar.com/a"]


def test_sites_without_urls():
    result = CliRunner().invoke(cli, ["sites", "-o", "sites.json"])
    assert result.exit_code == 1


def test_opportunity_file_pipeline(tmp_path, opportunities_dir):
    runner = CliRunner()
    by_type = tmp_path / "by_type"
    by_url = tmp_path / "by_url"

    result = runner.invoke(cli, ["group-opportunities", "-i", str(opportunities_dir), "-o", str(by_type)])
    assert result.exit_code == 0
    assert "Succeeded: 2, failed: 0" in result.output

    result = runner.invoke(cli, ["spreadsheet", str(by_type), "--csv", str(tmp_path / "s.csv"),
                                 "--summary", str(tmp_path / "summary.json")])
    assert result.exit_code == 0
    summary = json.loads((tmp_path / "summary.json").read_text(encoding="utf-8"))
    assert summary["byPriority"] == {"High": 3, "Medium": 1}
    assert (tmp_path / "s.csv").read_text(encoding="utf-8").startswith(
        "Site,Opportunity Type,Priority,URL,Full URL\n"
    )

    result = runner.invoke(cli, ["reshape", str(by_type), str(by_url)])
    assert result.exit_code == 0
    reshaped = json.loads((by_url / "sunstar.com_site-1_opportunities.json").read_text(encoding="utf-8"))
    assert reshaped["sunstar.com/p1"] == ["broken-backlinks", "cwv"]

    result = runner.invoke(cli, ["verify", str(by_url)])
    assert result.exit_code == 0
    assert "No duplicates found" in result.output

    result = runner.invoke(cli, ["add-stats", str(by_type)])
    assert result.exit_code == 0
    grouped = json.loads((by_type / "sunstar.com_site-1_opportunities.json").read_text(encoding="utf-8"))
    assert list(grouped)[0] == "stats"
    assert grouped["stats"]["totalUrls"] == 4


def test_count_pages(tmp_path, json_writer):
    dataset = json_writer(
        tmp_path / "rum.json",
        [{"siteId": "s1", "siteBaseURL": "a.com", "topPages": ["a", "b", "c"]}, {"siteId": "s2", "topPages": []}],
    )
    out = tmp_path / "count.json"
    result = CliRunner().invoke(cli, ["count-pages", str(dataset), "-o", str(out)])
    assert result.exit_code == 0
    assert "Sites: 2, pages: 3" in result.output
    assert json.loads(out.read_text(encoding="utf-8"))["sitesWithoutTopPages"] == 1


def test_merge(tmp_path, json_writer):
    primary = json_writer(tmp_path / "a.json", [{"siteBaseURL": "https://a.com", "siteId": "a", "topPages": []}])
    extra = json_writer(tmp_path / "b.json", [{"siteBaseURL": "https://a.com", "siteId": "a", "topPages": ["a.com/1"]}])
    out = tmp_path / "merged.json"
    result = CliRunner().invoke(cli, ["merge", str(primary), str(extra), "-o", str(out)])
    assert result.exit_code == 0
    assert "updated: 1, added: 0" in result.output
    assert json.loads(out.read_text(encoding="utf-8"))[0]["topPages"] == ["a.com/1"]


def test_missing_sites(tmp_path, json_writer):
    sites = json_writer(
        tmp_path / "sites.json",
        [{"id": "s1", "baseURL": "https://www.a.com"}, {"id": "s2", "baseURL": "https://b.com"}],
    )
    records = json_writer(tmp_path / "rum.json", [{"siteBaseURL": "a.com"}])
    out = tmp_path / "missing.json"
    result = CliRunner().invoke(
        cli, ["missing-sites", "--sites", str(sites), "--records", str(records), "-o", str(out)]
    )
    assert result.exit_code == 0
    assert "Found: 1, missing: 1" in result.output
    assert json.loads(out.read_text(encoding="utf-8")) == [{"baseURL": "https://b.com", "id": "s2"}]


def test_opportunities_default_output_dir(tmp_path, patch_client, json_writer):
    sites_file = json_writer(tmp_path / "sites.json", [{"id": "site-1", "baseURL": "https://sunstar.com"}])
    result = CliRunner().invoke(cli, ["opportunities", "--sites", str(sites_file)])
    assert result.exit_code == 0
    assert "Succeeded: 1, failed: 0" in result.output
    assert (tmp_path / "output" / "opportunities" / "site_opportunities_site-1.json").exists()
