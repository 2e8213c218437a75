# File: tests/test_report.py
import json

from overlap_scout.report import render_csv, render_html, render_json, to_csv


def test_to_csv_quotes_strings_only():
    rows = [
        {"siteId": "s1", "siteBaseURL": 'https://a.com/"q"', "overlapAll": 3, "overlapAllPercentage": 1.5},
        {"siteId": "s2", "siteBaseURL": "https://b.com", "overlapAll": 0, "overlapAllPercentage": 0.0},
    ]
    assert to_csv(rows) == (
        "siteId,siteBaseURL,overlapAll,overlapAllPercentage\n"
        '"s1","https://a.com/""q""",3,1.5\n'
        '"s2","https://b.com",0,0.0'
    )


def test_to_csv_empty_and_special_values():
    assert to_csv([]) == ""
    assert to_csv([{"a": None, "b": True, "c": "x,y"}]) == 'a,b,c\n,true,"x,y"'


def test_to_csv_header_from_first_row():
    rows = [{"a": 1}, {"a": 2, "b": "ignored"}, {"b": "no a"}]
    assert to_csv(rows) == "a\n1\n2\n"


def test_render_json_and_csv(tmp_path):
    data = [{"siteId": "s1", "overlapAll": 1}]
    json_path = render_json(data, tmp_path / "nested" / "stats.json")
    assert json.loads(json_path.read_text(encoding="utf-8")) == data
    csv_path = render_csv(data, tmp_path / "stats.csv")
    assert csv_path.read_text(encoding="utf-8") == 'siteId,overlapAll\n"s1",1'


def test_render_html(tmp_path):
    rows = [{"siteId": "s1", "siteBaseURL": "https://a.com/<x>", "overlapAll": 2}]
    path = render_html(rows, tmp_path / "report.html", top_n=100)
    html = path.read_text(encoding="utf-8")
    assert "top 100 pages" in html
    assert "<th>siteBaseURL</th>" in html
    assert "https://a.com/&lt;x&gt;" in html


def test_render_html_no_rows(tmp_path):
    html = render_html([], tmp_path / "empty.html").read_text(encoding="utf-8")
    assert "No sites." in html
