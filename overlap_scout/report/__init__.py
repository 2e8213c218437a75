# File: overlap_scout/report/__init__.py
"""overlap_scout.report: Запись отчётов (JSON, CSV и HTML), используемых CLI и движком."""

from .csv_report import render_csv, to_csv
from .html_report import render_html
from .json_report import render_json

__all__ = ["render_json", "render_csv", "to_csv", "render_html"]
