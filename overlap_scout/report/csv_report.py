# File: overlap_scout/report/csv_report.py
"""overlap_scout.report.csv_report: CSV-проекция плоского списка записей."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Sequence, Union

__all__ = ["to_csv", "render_csv"]


def _cell(value: Any) -> str:
    if isinstance(value, str):
        return '"' + value.replace('"', '""') + '"'
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def to_csv(rows: Sequence[Mapping[str, Any]]) -> str:
    """CSV-строка: заголовок из ключей первой записи, строки всегда в кавычках, числа без.

    Пустой список даёт пустую строку. Строки разделяются ``\\n``.
    """
    if not rows:
        return ""
    headers = list(rows[0].keys())
    lines = [",".join(headers)]
    for row in rows:
        lines.append(",".join(_cell(row.get(header)) for header in headers))
    return "\n".join(lines)


def render_csv(rows: Sequence[Mapping[str, Any]], output_path: Union[str, Path]) -> Path:
    """Сохраняет to_csv(rows) в файл и возвращает его путь."""
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(to_csv(rows), encoding="utf-8")
    return output
