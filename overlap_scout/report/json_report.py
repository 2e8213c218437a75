# overlap_scout/report/json_report.py

"""
Запись JSON-артефактов OverlapScout.

Файл перезаписывается целиком; каталоги создаются при необходимости.
"""
import json
from pathlib import Path
from typing import Any


def render_json(data: Any, output_path: Path | str) -> Path:
    """
    Сохраняет data в формате JSON по указанному пути.

    :param data: сериализуемый объект (списки, словари, строки, числа)
    :param output_path: путь к JSON-файлу
    :return: Path сохранённого файла

    Пример:
    ```python
    from overlap_scout.report.json_report import render_json
    path = render_json(stats_rows, 'output/stats.json')
    print(f"JSON report saved to: {path}")
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    # Порядок ключей сохраняется: блок stats остаётся первым
    with output.open('w', encoding='utf-8') as f:
        json.dump(data, f, ensure_ascii=False, indent=2)

    return output
