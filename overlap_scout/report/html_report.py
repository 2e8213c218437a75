"""overlap_scout.report.html_report: Генерация HTML-отчёта по пересечениям с помощью Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

TEMPLATE_NAME = "overlap_report.html.j2"
DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"


def render_html(
    rows: Sequence[Mapping[str, Any]],
    output_path: Union[Path, str],
    template_dir: Optional[Union[Path, str]] = None,
    *,
    top_n: int = 200,
) -> Path:
    """Рендерит HTML-таблицу статистики пересечений и сохраняет её по указанному пути.

    Args:
        rows: строки статистики (OverlapEngine.site_stats).
        output_path: путь к итоговому HTML-файлу.
        template_dir: директория с шаблоном ``overlap_report.html.j2``;
            по умолчанию шаблон из пакета.
        top_n: знаменатель процентов, выводится в заголовке.

    Returns:
        Path до сохранённого HTML-файла.

    Пример:
    ```python
    from overlap_scout.report.html_report import render_html
    html_path = render_html(rows, 'output/stats.html')
    ```
    """
    template_dir = Path(template_dir) if template_dir else DEFAULT_TEMPLATE_DIR
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )
    template = env.get_template(TEMPLATE_NAME)

    context: dict[str, Any] = {
        "rows": list(rows),
        "top_n": top_n,
        "columns": list(rows[0].keys()) if rows else [],
    }

    output_path.write_text(template.render(**context), encoding="utf-8")
    return output_path
