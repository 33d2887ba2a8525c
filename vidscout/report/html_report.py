"""vidscout.report.html_report: Генерация HTML-отчёта с помощью Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from vidscout.aggregator import DiscoveryOutcome

TEMPLATE_NAME = "report.html.j2"


def render_html(
    outcome: DiscoveryOutcome,
    template_dir: Union[Path, str],
    output_path: Union[Path, str],
) -> Path:
    """Рендерит HTML-отчёт из шаблона и сохраняет его по указанному пути.

    Args:
        outcome: объект DiscoveryOutcome.
        template_dir: директория с шаблоном ``report.html.j2``.
        output_path: путь к итоговому HTML-файлу.

    Returns:
        Path до сохранённого HTML-файла.
    """
    template_dir = Path(template_dir)
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )
    template = env.get_template(TEMPLATE_NAME)

    context: dict[str, Any] = {
        "page_url": outcome.page_url,
        "video_urls": outcome.video_urls,
        "sources": outcome.sources,
        "errors": outcome.errors,
        "count": outcome.count,
    }

    output_path.write_text(template.render(**context), encoding="utf-8")
    return output_path
