"""vidscout.report: Отчёты о найденных видео (JSON и HTML) для CLI."""

from .html_report import render_html
from .json_report import render_json

__all__ = ["render_json", "render_html"]
