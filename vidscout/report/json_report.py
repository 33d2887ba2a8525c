# vidscout/report/json_report.py

"""
Генерация JSON-отчёта для проекта VidScout.

Сериализация объекта DiscoveryOutcome в файл.
"""
import json
from pathlib import Path

from vidscout.aggregator import DiscoveryOutcome


def render_json(outcome: DiscoveryOutcome, output_path: Path | str) -> Path:
    """
    Сохраняет результат поиска в формате JSON по указанному пути.

    :param outcome: объект DiscoveryOutcome
    :param output_path: путь к JSON-файлу
    :return: Path сохранённого файла

    Пример:
    ```python
    from vidscout.report.json_report import render_json
    report_path = render_json(outcome, 'reports/videos.json')
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    with output.open('w', encoding='utf-8') as f:
        json.dump(outcome.to_dict(), f, ensure_ascii=False, indent=2)

    return output
