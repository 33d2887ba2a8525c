# === FILE: vidscout/cli.py ===
#!/usr/bin/env python3
"""
Точка входа VidScout через командную строку.

Команды:
  discover URL  Найти ссылки на видео на странице и вывести/сохранить отчёт
  serve         Запустить HTTP-сервис
  config        Показать текущую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml, если есть)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stdout, если не указан)
  --log-format FORMAT Формат логирования

Команда discover опции:
  --json PATH         Сохранить JSON-отчёт в файл
  --html PATH         Сохранить HTML-отчёт в файл
  --template DIR      Папка с Jinja2-шаблоном report.html.j2
  --pretty            Преформатировать JSON-вывод (отступ 2)
  --no-dynamic        Не запускать headless-браузер
  --timeout SEC       Таймаут всего поиска (секунд)

Пример:
  vidscout discover https://example.com/watch/42 --json videos.json --pretty
"""
import sys
import asyncio
import json
from pathlib import Path

import click

from vidscout import __version__
from vidscout.config import load_config
from vidscout.engine import discover
from vidscout.errors import NoResultsError, TotalFailure
from vidscout.logger import configure
from vidscout.report.json_report import render_json
from vidscout.report.html_report import render_html
from vidscout.server import run_server

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='VidScout, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (stdout, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Группа команд VidScout CLI."""
    configure(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('discover', context_settings=CONTEXT_SETTINGS)
@click.argument('page_url')
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить JSON-отчёт в файл'
)
@click.option(
    '--html', '-h', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить HTML-отчёт в файл'
)
@click.option(
    '--template', '-t', 'template_dir',
    default='templates',
    show_default=True,
    type=click.Path(file_okay=False, path_type=Path),
    help='Папка с Jinja2-шаблонами'
)
@click.option('--pretty', is_flag=True, help='Преформатировать JSON-вывод (отступ 2)')
@click.option('--no-dynamic', 'no_dynamic', is_flag=True, help='Только прямой запрос, без браузера')
@click.option(
    '--timeout', 'scan_timeout',
    type=float,
    default=None,
    help='Таймаут всего поиска (секунд)'
)
@click.pass_context
def discover_cmd(ctx, page_url, json_output, html_output, template_dir, pretty, no_dynamic, scan_timeout):
    """Найти ссылки на видео на странице PAGE_URL."""
    cfg = ctx.obj['config']
    overrides = {'use_dynamic': False} if no_dynamic else {}
    try:
        if scan_timeout:
            outcome = asyncio.run(
                asyncio.wait_for(discover(page_url, cfg, **overrides), timeout=scan_timeout)
            )
        else:
            outcome = asyncio.run(discover(page_url, cfg, **overrides))
        outcome.raise_for_empty()
    except asyncio.TimeoutError:
        print_error(f'Поиск не завершён за {scan_timeout} секунд')
    except NoResultsError:
        print_error('No video URLs found on the page')
    except TotalFailure as e:
        print_error(f'Ошибка при поиске видео: {e}')

    # Если не сохраняем в файл, печатаем в stdout
    if not json_output and not html_output:
        indent = 2 if pretty else None
        click.echo(json.dumps(outcome.to_payload(), ensure_ascii=False, indent=indent))
        return

    if json_output:
        try:
            saved_json = render_json(outcome, json_output)
            click.echo(f'JSON report: {saved_json}')
        except OSError as e:
            print_error(f'Ошибка при сохранении JSON: {e}')

    if html_output:
        try:
            saved_html = render_html(outcome, template_dir, html_output)
            click.echo(f'HTML report: {saved_html}')
        except Exception as e:
            print_error(f'Ошибка при сохранении HTML: {e}')


@cli.command('serve', context_settings=CONTEXT_SETTINGS)
@click.option('--host', default=None, help='Адрес для прослушивания (из конфига по умолчанию)')
@click.option('--port', '-p', type=int, default=None, help='Порт (из конфига по умолчанию)')
@click.pass_context
def serve(ctx, host, port):
    """Запустить HTTP-сервис."""
    run_server(ctx.obj['config'], host=host, port=port)


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
