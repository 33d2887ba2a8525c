"""Тесты для CLI (`vidscout.cli`) с использованием click.testing.CliRunner.
Проверяют команды `discover`, `serve`, `config`, `--version`, а также обработку ошибок.
"""
import asyncio
import json

import pytest
import vidscout.cli as cli_module
from click.testing import CliRunner
from vidscout.aggregator import DiscoveryOutcome
from vidscout.cli import cli
from vidscout.errors import FetchError, TotalFailure
from vidscout.logger import configure

PAGE = "https://example.com/watch/1"


@pytest.fixture(autouse=True)
def restore_logging():
    """CliRunner подменяет stdout; возвращаем обычный логгер после теста."""
    yield
    configure(level="INFO")


@pytest.fixture(autouse=True)
def patch_discover(monkeypatch):
    """Патчим discover для возвращения фиктивного результата без сети."""
    calls = []

    async def fake_discover(page_url, cfg, **overrides):
        calls.append((page_url, overrides))
        return DiscoveryOutcome(
            page_url=page_url,
            video_urls=["https://cdn.example.com/a.mp4"],
            sources={"https://cdn.example.com/a.mp4": ["static:element"]},
        )

    monkeypatch.setattr(cli_module, "discover", fake_discover)
    return calls


@pytest.fixture()
def cfg_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        json.dumps({"user_agent": "Agent/1.0", "discovery": {"use_dynamic": False}}),
        encoding="utf-8",
    )
    return path


def test_version_option():
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "VidScout" in result.output


def test_show_config(cfg_file):
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "config"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["user_agent"] == "Agent/1.0"
    assert data["discovery"]["use_dynamic"] is False


def test_discover_stdout(cfg_file, patch_discover):
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "discover", PAGE])
    assert result.exit_code == 0
    assert json.loads(result.output) == {
        "videoUrls": ["https://cdn.example.com/a.mp4"],
        "pageUrl": PAGE,
        "count": 1,
    }
    assert patch_discover == [(PAGE, {})]


def test_discover_no_dynamic_flag(cfg_file, patch_discover):
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "discover", PAGE, "--no-dynamic"])
    assert result.exit_code == 0
    assert patch_discover == [(PAGE, {"use_dynamic": False})]


def test_discover_json_file(cfg_file, tmp_path):
    out = tmp_path / "reports" / "out.json"
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "discover", PAGE, "--json", str(out)])
    assert result.exit_code == 0
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["videoUrls"] == ["https://cdn.example.com/a.mp4"]
    assert data["sources"]["https://cdn.example.com/a.mp4"] == ["static:element"]


def test_discover_html_file(cfg_file, tmp_path, template_dir):
    out = tmp_path / "report.html"
    runner = CliRunner()
    result = runner.invoke(
        cli,
        ["--config", str(cfg_file), "discover", PAGE, "--html", str(out), "--template", str(template_dir)],
    )
    assert result.exit_code == 0
    html = out.read_text(encoding="utf-8")
    assert "https://cdn.example.com/a.mp4" in html
    assert "static:element" in html


def test_discover_not_found(cfg_file, monkeypatch):
    async def empty(page_url, cfg, **overrides):
        return DiscoveryOutcome(page_url=page_url)

    monkeypatch.setattr(cli_module, "discover", empty)
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "discover", PAGE])
    assert result.exit_code == 1
    assert "No video URLs found on the page" in result.output


def test_discover_total_failure(cfg_file, monkeypatch):
    async def broken(page_url, cfg, **overrides):
        raise TotalFailure(page_url, [FetchError(page_url, "HTTP 500", 500)])

    monkeypatch.setattr(cli_module, "discover", broken)
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "discover", PAGE])
    assert result.exit_code == 1
    assert "HTTP 500" in result.output


def test_discover_timeout(cfg_file, monkeypatch):
    async def slow(page_url, cfg, **overrides):
        await asyncio.sleep(2)
        return DiscoveryOutcome(page_url=page_url)

    monkeypatch.setattr(cli_module, "discover", slow)
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "discover", PAGE, "--timeout", "0.2"])
    assert result.exit_code != 0
    assert "не завершён" in result.output


def test_serve_uses_overrides(cfg_file, monkeypatch):
    seen = {}

    def fake_run_server(config, host=None, port=None):
        seen.update(config=config, host=host, port=port)

    monkeypatch.setattr(cli_module, "run_server", fake_run_server)
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "serve", "--port", "8080"])
    assert result.exit_code == 0
    assert seen["port"] == 8080
    assert seen["host"] is None
    assert seen["config"].user_agent == "Agent/1.0"


def test_bad_config_exits(tmp_path):
    bad = tmp_path / "bad.yaml"
    bad.write_text("discovery: {timeout: -1}", encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(bad), "config"])
    assert result.exit_code == 1
    assert "Ошибка загрузки конфигурации" in result.output
