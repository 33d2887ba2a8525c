# File: tests/conftest.py
import asyncio
import sys
from collections.abc import AsyncIterator, Awaitable, Callable
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import pytest
import pytest_asyncio
from aiohttp import web

from vidscout.config import ScoutConfig
from vidscout.extractor.models import Candidate

RouteBody = Union[str, Callable[[web.Request], Awaitable[web.StreamResponse]]]

FAKE_YTDLP = r'''
import json
import sys
import time

args = sys.argv[1:]
url = args[-1]
if "slow" in url:
    time.sleep(10)
if "broken" in url:
    sys.stderr.write("ERROR: Unsupported URL: " + url + "\n")
    sys.exit(1)
if "-J" in args:
    print(json.dumps({
        "title": "Sample clip",
        "thumbnail": "https://img.example.com/thumb.jpg",
        "duration": 12.5,
        "formats": [
            {"format_id": "18", "ext": "mp4", "resolution": "640x360",
             "filesize": 1000, "format_note": "360p"},
            {"format_id": "22", "ext": "mp4", "resolution": "1280x720",
             "filesize_approx": 5000, "format_note": "720p"},
            {"ext": "mhtml"},
        ],
    }))
    sys.exit(0)
out = args[args.index("-o") + 1].replace("%(ext)s", "mp4")
with open(out, "wb") as fh:
    fh.write(b"\x00" * 16)
print("[download] Destination: " + out, file=sys.stderr)
print(out)
'''


class StubObserver:
    """Stand-in for DynamicObserver: returns fixed URLs or raises."""

    def __init__(
        self,
        urls: Sequence[str] = (),
        error: Optional[BaseException] = None,
        delay: float = 0.0,
    ) -> None:
        self.urls = list(urls)
        self.error = error
        self.delay = delay
        self.calls: List[tuple] = []

    async def observe(self, page_url: str, timeout_ms: Optional[int] = None) -> List[Candidate]:
        self.calls.append((page_url, timeout_ms))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return [Candidate(u, "dynamic:request") for u in self.urls]


@pytest.fixture()
def stub_observer():
    """Return the StubObserver class so tests can build observers inline."""
    return StubObserver


@pytest.fixture()
def fake_ytdlp(tmp_path) -> List[str]:
    """Command line that runs a scripted yt-dlp replacement."""
    script = tmp_path / "fake_ytdlp.py"
    script.write_text(FAKE_YTDLP, encoding="utf-8")
    return [sys.executable, str(script)]


@pytest.fixture()
def basic_config(tmp_path, fake_ytdlp) -> ScoutConfig:
    """
    Static-only configuration with short timeouts for tests.
    """
    return ScoutConfig(
        user_agent="TestAgent/1.0",
        fetch_timeout=2.0,
        discovery={"use_dynamic": False, "timeout": 5.0},
        downloader={
            "command": fake_ytdlp,
            "output_dir": str(tmp_path / "downloads"),
            "info_timeout": 5.0,
            "download_timeout": 5.0,
        },
    )


@pytest.fixture()
def dynamic_config(basic_config) -> ScoutConfig:
    """Same as basic_config but with the browser strategy enabled."""
    discovery = basic_config.discovery.model_copy(update={"use_dynamic": True})
    return basic_config.model_copy(update={"discovery": discovery})


@pytest_asyncio.fixture
async def page_server(unused_tcp_port: int) -> AsyncIterator[Callable[..., Awaitable[str]]]:
    """
    Factory fixture: ``await page_server({"/": "<html>…</html>"})`` starts an
    aiohttp app on a free port and returns its base URL.
    """
    runners: List[web.AppRunner] = []

    async def start(routes: Dict[str, RouteBody]) -> str:
        app = web.Application()
        for path, body in routes.items():
            if isinstance(body, str):
                async def handler(_, _body=body):
                    return web.Response(text=_body, content_type="text/html")
                app.router.add_get(path, handler)
            else:
                app.router.add_get(path, body)
        runner = web.AppRunner(app)
        await runner.setup()
        site = web.TCPSite(runner, "127.0.0.1", unused_tcp_port)
        await site.start()
        runners.append(runner)
        return f"http://127.0.0.1:{unused_tcp_port}"

    yield start
    for runner in runners:
        await runner.cleanup()


@pytest.fixture()
def template_dir() -> Path:
    """The HTML report template shipped with the repository."""
    return Path(__file__).resolve().parent.parent / "templates"
