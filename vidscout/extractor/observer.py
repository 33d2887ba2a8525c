# vidscout/extractor/observer.py
"""
Dynamic observation of a page in a headless Chromium (Playwright).

Network listeners are attached before navigation and feed a :class:`NetworkLog`
that lives only for one ``observe`` call. After the page settles the DOM is
queried for media elements and the rendered markup is passed through the
static extractor, which picks up anything injected by scripts.
"""
from __future__ import annotations

import asyncio
from typing import Any, List, Optional, Set

from playwright.async_api import Browser, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from vidscout.classifier import is_video_url
from vidscout.config import ScoutConfig
from vidscout.errors import BrowserLaunchError, DynamicObservationError, NavigationTimeout
from vidscout.extractor.html_extractor import extract_candidates
from vidscout.extractor.models import Candidate
from vidscout.logger import logger

_DOM_QUERY = """
() => {
    const urls = [];
    document.querySelectorAll('video').forEach((video) => {
        if (video.src) urls.push(video.src);
        video.querySelectorAll('source').forEach((source) => {
            if (source.src) urls.push(source.src);
        });
    });
    document.querySelectorAll('iframe').forEach((frame) => {
        if (frame.src) urls.push(frame.src);
    });
    return urls;
}
"""

_POLL_INTERVAL = 0.05


class NetworkLog:
    """Collects candidates from browser traffic and tracks in-flight requests."""

    def __init__(self, idle_connections: int = 2, idle_window: float = 0.5) -> None:
        self.idle_connections = idle_connections
        self.idle_window = idle_window
        self.candidates: List[Candidate] = []
        self._inflight: Set[Any] = set()

    @property
    def inflight(self) -> int:
        return len(self._inflight)

    def on_request(self, request: Any) -> None:
        self._inflight.add(request)
        if is_video_url(request.url):
            self.candidates.append(Candidate(request.url, "dynamic:request"))

    def on_request_done(self, request: Any) -> None:
        self._inflight.discard(request)

    def on_response(self, response: Any) -> None:
        content_type = (response.headers.get("content-type") or "").lower()
        if content_type.startswith("video/") or is_video_url(response.url):
            self.candidates.append(Candidate(response.url, "dynamic:response"))

    async def wait_for_quiescence(self, timeout: float) -> bool:
        """
        Wait until no more than ``idle_connections`` requests stay in flight for
        ``idle_window`` seconds. Returns False if *timeout* ran out first.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + max(timeout, 0.0)
        idle_since: Optional[float] = None
        while True:
            now = loop.time()
            if self.inflight <= self.idle_connections:
                if idle_since is None:
                    idle_since = now
                if now - idle_since >= self.idle_window:
                    return True
            else:
                idle_since = None
            if now >= deadline:
                return False
            await asyncio.sleep(min(_POLL_INTERVAL, max(deadline - now, 0.0)))


class DynamicObserver:
    """Loads a page in headless Chromium and reports video URLs it sees."""

    def __init__(self, config: ScoutConfig) -> None:
        self.config = config

    async def observe(self, page_url: str, timeout_ms: Optional[int] = None) -> List[Candidate]:
        """
        Observe *page_url* for at most *timeout_ms* milliseconds.

        Launch, navigation and crash failures are reported as
        DynamicObservationError (or one of its subclasses). A page that cannot
        be inspected after loading still yields its network captures. The
        browser is closed on every exit path.
        """
        opts = self.config.discovery
        timeout_ms = timeout_ms or opts.dynamic_timeout_ms
        try:
            async with async_playwright() as pw:
                browser = await self._launch(pw)
                try:
                    return await self._observe_page(browser, page_url, timeout_ms)
                finally:
                    await browser.close()
        except PlaywrightTimeoutError as exc:
            raise NavigationTimeout(f"Navigation to {page_url} exceeded {timeout_ms} ms") from exc
        except PlaywrightError as exc:
            raise DynamicObservationError(f"Browser failed on {page_url}: {exc.message}") from exc

    async def _launch(self, pw: Playwright) -> Browser:
        try:
            return await pw.chromium.launch(headless=True, args=list(self.config.browser_args))
        except PlaywrightError as exc:
            raise BrowserLaunchError(f"Could not launch Chromium: {exc.message}") from exc

    async def _observe_page(self, browser: Browser, page_url: str, timeout_ms: int) -> List[Candidate]:
        opts = self.config.discovery
        context = await browser.new_context(
            user_agent=self.config.user_agent,
            ignore_https_errors=not self.config.verify_ssl,
            viewport={"width": 1280, "height": 720},
        )
        page = await context.new_page()

        log = NetworkLog(opts.idle_connections, opts.idle_window_ms / 1000)
        page.on("request", log.on_request)
        page.on("requestfinished", log.on_request_done)
        page.on("requestfailed", log.on_request_done)
        page.on("response", log.on_response)

        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout_ms / 1000
        logger.debug("Navigating to %s (timeout %d ms)", page_url, timeout_ms)
        await page.goto(page_url, wait_until="domcontentloaded", timeout=timeout_ms)

        if not await log.wait_for_quiescence(deadline - loop.time()):
            logger.debug("Network on %s never settled, %d requests in flight", page_url, log.inflight)

        found = list(log.candidates)
        try:
            dom_urls = await page.evaluate(_DOM_QUERY)
            found += [Candidate(u, "dynamic:dom") for u in dom_urls if isinstance(u, str)]
            html = await page.content()
            found += extract_candidates(html, source_prefix="rendered")
        except PlaywrightError as exc:
            # usually the page navigated away; network captures stay valid
            logger.warning("Could not inspect rendered page %s: %s", page_url, exc.message)
        logger.debug("Dynamic observation of %s produced %d candidates", page_url, len(found))
        return found


__all__ = ["NetworkLog", "DynamicObserver"]
