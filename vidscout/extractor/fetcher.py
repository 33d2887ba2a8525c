# vidscout/extractor/fetcher.py
"""
Fetcher module: plain HTTP retrieval of a page, no script execution.
"""
from __future__ import annotations

import asyncio
from typing import Optional

from aiohttp import ClientError, ClientSession, ClientTimeout, TCPConnector

from vidscout.config import ScoutConfig
from vidscout.errors import FetchError
from vidscout.extractor.models import PageData
from vidscout.logger import logger


class PageFetcher:
    """Fetches raw page markup with the configured user agent and TLS policy.

    Usable as an async context manager that owns its ``ClientSession``; an
    existing session may be passed in instead, in which case it is left open.
    """

    def __init__(self, config: ScoutConfig, session: Optional[ClientSession] = None) -> None:
        self.config = config
        self.session = session
        self._owns_session = session is None

    async def __aenter__(self) -> PageFetcher:
        if self.session is None:
            self.session = ClientSession(
                timeout=ClientTimeout(total=self.config.fetch_timeout),
                headers={"User-Agent": self.config.user_agent},
                connector=TCPConnector(ssl=self.config.verify_ssl),
                raise_for_status=False,
            )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    async def fetch(self, url: str) -> PageData:
        """
        Fetch *url* once and return its body as text.

        Raises FetchError on any network/TLS failure, timeout or non-2xx status.
        """
        if not self.session:
            raise RuntimeError("Session not initialized")
        try:
            async with self.session.get(url, allow_redirects=True) as resp:
                if not 200 <= resp.status < 300:
                    raise FetchError(url, f"HTTP {resp.status}", status=resp.status)
                text = await resp.text(errors="replace")
                logger.debug("Fetched %s (%d bytes, %s)", url, len(text), resp.headers.get("Content-Type", "?"))
                return PageData(url=str(resp.url), content=text, status=resp.status, headers=dict(resp.headers))
        except asyncio.TimeoutError as exc:
            raise FetchError(url, "timed out") from exc
        except (ClientError, ValueError) as exc:
            raise FetchError(url, str(exc) or type(exc).__name__) from exc


__all__ = ["PageFetcher"]
