# File: vidscout/engine.py
"""vidscout.engine: Оркестрация стратегий поиска видео на странице."""

from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, List, Optional, Protocol, Sequence, Tuple

from vidscout.aggregator import DiscoveryOutcome, aggregate_candidates
from vidscout.config import DiscoveryOptions, ScoutConfig
from vidscout.errors import FetchError, NavigationTimeout, TotalFailure, VidScoutError
from vidscout.extractor.fetcher import PageFetcher
from vidscout.extractor.html_extractor import extract_candidates
from vidscout.extractor.models import Candidate
from vidscout.extractor.observer import DynamicObserver
from vidscout.logger import logger

__all__ = ["DiscoveryEngine", "Observer", "discover"]


class Observer(Protocol):
    async def observe(self, page_url: str, timeout_ms: Optional[int] = None) -> Sequence[Candidate]: ...


class DiscoveryEngine:
    """Фасад для сервера, CLI и тестов: запускает стратегии и собирает результат."""

    def __init__(self, config: ScoutConfig, observer: Optional[Observer] = None) -> None:
        """Инициализирует движок; observer по умолчанию DynamicObserver (Playwright)."""
        self.config = config
        self.observer: Observer = observer if observer is not None else DynamicObserver(config)

    async def discover(self, page_url: str, options: Optional[DiscoveryOptions] = None) -> DiscoveryOutcome:
        """Ищет видео на странице.

        Ошибки отдельных стратегий логируются и поглощаются. Если упали все
        стратегии: TotalFailure; если ничего не найдено: outcome.found == False.
        """
        opts = options or self.config.discovery
        logger.info("Discovering videos on %s (dynamic=%s)", page_url, opts.use_dynamic)
        start = time.monotonic()

        strategies: List[Tuple[str, Awaitable[List[Candidate]]]] = []
        if opts.use_dynamic:
            strategies.append(("dynamic", self._observe(page_url, opts)))
        if not opts.use_dynamic or opts.fallback_to_direct_fetch:
            strategies.append(("static", self._fetch_and_extract(page_url)))

        results = await asyncio.gather(
            *(asyncio.wait_for(coro, timeout=opts.timeout) for _, coro in strategies),
            return_exceptions=True,
        )

        candidates: List[Candidate] = []
        errors: List[BaseException] = []
        for (name, _), result in zip(strategies, results):
            if isinstance(result, BaseException):
                errors.append(self._absorb(name, page_url, result, opts))
            else:
                logger.debug("Strategy %s returned %d candidates", name, len(result))
                candidates.extend(result)

        if len(errors) == len(strategies):
            logger.error("All discovery methods failed for %s", page_url)
            raise TotalFailure(page_url, errors)

        outcome = aggregate_candidates(page_url, candidates, errors)
        logger.info(
            "Discovery of %s finished: %d video URLs in %.2f s",
            page_url,
            outcome.count,
            time.monotonic() - start,
        )
        return outcome

    async def _observe(self, page_url: str, opts: DiscoveryOptions) -> List[Candidate]:
        return list(await self.observer.observe(page_url, opts.dynamic_timeout_ms))

    async def _fetch_and_extract(self, page_url: str) -> List[Candidate]:
        async with PageFetcher(self.config) as fetcher:
            page = await fetcher.fetch(page_url)
        return extract_candidates(page.content)

    @staticmethod
    def _absorb(name: str, page_url: str, exc: BaseException, opts: DiscoveryOptions) -> BaseException:
        """Превращает таймаут в доменную ошибку; чужие исключения пробрасывает дальше."""
        if isinstance(exc, asyncio.TimeoutError):
            if name == "dynamic":
                exc = NavigationTimeout(f"Dynamic observation exceeded {opts.timeout} s")
            else:
                exc = FetchError(page_url, f"exceeded discovery budget of {opts.timeout} s")
        elif not isinstance(exc, VidScoutError):
            raise exc
        logger.warning("%s discovery failed for %s: %s", name.capitalize(), page_url, exc)
        return exc


async def discover(page_url: str, config: Optional[ScoutConfig] = None, **overrides: Any) -> DiscoveryOutcome:
    """
    Однократный поиск с конфигурацией по умолчанию.

    overrides: поля DiscoveryOptions (например ``use_dynamic=False``).
    """
    cfg = config or ScoutConfig()
    options = cfg.discovery.model_copy(update=overrides) if overrides else None
    return await DiscoveryEngine(cfg).discover(page_url, options)
