# File: vidscout/aggregator.py
"""vidscout.aggregator: Сборка итогового результата поиска видео."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from vidscout.errors import NoResultsError
from vidscout.extractor.models import Candidate, PageTarget
from vidscout.utils import normalize_candidates, resolve_candidate


@dataclass(slots=True)
class DiscoveryOutcome:
    """Результат одного вызова поиска: найденные URL, их источники и поглощённые ошибки."""

    page_url: str
    video_urls: List[str] = field(default_factory=list)
    sources: Dict[str, List[str]] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return bool(self.video_urls)

    @property
    def count(self) -> int:
        return len(self.video_urls)

    def raise_for_empty(self) -> DiscoveryOutcome:
        """Бросает NoResultsError, если ничего не найдено; иначе возвращает self."""
        if not self.found:
            raise NoResultsError(self.page_url)
        return self

    def to_payload(self) -> Dict[str, Any]:
        """Ответ HTTP-сервиса: ``{videoUrls, pageUrl, count}``."""
        return {"videoUrls": list(self.video_urls), "pageUrl": self.page_url, "count": self.count}

    def to_dict(self) -> Dict[str, Any]:
        data = self.to_payload()
        data["sources"] = {url: list(labels) for url, labels in self.sources.items()}
        data["errors"] = list(self.errors)
        return data

    def json(self, *, pretty: bool = False) -> str:
        """Возвращает полное JSON-представление, включая источники."""
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)


def aggregate_candidates(
    page_url: str,
    candidates: Iterable[Candidate],
    errors: Iterable[BaseException] = (),
) -> DiscoveryOutcome:
    """Объединяет кандидатов всех стратегий в DiscoveryOutcome."""
    candidates = list(candidates)
    target = PageTarget.from_url(page_url)
    urls = normalize_candidates((c.url for c in candidates), page_url)
    kept = set(urls)

    sources: Dict[str, List[str]] = {url: [] for url in urls}
    for cand in candidates:
        if not cand.url.strip():
            continue
        url = resolve_candidate(cand.url, target)
        if url in kept and cand.source not in sources[url]:
            sources[url].append(cand.source)

    return DiscoveryOutcome(
        page_url=page_url,
        video_urls=urls,
        sources=sources,
        errors=[f"{type(e).__name__}: {e}" for e in errors],
    )


__all__ = ["DiscoveryOutcome", "aggregate_candidates"]
