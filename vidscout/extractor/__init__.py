"""vidscout.extractor: стратегии поиска видео-URL (прямой запрос, HTML, браузер)."""

from .fetcher import PageFetcher
from .html_extractor import extract_candidates, extract_from_html
from .models import Candidate, PageData, PageTarget
from .observer import DynamicObserver, NetworkLog

__all__ = [
    "Candidate",
    "DynamicObserver",
    "NetworkLog",
    "PageData",
    "PageFetcher",
    "PageTarget",
    "extract_candidates",
    "extract_from_html",
]
