# File: vidscout/utils.py
"""vidscout.utils: Утилитарные функции для нормализации найденных URL."""

from __future__ import annotations

from typing import Collection, Iterable, List, Sequence
from urllib.parse import urljoin, urlparse

from vidscout.extractor.models import PageTarget
from vidscout.logger import logger

__all__: Sequence[str] = (
    "is_blank",
    "is_absolute_url",
    "resolve_candidate",
    "normalize_candidates",
    "remove_duplicates",
)

# Не ведут на загружаемый ресурс
_PSEUDO_SCHEMES = ("blob:", "data:", "javascript:", "about:")


def is_blank(value: str) -> bool:
    """Пустая строка или одни пробелы."""
    return not value or not value.strip()


def is_absolute_url(value: str) -> bool:
    """Проверяет, что строка является абсолютным http(s) URL с хостом."""
    if not value.lower().startswith(("http://", "https://")):
        return False
    try:
        return bool(urlparse(value).hostname)
    except ValueError:
        return False


def resolve_candidate(candidate: str, target: PageTarget) -> str:
    """Превращает относительный кандидат в абсолютный URL.

    Корневые пути (``/a.mp4``) склеиваются с origin страницы, ``//host/a.mp4``
    получает схему страницы, остальные относительные пути разрешаются от URL
    страницы. Если URL страницы не разобрать, кандидат возвращается как есть.
    """
    value = candidate.strip()
    if is_absolute_url(value) or target.origin is None:
        return value
    if value.startswith("//"):
        return f"{target.scheme}:{value}"
    if value.startswith("/"):
        return f"{target.origin}{value}"
    if ":" in value.split("/", 1)[0]:
        # другая схема (rtmp:, ftp: ...) оставляем
        return value
    try:
        return urljoin(target.url, value)
    except ValueError:
        logger.debug("Cannot resolve %s against %s", value, target.url)
        return value


def normalize_candidates(candidates: Iterable[str], page_url: str) -> List[str]:
    """Отбрасывает пустые и псевдо-URL, делает ссылки абсолютными, удаляет дубликаты."""
    target = PageTarget.from_url(page_url)
    resolved: List[str] = []
    for raw in candidates:
        if not isinstance(raw, str) or is_blank(raw):
            continue
        if raw.strip().lower().startswith(_PSEUDO_SCHEMES):
            continue
        resolved.append(resolve_candidate(raw, target))
    return remove_duplicates(resolved)


def remove_duplicates(urls: Collection[str]) -> List[str]:
    """Удаляет дубликаты из списка URL, сохраняя порядок."""
    unique = list(dict.fromkeys(urls))
    removed = len(urls) - len(unique)
    if removed:
        logger.debug("Removed %d duplicate URLs", removed)
    return unique
