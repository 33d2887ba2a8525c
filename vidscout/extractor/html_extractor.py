"""Static extraction of video URLs from HTML markup.

Three independent strategies run over the same document and their output is
simply concatenated; duplicates and relative paths are left for the engine
to normalise:

* element scan – ``src`` of every ``<video>`` and of its nested ``<source>``;
* raw pattern scan – absolute ``http(s)`` URLs ending in a media extension,
  anywhere in the serialized markup;
* script inspection – double-quoted absolute URLs inside inline scripts that
  mention a video/player/stream, filtered by :func:`is_video_url`.

Markup is parsed with the permissive ``html.parser`` tree builder, so unclosed
tags never abort extraction.
"""
from __future__ import annotations

import re
from collections.abc import Sequence
from typing import List

from bs4 import BeautifulSoup
from bs4.element import Tag

from vidscout.classifier import is_video_url
from vidscout.extractor.models import Candidate

__all__: Sequence[str] = (
    "MEDIA_URL_RE",
    "extract_candidates",
    "extract_from_html",
    "scan_media_urls",
)

# entity-escaped quotes (&quot; &#34; &#39; &apos;) end a URL like bare ones
_NOT_QUOTE = r"""(?:(?!&quot;|&#0*3[49];|&apos;)[^"'\s)<>])"""

MEDIA_URL_RE = re.compile(
    rf"""https?://{_NOT_QUOTE}+?\.(?:mp4|webm|ogg|mov|flv|avi|wmv|m3u8|mpd|ts)(?![\w/])"""
    rf"""(?:[?#]{_NOT_QUOTE}*)?""",
    re.IGNORECASE,
)

_SCRIPT_URL_RE = re.compile(r'"(https?:\\?/\\?/[^"\s]+)"')
_SCRIPT_HINTS = ("video", "player", "stream")


def _attr(tag: Tag, name: str) -> str | None:
    value = tag.get(name)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _scan_elements(soup: BeautifulSoup) -> List[str]:
    found: List[str] = []
    for video in soup.find_all("video"):
        if not isinstance(video, Tag):
            continue
        src = _attr(video, "src")
        if src:
            found.append(src)
        for source in video.find_all("source"):
            if isinstance(source, Tag):
                src = _attr(source, "src")
                if src:
                    found.append(src)
    return found


def scan_media_urls(text: str) -> List[str]:
    """Return every absolute media-extension URL found in *text*."""
    return MEDIA_URL_RE.findall(text)


def _scan_scripts(soup: BeautifulSoup) -> List[str]:
    found: List[str] = []
    for script in soup.find_all("script"):
        if not isinstance(script, Tag):
            continue
        body = script.get_text()
        lowered = body.lower()
        if not any(hint in lowered for hint in _SCRIPT_HINTS):
            continue
        for raw in _SCRIPT_URL_RE.findall(body):
            url = raw.replace("\\/", "/")
            if is_video_url(url):
                found.append(url)
    return found


def extract_candidates(html: str, source_prefix: str = "static") -> List[Candidate]:
    """Run every static strategy over *html* and tag results with their origin."""
    soup = BeautifulSoup(html, "html.parser")
    candidates = [Candidate(u, f"{source_prefix}:element") for u in _scan_elements(soup)]
    candidates += [Candidate(u, f"{source_prefix}:pattern") for u in scan_media_urls(html)]
    candidates += [Candidate(u, f"{source_prefix}:script") for u in _scan_scripts(soup)]
    return candidates


def extract_from_html(html: str) -> List[str]:
    """Return raw candidate URL strings from *html* (may repeat, may be relative)."""
    return [c.url for c in extract_candidates(html)]
