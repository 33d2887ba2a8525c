# vidscout/extractor/models.py
"""
Data models shared by the VidScout extractors.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional
from urllib.parse import urlparse


@dataclass(slots=True)
class PageData:
    """Holds the URL and markup of a fetched page."""

    url: str
    content: str
    status: int = 200
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class Candidate:
    """A string proposed as a video URL plus the strategy that found it."""

    url: str
    source: str


@dataclass(slots=True, frozen=True)
class PageTarget:
    """The page being inspected and its origin (``None`` if unparseable)."""

    url: str
    origin: Optional[str]
    scheme: Optional[str]

    @classmethod
    def from_url(cls, url: str) -> PageTarget:
        try:
            parsed = urlparse(url)
        except ValueError:
            return cls(url=url, origin=None, scheme=None)
        if not parsed.scheme or not parsed.netloc:
            return cls(url=url, origin=None, scheme=None)
        return cls(url=url, origin=f"{parsed.scheme}://{parsed.netloc}", scheme=parsed.scheme)
