"""
Heuristic check for "does this string look like a video URL".

High recall, low precision: callers only apply it to pools that are already
narrowed down (script literals, network traffic), never to a whole page.
"""
from __future__ import annotations

from typing import Any, Final

VIDEO_EXTENSIONS: Final[tuple[str, ...]] = (
    ".mp4",
    ".webm",
    ".ogg",
    ".mov",
    ".flv",
    ".avi",
    ".wmv",
    ".m3u8",
    ".mpd",
    ".ts",
)

VIDEO_KEYWORDS: Final[tuple[str, ...]] = ("video", "stream", "playlist", "manifest", "content")


def is_video_url(candidate: Any) -> bool:
    """Return True if *candidate* contains a media extension or a video keyword."""
    if not isinstance(candidate, str):
        return False
    lowered = candidate.lower()
    return any(ext in lowered for ext in VIDEO_EXTENSIONS) or any(
        word in lowered for word in VIDEO_KEYWORDS
    )


__all__ = ["VIDEO_EXTENSIONS", "VIDEO_KEYWORDS", "is_video_url"]
