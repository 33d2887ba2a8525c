"""
Exception hierarchy for VidScout.

Strategy-level errors (fetch, browser) are absorbed by the discovery engine;
only NoResultsError and TotalFailure ever reach a caller of ``discover``.
"""
from __future__ import annotations

from typing import Sequence


class VidScoutError(Exception):
    """Base class for every error raised by the package."""


class FetchError(VidScoutError):
    """The direct page fetch failed (network, DNS, TLS, timeout or non-2xx)."""

    def __init__(self, url: str, reason: str, status: int | None = None) -> None:
        super().__init__(f"Fetching {url} failed: {reason}")
        self.url = url
        self.reason = reason
        self.status = status


class DynamicObservationError(VidScoutError):
    """The headless-browser path could not observe the page."""


class BrowserLaunchError(DynamicObservationError):
    """The browser process could not be started."""


class NavigationTimeout(DynamicObservationError):
    """The page did not finish navigating within the dynamic timeout."""


class NoResultsError(VidScoutError):
    """Discovery completed but found no video URLs."""

    def __init__(self, page_url: str) -> None:
        super().__init__(f"No video URLs found on {page_url}")
        self.page_url = page_url


class TotalFailure(VidScoutError):
    """Every extraction path failed; ``causes`` keeps the underlying errors."""

    def __init__(self, page_url: str, causes: Sequence[BaseException]) -> None:
        details = "; ".join(str(c) or type(c).__name__ for c in causes)
        super().__init__(f"Every discovery method failed for {page_url}: {details}")
        self.page_url = page_url
        self.causes: list[BaseException] = list(causes)

    @property
    def details(self) -> list[str]:
        return [f"{type(c).__name__}: {c}" for c in self.causes]


class DownloaderError(VidScoutError):
    """The external media downloader exited with an error or timed out."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


__all__ = [
    "VidScoutError",
    "FetchError",
    "DynamicObservationError",
    "BrowserLaunchError",
    "NavigationTimeout",
    "NoResultsError",
    "TotalFailure",
    "DownloaderError",
]
