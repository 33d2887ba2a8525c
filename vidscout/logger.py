"""Logging for VidScout.

All modules log through the ``VidScout`` logger::

    from vidscout.logger import logger
    logger.info("Discovery started")

The CLI calls :func:`configure` once it knows ``--log-level``, ``--log-file``
and ``--log-format``; the HTTP service keeps whatever was configured last.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Union

_DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_LOGGER_NAME: Final[str] = "VidScout"

# asyncio debug chatter and aiohttp's per-request access lines
_QUIET_LIBRARIES: Final[tuple[str, ...]] = ("asyncio", "aiohttp.access")

_MAX_LOG_BYTES: Final[int] = 5 * 1024 * 1024
_LOG_BACKUPS: Final[int] = 3


def _formatted(handler: logging.Handler, fmt: str) -> logging.Handler:
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def configure(
    *,
    level: Union[int, str] = "INFO",
    log_file: str | Path | None = None,
    log_format: str = _DEFAULT_FORMAT,
) -> logging.Logger:
    """Replace the handlers of the VidScout logger.

    Output always goes to stdout; *log_file* adds a rotating file next to it.
    """
    lg = logging.getLogger(_LOGGER_NAME)
    lg.setLevel(level)
    lg.handlers.clear()
    lg.addHandler(_formatted(logging.StreamHandler(sys.stdout), log_format))
    if log_file is not None:
        file_handler = RotatingFileHandler(
            filename=str(log_file),
            maxBytes=_MAX_LOG_BYTES,
            backupCount=_LOG_BACKUPS,
            encoding="utf-8",
        )
        lg.addHandler(_formatted(file_handler, log_format))

    for name in _QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)

    lg.propagate = False
    return lg


logger: logging.Logger = configure()

__all__ = ["logger", "configure"]
