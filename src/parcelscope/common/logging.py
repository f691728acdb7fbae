"""Logging setup for the parcelscope CLI."""

from __future__ import annotations

import logging
from typing import Final

LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_HTTP_LOGGERS: Final[tuple[str, ...]] = ("httpx", "httpcore", "hishel")


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Configure the root logger for CLI runs.

    Batch runs log one line per job outcome. The HTTP stack's per-request chatter
    only shows through at DEBUG; otherwise those loggers are held at WARNING.
    """

    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
    http_level = level if level <= logging.DEBUG else logging.WARNING
    for name in _HTTP_LOGGERS:
        logging.getLogger(name).setLevel(http_level)
