"""Root logger setup for the collector process."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# aiohttp client internals log connection and payload chatter on every poll.
HTTP_LOGGERS: Tuple[str, ...] = ("aiohttp.client", "aiohttp.internal")


def configure_logging(
    level: str = "INFO", *, log_path: Optional[Path] = None, log_network: bool = False
) -> None:
    """Replace the root handlers with a console handler and an optional log file.

    ``log_path`` adds a plain ``FileHandler`` (no rotation) using the same
    format. Unless ``log_network`` is set, the aiohttp client loggers are
    capped at WARNING; with it set they inherit the root level again.
    """

    logging.captureWarnings(True)

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    resolved = logging.getLevelName(level.upper())
    logging.basicConfig(
        level=resolved if isinstance(resolved, int) else logging.INFO,
        format=LOG_FORMAT,
    )
    if not isinstance(resolved, int):
        logging.getLogger(__name__).warning("Unknown log level %r; using INFO", level)

    if log_path:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(file_handler)

    http_level = logging.NOTSET if log_network else logging.WARNING
    for name in HTTP_LOGGERS:
        logging.getLogger(name).setLevel(http_level)
