"""Logging setup for the CLI and long-running jobs.

Library modules only create named loggers (`logging.getLogger(__name__)`); handlers are
installed here, once, by the entry point.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import WatchedFileHandler
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
LEVEL_ENV = "MOLDESC_LOG_LEVEL"


def _desired_level() -> int:
    env_level = os.getenv(LEVEL_ENV, "INFO").upper()
    level = getattr(logging, env_level, logging.INFO)
    return level if isinstance(level, int) else logging.INFO


def setup_logging(log_path: Optional[str | Path] = None, also_console: bool = True) -> None:
    """Configure the root logger.

    Idempotent: a console handler is added once, and a file handler is only added if
    none already writes to `log_path`.
    """

    root = logging.getLogger()
    level = _desired_level()
    root.setLevel(level)
    fmt = logging.Formatter(LOG_FORMAT)

    if also_console and not any(type(h) is logging.StreamHandler for h in root.handlers):
        ch = logging.StreamHandler()
        ch.setLevel(level)
        ch.setFormatter(fmt)
        root.addHandler(ch)

    if log_path is None:
        return

    path = Path(log_path).resolve()
    for h in root.handlers:
        if isinstance(h, logging.FileHandler) and Path(h.baseFilename).resolve() == path:
            return

    path.parent.mkdir(parents=True, exist_ok=True)
    fh = WatchedFileHandler(path, mode="a", encoding="utf-8")
    fh.setLevel(level)
    fh.setFormatter(fmt)
    root.addHandler(fh)
    root.info("Logging initialized. Log file: %s (level=%s)", path, logging.getLevelName(level))


def reset_logging() -> None:
    """Remove and close every handler on the root logger."""

    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
