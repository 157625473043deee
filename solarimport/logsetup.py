"""Logging to the console and to a daily-rotated file."""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from .config import LogCfg

_LEVEL_ENV = "IMPORT_LOG"
_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_LEVELS = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "off": logging.CRITICAL + 1,
}


class _LogGuard:
    """Keeps the installed handlers; closing flushes and removes them."""

    def __init__(self, logger: logging.Logger, handlers: list[logging.Handler], previous: int):
        self._logger = logger
        self._handlers = handlers
        self._previous = previous

    def close(self) -> None:
        for handler in self._handlers:
            self._logger.removeHandler(handler)
            handler.close()
        self._handlers = []
        self._logger.setLevel(self._previous)

    def __enter__(self) -> _LogGuard:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def _parse_level(spec: str) -> int | None:
    level = None
    for directive in spec.split(","):
        directive = directive.strip().lower()
        if not directive:
            continue
        if "=" in directive:
            continue
        if directive not in _LEVELS:
            return None
        level = _LEVELS[directive]
    return level


def init_log(cfg: LogCfg) -> _LogGuard:
    """Send log records to stderr and to ``<dir>/import.log``; return a guard to close them."""
    directory = Path(cfg.dir)
    directory.mkdir(parents=True, exist_ok=True)

    level = None
    env_spec = os.environ.get(_LEVEL_ENV)
    if env_spec is not None:
        level = _parse_level(env_spec)
    if level is None:
        level = _parse_level(cfg.level)
    if level is None:
        level = logging.INFO

    formatter = logging.Formatter(_FORMAT)
    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    file_handler = TimedRotatingFileHandler(
        directory / "import.log", when="midnight", encoding="utf-8"
    )
    file_handler.setFormatter(formatter)

    root = logging.getLogger()
    previous = root.level
    root.setLevel(level)
    root.addHandler(console)
    root.addHandler(file_handler)
    return _LogGuard(root, [console, file_handler], previous)