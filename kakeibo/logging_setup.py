"""Logging configuration for the ``kakeibo`` package.

Entry points (the CLI, or a host application) call :func:`configure_logging`
once at startup. Library modules only ever call
``get_logger("kakeibo.<module>")`` and never attach handlers themselves; until
configuration happens the package logger carries a ``NullHandler`` so that
imports stay silent.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "kakeibo"
_ENV_LEVEL = "KAKEIBO_LOG_LEVEL"
_DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_handler: logging.Handler | None = None


def resolve_level(level: int | str | None = None) -> int:
    """Turn ``level`` (or ``$KAKEIBO_LOG_LEVEL`` when ``None``) into a number.

    Accepts ints, digit strings and standard level names in any case. Unknown
    names fall back to ``INFO``.
    """

    if level is None:
        level = os.getenv(_ENV_LEVEL)
    if isinstance(level, int):
        return level
    if isinstance(level, str):
        name = level.strip().upper()
        if name.isdigit():
            return int(name)
        numeric = logging.getLevelName(name)
        if isinstance(numeric, int):
            return numeric
    return logging.INFO


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> None:
    """Attach a single ``StreamHandler`` to the ``kakeibo`` logger.

    Calling this more than once is a no-op so that nested entry points (a CLI
    command invoked from another CLI command, tests) do not duplicate output.
    """

    global _handler
    if _handler is not None:
        return

    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for existing in list(logger.handlers):
        if isinstance(existing, logging.NullHandler):
            logger.removeHandler(existing)

    numeric = resolve_level(level)
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(numeric)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))

    logger.setLevel(numeric)
    logger.addHandler(handler)
    logger.propagate = False
    _handler = handler


def get_logger(name: str) -> logging.Logger:
    """Return the named logger, keeping the package silent until configured."""

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if _handler is None and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "resolve_level"]
