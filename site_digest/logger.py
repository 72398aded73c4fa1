"""Logging for **SiteDigest**.

Every module logs through a child of the project logger::

    from site_digest.logger import get_logger
    log = get_logger("fetcher")      # -> "SiteDigest.fetcher"

Nothing is attached at import time, so library users keep control of the
root configuration; the CLI calls :func:`configure` once per invocation.
Console output goes to stderr because stdout carries the JSON report.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Iterator, Optional, TextIO, Union

LOGGER_NAME: Final[str] = "SiteDigest"
DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_MAX_LOG_BYTES: Final[int] = 5 * 1024 * 1024
_LOG_BACKUPS: Final[int] = 3

_LevelT = Union[int, str]


def _handlers(
    fmt: str, log_file: Union[str, Path, None], stream: Optional[TextIO]
) -> Iterator[logging.Handler]:
    formatter = logging.Formatter(fmt)

    console = logging.StreamHandler(stream or sys.stderr)
    console.setFormatter(formatter)
    yield console

    if log_file is not None:
        rotating = RotatingFileHandler(
            filename=str(log_file),
            maxBytes=_MAX_LOG_BYTES,
            backupCount=_LOG_BACKUPS,
            encoding="utf-8",
        )
        rotating.setFormatter(formatter)
        yield rotating


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: Union[str, Path, None] = None,
    log_format: str = DEFAULT_FORMAT,
    replace_handlers: bool = True,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """Attach console (and optionally rotating file) output to the project logger.

    Parameters
    ----------
    level
        Numeric or textual level, e.g. ``"DEBUG"``.
    log_file
        Also write to this file, rotated at 5 MiB with 3 backups.
    log_format
        :class:`logging.Formatter` format string.
    replace_handlers
        Drop previously attached handlers first.
    stream
        Console stream; stderr when omitted.
    """
    project = logging.getLogger(LOGGER_NAME)
    project.setLevel(level)
    if replace_handlers:
        for handler in list(project.handlers):
            project.removeHandler(handler)
            handler.close()
    for handler in _handlers(log_format, log_file, stream):
        project.addHandler(handler)
    project.propagate = False
    return project


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """The project logger, or its child ``SiteDigest.<name>``."""
    return logging.getLogger(f"{LOGGER_NAME}.{name}" if name else LOGGER_NAME)


logger: logging.Logger = get_logger()

__all__ = ["logger", "configure", "get_logger", "LOGGER_NAME", "DEFAULT_FORMAT"]
