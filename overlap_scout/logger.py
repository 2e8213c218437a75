# === FILE: overlap_scout/logger.py ===
"""Logging for **OverlapScout**.

All records go through one root project logger, ``OverlapScout``. Components
get named children via :func:`get_logger` (``OverlapScout.client``,
``OverlapScout.engine``), so the component shows up in every line while
handlers live on the root only.

Console output goes to *stderr*: commands such as ``overlap-scout config``
print JSON on stdout and must stay machine-readable.

Usage::

      from overlap_scout.logger import logger, get_logger
      logger.info("Loaded %d sites", n)
      log = get_logger("client")
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Optional, TextIO, Union

DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
ROOT_NAME: Final[str] = "OverlapScout"

_MAX_LOG_BYTES: Final[int] = 5 * 1024 * 1024
_BACKUP_COUNT: Final[int] = 3

_LevelT = Union[int, str]


# --------------------------------------------------------------------------- #
# Handlers                                                                    #
# --------------------------------------------------------------------------- #


def _console_handler(fmt: str, stream: Optional[TextIO]) -> logging.StreamHandler:
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _file_handler(file: Path | str, fmt: str) -> RotatingFileHandler:
    path = Path(file)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(path),
        maxBytes=_MAX_LOG_BYTES,
        backupCount=_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _coerce_level(level: _LevelT) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


# --------------------------------------------------------------------------- #
# Public API                                                                  #
# --------------------------------------------------------------------------- #


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
    stream: Optional[TextIO] = None,
    replace_handlers: bool = True,
) -> logging.Logger:
    """(Re)configure the root project logger.

    Parameters
    ----------
    level
        Numeric or textual level (``"debug"`` and ``"DEBUG"`` both work).
    log_file
        Rotating logfile in addition to the console; its directory is created.
    log_format
        Format string for :class:`logging.Formatter`.
    stream
        Console stream, *stderr* when omitted.
    replace_handlers
        *True* drops handlers from a previous call.
    """
    lg = logging.getLogger(ROOT_NAME)
    lg.setLevel(_coerce_level(level))

    if replace_handlers:
        for handler in list(lg.handlers):
            lg.removeHandler(handler)
            handler.close()

    lg.addHandler(_console_handler(log_format, stream))
    if log_file is not None:
        lg.addHandler(_file_handler(log_file, log_format))

    lg.propagate = False
    return lg


def init_logging(
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """CLI entry: console on stderr plus optional file, previous handlers replaced."""
    return configure(level=level, log_file=log_file, log_format=log_format, replace_handlers=True)


def get_logger(component: str) -> logging.Logger:
    """Child of the project logger, e.g. ``get_logger("client")`` -> ``OverlapScout.client``."""
    return logging.getLogger(f"{ROOT_NAME}.{component}")


# Quiet by default when used as a library; the CLI sets the real level.
logger: logging.Logger = init_logging(level="WARNING")

__all__ = ["logger", "configure", "init_logging", "get_logger", "DEFAULT_FORMAT", "ROOT_NAME"]
