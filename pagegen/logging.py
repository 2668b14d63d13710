"""Logging setup shared by the CLI, watch mode and the HTTP service."""

from __future__ import annotations

import logging
import sys
import time
from pathlib import Path

_LOGGER_NAME = "pagegen"
_CONSOLE_FORMAT = "[pagegen] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
# Same clock and shape as manifest and backup timestamps.
_FILE_DATEFMT = "%Y-%m-%dT%H:%M:%SZ"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``pagegen`` or one of its children, e.g. ``pagegen.pages.hierarchy``."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Route pagegen records to stderr and, optionally, to a UTC-stamped log file.

    Build reports go to stdout, so console logging stays on stderr. Calling this
    again replaces the previous handlers.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False
    _drop_handlers(logger)

    logger.addHandler(_handler(logging.StreamHandler(sys.stderr), level, logging.Formatter(_CONSOLE_FORMAT)))

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_formatter = logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT)
        file_formatter.converter = time.gmtime
        logger.addHandler(_handler(logging.FileHandler(log_file, encoding="utf-8"), level, file_formatter))

    return logger


def _handler(handler: logging.Handler, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _drop_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


__all__ = ["configure_logging", "get_logger"]
