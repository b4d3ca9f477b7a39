"""Logging utilities for fairtool commands."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

_LOGGER_NAME = "fairtool"

# Catalog and seal documents go to stdout, so console logging stays on stderr.
_CONSOLE_FORMAT = "[fairtool] %(levelname)s %(message)s"
_VERBOSE_FORMAT = "[fairtool:%(component)s] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(component)s: %(message)s"


class _ComponentFilter(logging.Filter):
    """Expose the logger name relative to the package as ``component``."""

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name.startswith(_LOGGER_NAME + "."):
            name = name[len(_LOGGER_NAME) + 1 :]
        record.component = name
        return True


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger under the fairtool hierarchy, e.g. ``hub.client``."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Send fairtool logs to stderr and, when given, append them to ``log_file``.

    Verbose mode lowers the level to DEBUG and tags console lines with the
    emitting component. The log file always records DEBUG output so a failed
    CI run can be diagnosed without re-running it.
    """
    console_level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    component = _ComponentFilter()
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.addFilter(component)
    console.setFormatter(logging.Formatter(_VERBOSE_FORMAT if verbose else _CONSOLE_FORMAT))
    logger.addHandler(console)

    logger_level = console_level
    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.addFilter(component)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(file_handler)
        logger_level = logging.DEBUG

    logger.setLevel(logger_level)
    return logger


__all__ = ["configure_logging", "get_logger"]
