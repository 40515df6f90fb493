"""Logging utilities."""

import logging
import sys
from typing import Optional


_LOGGER_INITIALIZED = False

DEFAULT_LOG_LEVEL = "INFO"

PACKAGE_LOGGER = "hkplanner"


def configure_logging(level: Optional[str] = None) -> None:
    """Install the process-wide handler once and set the package log level.

    The handler is only installed on the first call; the level is applied on
    every call so a configuration file can adjust it later.
    """
    global _LOGGER_INITIALIZED
    resolved_level = (level or DEFAULT_LOG_LEVEL).upper()

    if not _LOGGER_INITIALIZED:
        logging.basicConfig(
            format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            stream=sys.stdout,
        )
        _LOGGER_INITIALIZED = True

    logging.getLogger(PACKAGE_LOGGER).setLevel(resolved_level)


def get_logger(name: str) -> logging.Logger:
    """Return a logger for the requested module."""
    return logging.getLogger(name)
