"""Shared logging configuration for the verification functions.

Every entry point (HTTP handler, local server, CLI) calls ``setup_logging``
once; library modules only ever call ``get_logger(__name__)``.
"""

from __future__ import annotations
import logging
import os
import sys
from typing import Optional

# Outbound HTTP libraries log every request at INFO.
_NOISY_LOGGERS = ("httpx", "httpcore", "urllib3", "werkzeug")


def setup_logging(
    level: Optional[str] = None,
    format_string: Optional[str] = None,
    include_timestamp: bool = True
) -> None:
    """Configure the root logger with a stdout handler.

    Args:
        level: Logging level name. Falls back to the ``LOG_LEVEL`` env var,
               then INFO.
        format_string: Custom format string. If None, uses default format.
        include_timestamp: Whether to prefix records with a timestamp.

    Example:
        >>> setup_logging(level="DEBUG")
        >>> get_logger(__name__).debug("cache hit")
    """
    resolved = (level or os.getenv("LOG_LEVEL", "INFO")).upper()

    if format_string is None:
        format_string = "[%(levelname)s] %(name)s: %(message)s"
        if include_timestamp:
            format_string = "%(asctime)s " + format_string

    logging.basicConfig(
        level=getattr(logging, resolved, logging.INFO),
        format=format_string,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,
    )

    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Return the named logger, optionally pinning its level.

    Args:
        name: Logger name (typically ``__name__``)
        level: Optional level override such as ``"DEBUG"``
    """
    logger = logging.getLogger(name)
    if level:
        logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return logger
