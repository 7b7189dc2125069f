"""Logging configuration for interpreter sessions."""
import logging
import os
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "WARNING", log_file: Optional[str] = None) -> logging.Handler:
    """
    Configure the root logger for an interpreter session.

    Records go to stderr unless a file is given. stdout is reserved for
    program output written by `debug`, so the two never interleave.
    Calling this again replaces the previous configuration.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to a log file; missing directories are created.

    Returns:
        The handler installed on the root logger.

    Raises:
        ValueError: If `level` is not a known logging level name.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level!r}")

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_file, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logging.basicConfig(level=numeric_level, handlers=[handler], force=True)
    logging.getLogger(__name__).info(f"Logging initialized at {level.upper()} level")
    return handler


def get_logger(name: str) -> logging.Logger:
    """Returns the logger for `name`, typically the calling module's __name__."""
    return logging.getLogger(name)
