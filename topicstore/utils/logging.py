"""Logging configuration for topicstore."""
import logging
import sys
from typing import List, Optional

PACKAGE_LOGGER = "topicstore"

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Handlers installed by setup_logging, replaced on the next call
_installed: List[logging.Handler] = []


def setup_logging(
    level: int = logging.INFO,
    format_string: Optional[str] = None,
    log_file: Optional[str] = None
) -> logging.Logger:
    """Configure the ``topicstore`` logger.

    Log records go to stderr so command output on stdout stays parseable.
    Calling this again replaces the handlers of the previous call; records
    still propagate to any handlers the application put on the root logger.

    Args:
        level: Logging level (e.g., logging.INFO, logging.DEBUG)
        format_string: Custom format string for log messages
        log_file: Optional file path to write logs to

    Returns:
        The configured package logger
    """
    formatter = logging.Formatter(format_string or DEFAULT_FORMAT)

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    reset_logging()
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        _installed.append(handler)

    logger.setLevel(level)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger inside the ``topicstore`` namespace.

    Args:
        name: Module name (typically __name__) or a short suffix like "cli"

    Returns:
        Logger instance
    """
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)


def reset_logging() -> None:
    """Remove the handlers installed by setup_logging."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in _installed:
        logger.removeHandler(handler)
        handler.close()
    _installed.clear()
    logger.setLevel(logging.NOTSET)
