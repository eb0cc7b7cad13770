"""Centralized logging configuration for tdyvoucher.

Usage:
    from tdyvoucher.utils.logging import get_logger
    logger = get_logger(__name__)

Environment variables:
    TDYVOUCHER_LOG_LEVEL: Set log level (DEBUG, INFO, WARNING, ERROR). Default: WARNING
"""

import logging
import os
import sys

DEFAULT_LOG_LEVEL = logging.WARNING

LOG_FORMAT = "%(levelname)s [%(name)s] %(message)s"
LOG_FORMAT_DEBUG = "%(levelname)s [%(name)s:%(lineno)d] %(message)s"

ROOT_LOGGER_NAME = "tdyvoucher"

LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
}

_logging_configured = False


def configure_logging(level: int | None = None) -> None:
    """Configure the tdyvoucher logger namespace.

    Args:
        level: Log level to use. If None, reads from TDYVOUCHER_LOG_LEVEL env var
               or uses DEFAULT_LOG_LEVEL.
    """
    global _logging_configured

    if _logging_configured:
        if level is not None:
            set_log_level(level)
        return

    if level is None:
        env_level = os.environ.get("TDYVOUCHER_LOG_LEVEL", "").upper()
        level = LEVEL_MAP.get(env_level, DEFAULT_LOG_LEVEL)

    log_format = LOG_FORMAT_DEBUG if level == logging.DEBUG else LOG_FORMAT

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(log_format))

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level)
    root_logger.addHandler(handler)
    root_logger.propagate = False

    _logging_configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the given module name.

    Module names already under the tdyvoucher package are used as-is so the
    logger hierarchy mirrors the package layout.
    """
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def set_log_level(level: int) -> None:
    """Change the log level at runtime."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)

    for handler in logger.handlers:
        if level == logging.DEBUG:
            handler.setFormatter(logging.Formatter(LOG_FORMAT_DEBUG))
        else:
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
