"""
Logging utilities for tinytask
"""

import logging
import os
import sys

LOG_LEVEL_ENV = "TINYTASK_LOG_LEVEL"

# "trace" has no stdlib counterpart, it is served by DEBUG
_LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": logging.DEBUG,
}


def get_log_level() -> int:
    """
    Resolve the log level from TINYTASK_LOG_LEVEL

    Unknown values fall back to INFO.

    Returns:
        Logging level constant
    """
    value = os.getenv(LOG_LEVEL_ENV, "info").strip().lower()
    return _LEVELS.get(value, logging.INFO)


def get_logger(name: str = "tinytask") -> logging.Logger:
    """
    Get logger instance

    Records go to stderr so stdout stays free for whatever transport
    embeds the services.

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.DEBUG)

        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        handler.setFormatter(formatter)

        logger.addHandler(handler)
        logger.setLevel(get_log_level())

    return logger
