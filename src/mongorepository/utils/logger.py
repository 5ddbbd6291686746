"""
Logging utility for mongorepository.
Provides consistent logging configuration across all modules.

Log level priority:
1. Function parameter (level=)
2. Environment variable (LOG_LEVEL)
3. Default: WARNING
"""

import logging
import os
import sys


def get_logger(name: str, level: str | None = None) -> logging.Logger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (usually __name__)
        level: Log level override (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        log_level = level or os.getenv("LOG_LEVEL", "WARNING")
        logger.setLevel(getattr(logging, log_level.upper()))

        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logger.level)

        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

        # Prevent duplicate logs
        logger.propagate = False

    return logger
