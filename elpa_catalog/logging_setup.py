"""Logging configuration."""

import sys

from loguru import logger


def setup_logging(level: str = "INFO") -> None:
    """Send diagnostics to stderr, keeping stdout for progress and results."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
        colorize=None,
    )
