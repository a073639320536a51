"""Loguru sink configuration."""

from __future__ import annotations

import sys

from loguru import logger

CONSOLE_FORMAT = "<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"


def configure_logging(settings, level: str | None = None) -> None:
    """
    Replace loguru's default sink with the configured ones.

    Args:
        settings: config.Settings instance
        level: Console level override (defaults to settings.log_level)
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level=level or settings.log_level,
        format=CONSOLE_FORMAT,
    )

    if settings.log_file:
        logger.add(
            settings.log_file,
            level=settings.log_level,
            format=FILE_FORMAT,
            rotation=settings.log_rotation,
            encoding="utf-8",
        )
