"""Loguru configuration.

Domain events are logged as ``logger.bind(**fields).info("event_name")`` so
the JSON sink carries them as structured ``extra`` fields.
"""
import sys

from loguru import logger

from quillpost.core.config import settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level> {extra}"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message} {extra}"


def setup_logging() -> None:
    logger.remove()

    if settings.LOG_JSON:
        logger.add(sys.stdout, serialize=True, level=settings.LOG_LEVEL)
    else:
        logger.add(sys.stdout, colorize=True, format=CONSOLE_FORMAT, level=settings.LOG_LEVEL)

    if settings.LOG_FILE:
        logger.add(
            settings.LOG_FILE,
            rotation="10 MB",
            retention="30 days",
            compression="zip",
            format=FILE_FORMAT,
            level="DEBUG",
        )


__all__ = ["logger", "setup_logging"]
