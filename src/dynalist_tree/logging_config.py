"""Logging configuration for dynalist-tree."""

import logging
import sys

from loguru import logger


class InterceptHandler(logging.Handler):
    """Forward stdlib log records (urllib3 retries, mcp) to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(exception=record.exc_info).log(level, record.getMessage())


def configure_logging(*, verbose: bool = False) -> None:
    """Configure loguru with appropriate level and capture stdlib logging."""
    logger.remove()
    level = "DEBUG" if verbose else "INFO"
    logger.add(sys.stderr, level=level, format="{level.icon} {message}")
    logging.basicConfig(handlers=[InterceptHandler()], level=level, force=True)
