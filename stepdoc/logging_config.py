"""Logging configuration: loguru setup and standard logging interception."""

import logging
import sys

from loguru import logger

from stepdoc.config import Settings


class InterceptHandler(logging.Handler):
    """Route standard library logging to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        # Get corresponding loguru level
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller frame (skip logging internals)
        frame, depth = sys._getframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def configure_logging(level: str | None = None) -> None:
    """Configure loguru with a stderr sink, intercept standard logging.

    The level defaults to `Settings().log_level` (STEPDOC_LOG_LEVEL).
    """
    level = level or Settings().log_level
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=level,
        colorize=True,
    )

    # Intercept standard logging → loguru
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
