"""Loguru setup shared by the API server and the CLI."""

from __future__ import annotations

import inspect
import logging
import sys

from loguru import logger

from pushdeploy.app.runtime.config.config_data import LoggingSettings


class InterceptHandler(logging.Handler):
    """Forward stdlib logging records (uvicorn, httpx) to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = inspect.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def configure_logging(settings: LoggingSettings) -> None:
    logger.remove()
    logger.add(sys.stderr, level=settings.level.upper(), serialize=settings.serialize)
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).handlers = [InterceptHandler()]
        logging.getLogger(name).propagate = False
