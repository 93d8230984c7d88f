from __future__ import annotations

import inspect
import logging
import os
import sys
from typing import TYPE_CHECKING, override

import sentry_sdk
from loguru import logger

if TYPE_CHECKING:
    from mvt.config import Config


# Both discord.py and httpx use the standard logging module; redirect them to Loguru.
# https://github.com/Delgan/loguru/tree/0.7.3#entirely-compatible-with-standard-logging
class _InterceptHandler(logging.Handler):
    @override
    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk out of the logging module to find the frame that emitted the record.
        frame, depth = inspect.currentframe(), 0
        while frame:
            filename = frame.f_code.co_filename
            is_logging = filename == logging.__file__
            is_frozen = "importlib" in filename and "_bootstrap" in filename
            if depth > 0 and not (is_logging or is_frozen):
                break
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup() -> None:
    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)

    logger.remove()
    logger.add(
        sys.stderr,
        # $LOGURU_LEVEL is only read at import time and doesn't override this value.
        level=os.getenv("LOGURU_LEVEL") or os.getenv("LOG_LEVEL") or "INFO",
        filter={
            # httpx logs every single request under INFO, including attachment
            # downloads.
            "httpx": "WARNING",
        },
    )


def setup_sentry(config: Config) -> None:
    if config.sentry_dsn is not None:
        sentry_sdk.init(
            dsn=config.sentry_dsn.get_secret_value(),
            traces_sample_rate=1.0,
        )
