"""
Application logging setup
"""

import logging
import sys
from pathlib import Path
from loguru import logger

from config.settings import get_settings


LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)

INTERCEPTED_LOGGERS = ["uvicorn", "uvicorn.access", "fastapi", "telegram", "httpx"]


class InterceptHandler(logging.Handler):
    """Forward standard logging records to loguru"""

    def emit(self, record):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_logging(log_dir: str = "logs"):
    """Configure console and file sinks"""
    settings = get_settings()

    logger.remove()

    Path(log_dir).mkdir(exist_ok=True)

    logger.add(
        sys.stdout,
        format=LOG_FORMAT,
        level=settings.log_level,
        colorize=True
    )

    logger.add(
        f"{log_dir}/ledger_bot.log",
        format=LOG_FORMAT,
        level=settings.log_level,
        rotation="1 day",
        retention="30 days",
        compression="zip"
    )

    logger.add(
        f"{log_dir}/errors.log",
        format=LOG_FORMAT,
        level="ERROR",
        rotation="1 week",
        retention="4 weeks"
    )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for logger_name in INTERCEPTED_LOGGERS:
        logging.getLogger(logger_name).handlers = [InterceptHandler()]
