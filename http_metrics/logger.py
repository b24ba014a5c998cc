import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from http_metrics.config import settings

ROOT_LOGGER = "http_metrics"


def _package_logger() -> logging.Logger:
    """The "http_metrics" logger carries the handlers, module loggers propagate to it."""
    package_logger = logging.getLogger(ROOT_LOGGER)
    if package_logger.handlers:
        return package_logger

    package_logger.setLevel(settings.LOG_LEVEL)
    formatter = logging.Formatter("[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s")

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    package_logger.addHandler(console_handler)

    if settings.LOG_TO_FILE:
        os.makedirs(settings.LOG_DIR, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(settings.LOG_DIR, f"{ROOT_LOGGER}.log"), maxBytes=10_000_000, backupCount=2
        )
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)

    return package_logger


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    _package_logger()
    if name != ROOT_LOGGER and not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    return logger
