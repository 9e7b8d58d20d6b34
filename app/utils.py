"""
Shared helpers.
"""
import logging

from app.core import config

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOGGER_NAME = "app"


def _setup_root_logger() -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)

    # Avoid duplicate handlers in dev reload
    if logger.handlers:
        return logger

    logger.setLevel(config.LOG_LEVEL.upper())

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(stream_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the application namespace.

    Usage:
        log = get_logger(__name__)
        log.info("Running server")
    """
    root = _setup_root_logger()
    if name == LOGGER_NAME or name.startswith(LOGGER_NAME + "."):
        return logging.getLogger(name)
    return root.getChild(name)
