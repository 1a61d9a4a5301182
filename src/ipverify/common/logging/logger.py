"""Centralized logging configuration."""

import logging


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def get_logger(name: str, level: str = "INFO") -> logging.Logger:
    """Get a configured logger instance."""
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level))

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    return logger


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Configure the package root logger.

    Every module logs through ``logging.getLogger(__name__)``, so a handler
    on the ``ipverify`` logger covers the whole service.
    """
    return get_logger("ipverify", level)
