"""Logging setup for DocGuard.

``setup_logger("docguard", ...)`` runs once at application start; modules
log through ``get_logger(__name__)`` and propagate to it.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path


LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
ISO_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"
LOG_MAX_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5


def _parse_level(level: str) -> int:
    name = level.upper()
    if name not in LEVELS:
        raise ValueError(f"Invalid log level: {level}. Must be one of: {', '.join(LEVELS)}")
    return getattr(logging, name)


def setup_logger(
    name: str,
    log_dir: str = "logs",
    level: str = "INFO",
    file_logging: bool = False,
    console_logging: bool = True,
) -> logging.Logger:
    """Configure the named logger.

    Calling again only updates the level; handlers are attached once.

    Raises:
        ValueError: If level is not a standard logging level name
    """
    logger = logging.getLogger(name)
    logger.setLevel(_parse_level(level))
    if logger.handlers:
        return logger

    handlers = []
    if file_logging:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(directory / f"{name}.log", maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUPS)
        )
    if console_logging:
        handlers.append(logging.StreamHandler())

    formatter = logging.Formatter(LOG_FORMAT, datefmt=ISO_DATE_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
