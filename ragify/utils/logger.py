"""
logger.py - Logging for RAGify India.

Every module logs through a child of the "ragify" logger (see get_logger),
so the service configures that one logger at startup: console output
always, plus one file per day under LOG_DIR when LOG_DIR is set.
"""

import sys
import logging
from datetime import date
from pathlib import Path
from typing import Optional, Union


SERVICE_LOGGER = "ragify"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def log_file_path(log_dir: str, day: Optional[date] = None) -> Path:
    """Daily log file, e.g. logs/ragify_20240131.log."""
    day = day or date.today()
    return Path(log_dir) / f"{SERVICE_LOGGER}_{day.strftime('%Y%m%d')}.log"


def setup_logger(
    log_dir: Optional[str] = "logs",
    log_level: Union[int, str] = logging.INFO,
) -> logging.Logger:
    """
    Configure the service logger.

    Handlers installed by an earlier call are closed and replaced, so a
    restarted app picks up new settings without writing every line twice.

    Args:
        log_dir: Directory for the daily log file. Empty means console only.
        log_level: Level as a number or a name like "debug".

    Returns:
        The "ragify" logger.
    """
    if isinstance(log_level, str):
        log_level = log_level.upper()

    logger = logging.getLogger(SERVICE_LOGGER)
    logger.setLevel(log_level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_dir:
        log_file = log_file_path(log_dir)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def get_logger(module: str) -> logging.Logger:
    """Get a child of the service logger, e.g. get_logger("rag.retriever")."""
    return logging.getLogger(f"{SERVICE_LOGGER}.{module}")
