"""Logging configuration for the companion reminder bot.

Reminder activity goes to a dated file in LOG_DIR (and the console when run
in a terminal). Warnings from APScheduler and discord.py go to the same file.
"""

import logging
import sys
from datetime import datetime

from config import LOG_DIR, LOG_LEVEL

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Third-party loggers that share our log file
LIBRARY_LOGGERS = ("apscheduler", "discord")


def setup_logging(level: int = LOG_LEVEL) -> logging.Logger:
    """Set up the reminder logger and route library warnings to the same file.

    Args:
        level: Level for the reminder logger and its handlers

    Returns:
        The "companion_reminders" logger
    """
    file_handler = logging.FileHandler(
        LOG_DIR / f"reminders-{datetime.now().strftime('%Y-%m-%d')}.log",
        encoding="utf-8",
    )
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    logger = logging.getLogger("companion_reminders")
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.addHandler(file_handler)

    if sys.stdout is not None and sys.stdout.isatty():
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(message)s", datefmt="%H:%M:%S"
        ))
        logger.addHandler(console_handler)

    for name in LIBRARY_LOGGERS:
        library_logger = logging.getLogger(name)
        library_logger.setLevel(max(level, logging.WARNING))
        library_logger.handlers.clear()
        library_logger.addHandler(file_handler)

    return logger


# Global logger instance
logger = setup_logging()
