"""
Logging setup for Gesture Field.

All modules log through children of the "GestureField" logger. Output goes
to the console and to a rotating file in ~/.gesture_field/logs/
(GESTURE_FIELD_LOG_DIR overrides the directory).

Some components log at DEBUG on every frame. Those stay at INFO under
--debug unless per-frame output is asked for explicitly.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from .config import LOG_BACKUP_COUNT, LOG_FILENAME, LOG_MAX_BYTES

LOGGER_NAME = "GestureField"

# Child loggers that emit a DEBUG line per frame
FRAME_LOGGERS = ("HandTracker", "FieldStateMachine")

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s.%(funcName)s:%(lineno)d | %(message)s"


def get_log_directory() -> Path:
    """
    Get the log directory path.

    Returns:
        Path to the log directory, created if it doesn't exist.
    """
    override = os.environ.get("GESTURE_FIELD_LOG_DIR")
    log_dir = Path(override) if override else Path.home() / ".gesture_field" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%H:%M:%S"))
    return handler


def _file_handler(path: Path) -> logging.Handler:
    handler = RotatingFileHandler(
        path,
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8"
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def setup_logging(
    debug: bool = False,
    log_to_file: bool = True,
    log_filename: Optional[str] = None,
    frame_debug: bool = False
) -> logging.Logger:
    """
    Configure and return the application logger.

    Args:
        debug: Enable debug-level logging if True.
        log_to_file: Write logs to file if True.
        log_filename: Override default log filename.
        frame_debug: Also let the per-frame loggers emit DEBUG.

    Returns:
        Configured logger instance.
    """
    level = logging.DEBUG if debug else logging.INFO
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()
    logger.addHandler(_console_handler(level))

    for name in FRAME_LOGGERS:
        child = logger.getChild(name)
        child.setLevel(logging.NOTSET if frame_debug else max(level, logging.INFO))

    if log_to_file:
        log_path = get_log_directory() / (log_filename or LOG_FILENAME)
        logger.addHandler(_file_handler(log_path))
        logger.debug(f"Logging to file: {log_path}")

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a child logger with the given name.

    Args:
        name: Optional name for the child logger.

    Returns:
        Logger instance (child of main logger or main logger if no name).
    """
    base_logger = logging.getLogger(LOGGER_NAME)
    if name:
        return base_logger.getChild(name)
    return base_logger
