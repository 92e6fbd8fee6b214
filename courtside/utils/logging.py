"""Logging configuration for Courtside.

All modules log through children of the ``courtside`` logger. Each
handler carries its own level and the package logger is opened to the
most verbose of them, so a log file can capture per-event DEBUG detail
while the console stays at the configured level.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "courtside"

# Log output goes to stderr; stdout carries command results
log_console = Console(stderr=True)

FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
CONSOLE_FORMAT = "%(message)s"


def parse_level(level: Union[str, int], default: int = logging.INFO) -> int:
    """Resolve a level name ("debug", "WARNING") or number to a logging level."""
    if isinstance(level, int):
        return level
    name = str(level).strip().upper()
    if name.isdigit():
        return int(name)
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else default


def _console_handler(rich_output: bool) -> logging.Handler:
    if rich_output:
        handler: logging.Handler = RichHandler(
            console=log_console,
            show_time=True,
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def setup_logging(
    level: Union[str, int] = "INFO",
    log_file: Optional[Path] = None,
    rich_output: bool = True,
    file_level: Union[str, int] = "DEBUG",
) -> logging.Logger:
    """
    Configure the package logger.

    Calling this again replaces (and closes) the handlers from the previous
    call.

    Args:
        level: Console level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file that receives records at ``file_level``
        rich_output: Use Rich for console output
        file_level: Level for the log file

    Returns:
        The ``courtside`` logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_level = parse_level(level)
    console_handler = _console_handler(rich_output)
    console_handler.setLevel(console_level)
    logger.addHandler(console_handler)

    threshold = console_level
    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        file_handler.setLevel(parse_level(file_level, default=logging.DEBUG))
        logger.addHandler(file_handler)
        threshold = min(threshold, file_handler.level)

    # The logger admits whatever its most verbose handler wants
    logger.setLevel(threshold)
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module.

    Args:
        name: Module name, normally ``__name__`` (e.g., "courtside.engine.trial")

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
