"""Utility modules for Courtside."""

from .logging import (
    get_logger,
    log_console,
    parse_level,
    setup_logging,
)


__all__ = [
    "setup_logging",
    "get_logger",
    "parse_level",
    "log_console",
]
