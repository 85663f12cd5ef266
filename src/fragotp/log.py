"""Logging setup shared by the CLI and the TUI."""

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "fragotp"


def setup_logging(level: str = "WARNING") -> logging.Logger:
    """Attach a stderr RichHandler to the package logger.

    Calling it again only changes the level.

    Args:
        level: Level name, e.g. "DEBUG" or "WARNING"

    Returns:
        The package logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))

    if not logger.handlers:
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            log_time_format="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(logging.Formatter("%(name)s | %(message)s"))
        logger.addHandler(handler)

    return logger
