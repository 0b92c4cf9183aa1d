from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "inkwell"


def _level_from_string(level: str) -> int:
    value = logging.getLevelName(level.upper())
    if isinstance(value, int):
        return value
    return logging.INFO


def setup_logging(level: str = "INFO", console: Console | None = None) -> logging.Logger:
    """Route the ``inkwell`` logger to a rich console handler on stderr.

    Calling it again replaces the previous handler.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(_level_from_string(level))
    logger.handlers = []
    logger.propagate = False

    handler = RichHandler(
        console=console or Console(stderr=True),
        rich_tracebacks=True,
        show_time=False,
        show_level=True,
        show_path=False,
    )
    handler.setLevel(_level_from_string(level))
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    return logger
