from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


PACKAGE_LOGGER = "filestamp"


def configure_logging(level: int | str = logging.WARNING, console: Console | None = None) -> logging.Logger:
    """Route the package logger through Rich. Safe to call more than once."""
    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
        if not isinstance(level, int):
            level = logging.WARNING

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    return logger
