"""Logging utilities.

Uses Rich for colored console output on stderr, so log lines never mix
with the tables printed on stdout.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

ROOT_LOGGER_NAME = "discord_command_cleaner"

CUSTOM_THEME = Theme({
    "logging.level.debug": "dim cyan",
    "logging.level.warning": "yellow",
})

console = Console(stderr=True, theme=CUSTOM_THEME)


def setup_logging(level: int | str | None = None) -> logging.Logger:
    """Configure the application root logger with a RichHandler.

    Safe to call more than once: existing handlers are replaced.
    """

    if level is None:
        level = logging.WARNING
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers = []

    handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt="[%(name)s] %(message)s", datefmt="%H:%M:%S"))

    logger.addHandler(handler)
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a child of the application logger (e.g. `get_logger(__name__)`)."""

    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
