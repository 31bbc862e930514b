"""Logging helpers for appsync runs."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "appsync"


def setup_logging(
    level: Union[str, int] = logging.WARNING,
    console: Optional[Console] = None,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """Configure the ``appsync`` logger.

    Args:
        level: Logging level (string name or int constant).
        console: Rich console for the terminal handler; stderr when omitted.
        log_file: Optional plain-text log file, e.g. for CI artifacts.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    _reset_handlers(logger)
    logger.setLevel(_resolve_level(level))

    console_handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        markup=False,
    )
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    logger.propagate = False
    _silence_third_party()
    return logger


def _resolve_level(level: Union[str, int]) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.WARNING)
    return int(level)


def _reset_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def _silence_third_party() -> None:
    # GitPython logs every spawned command at DEBUG
    logging.getLogger("git").setLevel(logging.WARNING)
