"""
Centralized logging configuration with colored output.

Handlers live on the ``sitepipe`` package logger only; module loggers
obtained through ``get_logger(__name__)`` propagate to it.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import colorlog


ROOT_LOGGER_NAME = "sitepipe"
LOGS_DIR = Path("logs")

CONSOLE_FORMAT = "%(log_color)s%(levelname)-8s%(reset)s %(blue)s[%(name)s]%(reset)s %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

LEVEL_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}

_configured = False


def configure_logging(
    level: str = "INFO",
    log_dir: Optional[Path] = LOGS_DIR,
    console: bool = True
) -> logging.Logger:
    """
    Attach the console and daily-file handlers to the package logger.

    Safe to call more than once; later calls only change the level.

    Args:
        level: Console logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for ``sitepipe_<date>.log``; None disables the file
        console: Whether to output to stdout

    Returns:
        The package logger
    """
    global _configured

    root = logging.getLogger(ROOT_LOGGER_NAME)
    numeric_level = getattr(logging, level.upper())

    if _configured:
        root.setLevel(numeric_level)
        for handler in root.handlers:
            if isinstance(handler, colorlog.StreamHandler):
                handler.setLevel(numeric_level)
        return root

    # The file handler records DEBUG regardless of the console level
    root.setLevel(logging.DEBUG if log_dir else numeric_level)

    if console:
        console_handler = colorlog.StreamHandler(sys.stdout)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(colorlog.ColoredFormatter(
            CONSOLE_FORMAT,
            reset=True,
            log_colors=LEVEL_COLORS,
            style="%"
        ))
        root.addHandler(console_handler)

    if log_dir:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        today = datetime.now().strftime("%Y-%m-%d")
        file_handler = logging.FileHandler(log_dir / f"sitepipe_{today}.log", encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(file_handler)

    _configured = True
    return root


def get_logger(name: str) -> logging.Logger:
    """
    Get a module logger, configuring the package logger on first use.

    Args:
        name: Logger name (typically __name__ of the module)

    Returns:
        Logger under the ``sitepipe`` hierarchy
    """
    if not _configured:
        # Imported lazily so config errors surface at first use, not import
        from sitepipe.utils.config import get_settings
        configure_logging(level=get_settings().log_level)

    return logging.getLogger(name)
