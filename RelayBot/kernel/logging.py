"""
Logging System - Centralized logging management.

Provides colored console logging and file logging with log rotation for the
``RelayBot`` logger hierarchy.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

import colorlog

ROOT_LOGGER = "RelayBot"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Marks handlers installed by setup_logging so repeated calls replace them
_HANDLER_TAG = "_relaybot_handler"


def _resolve_level(level: int | str) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return level


def setup_logging(level: int | str = "INFO", log_file: str | None = None) -> logging.Logger:
    """
    Configure the RelayBot logger with colored console output and an
    optional rotating log file.

    Safe to call more than once; earlier handlers are replaced.
    """
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(_resolve_level(level))

    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            root.removeHandler(handler)
            handler.close()

    console_formatter = colorlog.ColoredFormatter(
        "%(log_color)s%(asctime)s | %(levelname)-8s | %(name)s%(reset)s | %(message)s",
        datefmt=DATE_FORMAT,
        log_colors={
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "red,bg_white",
        },
    )
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(console_formatter)
    setattr(console_handler, _HANDLER_TAG, True)
    root.addHandler(console_handler)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            path,
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        file_handler.setLevel(logging.DEBUG)
        setattr(file_handler, _HANDLER_TAG, True)
        root.addHandler(file_handler)

    root.debug("日志系统已初始化 (级别=%s)", logging.getLevelName(root.level))
    return root


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the RelayBot hierarchy."""
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
