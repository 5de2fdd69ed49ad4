"""
Centralized logging configuration for keywarden.

Every run appends human-readable lines to a log file. With ``verbose`` the
same lines are echoed to stderr; stdout is reserved for the JSON summary so
cron callers can parse it.

Usage:
    from keywarden.logging_config import configure_logging

    logger = configure_logging(log_file=Path("~/.openclaw/logs/venice-key-monitor.log"))
    logger.info("Starting key health check")

Environment Variables:
    KEYWARDEN_LOG_LEVEL - Set log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def configure_logging(
    log_file: Optional[Path] = None,
    verbose: bool = False,
    log_level: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the ``keywarden`` logger.

    Args:
        log_file: File to append log lines to (parent directories are created); None disables it
        verbose: Echo log lines to stderr as well
        log_level: Log level name; defaults to KEYWARDEN_LOG_LEVEL or INFO

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger("keywarden")

    # Clear existing handlers to avoid duplicates across repeated runs
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if log_level is None:
        log_level = os.environ.get("KEYWARDEN_LOG_LEVEL", "INFO")
    level = getattr(logging, log_level.upper(), logging.INFO)
    logger.setLevel(level)
    logger.propagate = False

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    if log_file is not None:
        log_file = Path(log_file).expanduser()
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if verbose:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    return logger
