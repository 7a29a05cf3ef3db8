"""
Logging configuration for the benchmark harness.

Provides centralized logging setup with clean, concise terminal output.
"""
import logging
import os
import sys
from pathlib import Path
from typing import Optional

LOG_LEVEL_ENV = "WASMBENCH_LOG_LEVEL"


def default_level() -> int:
    """Resolve the level from WASMBENCH_LOG_LEVEL, falling back to INFO."""
    name = os.environ.get(LOG_LEVEL_ENV, "").strip().upper()
    level = logging.getLevelName(name) if name else logging.INFO
    return level if isinstance(level, int) else logging.INFO


def setup_logger(
    name: str,
    level: Optional[int] = None,
    log_file: Optional[Path] = None
) -> logging.Logger:
    """
    Configure and return a logger with consistent formatting.

    Args:
        name: Logger name (typically __name__)
        level: Logging level (default: WASMBENCH_LOG_LEVEL or INFO)
        log_file: Optional file path for log output

    Returns:
        Configured logger instance
    """
    if level is None:
        level = default_level()

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(fmt='[%(levelname)s] %(message)s'))
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            fmt='%(asctime)s [%(levelname)s] %(name)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        logger.addHandler(file_handler)

    logger.propagate = False

    return logger


def set_level(level: int) -> None:
    """Change the level of every logger created through setup_logger."""
    for logger in logging.Logger.manager.loggerDict.values():
        if isinstance(logger, logging.Logger) and logger.name.startswith("wasmbench"):
            logger.setLevel(level)
            for handler in logger.handlers:
                if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
                    handler.setLevel(level)
