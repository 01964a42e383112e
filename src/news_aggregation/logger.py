"""
Logging configuration for news aggregation.

Uses loguru with a console sink and an optional rotated file sink.
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger as _logger

from news_aggregation.config import get_config


def setup_logger(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """Configure the console and file sinks from the logging config.

    Variable values in tracebacks (loguru's ``diagnose``) are only shown on the
    console, and only when ``logging.diagnose`` is set; the file sink never
    records them.

    Args:
        level: Log level overriding the configured one
        log_file: Log file path overriding the configured one
    """
    log_config = get_config().logging
    level = level or log_config.level

    _logger.remove()

    if log_config.console_enabled:
        _logger.add(
            sys.stderr,
            format=log_config.format,
            level=level,
            colorize=True,
            backtrace=True,
            diagnose=log_config.diagnose,
        )

    if log_config.file_enabled:
        log_path = Path(log_file or log_config.file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        _logger.add(
            str(log_path),
            format=log_config.format,
            level=level,
            rotation=log_config.rotation,
            retention=log_config.retention,
            compression=log_config.compression,
            encoding="utf-8",
            enqueue=True,  # Scheduler jobs log from worker threads
            backtrace=True,
            diagnose=False,
        )


def get_logger(name: Optional[str] = None):
    """Get a logger, bound to the calling module's name when given."""
    if name:
        return _logger.bind(name=name)
    return _logger
