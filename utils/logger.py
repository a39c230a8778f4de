"""
Logging for scrubwave.

Every module takes a named logger from ``get_logger(__name__)``; nothing is
configured at import time. ``main`` calls ``setup_logging`` once, with the
level and file options read from the viewer settings:

    setup_logging(level=config.get("logging.level"),
                  log_to_file=config.get("logging.to_file"),
                  log_dir=config.get("paths.logs_root"))

Console lines are short and colored by level. When file logging is on, a
per-day file under ``log_dir`` receives every record, debug included, which
is where per-reading decoder chatter ends up.
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path

LEVEL_ENV_VAR = 'SCRUBWAVE_LOG_LEVEL'

CONSOLE_FORMAT = '%(levelname)s [%(name)s] %(message)s'
FILE_FORMAT = '%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] - %(message)s'


class ColoredFormatter(logging.Formatter):
    """Console formatter painting the level name with ANSI colors."""

    RESET = '\033[0m'
    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }

    def format(self, record):
        color = self.COLORS.get(record.levelname)
        if color is None:
            return super().format(record)
        # The file handler sees the same record; color a copy only
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def _resolve_level(level) -> int:
    """Accept a logging constant, a level name, or None (environment, then INFO)."""
    if level is None:
        level = os.getenv(LEVEL_ENV_VAR, 'INFO')
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return level


def _daily_file_handler(log_dir) -> logging.Handler:
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(
        log_path / f"scrubwave_{datetime.now():%Y%m%d}.log", encoding='utf-8'
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
    return handler


def setup_logging(level=None, log_to_file=False, log_dir='logs'):
    """
    Install the scrubwave handlers on the root logger, replacing any others.

    Args:
        level: console level, as a ``logging`` constant or a name such as
            "debug"; None reads ``SCRUBWAVE_LOG_LEVEL``
        log_to_file: also append to ``<log_dir>/scrubwave_YYYYMMDD.log``
        log_dir: directory for the log file, created if needed

    Returns:
        the root logger
    """
    level = _resolve_level(level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(ColoredFormatter(fmt=CONSOLE_FORMAT, datefmt='%H:%M:%S'))
    root_logger.addHandler(console)

    if log_to_file:
        root_logger.addHandler(_daily_file_handler(log_dir))

    return root_logger


def get_logger(name):
    return logging.getLogger(name)
