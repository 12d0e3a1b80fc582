"""
Logging setup shared by the command line tool and the decoding modules.

The decoding modules only ever log, they never print. Output is the
command line's job.
"""
import logging
import sys
from typing import Optional, TextIO

ROOT_LOGGER_NAME = "sqlite_inspect"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: int = logging.WARNING, stream: Optional[TextIO] = None) -> None:
    """
    Sends every sqlite_inspect log record at `level` or above to stderr
    (or `stream`). Safe to call more than once, the previous handler is replaced.
    """
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    for existing in list(root_logger.handlers):
        root_logger.removeHandler(existing)
    root_logger.setLevel(level)
    root_logger.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def parse_level(level_name: Optional[str], default: int = logging.WARNING) -> int:
    """Turns a level name such as "debug" into its logging constant."""
    if not level_name:
        return default
    level = logging.getLevelName(level_name.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {level_name}")
    return level
