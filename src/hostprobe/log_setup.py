"""
Logging setup for agents embedding hostprobe.

The library itself only creates module loggers; the process hosting it
decides where records go.
"""

import logging
import sys
from typing import Optional, Union

from .models.config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: Union[str, int, LoggingConfig] = logging.INFO, stream: Optional[object] = None) -> None:
    """
    Configure the root logger with the project's format.

    Args:
        level: Level name, numeric level, or a ``LoggingConfig``.
        stream: Output stream, stdout by default.
    """
    if isinstance(level, LoggingConfig):
        level = level.level
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        stream=stream or sys.stdout,
        force=True,
    )
