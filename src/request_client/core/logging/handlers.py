"""
Log handlers for console and rotating file output.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, List


def _configure(handler: logging.Handler, level: int, formatter: logging.Formatter,
               filters: Optional[List[logging.Filter]]) -> None:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    for f in filters or ():
        handler.addFilter(f)


def create_console_handler(
    level: int,
    formatter: logging.Formatter,
    filters: Optional[List[logging.Filter]] = None
) -> logging.StreamHandler:
    """
    Create stdout handler.

    Example:
        >>> handler = create_console_handler(logging.INFO, TextFormatter())
    """
    handler = logging.StreamHandler(sys.stdout)
    _configure(handler, level, formatter, filters)
    return handler


def create_file_handler(
    file_path: str,
    level: int,
    formatter: logging.Formatter,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
    filters: Optional[List[logging.Filter]] = None
) -> RotatingFileHandler:
    """
    Create rotating file handler; the parent directory is created if missing.

    File rotation:
        requests.log       <- current
        requests.log.1     <- previous
        ...
        requests.log.5     <- oldest (deleted on next rotation)
    """
    Path(file_path).parent.mkdir(parents=True, exist_ok=True)

    handler = RotatingFileHandler(
        filename=file_path,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding='utf-8'
    )
    _configure(handler, level, formatter, filters)
    return handler
