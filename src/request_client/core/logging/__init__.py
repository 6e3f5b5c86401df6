"""
Logging system for Request Client.

Example:
    >>> from request_client.core.logging import get_logger, LoggingConfig
    >>>
    >>> config = LoggingConfig.create(level="DEBUG", format="pretty")
    >>> logger = get_logger(config)
    >>> logger.info("Outgoing request", method="GET", url="https://api.com")
"""

from .config import LoggingConfig, LogLevel, LogFormat
from .logger import RequestClientLogger, get_logger
from .formatters import JSONFormatter, PrettyJSONFormatter, TextFormatter, get_formatter
from .filters import (
    RequestIdFilter,
    ExtraFieldsFilter,
    set_request_id,
    get_request_id,
    clear_request_id,
)
from .handlers import create_console_handler, create_file_handler

__all__ = [
    # Config
    "LoggingConfig",
    "LogLevel",
    "LogFormat",
    # Logger
    "RequestClientLogger",
    "get_logger",
    # Formatters
    "JSONFormatter",
    "PrettyJSONFormatter",
    "TextFormatter",
    "get_formatter",
    # Filters
    "RequestIdFilter",
    "ExtraFieldsFilter",
    "set_request_id",
    "get_request_id",
    "clear_request_id",
    # Handlers
    "create_console_handler",
    "create_file_handler",
]
