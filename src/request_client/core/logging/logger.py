"""
Main logger for Request Client.
"""

import logging
from typing import Any, List, Optional

from .config import LoggingConfig
from .formatters import get_formatter
from .filters import RequestIdFilter, ExtraFieldsFilter
from .handlers import create_console_handler, create_file_handler
from ...utils.sanitizer import mask_sensitive_data


class RequestClientLogger:
    """
    Structured logger: keyword arguments become record fields.

    Every field is passed through the sanitizer, so credentials that slip
    into headers, URLs or bodies are masked before reaching a handler.

    Example:
        >>> logger = RequestClientLogger(LoggingConfig.create(format="json"))
        >>> logger.info("Outgoing request", method="GET", url="https://api.com")
    """

    def __init__(self, config: Optional[LoggingConfig] = None, name: str = "request_client.events"):
        """
        Args:
            config: Logging configuration (uses defaults if None)
            name: Logger name
        """
        self.config = config or LoggingConfig()
        self.name = name
        self._closed = False
        self._handlers: List[logging.Handler] = []

        self._logger = logging.getLogger(name)
        self._logger.setLevel(self.config.levelno)
        self._logger.propagate = False

        # Re-initialisation with the same name replaces handlers
        for handler in list(self._logger.handlers):
            self._logger.removeHandler(handler)
            handler.close()

        filters = []
        if self.config.enable_request_id:
            filters.append(RequestIdFilter())
        if self.config.extra_fields:
            filters.append(ExtraFieldsFilter(self.config.extra_fields))

        formatter = get_formatter(self.config.format.value)
        level = self.config.levelno

        if self.config.enable_console:
            self._add_handler(create_console_handler(level, formatter, filters))

        if self.config.enable_file and self.config.file_path:
            self._add_handler(create_file_handler(
                file_path=self.config.file_path,
                level=level,
                formatter=formatter,
                max_bytes=self.config.max_bytes,
                backup_count=self.config.backup_count,
                filters=filters
            ))

    def _add_handler(self, handler: logging.Handler) -> None:
        self._handlers.append(handler)
        self._logger.addHandler(handler)

    def _log(self, level: int, message: str, fields: dict, exc_info: bool = False) -> None:
        self._logger.log(level, message, extra=mask_sensitive_data(fields), exc_info=exc_info)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        """
        Log info message.

        Example:
            >>> logger.info("Incoming response", status_code=200, elapsed_ms=150)
        """
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, message, kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log error with traceback; call from an exception handler."""
        self._log(logging.ERROR, message, kwargs, exc_info=True)

    def close(self) -> None:
        """
        Flush and close the handlers this instance installed.

        Handlers added to the same stdlib logger by anyone else stay attached.
        Safe to call multiple times.
        """
        if self._closed:
            return
        for handler in self._handlers:
            try:
                handler.flush()
                handler.close()
            finally:
                self._logger.removeHandler(handler)
        self._handlers.clear()
        self._closed = True


def get_logger(config: Optional[LoggingConfig] = None, name: str = "request_client.events") -> RequestClientLogger:
    """
    Build a RequestClientLogger.

    Example:
        >>> logger = get_logger(LoggingConfig.create(level="DEBUG"))
    """
    return RequestClientLogger(config=config, name=name)
