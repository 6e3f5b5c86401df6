"""
Log formatters: single-line JSON, indented JSON and plain text.

All of them render fields passed through ``extra=`` after the message.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Tuple

# Attributes every LogRecord has; anything else came from extra=
_RECORD_FIELDS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}


def _extra_fields(record: logging.LogRecord) -> Iterator[Tuple[str, Any]]:
    for key, value in record.__dict__.items():
        if key not in _RECORD_FIELDS and not key.startswith('_'):
            yield key, value


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line.

    Example output:
        {"time": "2024-01-15T10:30:45.123000+00:00", "level": "INFO",
         "logger": "request_client.events", "msg": "Outgoing request", "method": "GET"}
    """

    indent = None

    def _payload(self, record: logging.LogRecord) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(_extra_fields(record))

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return payload

    def format(self, record: logging.LogRecord) -> str:
        return json.dumps(self._payload(record), indent=self.indent, default=str)


class PrettyJSONFormatter(JSONFormatter):
    """
    Indented JSON, one blank line before each record.

    Meant for reading request/response dumps in a terminal.
    """

    indent = 2

    def format(self, record: logging.LogRecord) -> str:
        return "\n" + super().format(record)


class TextFormatter(logging.Formatter):
    """
    Format: [timestamp] [level] [logger] message key=value ...

    Example output:
        [2024-01-15 10:30:45] [INFO] [request_client] Incoming response status_code=200
    """

    def __init__(self):
        super().__init__(
            fmt='[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    def format(self, record: logging.LogRecord) -> str:
        base_msg = super().format(record)
        extra = " ".join(f"{key}={value}" for key, value in _extra_fields(record))
        return f"{base_msg} {extra}" if extra else base_msg


def get_formatter(format_type: str) -> logging.Formatter:
    """
    Get formatter by type.

    Raises:
        ValueError: If format_type is unknown

    Example:
        >>> formatter = get_formatter("pretty")
    """
    formatters = {
        "json": JSONFormatter,
        "pretty": PrettyJSONFormatter,
        "text": TextFormatter,
    }

    formatter_class = formatters.get(format_type.lower())
    if not formatter_class:
        raise ValueError(
            f"Unknown format type: {format_type}. "
            f"Available: {', '.join(formatters.keys())}"
        )

    return formatter_class()
