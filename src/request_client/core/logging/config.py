"""
Logging configuration for Request Client.

LoggingConfig is attached to ClientConfig.logging; when present the client
builds a RequestClientLogger and a LoggingObserver from it.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Type, TypeVar, Union

_E = TypeVar("_E", bound=Enum)


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Record layouts: one JSON object per line, indented JSON, key=value text."""
    JSON = "json"
    PRETTY = "pretty"
    TEXT = "text"


def _coerce(enum_cls: Type[_E], value: Union[str, _E], normalize) -> _E:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(normalize(value))
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValueError(f"Unknown {enum_cls.__name__} {value!r}; expected one of: {allowed}") from None


@dataclass(frozen=True)
class LoggingConfig:
    """
    Where and how request events are written.

    Attributes:
        level: minimum level passed to handlers
        format: record layout, see LogFormat
        enable_console / enable_file: sinks; the file sink rotates at
            max_bytes and keeps backup_count old files
        enable_request_id: stamp every record with the X-Request-ID of the call
        max_body_chars: request/response bodies longer than this are cut in
            "Outgoing request" / "Incoming response" records (None = no limit)
        extra_fields: static fields (service name, env) added to every record
    """

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.TEXT
    enable_console: bool = True
    enable_file: bool = False
    file_path: Optional[str] = None
    max_bytes: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5
    enable_request_id: bool = True
    max_body_chars: Optional[int] = 4096
    extra_fields: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.enable_file and not self.file_path:
            raise ValueError("file_path is required when enable_file=True")
        if self.max_body_chars is not None and self.max_body_chars < 0:
            raise ValueError("max_body_chars must be >= 0 or None")
        object.__setattr__(self, "extra_fields", MappingProxyType(dict(self.extra_fields)))

    @property
    def levelno(self) -> int:
        """Numeric stdlib level (logging.INFO, ...)."""
        return getattr(logging, self.level.value)

    def truncate_body(self, text: Optional[str]) -> Optional[str]:
        if text is None or self.max_body_chars is None or len(text) <= self.max_body_chars:
            return text
        return f"{text[:self.max_body_chars]}... [{len(text) - self.max_body_chars} more chars]"

    @classmethod
    def create(
        cls,
        level: Union[str, LogLevel] = "INFO",
        format: Union[str, LogFormat] = "text",
        **options: Any
    ) -> "LoggingConfig":
        """
        Build from case-insensitive strings (env values, CLI flags).

        Remaining keyword arguments are the dataclass fields.

        Raises:
            ValueError: unknown level or format, file sink without file_path

        Example:
            >>> LoggingConfig.create("debug", "json", enable_file=True, file_path="/tmp/requests.log")
        """
        return cls(
            level=_coerce(LogLevel, level, str.upper),
            format=_coerce(LogFormat, format, str.lower),
            **options
        )
