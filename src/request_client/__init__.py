"""Request Client - configurable HTTP client with auth, retry and request observation."""

import logging
from importlib.metadata import version, PackageNotFoundError

from .core.http_client import RequestClient, SUPPORTED_METHODS
from .core.context import RequestContext
from .core.request_spec import RequestSpec, RequestBody, BodyKind
from .core.response import Response, Attempt
from .core.config import ClientConfig, RetryConfig, TransportConfig, LogVisibility
from .core.env_config import ClientSettings, load_from_env
from .core.auth import (
    AuthStrategy,
    NoAuth,
    BasicAuth,
    BearerAuth,
    APIKeyAuth,
    APIKeyPlacement,
)
from .core.observer import (
    Observer,
    NullObserver,
    LoggingObserver,
    BeforeSendEvent,
    AfterReceiveEvent,
)
from .core.transport import Transport, TransportResponse, RequestsTransport
from .core.logging import LoggingConfig, RequestClientLogger
from .core.exceptions import (
    RequestClientError,
    InvalidURLError,
    UnsupportedMethodError,
    ConfigurationError,
    TransportError,
    TimeoutError,
    ConnectionError,
    ProxyError,
    SSLError,
    ServerError,
    ClientError,
    CancelledError,
    DeadlineExceededError,
    DecodeError,
)

# Set up logging - add NullHandler to prevent "No handler found" warnings
# Users can configure logging themselves using logging.getLogger('request_client')
logging.getLogger('request_client').addHandler(logging.NullHandler())

# Version info - read from package metadata (single source of truth in pyproject.toml)
try:
    __version__ = version("request-client-core")
except PackageNotFoundError:
    # Package is not installed (development mode)
    __version__ = "0.0.0-dev"

__license__ = "MIT"

__all__ = [
    # Core
    "RequestClient",
    "RequestContext",
    "RequestSpec",
    "RequestBody",
    "BodyKind",
    "Response",
    "Attempt",
    "SUPPORTED_METHODS",

    # Config
    "ClientConfig",
    "RetryConfig",
    "TransportConfig",
    "LogVisibility",
    "ClientSettings",
    "load_from_env",

    # Auth
    "AuthStrategy",
    "NoAuth",
    "BasicAuth",
    "BearerAuth",
    "APIKeyAuth",
    "APIKeyPlacement",

    # Observer
    "Observer",
    "NullObserver",
    "LoggingObserver",
    "BeforeSendEvent",
    "AfterReceiveEvent",

    # Transport
    "Transport",
    "TransportResponse",
    "RequestsTransport",

    # Logging
    "LoggingConfig",
    "RequestClientLogger",

    # Exceptions
    "RequestClientError",
    "InvalidURLError",
    "UnsupportedMethodError",
    "ConfigurationError",
    "TransportError",
    "TimeoutError",
    "ConnectionError",
    "ProxyError",
    "SSLError",
    "ServerError",
    "ClientError",
    "CancelledError",
    "DeadlineExceededError",
    "DecodeError",
]
