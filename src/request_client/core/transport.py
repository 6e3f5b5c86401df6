"""
Transport layer: the only place that touches the network.

RetryExecutor treats a Transport as an opaque synchronous sender. The
default RequestsTransport delegates DNS, TLS and socket I/O to requests.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import BinaryIO, Mapping, Optional

import requests
from requests.adapters import HTTPAdapter

from .config import TransportConfig
from .exceptions import TimeoutError, classify_requests_exception
from .session_manager import ThreadSafeSessionManager

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransportResponse:
    """Raw result of one send: status, headers and the fully read body."""
    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""
    url: Optional[str] = None


class Transport(ABC):
    """
    Synchronous sender.

    Implementations must read the whole response body before returning and
    raise a TransportError subclass for failures that produced no response.
    """

    @abstractmethod
    def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: Optional[BinaryIO],
        timeout: Optional[float],
    ) -> TransportResponse:
        """Send one request.

        Args:
            method: HTTP method
            url: Absolute URL
            headers: Final headers
            body: Readable view of the request body, or None
            timeout: Seconds allowed for this send, None for no limit
        """

    def close(self) -> None:
        """Release network resources."""


class RequestsTransport(Transport):
    """
    Transport backed by requests, one Session per thread.

    Example:
        >>> transport = RequestsTransport(TransportConfig(verify_ssl=False))
        >>> transport.send("GET", "https://example.com", {}, None, timeout=5)
    """

    def __init__(self, config: Optional[TransportConfig] = None):
        self._config = config or TransportConfig()
        self._session_manager = ThreadSafeSessionManager(session_factory=self._create_session)

    def _create_session(self) -> requests.Session:
        session = requests.Session()

        # Ретраи делает RetryExecutor, не urllib3
        adapter = HTTPAdapter(max_retries=0)
        session.mount('http://', adapter)
        session.mount('https://', adapter)

        if self._config.proxies:
            session.proxies.update(self._config.proxies)
        return session

    @property
    def session(self) -> requests.Session:
        """Session of the current thread."""
        return self._session_manager.get_session()

    def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: Optional[BinaryIO],
        timeout: Optional[float],
    ) -> TransportResponse:
        # requests читает data=BinaryIO целиком, view у каждой попытки свой
        data = body.read() if body is not None else None
        if timeout is not None and timeout <= 0:
            # urllib3 не принимает нулевой таймаут
            raise TimeoutError("Request timeout", url, timeout)
        try:
            response = self.session.request(
                method=method,
                url=url,
                headers=dict(headers),
                data=data,
                timeout=timeout,
                verify=self._config.verify_ssl,
                allow_redirects=self._config.allow_redirects,
            )
            # Тело читается с сети ровно один раз
            content = response.content
        except requests.exceptions.RequestException as e:
            raise classify_requests_exception(e, url, timeout) from e

        return TransportResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            body=content or b"",
            url=response.url,
        )

    def close(self) -> None:
        self._session_manager.close_all()
