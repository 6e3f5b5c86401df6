"""
Observer boundary: before-send and after-receive events of every attempt.

The core decides WHAT is reported (and hides fields switched off in
LogVisibility); observers decide how to render it.
"""

import logging
from abc import ABC
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple
from urllib.parse import parse_qsl, urlsplit

from .config import LogVisibility
from .logging import RequestClientLogger
from .url_builder import strip_query
from ..utils.sanitizer import mask_headers, mask_query, mask_url

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BeforeSendEvent:
    """Reported right before an attempt goes to the transport."""
    method: str
    url: str
    headers: Optional[Mapping[str, str]]
    query: Optional[List[Tuple[str, str]]]
    body: Optional[bytes]
    attempt: int


@dataclass(frozen=True)
class AfterReceiveEvent:
    """Reported once per attempt that produced a response."""
    method: str
    url: str
    status_code: int
    headers: Optional[Mapping[str, str]]
    body: Optional[bytes]
    attempt: int
    elapsed: float


class Observer(ABC):
    """
    Base observer; both hooks default to no-ops.

    Exceptions raised by a hook are logged and do not affect the request.
    """

    def on_before_send(self, event: BeforeSendEvent) -> None:
        """Called before each attempt."""

    def on_after_receive(self, event: AfterReceiveEvent) -> None:
        """Called after each attempt that received a response."""


class NullObserver(Observer):
    """Observer that ignores every event."""


def _body_text(body: Optional[bytes]) -> Optional[str]:
    if body is None:
        return None
    return body.decode("utf-8", errors="replace")


class LoggingObserver(Observer):
    """
    Writes "Outgoing request" / "Incoming response" records at INFO.

    Header values, query parameters and URLs are masked before logging.

    Example:
        >>> observer = LoggingObserver(RequestClientLogger(LoggingConfig.create(format="pretty")))
        >>> client = RequestClient(config, observer=observer)
    """

    def __init__(self, logger: Optional[RequestClientLogger] = None):
        self.logger = logger or RequestClientLogger()

    def _body(self, body: Optional[bytes]) -> Optional[str]:
        return self.logger.config.truncate_body(_body_text(body))

    def on_before_send(self, event: BeforeSendEvent) -> None:
        self.logger.info(
            "Outgoing request",
            method=event.method,
            url=mask_url(event.url),
            query=mask_query(event.query),
            headers=mask_headers(event.headers),
            body=self._body(event.body),
            attempt=event.attempt,
        )

    def on_after_receive(self, event: AfterReceiveEvent) -> None:
        self.logger.info(
            "Incoming response",
            method=event.method,
            url=mask_url(event.url),
            status_code=event.status_code,
            headers=mask_headers(event.headers),
            body=self._body(event.body),
            attempt=event.attempt,
            elapsed_ms=round(event.elapsed * 1000, 2),
        )

    def close(self) -> None:
        self.logger.close()


class EventBuilder:
    """Builds observer events, leaving out fields hidden by LogVisibility."""

    def __init__(self, visibility: Optional[LogVisibility] = None):
        self.visibility = visibility or LogVisibility()

    def _url(self, url: str) -> str:
        return strip_query(url) if self.visibility.disable_log_query else url

    def before_send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: Optional[bytes],
        attempt: int,
    ) -> BeforeSendEvent:
        v = self.visibility
        return BeforeSendEvent(
            method=method,
            url=self._url(url),
            headers=None if v.disable_log_headers else dict(headers),
            query=None if v.disable_log_query else parse_qsl(urlsplit(url).query, keep_blank_values=True),
            body=None if v.disable_log_body else body,
            attempt=attempt,
        )

    def after_receive(
        self,
        method: str,
        url: str,
        status_code: int,
        headers: Mapping[str, str],
        body: bytes,
        attempt: int,
        elapsed: float,
    ) -> AfterReceiveEvent:
        v = self.visibility
        return AfterReceiveEvent(
            method=method,
            url=self._url(url),
            status_code=status_code,
            headers=None if v.disable_log_headers else dict(headers),
            body=None if v.disable_log_body or not body else body,
            attempt=attempt,
            elapsed=elapsed,
        )


def notify(observer: Observer, hook: str, event: Any) -> None:
    """Call an observer hook; a failing observer never breaks the request."""
    try:
        getattr(observer, hook)(event)
    except Exception as e:
        logger.warning(f"Observer {observer.__class__.__name__} failed in {hook}: {e}")
