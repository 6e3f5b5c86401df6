"""Buffered response and per-attempt records."""

import codecs
import io
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Sequence, Tuple

from requests.structures import CaseInsensitiveDict

from ..utils.serialization import decode_json
from .exceptions import ClientError, ServerError


@dataclass(frozen=True)
class Attempt:
    """
    One send attempt inside a single RequestClient.do() call.

    Attributes:
        number: 0-based attempt index
        sent_at: Wall-clock time the attempt started
        elapsed: Seconds spent in the transport
        status_code: Status of the response, None if the attempt failed
        error: Transport error, None if a response was received
    """
    number: int
    sent_at: datetime
    elapsed: float
    status_code: Optional[int] = None
    error: Optional[Exception] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.status_code is not None and self.status_code < 500


class Response:
    """
    Fully buffered HTTP response.

    The body is read from the network exactly once; every call to
    :meth:`stream` returns a fresh, independently readable view of the
    same bytes, so logging and the caller can both consume it.

    Example:
        >>> response = client.get("/users/1")
        >>> response.status_code
        200
        >>> response.json()
        {'id': 1}
        >>> response.stream().read() == response.body
        True
    """

    __slots__ = ("status_code", "headers", "body", "url", "method", "elapsed", "attempts")

    def __init__(
        self,
        status_code: int,
        headers: Mapping[str, str],
        body: bytes,
        url: str,
        method: str = "GET",
        elapsed: float = 0.0,
        attempts: Sequence[Attempt] = (),
    ):
        self.status_code = status_code
        self.headers = CaseInsensitiveDict(headers)
        self.body = bytes(body or b"")
        self.url = url
        self.method = method
        self.elapsed = elapsed
        self.attempts: Tuple[Attempt, ...] = tuple(attempts)

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    @property
    def content(self) -> bytes:
        """Alias of :attr:`body` (requests naming)."""
        return self.body

    @property
    def text(self) -> str:
        return self.body.decode(self.encoding, errors="replace")

    @property
    def encoding(self) -> str:
        """Charset from Content-Type; unknown or missing codecs fall back to utf-8."""
        content_type = self.headers.get("Content-Type", "")
        for part in content_type.split(";")[1:]:
            name, _, value = part.strip().partition("=")
            if name.lower() == "charset" and value:
                charset = value.strip('"')
                try:
                    codecs.lookup(charset)
                except LookupError:
                    break
                return charset
        return "utf-8"

    def stream(self) -> io.BytesIO:
        """Fresh readable copy of the body."""
        return io.BytesIO(self.body)

    def json(self, target: Optional[Callable[[Any], Any]] = None) -> Any:
        """
        Decode the body as JSON.

        Raises:
            DecodeError: empty body or invalid JSON
        """
        return decode_json(self.body, target)

    def raise_for_status(self) -> "Response":
        """
        Raise ClientError for 4xx and ServerError for 5xx, return self otherwise.
        """
        if 400 <= self.status_code < 500:
            raise ClientError(self.status_code, self.url, response=self)
        if self.status_code >= 500:
            raise ServerError(self.status_code, self.url, response=self)
        return self

    def __repr__(self) -> str:
        return f"<Response [{self.status_code}] {self.method} {self.url}>"
