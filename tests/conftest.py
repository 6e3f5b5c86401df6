"""
Pytest configuration and fixtures for request-client-core tests.
"""

from typing import List, NamedTuple, Optional

import pytest
import responses as responses_lib

from request_client.core.config import ClientConfig
from request_client.core.http_client import RequestClient
from request_client.core.logging import LoggingConfig, clear_request_id
from request_client.core.observer import Observer
from request_client.core.transport import Transport, TransportResponse


class SentRequest(NamedTuple):
    method: str
    url: str
    headers: dict
    body: Optional[bytes]
    timeout: Optional[float]


class FakeTransport(Transport):
    """
    Scripted transport without network.

    Каждый send() берёт следующий исход из outcomes: int (статус),
    TransportResponse или исключение. Последний исход повторяется.
    """

    def __init__(self, outcomes=None, on_send=None):
        self.outcomes = list(outcomes or [200])
        self.on_send = on_send
        self.calls: List[SentRequest] = []
        self.closed = False

    def send(self, method, url, headers, body, timeout):
        data = body.read() if body is not None else None
        self.calls.append(SentRequest(method, url, dict(headers), data, timeout))
        if self.on_send is not None:
            self.on_send(len(self.calls))

        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, int):
            return TransportResponse(status_code=outcome, headers={}, body=b"", url=url)
        return outcome

    def close(self):
        self.closed = True


class RecordingObserver(Observer):
    """Collects every event it receives."""

    def __init__(self):
        self.before = []
        self.after = []

    def on_before_send(self, event):
        self.before.append(event)

    def on_after_receive(self, event):
        self.after.append(event)


@pytest.fixture
def base_url():
    """Base URL for testing."""
    return "https://api.example.com"


@pytest.fixture
def mock_responses():
    """Mock HTTP responses using responses library."""
    with responses_lib.RequestsMock() as rsps:
        yield rsps


@pytest.fixture
def make_transport():
    """Factory of FakeTransport: make_transport([503, 200])."""
    return FakeTransport


@pytest.fixture
def observer():
    """Observer that records events."""
    return RecordingObserver()


@pytest.fixture
def fast_config(base_url):
    """Config with a tiny backoff so retry tests stay fast."""
    return ClientConfig.create(base_url=base_url, max_retries=2, retry_backoff=0.01, timeout=5)


@pytest.fixture
def client(base_url):
    """Request client over the real requests transport (mock with responses)."""
    client = RequestClient(base_url=base_url, timeout=10, retry_backoff=0.01)
    yield client
    client.close()


@pytest.fixture
def logging_config():
    """LoggingConfig for tests that need structured logging."""
    return LoggingConfig.create(
        level="DEBUG",
        enable_console=True,
        enable_file=False
    )


@pytest.fixture
def logging_config_with_file(tmp_path):
    """
    LoggingConfig with file logging enabled.

    Uses temporary directory for log files to avoid cleanup issues.
    """
    log_file = tmp_path / "test.log"
    return LoggingConfig.create(
        level="DEBUG",
        format="json",
        enable_console=False,
        enable_file=True,
        file_path=str(log_file)
    )


@pytest.fixture(autouse=True)
def _reset_request_id():
    """Request id is thread-local; do not leak it between tests."""
    yield
    clear_request_id()
