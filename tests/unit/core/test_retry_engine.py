"""Тесты RetryExecutor."""

import io
import threading
import time

import pytest

from request_client.core.config import LogVisibility, RetryConfig
from request_client.core.context import RequestContext
from request_client.core.exceptions import (
    CancelledError,
    ConnectionError,
    DeadlineExceededError,
    InvalidURLError,
    ServerError,
    TimeoutError,
)
from request_client.core.request_spec import OutgoingRequest
from request_client.core.retry_engine import RetryExecutor
from request_client.core.transport import TransportResponse

URL = "https://api.example.com/data"


def make_request(method="GET", body=None):
    return OutgoingRequest(method, URL, {"Accept": "application/json"}, body)


def test_is_retriable():
    """Классификация исходов."""
    assert RetryExecutor.is_retriable(ConnectionError("refused", URL)) is True
    assert RetryExecutor.is_retriable(TimeoutError("slow", URL)) is True
    assert RetryExecutor.is_retriable(InvalidURLError("bad", URL)) is False
    assert RetryExecutor.is_retriable(response=TransportResponse(500)) is True
    assert RetryExecutor.is_retriable(response=TransportResponse(599)) is True
    assert RetryExecutor.is_retriable(response=TransportResponse(404)) is False
    assert RetryExecutor.is_retriable(response=TransportResponse(200)) is False


def test_success_single_attempt(make_transport):
    """200 с первой попытки - ровно одна отправка."""
    transport = make_transport([200])
    executor = RetryExecutor(transport, RetryConfig(max_retries=3, backoff=0.01))

    response = executor.execute(RequestContext.background(), make_request())

    assert response.status_code == 200
    assert len(transport.calls) == 1
    assert len(response.attempts) == 1
    assert response.attempts[0].succeeded


def test_always_5xx_makes_n_plus_one_attempts(make_transport):
    """Постоянный 503: max_retries + 1 попыток, затем ServerError."""
    transport = make_transport([503])
    executor = RetryExecutor(transport, RetryConfig(max_retries=2, backoff=0.01))

    with pytest.raises(ServerError) as exc_info:
        executor.execute(RequestContext.background(), make_request())

    assert len(transport.calls) == 3
    error = exc_info.value
    assert error.status_code == 503
    assert error.response is not None
    assert error.response.status_code == 503
    assert [a.number for a in error.attempts] == [0, 1, 2]
    assert all(a.status_code == 503 for a in error.attempts)


def test_zero_retries_single_attempt(make_transport):
    """max_retries=0 - одна попытка даже на 5xx."""
    transport = make_transport([500])
    executor = RetryExecutor(transport, RetryConfig(max_retries=0, backoff=0.01))

    with pytest.raises(ServerError):
        executor.execute(RequestContext.background(), make_request())

    assert len(transport.calls) == 1


def test_4xx_returned_without_retry(make_transport):
    """4xx - обычный ответ, без повторов."""
    transport = make_transport([404])
    executor = RetryExecutor(transport, RetryConfig(max_retries=3, backoff=0.01))

    response = executor.execute(RequestContext.background(), make_request())

    assert response.status_code == 404
    assert len(transport.calls) == 1


def test_transport_error_then_5xx_then_success(make_transport):
    """[ошибка, 500, 200] при max_retries=2: успех на последней разрешённой попытке."""
    transport = make_transport([ConnectionError("reset", URL), 500, 200])
    executor = RetryExecutor(transport, RetryConfig(max_retries=2, backoff=0.01))

    started = time.monotonic()
    response = executor.execute(RequestContext.background(), make_request())
    elapsed = time.monotonic() - started

    assert response.status_code == 200
    assert len(transport.calls) == 3
    assert elapsed >= 0.02
    assert response.elapsed >= 0.02

    first, second, third = response.attempts
    assert isinstance(first.error, ConnectionError) and first.status_code is None
    assert second.status_code == 500
    assert third.status_code == 200
    assert [a.number for a in response.attempts] == [0, 1, 2]


def test_transport_errors_exhausted_raise_last_error(make_transport):
    """Все попытки - ошибка транспорта: выбрасывается последняя."""
    last = TimeoutError("Request timeout", URL)
    transport = make_transport([ConnectionError("refused", URL), last])
    executor = RetryExecutor(transport, RetryConfig(max_retries=1, backoff=0.01))

    with pytest.raises(TimeoutError) as exc_info:
        executor.execute(RequestContext.background(), make_request())

    assert exc_info.value is last
    assert len(exc_info.value.attempts) == 2


def test_fatal_transport_error_not_retried(make_transport):
    """Не-retryable ошибка транспорта выбрасывается сразу."""
    transport = make_transport([InvalidURLError("bad url", URL)])
    executor = RetryExecutor(transport, RetryConfig(max_retries=3, backoff=0.01))

    with pytest.raises(InvalidURLError):
        executor.execute(RequestContext.background(), make_request())

    assert len(transport.calls) == 1


def test_body_replayed_identically(make_transport):
    """Тело из потока отправляется одинаково на каждой попытке."""
    transport = make_transport([500, 502, 200])
    executor = RetryExecutor(transport, RetryConfig(max_retries=3, backoff=0.01))
    request = make_request("POST", io.BytesIO(b'{"order": 42}'))

    executor.execute(RequestContext.background(), request)

    bodies = [call.body for call in transport.calls]
    assert bodies == [b'{"order": 42}'] * 3


def test_cancel_during_backoff_stops_retries(make_transport):
    """Отмена во время паузы: CancelledError без новых отправок."""
    transport = make_transport([503])
    executor = RetryExecutor(transport, RetryConfig(max_retries=5, backoff=5.0))
    ctx = RequestContext.background()

    timer = threading.Timer(0.05, ctx.cancel)
    timer.start()
    started = time.monotonic()
    try:
        with pytest.raises(CancelledError) as exc_info:
            executor.execute(ctx, make_request())
    finally:
        timer.cancel()

    assert time.monotonic() - started < 2.0
    assert len(transport.calls) == 1
    assert len(exc_info.value.attempts) == 1


def test_cancel_while_in_flight(make_transport):
    """Отмена во время отправки побеждает полученный ответ."""
    ctx = RequestContext.background()
    transport = make_transport([200], on_send=lambda n: ctx.cancel())
    executor = RetryExecutor(transport, RetryConfig(max_retries=3, backoff=0.01))

    with pytest.raises(CancelledError):
        executor.execute(ctx, make_request())

    assert len(transport.calls) == 1


def test_cancelled_before_start_sends_nothing(make_transport):
    """Уже отменённый контекст - ни одной отправки."""
    transport = make_transport([200])
    executor = RetryExecutor(transport, RetryConfig())
    ctx = RequestContext.background()
    ctx.cancel()

    with pytest.raises(CancelledError):
        executor.execute(ctx, make_request())

    assert transport.calls == []


def test_deadline_exceeded_during_backoff(make_transport):
    """Дедлайн короче backoff: DeadlineExceededError после первой попытки."""
    transport = make_transport([503])
    executor = RetryExecutor(transport, RetryConfig(max_retries=3, backoff=1.0))
    ctx = RequestContext.with_deadline_in(0.05)

    started = time.monotonic()
    with pytest.raises(DeadlineExceededError):
        executor.execute(ctx, make_request())

    assert time.monotonic() - started < 0.9
    assert len(transport.calls) == 1


def test_timeout_passed_to_transport_is_remaining_deadline(make_transport):
    """Транспорт получает оставшееся до дедлайна время."""
    transport = make_transport([200])
    executor = RetryExecutor(transport, RetryConfig())

    executor.execute(RequestContext.with_deadline_in(3.0), make_request())

    timeout = transport.calls[0].timeout
    assert timeout is not None
    assert 0 < timeout <= 3.0


def test_observer_events_per_attempt(make_transport, observer):
    """before_send на каждую попытку, after_receive на каждый ответ."""
    transport = make_transport([ConnectionError("reset", URL), 500, 200])
    executor = RetryExecutor(
        transport, RetryConfig(max_retries=3, backoff=0.01), observer=observer
    )

    executor.execute(RequestContext.background(), make_request())

    assert [e.attempt for e in observer.before] == [0, 1, 2]
    assert [e.attempt for e in observer.after] == [1, 2]
    assert [e.status_code for e in observer.after] == [500, 200]


def test_observer_visibility_applied(make_transport, observer):
    """Скрытые поля в событиях равны None."""
    transport = make_transport([TransportResponse(200, {"X-Trace": "1"}, b"secret", URL)])
    executor = RetryExecutor(
        transport,
        RetryConfig(),
        observer=observer,
        visibility=LogVisibility(disable_log_body=True, disable_log_headers=True),
    )

    executor.execute(RequestContext.background(), make_request("POST", b"payload"))

    assert observer.before[0].body is None
    assert observer.before[0].headers is None
    assert observer.after[0].body is None
    assert observer.after[0].headers is None


def test_failing_observer_does_not_break_request(make_transport):
    """Исключение в observer логируется и не прерывает вызов."""

    class BrokenObserver:
        def on_before_send(self, event):
            raise RuntimeError("boom")

        def on_after_receive(self, event):
            raise RuntimeError("boom")

    transport = make_transport([200])
    executor = RetryExecutor(transport, RetryConfig(), observer=BrokenObserver())

    response = executor.execute(RequestContext.background(), make_request())

    assert response.status_code == 200


def test_executor_is_stateless_between_calls(make_transport):
    """Повторный execute начинает счёт попыток заново."""
    transport = make_transport([500, 200, 500, 200])
    executor = RetryExecutor(transport, RetryConfig(max_retries=1, backoff=0.01))

    first = executor.execute(RequestContext.background(), make_request())
    second = executor.execute(RequestContext.background(), make_request())

    assert len(first.attempts) == 2
    assert len(second.attempts) == 2
    assert len(transport.calls) == 4
