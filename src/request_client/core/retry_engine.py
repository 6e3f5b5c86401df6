"""
Retry executor: цикл отправки с повторами.

Включает:
- Fixed backoff между попытками (отменяемое ожидание)
- Соблюдение дедлайна и отмены RequestContext
- Body replay: тело буферизуется один раз, каждая попытка читает свой view
- События Observer до и после каждой попытки
"""

import logging
import time
from datetime import datetime, timezone
from typing import List, Optional

from .config import LogVisibility, RetryConfig
from .context import RequestContext
from .exceptions import RequestClientError, ServerError
from .logging import RequestClientLogger
from .observer import EventBuilder, NullObserver, Observer, notify
from .request_spec import OutgoingRequest
from .response import Attempt, Response
from .transport import Transport, TransportResponse
from ..utils.sanitizer import mask_url

logger = logging.getLogger(__name__)


class RetryExecutor:
    """
    Выполняет один подготовленный запрос с retry.

    Pending → Attempting → {Succeeded, Retrying, Failed}; Retrying
    возвращается в Attempting. Executor stateless: счётчик попыток,
    буфер тела и история живут в локальных переменных execute(),
    поэтому один экземпляр безопасно разделяется между потоками.

    Классификация исхода попытки:
        - TransportError (нет ответа) → retriable
        - status >= 500 → retriable
        - всё остальное (включая 4xx) → терминальный успех

    Examples:
        >>> executor = RetryExecutor(transport, RetryConfig(max_retries=2, backoff=0.01))
        >>> response = executor.execute(RequestContext.with_deadline_in(5), outgoing)
    """

    def __init__(
        self,
        transport: Transport,
        retry: Optional[RetryConfig] = None,
        observer: Optional[Observer] = None,
        visibility: Optional[LogVisibility] = None,
        logger: Optional[RequestClientLogger] = None,
    ):
        """
        Args:
            transport: Отправитель запросов
            retry: Конфигурация retry
            observer: Получатель событий (None = NullObserver)
            visibility: Какие поля показывать в событиях
            logger: Структурный логгер для сообщений о повторах
                (None = стандартный logging модуля)
        """
        self.transport = transport
        self.config = retry or RetryConfig()
        self.observer = observer or NullObserver()
        self.logger = logger
        self._events = EventBuilder(visibility)

    @staticmethod
    def is_retriable(
        error: Optional[Exception] = None,
        response: Optional[TransportResponse] = None
    ) -> bool:
        """
        Решить, можно ли повторить попытку с таким исходом.

        Args:
            error: Ошибка транспорта (если ответа нет)
            response: Ответ транспорта

        Returns:
            True если исход retriable
        """
        if error is not None:
            return getattr(error, "retryable", False)
        return response is not None and response.status_code >= 500

    def execute(self, ctx: RequestContext, request: OutgoingRequest) -> Response:
        """
        Отправить запрос, повторяя retriable исходы до max_retries раз.

        Args:
            ctx: Управляющий контекст (дедлайн + отмена)
            request: Подготовленный запрос (URL, заголовки, тело)

        Returns:
            Response первой терминальной попытки (2xx/3xx/4xx)

        Raises:
            ServerError: 5xx после исчерпания повторов (response приложен)
            TransportError: последняя ошибка транспорта после исчерпания повторов
            CancelledError: контекст отменён
            DeadlineExceededError: истёк дедлайн
        """
        # Тело захватывается один раз, до первой попытки
        payload = request.buffer_body()
        headers = dict(request.headers)
        attempts: List[Attempt] = []
        started = time.monotonic()
        attempt = 0

        while True:
            self._check_context(ctx, attempts)

            notify(self.observer, "on_before_send", self._events.before_send(
                request.method, request.url, headers, payload, attempt
            ))

            sent_at = datetime.now(timezone.utc)
            attempt_started = time.monotonic()
            error: Optional[RequestClientError] = None
            raw: Optional[TransportResponse] = None

            try:
                raw = self.transport.send(
                    request.method,
                    request.url,
                    headers,
                    request.body_view(),
                    ctx.remaining(),
                )
            except RequestClientError as e:
                error = e

            elapsed = time.monotonic() - attempt_started
            attempts.append(Attempt(
                number=attempt,
                sent_at=sent_at,
                elapsed=elapsed,
                status_code=raw.status_code if raw is not None else None,
                error=error,
            ))

            if raw is not None:
                notify(self.observer, "on_after_receive", self._events.after_receive(
                    request.method, raw.url or request.url, raw.status_code,
                    raw.headers, raw.body, attempt, elapsed,
                ))

            # Отмена или дедлайн во время отправки обрывают цикл
            self._check_context(ctx, attempts, cause=error)

            response = None
            if raw is not None:
                response = Response(
                    status_code=raw.status_code,
                    headers=raw.headers,
                    body=raw.body,
                    url=raw.url or request.url,
                    method=request.method,
                    elapsed=time.monotonic() - started,
                    attempts=attempts,
                )

            if not self.is_retriable(error, raw):
                if error is not None:
                    # Фатальная ошибка транспорта - не ретраим
                    error.attempts = tuple(attempts)
                    raise error
                return response

            if attempt >= self.config.max_retries:
                raise self._exhausted(request, error, response, attempts)

            self._log_retry(request, attempt, error, raw)

            # Отменяемое ожидание; может выбросить Cancelled/DeadlineExceeded
            self._wait(ctx, attempts)
            attempt += 1

    def _log_retry(
        self,
        request: OutgoingRequest,
        attempt: int,
        error: Optional[RequestClientError],
        raw: Optional[TransportResponse],
    ) -> None:
        reason = str(error) if error is not None else f"HTTP {raw.status_code}"
        if self.logger is not None:
            self.logger.warning(
                "Request error (will retry)",
                method=request.method,
                url=mask_url(request.url),
                attempt=attempt + 1,
                max_attempts=self.config.max_attempts,
                error=reason,
                backoff=self.config.backoff,
            )
        else:
            logger.warning(
                f"Attempt {attempt + 1}/{self.config.max_attempts} for "
                f"{request.method} {mask_url(request.url)} failed ({reason}), "
                f"retrying in {self.config.backoff:.3f}s"
            )

    def _exhausted(
        self,
        request: OutgoingRequest,
        error: Optional[RequestClientError],
        response: Optional[Response],
        attempts: List[Attempt],
    ) -> RequestClientError:
        """Терминальная ошибка после исчерпания повторов."""
        if error is not None:
            final: RequestClientError = error
        else:
            final = ServerError(response.status_code, response.url, response=response)
            previous = next((a.error for a in reversed(attempts) if a.error is not None), None)
            if previous is not None:
                final.__cause__ = previous
        final.attempts = tuple(attempts)
        return final

    @staticmethod
    def _check_context(
        ctx: RequestContext,
        attempts: List[Attempt],
        cause: Optional[Exception] = None
    ) -> None:
        try:
            ctx.raise_if_done()
        except RequestClientError as e:
            e.attempts = tuple(attempts)
            if cause is not None:
                raise e from cause
            raise

    def _wait(self, ctx: RequestContext, attempts: List[Attempt]) -> None:
        try:
            ctx.wait(self.config.backoff)
        except RequestClientError as e:
            e.attempts = tuple(attempts)
            raise


__all__ = ["RetryExecutor"]
