# src/request_client/core/http_client.py
import logging
import uuid
from typing import Any, Optional
from urllib.parse import urlparse

from .config import ClientConfig
from .context import RequestContext
from .exceptions import ConfigurationError, RequestClientError, UnsupportedMethodError
from .logging import RequestClientLogger, get_request_id, set_request_id, clear_request_id
from .observer import LoggingObserver, NullObserver, Observer
from .request_spec import OutgoingRequest, RequestSpec
from .response import Response
from .retry_engine import RetryExecutor
from .transport import RequestsTransport, Transport
from .url_builder import build_url
from ..utils.sanitizer import mask_url

logger = logging.getLogger(__name__)

SUPPORTED_METHODS = frozenset({"GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"})

REQUEST_ID_HEADER = "X-Request-ID"


class RequestClient:
    """
    HTTP клиент поверх requests: base URL, аутентификация, retry, наблюдение.

    Features:
        - Immutable конфигурация, один экземпляр на много потоков
        - Fixed backoff retry на ошибках транспорта и 5xx
        - Отмена и дедлайн через RequestContext
        - Observer события до и после каждой попытки
        - Thread-safe: каждый поток получает собственную сессию

    Examples:
        >>> with RequestClient(base_url="https://api.example.com", auth=BearerAuth("t")) as client:
        ...     response = client.get("/users", query={"page": "1"})
        ...     users = response.json()

        >>> ctx = RequestContext.with_deadline_in(2.0)
        >>> client.do(ctx, RequestSpec("POST", "/orders", body=b"{}"))
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        base_url: Optional[str] = None,
        observer: Optional[Observer] = None,
        transport: Optional[Transport] = None,
        **kwargs: Any
    ):
        """
        Initialize client.

        Args:
            config: ClientConfig instance
            base_url: Base URL (если config не передан)
            observer: Получатель событий попыток. По умолчанию LoggingObserver
                если в config есть logging, иначе NullObserver
            transport: Отправитель запросов (по умолчанию RequestsTransport)
            **kwargs: Параметры ClientConfig.create (если config не передан)

        Raises:
            ConfigurationError: нет base_url или невалидные параметры
        """
        if config is None:
            if base_url is None:
                raise ConfigurationError("base_url is required when config is not given")
            config = ClientConfig.create(base_url=base_url, **kwargs)
        elif base_url is not None or kwargs:
            raise ConfigurationError("Pass either config or base_url/keyword options, not both")

        logger_instance: Optional[RequestClientLogger] = None
        if config.logging:
            # Свой stdlib-логгер на каждый клиент: клиенты одного домена
            # не заменяют и не закрывают handlers друг друга
            domain = urlparse(config.base_url).netloc or "unknown"
            logger_instance = RequestClientLogger(
                config=config.logging,
                name=f"request_client.{domain}.{id(self):x}"
            )

        if observer is None:
            observer = LoggingObserver(logger_instance) if logger_instance else NullObserver()

        object.__setattr__(self, '_config', config)
        object.__setattr__(self, '_logger', logger_instance)
        object.__setattr__(self, '_observer', observer)
        object.__setattr__(self, '_owns_transport', transport is None)
        object.__setattr__(self, '_transport', transport or RequestsTransport(config.transport))
        object.__setattr__(self, '_executor', RetryExecutor(
            transport=self._transport,
            retry=config.retry,
            observer=observer,
            visibility=config.visibility,
            logger=logger_instance,
        ))

        object.__setattr__(self, '_initialized', True)

    def __setattr__(self, name, value):
        """Запретить изменение после init (immutability)."""
        if hasattr(self, '_initialized'):
            raise RuntimeError(
                f"Cannot modify '{name}' - RequestClient is immutable. "
                f"Create new instance instead."
            )
        object.__setattr__(self, name, value)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Автоматическое закрытие при выходе из контекста"""
        self.close()
        return False

    # ==================== Свойства ====================

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def base_url(self) -> str:
        return self._config.base_url

    @property
    def observer(self) -> Observer:
        return self._observer

    # ==================== Основной метод ====================

    def do(self, ctx: Optional[RequestContext], spec: RequestSpec) -> Response:
        """
        Выполнить один вызов по описанию spec.

        Args:
            ctx: Управляющий контекст (None = без дедлайна, без отмены)
            spec: Описание запроса

        Returns:
            Response (в том числе 4xx: это ответ, а не ошибка)

        Raises:
            UnsupportedMethodError: метод не поддерживается (сеть не трогается)
            InvalidURLError: base + path не дают валидный абсолютный URL
            TransportError: все попытки закончились ошибкой транспорта
            ServerError: все попытки вернули 5xx
            CancelledError: ctx отменён
            DeadlineExceededError: истёк дедлайн ctx или таймаут вызова
        """
        if spec.method not in SUPPORTED_METHODS:
            raise UnsupportedMethodError(spec.method)

        url = build_url(self._config.base_url, spec.path, spec.query)

        # Per-request заголовки перекрывают дефолтные (case-insensitive)
        outgoing = OutgoingRequest(spec.method, url, self._config.headers, spec.body)
        outgoing.headers.update(spec.headers)

        # Auth применяется последним и перекрывает совпадающие заголовки
        self._config.auth.apply(outgoing)

        ctx = ctx or RequestContext.background()
        effective = ctx.with_timeout(spec.timeout or self._config.timeout)

        previous_id = get_request_id()
        set_request_id(outgoing.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4()))
        try:
            return self._executor.execute(effective, outgoing)
        except RequestClientError as e:
            self._log_failure(outgoing, e)
            raise
        finally:
            if previous_id is None:
                clear_request_id()
            else:
                set_request_id(previous_id)

    def _log_failure(self, request: OutgoingRequest, error: RequestClientError) -> None:
        if self._logger is not None:
            self._logger.error(
                "HTTP request failed",
                method=request.method,
                url=mask_url(request.url),
                error=str(error),
                error_type=type(error).__name__,
                attempts=len(error.attempts),
            )
        else:
            logger.error(
                f"HTTP request failed: {request.method} {mask_url(request.url)} "
                f"after {len(error.attempts)} attempt(s): {type(error).__name__}: {error}"
            )

    # ==================== HTTP методы ====================

    def request(
        self,
        method: str,
        path: str = "",
        ctx: Optional[RequestContext] = None,
        json: Any = None,
        **kwargs: Any
    ) -> Response:
        """
        Собрать RequestSpec из аргументов и выполнить вызов.

        Args:
            method: HTTP метод
            path: Путь относительно base_url
            ctx: Управляющий контекст
            json: Объект для JSON тела (взаимоисключающе с body)
            **kwargs: headers, query, body, timeout

        Example:
            >>> client.request("POST", "/items", json={"name": "x"}, timeout=5)
        """
        if json is not None:
            if kwargs.get("body") is not None:
                raise ValueError("Pass either json or body, not both")
            kwargs.pop("body", None)
            spec = RequestSpec.json(method, path, json, **kwargs)
        else:
            spec = RequestSpec(method, path, **kwargs)
        return self.do(ctx, spec)

    def get(self, path: str = "", ctx: Optional[RequestContext] = None, **kwargs: Any) -> Response:
        """GET запрос"""
        return self.request("GET", path, ctx, **kwargs)

    def post(self, path: str = "", ctx: Optional[RequestContext] = None, **kwargs: Any) -> Response:
        """POST запрос"""
        return self.request("POST", path, ctx, **kwargs)

    def put(self, path: str = "", ctx: Optional[RequestContext] = None, **kwargs: Any) -> Response:
        """PUT запрос"""
        return self.request("PUT", path, ctx, **kwargs)

    def patch(self, path: str = "", ctx: Optional[RequestContext] = None, **kwargs: Any) -> Response:
        """PATCH запрос"""
        return self.request("PATCH", path, ctx, **kwargs)

    def delete(self, path: str = "", ctx: Optional[RequestContext] = None, **kwargs: Any) -> Response:
        """DELETE запрос"""
        return self.request("DELETE", path, ctx, **kwargs)

    def head(self, path: str = "", ctx: Optional[RequestContext] = None, **kwargs: Any) -> Response:
        """HEAD запрос"""
        return self.request("HEAD", path, ctx, **kwargs)

    def options(self, path: str = "", ctx: Optional[RequestContext] = None, **kwargs: Any) -> Response:
        """OPTIONS запрос"""
        return self.request("OPTIONS", path, ctx, **kwargs)

    # ==================== Управление жизненным циклом ====================

    def close(self) -> None:
        """
        Освободить ресурсы клиента.

        Cleanup order:
            1. Logger handlers (flush and close file descriptors)
            2. Sessions of the transport (если транспорт создан клиентом)
        """
        if self._logger is not None:
            self._logger.close()

        if self._owns_transport:
            self._transport.close()

    def __repr__(self) -> str:
        return (
            f"RequestClient(base_url={self._config.base_url!r}, "
            f"auth={self._config.auth!r}, max_retries={self._config.retry.max_retries})"
        )
