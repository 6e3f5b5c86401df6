"""
Иерархия исключений Request Client.

Классификация:
- TransportError, ServerError (retryable=True) - ретраятся RetryExecutor'ом
- InvalidURLError, UnsupportedMethodError, ClientError (fatal=True) - НЕ ретраить никогда
- CancelledError, DeadlineExceededError - прерывают цикл немедленно
"""

from typing import Optional, Sequence, TYPE_CHECKING

import requests

if TYPE_CHECKING:
    from .response import Attempt, Response

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# BASE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class RequestClientError(Exception):
    """Базовое исключение Request Client."""

    retryable: bool = False
    fatal: bool = False

    def __init__(self, message: str):
        self.message = message
        # Заполняется RetryExecutor'ом, когда ошибка покидает цикл
        self.attempts: Sequence['Attempt'] = ()
        super().__init__(message)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ДО ОТПРАВКИ (fatal=True)
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class InvalidURLError(RequestClientError):
    """
    Невалидный base URL или результат склейки base + path.

    Args:
        message: Сообщение об ошибке
        url: Проблемный URL (или его часть)
    """
    fatal = True

    def __init__(self, message: str, url: Optional[str] = None):
        self.url = url
        msg = message
        if url is not None:
            msg += f" (url: {url!r})"
        super().__init__(msg)

class UnsupportedMethodError(RequestClientError):
    """HTTP метод не поддерживается клиентом."""
    fatal = True

    def __init__(self, method: str):
        self.method = method
        super().__init__(f"Unsupported HTTP method: {method!r}")

class ConfigurationError(RequestClientError, ValueError):
    """Ошибка конфигурации."""
    fatal = True

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ТРАНСПОРТ (retryable=True)
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TransportError(RequestClientError):
    """
    Ошибка транспорта - запрос не дошёл до стадии ответа.

    Примеры: connection refused, reset, таймаут чтения.
    """
    retryable = True

    def __init__(self, message: str, url: Optional[str] = None):
        self.url = url
        full_message = message
        if url:
            full_message += f" (url: {url})"
        super().__init__(full_message)

class TimeoutError(TransportError):
    """
    Таймаут транспорта (connect или read).

    Не путать с DeadlineExceededError: этот таймаут ретраится,
    если у вызова ещё осталось время.
    """

    def __init__(self, message: str, url: Optional[str] = None, timeout: Optional[float] = None):
        self.timeout = timeout
        msg = message
        if timeout is not None:
            msg += f" (timeout: {timeout:.3f}s)"
        super().__init__(msg, url)

class ConnectionError(TransportError):
    """
    Ошибка подключения.

    Примеры:
    - Connection refused
    - Connection reset
    - DNS resolution failed
    """
    pass

class ProxyError(ConnectionError):
    """Ошибка прокси."""
    pass

class SSLError(ConnectionError):
    """Ошибка TLS handshake / проверки сертификата."""
    pass

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# HTTP СТАТУСЫ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class ServerError(RequestClientError):
    """
    5xx ответ сервера после исчерпания всех retry.

    Args:
        status_code: HTTP статус код
        url: URL
        response: Последний полученный Response
    """
    retryable = True

    def __init__(self, status_code: int, url: str, response: Optional['Response'] = None):
        self.status_code = status_code
        self.url = url
        self.response = response
        super().__init__(f"HTTP {status_code} error for {url}")

class ClientError(RequestClientError):
    """
    4xx ответ сервера.

    RequestClient.do() никогда не выбрасывает его сам - 4xx возвращается
    как обычный Response. Выбрасывается только Response.raise_for_status().
    """
    fatal = True

    def __init__(self, status_code: int, url: str, response: Optional['Response'] = None):
        self.status_code = status_code
        self.url = url
        self.response = response
        super().__init__(f"HTTP {status_code} error for {url}")

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ОТМЕНА
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class CancelledError(RequestClientError):
    """Контекст вызова отменён (RequestContext.cancel())."""

    def __init__(self, message: str = "Request cancelled"):
        super().__init__(message)

class DeadlineExceededError(RequestClientError):
    """Истёк дедлайн вызова (per-call timeout или дедлайн контекста)."""

    def __init__(self, message: str = "Request deadline exceeded"):
        super().__init__(message)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# НА СТОРОНЕ ВЫЗЫВАЮЩЕГО
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class DecodeError(RequestClientError):
    """
    Не удалось декодировать тело ответа.

    Примеры:
    - Битый JSON
    - Невалидная кодировка
    - Данные не подходят под target
    """
    fatal = True

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# УТИЛИТЫ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def classify_requests_exception(
    exc: Exception,
    url: str,
    timeout: Optional[float] = None
) -> RequestClientError:
    """
    Конвертировать requests.exceptions в наши исключения.

    Args:
        exc: Исключение из requests
        url: URL запроса
        timeout: Таймаут, с которым шла отправка

    Returns:
        Наше исключение с правильной классификацией

    Examples:
        >>> exc = requests.exceptions.ReadTimeout()
        >>> our_exc = classify_requests_exception(exc, "https://example.com")
        >>> assert isinstance(our_exc, TimeoutError)
        >>> assert our_exc.retryable == True
    """

    if isinstance(exc, requests.exceptions.Timeout):
        return TimeoutError("Request timeout", url, timeout)

    elif isinstance(exc, requests.exceptions.ProxyError):
        return ProxyError("Proxy error", url)

    elif isinstance(exc, requests.exceptions.SSLError):
        return SSLError(f"SSL error: {exc}", url)

    elif isinstance(exc, requests.exceptions.ConnectionError):
        return ConnectionError(f"Connection error: {exc}", url)

    elif isinstance(exc, (requests.exceptions.InvalidURL,
                          requests.exceptions.MissingSchema,
                          requests.exceptions.InvalidSchema)):
        return InvalidURLError(str(exc), url)

    elif isinstance(exc, requests.exceptions.ChunkedEncodingError):
        # Соединение оборвалось посреди тела ответа
        return ConnectionError(f"Broken response stream: {exc}", url)

    else:
        # Прочие ошибки requests - транспорт, но без ответа
        return TransportError(f"Request failed: {exc}", url)
