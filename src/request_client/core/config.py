"""
Система конфигурации для Request Client.

Все конфиги immutable (frozen dataclasses): один ClientConfig разделяется
всеми конкурентными вызовами клиента только на чтение.
"""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Dict, Mapping, Optional, TYPE_CHECKING

from .auth import AuthStrategy, NoAuth
from .exceptions import ConfigurationError, InvalidURLError
from .url_builder import validate_base_url

if TYPE_CHECKING:
    from .logging import LoggingConfig

DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_BACKOFF = 0.5

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# RETRY CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class RetryConfig:
    """
    Конфигурация retry.

    Args:
        max_retries: Количество повторов (не включая первую попытку)
        backoff: Фиксированная пауза между попытками (сек)

    Examples:
        >>> RetryConfig(max_retries=2, backoff=0.01)
        >>> RetryConfig(max_retries=0)  # без повторов
    """
    max_retries: int = DEFAULT_MAX_RETRIES
    backoff: float = DEFAULT_RETRY_BACKOFF

    def __post_init__(self):
        """Валидация."""
        if isinstance(self.max_retries, bool) or not isinstance(self.max_retries, int):
            raise ConfigurationError("max_retries must be an integer")
        if self.max_retries < 0:
            raise ConfigurationError("max_retries must be non-negative")
        if self.backoff < 0:
            raise ConfigurationError("backoff must be non-negative")

    @property
    def max_attempts(self) -> int:
        """Общее количество попыток (включая первую)."""
        return self.max_retries + 1

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# TRANSPORT CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class TransportConfig:
    """
    Конфигурация транспорта (requests.Session).

    Args:
        verify_ssl: Проверять SSL сертификаты
        allow_redirects: Следовать редиректам
        proxies: Прокси {'http': ..., 'https': ...}

    Examples:
        >>> TransportConfig(verify_ssl=False)  # Для тестовых стендов
    """
    verify_ssl: bool = True
    allow_redirects: bool = True
    proxies: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self):
        if isinstance(self.proxies, dict):
            object.__setattr__(self, 'proxies', MappingProxyType(dict(self.proxies)))

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# LOG VISIBILITY
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class LogVisibility:
    """
    Какие части запроса/ответа попадают в события Observer.

    Скрытое поле в событии равно None - никогда не подделывается.

    Args:
        disable_log_body: Не передавать тело
        disable_log_headers: Не передавать заголовки
        disable_log_query: Не передавать query (и вырезать его из URL события)
    """
    disable_log_body: bool = False
    disable_log_headers: bool = False
    disable_log_query: bool = False

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# MAIN CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class ClientConfig:
    """
    Главная конфигурация RequestClient.

    Args:
        base_url: Базовый URL (абсолютный, scheme + host)
        headers: Дефолтные заголовки (per-request заголовки их перекрывают)
        auth: Стратегия аутентификации
        retry: Конфигурация retry
        timeout: Общий таймаут одного вызова (сек), > 0
        visibility: Что показывать в событиях Observer
        transport: Конфигурация транспорта
        logging: Конфигурация логирования (None = без LoggingObserver)

    Examples:
        >>> config = ClientConfig(base_url="https://api.example.com")
        >>> config = ClientConfig.create(
        ...     base_url="https://api.example.com",
        ...     auth=BearerAuth("token"),
        ...     max_retries=2,
        ...     retry_backoff=0.1,
        ... )
    """
    base_url: str
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    auth: AuthStrategy = field(default_factory=NoAuth)
    retry: RetryConfig = field(default_factory=RetryConfig)
    timeout: float = DEFAULT_TIMEOUT
    visibility: LogVisibility = field(default_factory=LogVisibility)
    transport: TransportConfig = field(default_factory=TransportConfig)
    logging: Optional['LoggingConfig'] = None

    def __post_init__(self):
        """Валидация и заморозка headers."""
        try:
            validate_base_url(self.base_url)
        except InvalidURLError as e:
            raise ConfigurationError(f"Invalid base_url: {e}") from e

        if self.timeout is None or self.timeout <= 0:
            raise ConfigurationError("timeout must be positive")

        if not isinstance(self.auth, AuthStrategy):
            raise ConfigurationError(
                f"auth must be an AuthStrategy, got {type(self.auth).__name__}"
            )

        headers = self.headers if self.headers is not None else {}
        object.__setattr__(self, 'headers', MappingProxyType(dict(headers)))

    @classmethod
    def create(
        cls,
        base_url: str,
        headers: Optional[Dict[str, str]] = None,
        auth: Optional[AuthStrategy] = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_backoff: float = DEFAULT_RETRY_BACKOFF,
        timeout: float = DEFAULT_TIMEOUT,
        disable_log_body: bool = False,
        disable_log_headers: bool = False,
        disable_log_query: bool = False,
        verify_ssl: bool = True,
        allow_redirects: bool = True,
        proxies: Optional[Dict[str, str]] = None,
        logging: Optional['LoggingConfig'] = None,
    ) -> 'ClientConfig':
        """
        Удобный конструктор конфигурации: сначала дефолты, затем переданные значения.

        Args:
            base_url: Базовый URL
            headers: Дефолтные заголовки
            auth: Стратегия аутентификации (None = NoAuth)
            max_retries: Количество повторов (не включая первую попытку)
            retry_backoff: Фиксированная пауза между попытками (сек)
            timeout: Общий таймаут вызова (сек)
            disable_log_body: Скрыть тела в событиях Observer
            disable_log_headers: Скрыть заголовки в событиях Observer
            disable_log_query: Скрыть query в событиях Observer
            verify_ssl: Проверять SSL
            allow_redirects: Следовать редиректам
            proxies: Прокси
            logging: Конфигурация логирования

        Returns:
            ClientConfig instance

        Raises:
            ConfigurationError: невалидные значения

        Examples:
            >>> config = ClientConfig.create("https://api.example.com", timeout=10)
            >>> config = ClientConfig.create("https://api.example.com", max_retries=0)
        """
        return cls(
            base_url=base_url,
            headers=headers or {},
            auth=auth if auth is not None else NoAuth(),
            retry=RetryConfig(max_retries=max_retries, backoff=retry_backoff),
            timeout=timeout,
            visibility=LogVisibility(
                disable_log_body=disable_log_body,
                disable_log_headers=disable_log_headers,
                disable_log_query=disable_log_query,
            ),
            transport=TransportConfig(
                verify_ssl=verify_ssl,
                allow_redirects=allow_redirects,
                proxies=proxies or {},
            ),
            logging=logging,
        )

    def with_headers(self, headers: Dict[str, str]) -> 'ClientConfig':
        """
        Создать новый конфиг с дополнительными заголовками.

        Example:
            >>> new_config = config.with_headers({"X-Tenant": "acme"})
        """
        merged = dict(self.headers)
        merged.update(headers)
        return replace(self, headers=merged)

    def with_auth(self, auth: AuthStrategy) -> 'ClientConfig':
        """Создать новый конфиг с другой стратегией аутентификации."""
        return replace(self, auth=auth)

    def with_retries(self, max_retries: int, backoff: Optional[float] = None) -> 'ClientConfig':
        """
        Создать новый конфиг с изменённым retry.

        Example:
            >>> new_config = config.with_retries(5, backoff=1.0)
        """
        retry_cfg = RetryConfig(
            max_retries=max_retries,
            backoff=self.retry.backoff if backoff is None else backoff,
        )
        return replace(self, retry=retry_cfg)

    def with_timeout(self, timeout: float) -> 'ClientConfig':
        """Создать новый конфиг с изменённым общим таймаутом."""
        return replace(self, timeout=timeout)
