# src/request_client/core/auth.py

import base64
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional
from urllib.parse import parse_qsl, urlsplit

from .exceptions import ConfigurationError
from .request_spec import OutgoingRequest

logger = logging.getLogger(__name__)

DEFAULT_API_KEY_HEADER = "X-API-Key"
DEFAULT_API_KEY_PARAM = "api_key"


def _mask(secret: str) -> str:
    return "***" if secret else "''"


def basic_auth_header(username: str, password: str) -> str:
    """Значение заголовка Authorization для Basic аутентификации."""
    credentials = f"{username}:{password}".encode("utf-8")
    return "Basic " + base64.b64encode(credentials).decode("ascii")


class AuthStrategy(ABC):
    """
    Базовый класс стратегий аутентификации.

    apply() декорирует только OutgoingRequest конкретного вызова;
    RequestSpec вызывающего не меняется. Ошибок не бывает - валидация
    параметров на совести того, кто создаёт стратегию.
    """

    @abstractmethod
    def apply(self, request: OutgoingRequest) -> None:
        """Добавить аутентификацию к исходящему запросу."""
        pass


class NoAuth(AuthStrategy):
    """Без аутентификации."""

    def apply(self, request: OutgoingRequest) -> None:
        pass

    def __repr__(self) -> str:
        return "NoAuth()"

    def __eq__(self, other) -> bool:
        return isinstance(other, NoAuth)

    def __hash__(self) -> int:
        return hash(NoAuth)


class BasicAuth(AuthStrategy):
    """Basic аутентификация: Authorization: Basic base64(username:password)."""

    def __init__(self, username: str, password: str):
        self.username = username
        self.password = password

    def apply(self, request: OutgoingRequest) -> None:
        request.set_header("Authorization", basic_auth_header(self.username, self.password))

    def __repr__(self) -> str:
        return f"BasicAuth(username={self.username!r}, password={_mask(self.password)})"


class BearerAuth(AuthStrategy):
    """Bearer токен: Authorization: Bearer <token>."""

    def __init__(self, token: str):
        self.token = token

    def apply(self, request: OutgoingRequest) -> None:
        request.set_header("Authorization", f"Bearer {self.token}")

    def __repr__(self) -> str:
        return f"BearerAuth(token={_mask(self.token)})"


class APIKeyPlacement(str, Enum):
    """Куда класть API ключ."""
    HEADER = "header"
    QUERY = "query"


class APIKeyAuth(AuthStrategy):
    """
    API ключ в заголовке или в query string.

    Args:
        key: Значение ключа
        placement: HEADER (по умолчанию X-API-Key) или QUERY (по умолчанию api_key)
        name: Имя заголовка / query параметра

    Коллизия с query параметром вызывающего: оба значения остаются,
    значения вызывающего идут первыми, ключ дописывается в конец.

    Examples:
        >>> APIKeyAuth("secret")                                   # X-API-Key: secret
        >>> APIKeyAuth("secret", placement=APIKeyPlacement.QUERY)  # ?api_key=secret
    """

    def __init__(
        self,
        key: str,
        placement: APIKeyPlacement = APIKeyPlacement.HEADER,
        name: Optional[str] = None
    ):
        self.key = key
        self.placement = APIKeyPlacement(placement)
        if name is None:
            name = DEFAULT_API_KEY_HEADER if self.placement is APIKeyPlacement.HEADER else DEFAULT_API_KEY_PARAM
        self.name = name

    def apply(self, request: OutgoingRequest) -> None:
        if self.placement is APIKeyPlacement.HEADER:
            request.set_header(self.name, self.key)
            return

        existing = [k for k, _ in parse_qsl(urlsplit(request.url).query, keep_blank_values=True)]
        if self.name in existing:
            logger.debug(
                f"Query parameter '{self.name}' already set by caller; "
                f"API key value is appended after it"
            )
        request.add_query_param(self.name, self.key)

    def __repr__(self) -> str:
        return (
            f"APIKeyAuth(key={_mask(self.key)}, placement={self.placement.value}, "
            f"name={self.name!r})"
        )


def auth_from_settings(
    auth_type: str = "none",
    username: Optional[str] = None,
    password: Optional[str] = None,
    token: Optional[str] = None,
    api_key: Optional[str] = None,
    api_key_placement: str = "header",
    api_key_name: Optional[str] = None,
) -> AuthStrategy:
    """
    Собрать стратегию из плоских настроек (env / .env).

    Args:
        auth_type: 'none', 'basic', 'bearer' или 'apikey'

    Raises:
        ConfigurationError: неизвестный тип или не хватает параметров
    """
    auth_type = (auth_type or "none").lower().replace("_", "")

    if auth_type == "none":
        return NoAuth()

    if auth_type == "basic":
        if username is None or password is None:
            raise ConfigurationError("basic auth requires username and password")
        return BasicAuth(username, password)

    if auth_type == "bearer":
        if not token:
            raise ConfigurationError("bearer auth requires a token")
        return BearerAuth(token)

    if auth_type == "apikey":
        if not api_key:
            raise ConfigurationError("apikey auth requires a key")
        try:
            placement = APIKeyPlacement(api_key_placement.lower())
        except ValueError:
            raise ConfigurationError(
                f"Unknown API key placement: {api_key_placement!r} (expected 'header' or 'query')"
            ) from None
        return APIKeyAuth(api_key, placement=placement, name=api_key_name)

    raise ConfigurationError(f"Unknown auth type: {auth_type!r}")
