"""
Построение URL запроса: base URL + path + query параметры.

Включает:
- RFC 3986 resolution пути относительно base URL
- Multi-value query параметры
- Валидацию base и результата (InvalidURLError)
"""

import re
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple, Union
from urllib.parse import urlencode, urljoin, urlsplit, urlunsplit

from .exceptions import InvalidURLError

QueryValue = Union[str, Sequence[str]]
QueryParams = Mapping[str, QueryValue]

ALLOWED_SCHEMES = ("http", "https")

# Пробелы и управляющие символы в URL недопустимы
_INVALID_CHARS = re.compile(r"[\x00-\x20\x7f]")


def _validate_absolute(url: str, what: str) -> None:
    """
    Проверить, что url - абсолютный http(s) URL с хостом.

    Args:
        url: Проверяемый URL
        what: Что проверяем (для сообщения об ошибке)

    Raises:
        InvalidURLError: URL синтаксически невалиден
    """
    if not url or not isinstance(url, str):
        raise InvalidURLError(f"{what} must be a non-empty string", url)

    if _INVALID_CHARS.search(url):
        raise InvalidURLError(f"{what} contains whitespace or control characters", url)

    try:
        parts = urlsplit(url)
        # .port валидирует значение порта
        parts.port
    except ValueError as e:
        raise InvalidURLError(f"{what} is not a valid URL: {e}", url) from e

    if parts.scheme.lower() not in ALLOWED_SCHEMES:
        raise InvalidURLError(f"{what} must use http or https scheme", url)

    if not parts.hostname:
        raise InvalidURLError(f"{what} must include a host", url)


def validate_base_url(base: str) -> str:
    """Проверить base URL и вернуть его без изменений."""
    _validate_absolute(base, "base URL")
    return base


def iter_query_pairs(query: Optional[QueryParams]) -> List[Tuple[str, str]]:
    """
    Развернуть query mapping в список пар (key, value).

    Порядок детерминирован: ключи в порядке вставки, значения
    multi-value ключа - в порядке последовательности.

    Examples:
        >>> iter_query_pairs({"tag": ["a", "b"], "page": "1"})
        [('tag', 'a'), ('tag', 'b'), ('page', '1')]
    """
    pairs: List[Tuple[str, str]] = []
    if not query:
        return pairs

    for key, value in query.items():
        if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
            pairs.append((key, str(value)))
        else:
            pairs.extend((key, str(v)) for v in value)
    return pairs


def append_query(url: str, pairs: Iterable[Tuple[str, str]]) -> str:
    """
    Дописать пары в query string уже построенного URL.

    Существующие параметры сохраняются, новые идут после них.

    Examples:
        >>> append_query("https://api.example.com/x?a=1", [("api_key", "k")])
        'https://api.example.com/x?a=1&api_key=k'
    """
    pairs = list(pairs)
    if not pairs:
        return url

    parts = urlsplit(url)
    encoded = urlencode(pairs)
    query = f"{parts.query}&{encoded}" if parts.query else encoded
    return urlunsplit(parts._replace(query=query))


def build_url(base: str, path: str, query: Optional[QueryParams] = None) -> str:
    """
    Построить абсолютный URL запроса.

    Путь разрешается относительно base по RFC 3986: абсолютный путь
    ("/users") заменяет путь base, относительный ("users") разрешается
    от "директории" base. Scheme и host всегда берутся из base.

    Args:
        base: Базовый URL (абсолютный, http/https, с хостом)
        path: Путь запроса (без scheme/host)
        query: Query параметры; значение - строка или последовательность строк

    Returns:
        Абсолютный URL

    Raises:
        InvalidURLError: base, path или результат невалидны

    Examples:
        >>> build_url("https://api.example.com/v1/", "users", {"page": "2"})
        'https://api.example.com/v1/users?page=2'
        >>> build_url("https://api.example.com/v1/", "/health")
        'https://api.example.com/health'
    """
    validate_base_url(base)

    path = path or ""
    try:
        path_parts = urlsplit(path)
    except ValueError as e:
        raise InvalidURLError(f"path is not valid: {e}", path) from e

    if path_parts.scheme or path_parts.netloc:
        raise InvalidURLError("path must not contain a scheme or host", path)

    if path:
        resolved = urljoin(base, path)
    else:
        # Пустой путь - путь base без его query/fragment
        resolved = urlunsplit(urlsplit(base)._replace(query="", fragment=""))

    resolved = urlunsplit(urlsplit(resolved)._replace(fragment=""))
    resolved = append_query(resolved, iter_query_pairs(query))

    _validate_absolute(resolved, "resolved URL")
    return resolved


def strip_query(url: str) -> str:
    """Вернуть URL без query string (для логов со скрытым query)."""
    return urlunsplit(urlsplit(url)._replace(query=""))
