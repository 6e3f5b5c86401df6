# src/request_client/utils/sanitizer.py
"""
Утилита для маскирования чувствительных данных в логах.

LoggingObserver прогоняет через неё заголовки, query и URL каждого
запроса/ответа, чтобы токены и API ключи не попадали в логи.
"""

import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

MASK = "***REDACTED***"

# Чувствительные имена (case-insensitive, частичное совпадение)
SENSITIVE_KEYS = {
    # Пароли
    'password', 'passwd', 'pwd',
    # Токены
    'token', 'jwt',
    # Секреты
    'secret',
    # API ключи
    'api_key', 'apikey', 'api-key',
    # Аутентификация
    'authorization', 'auth',
    # Сессии и куки
    'cookie', 'session', 'csrf', 'xsrf',
    # Учетные данные
    'credentials', 'private_key',
}

# Паттерны для значений внутри произвольных строк
SENSITIVE_PATTERNS = [
    # Bearer tokens
    (re.compile(r'(Bearer\s+)([A-Za-z0-9\-._~+/]+=*)', re.IGNORECASE), rf'\1{MASK}'),
    # Basic auth
    (re.compile(r'(Basic\s+)([A-Za-z0-9+/]+=*)', re.IGNORECASE), rf'\1{MASK}'),
    # key=value пары
    (re.compile(r'((?:api[_-]?key|token|password)[\s:=]+)([^\s&,;"]+)', re.IGNORECASE), rf'\1{MASK}'),
]


def is_sensitive_key(key: str, extra_keys: Optional[Iterable[str]] = None) -> bool:
    """
    Проверяет, является ли ключ чувствительным.

    Examples:
        >>> is_sensitive_key("X-API-Key")
        True
        >>> is_sensitive_key("Content-Type")
        False
    """
    key_lower = str(key).lower()
    keys = SENSITIVE_KEYS if not extra_keys else SENSITIVE_KEYS | {k.lower() for k in extra_keys}
    return any(sensitive in key_lower for sensitive in keys)


def mask_string(text: str) -> str:
    """Маскирует sensitive значения внутри строки."""
    for pattern, replacement in SENSITIVE_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def mask_headers(headers: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    Маскирует чувствительные HTTP заголовки.

    Examples:
        >>> mask_headers({"Authorization": "Bearer t", "Accept": "*/*"})
        {'Authorization': '***REDACTED***', 'Accept': '*/*'}
    """
    if headers is None:
        return None
    return {
        key: MASK if is_sensitive_key(key) else value
        for key, value in headers.items()
    }


def mask_query(pairs: Optional[List[Tuple[str, str]]]) -> Optional[List[Tuple[str, str]]]:
    """Маскирует значения чувствительных query параметров (порядок сохраняется)."""
    if pairs is None:
        return None
    return [(key, MASK if is_sensitive_key(key) else value) for key, value in pairs]


def mask_url(url: str) -> str:
    """
    Маскирует пароль в userinfo и чувствительные query параметры URL.

    Examples:
        >>> mask_url("https://api.example.com/x?api_key=secret&page=1")
        'https://api.example.com/x?api_key=***REDACTED***&page=1'
    """
    if not url:
        return url

    parts = urlsplit(url)
    netloc = parts.netloc
    if "@" in netloc:
        userinfo, host = netloc.rsplit("@", 1)
        if ":" in userinfo:
            user = userinfo.split(":", 1)[0]
            netloc = f"{user}:{MASK}@{host}"

    query = parts.query
    if query:
        pairs = parse_qsl(query, keep_blank_values=True)
        query = urlencode(mask_query(pairs), safe="*")

    return urlunsplit(parts._replace(netloc=netloc, query=query))


def mask_sensitive_data(data: Any) -> Any:
    """
    Рекурсивно маскирует чувствительные данные в словарях, списках, строках.

    Используется логгером для всех extra полей.

    Examples:
        >>> mask_sensitive_data({"user": "alice", "password": "x"})
        {'user': 'alice', 'password': '***REDACTED***'}
    """
    if data is None or isinstance(data, (bool, int, float)):
        return data

    if isinstance(data, str):
        return mask_string(data)

    if isinstance(data, Mapping):
        return {
            key: MASK if is_sensitive_key(key) else mask_sensitive_data(value)
            for key, value in data.items()
        }

    if isinstance(data, (list, tuple)):
        return type(data)(mask_sensitive_data(item) for item in data)

    return data
