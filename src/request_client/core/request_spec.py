"""
Описание одного вызова (RequestSpec) и его подготовленное представление.

RequestSpec immutable и создаётся вызывающим на каждый вызов.
OutgoingRequest - мутабельная копия, которую декорирует AuthStrategy;
живёт только внутри одного RequestClient.do().
"""

import io
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, BinaryIO, Mapping, Optional, Union

from requests.structures import CaseInsensitiveDict

from .url_builder import QueryParams, append_query
from ..utils.serialization import encode_json

BodyInput = Union[None, bytes, bytearray, memoryview, str, BinaryIO, "RequestBody"]


class BodyKind(str, Enum):
    """Варианты тела запроса."""
    EMPTY = "empty"
    BYTES = "bytes"
    STREAM = "stream"


class RequestBody:
    """
    Тело запроса как tagged variant: EMPTY, BYTES или STREAM.

    STREAM - ещё не буферизованный поток (объект с read()).
    До первой попытки отправки тело нормализуется в bytes через
    materialize(); поток читается ровно один раз.

    Examples:
        >>> RequestBody.of(b"raw").kind
        <BodyKind.BYTES: 'bytes'>
        >>> RequestBody.of(io.BytesIO(b"x")).materialize()
        b'x'
    """

    __slots__ = ("kind", "_data", "_stream")

    def __init__(self, kind: BodyKind, data: Optional[bytes] = None, stream: Any = None):
        self.kind = kind
        self._data = data
        self._stream = stream

    @classmethod
    def empty(cls) -> "RequestBody":
        return cls(BodyKind.EMPTY)

    @classmethod
    def of(cls, value: BodyInput) -> "RequestBody":
        """
        Нормализовать произвольный ввод в RequestBody.

        Args:
            value: None, bytes-like, str (кодируется в UTF-8) или поток с read()

        Raises:
            TypeError: неподдерживаемый тип тела
        """
        if isinstance(value, RequestBody):
            return value
        if value is None:
            return cls.empty()
        if isinstance(value, (bytes, bytearray, memoryview)):
            return cls(BodyKind.BYTES, data=bytes(value))
        if isinstance(value, str):
            return cls(BodyKind.BYTES, data=value.encode("utf-8"))
        if hasattr(value, "read"):
            return cls(BodyKind.STREAM, stream=value)
        raise TypeError(f"Unsupported request body type: {type(value).__name__}")

    def copy(self) -> "RequestBody":
        """Независимый экземпляр: кеш буфера copy не попадает в исходный."""
        return RequestBody(self.kind, data=self._data, stream=self._stream)

    @property
    def is_empty(self) -> bool:
        return self.kind is BodyKind.EMPTY

    def materialize(self) -> Optional[bytes]:
        """
        Вернуть тело как immutable bytes (None для EMPTY).

        STREAM читается один раз и кешируется - повторные вызовы
        возвращают тот же буфер и не трогают поток.
        """
        if self.kind is BodyKind.EMPTY:
            return None
        if self._data is None:
            chunk = self._stream.read()
            if isinstance(chunk, str):
                chunk = chunk.encode("utf-8")
            self._data = bytes(chunk or b"")
            self._stream = None
        return self._data

    def __repr__(self) -> str:
        size = len(self._data) if self._data is not None else "?"
        return f"RequestBody(kind={self.kind.value}, size={size})"


def _freeze(mapping: Optional[Mapping]) -> Mapping:
    if mapping is None:
        return MappingProxyType({})
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class RequestSpec:
    """
    Immutable описание одного HTTP вызова.

    Args:
        method: HTTP метод (регистр не важен)
        path: Путь относительно base URL клиента
        headers: Заголовки этого вызова (побеждают default headers клиента)
        query: Query параметры; значение - строка или список строк
        body: Тело запроса (bytes, str, поток или RequestBody)
        timeout: Таймаут вызова в секундах, переопределяет ClientConfig.timeout

    Examples:
        >>> RequestSpec("GET", "/users", query={"page": "2"})
        >>> RequestSpec("POST", "/upload", body=open("f.bin", "rb"), timeout=60)
    """
    method: str
    path: str = ""
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    query: QueryParams = field(default_factory=lambda: MappingProxyType({}))
    body: BodyInput = None
    timeout: Optional[float] = None

    def __post_init__(self):
        """Нормализация и заморозка."""
        object.__setattr__(self, "method", str(self.method).upper())
        object.__setattr__(self, "headers", _freeze(self.headers))
        object.__setattr__(self, "query", _freeze(self.query))
        object.__setattr__(self, "body", RequestBody.of(self.body))

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be positive")

    @classmethod
    def json(
        cls,
        method: str,
        path: str,
        payload: Any,
        headers: Optional[Mapping[str, str]] = None,
        **kwargs
    ) -> "RequestSpec":
        """
        Создать RequestSpec с JSON телом.

        Content-Type: application/json ставится, если вызывающий
        не передал свой.

        Example:
            >>> RequestSpec.json("POST", "/users", {"name": "alice"})
        """
        merged = CaseInsensitiveDict(headers or {})
        merged.setdefault("Content-Type", "application/json")
        return cls(
            method=method,
            path=path,
            headers=dict(merged),
            body=encode_json(payload),
            **kwargs
        )


class OutgoingRequest:
    """
    Подготовленный запрос одного вызова: метод, итоговый URL, заголовки, тело.

    Создаётся RequestClient'ом из RequestSpec; AuthStrategy пишет
    сюда заголовки и query параметры. RequestSpec при этом не меняется.

    Тело копируется: кеш буфера остаётся в копии, body переданного
    RequestSpec не меняется. Поток STREAM одноразовый: spec с потоковым
    телом рассчитан на один вызов, для повторных передавайте bytes.
    """

    def __init__(self, method: str, url: str, headers: Mapping[str, str], body: BodyInput = None):
        self.method = method
        self.url = url
        self.headers: CaseInsensitiveDict = CaseInsensitiveDict(headers)
        self.body = RequestBody.of(body).copy()

    def set_header(self, name: str, value: str) -> None:
        self.headers[name] = value

    def add_query_param(self, name: str, value: str) -> None:
        """Дописать параметр в конец query string (существующие не трогаются)."""
        self.url = append_query(self.url, [(name, value)])

    def buffer_body(self) -> Optional[bytes]:
        """Захватить тело в immutable буфер (поток читается здесь, один раз)."""
        return self.body.materialize()

    def body_view(self) -> Optional[BinaryIO]:
        """Независимый readable view буфера тела (новый на каждый вызов)."""
        data = self.buffer_body()
        if data is None:
            return None
        return io.BytesIO(data)

    def __repr__(self) -> str:
        return f"OutgoingRequest({self.method} {self.url})"


__all__ = [
    "BodyKind",
    "RequestBody",
    "RequestSpec",
    "OutgoingRequest",
]
