"""
JSON serialization helpers for request and response bodies.

The execution engine never decodes bodies itself: callers invoke
decode_json() (or Response.json()) after RequestClient.do() returns.
"""

import json
from typing import Any, Callable, Optional, TypeVar, Union

T = TypeVar("T")


def encode_json(value: Any) -> bytes:
    """
    Encode value as UTF-8 JSON bytes.

    Args:
        value: Any json-serializable value

    Returns:
        Encoded bytes

    Raises:
        TypeError: value is not json-serializable

    Example:
        >>> encode_json({"name": "alice"})
        b'{"name": "alice"}'
    """
    return json.dumps(value, ensure_ascii=False).encode("utf-8")


def decode_json(
    data: Union[bytes, str, None],
    target: Optional[Callable[[Any], T]] = None
) -> Any:
    """
    Decode JSON bytes and optionally convert them into a target shape.

    Args:
        data: Raw body (bytes or str)
        target: Callable applied to the decoded value, e.g. a dataclass,
                a pydantic model's ``model_validate`` or ``dict``.
                Mappings are passed as keyword arguments to classes.

    Returns:
        Decoded value (or target instance)

    Raises:
        DecodeError: body is empty, not valid JSON, or does not fit target

    Example:
        >>> decode_json(b'{"id": 1}')
        {'id': 1}
        >>> decode_json(b'{"id": 1}', target=User)
        User(id=1)
    """
    from ..core.exceptions import DecodeError

    if data is None or len(data) == 0:
        raise DecodeError("no response body")

    try:
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        value = json.loads(data)
    except (UnicodeDecodeError, ValueError) as e:
        raise DecodeError(f"failed to unmarshal JSON: {e}") from e

    if target is None:
        return value

    try:
        if isinstance(value, dict) and isinstance(target, type) and target is not dict:
            return target(**value)
        return target(value)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"failed to convert JSON into {getattr(target, '__name__', target)}: {e}") from e
