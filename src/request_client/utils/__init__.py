"""Helpers: JSON serialization and masking of secrets in logs."""

from .serialization import encode_json, decode_json
from .sanitizer import mask_headers, mask_query, mask_url, mask_sensitive_data

__all__ = [
    "encode_json",
    "decode_json",
    "mask_headers",
    "mask_query",
    "mask_url",
    "mask_sensitive_data",
]
