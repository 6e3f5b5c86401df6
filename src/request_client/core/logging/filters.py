"""
Log filters that attach per-call and static context to records.
"""

import logging
import threading
from typing import Dict, Any, Optional


# Request id of the call running in the current thread
_request_id_storage = threading.local()


def set_request_id(request_id: str) -> None:
    """
    Set request id for the current thread.

    Example:
        >>> set_request_id("req-12345")
        >>> logger.info("Outgoing request")  # record carries request_id
    """
    _request_id_storage.value = request_id


def get_request_id() -> Optional[str]:
    """Request id of the current thread, or None."""
    return getattr(_request_id_storage, 'value', None)


def clear_request_id() -> None:
    """Clear request id for the current thread."""
    if hasattr(_request_id_storage, 'value'):
        delattr(_request_id_storage, 'value')


class RequestIdFilter(logging.Filter):
    """Adds ``request_id`` of the current call to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        request_id = get_request_id()
        if request_id:
            record.request_id = request_id
        return True


class ExtraFieldsFilter(logging.Filter):
    """
    Adds static fields (service name, environment, ...) to all records.

    Fields already present on a record are not overwritten.

    Example:
        >>> handler.addFilter(ExtraFieldsFilter({"service": "billing"}))
    """

    def __init__(self, extra_fields: Dict[str, Any]):
        super().__init__()
        self.extra_fields = extra_fields

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self.extra_fields.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True
