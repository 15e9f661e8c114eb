"""
Log filters: correlation id текущего запроса и статические поля.

HttpManager выставляет correlation id (request_id запроса) на время
вызова execute(); async вызовы выполняются в потоках воркеров, поэтому
хранилище thread-local.
"""

import logging
import threading
from typing import Any, Dict, Optional


_correlation_id_storage = threading.local()


def set_correlation_id(correlation_id: str) -> None:
    """
    Set correlation ID for current thread.

    Example:
        >>> set_correlation_id(request.request_id)
        >>> logger.info("Executing request")  # Will include correlation_id
    """
    _correlation_id_storage.value = correlation_id


def get_correlation_id() -> Optional[str]:
    """Correlation ID for current thread or None."""
    return getattr(_correlation_id_storage, 'value', None)


def clear_correlation_id() -> None:
    """Clear correlation ID for current thread."""
    if hasattr(_correlation_id_storage, 'value'):
        delattr(_correlation_id_storage, 'value')


class CorrelationIdFilter(logging.Filter):
    """
    Adds correlation_id of the current call to every record.

    Example:
        >>> handler.addFilter(CorrelationIdFilter())
        >>> set_correlation_id("5f0c...")
        >>> logger.info("GET request")  # correlation_id=5f0c...
    """

    def filter(self, record: logging.LogRecord) -> bool:
        correlation_id = get_correlation_id()
        if correlation_id:
            record.correlation_id = correlation_id
        return True


class ExtraFieldsFilter(logging.Filter):
    """
    Adds static fields (service, environment, version ...) to every record.

    Fields passed explicitly with the log call win over these.

    Example:
        >>> handler.addFilter(ExtraFieldsFilter({"service": "playlist-sync"}))
    """

    def __init__(self, extra_fields: Dict[str, Any]):
        super().__init__()
        self.extra_fields = dict(extra_fields)

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self.extra_fields.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True
