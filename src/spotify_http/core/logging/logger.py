"""
Structured logger used by HttpManager.

HttpManagerLogger оборачивает stdlib logger: сообщение + именованные
поля (method=..., url=...), значения полей маскируются перед записью.
"""

import logging
from typing import Any, Optional

from .config import DEFAULT_LOGGER_NAME, LoggingConfig, LogLevel
from .formatters import get_formatter
from .filters import CorrelationIdFilter, ExtraFieldsFilter
from .handlers import create_console_handler, create_file_handler
from ...utils.sanitizer import mask_sensitive_data, mask_url


class HttpManagerLogger:
    """
    Structured logger for HttpManager.

    Два режима:
    - HttpManagerLogger(config): настраивает собственные handlers
      (console / rotating file), formatter и filters
    - HttpManagerLogger.passive(): ничего не настраивает, записи уходят
      в logging.getLogger("spotify_http") и дальше по обычной иерархии

    Example:
        >>> logger = HttpManagerLogger(LoggingConfig.create(level="DEBUG", format="json"))
        >>> logger.info("GET request", url="https://api.spotify.com/v1/me")
        >>> logger.close()
    """

    def __init__(self, config: Optional[LoggingConfig] = None, name: Optional[str] = None):
        """
        Args:
            config: Logging configuration (uses defaults if None)
            name: Logger name (config.logger_name by default)
        """
        self.config = config or LoggingConfig()
        self.name = name or self.config.logger_name
        self._closed = False
        self._owns_handlers = True

        self._logger = logging.getLogger(self.name)
        level = self._get_level(self.config.level)
        self._logger.setLevel(level)
        self._logger.propagate = False

        # Remove existing handlers (if reinitializing)
        self._logger.handlers.clear()

        filters = []
        if self.config.enable_correlation_id:
            filters.append(CorrelationIdFilter())
        if self.config.extra_fields:
            filters.append(ExtraFieldsFilter(self.config.extra_fields))

        formatter = get_formatter(self.config.format.value)

        if self.config.enable_console:
            self._logger.addHandler(create_console_handler(
                level=level,
                formatter=formatter,
                filters=filters
            ))

        if self.config.enable_file and self.config.file_path:
            self._logger.addHandler(create_file_handler(
                file_path=self.config.file_path,
                level=level,
                formatter=formatter,
                max_bytes=self.config.max_bytes,
                backup_count=self.config.backup_count,
                filters=filters
            ))

    @classmethod
    def passive(cls, name: str = DEFAULT_LOGGER_NAME) -> "HttpManagerLogger":
        """
        Logger without own handlers: level and output are decided by the application.

        Example:
            >>> logging.basicConfig(level=logging.DEBUG)
            >>> logger = HttpManagerLogger.passive()
        """
        instance = cls.__new__(cls)
        instance.config = None
        instance.name = name
        instance._closed = False
        instance._owns_handlers = False
        instance._logger = logging.getLogger(name)
        return instance

    @staticmethod
    def _get_level(level: LogLevel) -> int:
        return getattr(logging, level.value)

    @property
    def logger(self) -> logging.Logger:
        """Underlying stdlib logger."""
        return self._logger

    def is_enabled_for(self, level: int) -> bool:
        return self._logger.isEnabledFor(level)

    def _log(self, level: int, message: str, exc_info: bool = False, **fields: Any) -> None:
        if not self._logger.isEnabledFor(level):
            return
        extra = mask_sensitive_data(fields)
        if isinstance(extra.get("url"), str):
            extra["url"] = mask_url(extra["url"])
        self._logger.log(level, message, exc_info=exc_info, extra=extra)

    def debug(self, message: str, **fields: Any) -> None:
        """
        Log debug message.

        Example:
            >>> logger.debug("GET request uses these headers", headers={"Authorization": "Bearer ..."})
        """
        self._log(logging.DEBUG, message, **fields)

    def info(self, message: str, **fields: Any) -> None:
        self._log(logging.INFO, message, **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._log(logging.WARNING, message, **fields)

    def error(self, message: str, **fields: Any) -> None:
        self._log(logging.ERROR, message, **fields)

    def critical(self, message: str, **fields: Any) -> None:
        self._log(logging.CRITICAL, message, **fields)

    def exception(self, message: str, **fields: Any) -> None:
        """Log error with traceback. Call from an exception handler."""
        self._log(logging.ERROR, message, exc_info=True, **fields)

    def close(self) -> None:
        """
        Flush and close own handlers. Idempotent.

        A passive logger has no handlers of its own and is left untouched.
        """
        if self._closed:
            return
        self._closed = True

        if not self._owns_handlers:
            return

        for handler in self._logger.handlers[:]:
            try:
                handler.flush()
                handler.close()
            except (OSError, ValueError):
                pass
            self._logger.removeHandler(handler)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __repr__(self) -> str:
        mode = "configured" if self._owns_handlers else "passive"
        return f"HttpManagerLogger(name={self.name!r}, mode={mode})"
