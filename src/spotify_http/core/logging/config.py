"""
Logging configuration for Spotify HTTP Core.

LoggingConfig описывает, как HttpManagerLogger настраивает свой logger:
уровень, формат, куда писать (console / rotating file) и какие поля
добавлять к каждой записи.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class LogLevel(str, Enum):
    """Log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""
    JSON = "json"
    TEXT = "text"
    COLORED = "colored"


DEFAULT_LOGGER_NAME = "spotify_http"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024
DEFAULT_BACKUP_COUNT = 5


@dataclass(frozen=True)
class LoggingConfig:
    """
    Configuration for HttpManager logging.

    Attributes:
        level: Минимальный уровень записей
        format: json, text или colored
        enable_console: Писать в stdout
        enable_file: Писать в rotating file
        file_path: Путь к файлу (обязателен при enable_file=True)
        max_bytes: Размер файла до ротации (10MB)
        backup_count: Сколько старых файлов хранить
        enable_correlation_id: Add request id of the current call to logs
        extra_fields: Additional fields to add to every log entry
        logger_name: Name of the underlying stdlib logger

    Example:
        >>> config = LoggingConfig.create(level="DEBUG", format="json")
        >>> manager = HttpManager(HttpManagerConfig.builder().logging(config).build())
    """

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.TEXT
    enable_console: bool = True
    enable_file: bool = False
    file_path: Optional[str] = None
    max_bytes: int = DEFAULT_MAX_BYTES
    backup_count: int = DEFAULT_BACKUP_COUNT
    enable_correlation_id: bool = True
    extra_fields: Dict[str, Any] = field(default_factory=dict)
    logger_name: str = DEFAULT_LOGGER_NAME

    def __post_init__(self):
        if self.enable_file and not self.file_path:
            raise ValueError("file_path is required when enable_file=True")
        if self.max_bytes <= 0:
            raise ValueError("max_bytes must be positive")
        if self.backup_count < 0:
            raise ValueError("backup_count must be non-negative")

    @classmethod
    def create(
        cls,
        level: str = "INFO",
        format: str = "text",
        enable_console: bool = True,
        enable_file: bool = False,
        file_path: Optional[str] = None,
        max_bytes: int = DEFAULT_MAX_BYTES,
        backup_count: int = DEFAULT_BACKUP_COUNT,
        enable_correlation_id: bool = True,
        extra_fields: Optional[Dict[str, Any]] = None,
        logger_name: str = DEFAULT_LOGGER_NAME,
    ) -> "LoggingConfig":
        """
        Create LoggingConfig from plain strings (env variables, CLI flags).

        Example:
            >>> LoggingConfig.create(level="debug", format="colored")
        """
        return cls(
            level=LogLevel(level.upper()),
            format=LogFormat(format.lower()),
            enable_console=enable_console,
            enable_file=enable_file,
            file_path=file_path,
            max_bytes=max_bytes,
            backup_count=backup_count,
            enable_correlation_id=enable_correlation_id,
            extra_fields=extra_fields or {},
            logger_name=logger_name,
        )
