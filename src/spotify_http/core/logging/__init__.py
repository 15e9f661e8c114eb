"""
Logging system for Spotify HTTP Core.

Example:
    >>> from spotify_http.core.logging import HttpManagerLogger, LoggingConfig
    >>>
    >>> config = LoggingConfig.create(level="DEBUG", format="colored")
    >>> logger = HttpManagerLogger(config)
    >>> manager = HttpManager(HttpManagerConfig.builder().build(), logger=logger)
"""

from .config import LoggingConfig, LogLevel, LogFormat
from .logger import HttpManagerLogger
from .formatters import JSONFormatter, TextFormatter, ColoredFormatter, get_formatter
from .filters import (
    CorrelationIdFilter,
    ExtraFieldsFilter,
    set_correlation_id,
    get_correlation_id,
    clear_correlation_id,
)
from .handlers import create_console_handler, create_file_handler

__all__ = [
    # Config
    "LoggingConfig",
    "LogLevel",
    "LogFormat",
    # Logger
    "HttpManagerLogger",
    # Formatters
    "JSONFormatter",
    "TextFormatter",
    "ColoredFormatter",
    "get_formatter",
    # Filters
    "CorrelationIdFilter",
    "ExtraFieldsFilter",
    "set_correlation_id",
    "get_correlation_id",
    "clear_correlation_id",
    # Handlers
    "create_console_handler",
    "create_file_handler",
]
