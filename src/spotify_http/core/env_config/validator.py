"""
Pydantic settings for environment configuration.

Все переменные читаются с префиксом SPOTIFY_HTTP_ (из окружения или
.env файла) и валидируются до сборки HttpManagerConfig.
"""

from typing import Literal, Optional

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..config import (
    DEFAULT_ASYNC_WORKERS,
    DEFAULT_CACHE_MAX_ENTRIES,
    DEFAULT_CACHE_MAX_OBJECT_SIZE,
    DEFAULT_POOL_CONNECTIONS,
    DEFAULT_POOL_MAXSIZE,
)


class HttpManagerSettings(BaseSettings):
    """
    HttpManager configuration from environment variables.

    Reads from:
    1. Environment variables (SPOTIFY_HTTP_*)
    2. .env file
    3. Defaults

    Example .env file:
        SPOTIFY_HTTP_PROXY_URL=http://proxy.local:3128
        SPOTIFY_HTTP_PROXY_USERNAME=svc-spotify
        SPOTIFY_HTTP_PROXY_PASSWORD=secret
        SPOTIFY_HTTP_SOCKET_TIMEOUT=10
        SPOTIFY_HTTP_USE_POOLING=true
        SPOTIFY_HTTP_LOG_LEVEL=DEBUG

    Usage:
        >>> settings = HttpManagerSettings()
        >>> settings.use_pooling
        True
    """

    model_config = SettingsConfigDict(
        env_prefix='SPOTIFY_HTTP_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    # Proxy
    proxy_url: Optional[str] = Field(default=None, description="http://host:port")
    proxy_username: Optional[str] = None
    proxy_password: Optional[SecretStr] = None

    # Cache
    cache_max_entries: int = Field(default=DEFAULT_CACHE_MAX_ENTRIES, gt=0)
    cache_max_object_size: int = Field(default=DEFAULT_CACHE_MAX_OBJECT_SIZE, gt=0)

    # Timeouts (seconds, unset = transport default)
    connection_request_timeout: Optional[float] = Field(default=None, gt=0)
    connect_timeout: Optional[float] = Field(default=None, gt=0)
    socket_timeout: Optional[float] = Field(default=None, gt=0)

    # Connection pool
    use_pooling: bool = Field(default=False)
    pool_connections: int = Field(default=DEFAULT_POOL_CONNECTIONS, ge=1)
    pool_maxsize: int = Field(default=DEFAULT_POOL_MAXSIZE, ge=1)

    # Retry / async
    retry_max_attempts: int = Field(default=3, ge=1, le=10)
    async_workers: int = Field(default=DEFAULT_ASYNC_WORKERS, ge=1)

    verify_ssl: bool = Field(default=True)

    # Logging (LOG_LEVEL не задан = passive logger)
    log_level: Optional[Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]] = None
    log_format: Literal["json", "text", "colored"] = Field(default="text")
    log_enable_console: bool = Field(default=True)

    @field_validator('log_level', mode='before')
    @classmethod
    def normalize_log_level(cls, v):
        return v.upper() if isinstance(v, str) else v

    @field_validator('log_format', mode='before')
    @classmethod
    def normalize_log_format(cls, v):
        return v.lower() if isinstance(v, str) else v

    @model_validator(mode='after')
    def validate_proxy(self) -> 'HttpManagerSettings':
        """Proxy и credentials задаются только вместе."""
        has_credentials = self.proxy_username is not None or self.proxy_password is not None
        if has_credentials and not self.proxy_url:
            raise ValueError("PROXY_USERNAME/PROXY_PASSWORD require PROXY_URL")
        if self.proxy_url and self.proxy_username is None:
            raise ValueError("PROXY_URL requires PROXY_USERNAME and PROXY_PASSWORD")
        return self
