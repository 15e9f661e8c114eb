"""
Configuration loader from environment variables and .env files.
"""

from typing import Any, Optional

from pydantic import ValidationError

from ..config import HttpManagerConfig, RetryConfig
from ..exceptions import ConfigurationError
from ..logging.config import LoggingConfig
from .validator import HttpManagerSettings


def load_from_env(env_file: Optional[str] = None, **overrides: Any) -> HttpManagerConfig:
    """
    Load HttpManagerConfig from environment variables.

    Priority (highest to lowest):
    1. **overrides - explicit parameters (имена полей HttpManagerSettings)
    2. Environment variables (SPOTIFY_HTTP_*)
    3. .env file
    4. Defaults

    Args:
        env_file: Custom .env file path (по умолчанию '.env', если есть)
        **overrides: Explicit overrides, e.g. socket_timeout=10

    Returns:
        HttpManagerConfig instance

    Raises:
        ConfigurationError: Invalid values

    Example:
        >>> config = load_from_env()
        >>> config = load_from_env(env_file="deploy/.env.production", use_pooling=True)
    """
    try:
        if env_file is not None:
            settings = HttpManagerSettings(_env_file=env_file, **overrides)
        else:
            settings = HttpManagerSettings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid environment configuration: {e}") from e

    builder = (
        HttpManagerConfig.builder()
        .cache_max_entries(settings.cache_max_entries)
        .cache_max_object_size(settings.cache_max_object_size)
        .use_pooling_connection_manager(settings.use_pooling)
        .pool_connections(settings.pool_connections)
        .pool_maxsize(settings.pool_maxsize)
        .retry(RetryConfig(max_attempts=settings.retry_max_attempts))
        .async_workers(settings.async_workers)
        .verify_ssl(settings.verify_ssl)
    )

    if settings.proxy_url:
        password = settings.proxy_password.get_secret_value() if settings.proxy_password else ""
        builder.proxy_host(settings.proxy_url).proxy_credentials(settings.proxy_username, password)

    if settings.connection_request_timeout is not None:
        builder.connection_request_timeout(settings.connection_request_timeout)
    if settings.connect_timeout is not None:
        builder.connect_timeout(settings.connect_timeout)
    if settings.socket_timeout is not None:
        builder.socket_timeout(settings.socket_timeout)

    if settings.log_level is not None:
        builder.logging(LoggingConfig.create(
            level=settings.log_level,
            format=settings.log_format,
            enable_console=settings.log_enable_console,
        ))

    return builder.build()
