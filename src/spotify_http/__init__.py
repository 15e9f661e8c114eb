"""Spotify HTTP Core - HTTP access layer for the Spotify Web API."""

import logging
from importlib.metadata import version, PackageNotFoundError

from .core.http_manager import HttpManager, make_uri
from .core.config import (
    HttpManagerConfig,
    HttpManagerConfigBuilder,
    RetryConfig,
    CacheConfig,
    RequestConfig,
)
from .core.credentials import ProxyHost, UsernamePasswordCredentials
from .core.request import HttpVerb, Body, ApiRequest
from .core.cache import CacheOutcome
from .core.env_config import load_from_env
from .core.logging import HttpManagerLogger, LoggingConfig
from .core.exceptions import (
    SpotifyHttpException,
    WebApiError,
    BadRequestError,
    UnauthorizedError,
    ForbiddenError,
    NotFoundError,
    TooManyRequestsError,
    InternalServerError,
    BadGatewayError,
    ServiceUnavailableError,
    TransportError,
    TimeoutError,
    ConnectionError,
    TLSError,
    ProxyError,
    ConnectionRequestTimeoutError,
    TooManyRetriesError,
    UriSyntaxError,
    ResponseParseError,
    ConfigurationError,
)

# NullHandler: без настройки логирования приложением записи никуда не пишутся
logging.getLogger('spotify_http').addHandler(logging.NullHandler())

# Version info - read from package metadata (single source of truth in pyproject.toml)
try:
    __version__ = version("spotify-http-core")
except PackageNotFoundError:
    # Package is not installed (development mode)
    __version__ = "0.0.0-dev"

__license__ = "MIT"

__all__ = [
    # Core
    "HttpManager",
    "make_uri",
    "HttpVerb",
    "Body",
    "ApiRequest",
    "CacheOutcome",

    # Config
    "HttpManagerConfig",
    "HttpManagerConfigBuilder",
    "RetryConfig",
    "CacheConfig",
    "RequestConfig",
    "ProxyHost",
    "UsernamePasswordCredentials",
    "load_from_env",

    # Logging
    "HttpManagerLogger",
    "LoggingConfig",

    # Exceptions
    "SpotifyHttpException",
    "WebApiError",
    "BadRequestError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "TooManyRequestsError",
    "InternalServerError",
    "BadGatewayError",
    "ServiceUnavailableError",
    "TransportError",
    "TimeoutError",
    "ConnectionError",
    "TLSError",
    "ProxyError",
    "ConnectionRequestTimeoutError",
    "TooManyRetriesError",
    "UriSyntaxError",
    "ResponseParseError",
    "ConfigurationError",

    # Version
    "__version__",
]
