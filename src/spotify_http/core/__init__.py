"""Core модули Spotify HTTP Core."""

from .config import (
    RetryConfig,
    CacheConfig,
    RequestConfig,
    HttpManagerConfig,
    HttpManagerConfigBuilder,
)
from .credentials import ProxyHost, UsernamePasswordCredentials, AuthScope, CredentialsProvider
from .connection_manager import ConnectionManager
from .adapter import SharedPoolAdapter
from .retry_strategy import RetryStrategy
from .request import HttpVerb, Body, ApiRequest
from .cache import CacheOutcome, CacheEntry, ResponseCache
from .clients import CacheContext, HttpClient, CachingHttpClient
from .classifier import classify_response
from .http_manager import HttpManager, make_uri
from .exceptions import (
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
    classify_transport_exception,
)

__all__ = [
    # Config
    "RetryConfig",
    "CacheConfig",
    "RequestConfig",
    "HttpManagerConfig",
    "HttpManagerConfigBuilder",
    "ProxyHost",
    "UsernamePasswordCredentials",
    "AuthScope",
    "CredentialsProvider",
    # Transport
    "ConnectionManager",
    "SharedPoolAdapter",
    "RetryStrategy",
    # Core
    "HttpVerb",
    "Body",
    "ApiRequest",
    "CacheOutcome",
    "CacheEntry",
    "ResponseCache",
    "CacheContext",
    "HttpClient",
    "CachingHttpClient",
    "classify_response",
    "HttpManager",
    "make_uri",
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
    "classify_transport_exception",
]
