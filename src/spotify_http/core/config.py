"""
Система конфигурации для Spotify HTTP Core.

Все конфиги immutable (frozen dataclasses) для потокобезопасности.
HttpManagerConfig собирается через HttpManagerConfigBuilder.
"""

from dataclasses import dataclass, field
from typing import Optional, Set, Union, TYPE_CHECKING

from .credentials import ProxyHost, UsernamePasswordCredentials
from .exceptions import ConfigurationError

if TYPE_CHECKING:
    from .logging import LoggingConfig

DEFAULT_CACHE_MAX_ENTRIES = 1000
DEFAULT_CACHE_MAX_OBJECT_SIZE = 8192  # bytes

# Значения по умолчанию транспорта (сек), когда таймаут не задан
DEFAULT_CONNECTION_REQUEST_TIMEOUT = 180.0
DEFAULT_CONNECT_TIMEOUT = 180.0
DEFAULT_RESPONSE_TIMEOUT = 180.0

DEFAULT_POOL_CONNECTIONS = 10
DEFAULT_POOL_MAXSIZE = 10
DEFAULT_ASYNC_WORKERS = 4

# "strict": строгие правила domain/path, "default": правила http.cookiejar по умолчанию
COOKIE_POLICIES = ("strict", "default")


def _validate_timeout(name: str, value: Optional[float]) -> None:
    if value is not None and value <= 0:
        raise ConfigurationError(f"{name} must be positive")


def _or_default(value, default):
    return value if value is not None else default

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# RETRY CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class RetryConfig:
    """
    Конфигурация retry стратегии для транспортных ошибок.

    Args:
        max_attempts: Максимум попыток (включая первую)
        backoff_base: Базовая задержка (сек)
        backoff_factor: Множитель для exponential backoff
        backoff_max: Максимальная задержка (сек)
        backoff_jitter: Добавлять случайность (против thundering herd)
        idempotent_methods: Какие HTTP методы можно ретраить без явной пометки

    Examples:
        >>> RetryConfig(max_attempts=3, backoff_base=0.5)
        >>> RetryConfig(max_attempts=1)  # без повторов
    """
    max_attempts: int = 3
    backoff_base: float = 0.5
    backoff_factor: float = 2.0
    backoff_max: float = 30.0
    backoff_jitter: bool = True

    idempotent_methods: Set[str] = field(
        default_factory=lambda: {'GET', 'PUT', 'DELETE'}
    )

    def __post_init__(self):
        """Валидация."""
        if self.max_attempts < 1:
            raise ConfigurationError("max_attempts must be >= 1")
        if self.backoff_base < 0:
            raise ConfigurationError("backoff_base must be non-negative")
        if self.backoff_factor < 1:
            raise ConfigurationError("backoff_factor must be >= 1")
        if self.backoff_max < 0:
            raise ConfigurationError("backoff_max must be non-negative")

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# CACHE CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class CacheConfig:
    """
    Конфигурация кэша ответов.

    Args:
        max_entries: Максимум записей в кэше
        max_object_size: Максимальный размер тела ответа для кэширования (байты)
        shared_cache: Shared (proxy) кэш или private. Менеджер всегда строит private.
    """
    max_entries: int = DEFAULT_CACHE_MAX_ENTRIES
    max_object_size: int = DEFAULT_CACHE_MAX_OBJECT_SIZE
    shared_cache: bool = False

    def __post_init__(self):
        """Валидация."""
        if self.max_entries <= 0:
            raise ConfigurationError("cache max_entries must be positive")
        if self.max_object_size <= 0:
            raise ConfigurationError("cache max_object_size must be positive")

    @classmethod
    def create(
        cls,
        max_entries: Optional[int] = None,
        max_object_size: Optional[int] = None,
    ) -> 'CacheConfig':
        """Private кэш, незаданные значения берутся по умолчанию."""
        return cls(
            max_entries=max_entries if max_entries is not None else DEFAULT_CACHE_MAX_ENTRIES,
            max_object_size=max_object_size if max_object_size is not None else DEFAULT_CACHE_MAX_OBJECT_SIZE,
            shared_cache=False,
        )

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# REQUEST CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class RequestConfig:
    """
    Параметры, общие для всех запросов обоих клиентов.

    Args:
        cookie_policy: Политика cookie jar сессии ('strict': cookies принимаются
            только при строгом совпадении domain/path; 'default')
        connection_request_timeout: Ожидание соединения из пула (сек)
        connect_timeout: Установка TCP/TLS соединения (сек)
        response_timeout: Ожидание ответа после отправки (сек)
        verify_ssl: Проверять SSL сертификаты
    """
    cookie_policy: str = "strict"
    connection_request_timeout: float = DEFAULT_CONNECTION_REQUEST_TIMEOUT
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    response_timeout: float = DEFAULT_RESPONSE_TIMEOUT
    verify_ssl: bool = True

    def __post_init__(self):
        if self.cookie_policy not in COOKIE_POLICIES:
            raise ConfigurationError(
                f"Unknown cookie_policy {self.cookie_policy!r}, expected one of {COOKIE_POLICIES}"
            )

    @classmethod
    def create(
        cls,
        connection_request_timeout: Optional[float] = None,
        connect_timeout: Optional[float] = None,
        response_timeout: Optional[float] = None,
        verify_ssl: bool = True,
        cookie_policy: str = "strict",
    ) -> 'RequestConfig':
        """Незаданные таймауты заменяются значениями по умолчанию."""
        return cls(
            cookie_policy=cookie_policy,
            connection_request_timeout=(
                connection_request_timeout
                if connection_request_timeout is not None
                else DEFAULT_CONNECTION_REQUEST_TIMEOUT
            ),
            connect_timeout=connect_timeout if connect_timeout is not None else DEFAULT_CONNECT_TIMEOUT,
            response_timeout=response_timeout if response_timeout is not None else DEFAULT_RESPONSE_TIMEOUT,
            verify_ssl=verify_ssl,
        )

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# MAIN CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class HttpManagerConfig:
    """
    Главная конфигурация HttpManager.

    Таймауты в секундах; None = значение транспорта по умолчанию.

    Examples:
        >>> config = HttpManagerConfig.builder().build()
        >>> config = (
        ...     HttpManagerConfig.builder()
        ...     .proxy_host("http://proxy.local:3128")
        ...     .proxy_credentials("user", "secret")
        ...     .socket_timeout(10)
        ...     .use_pooling_connection_manager()
        ...     .build()
        ... )
    """
    proxy_host: Optional[ProxyHost] = None
    proxy_credentials: Optional[UsernamePasswordCredentials] = None
    cache_max_entries: int = DEFAULT_CACHE_MAX_ENTRIES
    cache_max_object_size: int = DEFAULT_CACHE_MAX_OBJECT_SIZE
    connection_request_timeout: Optional[float] = None
    connect_timeout: Optional[float] = None
    socket_timeout: Optional[float] = None
    use_pooling_connection_manager: bool = False

    pool_connections: int = DEFAULT_POOL_CONNECTIONS
    pool_maxsize: int = DEFAULT_POOL_MAXSIZE
    retry: RetryConfig = field(default_factory=RetryConfig)
    async_workers: int = DEFAULT_ASYNC_WORKERS
    verify_ssl: bool = True
    logging: Optional['LoggingConfig'] = None  # None = passive logger

    def __post_init__(self):
        """Валидация."""
        if self.proxy_credentials is not None and self.proxy_host is None:
            raise ConfigurationError("proxy_credentials are only meaningful with proxy_host")
        if self.proxy_host is not None and self.proxy_credentials is None:
            raise ConfigurationError("proxy_credentials are required when proxy_host is set")
        if self.cache_max_entries <= 0:
            raise ConfigurationError("cache_max_entries must be positive")
        if self.cache_max_object_size <= 0:
            raise ConfigurationError("cache_max_object_size must be positive")
        _validate_timeout("connection_request_timeout", self.connection_request_timeout)
        _validate_timeout("connect_timeout", self.connect_timeout)
        _validate_timeout("socket_timeout", self.socket_timeout)
        if self.pool_connections <= 0:
            raise ConfigurationError("pool_connections must be positive")
        if self.pool_maxsize <= 0:
            raise ConfigurationError("pool_maxsize must be positive")
        if self.async_workers <= 0:
            raise ConfigurationError("async_workers must be positive")

    @staticmethod
    def builder() -> 'HttpManagerConfigBuilder':
        return HttpManagerConfigBuilder()

    def cache_config(self) -> CacheConfig:
        """Private кэш из cache_max_entries / cache_max_object_size."""
        return CacheConfig.create(
            max_entries=self.cache_max_entries,
            max_object_size=self.cache_max_object_size,
        )

    def request_config(self) -> RequestConfig:
        """Общая конфигурация запросов (strict cookies + таймауты)."""
        return RequestConfig.create(
            connection_request_timeout=self.connection_request_timeout,
            connect_timeout=self.connect_timeout,
            response_timeout=self.socket_timeout,
            verify_ssl=self.verify_ssl,
        )


class HttpManagerConfigBuilder:
    """
    Builder для HttpManagerConfig.

    Хранит опциональные поля; значения по умолчанию применяются в build().
    """

    def __init__(self):
        self._proxy_host: Optional[ProxyHost] = None
        self._proxy_credentials: Optional[UsernamePasswordCredentials] = None
        self._cache_max_entries: Optional[int] = None
        self._cache_max_object_size: Optional[int] = None
        self._connection_request_timeout: Optional[float] = None
        self._connect_timeout: Optional[float] = None
        self._socket_timeout: Optional[float] = None
        self._use_pooling_connection_manager = False
        self._pool_connections: Optional[int] = None
        self._pool_maxsize: Optional[int] = None
        self._retry: Optional[RetryConfig] = None
        self._async_workers: Optional[int] = None
        self._verify_ssl = True
        self._logging: Optional['LoggingConfig'] = None

    def proxy_host(self, proxy: Union[str, ProxyHost]) -> 'HttpManagerConfigBuilder':
        """Весь трафик через прокси ('http://host:port' или ProxyHost)."""
        self._proxy_host = ProxyHost.parse(proxy) if isinstance(proxy, str) else proxy
        return self

    def proxy_credentials(
        self,
        username: Union[str, UsernamePasswordCredentials],
        password: Optional[str] = None,
    ) -> 'HttpManagerConfigBuilder':
        """Basic auth для прокси."""
        if isinstance(username, UsernamePasswordCredentials):
            self._proxy_credentials = username
        else:
            self._proxy_credentials = UsernamePasswordCredentials(username, password or "")
        return self

    def cache_max_entries(self, value: int) -> 'HttpManagerConfigBuilder':
        self._cache_max_entries = value
        return self

    def cache_max_object_size(self, value: int) -> 'HttpManagerConfigBuilder':
        self._cache_max_object_size = value
        return self

    def connection_request_timeout(self, seconds: float) -> 'HttpManagerConfigBuilder':
        self._connection_request_timeout = seconds
        return self

    def connect_timeout(self, seconds: float) -> 'HttpManagerConfigBuilder':
        self._connect_timeout = seconds
        return self

    def socket_timeout(self, seconds: float) -> 'HttpManagerConfigBuilder':
        self._socket_timeout = seconds
        return self

    def use_pooling_connection_manager(self, enabled: bool = True) -> 'HttpManagerConfigBuilder':
        self._use_pooling_connection_manager = enabled
        return self

    def pool_connections(self, value: int) -> 'HttpManagerConfigBuilder':
        self._pool_connections = value
        return self

    def pool_maxsize(self, value: int) -> 'HttpManagerConfigBuilder':
        self._pool_maxsize = value
        return self

    def retry(self, retry: Union[int, RetryConfig]) -> 'HttpManagerConfigBuilder':
        """RetryConfig или просто max_attempts."""
        self._retry = retry if isinstance(retry, RetryConfig) else RetryConfig(max_attempts=retry)
        return self

    def async_workers(self, value: int) -> 'HttpManagerConfigBuilder':
        self._async_workers = value
        return self

    def verify_ssl(self, enabled: bool) -> 'HttpManagerConfigBuilder':
        self._verify_ssl = enabled
        return self

    def logging(self, config: Optional['LoggingConfig']) -> 'HttpManagerConfigBuilder':
        self._logging = config
        return self

    def build(self) -> HttpManagerConfig:
        """Применить значения по умолчанию и собрать immutable конфиг."""
        return HttpManagerConfig(
            proxy_host=self._proxy_host,
            proxy_credentials=self._proxy_credentials,
            cache_max_entries=_or_default(self._cache_max_entries, DEFAULT_CACHE_MAX_ENTRIES),
            cache_max_object_size=_or_default(self._cache_max_object_size, DEFAULT_CACHE_MAX_OBJECT_SIZE),
            connection_request_timeout=self._connection_request_timeout,
            connect_timeout=self._connect_timeout,
            socket_timeout=self._socket_timeout,
            use_pooling_connection_manager=self._use_pooling_connection_manager,
            pool_connections=_or_default(self._pool_connections, DEFAULT_POOL_CONNECTIONS),
            pool_maxsize=_or_default(self._pool_maxsize, DEFAULT_POOL_MAXSIZE),
            retry=self._retry or RetryConfig(),
            async_workers=_or_default(self._async_workers, DEFAULT_ASYNC_WORKERS),
            verify_ssl=self._verify_ssl,
            logging=self._logging,
        )
