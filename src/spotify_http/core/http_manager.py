# src/spotify_http/core/http_manager.py
"""
HttpManager: единая точка выполнения запросов к Spotify Web API.

Собирается один раз из HttpManagerConfig и разделяется всеми
request builders. GET идет через CachingHttpClient, POST/PUT/DELETE
через HttpClient; ответ превращается в тело или типизированную ошибку.
"""
import atexit
import logging
import re
import threading
import warnings
import weakref
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Mapping, Optional, Union
from urllib.parse import urlsplit

from .cache import CacheOutcome, ResponseCache
from .classifier import classify_response
from .clients import CacheContext, CachingHttpClient, HttpClient
from .config import HttpManagerConfig
from .connection_manager import ConnectionManager
from .credentials import CredentialsProvider
from .exceptions import UriSyntaxError
from .logging import HttpManagerLogger
from .logging.filters import clear_correlation_id, set_correlation_id
from .request import ApiRequest, Body, HttpVerb
from .retry_strategy import RetryStrategy

module_logger = logging.getLogger(__name__)

BodyLike = Union[Body, bytes, str]

# Пробелы, управляющие символы и символы, запрещенные в URI (RFC 3986)
_ILLEGAL_URI_CHARS = re.compile(r'[\x00-\x20\x7f<>"{}|\\^`]')
_MALFORMED_ESCAPE = re.compile(r'%(?![0-9A-Fa-f]{2})')


def make_uri(text: str, log=None) -> str:
    """
    Проверить синтаксис URI и вернуть его.

    Args:
        text: URI строкой
        log: Logger для сообщения об ошибке (по умолчанию логгер модуля)

    Returns:
        Тот же URI

    Raises:
        UriSyntaxError: URI синтаксически невалиден (ошибка также логируется)

    Examples:
        >>> make_uri("https://api.spotify.com/v1/me")
        'https://api.spotify.com/v1/me'
        >>> make_uri("https://api.spotify.com/v1/search?q=daft punk")
        Traceback (most recent call last):
        UriSyntaxError: URI Syntax Exception for "...": Illegal character in URI at index 40
    """
    log = log or module_logger
    try:
        if text is None:
            raise UriSyntaxError("None", "URI is None")

        illegal = _ILLEGAL_URI_CHARS.search(text)
        if illegal:
            raise UriSyntaxError(text, f"Illegal character in URI at index {illegal.start()}")

        escape = _MALFORMED_ESCAPE.search(text)
        if escape:
            raise UriSyntaxError(text, f"Malformed escape pair at index {escape.start()}")

        try:
            parts = urlsplit(text)
            parts.port  # ValueError на невалидном порту
        except ValueError as e:
            raise UriSyntaxError(text, str(e)) from e
    except UriSyntaxError as e:
        log.error(e.message)
        raise

    return text


def _as_body(body: Optional[BodyLike]) -> Optional[Body]:
    if body is None or isinstance(body, Body):
        return body
    if isinstance(body, str):
        return Body.text(body)
    return Body(content=bytes(body))


def _close_manager(manager_ref: weakref.ref) -> None:
    manager = manager_ref()
    if manager is not None:
        manager.close()


class HttpManager:
    """
    HTTP менеджер для Spotify Web API.

    Features:
        - Два клиента на общем ConnectionManager: с кэшем (GET) и без
        - Private кэш ответов (LRU, ETag/Last-Modified валидация)
        - Retry транспортных ошибок для идемпотентных запросов
        - Классификация ответа: тело или типизированная ошибка
        - Async вызовы через пул потоков (concurrent.futures.Future)
        - Thread-safe: один экземпляр на все request builders

    Example:
        >>> config = HttpManagerConfig.builder().use_pooling_connection_manager().build()
        >>> with HttpManager(config) as manager:
        ...     body = manager.get(
        ...         "https://api.spotify.com/v1/me",
        ...         headers={"Authorization": "Bearer BQD..."}
        ...     )
    """

    def __init__(
        self,
        config: Optional[HttpManagerConfig] = None,
        logger: Optional[HttpManagerLogger] = None
    ):
        """
        Args:
            config: Конфигурация (по умолчанию HttpManagerConfig.builder().build())
            logger: Logger; если не задан, строится из config.logging,
                иначе passive logger 'spotify_http'
        """
        config = config or HttpManagerConfig.builder().build()

        owns_logger = logger is None and config.logging is not None
        if logger is None:
            logger = HttpManagerLogger(config.logging) if config.logging else HttpManagerLogger.passive()

        cache_config = config.cache_config()
        connection_manager = ConnectionManager(
            pooled=config.use_pooling_connection_manager,
            connect_timeout=config.connect_timeout,
            connection_request_timeout=config.connection_request_timeout,
            pool_connections=config.pool_connections,
            pool_maxsize=config.pool_maxsize,
        )
        credentials = CredentialsProvider.for_proxy(config.proxy_host, config.proxy_credentials)
        request_config = config.request_config()
        retry_strategy = RetryStrategy(config.retry)

        client_kwargs = dict(
            connection_manager=connection_manager,
            credentials=credentials,
            request_config=request_config,
            retry_strategy=retry_strategy,
            proxy=config.proxy_host,
            logger=logger,
        )

        object.__setattr__(self, '_config', config)
        object.__setattr__(self, '_logger', logger)
        object.__setattr__(self, '_owns_logger', owns_logger)
        object.__setattr__(self, '_connection_manager', connection_manager)
        object.__setattr__(self, '_credentials', credentials)
        object.__setattr__(self, '_retry_strategy', retry_strategy)
        object.__setattr__(self, '_http_client', HttpClient(**client_kwargs))
        object.__setattr__(
            self,
            '_caching_http_client',
            CachingHttpClient(cache=ResponseCache(cache_config), **client_kwargs)
        )

        # Пул потоков для *_async создается при первом async вызове
        object.__setattr__(self, '_executor', None)
        object.__setattr__(self, '_executor_lock', threading.Lock())
        object.__setattr__(self, '_closed', False)

        atexit.register(_close_manager, weakref.ref(self))

        object.__setattr__(self, '_initialized', True)

    def __setattr__(self, name, value):
        """Запретить изменение после init (immutability)."""
        if hasattr(self, '_initialized'):
            raise RuntimeError(
                f"Cannot modify '{name}' - HttpManager is immutable. "
                f"Create new instance instead."
            )
        object.__setattr__(self, name, value)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    # ==================== Выполнение запросов ====================

    def execute(
        self,
        verb: Union[HttpVerb, str],
        uri: str,
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[BodyLike] = None,
        idempotent: Optional[bool] = None,
    ) -> Optional[str]:
        """
        Выполнить запрос и вернуть тело ответа.

        Args:
            verb: GET, POST, PUT или DELETE
            uri: Полный URI (не пустой)
            headers: Заголовки, передаются как есть
            body: Тело (не для GET): Body, bytes или str
            idempotent: Пометить запрос как безопасный для повтора (для POST)

        Returns:
            Тело ответа (UTF-8) или None, если тела нет

        Raises:
            ValueError: Пустой URI, неизвестный метод или тело у GET
            WebApiError: Статус код ошибки (400, 401, 403, 404, 429, 500, 502, 503)
            TransportError: Ответ не получен
            ResponseParseError: Тело не UTF-8
        """
        request = ApiRequest(
            verb=HttpVerb(verb.upper()),
            uri=uri,
            headers=dict(headers or {}),
            body=_as_body(body),
            idempotent=idempotent,
        )
        client = self._caching_http_client if request.verb.cacheable else self._http_client
        context = CacheContext()

        set_correlation_id(request.request_id)
        try:
            self._logger.debug(
                f"{request.method} request uses these headers",
                url=request.uri,
                headers=request.headers,
            )

            response = client.execute(request, context)
            try:
                if context.outcome is not CacheOutcome.NONE:
                    self._logger.info(
                        context.outcome.description,
                        url=request.uri,
                        cache_outcome=context.outcome.name,
                    )
                return classify_response(response, self._logger)
            finally:
                response.close()
        finally:
            clear_correlation_id()

    def get(self, uri: str, headers: Optional[Mapping[str, str]] = None) -> Optional[str]:
        """
        Выполняет GET запрос (через кэш).

        Example:
            >>> manager.get("https://api.spotify.com/v1/albums/4aawyAB9vmqN3uQ7FjRGTy", headers=auth)
        """
        return self.execute(HttpVerb.GET, uri, headers)

    def post(
        self,
        uri: str,
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[BodyLike] = None,
        idempotent: Optional[bool] = None,
    ) -> Optional[str]:
        """
        Выполняет POST запрос. Повторяется при I/O ошибке только с idempotent=True.

        Example:
            >>> manager.post(
            ...     "https://api.spotify.com/v1/playlists/3cEYpjA9oz9GiPac4AsH4n/tracks",
            ...     headers=auth,
            ...     body=Body.json({"uris": ["spotify:track:4iV5W9uYEdYUVa79Axb7Rh"]}),
            ... )
        """
        return self.execute(HttpVerb.POST, uri, headers, body, idempotent)

    def put(
        self,
        uri: str,
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[BodyLike] = None,
    ) -> Optional[str]:
        """Выполняет PUT запрос."""
        return self.execute(HttpVerb.PUT, uri, headers, body)

    def delete(
        self,
        uri: str,
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[BodyLike] = None,
    ) -> Optional[str]:
        """Выполняет DELETE запрос."""
        return self.execute(HttpVerb.DELETE, uri, headers, body)

    # ==================== Async ====================

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._closed:
                raise RuntimeError("HttpManager is closed")
            if self._executor is None:
                object.__setattr__(self, '_executor', ThreadPoolExecutor(
                    max_workers=self._config.async_workers,
                    thread_name_prefix="spotify-http",
                ))
            return self._executor

    def execute_async(
        self,
        verb: Union[HttpVerb, str],
        uri: str,
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[BodyLike] = None,
        idempotent: Optional[bool] = None,
    ) -> "Future[Optional[str]]":
        """
        execute() в пуле потоков.

        Future завершается ровно одним из: тело, исключение, отмена.
        future.cancel() до старта: result() выбрасывает CancelledError.

        Example:
            >>> future = manager.get_async("https://api.spotify.com/v1/me", headers=auth)
            >>> body = future.result(timeout=30)
            >>> body = await asyncio.wrap_future(manager.get_async(url))
        """
        return self._get_executor().submit(self.execute, verb, uri, headers, body, idempotent)

    def get_async(self, uri: str, headers: Optional[Mapping[str, str]] = None) -> "Future[Optional[str]]":
        return self.execute_async(HttpVerb.GET, uri, headers)

    def post_async(
        self,
        uri: str,
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[BodyLike] = None,
        idempotent: Optional[bool] = None,
    ) -> "Future[Optional[str]]":
        return self.execute_async(HttpVerb.POST, uri, headers, body, idempotent)

    def put_async(
        self,
        uri: str,
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[BodyLike] = None,
    ) -> "Future[Optional[str]]":
        return self.execute_async(HttpVerb.PUT, uri, headers, body)

    def delete_async(
        self,
        uri: str,
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[BodyLike] = None,
    ) -> "Future[Optional[str]]":
        return self.execute_async(HttpVerb.DELETE, uri, headers, body)

    # ==================== URI ====================

    def make_uri(self, text: str) -> str:
        """
        Проверить URI; ошибка логируется и выбрасывается UriSyntaxError.

        Example:
            >>> manager.make_uri("https://api.spotify.com/v1/me")
        """
        return make_uri(text, self._logger)

    # ==================== Жизненный цикл ====================

    def close(self) -> None:
        """
        Освободить ресурсы. Идемпотентно.

        Cleanup order:
            1. Пул потоков (ожидающие async вызовы отменяются)
            2. Сессии клиентов
            3. Соединения ConnectionManager
            4. Собственные handlers логгера
        """
        with self._executor_lock:
            if self._closed:
                return
            object.__setattr__(self, '_closed', True)
            executor = self._executor

        if executor is not None:
            executor.shutdown(wait=True, cancel_futures=True)

        self._caching_http_client.close()
        self._http_client.close()
        self._connection_manager.close()

        if self._owns_logger:
            self._logger.close()

    def __del__(self):
        """
        Деструктор с предупреждением о незакрытом менеджере.
        """
        try:
            if getattr(self, "_initialized", False) and not self._closed:
                warnings.warn(
                    "HttpManager garbage collected without close(). "
                    "Use 'with HttpManager(config) as manager:' or call manager.close().",
                    ResourceWarning,
                    stacklevel=2
                )
                self.close()
        except Exception:
            # Interpreter shutdown: модули могут быть уже выгружены
            pass

    # ==================== Свойства ====================

    @property
    def config(self) -> HttpManagerConfig:
        return self._config

    @property
    def logger(self) -> HttpManagerLogger:
        return self._logger

    @property
    def connection_manager(self) -> ConnectionManager:
        return self._connection_manager

    @property
    def credentials(self) -> CredentialsProvider:
        return self._credentials

    @property
    def retry_strategy(self) -> RetryStrategy:
        return self._retry_strategy

    @property
    def http_client(self) -> HttpClient:
        """Клиент без кэша (POST/PUT/DELETE)."""
        return self._http_client

    @property
    def caching_http_client(self) -> CachingHttpClient:
        """Клиент с кэшем (GET)."""
        return self._caching_http_client

    @property
    def cache(self) -> ResponseCache:
        return self._caching_http_client.cache

    @property
    def closed(self) -> bool:
        return self._closed
