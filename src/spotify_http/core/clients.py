# src/spotify_http/core/clients.py
"""
HTTP clients: plain (HttpClient) and cache-aware (CachingHttpClient).

Оба клиента получают одни и те же ConnectionManager, CredentialsProvider,
RequestConfig, прокси и RetryStrategy. Отличие только в кэше ответов.
"""
import time
from dataclasses import dataclass
from http.cookiejar import DefaultCookiePolicy
from typing import Dict, Optional

import requests
from requests.structures import CaseInsensitiveDict
from urllib3.exceptions import EmptyPoolError

from .adapter import SharedPoolAdapter
from .cache import CacheOutcome, ResponseCache, gateway_timeout_response, parse_cache_control
from .config import RequestConfig
from .connection_manager import ConnectionManager
from .credentials import CredentialsProvider, ProxyHost
from .exceptions import TooManyRetriesError, classify_transport_exception
from .logging import HttpManagerLogger
from .request import ApiRequest
from .retry_strategy import RetryStrategy
from .session_manager import ThreadLocalSessions


@dataclass
class CacheContext:
    """Результат прохождения запроса через кэш (только для логов)."""
    outcome: CacheOutcome = CacheOutcome.NONE


def strict_cookie_policy() -> DefaultCookiePolicy:
    """Cookie policy 'strict': строгие правила domain/path."""
    return DefaultCookiePolicy(
        strict_ns_domain=DefaultCookiePolicy.DomainStrict,
        strict_ns_set_initial_dollar=True,
        strict_ns_set_path=True,
    )


def cookie_policy_for(name: str) -> DefaultCookiePolicy:
    """Cookie policy по имени из RequestConfig.cookie_policy."""
    if name == "strict":
        return strict_cookie_policy()
    return DefaultCookiePolicy()


class HttpClient:
    """
    Клиент без кэша: POST/PUT/DELETE.

    - Thread-safe: каждый поток получает свою requests.Session
    - Никаких заголовков по умолчанию (в том числе Accept-Encoding),
      заголовки запроса уходят как есть
    - Транспортные ошибки повторяются по RetryStrategy
    """

    def __init__(
        self,
        connection_manager: ConnectionManager,
        credentials: CredentialsProvider,
        request_config: RequestConfig,
        retry_strategy: RetryStrategy,
        proxy: Optional[ProxyHost] = None,
        logger: Optional[HttpManagerLogger] = None,
    ):
        self._connection_manager = connection_manager
        self._credentials = credentials
        self._request_config = request_config
        self._retry_strategy = retry_strategy
        self._proxies: Dict[str, str] = (
            {"http": proxy.url, "https": proxy.url} if proxy is not None else {}
        )
        self._logger = logger or HttpManagerLogger.passive()
        self._sessions = ThreadLocalSessions(self._create_session)

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers = CaseInsensitiveDict()
        session.trust_env = False
        session.proxies = dict(self._proxies)
        session.cookies.set_policy(cookie_policy_for(self._request_config.cookie_policy))

        adapter = SharedPoolAdapter(self._connection_manager, self._credentials)
        session.mount('http://', adapter)
        session.mount('https://', adapter)
        return session

    @property
    def session(self) -> requests.Session:
        """Session текущего потока."""
        return self._sessions.get()

    @property
    def timeout(self):
        """(connect, read) для requests."""
        connect = self._connection_manager.connect_timeout
        if connect is None:
            connect = self._request_config.connect_timeout
        return connect, self._request_config.response_timeout

    def execute(self, request: ApiRequest, context: Optional[CacheContext] = None) -> requests.Response:
        """
        Отправить запрос.

        Args:
            request: Запрос
            context: Сюда записывается CacheOutcome (NONE для этого клиента)

        Returns:
            Response (stream=True: тело еще не прочитано, вызывающий закрывает)

        Raises:
            TransportError: Ответ не получен
        """
        if context is not None:
            context.outcome = CacheOutcome.NONE
        return self._send(request)

    def _send(self, request: ApiRequest, extra_headers: Optional[Dict[str, str]] = None) -> requests.Response:
        session = self.session
        headers = request.request_headers()
        if extra_headers:
            headers.update(extra_headers)

        prepared = session.prepare_request(requests.Request(
            method=request.method,
            url=request.uri,
            headers=headers,
            data=request.body.content if request.body is not None else None,
        ))

        attempt = 0
        while True:
            try:
                return session.send(
                    prepared,
                    timeout=self.timeout,
                    verify=self._request_config.verify_ssl,
                    proxies=self._proxies,
                    stream=True,
                )
            except (requests.exceptions.RequestException, EmptyPoolError) as e:
                error = classify_transport_exception(e, request.uri)

                if self._retry_strategy.should_retry(attempt, error, request.method, request.idempotent):
                    wait_time = self._retry_strategy.get_wait_time(attempt)
                    self._logger.warning(
                        "Request error (will retry)",
                        method=request.method,
                        url=request.uri,
                        error=str(error),
                        error_type=type(error).__name__,
                        attempt=attempt + 1,
                        max_attempts=self._retry_strategy.config.max_attempts,
                        wait_time_s=round(wait_time, 2),
                    )
                    time.sleep(wait_time)
                    attempt += 1
                    continue

                self._logger.error(
                    "Request failed",
                    method=request.method,
                    url=request.uri,
                    error=str(error),
                    error_type=type(error).__name__,
                    attempt=attempt + 1,
                )
                if attempt > 0 and self._retry_strategy.is_exhausted(attempt):
                    raise TooManyRetriesError(max_retries=attempt, last_error=error, url=request.uri) from e
                raise error from e

    def close(self) -> None:
        """Закрыть сессии всех потоков (пулы остаются у ConnectionManager)."""
        self._sessions.close_all()


class CachingHttpClient(HttpClient):
    """
    Клиент с private кэшем ответов: GET.

    Example:
        >>> context = CacheContext()
        >>> response = client.execute(ApiRequest(HttpVerb.GET, url), context)
        >>> context.outcome
        <CacheOutcome.CACHE_HIT: ...>
    """

    def __init__(self, *args, cache: Optional[ResponseCache] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.cache = cache if cache is not None else ResponseCache()

    def execute(self, request: ApiRequest, context: Optional[CacheContext] = None) -> requests.Response:
        context = context if context is not None else CacheContext()

        if not request.verb.cacheable:
            context.outcome = CacheOutcome.CACHE_MISS
            return self._send(request)

        request_headers = request.request_headers()
        request_cc = parse_cache_control(CaseInsensitiveDict(request_headers).get("Cache-Control"))

        if "no-store" in request_cc:
            context.outcome = CacheOutcome.CACHE_MISS
            return self._send(request)

        try:
            entry = self.cache.lookup(request.uri, request_headers)
            fresh = entry is not None and "no-cache" not in request_cc and entry.is_fresh()
        except Exception as e:
            # Кэш не должен ломать запрос
            self._logger.error("Cache lookup failed", url=request.uri, error=str(e))
            context.outcome = CacheOutcome.FAILURE
            return self._send(request)

        if fresh:
            context.outcome = CacheOutcome.CACHE_HIT
            return entry.to_response()

        if "only-if-cached" in request_cc:
            context.outcome = CacheOutcome.CACHE_MODULE_RESPONSE
            return gateway_timeout_response(request.uri)

        if entry is not None and entry.has_validators:
            response = self._send(request, entry.conditional_headers())
            if response.status_code == 304:
                response.close()
                entry = self.cache.refresh(entry, response)
                context.outcome = CacheOutcome.VALIDATED
                return entry.to_response()
        else:
            response = self._send(request)

        context.outcome = CacheOutcome.CACHE_MISS
        try:
            self.cache.store(request.uri, request_headers, response)
        except requests.exceptions.RequestException as e:
            response.close()
            raise classify_transport_exception(e, request.uri) from e
        return response
