# src/spotify_http/core/connection_manager.py
"""
Connection manager shared by both HTTP clients.

Wraps a urllib3 PoolManager (plus one ProxyManager per proxy URL) so that
the caching and the plain client draw connections from the same pools.
"""
import logging
import threading
from typing import Dict, Optional, Type

import urllib3
from urllib3.connectionpool import HTTPConnectionPool, HTTPSConnectionPool
from urllib3.exceptions import EmptyPoolError

from .config import DEFAULT_CONNECTION_REQUEST_TIMEOUT, DEFAULT_POOL_CONNECTIONS, DEFAULT_POOL_MAXSIZE

logger = logging.getLogger(__name__)


class _AcquireTimeoutMixin:
    """
    Ограничивает ожидание свободного соединения в блокирующем пуле.

    requests не передает pool_timeout в urlopen(), поэтому без этого
    запрос ждал бы соединение бесконечно. По истечении urllib3
    выбрасывает EmptyPoolError.

    connection_gate (single режим): один семафор на все пулы менеджера,
    включая пулы ProxyManager. Соединение выдается только вместе с ним.
    """
    acquire_timeout: Optional[float] = None
    connection_gate: Optional[threading.BoundedSemaphore] = None

    def _get_conn(self, timeout=None):
        if timeout is None:
            timeout = self.acquire_timeout

        gate = self.connection_gate
        if gate is None:
            return super()._get_conn(timeout=timeout)

        if not gate.acquire(timeout=timeout):
            raise EmptyPoolError(
                self,
                "Connection manager has no free connection within the connection request timeout."
            )
        try:
            return super()._get_conn(timeout=timeout)
        except BaseException:
            gate.release()
            raise

    def _put_conn(self, conn):
        try:
            super()._put_conn(conn)
        finally:
            if self.connection_gate is not None:
                self.connection_gate.release()


def _pool_classes(
    acquire_timeout: float,
    connection_gate: Optional[threading.BoundedSemaphore] = None
) -> Dict[str, Type[HTTPConnectionPool]]:
    """Pool classes (http/https) bound to the given acquire timeout and gate."""
    attrs = {"acquire_timeout": acquire_timeout, "connection_gate": connection_gate}
    return {
        "http": type("HTTPConnectionPool", (_AcquireTimeoutMixin, HTTPConnectionPool), attrs),
        "https": type("HTTPSConnectionPool", (_AcquireTimeoutMixin, HTTPSConnectionPool), attrs),
    }


class ConnectionManager:
    """
    Pooled или single-connection менеджер соединений.

    pooled=True:
        pool_connections пулов (по одному на host) до pool_maxsize
        соединений в каждом. connect_timeout = None, таймаут подключения
        берется из общей RequestConfig.
    pooled=False:
        Не более одного соединения на весь менеджер, для любых host и
        прокси; connect_timeout применяется напрямую.

    В обоих режимах пулы блокирующие: при исчерпании запрос ждет
    connection_request_timeout секунд, затем EmptyPoolError.

    Example:
        >>> manager = ConnectionManager(pooled=True, connect_timeout=5.0)
        >>> manager.pool_manager.connection_from_url("https://api.spotify.com")
        >>> manager.close()
    """

    def __init__(
        self,
        pooled: bool,
        connect_timeout: Optional[float] = None,
        connection_request_timeout: Optional[float] = None,
        pool_connections: int = DEFAULT_POOL_CONNECTIONS,
        pool_maxsize: int = DEFAULT_POOL_MAXSIZE,
    ):
        self.pooled = pooled
        self.connection_request_timeout = (
            connection_request_timeout
            if connection_request_timeout is not None
            else DEFAULT_CONNECTION_REQUEST_TIMEOUT
        )

        if pooled:
            self.connect_timeout = None
            self.num_pools = pool_connections
            self.maxsize = pool_maxsize
            self.connection_gate = None
            logger.debug(
                "Using pooling connection manager "
                f"(pools={pool_connections}, maxsize={pool_maxsize})"
            )
        else:
            self.connect_timeout = connect_timeout
            self.num_pools = 1
            self.maxsize = 1
            self.connection_gate = threading.BoundedSemaphore(1)
            logger.debug(
                "Using single connection manager "
                f"(connect_timeout={connect_timeout})"
            )

        self._pool_classes = _pool_classes(self.connection_request_timeout, self.connection_gate)
        self._proxy_managers: Dict[str, urllib3.ProxyManager] = {}
        self._lock = threading.Lock()

        # Ошибка здесь фатальна для конструктора HttpManager
        self.pool_manager = urllib3.PoolManager(
            num_pools=self.num_pools,
            maxsize=self.maxsize,
            block=True,
        )
        self.pool_manager.pool_classes_by_scheme = self._pool_classes

    def proxy_manager_for(
        self,
        proxy_url: str,
        proxy_headers: Optional[Dict[str, str]] = None
    ) -> urllib3.ProxyManager:
        """
        ProxyManager для proxy_url (создается один раз, затем переиспользуется).

        Args:
            proxy_url: URL прокси ('http://host:port')
            proxy_headers: Заголовки для прокси (Proxy-Authorization)
        """
        with self._lock:
            manager = self._proxy_managers.get(proxy_url)
            if manager is None:
                manager = urllib3.proxy_from_url(
                    proxy_url,
                    proxy_headers=proxy_headers,
                    num_pools=self.num_pools,
                    maxsize=self.maxsize,
                    block=True,
                )
                manager.pool_classes_by_scheme = self._pool_classes
                self._proxy_managers[proxy_url] = manager
            return manager

    @property
    def strategy(self) -> str:
        return "pooling" if self.pooled else "single"

    def close(self) -> None:
        """Закрыть все соединения (прямые и через прокси)."""
        self.pool_manager.clear()
        with self._lock:
            for manager in self._proxy_managers.values():
                manager.clear()
            self._proxy_managers.clear()

    def __repr__(self) -> str:
        return (
            f"ConnectionManager(strategy={self.strategy!r}, "
            f"num_pools={self.num_pools}, maxsize={self.maxsize})"
        )
