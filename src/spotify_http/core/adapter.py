# src/spotify_http/core/adapter.py
"""
Transport adapter that plugs requests.Session into the shared ConnectionManager.
"""
from typing import Dict

from requests.adapters import HTTPAdapter

from .connection_manager import ConnectionManager
from .credentials import AuthScope, CredentialsProvider


class SharedPoolAdapter(HTTPAdapter):
    """
    HTTPAdapter без собственных пулов.

    - Прямые соединения берутся из ConnectionManager.pool_manager
    - Соединения через прокси из ConnectionManager.proxy_manager_for()
    - Proxy-Authorization добавляется из CredentialsProvider
    - Ретраи urllib3 отключены (max_retries=0), повторы делает RetryStrategy

    Пулы принадлежат ConnectionManager, поэтому close() адаптера (и
    Session.close()) их не трогает.
    """

    def __init__(self, connection_manager: ConnectionManager, credentials: CredentialsProvider):
        self._connection_manager = connection_manager
        self._credentials = credentials
        super().__init__(max_retries=0)

    def init_poolmanager(self, connections, maxsize, block=False, **pool_kwargs):
        self._pool_connections = connections
        self._pool_maxsize = maxsize
        self._pool_block = block
        self.poolmanager = self._connection_manager.pool_manager

    def proxy_manager_for(self, proxy, **proxy_kwargs):
        return self._connection_manager.proxy_manager_for(proxy, self.proxy_headers(proxy))

    def proxy_headers(self, proxy) -> Dict[str, str]:
        headers = super().proxy_headers(proxy)
        credentials = self._credentials.get_credentials(AuthScope.from_url(proxy))
        if credentials is not None:
            headers["Proxy-Authorization"] = credentials.basic_auth_header()
        return headers

    def close(self):
        pass
