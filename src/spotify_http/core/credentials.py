# src/spotify_http/core/credentials.py
"""
Proxy host and credential store.

Credentials are registered against an AuthScope (host + port + scheme,
realm and auth scheme left open). Both HTTP clients consult the same
CredentialsProvider when they talk to the proxy.
"""

import base64
import threading
from dataclasses import dataclass, field
from typing import Dict, Optional
from urllib.parse import urlsplit

from .exceptions import ConfigurationError

DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass(frozen=True)
class ProxyHost:
    """
    Proxy endpoint.

    Examples:
        >>> ProxyHost("proxy.local", 3128)
        >>> ProxyHost.parse("http://proxy.local:3128")
    """
    host: str
    port: int
    scheme: str = "http"

    def __post_init__(self):
        if not self.host:
            raise ConfigurationError("Proxy host cannot be empty")
        if not (1 <= self.port <= 65535):
            raise ConfigurationError(f"Invalid proxy port: {self.port}")
        if self.scheme not in DEFAULT_PORTS:
            raise ConfigurationError(f"Unsupported proxy scheme: {self.scheme}")

    @classmethod
    def parse(cls, url: str) -> "ProxyHost":
        """Build ProxyHost from 'scheme://host:port' (port defaults by scheme)."""
        if "://" not in url:
            url = f"http://{url}"
        try:
            parts = urlsplit(url)
            port = parts.port
        except ValueError as e:
            raise ConfigurationError(f"Invalid proxy URL {url!r}: {e}") from e

        scheme = (parts.scheme or "http").lower()
        if port is None:
            port = DEFAULT_PORTS.get(scheme, 80)
        return cls(host=parts.hostname or "", port=port, scheme=scheme)

    @property
    def url(self) -> str:
        """URL прокси для requests."""
        return f"{self.scheme}://{self.host}:{self.port}"


@dataclass(frozen=True)
class UsernamePasswordCredentials:
    """Username/password pair. Password never shows up in repr."""
    username: str
    password: str = field(repr=False)

    def basic_auth_header(self) -> str:
        """Value for a Proxy-Authorization header."""
        token = base64.b64encode(f"{self.username}:{self.password}".encode("utf-8")).decode("ascii")
        return f"Basic {token}"


@dataclass(frozen=True)
class AuthScope:
    """
    Scope a credential applies to.

    realm and auth_scheme of None match anything.
    """
    host: str
    port: int
    scheme: str
    realm: Optional[str] = None
    auth_scheme: Optional[str] = None

    @classmethod
    def for_proxy(cls, proxy: ProxyHost) -> "AuthScope":
        return cls(host=proxy.host.lower(), port=proxy.port, scheme=proxy.scheme)

    @classmethod
    def from_url(cls, url: str) -> Optional["AuthScope"]:
        """Scope for a proxy URL as requests hands it to the adapter."""
        if "://" not in url:
            url = f"http://{url}"
        try:
            parts = urlsplit(url)
            port = parts.port
        except ValueError:
            return None
        if not parts.hostname:
            return None
        scheme = (parts.scheme or "http").lower()
        return cls(
            host=parts.hostname.lower(),
            port=port if port is not None else DEFAULT_PORTS.get(scheme, 80),
            scheme=scheme,
        )

    def matches(self, other: "AuthScope") -> bool:
        if (self.host, self.port, self.scheme) != (other.host, other.port, other.scheme):
            return False
        if self.realm is not None and other.realm is not None and self.realm != other.realm:
            return False
        if (
            self.auth_scheme is not None
            and other.auth_scheme is not None
            and self.auth_scheme.lower() != other.auth_scheme.lower()
        ):
            return False
        return True


class CredentialsProvider:
    """
    Thread-safe credential store keyed by AuthScope.

    Example:
        >>> provider = CredentialsProvider()
        >>> provider.set_credentials(AuthScope.for_proxy(proxy), creds)
        >>> provider.get_credentials(AuthScope.from_url("http://proxy.local:3128"))
    """

    def __init__(self):
        self._credentials: Dict[AuthScope, UsernamePasswordCredentials] = {}
        self._lock = threading.Lock()

    @classmethod
    def for_proxy(
        cls,
        proxy: Optional[ProxyHost],
        credentials: Optional[UsernamePasswordCredentials]
    ) -> "CredentialsProvider":
        """Empty store without proxy, otherwise one entry scoped to the proxy."""
        provider = cls()
        if proxy is not None and credentials is not None:
            provider.set_credentials(AuthScope.for_proxy(proxy), credentials)
        return provider

    def set_credentials(self, scope: AuthScope, credentials: UsernamePasswordCredentials) -> None:
        with self._lock:
            self._credentials[scope] = credentials

    def get_credentials(self, scope: Optional[AuthScope]) -> Optional[UsernamePasswordCredentials]:
        if scope is None:
            return None
        with self._lock:
            for registered, credentials in self._credentials.items():
                if registered.matches(scope):
                    return credentials
        return None

    def clear(self) -> None:
        with self._lock:
            self._credentials.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._credentials)
