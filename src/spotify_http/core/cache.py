# src/spotify_http/core/cache.py
"""
Private in-memory HTTP cache для GET ответов Web API.

- LRU с ограничением по количеству записей (max_entries)
- Ответы больше max_object_size не сохраняются
- Свежесть по Cache-Control max-age / Expires (без эвристик)
- Валидация по ETag / Last-Modified (conditional GET, 304)
- Ключ: URL + значения заголовков запроса, перечисленных в Vary
"""

import hashlib
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field, replace
from datetime import timedelta
from email.utils import parsedate_to_datetime
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple

import requests
from requests.structures import CaseInsensitiveDict

from .config import CacheConfig

logger = logging.getLogger(__name__)

CACHEABLE_STATUS_CODES = frozenset({200, 203, 300, 301, 410})


class CacheOutcome(Enum):
    """Как был получен ответ. Только для диагностики."""

    CACHE_HIT = "A response was generated from the cache with no requests sent upstream"
    CACHE_MODULE_RESPONSE = "The response was generated directly by the caching module"
    CACHE_MISS = "The response came from an upstream server"
    VALIDATED = (
        "The response was generated from the cache after validating "
        "the entry with the origin server"
    )
    FAILURE = "The response came from an upstream server after a cache failure"
    NONE = "The response did not pass through the cache"

    @property
    def description(self) -> str:
        return self.value


def parse_cache_control(value: Optional[str]) -> Dict[str, Optional[str]]:
    """
    Распарсить Cache-Control в словарь директив.

    Examples:
        >>> parse_cache_control('public, max-age=60')
        {'public': None, 'max-age': '60'}
    """
    directives: Dict[str, Optional[str]] = {}
    if not value:
        return directives

    for part in value.split(","):
        part = part.strip()
        if not part:
            continue
        if "=" in part:
            name, _, arg = part.partition("=")
            directives[name.strip().lower()] = arg.strip().strip('"')
        else:
            directives[part.lower()] = None
    return directives


def _parse_http_date(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    try:
        return parsedate_to_datetime(value).timestamp()
    except (TypeError, ValueError, OverflowError):
        return None


def _parse_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return max(0, int(value))
    except ValueError:
        return None


@dataclass
class CacheEntry:
    """
    Сохраненный ответ.

    Attributes:
        url: URL запроса
        status_code: HTTP статус
        reason: Reason phrase
        headers: Заголовки ответа
        content: Тело ответа
        stored_at: Когда ответ получен или последний раз провалидирован
    """
    url: str
    status_code: int
    reason: str
    headers: CaseInsensitiveDict
    content: bytes
    stored_at: float = field(default_factory=time.time)

    @classmethod
    def from_response(cls, url: str, response: requests.Response) -> 'CacheEntry':
        return cls(
            url=url,
            status_code=response.status_code,
            reason=response.reason or "",
            headers=CaseInsensitiveDict(response.headers),
            content=response.content or b"",
        )

    @property
    def cache_control(self) -> Dict[str, Optional[str]]:
        return parse_cache_control(self.headers.get("Cache-Control"))

    def freshness_lifetime(self) -> Optional[float]:
        """Время жизни в секундах; None если сервер его не указал."""
        directives = self.cache_control
        if "no-cache" in directives:
            return 0.0

        max_age = _parse_int(directives.get("max-age"))
        if max_age is not None:
            return float(max_age)

        expires = _parse_http_date(self.headers.get("Expires"))
        if expires is not None:
            date = _parse_http_date(self.headers.get("Date")) or self.stored_at
            return max(0.0, expires - date)

        return None

    def current_age(self, now: Optional[float] = None) -> float:
        now = now if now is not None else time.time()
        initial_age = _parse_int(self.headers.get("Age")) or 0
        return initial_age + max(0.0, now - self.stored_at)

    def is_fresh(self, now: Optional[float] = None) -> bool:
        lifetime = self.freshness_lifetime()
        if lifetime is None:
            return False
        return lifetime > self.current_age(now)

    @property
    def has_validators(self) -> bool:
        return "ETag" in self.headers or "Last-Modified" in self.headers

    def conditional_headers(self) -> Dict[str, str]:
        """If-None-Match / If-Modified-Since для повторной валидации."""
        headers = {}
        if "ETag" in self.headers:
            headers["If-None-Match"] = self.headers["ETag"]
        if "Last-Modified" in self.headers:
            headers["If-Modified-Since"] = self.headers["Last-Modified"]
        return headers

    def refreshed(self, not_modified: requests.Response) -> 'CacheEntry':
        """
        Новая запись по ответу 304: заголовки 304 поверх сохраненных.

        Текущая запись не меняется, ее могут читать другие потоки.
        """
        headers = CaseInsensitiveDict(self.headers)
        for name, value in not_modified.headers.items():
            if name.lower() in ("content-length", "transfer-encoding"):
                continue
            headers[name] = value
        return replace(self, headers=headers, stored_at=time.time())

    def to_response(self) -> requests.Response:
        """Собрать requests.Response из записи (без соединения)."""
        response = requests.Response()
        response.status_code = self.status_code
        response.reason = self.reason
        response.headers = CaseInsensitiveDict(self.headers)
        response._content = self.content
        response._content_consumed = True
        response.url = self.url
        response.encoding = requests.utils.get_encoding_from_headers(response.headers)
        response.elapsed = timedelta(0)
        return response


def gateway_timeout_response(url: str) -> requests.Response:
    """504, которым кэш отвечает на only-if-cached без подходящей записи."""
    response = requests.Response()
    response.status_code = 504
    response.reason = "Gateway Timeout"
    response._content = b""
    response._content_consumed = True
    response.url = url
    response.elapsed = timedelta(0)
    return response


class ResponseCache:
    """
    Thread-safe LRU кэш ответов.

    Example:
        >>> cache = ResponseCache(CacheConfig.create())
        >>> cache.store(url, request_headers, response)
        >>> entry = cache.lookup(url, request_headers)
    """

    def __init__(self, config: Optional[CacheConfig] = None):
        self.config = config or CacheConfig.create()
        self._entries: 'OrderedDict[str, CacheEntry]' = OrderedDict()
        self._vary: Dict[str, Tuple[str, ...]] = {}
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0

    def _key(self, url: str, request_headers: Mapping[str, str], vary: Tuple[str, ...]) -> str:
        headers = CaseInsensitiveDict(request_headers or {})
        parts = [url]
        for name in vary:
            parts.append(f"{name}={headers.get(name, '')}")
        return hashlib.sha256("\n".join(parts).encode("utf-8")).hexdigest()

    @staticmethod
    def _vary_names(response_headers: Mapping[str, str]) -> Tuple[str, ...]:
        vary = response_headers.get("Vary", "")
        return tuple(sorted({name.strip().lower() for name in vary.split(",") if name.strip()}))

    def lookup(self, url: str, request_headers: Optional[Mapping[str, str]] = None) -> Optional[CacheEntry]:
        """Запись для URL (с учетом Vary) или None."""
        with self._lock:
            vary = self._vary.get(url, ())
            key = self._key(url, request_headers or {}, vary)
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            self._entries.move_to_end(key)
            self._hits += 1
            return entry

    def is_storable(
        self,
        response: requests.Response,
        request_headers: Optional[Mapping[str, str]] = None
    ) -> bool:
        """Можно ли сохранить ответ (без чтения тела)."""
        if response.status_code not in CACHEABLE_STATUS_CODES:
            return False

        request_cc = parse_cache_control(CaseInsensitiveDict(request_headers or {}).get("Cache-Control"))
        response_cc = parse_cache_control(response.headers.get("Cache-Control"))
        if "no-store" in request_cc or "no-store" in response_cc:
            return False

        if response.headers.get("Vary", "").strip() == "*":
            return False

        content_length = _parse_int(response.headers.get("Content-Length"))
        if content_length is not None and content_length > self.config.max_object_size:
            return False

        has_freshness = "max-age" in response_cc or "Expires" in response.headers
        has_validators = "ETag" in response.headers or "Last-Modified" in response.headers
        return has_freshness or has_validators

    def store(
        self,
        url: str,
        request_headers: Optional[Mapping[str, str]],
        response: requests.Response
    ) -> Optional[CacheEntry]:
        """
        Сохранить ответ, если он кэшируемый.

        Returns:
            Новая запись или None, если ответ не сохранен
        """
        if not self.is_storable(response, request_headers):
            return None

        entry = CacheEntry.from_response(url, response)
        if len(entry.content) > self.config.max_object_size:
            logger.debug(
                f"Response for {url} exceeds max object size "
                f"({len(entry.content)} > {self.config.max_object_size}), not cached"
            )
            return None

        vary = self._vary_names(response.headers)
        with self._lock:
            self._vary[url] = vary
            key = self._key(url, request_headers or {}, vary)
            self._entries[key] = entry
            self._entries.move_to_end(key)
            while len(self._entries) > self.config.max_entries:
                evicted_key, evicted = self._entries.popitem(last=False)
                logger.debug(f"Cache eviction: {evicted.url}")
                if not any(e.url == evicted.url for e in self._entries.values()):
                    self._vary.pop(evicted.url, None)
        return entry

    def refresh(self, entry: CacheEntry, not_modified: requests.Response) -> CacheEntry:
        """
        Заменить запись обновленной копией после 304 Not Modified.

        Returns:
            Новая запись (старая остается как была)
        """
        refreshed = entry.refreshed(not_modified)
        with self._lock:
            keys = [key for key, current in self._entries.items() if current is entry]
            for key in keys:
                self._entries[key] = refreshed
        return refreshed

    def invalidate(self, url: str) -> int:
        """Удалить все записи для URL. Возвращает количество удаленных."""
        with self._lock:
            keys = [key for key, entry in self._entries.items() if entry.url == url]
            for key in keys:
                del self._entries[key]
            self._vary.pop(url, None)
            return len(keys)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._vary.clear()
        logger.info("Cache cleared")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def hits(self) -> int:
        return self._hits

    @property
    def misses(self) -> int:
        return self._misses
