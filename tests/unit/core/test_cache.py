"""Тесты private кэша ответов."""

import time
from email.utils import formatdate

import pytest

from spotify_http.core.cache import (
    CacheEntry,
    CacheOutcome,
    ResponseCache,
    gateway_timeout_response,
    parse_cache_control,
)
from spotify_http.core.config import CacheConfig

URL = "https://api.spotify.com/v1/albums/4aawyAB9vmqN3uQ7FjRGTy"


@pytest.fixture
def cache():
    return ResponseCache(CacheConfig.create(max_entries=2, max_object_size=64))


def test_outcome_descriptions():
    assert CacheOutcome.CACHE_HIT.description == (
        "A response was generated from the cache with no requests sent upstream"
    )
    assert CacheOutcome.CACHE_MISS.description == "The response came from an upstream server"
    assert CacheOutcome.NONE.description == "The response did not pass through the cache"


def test_parse_cache_control():
    assert parse_cache_control('private, max-age="60", No-Cache') == {
        "private": None,
        "max-age": "60",
        "no-cache": None,
    }
    assert parse_cache_control(None) == {}


class TestCacheEntry:
    def test_max_age_freshness(self, response_factory):
        entry = CacheEntry.from_response(
            URL, response_factory(200, body="x", headers={"Cache-Control": "max-age=60"})
        )
        assert entry.freshness_lifetime() == 60.0
        assert entry.is_fresh() is True
        assert entry.is_fresh(now=time.time() + 61) is False

    def test_age_header_counts(self, response_factory):
        entry = CacheEntry.from_response(
            URL, response_factory(200, body="x", headers={"Cache-Control": "max-age=60", "Age": "59"})
        )
        assert entry.is_fresh(now=entry.stored_at + 2) is False

    def test_expires_freshness(self, response_factory):
        now = time.time()
        headers = {
            "Date": formatdate(now, usegmt=True),
            "Expires": formatdate(now + 120, usegmt=True),
        }
        entry = CacheEntry.from_response(URL, response_factory(200, body="x", headers=headers))
        assert 119 <= entry.freshness_lifetime() <= 121

    def test_no_cache_is_never_fresh(self, response_factory):
        entry = CacheEntry.from_response(
            URL, response_factory(200, body="x", headers={"Cache-Control": "no-cache, max-age=60"})
        )
        assert entry.is_fresh() is False

    def test_without_freshness_info(self, response_factory):
        entry = CacheEntry.from_response(URL, response_factory(200, body="x", headers={"ETag": '"v1"'}))
        assert entry.freshness_lifetime() is None
        assert entry.is_fresh() is False

    def test_conditional_headers(self, response_factory):
        headers = {"ETag": '"v1"', "Last-Modified": "Wed, 21 Oct 2015 07:28:00 GMT"}
        entry = CacheEntry.from_response(URL, response_factory(200, body="x", headers=headers))
        assert entry.has_validators is True
        assert entry.conditional_headers() == {
            "If-None-Match": '"v1"',
            "If-Modified-Since": "Wed, 21 Oct 2015 07:28:00 GMT",
        }

    def test_refresh_from_304(self, response_factory):
        entry = CacheEntry.from_response(URL, response_factory(200, body="x", headers={"ETag": '"v1"'}))
        entry.stored_at -= 100

        refreshed = entry.refreshed(response_factory(
            304, headers={"Cache-Control": "max-age=30", "Content-Length": "0"}
        ))

        assert refreshed.is_fresh() is True
        assert "Content-Length" not in refreshed.headers
        assert refreshed.content == b"x"
        # исходная запись не меняется
        assert "Cache-Control" not in entry.headers
        assert entry.is_fresh() is False

    def test_to_response(self, response_factory):
        entry = CacheEntry.from_response(
            URL, response_factory(200, body='{"name": "Discovery"}', headers={"Content-Type": "application/json"})
        )
        response = entry.to_response()
        assert response.status_code == 200
        assert response.content == b'{"name": "Discovery"}'
        assert response.url == URL
        assert response.json() == {"name": "Discovery"}


def test_gateway_timeout_response():
    response = gateway_timeout_response(URL)
    assert response.status_code == 504
    assert response.reason == "Gateway Timeout"
    assert response.content == b""


class TestResponseCache:
    def test_store_and_lookup(self, cache, response_factory):
        cache.store(URL, {}, response_factory(200, body="x", headers={"Cache-Control": "max-age=60"}))

        entry = cache.lookup(URL, {})
        assert entry is not None
        assert entry.content == b"x"
        assert cache.hits == 1

    def test_lookup_miss(self, cache):
        assert cache.lookup(URL) is None
        assert cache.misses == 1

    @pytest.mark.parametrize("status_code", [200, 203, 300, 301, 410])
    def test_cacheable_statuses(self, cache, response_factory, status_code):
        response = response_factory(status_code, body="x", headers={"Cache-Control": "max-age=60"})
        assert cache.is_storable(response) is True

    @pytest.mark.parametrize("status_code", [201, 204, 302, 404, 500])
    def test_not_cacheable_statuses(self, cache, response_factory, status_code):
        response = response_factory(status_code, body="x", headers={"Cache-Control": "max-age=60"})
        assert cache.store(URL, {}, response) is None
        assert len(cache) == 0

    def test_no_store(self, cache, response_factory):
        response = response_factory(200, body="x", headers={"Cache-Control": "no-store, max-age=60"})
        assert cache.store(URL, {}, response) is None

    def test_request_no_store(self, cache, response_factory):
        response = response_factory(200, body="x", headers={"Cache-Control": "max-age=60"})
        assert cache.store(URL, {"Cache-Control": "no-store"}, response) is None

    def test_without_freshness_or_validators(self, cache, response_factory):
        assert cache.store(URL, {}, response_factory(200, body="x")) is None

    def test_vary_star(self, cache, response_factory):
        response = response_factory(200, body="x", headers={"Cache-Control": "max-age=60", "Vary": "*"})
        assert cache.store(URL, {}, response) is None

    def test_object_size_limit(self, cache, response_factory):
        big = response_factory(200, body="x" * 65, headers={"Cache-Control": "max-age=60"})
        assert cache.store(URL, {}, big) is None

        declared = response_factory(
            200, body="x", headers={"Cache-Control": "max-age=60", "Content-Length": "1000"}
        )
        assert cache.is_storable(declared) is False

    def test_lru_eviction(self, cache, response_factory):
        headers = {"Cache-Control": "max-age=60"}
        for name in ("a", "b"):
            cache.store(f"{URL}/{name}", {}, response_factory(200, body=name, headers=headers))

        # "a" становится самым свежим по использованию
        assert cache.lookup(f"{URL}/a") is not None

        cache.store(f"{URL}/c", {}, response_factory(200, body="c", headers=headers))

        assert len(cache) == 2
        assert cache.lookup(f"{URL}/a") is not None
        assert cache.lookup(f"{URL}/b") is None
        assert cache.lookup(f"{URL}/c") is not None

    def test_vary_keys_entries(self, cache, response_factory):
        headers = {"Cache-Control": "max-age=60", "Vary": "Accept-Language"}
        cache.store(URL, {"Accept-Language": "en"}, response_factory(200, body="en", headers=headers))

        assert cache.lookup(URL, {"Accept-Language": "en"}).content == b"en"
        assert cache.lookup(URL, {"Accept-Language": "sv"}) is None

    def test_refresh_replaces_entry(self, cache, response_factory):
        cache.store(URL, {}, response_factory(200, body="x", headers={"ETag": '"v1"'}))
        stale = cache.lookup(URL, {})

        refreshed = cache.refresh(stale, response_factory(304, headers={"Cache-Control": "max-age=60"}))

        assert refreshed is not stale
        assert "Cache-Control" not in stale.headers
        assert cache.lookup(URL, {}) is refreshed
        assert refreshed.is_fresh() is True
        assert len(cache) == 1

    def test_invalidate(self, cache, response_factory):
        cache.store(URL, {}, response_factory(200, body="x", headers={"Cache-Control": "max-age=60"}))
        assert cache.invalidate(URL) == 1
        assert cache.lookup(URL) is None

    def test_clear(self, cache, response_factory):
        cache.store(URL, {}, response_factory(200, body="x", headers={"Cache-Control": "max-age=60"}))
        cache.clear()
        assert len(cache) == 0
