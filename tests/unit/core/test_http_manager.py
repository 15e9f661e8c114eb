"""Тесты HttpManager."""

import logging

import pytest
import responses

from spotify_http import HttpManager, HttpManagerConfig
from spotify_http.core.cache import CacheOutcome
from spotify_http.core.exceptions import (
    BadRequestError,
    NotFoundError,
    TooManyRequestsError,
    UnauthorizedError,
    UriSyntaxError,
)
from spotify_http.core.logging import HttpManagerLogger
from spotify_http.core.request import Body, HttpVerb

ME = "https://api.spotify.com/v1/me"
ALBUM = "https://api.spotify.com/v1/albums/4aawyAB9vmqN3uQ7FjRGTy"
PLAYLIST_TRACKS = "https://api.spotify.com/v1/playlists/3cEYpjA9oz9GiPac4AsH4n/tracks"
AUTH = {"Authorization": "Bearer BQDtokenvalue"}


def outcome_records(caplog):
    return [record for record in caplog.records if hasattr(record, "cache_outcome")]


class TestLifecycle:
    def test_default_config(self):
        with HttpManager() as manager:
            assert manager.config.use_pooling_connection_manager is False
            assert manager.connection_manager.strategy == "single"
            assert manager.cache.config.max_entries == 1000
            assert manager.cache.config.max_object_size == 8192

    def test_pooling_config(self):
        config = HttpManagerConfig.builder().use_pooling_connection_manager().pool_maxsize(4).build()
        with HttpManager(config) as manager:
            assert manager.connection_manager.strategy == "pooling"
            assert manager.connection_manager.maxsize == 4

    def test_clients_share_connection_manager(self, manager):
        assert manager.http_client._connection_manager is manager.connection_manager
        assert manager.caching_http_client._connection_manager is manager.connection_manager

    def test_immutable(self, manager):
        with pytest.raises(RuntimeError):
            manager.config = None

    def test_close_idempotent(self):
        manager = HttpManager()
        manager.close()
        manager.close()
        assert manager.closed is True

    def test_proxy_credentials_registered(self):
        config = (
            HttpManagerConfig.builder()
            .proxy_host("http://proxy.local:3128")
            .proxy_credentials("user", "secret")
            .build()
        )
        with HttpManager(config) as manager:
            assert len(manager.credentials) == 1
            assert manager.http_client.session.proxies["https"] == "http://proxy.local:3128"

    def test_owned_logger_closed(self, logging_config_with_file):
        config = HttpManagerConfig.builder().logging(logging_config_with_file).build()
        manager = HttpManager(config)
        assert manager.logger.logger.handlers

        manager.close()

        assert manager.logger.logger.handlers == []

    def test_external_logger_not_closed(self, logging_config_with_file):
        logger = HttpManagerLogger(logging_config_with_file, name="spotify_http.test_external")
        with HttpManager(logger=logger) as manager:
            assert manager.logger is logger
        assert logger.logger.handlers
        logger.close()

    def test_unclosed_manager_warns(self):
        manager = HttpManager()

        with pytest.warns(ResourceWarning):
            manager.__del__()

        assert manager.closed is True

    def test_closed_manager_does_not_warn(self, recwarn):
        manager = HttpManager()
        manager.close()

        manager.__del__()

        assert not [w for w in recwarn if issubclass(w.category, ResourceWarning)]


class TestExecute:
    def test_get_returns_body(self, manager, mock_responses):
        mock_responses.add(responses.GET, ME, json={"id": "wizzler"}, status=200)

        assert manager.get(ME, headers=AUTH) == '{"id": "wizzler"}'

    def test_headers_sent_as_is(self, manager, mock_responses):
        mock_responses.add(responses.GET, ME, body="{}", status=200)

        manager.get(ME, headers=AUTH)

        sent = mock_responses.calls[0].request.headers
        assert sent["Authorization"] == "Bearer BQDtokenvalue"
        assert "Accept-Encoding" not in sent
        assert "User-Agent" not in sent

    def test_post_body(self, manager, mock_responses):
        mock_responses.add(responses.POST, PLAYLIST_TRACKS, json={"snapshot_id": "abc"}, status=201)

        body = manager.post(
            PLAYLIST_TRACKS,
            headers=AUTH,
            body=Body.json({"uris": ["spotify:track:4iV5W9uYEdYUVa79Axb7Rh"]}),
        )

        assert body == '{"snapshot_id": "abc"}'
        request = mock_responses.calls[0].request
        assert request.headers["Content-Type"] == "application/json"
        assert request.body == b'{"uris": ["spotify:track:4iV5W9uYEdYUVa79Axb7Rh"]}'

    def test_put_string_body(self, manager, mock_responses):
        mock_responses.add(responses.PUT, ME, status=204)

        assert manager.put(ME, headers=AUTH, body="payload") is None
        assert mock_responses.calls[0].request.body == b"payload"

    def test_delete(self, manager, mock_responses):
        mock_responses.add(responses.DELETE, ME, body="{}", status=200)
        assert manager.delete(ME, headers=AUTH) == "{}"

    def test_execute_accepts_string_verb(self, manager, mock_responses):
        mock_responses.add(responses.GET, ME, body="{}", status=200)
        assert manager.execute("get", ME) == "{}"

    def test_unknown_verb(self, manager):
        with pytest.raises(ValueError):
            manager.execute("PATCH", ME)

    def test_get_with_body_rejected(self, manager, mock_responses):
        with pytest.raises(ValueError):
            manager.execute(HttpVerb.GET, ME, body="x")
        assert len(mock_responses.calls) == 0

    def test_empty_uri_rejected(self, manager):
        with pytest.raises(ValueError):
            manager.get("")

    def test_not_found(self, manager, mock_responses):
        mock_responses.add(responses.GET, ALBUM, json={}, status=404)

        with pytest.raises(NotFoundError) as exc_info:
            manager.get(ALBUM, headers=AUTH)

        assert exc_info.value.message == "Not Found"

    def test_rate_limited(self, manager, mock_responses):
        mock_responses.add(
            responses.GET, ME,
            json={"error": {"status": 429, "message": "rate limited"}},
            status=429,
            headers={"Retry-After": "5"},
        )

        with pytest.raises(TooManyRequestsError) as exc_info:
            manager.get(ME, headers=AUTH)

        assert exc_info.value.retry_after == 5
        assert exc_info.value.message == "rate limited"
        assert len(mock_responses.calls) == 1

    def test_status_errors_not_retried(self, manager, mock_responses):
        mock_responses.add(responses.PUT, ME, json={"error": {"status": 401, "message": "expired"}}, status=401)

        with pytest.raises(UnauthorizedError):
            manager.put(ME, headers=AUTH)

        assert len(mock_responses.calls) == 1

    def test_token_endpoint_error(self, manager, mock_responses):
        url = "https://accounts.spotify.com/api/token"
        mock_responses.add(
            responses.POST, url,
            json={"error": "invalid_client", "error_description": "Invalid client secret"},
            status=400,
        )

        with pytest.raises(BadRequestError) as exc_info:
            manager.post(url, body=Body.form({"grant_type": "client_credentials"}))

        assert exc_info.value.message == "Invalid client secret"


class TestCacheRouting:
    def test_cache_hit_skips_upstream(self, manager, mock_responses, caplog):
        mock_responses.add(
            responses.GET, ALBUM,
            json={"name": "Discovery"},
            status=200,
            headers={"Cache-Control": "max-age=60"},
        )

        with caplog.at_level(logging.INFO, logger="spotify_http"):
            first = manager.get(ALBUM, headers=AUTH)
            second = manager.get(ALBUM, headers=AUTH)

        assert first == second == '{"name": "Discovery"}'
        assert len(mock_responses.calls) == 1

        outcomes = [record.cache_outcome for record in outcome_records(caplog)]
        assert outcomes == ["CACHE_MISS", "CACHE_HIT"]
        assert outcome_records(caplog)[1].getMessage() == CacheOutcome.CACHE_HIT.description

    def test_cache_outcome_logged_only_for_get(self, manager, mock_responses, caplog):
        mock_responses.add(responses.PUT, ME, status=204)
        mock_responses.add(responses.POST, ME, body="{}", status=201)
        mock_responses.add(responses.DELETE, ME, status=200, body="{}")

        with caplog.at_level(logging.INFO, logger="spotify_http"):
            manager.put(ME)
            manager.post(ME)
            manager.delete(ME)

        assert outcome_records(caplog) == []

    def test_non_get_not_cached(self, manager, mock_responses):
        mock_responses.add(responses.PUT, ME, body="{}", status=200, headers={"Cache-Control": "max-age=60"})

        manager.put(ME)
        manager.put(ME)

        assert len(mock_responses.calls) == 2
        assert len(manager.cache) == 0

    def test_object_size_limit(self, mock_responses):
        config = HttpManagerConfig.builder().cache_max_object_size(16).build()
        mock_responses.add(
            responses.GET, ALBUM, body="x" * 17, status=200, headers={"Cache-Control": "max-age=60"}
        )

        with HttpManager(config) as manager:
            manager.get(ALBUM)
            manager.get(ALBUM)

        assert len(mock_responses.calls) == 2

    def test_max_entries(self, mock_responses):
        config = HttpManagerConfig.builder().cache_max_entries(1).build()
        for name in ("a", "b"):
            mock_responses.add(
                responses.GET, f"{ALBUM}/{name}", body=name, status=200, headers={"Cache-Control": "max-age=60"}
            )

        with HttpManager(config) as manager:
            manager.get(f"{ALBUM}/a")
            manager.get(f"{ALBUM}/b")
            manager.get(f"{ALBUM}/a")

            assert len(manager.cache) == 1

        assert len(mock_responses.calls) == 3

    def test_revalidation(self, manager, mock_responses, caplog):
        mock_responses.add(responses.GET, ALBUM, json={"v": 1}, status=200, headers={"ETag": '"v1"'})
        mock_responses.add(responses.GET, ALBUM, status=304)

        with caplog.at_level(logging.INFO, logger="spotify_http"):
            assert manager.get(ALBUM) == '{"v": 1}'
            assert manager.get(ALBUM) == '{"v": 1}'

        assert mock_responses.calls[1].request.headers["If-None-Match"] == '"v1"'
        assert outcome_records(caplog)[-1].cache_outcome == "VALIDATED"

    def test_only_if_cached_miss(self, manager, mock_responses, caplog):
        with caplog.at_level(logging.INFO, logger="spotify_http"):
            body = manager.get(ALBUM, headers={"Cache-Control": "only-if-cached"})

        assert body is None
        assert len(mock_responses.calls) == 0
        assert outcome_records(caplog)[-1].cache_outcome == "CACHE_MODULE_RESPONSE"


class TestLogging:
    def test_headers_logged_masked(self, manager, mock_responses, caplog):
        mock_responses.add(responses.GET, ME, body="{}", status=200)

        with caplog.at_level(logging.DEBUG, logger="spotify_http"):
            manager.get(ME, headers=AUTH)

        record = next(r for r in caplog.records if r.getMessage() == "GET request uses these headers")
        assert record.headers == {"Authorization": "***REDACTED***"}
        assert "BQDtokenvalue" not in caplog.text

    def test_token_response_body_logged_masked(self, manager, mock_responses, caplog):
        token_url = "https://accounts.spotify.com/api/token"
        mock_responses.add(
            responses.POST,
            token_url,
            body='{"access_token":"BQDsecretvalue","token_type":"Bearer","refresh_token":"AQBrefresh"}',
            status=200,
        )

        with caplog.at_level(logging.DEBUG, logger="spotify_http"):
            body = manager.post(token_url, body="grant_type=client_credentials")

        assert "BQDsecretvalue" in body
        assert "BQDsecretvalue" not in caplog.text
        assert "AQBrefresh" not in caplog.text
        assert '"access_token":"***REDACTED***"' in caplog.text

    def test_body_and_status_logged(self, manager, mock_responses, caplog):
        mock_responses.add(responses.DELETE, ME, body="{}", status=200)

        with caplog.at_level(logging.DEBUG, logger="spotify_http"):
            manager.delete(ME)

        messages = [record.getMessage() for record in caplog.records]
        assert "The http response has body {}" in messages
        assert "The http response has status code 200" in messages


class TestMakeUri:
    def test_valid(self, manager):
        assert manager.make_uri(ME) == ME

    def test_illegal_character(self, manager, caplog):
        uri = "https://api.spotify.com/v1/search?q=daft punk"

        with pytest.raises(UriSyntaxError) as exc_info:
            manager.make_uri(uri)

        assert exc_info.value.message == (
            f'URI Syntax Exception for "{uri}": Illegal character in URI at index 40'
        )
        assert exc_info.value.message in caplog.text

    def test_malformed_escape(self, manager):
        with pytest.raises(UriSyntaxError):
            manager.make_uri("https://api.spotify.com/v1/search?q=%zz")

    def test_invalid_port(self, manager):
        with pytest.raises(UriSyntaxError):
            manager.make_uri("https://api.spotify.com:port/v1/me")

    def test_none(self, manager):
        with pytest.raises(UriSyntaxError):
            manager.make_uri(None)
