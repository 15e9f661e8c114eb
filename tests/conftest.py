"""
Pytest configuration and fixtures for spotify-http-core tests.
"""

import logging
from http import HTTPStatus

import pytest
import requests
import responses as responses_lib
from requests.structures import CaseInsensitiveDict

from spotify_http import HttpManager, HttpManagerConfig, RetryConfig
from spotify_http.core.logging.config import LoggingConfig
from spotify_http.core.logging.filters import clear_correlation_id


@pytest.fixture
def base_url():
    """Base URL for testing."""
    return "https://api.spotify.com/v1"


@pytest.fixture
def mock_responses():
    """Mock HTTP responses using responses library."""
    with responses_lib.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


@pytest.fixture
def manager():
    """HttpManager with default configuration and fast retries."""
    config = (
        HttpManagerConfig.builder()
        .retry(RetryConfig(max_attempts=3, backoff_base=0.0, backoff_jitter=False))
        .build()
    )
    manager = HttpManager(config)
    yield manager
    manager.close()


@pytest.fixture(autouse=True)
def reset_library_logger():
    """
    Вернуть logger 'spotify_http' в исходное состояние.

    HttpManagerLogger(config) снимает propagate и меняет handlers, это
    не должно протекать в другие тесты (caplog).
    """
    yield
    library_logger = logging.getLogger("spotify_http")
    library_logger.handlers = [
        h for h in library_logger.handlers if isinstance(h, logging.NullHandler)
    ]
    library_logger.propagate = True
    library_logger.setLevel(logging.NOTSET)
    clear_correlation_id()


@pytest.fixture
def logging_config():
    """LoggingConfig for tests that need a configured logger."""
    return LoggingConfig.create(
        level="DEBUG",
        enable_console=True,
        enable_file=False
    )


@pytest.fixture
def logging_config_with_file(tmp_path):
    """
    LoggingConfig with file logging enabled.

    Uses temporary directory for log files to avoid cleanup issues.
    """
    log_file = tmp_path / "test.log"
    return LoggingConfig.create(
        level="DEBUG",
        format="json",
        enable_console=False,
        enable_file=True,
        file_path=str(log_file)
    )


def make_response(status_code=200, body=b"", headers=None, url="https://api.spotify.com/v1/me", reason=None):
    """requests.Response без сети (для classifier/cache тестов)."""
    response = requests.Response()
    response.status_code = status_code
    response.reason = reason if reason is not None else HTTPStatus(status_code).phrase
    response.headers = CaseInsensitiveDict(headers or {})
    response._content = body.encode("utf-8") if isinstance(body, str) else body
    response._content_consumed = True
    response.url = url
    return response


@pytest.fixture
def response_factory():
    """Factory for offline requests.Response objects."""
    return make_response
