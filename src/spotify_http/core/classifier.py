# src/spotify_http/core/classifier.py
"""
Классификация HTTP ответа: тело ответа или типизированная ошибка Web API.

Статус код проверяется один раз, здесь. Ошибки по статусу никогда не
ретраятся автоматически.
"""

import json
import logging
import math
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional, Union

import requests

from .exceptions import (
    BadGatewayError,
    BadRequestError,
    ForbiddenError,
    InternalServerError,
    NotFoundError,
    ResponseParseError,
    ServiceUnavailableError,
    TooManyRequestsError,
    TransportError,
    UnauthorizedError,
)
from ..utils.sanitizer import mask_sensitive_data

logger = logging.getLogger(__name__)

# Нормальные значения: "60" или "Wed, 21 Oct 2015 07:28:00 GMT"
MAX_RETRY_AFTER_LENGTH = 100

_ERRORS_BY_STATUS = {
    400: BadRequestError,
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
    500: InternalServerError,
    502: BadGatewayError,
    503: ServiceUnavailableError,
}


def _has_entity(response: requests.Response, content: bytes) -> bool:
    if content:
        return True
    if "Content-Length" in response.headers:
        return True
    return "chunked" in response.headers.get("Transfer-Encoding", "").lower()


def read_body(response: requests.Response) -> Optional[str]:
    """
    Прочитать тело ответа как UTF-8.

    Returns:
        Текст тела или None, если у ответа нет entity

    Raises:
        TransportError: I/O ошибка при чтении тела
        ResponseParseError: Тело не является валидным UTF-8
    """
    try:
        content = response.content or b""
    except requests.exceptions.RequestException as e:
        raise TransportError(f"Failed to read response body: {e}", response.url) from e

    if not _has_entity(response, content):
        return None

    try:
        return content.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ResponseParseError(f"Response body is not valid UTF-8: {e}") from e


def extract_error_message(body: Optional[str], default: str) -> str:
    """
    Сообщение об ошибке из JSON тела.

    Приоритет: error_description, затем error.message, иначе default.
    Невалидный JSON игнорируется.

    Examples:
        >>> extract_error_message('{"error": {"status": 429, "message": "rate limited"}}', "Too Many Requests")
        'rate limited'
        >>> extract_error_message('{"error": "invalid_client", "error_description": "Invalid client"}', "Bad Request")
        'Invalid client'
    """
    if not body:
        return default

    try:
        payload = json.loads(body)
    except ValueError:
        return default

    if not isinstance(payload, dict) or "error" not in payload:
        return default

    if "error_description" in payload:
        return str(payload["error_description"])

    error = payload["error"]
    if isinstance(error, dict) and "message" in error:
        return str(error["message"])

    return default


def parse_retry_after(value: Optional[str]) -> Optional[int]:
    """
    Распарсить Retry-After в целые секунды.

    Поддерживаются delta-seconds и HTTP-date. Слишком длинные и
    нераспознанные значения игнорируются (None).

    Examples:
        >>> parse_retry_after("5")
        5
        >>> parse_retry_after("soon") is None
        True
    """
    if value is None:
        return None

    value = value.strip()
    if not value:
        return None

    if len(value) > MAX_RETRY_AFTER_LENGTH:
        logger.warning(
            f"Retry-After header too long ({len(value)} chars), ignoring. "
            f"Value: {value[:50]}..."
        )
        return None

    try:
        seconds = int(value)
    except ValueError:
        try:
            retry_date = parsedate_to_datetime(value)
        except (TypeError, ValueError, OverflowError) as e:
            logger.warning(f"Failed to parse Retry-After header '{value}': {e}")
            return None
        if retry_date.tzinfo is None:
            retry_date = retry_date.replace(tzinfo=timezone.utc)
        delta = (retry_date - datetime.now(timezone.utc)).total_seconds()
        return max(0, math.ceil(delta))

    if seconds < 0:
        logger.warning(f"Retry-After seconds value out of range: {seconds}")
        return None
    return seconds


def classify_response(
    response: requests.Response,
    log: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None
) -> Optional[str]:
    """
    Вернуть тело ответа или выбросить типизированную ошибку.

    Args:
        response: HTTP ответ
        log: Logger для диагностики (по умолчанию логгер модуля)

    Returns:
        Тело ответа (UTF-8) или None, если тела нет

    Raises:
        BadRequestError, UnauthorizedError, ForbiddenError, NotFoundError,
        TooManyRequestsError, InternalServerError, BadGatewayError,
        ServiceUnavailableError: по статус коду
        ResponseParseError: тело не UTF-8
        TransportError: ошибка чтения тела
    """
    log = log or logger
    body = read_body(response)
    log.debug(f"The http response has body {mask_sensitive_data(body)}")

    status_code = response.status_code
    message = extract_error_message(body, response.reason or "")
    log.debug(f"The http response has status code {status_code}")

    url = response.url or None

    if status_code == 429:
        raise TooManyRequestsError(
            message,
            retry_after=parse_retry_after(response.headers.get("Retry-After")),
            url=url,
        )

    error_class = _ERRORS_BY_STATUS.get(status_code)
    if error_class is not None:
        raise error_class(message, url=url)

    return body
