"""
Иерархия исключений Spotify HTTP Core.

Классификация:
- WebApiError - ответ получен, но статус код означает ошибку Web API
- TransportError - ответ не получен (I/O ошибка, таймаут, пул исчерпан)
- UriSyntaxError, ResponseParseError, ConfigurationError - прочее

Флаги retryable/fatal носят информационный характер: HTTP статусы
никогда не ретраятся автоматически, ретраятся только TransportError.
"""

from typing import Optional

import requests
from urllib3.exceptions import EmptyPoolError

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# BASE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class SpotifyHttpException(Exception):
    """Базовое исключение Spotify HTTP Core."""

    retryable: bool = False
    fatal: bool = False

    def __init__(self, message: str, **kwargs):
        self.message = message
        super().__init__(message)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# WEB API ОШИБКИ (по статус коду)
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class WebApiError(SpotifyHttpException):
    """
    Общая ошибка Web API.

    Args:
        status_code: HTTP статус
        message: Сообщение из тела ответа или reason phrase
        url: URL запроса
    """

    def __init__(self, status_code: int, message: str = "", url: Optional[str] = None):
        self.status_code = status_code
        self.url = url
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status_code={self.status_code}, message={self.message!r})"

class BadRequestError(WebApiError):
    """400 Bad Request."""
    fatal = True

    def __init__(self, message: str = "", url: Optional[str] = None):
        super().__init__(400, message, url)

class UnauthorizedError(WebApiError):
    """401 Unauthorized."""
    fatal = True

    def __init__(self, message: str = "", url: Optional[str] = None):
        super().__init__(401, message, url)

class ForbiddenError(WebApiError):
    """403 Forbidden."""
    fatal = True

    def __init__(self, message: str = "", url: Optional[str] = None):
        super().__init__(403, message, url)

class NotFoundError(WebApiError):
    """404 Not Found."""
    fatal = True

    def __init__(self, message: str = "", url: Optional[str] = None):
        super().__init__(404, message, url)

class TooManyRequestsError(WebApiError):
    """
    429 Rate Limit.

    Args:
        message: Сообщение
        retry_after: Значение Retry-After в секундах (если сервер его прислал)
        url: URL
    """
    retryable = True

    def __init__(
        self,
        message: str = "",
        retry_after: Optional[int] = None,
        url: Optional[str] = None
    ):
        self.retry_after = retry_after
        super().__init__(429, message, url)

class InternalServerError(WebApiError):
    """500 Internal Server Error."""
    retryable = True

    def __init__(self, message: str = "", url: Optional[str] = None):
        super().__init__(500, message, url)

class BadGatewayError(WebApiError):
    """502 Bad Gateway."""
    retryable = True

    def __init__(self, message: str = "", url: Optional[str] = None):
        super().__init__(502, message, url)

class ServiceUnavailableError(WebApiError):
    """503 Service Unavailable."""
    retryable = True

    def __init__(self, message: str = "", url: Optional[str] = None):
        super().__init__(503, message, url)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# TRANSPORT ОШИБКИ (ответ не получен)
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TransportError(SpotifyHttpException):
    """I/O ошибка при отправке запроса."""
    retryable = True

    def __init__(self, message: str, url: Optional[str] = None):
        self.url = url
        full_message = f"{message}"
        if url:
            full_message += f" (url: {url})"
        super().__init__(full_message)

class TimeoutError(TransportError):
    """
    Таймаут запроса.

    Args:
        message: Сообщение об ошибке
        url: URL запроса
        timeout_type: Тип таймаута ('connect' или 'response')
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        timeout_type: Optional[str] = None
    ):
        self.timeout_type = timeout_type

        msg = message
        if timeout_type:
            msg += f" ({timeout_type} timeout)"

        super().__init__(msg, url)

class ConnectionError(TransportError):
    """
    Ошибка подключения.

    Примеры:
    - Connection refused
    - Connection reset
    - TLS handshake failed
    """
    pass

class TLSError(ConnectionError):
    """Ошибка TLS (сертификат, handshake). Повтор не поможет."""
    retryable = False

class ProxyError(TransportError):
    """
    Ошибка прокси.

    Args:
        message: Сообщение
        url: URL
        proxy: Адрес прокси
    """

    def __init__(self, message: str, url: Optional[str] = None, proxy: Optional[str] = None):
        self.proxy = proxy
        msg = message
        if proxy:
            msg += f" (proxy: {proxy})"
        super().__init__(msg, url)

class ConnectionRequestTimeoutError(TransportError):
    """Не удалось получить соединение из пула за connection_request_timeout."""
    retryable = False

class TooManyRetriesError(TransportError):
    """
    Исчерпаны все retry попытки.

    Args:
        max_retries: Количество повторов
        last_error: Последняя ошибка
        url: URL
    """
    retryable = False

    def __init__(
        self,
        max_retries: int,
        last_error: Optional[Exception] = None,
        url: Optional[str] = None
    ):
        self.max_retries = max_retries
        self.last_error = last_error

        msg = f"Max retries ({max_retries}) exceeded"
        if last_error:
            msg += f". Last error: {str(last_error)}"

        super().__init__(msg, url)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ПРОЧИЕ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class UriSyntaxError(SpotifyHttpException):
    """Невалидный URI."""
    fatal = True

    def __init__(self, uri: str, reason: str = ""):
        self.uri = uri
        msg = f'URI Syntax Exception for "{uri}"'
        if reason:
            msg += f": {reason}"
        super().__init__(msg)

class ResponseParseError(SpotifyHttpException):
    """Тело ответа не удалось декодировать как UTF-8."""
    fatal = True

class ConfigurationError(SpotifyHttpException):
    """Ошибка конфигурации."""
    fatal = True

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# УТИЛИТЫ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def classify_transport_exception(
    exc: Exception,
    url: Optional[str] = None
) -> SpotifyHttpException:
    """
    Конвертировать исключения requests/urllib3 в наши.

    Args:
        exc: Исключение транспорта
        url: URL запроса

    Returns:
        Наше исключение с правильной классификацией

    Examples:
        >>> exc = requests.exceptions.ConnectTimeout()
        >>> our_exc = classify_transport_exception(exc, "https://api.spotify.com/v1/me")
        >>> assert isinstance(our_exc, TimeoutError)
        >>> assert our_exc.timeout_type == "connect"
    """

    if isinstance(exc, EmptyPoolError):
        return ConnectionRequestTimeoutError("Timeout waiting for connection from pool", url)

    elif isinstance(exc, requests.exceptions.ConnectTimeout):
        return TimeoutError("Request timeout", url, timeout_type="connect")

    elif isinstance(exc, requests.exceptions.Timeout):
        return TimeoutError("Request timeout", url, timeout_type="response")

    elif isinstance(exc, requests.exceptions.ProxyError):
        return ProxyError("Proxy error", url)

    elif isinstance(exc, requests.exceptions.SSLError):
        return TLSError(f"TLS error: {exc}", url)

    elif isinstance(exc, requests.exceptions.ConnectionError):
        return ConnectionError(f"Connection error: {exc}", url)

    elif isinstance(exc, (requests.exceptions.RequestException, OSError)):
        return TransportError(f"Request failed: {exc}", url)

    else:
        # Неизвестная ошибка - оборачиваем
        return SpotifyHttpException(str(exc))
