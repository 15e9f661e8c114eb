"""Per-call request model: verb, URI, headers, body."""

import json as _json
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlencode


class HttpVerb(str, Enum):
    """HTTP методы, которые использует Web API."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"

    @property
    def idempotent(self) -> bool:
        return self is not HttpVerb.POST

    @property
    def cacheable(self) -> bool:
        return self is HttpVerb.GET


@dataclass(frozen=True)
class Body:
    """
    Тело запроса (entity): байты + Content-Type.

    Example:
        >>> Body.json({"uris": ["spotify:track:4iV5W9uYEdYUVa79Axb7Rh"]})
        >>> Body.form({"grant_type": "client_credentials"})
    """
    content: bytes
    content_type: Optional[str] = None

    @classmethod
    def json(cls, payload: Any) -> 'Body':
        return cls(
            content=_json.dumps(payload).encode("utf-8"),
            content_type="application/json",
        )

    @classmethod
    def form(cls, fields: Mapping[str, Any]) -> 'Body':
        return cls(
            content=urlencode(fields).encode("utf-8"),
            content_type="application/x-www-form-urlencoded",
        )

    @classmethod
    def text(cls, text: str, content_type: str = "text/plain; charset=UTF-8") -> 'Body':
        return cls(content=text.encode("utf-8"), content_type=content_type)

    def __len__(self) -> int:
        return len(self.content)


@dataclass
class ApiRequest:
    """
    Запрос к Web API, создается на каждый вызов.

    Attributes:
        verb: HTTP метод
        uri: Полный URI (не пустой)
        headers: Заголовки, передаются как есть
        body: Тело (только для POST/PUT/DELETE)
        idempotent: Явная пометка идемпотентности (None = по методу)
        request_id: Идентификатор для корреляции логов

    Raises:
        ValueError: Пустой URI или тело у GET запроса

    Example:
        >>> ApiRequest(HttpVerb.GET, "https://api.spotify.com/v1/me")
    """

    verb: HttpVerb
    uri: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[Body] = None
    idempotent: Optional[bool] = None
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self):
        self.verb = HttpVerb(self.verb.upper() if isinstance(self.verb, str) else self.verb)
        if self.uri is None or not str(self.uri):
            raise ValueError("uri must not be None or empty")
        self.uri = str(self.uri)
        if self.body is not None and self.verb is HttpVerb.GET:
            raise ValueError("GET request cannot carry a body")
        self.headers = dict(self.headers or {})

    @property
    def method(self) -> str:
        return self.verb.value

    @property
    def is_idempotent(self) -> bool:
        if self.idempotent is not None:
            return self.idempotent
        return self.verb.idempotent

    def request_headers(self) -> Dict[str, str]:
        """Заголовки для отправки: Content-Type тела добавляется, только если не задан явно."""
        headers = dict(self.headers)
        if self.body is not None and self.body.content_type:
            if not any(name.lower() == "content-type" for name in headers):
                headers["Content-Type"] = self.body.content_type
        return headers
