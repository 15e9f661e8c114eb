"""
Retry strategy для транспортных ошибок.

Включает:
- Exponential backoff с jitter
- Проверку идемпотентности (POST только с явной пометкой)
- Отказ от повторов для фатальных ошибок (TLS, таймаут пула)

HTTP статусы здесь не рассматриваются: ответ получен, значит повторять нечего.
"""

import random
from typing import Optional

from .config import RetryConfig
from .exceptions import TransportError


class RetryStrategy:
    """
    Stateless retry стратегия, общая для обоих клиентов.

    Номер попытки хранится в цикле вызывающего, поэтому один экземпляр
    безопасно использовать из многих потоков.

    Examples:
        >>> strategy = RetryStrategy(RetryConfig(max_attempts=3))
        >>> attempt = 0
        >>> if strategy.should_retry(attempt, error, idempotent=True):
        >>>     time.sleep(strategy.get_wait_time(attempt))
        >>>     attempt += 1
    """

    def __init__(self, config: Optional[RetryConfig] = None):
        """
        Args:
            config: Конфигурация retry
        """
        self.config = config or RetryConfig()

    def is_idempotent(self, method: str, idempotent: Optional[bool] = None) -> bool:
        """
        Можно ли безопасно повторить запрос.

        Args:
            method: HTTP метод
            idempotent: Явная пометка вызывающего (None = по методу)
        """
        if idempotent is not None:
            return idempotent
        return method.upper() in self.config.idempotent_methods

    def should_retry(
        self,
        attempt: int,
        error: Exception,
        method: str = "GET",
        idempotent: Optional[bool] = None
    ) -> bool:
        """
        Решить нужен ли retry.

        Args:
            attempt: Номер текущей попытки (с нуля)
            error: Классифицированное исключение
            method: HTTP метод
            idempotent: Явная пометка идемпотентности

        Returns:
            True если нужен retry
        """
        # Проверка лимита попыток (не превысит ли следующая попытка лимит)
        if attempt + 1 >= self.config.max_attempts:
            return False

        if not self.is_idempotent(method, idempotent):
            return False

        # Повторяем только отсутствие ответа
        if not isinstance(error, TransportError):
            return False

        return error.retryable

    def is_exhausted(self, attempt: int) -> bool:
        """Попытки закончились."""
        return attempt + 1 >= self.config.max_attempts

    def get_wait_time(self, attempt: int) -> float:
        """
        Вычислить время ожидания перед следующей попыткой.

        Args:
            attempt: Номер текущей попытки (с нуля)

        Returns:
            Секунды для ожидания
        """
        wait = self.config.backoff_base * (self.config.backoff_factor ** attempt)

        # Ограничить максимумом
        wait = min(wait, self.config.backoff_max)

        # Добавить jitter (50-150% от wait)
        if self.config.backoff_jitter:
            jitter = 0.5 + random.random()
            wait = wait * jitter

        return wait

    def __repr__(self) -> str:
        return f"RetryStrategy(max_attempts={self.config.max_attempts})"
