"""Backoff policy for transient record service reads.

Writes are never retried automatically; only idempotent queries and the
account status check go through :class:`ReadRetryPolicy`.

Updates:
  v0.2.0 - 2026-09-07 - Replace free-standing helpers with a policy object per client.
  v0.1.0 - 2026-08-30 - Add async exponential backoff retry helper.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger("prompt_playground.retry")

_RETRYABLE_HTTP_STATUS_CODES = {408, 429}


def is_retryable_http_status(status_code: int) -> bool:
    """Return ``True`` for request timeouts, throttling, and server-side failures."""
    return status_code in _RETRYABLE_HTTP_STATUS_CODES or 500 <= status_code < 600


def is_retryable_httpx_error(exc: BaseException) -> bool:
    """Return ``True`` when *exc* is an httpx failure worth another attempt."""
    if isinstance(exc, httpx.HTTPStatusError):
        return is_retryable_http_status(exc.response.status_code)
    return isinstance(exc, (httpx.TimeoutException, httpx.TransportError))


@dataclass(slots=True, frozen=True)
class ReadRetryPolicy:
    """Exponential backoff with proportional jitter.

    ``max_attempts`` counts the first call; ``base_delay_seconds`` is the
    pause before the second attempt and doubles up to ``max_delay_seconds``.
    """

    max_attempts: int = 3
    base_delay_seconds: float = 0.5
    max_delay_seconds: float = 4.0
    jitter_fraction: float = 0.1

    def delay_for(self, attempt: int) -> float:
        """Return the pause after failed attempt number *attempt* (1-based)."""
        if self.base_delay_seconds <= 0:
            return 0.0
        delay = min(self.max_delay_seconds, self.base_delay_seconds * (2 ** (attempt - 1)))
        if self.jitter_fraction <= 0:
            return delay
        return delay + delay * self.jitter_fraction * random.random()

    async def run[T](
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        should_retry: Callable[[BaseException], bool] = is_retryable_httpx_error,
    ) -> T:
        """Await *operation*, retrying while *should_retry* accepts the failure."""
        attempts = max(1, self.max_attempts)
        attempt = 1
        while True:
            try:
                return await operation()
            except Exception as exc:
                if attempt >= attempts or not should_retry(exc):
                    raise
                delay = self.delay_for(attempt)
                logger.debug(
                    "Retrying record service read",
                    extra={"attempt": attempt, "delay_seconds": round(delay, 3)},
                )
                if delay:
                    await asyncio.sleep(delay)
                attempt += 1


__all__ = ["ReadRetryPolicy", "is_retryable_http_status", "is_retryable_httpx_error"]
