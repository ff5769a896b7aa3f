"""
Retry Strategies using Tenacity.

Standard retry policy for calls to external execution services.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from chainroute.core.logging import get_logger

T = TypeVar("T")

logger = get_logger("resilience.retry")

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


def is_transient_error(exception: BaseException) -> bool:
    """Check if exception is a transient network/infrastructure error."""
    if isinstance(exception, (httpx.TimeoutException, httpx.TransportError)):
        return True
    if isinstance(exception, httpx.HTTPStatusError):
        return exception.response.status_code in RETRYABLE_STATUS_CODES
    return False


def _log_retry(retry_state: Any) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(f"Retrying execution call (attempt {retry_state.attempt_number}): {exc}")


async def execute_with_retry(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    max_attempts: int = 5,
    backoff_multiplier: float = 1.0,
    max_backoff: float = 16.0,
    **kwargs: Any,
) -> T:
    """
    Execute an async function, retrying transient errors with exponential backoff.

    Non-transient errors and the last transient error are re-raised.
    """
    async for attempt in AsyncRetrying(
        retry=retry_if_exception(is_transient_error),
        wait=wait_exponential(multiplier=backoff_multiplier, max=max_backoff),
        stop=stop_after_attempt(max_attempts),
        before_sleep=_log_retry,
        reraise=True,
    ):
        with attempt:
            return await func(*args, **kwargs)
    raise AssertionError("unreachable")  # pragma: no cover
