"""Optional bounded retry of login calls using Tenacity."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .constants import RETRY_BACKOFF_MULTIPLIER, RETRY_MAX_BACKOFF_SECONDS
from .errors import TransportError
from .logs.logger import logger

T = TypeVar("T")


def _log_retry(retry_state: RetryCallState) -> None:
    outcome = retry_state.outcome
    error = outcome.exception() if outcome is not None else None
    logger.log_event(
        "login",
        "retry",
        level=logging.WARNING,
        attempt=retry_state.attempt_number,
        error=str(error),
    )


async def retry_transport(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int,
    *,
    multiplier: float = RETRY_BACKOFF_MULTIPLIER,
    max_wait: float = RETRY_MAX_BACKOFF_SECONDS,
) -> T:
    """Run ``operation``, retrying transport failures with exponential backoff.

    Only ``TransportError`` is retried; everything else propagates at once.
    After ``max_attempts`` the last ``TransportError`` is re-raised unchanged,
    so the caller still fails stop.

    Args:
        operation: Async callable performing one attempt.
        max_attempts: Total number of attempts (1 disables retrying).
        multiplier: Exponential backoff multiplier in seconds.
        max_wait: Upper bound of a single backoff wait in seconds.

    Returns:
        The result of the first successful attempt.
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=multiplier, max=max_wait),
        retry=retry_if_exception_type(TransportError),
        before_sleep=_log_retry,
        reraise=True,
    )
    return await retrying(operation)


__all__ = ["retry_transport"]
