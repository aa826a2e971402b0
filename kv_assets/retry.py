"""Retry configuration for calls to remote blob backends."""

import logging
from collections.abc import Callable
from typing import Any

import httpx
from botocore.exceptions import ConnectionError as BotoConnectionError
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger("kv_assets.retry")


def log_retry(retry_state: RetryCallState) -> None:
    """Log retry attempts."""
    exception = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Retrying %s (attempt %d/%d) after error: %s",
        retry_state.fn.__name__ if retry_state.fn else "unknown",
        retry_state.attempt_number,
        retry_state.retry_object.stop.max_attempt_number,  # type: ignore
        str(exception),
    )


# Transport failures only. HTTP error statuses are passed through, never retried.
RETRYABLE_EXCEPTIONS = (
    ConnectionError,
    TimeoutError,
    httpx.ConnectError,
    httpx.ConnectTimeout,
    httpx.ReadTimeout,
    httpx.RemoteProtocolError,
    BotoConnectionError,
)


def with_retry(
    max_attempts: int = 3,
    max_wait: int = 10,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator for retrying backend calls on transient failures.

    Args:
        max_attempts: Maximum number of attempts
        max_wait: Maximum wait time between retries in seconds

    Usage:
        @with_retry(max_attempts=3)
        async def fetch_listing():
            ...
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, min=1, max=max_wait),
        retry=retry_if_exception_type(RETRYABLE_EXCEPTIONS),
        before_sleep=log_retry,
        reraise=True,
    )


retry_blob_store = with_retry(max_attempts=3, max_wait=5)
