"""Async retry with exponential backoff and jitter for Taddy API calls.

Only transient failures are retried: timeouts, connection errors and HTTP 5xx.
Quota exhaustion and schema mismatches are returned to the caller at once,
since repeating the same request cannot change their outcome.
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional, TypeVar

import httpx

from .errors import TaddyHTTPError, is_quota_exhausted_error, is_schema_mismatch_error

logger = logging.getLogger("taddy_client")

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 2
DEFAULT_BASE_DELAY = 1.0
DEFAULT_MAX_DELAY = 10.0
DEFAULT_BACKOFF_MULTIPLIER = 2.0
DEFAULT_JITTER_FACTOR = 0.1

HTTP_MAX_DELAY = 5.0


def is_retryable_error(error: BaseException) -> bool:
    """Determine if an error is a transient transport or server failure.

    Args:
        error: Exception to classify

    Returns:
        True for timeouts, connection errors and HTTP 5xx, False otherwise
    """
    if is_quota_exhausted_error(error) or is_schema_mismatch_error(error):
        return False
    if isinstance(error, TaddyHTTPError):
        return 500 <= error.status_code < 600
    if isinstance(error, (httpx.TimeoutException, httpx.NetworkError, asyncio.TimeoutError)):
        return True

    message = str(error).lower()
    return any(
        indicator in message
        for indicator in ("timeout", "timed out", "connection reset", "connection refused")
    )


def calculate_delay(
    attempt: int,
    base_delay: float,
    max_delay: float,
    backoff_multiplier: float,
    jitter_factor: float,
) -> float:
    """Delay in seconds before the attempt following ``attempt`` (1-based)."""
    delay = min(base_delay * backoff_multiplier ** (attempt - 1), max_delay)
    jitter = (random.random() - 0.5) * 2 * delay * jitter_factor
    return max(0.0, delay + jitter)


async def with_retry(
    func: Callable[[], Awaitable[T]],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay: float = DEFAULT_BASE_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
    backoff_multiplier: float = DEFAULT_BACKOFF_MULTIPLIER,
    jitter_factor: float = DEFAULT_JITTER_FACTOR,
    should_retry: Optional[Callable[[BaseException, int], bool]] = None,
) -> T:
    """Await ``func()`` until it succeeds, retrying transient failures.

    Args:
        func: Zero-argument coroutine function to call
        max_attempts: Total number of attempts, including the first
        base_delay: Delay before the second attempt, in seconds
        max_delay: Upper bound of any single delay, in seconds
        backoff_multiplier: Growth factor of the delay between attempts
        jitter_factor: Random variation applied to each delay (0-1)
        should_retry: ``(error, attempt) -> bool``; defaults to
            ``is_retryable_error``

    Returns:
        The result of the first successful call

    Raises:
        Exception: The last error, once attempts are exhausted or the error
            is not retryable
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    should_retry = should_retry or (lambda error, attempt: is_retryable_error(error))

    for attempt in range(1, max_attempts + 1):
        try:
            result = await func()
        except Exception as e:
            is_last_attempt = attempt == max_attempts
            retry = not is_last_attempt and should_retry(e, attempt)
            logger.warning(
                f"Attempt {attempt}/{max_attempts} failed: {type(e).__name__}: {e} "
                f"(retry={retry})"
            )
            if not retry:
                raise
            delay = calculate_delay(
                attempt, base_delay, max_delay, backoff_multiplier, jitter_factor
            )
            logger.debug(f"Waiting {delay:.2f}s before attempt {attempt + 1}")
            await asyncio.sleep(delay)
        else:
            if attempt > 1:
                logger.info(f"Succeeded on attempt {attempt}/{max_attempts}")
            return result

    raise RuntimeError("Retry logic error: no attempt was made")


async def with_http_retry(
    func: Callable[[], Awaitable[T]],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay: float = DEFAULT_BASE_DELAY,
    max_delay: float = HTTP_MAX_DELAY,
    **kwargs,
) -> T:
    """``with_retry`` preset for API requests: 2 attempts, 1s base, 5s cap."""
    return await with_retry(
        func,
        max_attempts=max_attempts,
        base_delay=base_delay,
        max_delay=max_delay,
        **kwargs,
    )
