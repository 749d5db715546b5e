"""
Retry wrapper for outbound HTTP calls.

Wraps a single request with bounded-attempt retry, exponential backoff and
additive jitter. Only transport failures and transient statuses are retried;
every other response goes straight back to the caller.
"""

import asyncio
import logging
from typing import Awaitable, Callable, List

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from errors import RetriesExhausted
from models import RetryAttempt

logger = logging.getLogger(__name__)

TRANSIENT_STATUS_CODES = frozenset({429, 503})


def is_transient_status(status_code: int) -> bool:
    """429, 503 and any 5xx may succeed on a later attempt."""
    return status_code in TRANSIENT_STATUS_CODES or 500 <= status_code <= 599


def _is_transient_response(response: httpx.Response) -> bool:
    return is_transient_status(response.status_code)


def backoff_wait(base_delay: float, jitter_max: float):
    """
    Wait strategy: ``base_delay * 2^(n-1) + uniform(0, jitter_max)`` after the
    n-th failed attempt (1-indexed).
    """
    return wait_exponential(multiplier=base_delay, exp_base=2) + wait_random(
        0, jitter_max
    )


async def fetch_with_retry(
    send: Callable[[], Awaitable[httpx.Response]],
    max_attempts: int = 3,
    base_delay: float = 0.5,
    jitter_max: float = 0.3,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> httpx.Response:
    """
    Perform ``send()`` up to ``max_attempts`` times.

    Retries on:
    - httpx.TransportError (DNS, connection refused, read errors, timeouts)
    - Responses with status 429, 503 or any 5xx

    Does NOT retry for:
    - 2xx, 3xx and other 4xx responses (returned as the final result)

    Args:
        send: Zero-argument coroutine factory issuing exactly one request
        max_attempts: Total attempt budget, including the first call
        base_delay: Backoff base in seconds
        jitter_max: Upper bound of the random jitter added to each wait
        sleep: Awaitable used for the wait between attempts

    Returns:
        The first non-transient httpx.Response

    Raises:
        RetriesExhausted: Every attempt was transient; carries the last
            response or exception plus the attempt log
    """
    attempts: List[RetryAttempt] = []

    def _record_retry(retry_state: RetryCallState) -> None:
        delay = retry_state.upcoming_sleep
        outcome = retry_state.outcome
        if outcome.failed:
            error = outcome.exception()
            logger.warning(
                f"Attempt {retry_state.attempt_number}/{max_attempts}: "
                f"{type(error).__name__}: {error}, retrying in {delay:.2f}s"
            )
        else:
            response = outcome.result()
            # Body is already read by the client; log a preview and discard it
            logger.warning(
                f"Attempt {retry_state.attempt_number}/{max_attempts}: upstream "
                f"returned {response.status_code}, retrying in {delay:.2f}s. "
                f"Body: {response.text[:300]}"
            )
        attempts.append(
            RetryAttempt(
                attempt=retry_state.attempt_number, outcome="retriable", delay=delay
            )
        )

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=backoff_wait(base_delay, jitter_max),
        retry=(
            retry_if_exception_type(httpx.TransportError)
            | retry_if_result(_is_transient_response)
        ),
        before_sleep=_record_retry,
        sleep=sleep,
    )

    try:
        response = await retrying(send)
    except RetryError as e:
        last_attempt = e.last_attempt
        attempts.append(
            RetryAttempt(
                attempt=last_attempt.attempt_number, outcome="retriable", delay=None
            )
        )
        if last_attempt.failed:
            error = last_attempt.exception()
            logger.error(
                f"❌ All {max_attempts} attempts failed: {type(error).__name__}: {error}"
            )
            raise RetriesExhausted(attempts, last_error=error) from error
        response = last_attempt.result()
        logger.error(
            f"❌ All {max_attempts} attempts failed, last status {response.status_code}"
        )
        raise RetriesExhausted(attempts, last_response=response) from e

    outcome = "success" if response.is_success else "fatal"
    attempts.append(RetryAttempt(attempt=len(attempts) + 1, outcome=outcome, delay=None))
    return response
