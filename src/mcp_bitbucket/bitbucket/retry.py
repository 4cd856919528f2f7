"""Retry policy for the Bitbucket request executor.

``should_retry`` decides *whether* a failed attempt is retried and *how long*
to wait first; the executor only sleeps and loops.
"""

from dataclasses import dataclass
from typing import Literal

import httpx

from ..exceptions import BitbucketAPIError, BitbucketTimeoutError, RateLimitError

RetryReason = Literal["rate_limited", "server_error", "transport_error"]


@dataclass(frozen=True)
class RetryDecision:
    """Wait ``delay`` seconds, then retry."""

    delay: float
    reason: RetryReason


def backoff_delay(attempt: int, retry_delay_ms: int) -> float:
    """Exponential backoff in seconds: ``retry_delay * 2**attempt`` milliseconds."""
    return retry_delay_ms * (2**attempt) / 1000


def should_retry(
    error: BaseException, attempt: int, max_retries: int, retry_delay_ms: int
) -> RetryDecision | None:
    """Decide whether the attempt numbered ``attempt`` (0-based) is retried.

    - 429: wait the server's ``retry_after`` seconds, else ``retry_delay`` ms
    - other 4xx: never
    - 5xx and other non-success statuses: exponential backoff
    - transport failures (connection, DNS, TLS): exponential backoff
    - timeouts: never; a slow attempt is not repeated
    - API errors without a status (redirect loops, undecodable bodies): never
    - anything else, or an exhausted budget: never

    Returns:
        A RetryDecision, or None when the error must propagate
    """
    if attempt >= max_retries:
        return None

    if isinstance(error, BitbucketTimeoutError | httpx.TimeoutException):
        return None

    if isinstance(error, RateLimitError):
        if error.retry_after is not None:
            return RetryDecision(delay=float(error.retry_after), reason="rate_limited")
        return RetryDecision(delay=retry_delay_ms / 1000, reason="rate_limited")

    if isinstance(error, BitbucketAPIError):
        status = error.status_code
        if status is None or 400 <= status < 500:
            return None
        return RetryDecision(
            delay=backoff_delay(attempt, retry_delay_ms), reason="server_error"
        )

    if isinstance(error, httpx.TransportError):
        return RetryDecision(
            delay=backoff_delay(attempt, retry_delay_ms), reason="transport_error"
        )

    return None
