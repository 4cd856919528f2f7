"""Tests for the retry policy."""

import httpx
import pytest

from mcp_bitbucket.bitbucket.retry import backoff_delay, should_retry
from mcp_bitbucket.exceptions import (
    AuthenticationError,
    BitbucketAPIError,
    BitbucketTimeoutError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)


def test_backoff_doubles_per_attempt():
    assert [backoff_delay(n, 1000) for n in range(4)] == [1.0, 2.0, 4.0, 8.0]


@pytest.mark.parametrize(
    "error",
    [
        ValidationError("bad"),
        AuthenticationError("expired"),
        NotFoundError("Resource", "/x"),
        BitbucketAPIError("conflict", status_code=409),
        BitbucketAPIError("Request error: too many redirects"),
        BitbucketTimeoutError(30000),
        ValueError("not an API error"),
    ],
)
def test_never_retried(error):
    assert should_retry(error, 0, 3, 1000) is None


def test_server_error_uses_exponential_backoff():
    error = BitbucketAPIError("boom", status_code=502)

    decision = should_retry(error, 2, 3, 500)

    assert decision.delay == 2.0
    assert decision.reason == "server_error"


def test_rate_limit_honours_retry_after():
    decision = should_retry(RateLimitError(retry_after=7), 0, 3, 1000)
    assert decision.delay == 7.0
    assert decision.reason == "rate_limited"


def test_rate_limit_falls_back_to_retry_delay():
    decision = should_retry(RateLimitError(), 2, 3, 1500)
    assert decision.delay == 1.5


def test_transport_error_is_retried():
    decision = should_retry(httpx.ConnectError("refused"), 1, 3, 1000)
    assert decision.delay == 2.0
    assert decision.reason == "transport_error"


def test_transport_timeout_is_not_retried():
    assert should_retry(httpx.ReadTimeout("slow"), 0, 3, 1000) is None


def test_budget_exhausted():
    error = BitbucketAPIError("boom", status_code=500)
    assert should_retry(error, 3, 3, 1000) is None
    assert should_retry(RateLimitError(retry_after=1), 0, 0, 1000) is None
