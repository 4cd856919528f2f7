"""Pytest fixtures for Bitbucket client tests."""

import json
from typing import Any

import httpx
import pytest

from mcp_bitbucket.bitbucket import BitbucketFetcher
from mcp_bitbucket.bitbucket.config import BitbucketConfig


class ApiRecorder:
    """MockTransport handler that records requests and replays queued responses.

    When the queue is empty every request gets ``200 {}``.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._responses: list[Any] = []

    def queue(
        self,
        status_code: int = 200,
        json_body: Any = None,
        text: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self._responses.append((status_code, json_body, text, headers))

    def queue_exception(self, exc_factory) -> None:
        self._responses.append(exc_factory)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> Any:
        return json.loads(self.last_request.content)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._responses:
            return httpx.Response(200, json={})
        item = self._responses.pop(0)
        if callable(item):
            raise item(request)
        status_code, json_body, text, headers = item
        if text is not None:
            return httpx.Response(
                status_code,
                text=text,
                headers=headers or {"content-type": "text/plain"},
            )
        if json_body is None and status_code == 204:
            return httpx.Response(204)
        return httpx.Response(status_code, json=json_body or {}, headers=headers)


@pytest.fixture
def bitbucket_config():
    """Create a BitbucketConfig using API token auth."""
    return BitbucketConfig(
        auth_method="api_token",
        api_token="test-token",
        user_email="dev@example.com",
        workspace="acme",
    )


@pytest.fixture
def api():
    """A fresh request recorder."""
    return ApiRecorder()


@pytest.fixture
def sleeps():
    """Backoff delays requested by the client, in seconds."""
    return []


@pytest.fixture
def make_fetcher(bitbucket_config, sleeps):
    """Factory building a BitbucketFetcher on top of a MockTransport."""

    async def fake_sleep(delay: float) -> None:
        sleeps.append(delay)

    def factory(handler, config: BitbucketConfig | None = None) -> BitbucketFetcher:
        return BitbucketFetcher(
            config=config or bitbucket_config,
            transport=httpx.MockTransport(handler),
            sleep=fake_sleep,
        )

    return factory


@pytest.fixture
def fetcher(make_fetcher, api):
    """BitbucketFetcher wired to the ``api`` recorder."""
    return make_fetcher(api)
