"""Tests for the BitbucketClient request executor."""

import base64

import httpx
import pytest

from mcp_bitbucket.bitbucket.client import BitbucketClient
from mcp_bitbucket.bitbucket.config import BitbucketConfig
from mcp_bitbucket.exceptions import (
    AuthenticationError,
    AuthorizationError,
    BitbucketAPIError,
    BitbucketTimeoutError,
    NotFoundError,
    RateLimitError,
    ValidationError,
)


class TestBuildUrl:
    def test_relative_endpoint_is_joined_to_base_url(self, fetcher):
        assert (
            fetcher.build_url("/repositories/acme")
            == "https://api.bitbucket.org/2.0/repositories/acme"
        )
        assert (
            fetcher.build_url("repositories/acme")
            == "https://api.bitbucket.org/2.0/repositories/acme"
        )

    def test_absolute_url_is_used_verbatim(self, fetcher):
        url = "https://api.bitbucket.org/2.0/repositories/acme?page=2"
        assert fetcher.build_url(url) == url

    def test_none_params_are_dropped_and_bools_lowercased(self, fetcher):
        url = fetcher.build_url(
            "/repositories/acme", {"q": None, "active": True, "pagelen": 10}
        )
        assert url == "https://api.bitbucket.org/2.0/repositories/acme?active=true&pagelen=10"

    def test_server_url_with_basic_auth(self, make_fetcher, api):
        config = BitbucketConfig(
            auth_method="basic",
            username="admin",
            password="secret",
            server_url="https://git.example.com/",
        )
        client = make_fetcher(api, config=config)
        assert (
            client.build_url("/projects")
            == "https://git.example.com/rest/api/1.0/projects"
        )


class TestRequest:
    @pytest.mark.anyio
    async def test_get_sends_auth_and_accept_headers(self, fetcher, api):
        api.queue(json_body={"slug": "acme"})

        result = await fetcher.get("/workspaces/acme")

        assert result == {"slug": "acme"}
        request = api.last_request
        assert request.method == "GET"
        expected = base64.b64encode(b"dev@example.com:test-token").decode()
        assert request.headers["authorization"] == f"Basic {expected}"
        assert request.headers["accept"] == "application/json"
        assert "content-type" not in request.headers

    @pytest.mark.anyio
    async def test_post_sends_json_body(self, fetcher, api):
        api.queue(status_code=201, json_body={"id": 1})

        result = await fetcher.post("/repositories/acme/api/pullrequests", {"title": "Fix"})

        assert result == {"id": 1}
        assert api.last_request.headers["content-type"] == "application/json"
        assert api.last_json() == {"title": "Fix"}

    @pytest.mark.anyio
    async def test_extra_headers_are_applied_last(self, fetcher, api):
        await fetcher.request("/user", headers={"Accept": "application/xml"})
        assert api.last_request.headers["accept"] == "application/xml"

    @pytest.mark.anyio
    async def test_no_content_returns_empty_dict(self, fetcher, api):
        api.queue(status_code=204)
        assert await fetcher.delete("/repositories/acme/api") == {}

    @pytest.mark.anyio
    async def test_undecodable_json_returns_empty_dict(self, fetcher, api):
        api.queue(text="not json", headers={"content-type": "application/json"})
        assert await fetcher.get("/user") == {}

    @pytest.mark.anyio
    async def test_raw_returns_text(self, fetcher, api):
        api.queue(text="diff --git a/README.md b/README.md")

        result = await fetcher.get_raw("/repositories/acme/api/diff/main..dev")

        assert result == "diff --git a/README.md b/README.md"
        assert api.last_request.headers["accept"] == "text/plain, */*"


class TestErrorHandling:
    @pytest.mark.anyio
    async def test_not_found_is_raised_without_retry(self, fetcher, api, sleeps):
        api.queue(status_code=404, json_body={"type": "error"})

        with pytest.raises(NotFoundError) as exc_info:
            await fetcher.get("/repositories/acme/missing")

        assert str(exc_info.value) == "Resource not found: /repositories/acme/missing"
        assert exc_info.value.status_code == 404
        assert len(api.requests) == 1
        assert sleeps == []

    @pytest.mark.anyio
    @pytest.mark.parametrize(
        "status_code, error_class",
        [
            (400, ValidationError),
            (401, AuthenticationError),
            (403, AuthorizationError),
        ],
    )
    async def test_client_errors_are_classified(
        self, fetcher, api, status_code, error_class
    ):
        api.queue(
            status_code=status_code,
            json_body={"type": "error", "error": {"message": "Nope"}},
        )

        with pytest.raises(error_class, match="Nope"):
            await fetcher.get("/repositories/acme/api")

        assert len(api.requests) == 1

    @pytest.mark.anyio
    async def test_server_error_is_retried_with_backoff(self, fetcher, api, sleeps):
        api.queue(status_code=500, json_body={"error": {"message": "boom"}})
        api.queue(json_body={"slug": "api"})

        result = await fetcher.get("/repositories/acme/api")

        assert result == {"slug": "api"}
        assert len(api.requests) == 2
        assert sleeps == [1.0]

    @pytest.mark.anyio
    async def test_retries_exhausted_raise_last_error(self, make_fetcher, api, sleeps):
        config = BitbucketConfig(
            api_token="t", user_email="dev@example.com", max_retries=2
        )
        client = make_fetcher(api, config=config)
        for _ in range(3):
            api.queue(status_code=503, json_body={"message": "unavailable"})

        with pytest.raises(BitbucketAPIError) as exc_info:
            await client.get("/repositories/acme")

        assert exc_info.value.status_code == 503
        assert exc_info.value.message == "unavailable"
        assert len(api.requests) == 3
        assert sleeps == [1.0, 2.0]

    @pytest.mark.anyio
    async def test_rate_limit_waits_retry_after(self, fetcher, api, sleeps):
        api.queue(status_code=429, json_body={"retry_after": 2})
        api.queue(json_body={"values": []})

        result = await fetcher.get("/repositories/acme")

        assert result == {"values": []}
        assert sleeps == [2.0]

    @pytest.mark.anyio
    async def test_rate_limit_without_retry_after_uses_retry_delay(
        self, fetcher, api, sleeps
    ):
        api.queue(status_code=429)
        api.queue(json_body={})

        await fetcher.get("/repositories/acme")

        assert sleeps == [1.0]

    @pytest.mark.anyio
    async def test_rate_limit_without_budget_propagates(self, make_fetcher, api):
        config = BitbucketConfig(
            api_token="t", user_email="dev@example.com", max_retries=0
        )
        client = make_fetcher(api, config=config)
        api.queue(status_code=429, json_body={"retry_after": 30})

        with pytest.raises(RateLimitError) as exc_info:
            await client.get("/repositories/acme")

        assert exc_info.value.retry_after == 30
        assert len(api.requests) == 1

    @pytest.mark.anyio
    async def test_timeout_is_not_retried(self, fetcher, api, sleeps):
        api.queue_exception(lambda request: httpx.ReadTimeout("slow", request=request))

        with pytest.raises(BitbucketTimeoutError, match="Request timeout after 30000ms"):
            await fetcher.get("/repositories/acme")

        assert len(api.requests) == 1
        assert sleeps == []

    @pytest.mark.anyio
    async def test_timeout_override_is_reported(self, fetcher, api):
        api.queue_exception(lambda request: httpx.ReadTimeout("slow", request=request))

        with pytest.raises(BitbucketTimeoutError) as exc_info:
            await fetcher.request("/repositories/acme", timeout=500)

        assert exc_info.value.timeout_ms == 500
        assert exc_info.value.code == "TIMEOUT_ERROR"

    @pytest.mark.anyio
    async def test_network_error_is_retried_then_wrapped(
        self, make_fetcher, api, sleeps
    ):
        config = BitbucketConfig(
            api_token="t", user_email="dev@example.com", max_retries=1
        )
        client = make_fetcher(api, config=config)
        for _ in range(2):
            api.queue_exception(
                lambda request: httpx.ConnectError("refused", request=request)
            )

        with pytest.raises(BitbucketAPIError, match="Network error: refused"):
            await client.get("/repositories/acme")

        assert len(api.requests) == 2
        assert sleeps == [1.0]

    @pytest.mark.anyio
    async def test_redirect_loop_is_wrapped_without_retry(self, make_fetcher, sleeps):
        calls = []

        def redirect_to_self(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(302, headers={"location": str(request.url)})

        client = make_fetcher(redirect_to_self)

        with pytest.raises(BitbucketAPIError, match="Request error") as exc_info:
            await client.get("/repositories/acme")

        assert isinstance(exc_info.value.__cause__, httpx.TooManyRedirects)
        assert exc_info.value.status_code is None
        assert exc_info.value.endpoint == "/repositories/acme"
        assert sleeps == []
        # One attempt: the initial request plus httpx's redirect hops
        assert len(calls) == 21

    @pytest.mark.anyio
    async def test_corrupt_compressed_body_is_wrapped(self, fetcher, api, sleeps):
        api.queue(
            text="definitely not gzip",
            headers={"content-type": "application/json", "content-encoding": "gzip"},
        )

        with pytest.raises(BitbucketAPIError, match="Request error") as exc_info:
            await fetcher.get("/repositories/acme")

        assert isinstance(exc_info.value.__cause__, httpx.DecodingError)
        assert len(api.requests) == 1
        assert sleeps == []

    @pytest.mark.anyio
    async def test_network_error_recovers(self, fetcher, api):
        api.queue_exception(lambda request: httpx.ConnectError("reset", request=request))
        api.queue(json_body={"ok": True})

        assert await fetcher.get("/user") == {"ok": True}


class TestPagination:
    @pytest.mark.anyio
    async def test_get_all_pages_follows_next(self, fetcher, api):
        api.queue(
            json_body={
                "page": 1,
                "values": [{"slug": "a"}],
                "next": "https://api.bitbucket.org/2.0/repositories/acme?page=2",
            }
        )
        api.queue(json_body={"page": 2, "values": [{"slug": "b"}]})

        values = await fetcher.get_all_pages("/repositories/acme", pagelen=1)

        assert values == [{"slug": "a"}, {"slug": "b"}]
        assert [r.url.params["page"] for r in api.requests] == ["1", "2"]
        assert api.requests[0].url.params["pagelen"] == "1"

    @pytest.mark.anyio
    async def test_get_all_pages_respects_max_pages(self, fetcher, api):
        for page in range(1, 4):
            api.queue(
                json_body={
                    "values": [page],
                    "next": f"https://api.bitbucket.org/2.0/x?page={page + 1}",
                }
            )

        values = await fetcher.get_all_pages("/x", max_pages=2)

        assert values == [1, 2]
        assert len(api.requests) == 2


@pytest.mark.anyio
async def test_client_closes_as_context_manager(bitbucket_config, api):
    async with BitbucketClient(
        config=bitbucket_config, transport=httpx.MockTransport(api)
    ) as client:
        await client.get("/user")
    assert client._http.is_closed
