"""Tests for the server dependency providers."""

from unittest.mock import MagicMock

import pytest

from mcp_bitbucket.exceptions import AuthenticationError, BitbucketAPIError
from mcp_bitbucket.servers.common import check_write_access, tool_error_response
from mcp_bitbucket.servers.context import MainAppContext
from mcp_bitbucket.servers.dependencies import get_bitbucket_fetcher



def _ctx(lifespan_context):
    ctx = MagicMock()
    ctx.request_context.lifespan_context = lifespan_context
    return ctx


class TestGetBitbucketFetcher:
    @pytest.mark.anyio
    async def test_returns_lifespan_fetcher(self):
        fetcher = MagicMock()
        ctx = _ctx({"app_lifespan_context": MainAppContext(bitbucket_fetcher=fetcher)})

        assert await get_bitbucket_fetcher(ctx) is fetcher

    @pytest.mark.anyio
    @pytest.mark.parametrize(
        "lifespan_context",
        [None, {}, {"app_lifespan_context": MainAppContext()}],
    )
    async def test_missing_fetcher(self, lifespan_context):
        with pytest.raises(ValueError, match="Bitbucket client is not configured"):
            await get_bitbucket_fetcher(_ctx(lifespan_context))


class TestCheckWriteAccess:
    def test_allows_writes_by_default(self):
        ctx = _ctx({"app_lifespan_context": MainAppContext()})
        check_write_access(ctx, "bitbucket_issues", "create")

    def test_refuses_in_read_only_mode(self):
        ctx = _ctx({"app_lifespan_context": MainAppContext(read_only=True)})

        with pytest.raises(ValueError, match="Cannot request changes in read-only mode."):
            check_write_access(ctx, "bitbucket_pull_requests", "request_changes")


class TestToolErrorResponse:
    def test_bitbucket_error(self):
        error = BitbucketAPIError("Service unavailable", status_code=503)

        assert tool_error_response("bitbucket_commits", error) == (
            '{\n  "success": false,\n  "error": "Service unavailable",\n'
            '  "error_type": "BitbucketAPIError",\n  "code": "BITBUCKET_API_ERROR"\n}'
        )

    def test_authentication_error_code(self):
        rendered = tool_error_response(
            "bitbucket_commits", AuthenticationError("Token expired")
        )
        assert '"code": "AUTHENTICATION_ERROR"' in rendered

    def test_unexpected_error(self):
        rendered = tool_error_response("bitbucket_commits", RuntimeError("boom"))

        assert '"error_type": "RuntimeError"' in rendered
        assert '"code": "UNKNOWN_ERROR"' in rendered
