"""Tests for the main MCP server setup."""

import json
import os
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastmcp import Client
from fastmcp.client import FastMCPTransport

from mcp_bitbucket.bitbucket import BitbucketFetcher
from mcp_bitbucket.exceptions import ConfigurationError
from mcp_bitbucket.servers.bitbucket import bitbucket_mcp
from mcp_bitbucket.servers.context import MainAppContext
from mcp_bitbucket.servers.main import (
    BitbucketMCP,
    EnabledToolsMiddleware,
    health_check,
    main_lifespan,
    main_mcp,
)

ALL_TOOLS = {
    "bitbucket_workspaces",
    "bitbucket_repositories",
    "bitbucket_pull_requests",
    "bitbucket_branches",
    "bitbucket_commits",
    "bitbucket_pipelines",
    "bitbucket_issues",
    "bitbucket_webhooks",
}


@pytest.mark.anyio
async def test_health_check():
    response = await health_check(MagicMock())

    assert response.status_code == 200
    assert json.loads(response.body) == {"status": "ok"}


@pytest.mark.anyio
async def test_main_server_registers_all_tools():
    tools = await main_mcp.get_tools()
    assert set(tools) == ALL_TOOLS


def _filtered_server(enabled_tools):
    @asynccontextmanager
    async def test_lifespan(app):
        yield {"app_lifespan_context": MainAppContext(enabled_tools=enabled_tools)}

    test_mcp = BitbucketMCP("TestBitbucket", lifespan=test_lifespan)
    test_mcp.mount(bitbucket_mcp)
    return test_mcp


@pytest.mark.anyio
async def test_list_tools_without_filter_returns_everything():
    async with Client(transport=FastMCPTransport(_filtered_server(None))) as client:
        tools = await client.list_tools()

    assert {tool.name for tool in tools} == ALL_TOOLS


@pytest.mark.anyio
async def test_list_tools_honours_enabled_tools():
    test_mcp = _filtered_server(["bitbucket_pull_requests", "bitbucket_issues"])

    async with Client(transport=FastMCPTransport(test_mcp)) as client:
        tools = await client.list_tools()

    assert {tool.name for tool in tools} == {
        "bitbucket_pull_requests",
        "bitbucket_issues",
    }


def _named_tool(name):
    tool = MagicMock()
    tool.name = name
    return tool


class TestEnabledToolsMiddleware:
    @pytest.mark.anyio
    async def test_filters_by_lifespan_allow_list(self):
        request_context = MagicMock()
        request_context.lifespan_context = {
            "app_lifespan_context": MainAppContext(enabled_tools=["bitbucket_issues"])
        }
        context = MagicMock()
        context.fastmcp_context.request_context = request_context
        call_next = AsyncMock(
            return_value=[_named_tool("bitbucket_issues"), _named_tool("bitbucket_commits")]
        )

        tools = await EnabledToolsMiddleware().on_list_tools(context, call_next)

        assert [tool.name for tool in tools] == ["bitbucket_issues"]
        call_next.assert_awaited_once_with(context)

    @pytest.mark.anyio
    async def test_falls_back_to_environment_without_lifespan(self):
        context = MagicMock()
        context.fastmcp_context = None
        call_next = AsyncMock(
            return_value=[_named_tool("bitbucket_issues"), _named_tool("bitbucket_commits")]
        )

        with patch.dict(os.environ, {"ENABLED_TOOLS": "bitbucket_commits"}, clear=True):
            tools = await EnabledToolsMiddleware().on_list_tools(context, call_next)

        assert [tool.name for tool in tools] == ["bitbucket_commits"]

    @pytest.mark.anyio
    async def test_no_filter_keeps_every_tool(self):
        context = MagicMock()
        context.fastmcp_context = None
        call_next = AsyncMock(return_value=[_named_tool(name) for name in ALL_TOOLS])

        with patch.dict(os.environ, {}, clear=True):
            tools = await EnabledToolsMiddleware().on_list_tools(context, call_next)

        assert {tool.name for tool in tools} == ALL_TOOLS


class TestMainLifespan:
    @pytest.mark.anyio
    async def test_builds_fetcher_from_environment(self):
        env = {
            "BITBUCKET_API_TOKEN": "token",
            "BITBUCKET_USER_EMAIL": "dev@example.com",
            "BITBUCKET_WORKSPACE": "acme",
            "READ_ONLY_MODE": "true",
            "ENABLED_TOOLS": "bitbucket_issues",
        }
        with patch.dict(os.environ, env, clear=True):
            async with main_lifespan(main_mcp) as state:
                app_context = state["app_lifespan_context"]

                assert isinstance(app_context.bitbucket_fetcher, BitbucketFetcher)
                assert app_context.bitbucket_config.workspace == "acme"
                assert app_context.read_only is True
                assert app_context.enabled_tools == ["bitbucket_issues"]

        assert app_context.bitbucket_fetcher._http.is_closed

    @pytest.mark.anyio
    async def test_missing_credentials_leave_fetcher_unset(self):
        with patch.dict(os.environ, {}, clear=True):
            async with main_lifespan(main_mcp) as state:
                app_context = state["app_lifespan_context"]

        assert app_context.bitbucket_fetcher is None
        assert app_context.read_only is False
        assert app_context.enabled_tools is None

    @pytest.mark.anyio
    async def test_failed_validation_still_starts(self):
        env = {
            "BITBUCKET_AUTH_METHOD": "oauth",
            "BITBUCKET_OAUTH_REFRESH_TOKEN": "stale",
        }
        with (
            patch.dict(os.environ, env, clear=True),
            patch(
                "mcp_bitbucket.servers.main.validate_auth",
                AsyncMock(return_value=False),
            ) as mock_validate,
        ):
            async with main_lifespan(main_mcp) as state:
                assert state["app_lifespan_context"].bitbucket_fetcher is not None

        mock_validate.assert_awaited_once()

    @pytest.mark.anyio
    async def test_invalid_configuration_aborts_startup(self):
        with patch.dict(os.environ, {"BITBUCKET_TIMEOUT": "never"}, clear=True):
            with pytest.raises(ConfigurationError):
                async with main_lifespan(main_mcp):
                    pass
