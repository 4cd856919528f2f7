"""Unit tests for the command line entry point."""

import os
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from click.testing import CliRunner

from mcp_bitbucket import main
from mcp_bitbucket.servers import main_mcp


@pytest.fixture
def mock_run_async():
    """Replace the server run loop and asyncio.run so nothing is started."""
    with (
        patch.object(main_mcp, "run_async", AsyncMock(return_value=None)) as run_async,
        patch("mcp_bitbucket.asyncio.run", side_effect=lambda coro: coro.close()),
        patch("mcp_bitbucket.load_dotenv") as load_dotenv,
    ):
        run_async.load_dotenv = load_dotenv
        yield run_async


class TestMainTransportSelection:
    def test_stdio_is_the_default(self, mock_run_async):
        with patch.dict(os.environ, {}, clear=True):
            result = CliRunner().invoke(main, [])

        assert result.exit_code == 0, result.output
        mock_run_async.assert_called_once_with(transport="stdio")

    def test_http_transports_receive_host_and_port(self, mock_run_async):
        with patch.dict(os.environ, {}, clear=True):
            result = CliRunner().invoke(
                main,
                ["--transport", "streamable-http", "--host", "127.0.0.1", "--port", "9001"],
            )

        assert result.exit_code == 0, result.output
        mock_run_async.assert_called_once_with(
            transport="streamable-http", host="127.0.0.1", port=9001
        )

    def test_transport_and_port_from_environment(self, mock_run_async):
        with patch.dict(os.environ, {"TRANSPORT": "sse", "PORT": "8123"}, clear=True):
            result = CliRunner().invoke(main, [])

        assert result.exit_code == 0, result.output
        mock_run_async.assert_called_once_with(
            transport="sse", host="0.0.0.0", port=8123
        )

    def test_flags_are_exported_to_environment(self, mock_run_async):
        with patch.dict(os.environ, {}, clear=True):
            result = CliRunner().invoke(
                main,
                [
                    "--read-only",
                    "--enabled-tools",
                    "bitbucket_issues",
                    "--bitbucket-api-token",
                    "token",
                    "--bitbucket-user-email",
                    "dev@example.com",
                    "--bitbucket-workspace",
                    "acme",
                ],
            )
            exported = {
                name: os.environ.get(name)
                for name in (
                    "READ_ONLY_MODE",
                    "ENABLED_TOOLS",
                    "BITBUCKET_API_TOKEN",
                    "BITBUCKET_USER_EMAIL",
                    "BITBUCKET_WORKSPACE",
                )
            }

        assert result.exit_code == 0, result.output
        assert exported == {
            "READ_ONLY_MODE": "true",
            "ENABLED_TOOLS": "bitbucket_issues",
            "BITBUCKET_API_TOKEN": "token",
            "BITBUCKET_USER_EMAIL": "dev@example.com",
            "BITBUCKET_WORKSPACE": "acme",
        }

    def test_env_file_is_loaded(self, mock_run_async, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("BITBUCKET_WORKSPACE=acme\n")

        with patch.dict(os.environ, {}, clear=True):
            result = CliRunner().invoke(main, ["--env-file", str(env_file)])

        assert result.exit_code == 0, result.output
        mock_run_async.load_dotenv.assert_called_once_with(str(env_file))

    def test_server_errors_exit_non_zero(self):
        with (
            patch.dict(os.environ, {}, clear=True),
            patch("mcp_bitbucket.load_dotenv"),
            patch("mcp_bitbucket.asyncio.run", side_effect=RuntimeError("port in use")),
            patch.object(main_mcp, "run_async", MagicMock(return_value=None)),
        ):
            result = CliRunner().invoke(main, [])

        assert result.exit_code == 1
