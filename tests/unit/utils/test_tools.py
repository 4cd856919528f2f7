"""Tests for the ENABLED_TOOLS allow-list helpers."""

import os
from unittest.mock import patch

import pytest

from mcp_bitbucket.utils.tools import get_enabled_tools, should_include_tool


@pytest.mark.parametrize("value", [None, "", "   "])
def test_get_enabled_tools_unset(value):
    env = {} if value is None else {"ENABLED_TOOLS": value}
    with patch.dict(os.environ, env, clear=True):
        assert get_enabled_tools() is None


def test_get_enabled_tools_parses_list():
    with patch.dict(
        os.environ,
        {"ENABLED_TOOLS": "bitbucket_repositories, bitbucket_pull_requests,,"},
    ):
        assert get_enabled_tools() == [
            "bitbucket_repositories",
            "bitbucket_pull_requests",
        ]


def test_get_enabled_tools_only_separators():
    with patch.dict(os.environ, {"ENABLED_TOOLS": " , ,"}):
        assert get_enabled_tools() is None


def test_should_include_tool():
    assert should_include_tool("bitbucket_issues", None) is True
    assert should_include_tool("bitbucket_issues", ["bitbucket_issues"]) is True
    assert should_include_tool("bitbucket_issues", ["bitbucket_commits"]) is False
    assert should_include_tool("bitbucket_issues", []) is False
