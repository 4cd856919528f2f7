"""Shared pytest configuration for MCP Bitbucket tests."""

import pytest


@pytest.fixture
def anyio_backend():
    """Run anyio-marked tests on asyncio only."""
    return "asyncio"
