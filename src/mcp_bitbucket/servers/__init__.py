"""FastMCP servers for MCP Bitbucket."""

from .bitbucket import bitbucket_mcp
from .main import BitbucketMCP, main_mcp

__all__ = ["BitbucketMCP", "bitbucket_mcp", "main_mcp"]
