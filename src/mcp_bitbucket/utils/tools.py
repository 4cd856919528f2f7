"""Tool allow-list helpers."""

import logging
import os

logger = logging.getLogger("mcp-bitbucket.utils.tools")


def get_enabled_tools() -> list[str] | None:
    """Parse the ENABLED_TOOLS env var into a list of tool names.

    Returns:
        The tool names, or None when ENABLED_TOOLS is unset or blank
        (every tool is enabled).

    Examples:
        ENABLED_TOOLS unset -> None
        ENABLED_TOOLS="bitbucket_repositories, bitbucket_pull_requests"
            -> ["bitbucket_repositories", "bitbucket_pull_requests"]
    """
    raw = os.getenv("ENABLED_TOOLS")
    if not raw or not raw.strip():
        return None
    tools = [name.strip() for name in raw.split(",") if name.strip()]
    logger.debug(f"ENABLED_TOOLS: {tools}")
    return tools or None


def should_include_tool(tool_name: str, enabled_tools: list[str] | None) -> bool:
    """Check whether ``tool_name`` passes the allow-list (None allows everything)."""
    if enabled_tools is None:
        return True
    return tool_name in enabled_tools
