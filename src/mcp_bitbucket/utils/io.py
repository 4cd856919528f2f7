"""I/O utility functions for MCP Bitbucket."""

from .env import is_env_truthy


def is_read_only_mode() -> bool:
    """Check if the server is running in read-only mode.

    Read-only mode refuses every write action (create, update, delete,
    merge, trigger, ...) while allowing all read actions. This is useful
    when pointing the server at production repositories.

    Returns:
        True if read-only mode is enabled, False otherwise
    """
    return is_env_truthy("READ_ONLY_MODE", "false")
