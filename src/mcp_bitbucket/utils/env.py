"""Environment variable utility functions for MCP Bitbucket."""

import os

from ..exceptions import ConfigurationError


def is_env_truthy(env_var_name: str, default: str = "") -> bool:
    """Check if environment variable is set to a truthy value.

    Considers 'true', '1', 'yes', 'y', 'on' as truthy values (case-insensitive).

    Args:
        env_var_name: Name of the environment variable to check
        default: Default value if environment variable is not set

    Returns:
        True if the environment variable is set to a truthy value, False otherwise
    """
    return os.getenv(env_var_name, default).lower() in ("true", "1", "yes", "y", "on")


def getenv(*names: str, default: str | None = None) -> str | None:
    """Return the first non-empty value among several environment variables.

    Lets a setting accept aliases, e.g. ``BITBUCKET_API_TOKEN`` falling back
    to ``ATLASSIAN_API_TOKEN``.
    """
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return default


def getenv_int(name: str, default: int, minimum: int = 0) -> int:
    """Read an integer environment variable.

    Raises:
        ConfigurationError: If the value is not an integer or is below ``minimum``
    """
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")
    return value
