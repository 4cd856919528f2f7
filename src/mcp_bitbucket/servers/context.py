from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from mcp_bitbucket.bitbucket import BitbucketFetcher
    from mcp_bitbucket.bitbucket.config import BitbucketConfig


@dataclass(frozen=True)
class MainAppContext:
    """Context holding the shared fetcher, its config and server settings."""

    bitbucket_fetcher: BitbucketFetcher | None = None
    bitbucket_config: BitbucketConfig | None = None
    read_only: bool = False
    enabled_tools: list[str] | None = None
