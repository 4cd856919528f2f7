"""Dependency provider for the BitbucketFetcher.

Provides get_bitbucket_fetcher for use in tool functions.
"""

from __future__ import annotations

import logging

from fastmcp import Context

from mcp_bitbucket.bitbucket import BitbucketFetcher
from mcp_bitbucket.servers.context import MainAppContext

logger = logging.getLogger("mcp-bitbucket.servers.dependencies")


async def get_bitbucket_fetcher(ctx: Context) -> BitbucketFetcher:
    """Returns the BitbucketFetcher built by the server lifespan.

    Raises:
        ValueError: If the server started without a usable Bitbucket configuration
    """
    lifespan_ctx_dict = ctx.request_context.lifespan_context  # type: ignore
    app_lifespan_ctx: MainAppContext | None = (
        lifespan_ctx_dict.get("app_lifespan_context")
        if isinstance(lifespan_ctx_dict, dict)
        else None
    )
    if app_lifespan_ctx is None or app_lifespan_ctx.bitbucket_fetcher is None:
        logger.error("get_bitbucket_fetcher: no BitbucketFetcher in lifespan context.")
        raise ValueError(
            "Bitbucket client is not configured. Set BITBUCKET_API_TOKEN and "
            "BITBUCKET_USER_EMAIL (or another BITBUCKET_AUTH_METHOD's credentials)."
        )
    return app_lifespan_ctx.bitbucket_fetcher
