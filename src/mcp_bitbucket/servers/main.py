"""Main FastMCP server setup for Bitbucket integration."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import Context, FastMCP
from fastmcp.server.middleware import Middleware, MiddlewareContext
from fastmcp.server.middleware.middleware import CallNext
from fastmcp.tools import Tool as FastMCPTool
from starlette.requests import Request
from starlette.responses import JSONResponse

from mcp_bitbucket.bitbucket import BitbucketFetcher, validate_auth
from mcp_bitbucket.bitbucket.config import BitbucketConfig
from mcp_bitbucket.utils.io import is_read_only_mode
from mcp_bitbucket.utils.logging import mask_sensitive
from mcp_bitbucket.utils.tools import get_enabled_tools, should_include_tool

from .bitbucket import bitbucket_mcp
from .context import MainAppContext

logger = logging.getLogger("mcp-bitbucket.server.main")


async def health_check(request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


def _credential_summary(config: BitbucketConfig) -> str:
    secret = (
        config.api_token
        or config.password
        or config.oauth_access_token
        or config.oauth_refresh_token
        or config.oauth_client_secret
    )
    return f"auth_method={config.auth_method}, secret={mask_sensitive(secret)}"


@asynccontextmanager
async def main_lifespan(app: FastMCP[MainAppContext]) -> AsyncIterator[dict]:
    logger.info("Main Bitbucket MCP server lifespan starting...")
    read_only = is_read_only_mode()
    enabled_tools = get_enabled_tools()

    # Invalid values raise ConfigurationError and abort startup
    config = BitbucketConfig.from_env()
    fetcher: BitbucketFetcher | None = None

    if config.is_auth_configured():
        fetcher = BitbucketFetcher(config=config)
        logger.info(
            f"Bitbucket configuration loaded ({config.effective_base_url}, "
            f"{_credential_summary(config)})"
        )
        if not await validate_auth(fetcher.auth_provider):
            logger.warning(
                "Bitbucket credentials did not validate; API calls may be rejected."
            )
    else:
        logger.warning(
            f"Bitbucket credentials for auth method '{config.auth_method}' are "
            "incomplete. Tools will report a configuration error."
        )

    app_context = MainAppContext(
        bitbucket_fetcher=fetcher,
        bitbucket_config=config,
        read_only=read_only,
        enabled_tools=enabled_tools,
    )
    logger.info(f"Read-only mode: {'ENABLED' if read_only else 'DISABLED'}")
    logger.info(f"Enabled tools filter: {enabled_tools or 'All tools enabled'}")

    try:
        yield {"app_lifespan_context": app_context}
    except Exception as e:
        logger.error(f"Error during lifespan: {e}", exc_info=True)
        raise
    finally:
        logger.info("Main Bitbucket MCP server lifespan shutting down...")
        if fetcher is not None:
            logger.debug("Closing Bitbucket HTTP client...")
            await fetcher.aclose()
        logger.info("Main Bitbucket MCP server lifespan shutdown complete.")


class EnabledToolsMiddleware(Middleware):
    """Hide tools that are not in the ENABLED_TOOLS allow-list from tool listings."""

    async def on_list_tools(
        self,
        context: MiddlewareContext,
        call_next: CallNext,
    ) -> list[FastMCPTool]:
        all_tools = await call_next(context)
        enabled_tools_filter = _enabled_tools_filter(context.fastmcp_context)
        logger.debug(
            f"Aggregated {len(all_tools)} tools before filtering: "
            f"{[tool.name for tool in all_tools]}"
        )

        filtered_tools: list[FastMCPTool] = []
        for tool_obj in all_tools:
            if not should_include_tool(tool_obj.name, enabled_tools_filter):
                logger.debug(f"Excluding tool '{tool_obj.name}' (not enabled)")
                continue
            filtered_tools.append(tool_obj)

        logger.debug(f"Tool listing: {len(filtered_tools)} tools enabled")
        return filtered_tools


def _enabled_tools_filter(fastmcp_ctx: Context | None) -> list[str] | None:
    # Lifespan state wins; the environment covers listings outside a request.
    req_context = None
    if fastmcp_ctx is not None:
        try:
            req_context = fastmcp_ctx.request_context
        except (LookupError, ValueError):
            req_context = None
    if req_context is None or req_context.lifespan_context is None:
        logger.debug("Lifespan context not available during tool listing.")
        return get_enabled_tools()

    lifespan_ctx_dict = req_context.lifespan_context
    app_lifespan_state: MainAppContext | None = (
        lifespan_ctx_dict.get("app_lifespan_context")
        if isinstance(lifespan_ctx_dict, dict)
        else None
    )
    if app_lifespan_state is None:
        return get_enabled_tools()
    return app_lifespan_state.enabled_tools


class BitbucketMCP(FastMCP[MainAppContext]):
    """Custom FastMCP server class for Bitbucket integration with tool filtering."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.add_middleware(EnabledToolsMiddleware())


main_mcp = BitbucketMCP(name="Bitbucket MCP", lifespan=main_lifespan)
main_mcp.mount(bitbucket_mcp)


@main_mcp.custom_route("/healthz", methods=["GET"], include_in_schema=False)
async def _health_check_route(request: Request) -> JSONResponse:
    return await health_check(request)
