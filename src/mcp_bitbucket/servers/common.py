"""Read-only enforcement and error rendering for Bitbucket tools."""

import json
import logging
from typing import Any

from fastmcp import Context

from ..exceptions import BitbucketError, format_error

logger = logging.getLogger("mcp-bitbucket.servers.common")


def _app_context(ctx: Context) -> Any:
    lifespan_ctx_dict = ctx.request_context.lifespan_context
    return (
        lifespan_ctx_dict.get("app_lifespan_context")
        if isinstance(lifespan_ctx_dict, dict)
        else None
    )


def check_write_access(ctx: Context, tool_name: str, action: str) -> None:
    """
    Refuse a write action when the application is in read-only mode.

    The consolidated tools mix read and write actions, so the check runs per
    action instead of hiding the whole tool.

    Raises:
        ValueError: If read-only mode is enabled
    """
    app_lifespan_ctx = _app_context(ctx)
    if app_lifespan_ctx is not None and app_lifespan_ctx.read_only:
        logger.warning(
            f"Attempted write action '{action}' of tool '{tool_name}' in read-only mode."
        )
        raise ValueError(f"Cannot {action.replace('_', ' ')} in read-only mode.")


def _is_caller_error(error: BaseException) -> bool:
    if isinstance(error, ValueError):
        return True
    if isinstance(error, BitbucketError) and error.status_code is not None:
        return 400 <= error.status_code < 500
    return False


def tool_error_response(tool_name: str, error: BaseException) -> str:
    """Log ``error`` and render it as the JSON error payload returned by a tool.

    Caller mistakes (bad arguments, 4xx responses) are logged at WARNING,
    everything else at ERROR with a traceback for unexpected exceptions.
    """
    if _is_caller_error(error):
        logger.warning(f"{tool_name} failed: {error}")
    elif isinstance(error, BitbucketError):
        logger.error(f"{tool_name} failed: {error}")
    else:
        logger.exception(f"Unexpected error in {tool_name}:")

    rendered = format_error(error)
    if isinstance(error, ValueError) and not isinstance(error, BitbucketError):
        rendered["code"] = "INVALID_ARGUMENT"

    error_result = {
        "success": False,
        "error": rendered["message"],
        "error_type": type(error).__name__,
        "code": rendered["code"],
    }
    return json.dumps(error_result, indent=2)
