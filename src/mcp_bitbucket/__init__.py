import asyncio
import os

import click
from dotenv import load_dotenv

__version__ = "0.3.0"

from .logging_config import log_operation, setup_logger

logger = setup_logger()


@click.command()
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Increase verbosity (-v for INFO, -vv for DEBUG)",
)
@click.option(
    "--env-file", type=click.Path(exists=True, dir_okay=False), help="Path to .env file"
)
@click.option(
    "--transport",
    type=click.Choice(["stdio", "sse", "streamable-http"]),
    default=lambda: os.getenv("TRANSPORT", "stdio"),
    help="Transport type (stdio, sse or streamable-http)",
)
@click.option(
    "--port",
    default=lambda: int(os.getenv("PORT", "8000")),
    type=int,
    help="Port to listen on for sse and streamable-http transports",
)
@click.option(
    "--host",
    default=lambda: os.getenv("HOST", "0.0.0.0"),
    help="Host to bind for sse and streamable-http transports",
)
@click.option(
    "--log-dir",
    help="Directory to store log files",
)
@click.option(
    "--log-to-file/--no-log-to-file",
    default=False,
    help="Enable/disable file logging",
)
@click.option(
    "--read-only",
    is_flag=True,
    help="Refuse every write action (overrides READ_ONLY_MODE)",
)
@click.option(
    "--enabled-tools",
    help="Comma-separated list of tools to expose, e.g. 'bitbucket_repositories,bitbucket_pull_requests'",
)
@click.option("--bitbucket-api-token", help="Bitbucket API or access token")
@click.option("--bitbucket-user-email", help="Account email used with the API token")
@click.option("--bitbucket-workspace", help="Default workspace slug")
def main(
    verbose: int,
    env_file: str | None,
    transport: str,
    port: int,
    host: str,
    log_dir: str | None,
    log_to_file: bool,
    read_only: bool,
    enabled_tools: str | None,
    bitbucket_api_token: str | None,
    bitbucket_user_email: str | None,
    bitbucket_workspace: str | None,
) -> None:
    """MCP Bitbucket Server - Bitbucket Cloud and Server functionality for MCP

    Exposes workspaces, repositories, pull requests, branches, commits,
    pipelines, issues and webhooks as action-based tools.
    """
    logging_level = None
    if verbose == 1:
        logging_level = "INFO"
    elif verbose >= 2:
        logging_level = "DEBUG"

    setup_logger(
        name="mcp-bitbucket",
        level=logging_level,
        log_to_file=log_to_file,
        log_dir=log_dir,
    )

    with log_operation(logger, "application_startup", app_version=__version__):
        if env_file:
            logger.info(f"Loading environment from file: {env_file}")
            load_dotenv(env_file)
        else:
            logger.debug("Attempting to load environment from default .env file")
            load_dotenv()

        if bitbucket_api_token:
            os.environ["BITBUCKET_API_TOKEN"] = bitbucket_api_token
        if bitbucket_user_email:
            os.environ["BITBUCKET_USER_EMAIL"] = bitbucket_user_email
        if bitbucket_workspace:
            os.environ["BITBUCKET_WORKSPACE"] = bitbucket_workspace
        if read_only:
            os.environ["READ_ONLY_MODE"] = "true"
        if enabled_tools:
            os.environ["ENABLED_TOOLS"] = enabled_tools

        from .servers import main_mcp

        run_kwargs: dict[str, object] = {"transport": transport}
        if transport != "stdio":
            run_kwargs.update(host=host, port=port)

        logger.info(f"Starting MCP Bitbucket v{__version__} with {transport} transport")

    try:
        asyncio.run(main_mcp.run_async(**run_kwargs))  # type: ignore[arg-type]
    except (KeyboardInterrupt, SystemExit):
        logger.info("Server stopped.")
    except Exception as e:
        logger.error(f"Server error: {e}", exc_info=True)
        raise SystemExit(1) from e


__all__ = ["main", "__version__", "setup_logger", "log_operation"]

if __name__ == "__main__":
    main()
