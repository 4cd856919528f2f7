"""Entry point for running the MCP Bitbucket server."""

from mcp_bitbucket import main

if __name__ == "__main__":
    main()
