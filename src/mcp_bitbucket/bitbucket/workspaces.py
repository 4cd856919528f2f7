"""Module for Bitbucket workspace and project operations."""

import logging
from typing import Any

from ..utils.pagination import build_pagination_params
from .client import BitbucketClient

logger = logging.getLogger("mcp-bitbucket.workspaces")


class WorkspacesMixin(BitbucketClient):
    """Mixin for workspace, project and membership lookups."""

    async def list_workspaces(
        self, page: int | None = None, pagelen: int | None = None
    ) -> dict[str, Any]:
        """List workspaces accessible to the authenticated user."""
        return await self.get_paginated(
            "/workspaces", build_pagination_params(page, pagelen)
        )

    async def get_workspace(self, workspace: str) -> dict[str, Any]:
        return await self.get(f"/workspaces/{workspace}")

    async def list_projects(
        self, workspace: str, page: int | None = None, pagelen: int | None = None
    ) -> dict[str, Any]:
        return await self.get_paginated(
            f"/workspaces/{workspace}/projects", build_pagination_params(page, pagelen)
        )

    async def get_project(self, workspace: str, project_key: str) -> dict[str, Any]:
        return await self.get(f"/workspaces/{workspace}/projects/{project_key}")

    async def list_members(
        self, workspace: str, page: int | None = None, pagelen: int | None = None
    ) -> dict[str, Any]:
        return await self.get_paginated(
            f"/workspaces/{workspace}/members", build_pagination_params(page, pagelen)
        )
