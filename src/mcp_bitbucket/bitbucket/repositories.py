"""Module for Bitbucket repository operations."""

import logging
from typing import Any, Literal
from urllib.parse import quote

from ..utils.pagination import build_pagination_params
from .client import BitbucketClient

logger = logging.getLogger("mcp-bitbucket.repositories")

RepositoryRole = Literal["owner", "admin", "contributor", "member"]


def repo_path(workspace: str, repo_slug: str) -> str:
    return f"/repositories/{workspace}/{repo_slug}"


class RepositoriesMixin(BitbucketClient):
    """Mixin for Bitbucket repository operations.

    Covers repository CRUD, forking and browsing source files.
    """

    async def list_repositories(
        self,
        workspace: str,
        role: RepositoryRole | None = None,
        q: str | None = None,
        sort: str | None = None,
        page: int | None = None,
        pagelen: int | None = None,
    ) -> dict[str, Any]:
        """
        List repositories in a workspace.

        Args:
            workspace: Workspace slug
            role: Only repositories where the user has this role
            q: Bitbucket query language filter, e.g. ``name ~ "api"``
            sort: Sort field, e.g. ``-updated_on``
            page: Page number
            pagelen: Page size (max 100)

        Returns:
            Paginated envelope of repositories
        """
        params = {
            **build_pagination_params(page, pagelen),
            "role": role,
            "q": q,
            "sort": sort,
        }
        return await self.get_paginated(f"/repositories/{workspace}", params)

    async def get_repository(self, workspace: str, repo_slug: str) -> dict[str, Any]:
        return await self.get(repo_path(workspace, repo_slug))

    async def create_repository(
        self,
        workspace: str,
        repo_slug: str,
        name: str | None = None,
        description: str | None = None,
        is_private: bool = True,
        project_key: str | None = None,
    ) -> dict[str, Any]:
        """Create a repository; ``project_key`` attaches it to a workspace project."""
        payload: dict[str, Any] = {"scm": "git", "is_private": is_private}
        if name:
            payload["name"] = name
        if description:
            payload["description"] = description
        if project_key:
            payload["project"] = {"key": project_key}

        logger.debug(f"Creating repository {workspace}/{repo_slug}")
        return await self.post(repo_path(workspace, repo_slug), payload)

    async def update_repository(
        self, workspace: str, repo_slug: str, data: dict[str, Any]
    ) -> dict[str, Any]:
        return await self.put(repo_path(workspace, repo_slug), data)

    async def delete_repository(self, workspace: str, repo_slug: str) -> None:
        logger.debug(f"Deleting repository {workspace}/{repo_slug}")
        await self.delete(repo_path(workspace, repo_slug))

    async def fork_repository(
        self,
        workspace: str,
        repo_slug: str,
        name: str | None = None,
        target_workspace: str | None = None,
        is_private: bool | None = None,
        description: str | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if name:
            payload["name"] = name
        if target_workspace:
            payload["workspace"] = {"slug": target_workspace}
        if is_private is not None:
            payload["is_private"] = is_private
        if description:
            payload["description"] = description
        return await self.post(f"{repo_path(workspace, repo_slug)}/forks", payload)

    async def list_source(
        self,
        workspace: str,
        repo_slug: str,
        ref: str = "HEAD",
        path: str = "",
        page: int | None = None,
        pagelen: int | None = None,
    ) -> dict[str, Any]:
        """List the files and directories under ``path`` at ``ref``."""
        endpoint = f"{repo_path(workspace, repo_slug)}/src/{quote(ref, safe='')}"
        if path:
            endpoint = f"{endpoint}/{quote(path.strip('/'), safe='/')}"
        return await self.get_paginated(endpoint, build_pagination_params(page, pagelen))

    async def get_file_content(
        self, workspace: str, repo_slug: str, path: str, ref: str = "HEAD"
    ) -> str:
        """Return the raw content of the file at ``path`` on ``ref``."""
        return await self.get_raw(
            f"{repo_path(workspace, repo_slug)}/src/{quote(ref, safe='')}/"
            f"{quote(path.lstrip('/'), safe='/')}"
        )
