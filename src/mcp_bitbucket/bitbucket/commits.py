"""Module for Bitbucket commit, diff and build status operations."""

import logging
from typing import Any, Literal

from ..utils.pagination import build_pagination_params
from .client import BitbucketClient
from .repositories import repo_path

logger = logging.getLogger("mcp-bitbucket.commits")

BuildState = Literal["SUCCESSFUL", "FAILED", "INPROGRESS", "STOPPED"]


class CommitsMixin(BitbucketClient):
    """Mixin for Bitbucket commit operations."""

    async def list_commits(
        self,
        workspace: str,
        repo_slug: str,
        revision: str | None = None,
        path: str | None = None,
        include: str | None = None,
        exclude: str | None = None,
        page: int | None = None,
        pagelen: int | None = None,
    ) -> dict[str, Any]:
        """
        List commits, newest first.

        Args:
            workspace: Workspace slug
            repo_slug: Repository slug
            revision: Branch, tag or hash to start from
            path: Only commits touching this file path
            include: Only commits reachable from this ref
            exclude: Leave out commits reachable from this ref
            page: Page number
            pagelen: Page size (max 100)

        Returns:
            Paginated envelope of commits
        """
        endpoint = f"{repo_path(workspace, repo_slug)}/commits"
        if revision:
            endpoint = f"{endpoint}/{revision}"
        params = {
            **build_pagination_params(page, pagelen),
            "path": path,
            "include": include,
            "exclude": exclude,
        }
        return await self.get_paginated(endpoint, params)

    async def get_commit(
        self, workspace: str, repo_slug: str, commit_hash: str
    ) -> dict[str, Any]:
        return await self.get(f"{repo_path(workspace, repo_slug)}/commit/{commit_hash}")

    async def get_diff(self, workspace: str, repo_slug: str, spec: str) -> str:
        """Unified diff for a commit hash or a ``<from>..<to>`` spec."""
        return await self.get_raw(f"{repo_path(workspace, repo_slug)}/diff/{spec}")

    async def get_patch(self, workspace: str, repo_slug: str, spec: str) -> str:
        return await self.get_raw(f"{repo_path(workspace, repo_slug)}/patch/{spec}")

    async def get_diffstat(
        self,
        workspace: str,
        repo_slug: str,
        spec: str,
        page: int | None = None,
        pagelen: int | None = None,
    ) -> dict[str, Any]:
        return await self.get_paginated(
            f"{repo_path(workspace, repo_slug)}/diffstat/{spec}",
            build_pagination_params(page, pagelen),
        )

    async def list_commit_comments(
        self,
        workspace: str,
        repo_slug: str,
        commit_hash: str,
        page: int | None = None,
        pagelen: int | None = None,
    ) -> dict[str, Any]:
        return await self.get_paginated(
            f"{repo_path(workspace, repo_slug)}/commit/{commit_hash}/comments",
            build_pagination_params(page, pagelen),
        )

    async def create_commit_comment(
        self, workspace: str, repo_slug: str, commit_hash: str, content: str
    ) -> dict[str, Any]:
        return await self.post(
            f"{repo_path(workspace, repo_slug)}/commit/{commit_hash}/comments",
            {"content": {"raw": content}},
        )

    async def list_build_statuses(
        self,
        workspace: str,
        repo_slug: str,
        commit_hash: str,
        page: int | None = None,
        pagelen: int | None = None,
    ) -> dict[str, Any]:
        return await self.get_paginated(
            f"{repo_path(workspace, repo_slug)}/commit/{commit_hash}/statuses",
            build_pagination_params(page, pagelen),
        )

    async def create_build_status(
        self,
        workspace: str,
        repo_slug: str,
        commit_hash: str,
        state: BuildState,
        key: str,
        url: str,
        name: str | None = None,
        description: str | None = None,
    ) -> dict[str, Any]:
        """Report a build result for a commit; ``key`` identifies the build."""
        payload: dict[str, Any] = {"state": state, "key": key, "url": url}
        if name:
            payload["name"] = name
        if description:
            payload["description"] = description
        logger.debug(f"Reporting build {key}={state} for {commit_hash}")
        return await self.post(
            f"{repo_path(workspace, repo_slug)}/commit/{commit_hash}/statuses/build",
            payload,
        )

    async def compare_commits(
        self,
        workspace: str,
        repo_slug: str,
        base: str,
        head: str,
        pagelen: int | None = None,
    ) -> dict[str, Any]:
        """Commits reachable from ``head`` but not from ``base``."""
        response = await self.get_paginated(
            f"{repo_path(workspace, repo_slug)}/commits",
            {
                **build_pagination_params(pagelen=pagelen),
                "include": head,
                "exclude": base,
            },
        )
        return {"commits": response.get("values", [])}
