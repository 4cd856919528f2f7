"""Module for Bitbucket branch, tag and branch restriction operations."""

import logging
from typing import Any
from urllib.parse import quote

from ..utils.pagination import build_pagination_params
from .client import BitbucketClient
from .repositories import repo_path

logger = logging.getLogger("mcp-bitbucket.branches")


def _ref_name(name: str) -> str:
    # Branch names like "feature/x" must stay a single path segment
    return quote(name, safe="")


class BranchesMixin(BitbucketClient):
    """Mixin for Bitbucket refs and branching model operations."""

    async def list_branches(
        self,
        workspace: str,
        repo_slug: str,
        q: str | None = None,
        sort: str | None = None,
        page: int | None = None,
        pagelen: int | None = None,
    ) -> dict[str, Any]:
        params = {**build_pagination_params(page, pagelen), "q": q, "sort": sort}
        return await self.get_paginated(
            f"{repo_path(workspace, repo_slug)}/refs/branches", params
        )

    async def get_branch(
        self, workspace: str, repo_slug: str, branch_name: str
    ) -> dict[str, Any]:
        return await self.get(
            f"{repo_path(workspace, repo_slug)}/refs/branches/{_ref_name(branch_name)}"
        )

    async def create_branch(
        self, workspace: str, repo_slug: str, name: str, target: str
    ) -> dict[str, Any]:
        """
        Create a branch.

        Args:
            workspace: Workspace slug
            repo_slug: Repository slug
            name: New branch name
            target: Commit hash (or branch name) the branch starts from

        Returns:
            The created branch
        """
        logger.debug(f"Creating branch {name} at {target} in {workspace}/{repo_slug}")
        return await self.post(
            f"{repo_path(workspace, repo_slug)}/refs/branches",
            {"name": name, "target": {"hash": target}},
        )

    async def delete_branch(
        self, workspace: str, repo_slug: str, branch_name: str
    ) -> None:
        await self.delete(
            f"{repo_path(workspace, repo_slug)}/refs/branches/{_ref_name(branch_name)}"
        )

    async def list_tags(
        self,
        workspace: str,
        repo_slug: str,
        q: str | None = None,
        sort: str | None = None,
        page: int | None = None,
        pagelen: int | None = None,
    ) -> dict[str, Any]:
        params = {**build_pagination_params(page, pagelen), "q": q, "sort": sort}
        return await self.get_paginated(
            f"{repo_path(workspace, repo_slug)}/refs/tags", params
        )

    async def get_tag(
        self, workspace: str, repo_slug: str, tag_name: str
    ) -> dict[str, Any]:
        return await self.get(
            f"{repo_path(workspace, repo_slug)}/refs/tags/{_ref_name(tag_name)}"
        )

    async def create_tag(
        self,
        workspace: str,
        repo_slug: str,
        name: str,
        target: str,
        message: str | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"name": name, "target": {"hash": target}}
        if message:
            payload["message"] = message
        return await self.post(f"{repo_path(workspace, repo_slug)}/refs/tags", payload)

    async def get_branching_model(
        self, workspace: str, repo_slug: str
    ) -> dict[str, Any]:
        """Effective branching model (development/production branches, prefixes)."""
        return await self.get(f"{repo_path(workspace, repo_slug)}/branching-model")

    async def get_branching_model_settings(
        self, workspace: str, repo_slug: str
    ) -> dict[str, Any]:
        return await self.get(
            f"{repo_path(workspace, repo_slug)}/branching-model/settings"
        )

    async def update_branching_model_settings(
        self, workspace: str, repo_slug: str, settings: dict[str, Any]
    ) -> dict[str, Any]:
        return await self.put(
            f"{repo_path(workspace, repo_slug)}/branching-model/settings", settings
        )

    async def list_branch_restrictions(
        self,
        workspace: str,
        repo_slug: str,
        kind: str | None = None,
        pattern: str | None = None,
        page: int | None = None,
        pagelen: int | None = None,
    ) -> dict[str, Any]:
        params = {
            **build_pagination_params(page, pagelen),
            "kind": kind,
            "pattern": pattern,
        }
        return await self.get_paginated(
            f"{repo_path(workspace, repo_slug)}/branch-restrictions", params
        )

    async def get_branch_restriction(
        self, workspace: str, repo_slug: str, restriction_id: int
    ) -> dict[str, Any]:
        return await self.get(
            f"{repo_path(workspace, repo_slug)}/branch-restrictions/{restriction_id}"
        )

    async def create_branch_restriction(
        self,
        workspace: str,
        repo_slug: str,
        kind: str,
        pattern: str | None = None,
        value: int | None = None,
        users: list[str] | None = None,
        groups: list[str] | None = None,
    ) -> dict[str, Any]:
        """Create a branch permission rule such as ``push`` or ``require_approvals_to_merge``.

        ``users`` are account UUIDs and ``groups`` are group slugs.
        """
        payload: dict[str, Any] = {"kind": kind, "branch_match_kind": "glob"}
        if pattern:
            payload["pattern"] = pattern
        if value is not None:
            payload["value"] = value
        if users:
            payload["users"] = [{"uuid": u} for u in users]
        if groups:
            payload["groups"] = [{"slug": g} for g in groups]
        return await self.post(
            f"{repo_path(workspace, repo_slug)}/branch-restrictions", payload
        )

    async def update_branch_restriction(
        self,
        workspace: str,
        repo_slug: str,
        restriction_id: int,
        data: dict[str, Any],
    ) -> dict[str, Any]:
        return await self.put(
            f"{repo_path(workspace, repo_slug)}/branch-restrictions/{restriction_id}",
            data,
        )

    async def delete_branch_restriction(
        self, workspace: str, repo_slug: str, restriction_id: int
    ) -> None:
        await self.delete(
            f"{repo_path(workspace, repo_slug)}/branch-restrictions/{restriction_id}"
        )
