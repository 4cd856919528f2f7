"""Module for Bitbucket pull request operations."""

import logging
from typing import Any, Literal

from ..utils.pagination import build_pagination_params
from .client import BitbucketClient
from .repositories import repo_path

logger = logging.getLogger("mcp-bitbucket.pull_requests")

PullRequestState = Literal["OPEN", "MERGED", "DECLINED", "SUPERSEDED"]
MergeStrategy = Literal["merge_commit", "squash", "fast_forward"]


class PullRequestsMixin(BitbucketClient):
    """Mixin for Bitbucket pull request operations.

    This mixin provides methods for creating, reviewing, merging and
    commenting on pull requests.
    """

    def _pr_path(self, workspace: str, repo_slug: str, pr_id: int | None = None) -> str:
        path = f"{repo_path(workspace, repo_slug)}/pullrequests"
        return path if pr_id is None else f"{path}/{pr_id}"

    async def list_pull_requests(
        self,
        workspace: str,
        repo_slug: str,
        state: PullRequestState | None = None,
        q: str | None = None,
        sort: str | None = None,
        page: int | None = None,
        pagelen: int | None = None,
    ) -> dict[str, Any]:
        params = {
            **build_pagination_params(page, pagelen),
            "state": state,
            "q": q,
            "sort": sort,
        }
        return await self.get_paginated(self._pr_path(workspace, repo_slug), params)

    async def get_pull_request(
        self, workspace: str, repo_slug: str, pr_id: int
    ) -> dict[str, Any]:
        return await self.get(self._pr_path(workspace, repo_slug, pr_id))

    async def create_pull_request(
        self,
        workspace: str,
        repo_slug: str,
        title: str,
        source_branch: str,
        destination_branch: str | None = None,
        description: str | None = None,
        close_source_branch: bool | None = None,
        reviewers: list[str] | None = None,
    ) -> dict[str, Any]:
        """
        Create a new pull request.

        Args:
            workspace: Workspace slug
            repo_slug: Repository slug
            title: Pull request title
            source_branch: Source branch name
            destination_branch: Destination branch (repository main branch if omitted)
            description: Pull request description
            close_source_branch: Whether to close the source branch after merge
            reviewers: Reviewer account UUIDs

        Returns:
            The created pull request
        """
        payload: dict[str, Any] = {
            "title": title,
            "source": {"branch": {"name": source_branch}},
        }
        if destination_branch:
            payload["destination"] = {"branch": {"name": destination_branch}}
        if description:
            payload["description"] = description
        if close_source_branch is not None:
            payload["close_source_branch"] = close_source_branch
        if reviewers:
            payload["reviewers"] = [{"uuid": r} for r in reviewers]

        logger.debug(
            f"Creating pull request in {workspace}/{repo_slug}: "
            f"{source_branch} -> {destination_branch or '<main branch>'}"
        )
        return await self.post(self._pr_path(workspace, repo_slug), payload)

    async def update_pull_request(
        self,
        workspace: str,
        repo_slug: str,
        pr_id: int,
        title: str | None = None,
        description: str | None = None,
        destination_branch: str | None = None,
        reviewers: list[str] | None = None,
    ) -> dict[str, Any]:
        """Update only the fields that are given."""
        payload: dict[str, Any] = {}
        if title:
            payload["title"] = title
        if description:
            payload["description"] = description
        if destination_branch:
            payload["destination"] = {"branch": {"name": destination_branch}}
        if reviewers is not None:
            payload["reviewers"] = [{"uuid": r} for r in reviewers]
        return await self.put(self._pr_path(workspace, repo_slug, pr_id), payload)

    async def merge_pull_request(
        self,
        workspace: str,
        repo_slug: str,
        pr_id: int,
        message: str | None = None,
        close_source_branch: bool | None = None,
        merge_strategy: MergeStrategy | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"type": "pullrequest"}
        if message:
            payload["message"] = message
        if close_source_branch is not None:
            payload["close_source_branch"] = close_source_branch
        if merge_strategy:
            payload["merge_strategy"] = merge_strategy
        return await self.post(
            f"{self._pr_path(workspace, repo_slug, pr_id)}/merge", payload
        )

    async def decline_pull_request(
        self, workspace: str, repo_slug: str, pr_id: int
    ) -> dict[str, Any]:
        return await self.post(f"{self._pr_path(workspace, repo_slug, pr_id)}/decline")

    async def approve_pull_request(
        self, workspace: str, repo_slug: str, pr_id: int
    ) -> dict[str, Any]:
        return await self.post(f"{self._pr_path(workspace, repo_slug, pr_id)}/approve")

    async def unapprove_pull_request(
        self, workspace: str, repo_slug: str, pr_id: int
    ) -> None:
        await self.delete(f"{self._pr_path(workspace, repo_slug, pr_id)}/approve")

    async def request_changes(
        self, workspace: str, repo_slug: str, pr_id: int
    ) -> dict[str, Any]:
        return await self.post(
            f"{self._pr_path(workspace, repo_slug, pr_id)}/request-changes"
        )

    async def get_pull_request_diff(
        self, workspace: str, repo_slug: str, pr_id: int
    ) -> str:
        return await self.get_raw(f"{self._pr_path(workspace, repo_slug, pr_id)}/diff")

    async def get_pull_request_diffstat(
        self,
        workspace: str,
        repo_slug: str,
        pr_id: int,
        page: int | None = None,
        pagelen: int | None = None,
    ) -> dict[str, Any]:
        return await self.get_paginated(
            f"{self._pr_path(workspace, repo_slug, pr_id)}/diffstat",
            build_pagination_params(page, pagelen),
        )

    async def list_pull_request_commits(
        self,
        workspace: str,
        repo_slug: str,
        pr_id: int,
        page: int | None = None,
        pagelen: int | None = None,
    ) -> dict[str, Any]:
        return await self.get_paginated(
            f"{self._pr_path(workspace, repo_slug, pr_id)}/commits",
            build_pagination_params(page, pagelen),
        )

    async def list_pull_request_comments(
        self,
        workspace: str,
        repo_slug: str,
        pr_id: int,
        page: int | None = None,
        pagelen: int | None = None,
    ) -> dict[str, Any]:
        return await self.get_paginated(
            f"{self._pr_path(workspace, repo_slug, pr_id)}/comments",
            build_pagination_params(page, pagelen),
        )

    async def get_pull_request_comment(
        self, workspace: str, repo_slug: str, pr_id: int, comment_id: int
    ) -> dict[str, Any]:
        return await self.get(
            f"{self._pr_path(workspace, repo_slug, pr_id)}/comments/{comment_id}"
        )

    async def create_pull_request_comment(
        self,
        workspace: str,
        repo_slug: str,
        pr_id: int,
        content: str,
        inline_path: str | None = None,
        inline_line: int | None = None,
        parent_id: int | None = None,
    ) -> dict[str, Any]:
        """
        Add a comment to a pull request.

        An inline comment needs both ``inline_path`` and ``inline_line``;
        ``parent_id`` makes the comment a reply.
        """
        payload: dict[str, Any] = {"content": {"raw": content}}
        if inline_path and inline_line:
            payload["inline"] = {"path": inline_path, "to": inline_line}
        if parent_id:
            payload["parent"] = {"id": parent_id}
        return await self.post(
            f"{self._pr_path(workspace, repo_slug, pr_id)}/comments", payload
        )

    async def update_pull_request_comment(
        self, workspace: str, repo_slug: str, pr_id: int, comment_id: int, content: str
    ) -> dict[str, Any]:
        return await self.put(
            f"{self._pr_path(workspace, repo_slug, pr_id)}/comments/{comment_id}",
            {"content": {"raw": content}},
        )

    async def delete_pull_request_comment(
        self, workspace: str, repo_slug: str, pr_id: int, comment_id: int
    ) -> None:
        await self.delete(
            f"{self._pr_path(workspace, repo_slug, pr_id)}/comments/{comment_id}"
        )

    async def get_pull_request_activity(
        self,
        workspace: str,
        repo_slug: str,
        pr_id: int,
        page: int | None = None,
        pagelen: int | None = None,
    ) -> dict[str, Any]:
        return await self.get_paginated(
            f"{self._pr_path(workspace, repo_slug, pr_id)}/activity",
            build_pagination_params(page, pagelen),
        )
