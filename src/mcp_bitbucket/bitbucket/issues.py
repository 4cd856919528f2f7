"""Module for Bitbucket issue tracker operations."""

import logging
from typing import Any, Literal

from ..utils.pagination import build_pagination_params
from .client import BitbucketClient
from .repositories import repo_path

logger = logging.getLogger("mcp-bitbucket.issues")

IssueKind = Literal["bug", "enhancement", "proposal", "task"]
IssuePriority = Literal["trivial", "minor", "major", "critical", "blocker"]
IssueState = Literal[
    "new", "open", "resolved", "on hold", "invalid", "duplicate", "wontfix", "closed"
]


def _quote_bbql(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def build_issue_query(
    q: str | None = None,
    state: str | None = None,
    priority: str | None = None,
    kind: str | None = None,
    assignee: str | None = None,
    reporter: str | None = None,
) -> str | None:
    """Combine a raw query and field filters into one BBQL expression.

    Returns:
        The ``AND``-joined expression, or None when nothing is filtered
    """
    clauses = [f"({q})"] if q else []
    for field, value in (
        ("state", state),
        ("priority", priority),
        ("kind", kind),
        ("assignee.username", assignee),
        ("reporter.username", reporter),
    ):
        if value:
            clauses.append(f"{field} = {_quote_bbql(value)}")
    if not clauses:
        return None
    if len(clauses) == 1 and q:
        return q
    return " AND ".join(clauses)


class IssuesMixin(BitbucketClient):
    """Mixin for Bitbucket issue tracker operations.

    The repository must have the issue tracker enabled; otherwise every
    call fails with a 404.
    """

    def _issues_path(
        self, workspace: str, repo_slug: str, issue_id: int | None = None
    ) -> str:
        path = f"{repo_path(workspace, repo_slug)}/issues"
        return path if issue_id is None else f"{path}/{issue_id}"

    async def list_issues(
        self,
        workspace: str,
        repo_slug: str,
        q: str | None = None,
        sort: str | None = None,
        state: str | None = None,
        priority: str | None = None,
        kind: str | None = None,
        assignee: str | None = None,
        reporter: str | None = None,
        page: int | None = None,
        pagelen: int | None = None,
    ) -> dict[str, Any]:
        params = {
            **build_pagination_params(page, pagelen),
            "q": build_issue_query(q, state, priority, kind, assignee, reporter),
            "sort": sort,
        }
        return await self.get_paginated(self._issues_path(workspace, repo_slug), params)

    async def get_issue(
        self, workspace: str, repo_slug: str, issue_id: int
    ) -> dict[str, Any]:
        return await self.get(self._issues_path(workspace, repo_slug, issue_id))

    async def create_issue(
        self,
        workspace: str,
        repo_slug: str,
        title: str,
        content: str | None = None,
        kind: IssueKind | None = None,
        priority: IssuePriority | None = None,
        assignee: str | None = None,
    ) -> dict[str, Any]:
        """
        Create an issue.

        Args:
            workspace: Workspace slug
            repo_slug: Repository slug
            title: Issue title
            content: Markdown description
            kind: bug, enhancement, proposal or task
            priority: trivial, minor, major, critical or blocker
            assignee: Username of the assignee

        Returns:
            The created issue
        """
        payload: dict[str, Any] = {"title": title}
        if content:
            payload["content"] = {"raw": content}
        if kind:
            payload["kind"] = kind
        if priority:
            payload["priority"] = priority
        if assignee:
            payload["assignee"] = {"username": assignee}
        return await self.post(self._issues_path(workspace, repo_slug), payload)

    async def update_issue(
        self,
        workspace: str,
        repo_slug: str,
        issue_id: int,
        title: str | None = None,
        content: str | None = None,
        state: IssueState | None = None,
        kind: IssueKind | None = None,
        priority: IssuePriority | None = None,
        assignee: str | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if title:
            payload["title"] = title
        if content:
            payload["content"] = {"raw": content}
        if state:
            payload["state"] = state
        if kind:
            payload["kind"] = kind
        if priority:
            payload["priority"] = priority
        if assignee:
            payload["assignee"] = {"username": assignee}
        return await self.put(
            self._issues_path(workspace, repo_slug, issue_id), payload
        )

    async def delete_issue(self, workspace: str, repo_slug: str, issue_id: int) -> None:
        await self.delete(self._issues_path(workspace, repo_slug, issue_id))

    async def list_issue_comments(
        self,
        workspace: str,
        repo_slug: str,
        issue_id: int,
        page: int | None = None,
        pagelen: int | None = None,
    ) -> dict[str, Any]:
        return await self.get_paginated(
            f"{self._issues_path(workspace, repo_slug, issue_id)}/comments",
            build_pagination_params(page, pagelen),
        )

    async def get_issue_comment(
        self, workspace: str, repo_slug: str, issue_id: int, comment_id: int
    ) -> dict[str, Any]:
        return await self.get(
            f"{self._issues_path(workspace, repo_slug, issue_id)}/comments/{comment_id}"
        )

    async def create_issue_comment(
        self, workspace: str, repo_slug: str, issue_id: int, content: str
    ) -> dict[str, Any]:
        return await self.post(
            f"{self._issues_path(workspace, repo_slug, issue_id)}/comments",
            {"content": {"raw": content}},
        )

    async def update_issue_comment(
        self,
        workspace: str,
        repo_slug: str,
        issue_id: int,
        comment_id: int,
        content: str,
    ) -> dict[str, Any]:
        return await self.put(
            f"{self._issues_path(workspace, repo_slug, issue_id)}/comments/{comment_id}",
            {"content": {"raw": content}},
        )

    async def delete_issue_comment(
        self, workspace: str, repo_slug: str, issue_id: int, comment_id: int
    ) -> None:
        await self.delete(
            f"{self._issues_path(workspace, repo_slug, issue_id)}/comments/{comment_id}"
        )

    async def vote_issue(self, workspace: str, repo_slug: str, issue_id: int) -> None:
        await self.put(f"{self._issues_path(workspace, repo_slug, issue_id)}/vote")

    async def unvote_issue(self, workspace: str, repo_slug: str, issue_id: int) -> None:
        await self.delete(f"{self._issues_path(workspace, repo_slug, issue_id)}/vote")

    async def watch_issue(self, workspace: str, repo_slug: str, issue_id: int) -> None:
        await self.put(f"{self._issues_path(workspace, repo_slug, issue_id)}/watch")

    async def unwatch_issue(
        self, workspace: str, repo_slug: str, issue_id: int
    ) -> None:
        await self.delete(f"{self._issues_path(workspace, repo_slug, issue_id)}/watch")

    async def list_issue_changes(
        self,
        workspace: str,
        repo_slug: str,
        issue_id: int,
        page: int | None = None,
        pagelen: int | None = None,
    ) -> dict[str, Any]:
        """History of field changes made to an issue."""
        return await self.get_paginated(
            f"{self._issues_path(workspace, repo_slug, issue_id)}/changes",
            build_pagination_params(page, pagelen),
        )
