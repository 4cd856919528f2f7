"""Module for Bitbucket webhook operations."""

import logging
from typing import Any

from ..utils.pagination import build_pagination_params
from .client import BitbucketClient
from .repositories import repo_path

logger = logging.getLogger("mcp-bitbucket.webhooks")


def _hook_payload(
    url: str | None,
    events: list[str] | None,
    description: str | None,
    active: bool | None,
    secret: str | None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    if url:
        payload["url"] = url
    if events:
        payload["events"] = events
    if description is not None:
        payload["description"] = description
    if active is not None:
        payload["active"] = active
    if secret:
        payload["secret"] = secret
    return payload


class WebhooksMixin(BitbucketClient):
    """Mixin for repository and workspace webhook operations.

    Webhook events are names such as ``repo:push`` or
    ``pullrequest:created``.
    """

    async def list_webhooks(
        self,
        workspace: str,
        repo_slug: str,
        page: int | None = None,
        pagelen: int | None = None,
    ) -> dict[str, Any]:
        return await self.get_paginated(
            f"{repo_path(workspace, repo_slug)}/hooks",
            build_pagination_params(page, pagelen),
        )

    async def get_webhook(
        self, workspace: str, repo_slug: str, webhook_uuid: str
    ) -> dict[str, Any]:
        return await self.get(f"{repo_path(workspace, repo_slug)}/hooks/{webhook_uuid}")

    async def create_webhook(
        self,
        workspace: str,
        repo_slug: str,
        url: str,
        events: list[str],
        description: str | None = None,
        active: bool = True,
        secret: str | None = None,
    ) -> dict[str, Any]:
        logger.debug(f"Creating webhook on {workspace}/{repo_slug} for {events}")
        return await self.post(
            f"{repo_path(workspace, repo_slug)}/hooks",
            _hook_payload(url, events, description, active, secret),
        )

    async def update_webhook(
        self,
        workspace: str,
        repo_slug: str,
        webhook_uuid: str,
        url: str | None = None,
        events: list[str] | None = None,
        description: str | None = None,
        active: bool | None = None,
        secret: str | None = None,
    ) -> dict[str, Any]:
        return await self.put(
            f"{repo_path(workspace, repo_slug)}/hooks/{webhook_uuid}",
            _hook_payload(url, events, description, active, secret),
        )

    async def delete_webhook(
        self, workspace: str, repo_slug: str, webhook_uuid: str
    ) -> None:
        await self.delete(f"{repo_path(workspace, repo_slug)}/hooks/{webhook_uuid}")

    async def list_workspace_webhooks(
        self, workspace: str, page: int | None = None, pagelen: int | None = None
    ) -> dict[str, Any]:
        return await self.get_paginated(
            f"/workspaces/{workspace}/hooks", build_pagination_params(page, pagelen)
        )

    async def get_workspace_webhook(
        self, workspace: str, webhook_uuid: str
    ) -> dict[str, Any]:
        return await self.get(f"/workspaces/{workspace}/hooks/{webhook_uuid}")

    async def create_workspace_webhook(
        self,
        workspace: str,
        url: str,
        events: list[str],
        description: str | None = None,
        active: bool = True,
        secret: str | None = None,
    ) -> dict[str, Any]:
        return await self.post(
            f"/workspaces/{workspace}/hooks",
            _hook_payload(url, events, description, active, secret),
        )

    async def update_workspace_webhook(
        self,
        workspace: str,
        webhook_uuid: str,
        url: str | None = None,
        events: list[str] | None = None,
        description: str | None = None,
        active: bool | None = None,
        secret: str | None = None,
    ) -> dict[str, Any]:
        return await self.put(
            f"/workspaces/{workspace}/hooks/{webhook_uuid}",
            _hook_payload(url, events, description, active, secret),
        )

    async def delete_workspace_webhook(self, workspace: str, webhook_uuid: str) -> None:
        await self.delete(f"/workspaces/{workspace}/hooks/{webhook_uuid}")
