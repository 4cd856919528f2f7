"""Module for Bitbucket Pipelines operations."""

import logging
from typing import Any

from ..utils.pagination import build_pagination_params
from .client import BitbucketClient
from .repositories import repo_path

logger = logging.getLogger("mcp-bitbucket.pipelines")


def _branch_target(branch: str) -> dict[str, Any]:
    return {"type": "pipeline_ref_target", "ref_type": "branch", "ref_name": branch}


class PipelinesMixin(BitbucketClient):
    """Mixin for Bitbucket Pipelines operations.

    Pipeline, step and variable identifiers are UUIDs in braces,
    e.g. ``{1b2c...}``; they are passed through as given.
    """

    def _pipelines_path(self, workspace: str, repo_slug: str) -> str:
        return f"{repo_path(workspace, repo_slug)}/pipelines"

    def _variables_path(self, workspace: str, repo_slug: str) -> str:
        return f"{repo_path(workspace, repo_slug)}/pipelines_config/variables"

    async def list_pipelines(
        self,
        workspace: str,
        repo_slug: str,
        sort: str | None = None,
        target_branch: str | None = None,
        page: int | None = None,
        pagelen: int | None = None,
    ) -> dict[str, Any]:
        params = {
            **build_pagination_params(page, pagelen),
            "sort": sort,
            "target.branch": target_branch,
        }
        return await self.get_paginated(
            self._pipelines_path(workspace, repo_slug), params
        )

    async def get_pipeline(
        self, workspace: str, repo_slug: str, pipeline_uuid: str
    ) -> dict[str, Any]:
        return await self.get(
            f"{self._pipelines_path(workspace, repo_slug)}/{pipeline_uuid}"
        )

    async def trigger_pipeline(
        self, workspace: str, repo_slug: str, payload: dict[str, Any]
    ) -> dict[str, Any]:
        """Trigger a pipeline with a caller-built request body."""
        return await self.post(self._pipelines_path(workspace, repo_slug), payload)

    async def trigger_branch_pipeline(
        self,
        workspace: str,
        repo_slug: str,
        branch: str,
        variables: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        """
        Run the default pipeline for the tip of a branch.

        Args:
            workspace: Workspace slug
            repo_slug: Repository slug
            branch: Branch name
            variables: Pipeline variables as ``{"key", "value", "secured"}`` dicts

        Returns:
            The created pipeline
        """
        payload: dict[str, Any] = {"target": _branch_target(branch)}
        if variables:
            payload["variables"] = variables
        logger.info(f"Triggering pipeline for {workspace}/{repo_slug}@{branch}")
        return await self.trigger_pipeline(workspace, repo_slug, payload)

    async def trigger_custom_pipeline(
        self,
        workspace: str,
        repo_slug: str,
        branch: str,
        pattern: str,
        variables: list[dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        """Run the custom pipeline named ``pattern`` on ``branch``."""
        target = _branch_target(branch)
        target["selector"] = {"type": "custom", "pattern": pattern}
        payload: dict[str, Any] = {"target": target}
        if variables:
            payload["variables"] = variables
        logger.info(
            f"Triggering custom pipeline '{pattern}' for {workspace}/{repo_slug}@{branch}"
        )
        return await self.trigger_pipeline(workspace, repo_slug, payload)

    async def stop_pipeline(
        self, workspace: str, repo_slug: str, pipeline_uuid: str
    ) -> None:
        await self.post(
            f"{self._pipelines_path(workspace, repo_slug)}/{pipeline_uuid}/stopPipeline"
        )

    async def list_pipeline_steps(
        self,
        workspace: str,
        repo_slug: str,
        pipeline_uuid: str,
        page: int | None = None,
        pagelen: int | None = None,
    ) -> dict[str, Any]:
        return await self.get_paginated(
            f"{self._pipelines_path(workspace, repo_slug)}/{pipeline_uuid}/steps",
            build_pagination_params(page, pagelen),
        )

    async def get_pipeline_step(
        self, workspace: str, repo_slug: str, pipeline_uuid: str, step_uuid: str
    ) -> dict[str, Any]:
        return await self.get(
            f"{self._pipelines_path(workspace, repo_slug)}/{pipeline_uuid}"
            f"/steps/{step_uuid}"
        )

    async def get_pipeline_step_log(
        self, workspace: str, repo_slug: str, pipeline_uuid: str, step_uuid: str
    ) -> str:
        return await self.get_raw(
            f"{self._pipelines_path(workspace, repo_slug)}/{pipeline_uuid}"
            f"/steps/{step_uuid}/log"
        )

    async def get_pipelines_config(
        self, workspace: str, repo_slug: str
    ) -> dict[str, Any]:
        return await self.get(f"{repo_path(workspace, repo_slug)}/pipelines_config")

    async def set_pipelines_enabled(
        self, workspace: str, repo_slug: str, enabled: bool
    ) -> dict[str, Any]:
        return await self.put(
            f"{repo_path(workspace, repo_slug)}/pipelines_config", {"enabled": enabled}
        )

    async def list_pipeline_variables(
        self,
        workspace: str,
        repo_slug: str,
        page: int | None = None,
        pagelen: int | None = None,
    ) -> dict[str, Any]:
        return await self.get_paginated(
            self._variables_path(workspace, repo_slug),
            build_pagination_params(page, pagelen),
        )

    async def get_pipeline_variable(
        self, workspace: str, repo_slug: str, variable_uuid: str
    ) -> dict[str, Any]:
        return await self.get(
            f"{self._variables_path(workspace, repo_slug)}/{variable_uuid}"
        )

    async def create_pipeline_variable(
        self,
        workspace: str,
        repo_slug: str,
        key: str,
        value: str,
        secured: bool = False,
    ) -> dict[str, Any]:
        return await self.post(
            self._variables_path(workspace, repo_slug),
            {"key": key, "value": value, "secured": secured},
        )

    async def update_pipeline_variable(
        self,
        workspace: str,
        repo_slug: str,
        variable_uuid: str,
        key: str | None = None,
        value: str | None = None,
        secured: bool | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if key is not None:
            payload["key"] = key
        if value is not None:
            payload["value"] = value
        if secured is not None:
            payload["secured"] = secured
        return await self.put(
            f"{self._variables_path(workspace, repo_slug)}/{variable_uuid}", payload
        )

    async def delete_pipeline_variable(
        self, workspace: str, repo_slug: str, variable_uuid: str
    ) -> None:
        await self.delete(
            f"{self._variables_path(workspace, repo_slug)}/{variable_uuid}"
        )
