"""Bitbucket FastMCP server instance and tool definitions."""

import json
import logging
from typing import Annotated, Any, Literal

from fastmcp import Context, FastMCP
from pydantic import Field

from mcp_bitbucket.bitbucket import BitbucketFetcher
from mcp_bitbucket.models.constants import COMPACT_FIELDS
from mcp_bitbucket.servers.common import check_write_access, tool_error_response
from mcp_bitbucket.servers.dependencies import get_bitbucket_fetcher
from mcp_bitbucket.utils.output import OutputFormat, extract_fields, format_output
from mcp_bitbucket.utils.pagination import paginate_result

logger = logging.getLogger("mcp-bitbucket.servers.bitbucket")

bitbucket_mcp = FastMCP(
    name="Bitbucket MCP Service",
    instructions=(
        "Provides action-based tools for Bitbucket workspaces, repositories, "
        "pull requests, branches, commits, pipelines, issues and webhooks."
    ),
)

WorkspaceParam = Annotated[
    str | None,
    Field(
        description="Workspace slug, e.g. 'my-workspace'. Defaults to BITBUCKET_WORKSPACE."
    ),
]
RepoSlugParam = Annotated[
    str | None, Field(description="Repository slug, e.g. 'my-repo'")
]
PageParam = Annotated[int | None, Field(description="Page number (1-based)", ge=1)]
PagelenParam = Annotated[
    int | None,
    Field(description="Results per page (default: 25, max: 100)", ge=1, le=100),
]
FormatParam = Annotated[
    OutputFormat | None,
    Field(
        description=(
            "Output format: 'json' for the full payload or 'compact' for the "
            "essential fields only. Defaults to BITBUCKET_OUTPUT_FORMAT."
        )
    ),
]


def _require(action: str, **params: Any) -> None:
    """Raise a ValueError naming ``params`` when any of them is missing."""
    if all(value is not None and value != "" for value in params.values()):
        return
    names = list(params)
    if len(names) == 1:
        subject = f"{names[0]} is"
    elif len(names) == 2:
        subject = f"{names[0]} and {names[1]} are"
    else:
        subject = f"{', '.join(names[:-1])}, and {names[-1]} are"
    raise ValueError(f"{subject} required for {action} action")


def _workspace(bitbucket: BitbucketFetcher, workspace: str | None, action: str) -> str:
    resolved = workspace or bitbucket.config.workspace
    if not resolved:
        raise ValueError(
            f"workspace is required for {action} action (or set BITBUCKET_WORKSPACE)"
        )
    return resolved


def _render(
    bitbucket: BitbucketFetcher,
    data: Any,
    output_format: str | None,
    resource: str | None = None,
) -> str:
    # Diffs, logs and file content are returned verbatim
    if isinstance(data, str):
        return data
    return format_output(
        data,
        output_format or bitbucket.config.output_format,
        COMPACT_FIELDS.get(resource) if resource else None,
    )


def _render_page(
    bitbucket: BitbucketFetcher,
    response: dict[str, Any],
    output_format: str | None,
    resource: str,
) -> str:
    return _render(bitbucket, paginate_result(response), output_format, resource)


def _done(message: str) -> str:
    return json.dumps({"success": True, "message": message}, indent=2)


@bitbucket_mcp.tool(
    tags={"bitbucket", "read"},
    annotations={"title": "Bitbucket Workspaces", "readOnlyHint": True},
)
async def bitbucket_workspaces(
    ctx: Context,
    action: Annotated[
        Literal["list", "get", "list_projects", "get_project", "list_members"],
        Field(description="Operation to perform"),
    ],
    workspace: WorkspaceParam = None,
    project_key: Annotated[
        str | None, Field(description="Project key, e.g. 'PROJ' (get_project)")
    ] = None,
    page: PageParam = None,
    pagelen: PagelenParam = None,
    format: FormatParam = None,
) -> str:
    """
    Browse Bitbucket workspaces, their projects and members.

    Actions:
    - list: Workspaces accessible to the authenticated user
    - get: One workspace
    - list_projects / get_project: Projects of a workspace
    - list_members: Members of a workspace

    Args:
        ctx: The FastMCP context.
        action: Operation to perform.
        workspace: Workspace slug.
        project_key: Project key (get_project).
        page: Page number.
        pagelen: Results per page.
        format: Output format.

    Returns:
        JSON string with the result or error information.
    """
    try:
        bitbucket = await get_bitbucket_fetcher(ctx)
        if action == "list":
            response = await bitbucket.list_workspaces(page, pagelen)
            return _render_page(bitbucket, response, format, "workspace")

        ws = _workspace(bitbucket, workspace, action)
        if action == "get":
            result = await bitbucket.get_workspace(ws)
            return _render(bitbucket, result, format, "workspace")
        if action == "list_projects":
            response = await bitbucket.list_projects(ws, page, pagelen)
            return _render_page(bitbucket, response, format, "project")
        if action == "get_project":
            _require(action, project_key=project_key)
            result = await bitbucket.get_project(ws, project_key)
            return _render(bitbucket, result, format, "project")
        if action == "list_members":
            response = await bitbucket.list_members(ws, page, pagelen)
            return _render_page(bitbucket, response, format, "workspace_member")
        raise ValueError(f"Unknown action: {action}")
    except Exception as e:
        return tool_error_response("bitbucket_workspaces", e)


REPOSITORY_WRITE_ACTIONS = {"create", "update", "delete", "fork"}


@bitbucket_mcp.tool(
    tags={"bitbucket", "read", "write"},
    annotations={"title": "Bitbucket Repositories", "readOnlyHint": False},
)
async def bitbucket_repositories(
    ctx: Context,
    action: Annotated[
        Literal[
            "list", "get", "create", "update", "delete", "fork", "get_file", "list_source"
        ],
        Field(description="Operation to perform"),
    ],
    workspace: WorkspaceParam = None,
    repo_slug: RepoSlugParam = None,
    role: Annotated[
        Literal["owner", "admin", "contributor", "member"] | None,
        Field(description="Only repositories where you have this role (list)"),
    ] = None,
    q: Annotated[
        str | None,
        Field(description='Bitbucket query filter, e.g. name ~ "api" (list)'),
    ] = None,
    sort: Annotated[
        str | None, Field(description="Sort field, e.g. '-updated_on' (list)")
    ] = None,
    name: Annotated[
        str | None, Field(description="Display name (create, update)")
    ] = None,
    description: Annotated[
        str | None, Field(description="Repository description (create, update)")
    ] = None,
    is_private: Annotated[
        bool | None,
        Field(description="Private repository (create default: true; update)"),
    ] = None,
    project_key: Annotated[
        str | None, Field(description="Project key to place the repository in (create)")
    ] = None,
    new_name: Annotated[
        str | None, Field(description="Name of the fork (fork)")
    ] = None,
    target_workspace: Annotated[
        str | None, Field(description="Workspace receiving the fork (fork)")
    ] = None,
    ref: Annotated[
        str, Field(description="Branch, tag or commit (get_file, list_source)")
    ] = "HEAD",
    path: Annotated[
        str | None,
        Field(description="File or directory path (get_file, list_source)"),
    ] = None,
    page: PageParam = None,
    pagelen: PagelenParam = None,
    format: FormatParam = None,
) -> str:
    """
    Manage Bitbucket repositories and read their files.

    Actions:
    - list: Repositories in a workspace (filter with role, q, sort)
    - get: Repository details
    - create / update / delete: Repository lifecycle
    - fork: Fork into target_workspace (or your own workspace)
    - get_file: Raw file content at ref
    - list_source: Directory listing at ref

    Returns:
        JSON string with the result, the raw file content, or error information.
    """
    try:
        if action in REPOSITORY_WRITE_ACTIONS:
            check_write_access(ctx, "bitbucket_repositories", action)
        bitbucket = await get_bitbucket_fetcher(ctx)
        ws = _workspace(bitbucket, workspace, action)

        if action == "list":
            response = await bitbucket.list_repositories(
                ws, role=role, q=q, sort=sort, page=page, pagelen=pagelen
            )
            return _render_page(bitbucket, response, format, "repository")

        _require(action, repo_slug=repo_slug)

        if action == "get":
            result = await bitbucket.get_repository(ws, repo_slug)
            return _render(bitbucket, result, format, "repository")
        if action == "create":
            result = await bitbucket.create_repository(
                ws,
                repo_slug,
                name=name,
                description=description,
                is_private=True if is_private is None else is_private,
                project_key=project_key,
            )
            return _render(bitbucket, result, format, "repository")
        if action == "update":
            changes: dict[str, Any] = {}
            if name:
                changes["name"] = name
            if description is not None:
                changes["description"] = description
            if is_private is not None:
                changes["is_private"] = is_private
            if not changes:
                raise ValueError(
                    "name, description or is_private is required for update action"
                )
            result = await bitbucket.update_repository(ws, repo_slug, changes)
            return _render(bitbucket, result, format, "repository")
        if action == "delete":
            await bitbucket.delete_repository(ws, repo_slug)
            return _done(f"Repository {ws}/{repo_slug} deleted successfully")
        if action == "fork":
            result = await bitbucket.fork_repository(
                ws, repo_slug, name=new_name, target_workspace=target_workspace
            )
            return _render(bitbucket, result, format, "repository")
        if action == "get_file":
            _require(action, path=path)
            return await bitbucket.get_file_content(ws, repo_slug, path, ref=ref)
        if action == "list_source":
            response = await bitbucket.list_source(
                ws, repo_slug, ref=ref, path=path or "", page=page, pagelen=pagelen
            )
            return _render_page(bitbucket, response, format, "tree_entry")
        raise ValueError(f"Unknown action: {action}")
    except Exception as e:
        return tool_error_response("bitbucket_repositories", e)


PULL_REQUEST_WRITE_ACTIONS = {
    "create",
    "update",
    "merge",
    "approve",
    "unapprove",
    "decline",
    "request_changes",
    "add_comment",
}


@bitbucket_mcp.tool(
    tags={"bitbucket", "read", "write"},
    annotations={"title": "Bitbucket Pull Requests", "readOnlyHint": False},
)
async def bitbucket_pull_requests(
    ctx: Context,
    action: Annotated[
        Literal[
            "list",
            "get",
            "create",
            "update",
            "merge",
            "approve",
            "unapprove",
            "decline",
            "request_changes",
            "list_comments",
            "add_comment",
            "get_diff",
            "get_diffstat",
            "list_commits",
            "get_activity",
        ],
        Field(description="Operation to perform"),
    ],
    repo_slug: RepoSlugParam = None,
    workspace: WorkspaceParam = None,
    pr_id: Annotated[int | None, Field(description="Pull request ID", ge=1)] = None,
    state: Annotated[
        Literal["OPEN", "MERGED", "DECLINED", "SUPERSEDED"] | None,
        Field(description="Filter by state (list)"),
    ] = None,
    q: Annotated[str | None, Field(description="Bitbucket query filter (list)")] = None,
    sort: Annotated[
        str | None, Field(description="Sort field, e.g. '-updated_on' (list)")
    ] = None,
    title: Annotated[str | None, Field(description="Title (create, update)")] = None,
    description: Annotated[
        str | None, Field(description="Description in Markdown (create, update)")
    ] = None,
    source_branch: Annotated[
        str | None, Field(description="Source branch, e.g. 'feature/x' (create)")
    ] = None,
    destination_branch: Annotated[
        str | None,
        Field(description="Destination branch; repository main branch if omitted"),
    ] = None,
    close_source_branch: Annotated[
        bool | None, Field(description="Close the source branch after merge")
    ] = None,
    reviewers: Annotated[
        list[str] | None, Field(description="Reviewer account UUIDs (create, update)")
    ] = None,
    message: Annotated[
        str | None, Field(description="Merge commit message (merge)")
    ] = None,
    merge_strategy: Annotated[
        Literal["merge_commit", "squash", "fast_forward"] | None,
        Field(description="Merge strategy (merge)"),
    ] = None,
    content: Annotated[
        str | None, Field(description="Comment text in Markdown (add_comment)")
    ] = None,
    inline_path: Annotated[
        str | None, Field(description="File path for an inline comment (add_comment)")
    ] = None,
    inline_line: Annotated[
        int | None,
        Field(description="New-file line for an inline comment (add_comment)", ge=1),
    ] = None,
    parent_id: Annotated[
        int | None, Field(description="Comment ID to reply to (add_comment)", ge=1)
    ] = None,
    page: PageParam = None,
    pagelen: PagelenParam = None,
    format: FormatParam = None,
) -> str:
    """
    Work with Bitbucket pull requests.

    Actions:
    - list / get: Find pull requests
    - create / update: Open or edit a pull request
    - merge / decline: Close a pull request
    - approve / unapprove / request_changes: Review
    - list_comments / add_comment: Discussion, including inline comments and replies
    - get_diff: Unified diff (raw text)
    - get_diffstat / list_commits / get_activity: Change summary and history

    Args:
        ctx: The FastMCP context.
        action: Operation to perform.
        repo_slug: Repository slug.
        workspace: Workspace slug.
        pr_id: Pull request ID (every action except list and create).

    Returns:
        JSON string with the result, the raw diff, or error information.
    """
    try:
        if action in PULL_REQUEST_WRITE_ACTIONS:
            check_write_access(ctx, "bitbucket_pull_requests", action)
        bitbucket = await get_bitbucket_fetcher(ctx)
        ws = _workspace(bitbucket, workspace, action)
        _require(action, repo_slug=repo_slug)

        if action == "list":
            response = await bitbucket.list_pull_requests(
                ws, repo_slug, state=state, q=q, sort=sort, page=page, pagelen=pagelen
            )
            return _render_page(bitbucket, response, format, "pullrequest")
        if action == "create":
            _require(action, title=title, source_branch=source_branch)
            result = await bitbucket.create_pull_request(
                ws,
                repo_slug,
                title=title,
                source_branch=source_branch,
                destination_branch=destination_branch,
                description=description,
                close_source_branch=close_source_branch,
                reviewers=reviewers,
            )
            return _render(bitbucket, result, format, "pullrequest")

        _require(action, pr_id=pr_id)

        if action == "get":
            result = await bitbucket.get_pull_request(ws, repo_slug, pr_id)
            return _render(bitbucket, result, format, "pullrequest")
        if action == "update":
            result = await bitbucket.update_pull_request(
                ws,
                repo_slug,
                pr_id,
                title=title,
                description=description,
                destination_branch=destination_branch,
                reviewers=reviewers,
            )
            return _render(bitbucket, result, format, "pullrequest")
        if action == "merge":
            result = await bitbucket.merge_pull_request(
                ws,
                repo_slug,
                pr_id,
                message=message,
                close_source_branch=close_source_branch,
                merge_strategy=merge_strategy,
            )
            return _render(bitbucket, result, format, "pullrequest")
        if action == "approve":
            result = await bitbucket.approve_pull_request(ws, repo_slug, pr_id)
            return _render(bitbucket, result, format)
        if action == "unapprove":
            await bitbucket.unapprove_pull_request(ws, repo_slug, pr_id)
            return _done("Approval removed successfully")
        if action == "decline":
            result = await bitbucket.decline_pull_request(ws, repo_slug, pr_id)
            return _render(bitbucket, result, format, "pullrequest")
        if action == "request_changes":
            result = await bitbucket.request_changes(ws, repo_slug, pr_id)
            return _render(bitbucket, result, format)
        if action == "list_comments":
            response = await bitbucket.list_pull_request_comments(
                ws, repo_slug, pr_id, page=page, pagelen=pagelen
            )
            return _render_page(bitbucket, response, format, "pr_comment")
        if action == "add_comment":
            _require(action, content=content)
            result = await bitbucket.create_pull_request_comment(
                ws,
                repo_slug,
                pr_id,
                content,
                inline_path=inline_path,
                inline_line=inline_line,
                parent_id=parent_id,
            )
            return _render(bitbucket, result, format, "pr_comment")
        if action == "get_diff":
            return await bitbucket.get_pull_request_diff(ws, repo_slug, pr_id)
        if action == "get_diffstat":
            response = await bitbucket.get_pull_request_diffstat(
                ws, repo_slug, pr_id, page=page, pagelen=pagelen
            )
            return _render_page(bitbucket, response, format, "diffstat")
        if action == "list_commits":
            response = await bitbucket.list_pull_request_commits(
                ws, repo_slug, pr_id, page=page, pagelen=pagelen
            )
            return _render_page(bitbucket, response, format, "commit")
        if action == "get_activity":
            response = await bitbucket.get_pull_request_activity(
                ws, repo_slug, pr_id, page=page, pagelen=pagelen
            )
            return _render_page(bitbucket, response, format, "activity")
        raise ValueError(f"Unknown action: {action}")
    except Exception as e:
        return tool_error_response("bitbucket_pull_requests", e)


BRANCH_WRITE_ACTIONS = {"create_branch", "delete_branch", "create_tag"}


@bitbucket_mcp.tool(
    tags={"bitbucket", "read", "write"},
    annotations={"title": "Bitbucket Branches and Tags", "readOnlyHint": False},
)
async def bitbucket_branches(
    ctx: Context,
    action: Annotated[
        Literal[
            "list_branches",
            "get_branch",
            "create_branch",
            "delete_branch",
            "list_tags",
            "get_tag",
            "create_tag",
            "get_branching_model",
            "list_restrictions",
        ],
        Field(description="Operation to perform"),
    ],
    repo_slug: RepoSlugParam = None,
    workspace: WorkspaceParam = None,
    name: Annotated[
        str | None, Field(description="Branch or tag name, e.g. 'feature/login'")
    ] = None,
    target: Annotated[
        str | None,
        Field(description="Commit hash the new branch or tag points to"),
    ] = None,
    message: Annotated[
        str | None, Field(description="Annotated tag message (create_tag)")
    ] = None,
    q: Annotated[
        str | None, Field(description="Bitbucket query filter (list_branches, list_tags)")
    ] = None,
    sort: Annotated[
        str | None, Field(description="Sort field (list_branches, list_tags)")
    ] = None,
    page: PageParam = None,
    pagelen: PagelenParam = None,
    format: FormatParam = None,
) -> str:
    """
    Manage branches and tags of a Bitbucket repository.

    Actions:
    - list_branches / get_branch / create_branch / delete_branch
    - list_tags / get_tag / create_tag
    - get_branching_model: Development/production branches and prefixes
    - list_restrictions: Branch permission rules

    Returns:
        JSON string with the result or error information.
    """
    try:
        if action in BRANCH_WRITE_ACTIONS:
            check_write_access(ctx, "bitbucket_branches", action)
        bitbucket = await get_bitbucket_fetcher(ctx)
        ws = _workspace(bitbucket, workspace, action)
        _require(action, repo_slug=repo_slug)

        if action == "list_branches":
            response = await bitbucket.list_branches(
                ws, repo_slug, q=q, sort=sort, page=page, pagelen=pagelen
            )
            return _render_page(bitbucket, response, format, "branch")
        if action == "get_branch":
            _require(action, name=name)
            result = await bitbucket.get_branch(ws, repo_slug, name)
            return _render(bitbucket, result, format, "branch")
        if action == "create_branch":
            _require(action, name=name, target=target)
            result = await bitbucket.create_branch(ws, repo_slug, name, target)
            return _render(bitbucket, result, format, "branch")
        if action == "delete_branch":
            _require(action, name=name)
            await bitbucket.delete_branch(ws, repo_slug, name)
            return _done(f"Branch {name} deleted successfully")
        if action == "list_tags":
            response = await bitbucket.list_tags(
                ws, repo_slug, q=q, sort=sort, page=page, pagelen=pagelen
            )
            return _render_page(bitbucket, response, format, "tag")
        if action == "get_tag":
            _require(action, name=name)
            result = await bitbucket.get_tag(ws, repo_slug, name)
            return _render(bitbucket, result, format, "tag")
        if action == "create_tag":
            _require(action, name=name, target=target)
            result = await bitbucket.create_tag(
                ws, repo_slug, name, target, message=message
            )
            return _render(bitbucket, result, format, "tag")
        if action == "get_branching_model":
            result = await bitbucket.get_branching_model(ws, repo_slug)
            return _render(bitbucket, result, format)
        if action == "list_restrictions":
            response = await bitbucket.list_branch_restrictions(
                ws, repo_slug, page=page, pagelen=pagelen
            )
            return _render_page(bitbucket, response, format, "branch_restriction")
        raise ValueError(f"Unknown action: {action}")
    except Exception as e:
        return tool_error_response("bitbucket_branches", e)


COMMIT_WRITE_ACTIONS = {"add_comment", "create_status"}


@bitbucket_mcp.tool(
    tags={"bitbucket", "read", "write"},
    annotations={"title": "Bitbucket Commits", "readOnlyHint": False},
)
async def bitbucket_commits(
    ctx: Context,
    action: Annotated[
        Literal[
            "list",
            "get",
            "get_diff",
            "get_patch",
            "get_diffstat",
            "list_statuses",
            "create_status",
            "list_comments",
            "add_comment",
            "compare",
        ],
        Field(description="Operation to perform"),
    ],
    repo_slug: RepoSlugParam = None,
    workspace: WorkspaceParam = None,
    commit: Annotated[
        str | None,
        Field(
            description=(
                "Commit hash (get, list_statuses, create_status, "
                "list_comments, add_comment)"
            )
        ),
    ] = None,
    spec: Annotated[
        str | None,
        Field(
            description=(
                "Commit hash or '<from>..<to>' range "
                "(get_diff, get_patch, get_diffstat)"
            )
        ),
    ] = None,
    revision: Annotated[
        str | None, Field(description="Branch, tag or hash to list from (list)")
    ] = None,
    path: Annotated[
        str | None, Field(description="Only commits touching this path (list)")
    ] = None,
    include: Annotated[
        str | None, Field(description="Only commits reachable from this ref (list)")
    ] = None,
    exclude: Annotated[
        str | None, Field(description="Leave out commits reachable from this ref (list)")
    ] = None,
    base: Annotated[str | None, Field(description="Base ref (compare)")] = None,
    head: Annotated[str | None, Field(description="Head ref (compare)")] = None,
    content: Annotated[
        str | None, Field(description="Comment text in Markdown (add_comment)")
    ] = None,
    state: Annotated[
        Literal["SUCCESSFUL", "FAILED", "INPROGRESS", "STOPPED"] | None,
        Field(description="Build state (create_status)"),
    ] = None,
    key: Annotated[
        str | None, Field(description="Unique build key, e.g. 'ci-build' (create_status)")
    ] = None,
    url: Annotated[
        str | None, Field(description="Link to the build result (create_status)")
    ] = None,
    name: Annotated[
        str | None, Field(description="Build display name (create_status)")
    ] = None,
    description: Annotated[
        str | None, Field(description="Build description (create_status)")
    ] = None,
    page: PageParam = None,
    pagelen: PagelenParam = None,
    format: FormatParam = None,
) -> str:
    """
    Inspect commits, diffs and build statuses of a Bitbucket repository.

    Actions:
    - list / get: Commit history and details
    - get_diff / get_patch: Raw diff or patch text for a commit or range
    - get_diffstat: Per-file change summary
    - list_statuses / create_status: Build statuses reported for a commit
    - list_comments / add_comment: Comments on a commit
    - compare: Commits on head that are not on base

    Returns:
        JSON string with the result, the raw diff, or error information.
    """
    try:
        if action in COMMIT_WRITE_ACTIONS:
            check_write_access(ctx, "bitbucket_commits", action)
        bitbucket = await get_bitbucket_fetcher(ctx)
        ws = _workspace(bitbucket, workspace, action)
        _require(action, repo_slug=repo_slug)

        if action == "list":
            response = await bitbucket.list_commits(
                ws,
                repo_slug,
                revision=revision,
                path=path,
                include=include,
                exclude=exclude,
                page=page,
                pagelen=pagelen,
            )
            return _render_page(bitbucket, response, format, "commit")
        if action == "get":
            _require(action, commit=commit)
            result = await bitbucket.get_commit(ws, repo_slug, commit)
            return _render(bitbucket, result, format, "commit")
        if action == "get_diff":
            _require(action, spec=spec)
            return await bitbucket.get_diff(ws, repo_slug, spec)
        if action == "get_patch":
            _require(action, spec=spec)
            return await bitbucket.get_patch(ws, repo_slug, spec)
        if action == "get_diffstat":
            _require(action, spec=spec)
            response = await bitbucket.get_diffstat(
                ws, repo_slug, spec, page=page, pagelen=pagelen
            )
            return _render_page(bitbucket, response, format, "diffstat")
        if action == "list_statuses":
            _require(action, commit=commit)
            response = await bitbucket.list_build_statuses(
                ws, repo_slug, commit, page=page, pagelen=pagelen
            )
            return _render_page(bitbucket, response, format, "build_status")
        if action == "create_status":
            _require(action, commit=commit, state=state, key=key, url=url)
            result = await bitbucket.create_build_status(
                ws,
                repo_slug,
                commit,
                state,
                key,
                url,
                name=name,
                description=description,
            )
            return _render(bitbucket, result, format, "build_status")
        if action == "list_comments":
            _require(action, commit=commit)
            response = await bitbucket.list_commit_comments(
                ws, repo_slug, commit, page=page, pagelen=pagelen
            )
            return _render_page(bitbucket, response, format, "commit_comment")
        if action == "add_comment":
            _require(action, commit=commit, content=content)
            result = await bitbucket.create_commit_comment(ws, repo_slug, commit, content)
            return _render(bitbucket, result, format, "commit_comment")
        if action == "compare":
            _require(action, base=base, head=head)
            result = await bitbucket.compare_commits(
                ws, repo_slug, base, head, pagelen=pagelen
            )
            if (format or bitbucket.config.output_format) == "compact":
                result = {
                    "commits": extract_fields(result["commits"], COMPACT_FIELDS["commit"])
                }
            return _render(bitbucket, result, format)
        raise ValueError(f"Unknown action: {action}")
    except Exception as e:
        return tool_error_response("bitbucket_commits", e)


PIPELINE_WRITE_ACTIONS = {
    "trigger",
    "trigger_custom",
    "stop",
    "set_enabled",
    "create_variable",
    "update_variable",
    "delete_variable",
}


@bitbucket_mcp.tool(
    tags={"bitbucket", "read", "write"},
    annotations={"title": "Bitbucket Pipelines", "readOnlyHint": False},
)
async def bitbucket_pipelines(
    ctx: Context,
    action: Annotated[
        Literal[
            "list",
            "get",
            "trigger",
            "trigger_custom",
            "stop",
            "list_steps",
            "get_step",
            "get_logs",
            "get_config",
            "set_enabled",
            "list_variables",
            "get_variable",
            "create_variable",
            "update_variable",
            "delete_variable",
        ],
        Field(description="Operation to perform"),
    ],
    repo_slug: RepoSlugParam = None,
    workspace: WorkspaceParam = None,
    pipeline_uuid: Annotated[
        str | None, Field(description="Pipeline UUID including braces, e.g. '{...}'")
    ] = None,
    step_uuid: Annotated[
        str | None, Field(description="Step UUID (get_step, get_logs)")
    ] = None,
    branch: Annotated[
        str | None, Field(description="Branch to run on (trigger, trigger_custom)")
    ] = None,
    pattern: Annotated[
        str | None,
        Field(description="Custom pipeline name from bitbucket-pipelines.yml (trigger_custom)"),
    ] = None,
    variables: Annotated[
        list[dict[str, Any]] | None,
        Field(
            description=(
                "Pipeline variables as objects with key, value and optional "
                "secured (trigger, trigger_custom)"
            )
        ),
    ] = None,
    sort: Annotated[
        str | None, Field(description="Sort field, e.g. '-created_on' (list)")
    ] = None,
    target_branch: Annotated[
        str | None, Field(description="Only pipelines for this branch (list)")
    ] = None,
    enabled: Annotated[
        bool | None, Field(description="Enable or disable Pipelines (set_enabled)")
    ] = None,
    variable_uuid: Annotated[
        str | None,
        Field(description="Variable UUID (get_variable, update_variable, delete_variable)"),
    ] = None,
    key: Annotated[str | None, Field(description="Variable name")] = None,
    value: Annotated[str | None, Field(description="Variable value")] = None,
    secured: Annotated[
        bool | None, Field(description="Store the variable as a secret")
    ] = None,
    page: PageParam = None,
    pagelen: PagelenParam = None,
    format: FormatParam = None,
) -> str:
    """
    Run and inspect Bitbucket Pipelines.

    Actions:
    - list / get: Pipeline runs
    - trigger: Run the default pipeline for a branch
    - trigger_custom: Run a custom pipeline (pattern) on a branch
    - stop: Stop a running pipeline
    - list_steps / get_step / get_logs: Steps and their raw logs
    - get_config / set_enabled: Repository Pipelines settings
    - list_variables / get_variable / create_variable / update_variable /
      delete_variable: Repository variables

    Returns:
        JSON string with the result, the raw log, or error information.
    """
    try:
        if action in PIPELINE_WRITE_ACTIONS:
            check_write_access(ctx, "bitbucket_pipelines", action)
        bitbucket = await get_bitbucket_fetcher(ctx)
        ws = _workspace(bitbucket, workspace, action)
        _require(action, repo_slug=repo_slug)

        if action == "list":
            response = await bitbucket.list_pipelines(
                ws,
                repo_slug,
                sort=sort,
                target_branch=target_branch,
                page=page,
                pagelen=pagelen,
            )
            return _render_page(bitbucket, response, format, "pipeline")
        if action == "get":
            _require(action, pipeline_uuid=pipeline_uuid)
            result = await bitbucket.get_pipeline(ws, repo_slug, pipeline_uuid)
            return _render(bitbucket, result, format, "pipeline")
        if action == "trigger":
            _require(action, branch=branch)
            result = await bitbucket.trigger_branch_pipeline(
                ws, repo_slug, branch, variables=variables
            )
            return _render(bitbucket, result, format, "pipeline")
        if action == "trigger_custom":
            _require(action, branch=branch, pattern=pattern)
            result = await bitbucket.trigger_custom_pipeline(
                ws, repo_slug, branch, pattern, variables=variables
            )
            return _render(bitbucket, result, format, "pipeline")
        if action == "stop":
            _require(action, pipeline_uuid=pipeline_uuid)
            await bitbucket.stop_pipeline(ws, repo_slug, pipeline_uuid)
            return _done("Pipeline stopped successfully")
        if action == "list_steps":
            _require(action, pipeline_uuid=pipeline_uuid)
            response = await bitbucket.list_pipeline_steps(
                ws, repo_slug, pipeline_uuid, page=page, pagelen=pagelen
            )
            return _render_page(bitbucket, response, format, "pipeline_step")
        if action == "get_step":
            _require(action, pipeline_uuid=pipeline_uuid, step_uuid=step_uuid)
            result = await bitbucket.get_pipeline_step(
                ws, repo_slug, pipeline_uuid, step_uuid
            )
            return _render(bitbucket, result, format, "pipeline_step")
        if action == "get_logs":
            _require(action, pipeline_uuid=pipeline_uuid, step_uuid=step_uuid)
            return await bitbucket.get_pipeline_step_log(
                ws, repo_slug, pipeline_uuid, step_uuid
            )
        if action == "get_config":
            result = await bitbucket.get_pipelines_config(ws, repo_slug)
            return _render(bitbucket, result, format)
        if action == "set_enabled":
            _require(action, enabled=enabled)
            await bitbucket.set_pipelines_enabled(ws, repo_slug, bool(enabled))
            return _done(
                f"Pipelines {'enabled' if enabled else 'disabled'} successfully"
            )
        if action == "list_variables":
            response = await bitbucket.list_pipeline_variables(
                ws, repo_slug, page=page, pagelen=pagelen
            )
            return _render_page(bitbucket, response, format, "pipeline_variable")
        if action == "get_variable":
            _require(action, variable_uuid=variable_uuid)
            result = await bitbucket.get_pipeline_variable(
                ws, repo_slug, variable_uuid
            )
            return _render(bitbucket, result, format, "pipeline_variable")
        if action == "create_variable":
            _require(action, key=key, value=value)
            result = await bitbucket.create_pipeline_variable(
                ws, repo_slug, key, value, secured=bool(secured)
            )
            return _render(bitbucket, result, format, "pipeline_variable")
        if action == "update_variable":
            _require(action, variable_uuid=variable_uuid)
            result = await bitbucket.update_pipeline_variable(
                ws,
                repo_slug,
                variable_uuid,
                key=key,
                value=value,
                secured=secured,
            )
            return _render(bitbucket, result, format, "pipeline_variable")
        if action == "delete_variable":
            _require(action, variable_uuid=variable_uuid)
            await bitbucket.delete_pipeline_variable(ws, repo_slug, variable_uuid)
            return _done("Variable deleted successfully")
        raise ValueError(f"Unknown action: {action}")
    except Exception as e:
        return tool_error_response("bitbucket_pipelines", e)


ISSUE_WRITE_ACTIONS = {
    "create",
    "update",
    "delete",
    "add_comment",
    "vote",
    "unvote",
    "watch",
    "unwatch",
}


@bitbucket_mcp.tool(
    tags={"bitbucket", "read", "write"},
    annotations={"title": "Bitbucket Issues", "readOnlyHint": False},
)
async def bitbucket_issues(
    ctx: Context,
    action: Annotated[
        Literal[
            "list",
            "get",
            "create",
            "update",
            "delete",
            "list_comments",
            "add_comment",
            "vote",
            "unvote",
            "watch",
            "unwatch",
            "list_changes",
        ],
        Field(description="Operation to perform"),
    ],
    repo_slug: RepoSlugParam = None,
    workspace: WorkspaceParam = None,
    issue_id: Annotated[int | None, Field(description="Issue ID", ge=1)] = None,
    q: Annotated[str | None, Field(description="Bitbucket query filter (list)")] = None,
    sort: Annotated[
        str | None, Field(description="Sort field, e.g. '-updated_on' (list)")
    ] = None,
    state: Annotated[
        Literal[
            "new", "open", "resolved", "on hold", "invalid", "duplicate", "wontfix", "closed"
        ]
        | None,
        Field(description="Issue state (list filter, update)"),
    ] = None,
    priority: Annotated[
        Literal["trivial", "minor", "major", "critical", "blocker"] | None,
        Field(description="Priority (list filter, create, update)"),
    ] = None,
    kind: Annotated[
        Literal["bug", "enhancement", "proposal", "task"] | None,
        Field(description="Kind (list filter, create, update)"),
    ] = None,
    assignee: Annotated[
        str | None, Field(description="Assignee username (list filter, create, update)")
    ] = None,
    reporter: Annotated[
        str | None, Field(description="Reporter username (list filter)")
    ] = None,
    title: Annotated[str | None, Field(description="Title (create, update)")] = None,
    content: Annotated[
        str | None,
        Field(description="Description or comment text in Markdown"),
    ] = None,
    page: PageParam = None,
    pagelen: PagelenParam = None,
    format: FormatParam = None,
) -> str:
    """
    Work with the Bitbucket issue tracker of a repository.

    The repository must have its issue tracker enabled.

    Actions:
    - list / get / create / update / delete
    - list_comments / add_comment
    - vote / unvote / watch / unwatch
    - list_changes: History of field changes

    Returns:
        JSON string with the result or error information.
    """
    try:
        if action in ISSUE_WRITE_ACTIONS:
            check_write_access(ctx, "bitbucket_issues", action)
        bitbucket = await get_bitbucket_fetcher(ctx)
        ws = _workspace(bitbucket, workspace, action)
        _require(action, repo_slug=repo_slug)

        if action == "list":
            response = await bitbucket.list_issues(
                ws,
                repo_slug,
                q=q,
                sort=sort,
                state=state,
                priority=priority,
                kind=kind,
                assignee=assignee,
                reporter=reporter,
                page=page,
                pagelen=pagelen,
            )
            return _render_page(bitbucket, response, format, "issue")
        if action == "create":
            _require(action, title=title)
            result = await bitbucket.create_issue(
                ws,
                repo_slug,
                title,
                content=content,
                kind=kind,
                priority=priority,
                assignee=assignee,
            )
            return _render(bitbucket, result, format, "issue")

        _require(action, issue_id=issue_id)

        if action == "get":
            result = await bitbucket.get_issue(ws, repo_slug, issue_id)
            return _render(bitbucket, result, format, "issue")
        if action == "update":
            result = await bitbucket.update_issue(
                ws,
                repo_slug,
                issue_id,
                title=title,
                content=content,
                state=state,
                kind=kind,
                priority=priority,
                assignee=assignee,
            )
            return _render(bitbucket, result, format, "issue")
        if action == "delete":
            await bitbucket.delete_issue(ws, repo_slug, issue_id)
            return _done(f"Issue #{issue_id} deleted successfully")
        if action == "list_comments":
            response = await bitbucket.list_issue_comments(
                ws, repo_slug, issue_id, page=page, pagelen=pagelen
            )
            return _render_page(bitbucket, response, format, "issue_comment")
        if action == "add_comment":
            _require(action, content=content)
            result = await bitbucket.create_issue_comment(
                ws, repo_slug, issue_id, content
            )
            return _render(bitbucket, result, format, "issue_comment")
        if action == "vote":
            await bitbucket.vote_issue(ws, repo_slug, issue_id)
            return _done(f"Voted for issue #{issue_id}")
        if action == "unvote":
            await bitbucket.unvote_issue(ws, repo_slug, issue_id)
            return _done(f"Vote removed from issue #{issue_id}")
        if action == "watch":
            await bitbucket.watch_issue(ws, repo_slug, issue_id)
            return _done(f"Now watching issue #{issue_id}")
        if action == "unwatch":
            await bitbucket.unwatch_issue(ws, repo_slug, issue_id)
            return _done(f"Stopped watching issue #{issue_id}")
        if action == "list_changes":
            response = await bitbucket.list_issue_changes(
                ws, repo_slug, issue_id, page=page, pagelen=pagelen
            )
            return _render_page(bitbucket, response, format, "issue_change")
        raise ValueError(f"Unknown action: {action}")
    except Exception as e:
        return tool_error_response("bitbucket_issues", e)


WEBHOOK_WRITE_ACTIONS = {
    "create",
    "update",
    "delete",
    "create_workspace",
    "update_workspace",
    "delete_workspace",
}


@bitbucket_mcp.tool(
    tags={"bitbucket", "read", "write"},
    annotations={"title": "Bitbucket Webhooks", "readOnlyHint": False},
)
async def bitbucket_webhooks(
    ctx: Context,
    action: Annotated[
        Literal[
            "list",
            "get",
            "create",
            "update",
            "delete",
            "list_workspace",
            "get_workspace",
            "create_workspace",
            "update_workspace",
            "delete_workspace",
        ],
        Field(description="Operation to perform"),
    ],
    workspace: WorkspaceParam = None,
    repo_slug: Annotated[
        str | None,
        Field(description="Repository slug (repository-level actions)"),
    ] = None,
    webhook_uuid: Annotated[
        str | None, Field(description="Webhook UUID including braces")
    ] = None,
    url: Annotated[str | None, Field(description="Callback URL")] = None,
    events: Annotated[
        list[str] | None,
        Field(description="Events, e.g. ['repo:push', 'pullrequest:created']"),
    ] = None,
    description: Annotated[
        str | None, Field(description="Webhook description")
    ] = None,
    active: Annotated[
        bool | None, Field(description="Whether the webhook fires (default: true)")
    ] = None,
    secret: Annotated[
        str | None, Field(description="Secret used to sign deliveries")
    ] = None,
    page: PageParam = None,
    pagelen: PagelenParam = None,
    format: FormatParam = None,
) -> str:
    """
    Manage repository and workspace webhooks.

    Actions:
    - list / get / create / update / delete: Repository webhooks (repo_slug required)
    - list_workspace / get_workspace / create_workspace / update_workspace /
      delete_workspace: Workspace webhooks

    Returns:
        JSON string with the result or error information.
    """
    try:
        if action in WEBHOOK_WRITE_ACTIONS:
            check_write_access(ctx, "bitbucket_webhooks", action)
        bitbucket = await get_bitbucket_fetcher(ctx)
        ws = _workspace(bitbucket, workspace, action)

        if action == "list_workspace":
            response = await bitbucket.list_workspace_webhooks(ws, page, pagelen)
            return _render_page(bitbucket, response, format, "webhook")
        if action == "get_workspace":
            _require(action, webhook_uuid=webhook_uuid)
            result = await bitbucket.get_workspace_webhook(ws, webhook_uuid)
            return _render(bitbucket, result, format, "webhook")
        if action == "create_workspace":
            _require(action, url=url, events=events)
            result = await bitbucket.create_workspace_webhook(
                ws,
                url,
                events,
                description=description,
                active=True if active is None else active,
                secret=secret,
            )
            return _render(bitbucket, result, format, "webhook")
        if action == "update_workspace":
            _require(action, webhook_uuid=webhook_uuid)
            result = await bitbucket.update_workspace_webhook(
                ws,
                webhook_uuid,
                url=url,
                events=events,
                description=description,
                active=active,
                secret=secret,
            )
            return _render(bitbucket, result, format, "webhook")
        if action == "delete_workspace":
            _require(action, webhook_uuid=webhook_uuid)
            await bitbucket.delete_workspace_webhook(ws, webhook_uuid)
            return _done("Workspace webhook deleted successfully")

        if action == "list":
            _require(action, repo_slug=repo_slug)
            response = await bitbucket.list_webhooks(
                ws, repo_slug, page=page, pagelen=pagelen
            )
            return _render_page(bitbucket, response, format, "webhook")
        if action == "get":
            _require(action, repo_slug=repo_slug, webhook_uuid=webhook_uuid)
            result = await bitbucket.get_webhook(ws, repo_slug, webhook_uuid)
            return _render(bitbucket, result, format, "webhook")
        if action == "create":
            _require(action, repo_slug=repo_slug, url=url, events=events)
            result = await bitbucket.create_webhook(
                ws,
                repo_slug,
                url,
                events,
                description=description,
                active=True if active is None else active,
                secret=secret,
            )
            return _render(bitbucket, result, format, "webhook")
        if action == "update":
            _require(action, repo_slug=repo_slug, webhook_uuid=webhook_uuid)
            result = await bitbucket.update_webhook(
                ws,
                repo_slug,
                webhook_uuid,
                url=url,
                events=events,
                description=description,
                active=active,
                secret=secret,
            )
            return _render(bitbucket, result, format, "webhook")
        if action == "delete":
            _require(action, repo_slug=repo_slug, webhook_uuid=webhook_uuid)
            await bitbucket.delete_webhook(ws, repo_slug, webhook_uuid)
            return _done("Webhook deleted successfully")
        raise ValueError(f"Unknown action: {action}")
    except Exception as e:
        return tool_error_response("bitbucket_webhooks", e)
