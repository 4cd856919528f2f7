"""Bitbucket API module for mcp_bitbucket.

This module provides the Bitbucket request executor, authentication
providers and the resource mixins built on top of them.
"""

from .auth import (
    AccessTokenAuthProvider,
    ApiTokenAuthProvider,
    AuthProvider,
    BasicAuthProvider,
    OAuth2AuthProvider,
    create_auth_provider,
    validate_auth,
)
from .branches import BranchesMixin
from .client import BitbucketClient
from .commits import CommitsMixin
from .config import BitbucketConfig
from .issues import IssuesMixin
from .pipelines import PipelinesMixin
from .pull_requests import PullRequestsMixin
from .repositories import RepositoriesMixin
from .webhooks import WebhooksMixin
from .workspaces import WorkspacesMixin


class BitbucketFetcher(
    WorkspacesMixin,
    RepositoriesMixin,
    PullRequestsMixin,
    BranchesMixin,
    CommitsMixin,
    PipelinesMixin,
    IssuesMixin,
    WebhooksMixin,
):
    """
    The main Bitbucket client class providing access to all Bitbucket operations.

    This class inherits from multiple mixins that provide specific functionality:
    - WorkspacesMixin: Workspaces, projects and members
    - RepositoriesMixin: Repository CRUD, forks and source browsing
    - PullRequestsMixin: Pull requests, reviews and comments
    - BranchesMixin: Branches, tags, branching model and restrictions
    - CommitsMixin: Commits, diffs and build statuses
    - PipelinesMixin: Pipelines, steps, logs and variables
    - IssuesMixin: Issue tracker
    - WebhooksMixin: Repository and workspace webhooks

    All mixins share one executor, so one auth provider (and one OAuth
    token cache) serves every call.
    """

    pass


__all__ = [
    "AccessTokenAuthProvider",
    "ApiTokenAuthProvider",
    "AuthProvider",
    "BasicAuthProvider",
    "BitbucketClient",
    "BitbucketConfig",
    "BitbucketFetcher",
    "OAuth2AuthProvider",
    "create_auth_provider",
    "validate_auth",
]
