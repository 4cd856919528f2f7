"""Configuration module for Bitbucket API interactions."""

import logging
import os
from dataclasses import dataclass
from typing import Literal, get_args

from ..exceptions import ConfigurationError
from ..utils.env import getenv, getenv_int, is_env_truthy
from ..utils.output import OUTPUT_FORMATS

logger = logging.getLogger("mcp-bitbucket.config")

AuthMethod = Literal["api_token", "repository_token", "workspace_token", "oauth", "basic"]
AUTH_METHODS: tuple[str, ...] = get_args(AuthMethod)

DEFAULT_BASE_URL = "https://api.bitbucket.org/2.0"
DEFAULT_TIMEOUT_MS = 30000
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY_MS = 1000
SERVER_API_PATH = "/rest/api/1.0"


@dataclass
class BitbucketConfig:
    """Configuration for Bitbucket API access.

    Supports five authentication methods:
    - api_token: Atlassian API token sent as Basic auth with the account email
    - repository_token / workspace_token: access tokens sent as Bearer
    - oauth: OAuth 2.0 consumer credentials and/or pre-issued tokens
    - basic: username + password (app password, or Bitbucket Server)
    """

    auth_method: AuthMethod = "api_token"
    api_token: str | None = None
    user_email: str | None = None
    username: str | None = None
    password: str | None = None
    oauth_client_id: str | None = None
    oauth_client_secret: str | None = None
    oauth_access_token: str | None = None
    oauth_refresh_token: str | None = None
    oauth_token_url: str | None = None
    base_url: str = DEFAULT_BASE_URL
    server_url: str | None = None
    workspace: str | None = None
    output_format: str = "json"
    timeout: int = DEFAULT_TIMEOUT_MS
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay: int = DEFAULT_RETRY_DELAY_MS
    ssl_verify: bool = True

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.auth_method not in AUTH_METHODS:
            raise ConfigurationError(
                f"Unknown authentication method: {self.auth_method}. "
                f"Expected one of: {', '.join(AUTH_METHODS)}"
            )
        if self.output_format not in OUTPUT_FORMATS:
            raise ConfigurationError(
                f"Invalid output format: {self.output_format}. "
                f"Expected one of: {', '.join(OUTPUT_FORMATS)}"
            )
        if self.timeout <= 0:
            raise ConfigurationError("timeout must be a positive number of milliseconds")
        if self.max_retries < 0 or self.retry_delay < 0:
            raise ConfigurationError("max_retries and retry_delay must not be negative")

        self.base_url = self.base_url.rstrip("/")
        if self.server_url:
            self.server_url = self.server_url.rstrip("/")

    @property
    def effective_base_url(self) -> str:
        """API root actually used for requests.

        Basic auth against a self-hosted server talks to its REST 1.0 API;
        everything else uses ``base_url``.
        """
        if self.auth_method == "basic" and self.server_url:
            return f"{self.server_url}{SERVER_API_PATH}"
        return self.base_url

    @classmethod
    def from_env(cls) -> "BitbucketConfig":
        """Create configuration from environment variables.

        Environment variables:
            BITBUCKET_AUTH_METHOD: api_token (default), repository_token,
                workspace_token, oauth or basic
            BITBUCKET_API_TOKEN / ATLASSIAN_API_TOKEN: API or access token
            BITBUCKET_USER_EMAIL / ATLASSIAN_USER_EMAIL: Account email for api_token
            BITBUCKET_USERNAME, BITBUCKET_PASSWORD / BITBUCKET_APP_PASSWORD: Basic auth
            BITBUCKET_OAUTH_CLIENT_ID, BITBUCKET_OAUTH_CLIENT_SECRET,
            BITBUCKET_OAUTH_ACCESS_TOKEN, BITBUCKET_OAUTH_REFRESH_TOKEN,
            BITBUCKET_OAUTH_TOKEN_URL: OAuth 2.0
            BITBUCKET_BASE_URL: API base URL (default: Bitbucket Cloud 2.0 API)
            BITBUCKET_SERVER_URL: Self-hosted Bitbucket Server URL
            BITBUCKET_WORKSPACE: Default workspace slug
            BITBUCKET_OUTPUT_FORMAT: json (default) or compact
            BITBUCKET_TIMEOUT: Per-attempt timeout in ms (default: 30000)
            BITBUCKET_MAX_RETRIES: Retry budget (default: 3)
            BITBUCKET_RETRY_DELAY: Base backoff delay in ms (default: 1000)
            BITBUCKET_SSL_VERIFY: TLS verification (default: true)

        Returns:
            BitbucketConfig instance

        Raises:
            ConfigurationError: If a value is invalid
        """
        auth_method = os.getenv("BITBUCKET_AUTH_METHOD", "api_token").strip().lower()
        username = getenv("BITBUCKET_USERNAME")

        return cls(
            auth_method=auth_method,  # type: ignore[arg-type]
            api_token=getenv("BITBUCKET_API_TOKEN", "ATLASSIAN_API_TOKEN"),
            user_email=getenv(
                "BITBUCKET_USER_EMAIL", "ATLASSIAN_USER_EMAIL", "BITBUCKET_USERNAME"
            ),
            username=username,
            password=getenv("BITBUCKET_PASSWORD", "BITBUCKET_APP_PASSWORD"),
            oauth_client_id=getenv("BITBUCKET_OAUTH_CLIENT_ID"),
            oauth_client_secret=getenv("BITBUCKET_OAUTH_CLIENT_SECRET"),
            oauth_access_token=getenv("BITBUCKET_OAUTH_ACCESS_TOKEN"),
            oauth_refresh_token=getenv("BITBUCKET_OAUTH_REFRESH_TOKEN"),
            oauth_token_url=getenv("BITBUCKET_OAUTH_TOKEN_URL"),
            base_url=getenv("BITBUCKET_BASE_URL", default=DEFAULT_BASE_URL),
            server_url=getenv("BITBUCKET_SERVER_URL"),
            workspace=getenv("BITBUCKET_WORKSPACE"),
            output_format=os.getenv("BITBUCKET_OUTPUT_FORMAT", "json").strip().lower(),
            timeout=getenv_int("BITBUCKET_TIMEOUT", DEFAULT_TIMEOUT_MS, minimum=1),
            max_retries=getenv_int("BITBUCKET_MAX_RETRIES", DEFAULT_MAX_RETRIES),
            retry_delay=getenv_int("BITBUCKET_RETRY_DELAY", DEFAULT_RETRY_DELAY_MS),
            ssl_verify=is_env_truthy("BITBUCKET_SSL_VERIFY", "true"),
        )

    def is_auth_configured(self) -> bool:
        """Check whether the credentials required by ``auth_method`` are present."""
        if self.auth_method == "api_token":
            return bool(self.api_token and self.user_email)
        if self.auth_method in ("repository_token", "workspace_token"):
            return bool(self.api_token)
        if self.auth_method == "basic":
            return bool(self.username and self.password)
        return bool(
            self.oauth_access_token
            or self.oauth_refresh_token
            or (self.oauth_client_id and self.oauth_client_secret)
        )
