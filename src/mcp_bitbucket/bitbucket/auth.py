"""Authentication providers for the Bitbucket API.

Each provider produces the ``Authorization`` header value for a request.
Bitbucket uses two conventions: Bearer for access tokens and OAuth, and
Basic for personal API tokens (with the account email as username) and for
username/password.
"""

import asyncio
import base64
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

import httpx
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import AuthenticationError, ConfigurationError
from ..models.bitbucket import OAuthTokenResponse
from ..utils.logging import mask_sensitive
from .config import BitbucketConfig

logger = logging.getLogger("mcp-bitbucket.auth")

BITBUCKET_TOKEN_URL = "https://bitbucket.org/site/oauth2/access_token"
TOKEN_EXPIRY_MARGIN = 300  # 5 minutes in seconds
TOKEN_REQUEST_TIMEOUT = 30.0

AccessTokenType = Literal["repository", "workspace", "project"]


def _basic_credentials(user: str, secret: str) -> str:
    return base64.b64encode(f"{user}:{secret}".encode()).decode("ascii")


class AuthProvider(ABC):
    """Common capability set of every authentication scheme."""

    method_name: str = ""

    @abstractmethod
    async def get_auth_header(self) -> str:
        """Return the value for the ``Authorization`` header."""

    @abstractmethod
    async def validate(self) -> bool:
        """Check that usable credentials are held."""

    async def refresh(self) -> None:
        raise AuthenticationError(
            f"{self.method_name} credentials do not support refreshing"
        )


class AccessTokenAuthProvider(AuthProvider):
    """Repository, workspace or project access token sent as a Bearer token."""

    def __init__(self, token: str, token_type: AccessTokenType = "repository") -> None:
        if not token:
            raise AuthenticationError(f"{token_type} access token is required")
        self._token = token
        self.token_type = token_type
        self.method_name = f"{token_type}_token"

    async def get_auth_header(self) -> str:
        return f"Bearer {self._token}"

    async def validate(self) -> bool:
        return bool(self._token.strip())


class ApiTokenAuthProvider(AuthProvider):
    """Atlassian API token, sent as Basic auth with the account email as username.

    Bitbucket only accepts personal API tokens this way; they are not valid
    Bearer tokens.
    """

    method_name = "api_token"

    def __init__(self, token: str, user_email: str) -> None:
        if not token:
            raise AuthenticationError("API token is required")
        if not user_email:
            raise AuthenticationError(
                "User email is required for API token authentication. "
                "API tokens use Basic HTTP Authentication where username is your Atlassian email."
            )
        self._token = token
        self.user_email = user_email

    async def get_auth_header(self) -> str:
        return f"Basic {_basic_credentials(self.user_email, self._token)}"

    async def validate(self) -> bool:
        return bool(self._token.strip() and self.user_email.strip())


class BasicAuthProvider(AuthProvider):
    """Username and password (or app password) for Cloud or self-hosted Server."""

    method_name = "basic"

    def __init__(self, username: str, password: str) -> None:
        if not username:
            raise AuthenticationError("Username is required for basic authentication")
        if not password:
            raise AuthenticationError("Password is required for basic authentication")
        self.username = username
        self._password = password

    async def get_auth_header(self) -> str:
        return f"Basic {_basic_credentials(self.username, self._password)}"

    async def validate(self) -> bool:
        return bool(self.username.strip() and self._password)


@dataclass
class OAuthTokenState:
    """Mutable token state owned by a single OAuth2AuthProvider."""

    access_token: str | None = None
    refresh_token: str | None = None
    expires_at: float | None = None

    def is_valid(self, now: float) -> bool:
        return bool(
            self.access_token and self.expires_at is not None and now < self.expires_at
        )


class OAuth2AuthProvider(AuthProvider):
    """OAuth 2.0 consumer credentials and/or pre-issued tokens, with refresh.

    Token resolution order on every header request:
    cached unexpired token, refresh-token grant, client-credentials grant,
    pre-issued access token without known expiry.
    """

    method_name = "oauth"

    def __init__(
        self,
        client_id: str | None = None,
        client_secret: str | None = None,
        access_token: str | None = None,
        refresh_token: str | None = None,
        token_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the OAuth provider.

        Args:
            client_id: OAuth consumer key
            client_secret: OAuth consumer secret
            access_token: Pre-issued access token
            refresh_token: Pre-issued refresh token
            token_url: Token endpoint (defaults to Bitbucket Cloud's)
            transport: Optional httpx transport for the token endpoint
            clock: Wall clock returning seconds, used for expiry tracking

        Raises:
            AuthenticationError: If no access token, refresh token or client
                id/secret pair is supplied
        """
        has_client_credentials = bool(client_id and client_secret)
        if not (has_client_credentials or access_token or refresh_token):
            raise AuthenticationError(
                "OAuth requires either client credentials, an access token or a refresh token"
            )
        self.client_id = client_id
        self._client_secret = client_secret
        self.token_url = token_url or BITBUCKET_TOKEN_URL
        self._state = OAuthTokenState(
            access_token=access_token, refresh_token=refresh_token
        )
        self._transport = transport
        self._clock = clock
        self._lock = asyncio.Lock()

    @property
    def has_client_credentials(self) -> bool:
        return bool(self.client_id and self._client_secret)

    @property
    def token_state(self) -> OAuthTokenState:
        return self._state

    async def get_auth_header(self) -> str:
        await self.ensure_valid_token()
        return f"Bearer {self._state.access_token}"

    async def validate(self) -> bool:
        try:
            await self.ensure_valid_token()
        except AuthenticationError as e:
            logger.error(f"OAuth validation failed: {e}")
            return False
        return bool(self._state.access_token)

    async def refresh(self) -> None:
        async with self._lock:
            if self._state.refresh_token:
                await self._refresh_access_token()
            elif self.has_client_credentials:
                await self._fetch_client_credentials_token()
            else:
                raise AuthenticationError(
                    "Cannot refresh token: no refresh token or client credentials"
                )

    async def ensure_valid_token(self) -> None:
        """Make sure a usable access token is cached, fetching one if needed.

        Raises:
            AuthenticationError: If no token can be obtained
        """
        if self._state.is_valid(self._clock()):
            return

        async with self._lock:
            # Another caller may have refreshed while this one waited.
            if self._state.is_valid(self._clock()):
                return
            if self._state.refresh_token:
                await self._refresh_access_token()
                return
            if self.has_client_credentials:
                await self._fetch_client_credentials_token()
                return
            if self._state.access_token and self._state.expires_at is None:
                return

        raise AuthenticationError("No valid authentication method available")

    async def _fetch_client_credentials_token(self) -> None:
        logger.debug("Fetching OAuth token using client credentials")
        await self._request_token(
            {"grant_type": "client_credentials"}, "Failed to obtain OAuth token"
        )

    async def _refresh_access_token(self) -> None:
        if not self._state.refresh_token:
            raise AuthenticationError("No refresh token available")
        logger.debug(
            f"Refreshing OAuth access token (refresh token: "
            f"{mask_sensitive(self._state.refresh_token)})"
        )
        await self._request_token(
            {"grant_type": "refresh_token", "refresh_token": self._state.refresh_token},
            "Failed to refresh OAuth token",
        )

    async def _request_token(self, form: dict[str, str], failure_prefix: str) -> None:
        headers = {"Accept": "application/json"}
        if self.has_client_credentials:
            credentials = _basic_credentials(self.client_id, self._client_secret)  # type: ignore[arg-type]
            headers["Authorization"] = f"Basic {credentials}"

        try:
            async with httpx.AsyncClient(
                transport=self._transport, timeout=TOKEN_REQUEST_TIMEOUT
            ) as client:
                response = await client.post(self.token_url, data=form, headers=headers)
        except httpx.HTTPError as e:
            raise AuthenticationError(f"{failure_prefix}: {e}") from e

        if not response.is_success:
            raise AuthenticationError(
                f"{failure_prefix}: {response.text}", details=response.text
            )

        try:
            token = OAuthTokenResponse.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            raise AuthenticationError(
                f"{failure_prefix}: malformed token response"
            ) from e
        self._update_tokens(token)

    def _update_tokens(self, token: OAuthTokenResponse) -> None:
        self._state.access_token = token.access_token
        if token.refresh_token:
            self._state.refresh_token = token.refresh_token
        if token.expires_in:
            self._state.expires_at = self._clock() + (
                token.expires_in - TOKEN_EXPIRY_MARGIN
            )
        logger.debug("OAuth tokens updated successfully")


def create_auth_provider(
    config: BitbucketConfig, transport: httpx.AsyncBaseTransport | None = None
) -> AuthProvider:
    """Build the provider matching ``config.auth_method``.

    Args:
        config: Bitbucket configuration
        transport: Optional httpx transport used for OAuth token requests

    Returns:
        The configured AuthProvider

    Raises:
        ConfigurationError: If the credentials for the selected method are missing
    """
    logger.debug(f"Creating auth provider for method: {config.auth_method}")

    if config.auth_method == "api_token":
        if not config.api_token:
            raise ConfigurationError(
                "BITBUCKET_API_TOKEN (or ATLASSIAN_API_TOKEN) is required for api_token authentication"
            )
        if not config.user_email:
            raise ConfigurationError(
                "BITBUCKET_USER_EMAIL (or ATLASSIAN_USER_EMAIL) is required for api_token authentication. "
                "API tokens use Basic HTTP Authentication where username is your Atlassian email."
            )
        return ApiTokenAuthProvider(config.api_token, config.user_email)

    if config.auth_method in ("repository_token", "workspace_token"):
        if not config.api_token:
            raise ConfigurationError(
                f"BITBUCKET_API_TOKEN is required for {config.auth_method} authentication"
            )
        token_type = "repository" if config.auth_method == "repository_token" else "workspace"
        return AccessTokenAuthProvider(config.api_token, token_type)

    if config.auth_method == "oauth":
        try:
            return OAuth2AuthProvider(
                client_id=config.oauth_client_id,
                client_secret=config.oauth_client_secret,
                access_token=config.oauth_access_token,
                refresh_token=config.oauth_refresh_token,
                token_url=config.oauth_token_url,
                transport=transport,
            )
        except AuthenticationError as e:
            raise ConfigurationError(
                "BITBUCKET_OAUTH_CLIENT_ID and BITBUCKET_OAUTH_CLIENT_SECRET, "
                "BITBUCKET_OAUTH_ACCESS_TOKEN or BITBUCKET_OAUTH_REFRESH_TOKEN "
                "is required for oauth authentication"
            ) from e

    if config.auth_method == "basic":
        if not config.username or not config.password:
            raise ConfigurationError(
                "BITBUCKET_USERNAME and BITBUCKET_PASSWORD are required for basic authentication"
            )
        return BasicAuthProvider(config.username, config.password)

    raise ConfigurationError(f"Unknown authentication method: {config.auth_method}")


async def validate_auth(provider: AuthProvider) -> bool:
    """Validate a provider's credentials, logging the outcome."""
    try:
        is_valid = await provider.validate()
    except AuthenticationError as e:
        logger.error(f"Authentication validation error: {e}")
        return False
    if is_valid:
        logger.info(
            f"Authentication validated successfully using {provider.method_name}"
        )
    else:
        logger.error(f"Authentication validation failed for {provider.method_name}")
    return is_valid
