"""Base client module for Bitbucket API interactions."""

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from ..exceptions import (
    BitbucketAPIError,
    BitbucketError,
    BitbucketTimeoutError,
    classify_api_error,
)
from ..utils.pagination import DEFAULT_MAX_PAGES, collect_all_pages
from .auth import AuthProvider, create_auth_provider
from .config import BitbucketConfig
from .retry import should_retry

logger = logging.getLogger("mcp-bitbucket.client")

QueryParams = dict[str, str | int | float | bool | None]
SleepFunc = Callable[[float], Awaitable[Any]]


def _stringify(value: str | int | float | bool) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _decode_json_body(response: httpx.Response) -> Any:
    """Decode a response body as JSON, falling back to {} when it is not JSON."""
    try:
        return response.json()
    except ValueError:
        return {}


class BitbucketClient:
    """Base client for Bitbucket API interactions.

    Every request goes through :meth:`request`, which injects the auth header,
    enforces the per-attempt timeout, classifies failures and retries the
    transient ones. Requests are issued one at a time per call.
    """

    config: BitbucketConfig
    auth_provider: AuthProvider

    def __init__(
        self,
        config: BitbucketConfig | None = None,
        auth_provider: AuthProvider | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: SleepFunc | None = None,
    ) -> None:
        """Initialize the Bitbucket client with configuration options.

        Args:
            config: Optional configuration object (will use env vars if not provided)
            auth_provider: Optional provider; built from ``config`` when omitted
            transport: Optional httpx transport (used for both API and token requests)
            sleep: Coroutine used for backoff waits (defaults to asyncio.sleep)

        Raises:
            ConfigurationError: If configuration is invalid or credentials are missing
        """
        self.config = config or BitbucketConfig.from_env()
        self.auth_provider = auth_provider or create_auth_provider(
            self.config, transport=transport
        )
        self.base_url = self.config.effective_base_url
        self._sleep: SleepFunc = sleep or asyncio.sleep
        self._http = httpx.AsyncClient(
            transport=transport,
            verify=self.config.ssl_verify,
            follow_redirects=True,
            timeout=None,
        )
        logger.debug(
            f"Initialized Bitbucket client. URL: {self.base_url}, "
            f"auth method: {self.auth_provider.method_name}"
        )

    async def __aenter__(self) -> "BitbucketClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def build_url(self, endpoint: str, params: QueryParams | None = None) -> str:
        """Resolve ``endpoint`` against the base URL and append query parameters.

        Absolute http(s) URLs, such as pagination links returned by the
        server, are used verbatim. Parameters whose value is None are skipped.
        """
        if endpoint.startswith(("http://", "https://")):
            url = httpx.URL(endpoint)
        else:
            url = httpx.URL(f"{self.base_url}/{endpoint.lstrip('/')}")

        query = {
            key: _stringify(value)
            for key, value in (params or {}).items()
            if value is not None
        }
        if query:
            url = url.copy_merge_params(query)
        return str(url)

    async def request(
        self,
        endpoint: str,
        method: str = "GET",
        params: QueryParams | None = None,
        body: Any = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
        raw: bool = False,
    ) -> Any:
        """Execute a request with auth, timeout, error classification and retries.

        Args:
            endpoint: Path relative to the base URL, or an absolute URL
            method: HTTP method
            params: Query parameters (None values are dropped)
            body: JSON-serializable request body
            headers: Extra headers, applied last
            timeout: Per-attempt timeout override in milliseconds
            raw: Return the response text instead of decoded JSON

        Returns:
            Decoded JSON ({} for empty responses), or text when ``raw``

        Raises:
            BitbucketError: Typed error for every failure
        """
        method = method.upper()
        url = self.build_url(endpoint, params)
        timeout_ms = timeout if timeout is not None else self.config.timeout

        request_headers = {
            "Authorization": await self.auth_provider.get_auth_header(),
            "Accept": "text/plain, */*" if raw else "application/json",
        }
        content: str | None = None
        if body is not None and method != "GET":
            request_headers["Content-Type"] = "application/json"
            content = json.dumps(body)
        if headers:
            request_headers.update(headers)

        max_retries = self.config.max_retries
        for attempt in range(max_retries + 1):
            try:
                return await self._attempt(
                    method, url, endpoint, request_headers, content, timeout_ms, raw
                )
            except (BitbucketError, httpx.TransportError) as e:
                decision = should_retry(e, attempt, max_retries, self.config.retry_delay)
                if decision is None:
                    if isinstance(e, httpx.TransportError):
                        raise BitbucketAPIError(
                            f"Network error: {e}", endpoint=endpoint
                        ) from e
                    raise
                logger.warning(
                    f"{method} {endpoint} failed ({e}); retrying in "
                    f"{decision.delay:.2f}s [{decision.reason}, attempt "
                    f"{attempt + 1}/{max_retries}]"
                )
                await self._sleep(decision.delay)

        raise BitbucketAPIError("Request failed after maximum retries", endpoint=endpoint)

    async def _attempt(
        self,
        method: str,
        url: str,
        endpoint: str,
        headers: dict[str, str],
        content: str | None,
        timeout_ms: float,
        raw: bool,
    ) -> Any:
        logger.debug(f"Sending {method} request to {url}")
        try:
            response = await asyncio.wait_for(
                self._http.request(method, url, headers=headers, content=content),
                timeout=timeout_ms / 1000,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logger.error(f"{method} {url} timed out after {timeout_ms:g}ms")
            raise BitbucketTimeoutError(timeout_ms) from e
        except httpx.TransportError:
            raise
        except httpx.RequestError as e:
            # Redirect loops and undecodable bodies; not retried
            logger.error(f"{method} {url} failed: {e}")
            raise BitbucketAPIError(f"Request error: {e}", endpoint=endpoint) from e

        if not response.is_success:
            error = classify_api_error(
                response.status_code, endpoint, _decode_json_body(response)
            )
            logger.debug(f"HTTP error {response.status_code} for {url}: {error.message}")
            raise error

        if raw:
            return response.text
        if response.status_code == 204 or not response.headers.get("content-type"):
            return {}
        return _decode_json_body(response)

    async def get(self, endpoint: str, params: QueryParams | None = None) -> Any:
        return await self.request(endpoint, "GET", params=params)

    async def post(
        self, endpoint: str, body: Any = None, params: QueryParams | None = None
    ) -> Any:
        return await self.request(endpoint, "POST", params=params, body=body)

    async def put(
        self, endpoint: str, body: Any = None, params: QueryParams | None = None
    ) -> Any:
        return await self.request(endpoint, "PUT", params=params, body=body)

    async def patch(
        self, endpoint: str, body: Any = None, params: QueryParams | None = None
    ) -> Any:
        return await self.request(endpoint, "PATCH", params=params, body=body)

    async def delete(self, endpoint: str, params: QueryParams | None = None) -> Any:
        return await self.request(endpoint, "DELETE", params=params)

    async def get_paginated(
        self, endpoint: str, params: QueryParams | None = None
    ) -> dict[str, Any]:
        """GET one page of a collection; the envelope is returned as-is."""
        return await self.request(endpoint, "GET", params=params)

    async def get_raw(self, endpoint: str, params: QueryParams | None = None) -> str:
        """GET a text resource (diff, patch, log, file content)."""
        return await self.request(endpoint, "GET", params=params, raw=True)

    async def get_all_pages(
        self,
        endpoint: str,
        params: QueryParams | None = None,
        pagelen: int | None = None,
        max_pages: int = DEFAULT_MAX_PAGES,
    ) -> list[Any]:
        """Collect the values of up to ``max_pages`` pages of a collection."""

        async def fetch_page(page: int, page_length: int) -> dict[str, Any]:
            page_params: QueryParams = {
                **(params or {}),
                "page": page,
                "pagelen": page_length,
            }
            return await self.get_paginated(endpoint, page_params)

        return await collect_all_pages(fetch_page, pagelen=pagelen, max_pages=max_pages)
