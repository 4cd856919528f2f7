"""Typed errors raised by the Bitbucket client and their classification."""

from typing import Any

UNKNOWN_ERROR_MESSAGE = "Unknown error"


class BitbucketError(Exception):
    """Base exception for MCP-Bitbucket errors.

    Every error carries a human-readable message, a stable machine-readable
    ``code``, an optional HTTP status code and the raw server payload in
    ``details``.
    """

    code = "BITBUCKET_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        status_code: int | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.status_code = status_code
        self.details = details

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, code={self.code!r}, "
            f"status_code={self.status_code!r})"
        )


class AuthenticationError(BitbucketError):
    """Raised when Bitbucket API authentication fails (401) or credentials are unusable."""

    code = "AUTHENTICATION_ERROR"

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message, status_code=401, details=details)


class AuthorizationError(BitbucketError):
    """Raised when the credentials lack the required scope (403)."""

    code = "AUTHORIZATION_ERROR"

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message, status_code=403, details=details)


class NotFoundError(BitbucketError):
    code = "NOT_FOUND"

    def __init__(self, resource: str, identifier: str, details: Any = None) -> None:
        super().__init__(
            f"{resource} not found: {identifier}", status_code=404, details=details
        )
        self.resource = resource
        self.identifier = identifier


class RateLimitError(BitbucketError):
    """Raised on HTTP 429. ``retry_after`` is the server-requested wait in seconds."""

    code = "RATE_LIMIT_ERROR"

    def __init__(self, retry_after: float | None = None, details: Any = None) -> None:
        message = "Rate limit exceeded"
        if retry_after is not None:
            message += f". Retry after {retry_after:g} seconds"
        super().__init__(message, status_code=429, details=details)
        self.retry_after = retry_after


class ValidationError(BitbucketError):
    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: Any = None) -> None:
        super().__init__(message, status_code=400, details=details)


class ConfigurationError(BitbucketError, ValueError):
    """Raised for local misconfiguration, before any request is issued."""

    code = "CONFIGURATION_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class BitbucketAPIError(BitbucketError):
    """Any other non-success response from the Bitbucket API."""

    code = "BITBUCKET_API_ERROR"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        endpoint: str | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message, status_code=status_code, details=details)
        self.endpoint = endpoint


class BitbucketTimeoutError(BitbucketError):
    """Raised when a single request attempt exceeds its deadline."""

    code = "TIMEOUT_ERROR"

    def __init__(self, timeout_ms: float) -> None:
        super().__init__(f"Request timeout after {timeout_ms:g}ms")
        self.timeout_ms = timeout_ms


def _extract_message(body: Any) -> str:
    if not isinstance(body, dict):
        return UNKNOWN_ERROR_MESSAGE
    error = body.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if body.get("message"):
        return str(body["message"])
    return UNKNOWN_ERROR_MESSAGE


def _extract_retry_after(body: Any) -> float | None:
    if not isinstance(body, dict):
        return None
    value = body.get("retry_after")
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return value
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def classify_api_error(status_code: int, endpoint: str, body: Any) -> BitbucketError:
    """Map an HTTP status and decoded response body to a typed error.

    Never raises; the returned error is for the caller to raise.

    Args:
        status_code: HTTP status of the failed response
        endpoint: Endpoint (or URL) that was requested
        body: Best-effort decoded response body ({} when undecodable)

    Returns:
        The typed error matching the status code
    """
    message = _extract_message(body)

    if status_code == 400:
        return ValidationError(message, details=body)
    if status_code == 401:
        return AuthenticationError(message, details=body)
    if status_code == 403:
        return AuthorizationError(message, details=body)
    if status_code == 404:
        return NotFoundError("Resource", endpoint, details=body)
    if status_code == 429:
        return RateLimitError(_extract_retry_after(body), details=body)
    return BitbucketAPIError(
        message, status_code=status_code, endpoint=endpoint, details=body
    )


def format_error(error: BaseException) -> dict[str, str]:
    """Render any exception as a ``{"message", "code"}`` pair for tool output."""
    if isinstance(error, BitbucketError):
        return {"message": error.message, "code": error.code}
    return {"message": str(error) or type(error).__name__, "code": "UNKNOWN_ERROR"}
