"""Bitbucket data models."""

from .common import OAuthTokenResponse, PaginatedResponse

__all__ = [
    "OAuthTokenResponse",
    "PaginatedResponse",
]
