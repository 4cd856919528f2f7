"""Pydantic models for Bitbucket API payloads."""

from .base import ApiModel
from .bitbucket import OAuthTokenResponse, PaginatedResponse

__all__ = ["ApiModel", "OAuthTokenResponse", "PaginatedResponse"]
