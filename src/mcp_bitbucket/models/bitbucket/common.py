"""
Models for the envelopes shared by every Bitbucket resource.

This module provides the pagination envelope returned by collection
endpoints and the token payload returned by the OAuth token endpoint.
"""

import logging
from typing import Any

from pydantic import Field

from ..base import ApiModel

logger = logging.getLogger(__name__)


class PaginatedResponse(ApiModel):
    """
    Bitbucket collection envelope.

    ``next`` is present exactly when more results exist; ``values`` keeps the
    server's ordering.
    """

    size: int | None = None
    page: int | None = None
    pagelen: int | None = None
    next: str | None = None
    previous: str | None = None
    values: list[Any] = Field(default_factory=list)


class OAuthTokenResponse(ApiModel):
    """Token endpoint payload for both client-credentials and refresh grants."""

    access_token: str
    token_type: str | None = None
    expires_in: int | None = None
    refresh_token: str | None = None
    scopes: str | None = None
