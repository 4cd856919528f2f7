"""Helpers for Bitbucket's paginated collection envelope.

Bitbucket returns collections as ``{size, page, pagelen, next, previous, values}``
where ``next`` is present exactly when more results exist.
"""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any
from urllib.parse import parse_qs, urlparse

from ..models.bitbucket import PaginatedResponse

logger = logging.getLogger("mcp-bitbucket.pagination")

DEFAULT_PAGE_LENGTH = 25
MAX_PAGE_LENGTH = 100
DEFAULT_MAX_PAGES = 10

PageFetcher = Callable[[int, int], Awaitable[dict[str, Any]]]


def _resolve_pagelen(pagelen: int | None) -> int:
    if pagelen is None:
        return DEFAULT_PAGE_LENGTH
    return min(pagelen, MAX_PAGE_LENGTH)


def build_pagination_params(
    page: int | None = None, pagelen: int | None = None
) -> dict[str, str]:
    """Build page/pagelen query parameters.

    ``pagelen`` defaults to 25 and is clamped to 100. ``page`` is only sent
    when given, so the server applies its own default otherwise.
    """
    params: dict[str, str] = {"pagelen": str(_resolve_pagelen(pagelen))}
    if page is not None:
        params["page"] = str(page)
    return params


def has_more_pages(response: dict[str, Any]) -> bool:
    return bool(response.get("next"))


def extract_page_from_url(url: str | None) -> int | None:
    """Return the ``page`` query parameter of a pagination link.

    Missing parameters and malformed URLs yield None rather than an error.
    """
    if not url:
        return None
    try:
        values = parse_qs(urlparse(url).query).get("page")
        if not values:
            return None
        return int(values[0])
    except ValueError:
        return None


async def paginate_results(
    fetch_page: PageFetcher,
    page: int | None = None,
    pagelen: int | None = None,
    max_pages: int = DEFAULT_MAX_PAGES,
) -> AsyncIterator[list[Any]]:
    """Walk a paginated collection, yielding each page's ``values``.

    Args:
        fetch_page: Coroutine function taking (page, pagelen) and returning
            the decoded envelope
        page: First page to fetch (default 1)
        pagelen: Page size, clamped to MAX_PAGE_LENGTH
        max_pages: Upper bound on the number of pages fetched

    Yields:
        The ``values`` list of every fetched page, in order
    """
    current_page = page if page is not None else 1
    resolved_pagelen = _resolve_pagelen(pagelen)
    pages_fetched = 0

    while pages_fetched < max_pages:
        response = await fetch_page(current_page, resolved_pagelen)
        pages_fetched += 1
        yield response.get("values") or []

        if not has_more_pages(response):
            break
        current_page += 1
    else:
        logger.debug(f"Stopped pagination after reaching max_pages={max_pages}")


async def collect_all_pages(
    fetch_page: PageFetcher,
    page: int | None = None,
    pagelen: int | None = None,
    max_pages: int = DEFAULT_MAX_PAGES,
) -> list[Any]:
    """Concatenate the values of every page visited by :func:`paginate_results`."""
    results: list[Any] = []
    async for values in paginate_results(fetch_page, page, pagelen, max_pages):
        results.extend(values)
    return results


def paginate_result(response: dict[str, Any]) -> dict[str, Any]:
    """Reshape a raw envelope into the tool-facing ``{values, pagination}`` form."""
    envelope = PaginatedResponse.model_validate(response)
    return {
        "values": envelope.values,
        "pagination": {
            "page": envelope.page,
            "pagelen": envelope.pagelen,
            "size": envelope.size,
            "has_next": bool(envelope.next),
            "has_previous": bool(envelope.previous),
        },
    }
