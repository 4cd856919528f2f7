"""Utility helpers for MCP Bitbucket."""

from .env import getenv, getenv_int, is_env_truthy
from .logging import mask_sensitive
from .output import extract_fields, format_output
from .pagination import (
    DEFAULT_MAX_PAGES,
    DEFAULT_PAGE_LENGTH,
    MAX_PAGE_LENGTH,
    build_pagination_params,
    collect_all_pages,
    extract_page_from_url,
    has_more_pages,
    paginate_result,
    paginate_results,
)

__all__ = [
    "DEFAULT_MAX_PAGES",
    "DEFAULT_PAGE_LENGTH",
    "MAX_PAGE_LENGTH",
    "build_pagination_params",
    "collect_all_pages",
    "extract_fields",
    "extract_page_from_url",
    "format_output",
    "getenv",
    "getenv_int",
    "has_more_pages",
    "is_env_truthy",
    "mask_sensitive",
    "paginate_result",
    "paginate_results",
]
