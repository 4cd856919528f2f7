"""Rendering of API results for tool output.

Two formats are supported: ``json`` (the full payload, pretty printed) and
``compact`` (only the essential dot-path fields of each resource, minified).
"""

import json
from typing import Any, Literal

OutputFormat = Literal["json", "compact"]
OUTPUT_FORMATS: tuple[str, ...] = ("json", "compact")

_MISSING = object()


def get_nested_value(obj: Any, path: str) -> Any:
    """Follow a dot-separated path through nested dicts; returns _MISSING when absent."""
    current = obj
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


def set_nested_value(obj: dict[str, Any], path: str, value: Any) -> None:
    parts = path.split(".")
    current = obj
    for part in parts[:-1]:
        child = current.get(part)
        if not isinstance(child, dict):
            child = {}
            current[part] = child
        current = child
    current[parts[-1]] = value


def _extract_from_object(obj: Any, fields: list[str]) -> dict[str, Any]:
    if not isinstance(obj, dict):
        return {}
    result: dict[str, Any] = {}
    for field in fields:
        value = get_nested_value(obj, field)
        if value is not _MISSING:
            set_nested_value(result, field, value)
    return result


def extract_fields(data: Any, fields: list[str]) -> Any:
    """Keep only ``fields`` from a resource, a list of resources or a ``values`` envelope.

    Envelope keys other than ``values`` (e.g. ``pagination``) are preserved.
    """
    if isinstance(data, list):
        return [_extract_from_object(item, fields) for item in data]
    if isinstance(data, dict) and "values" in data:
        values = data["values"]
        return {
            **data,
            "values": [_extract_from_object(item, fields) for item in values]
            if isinstance(values, list)
            else values,
        }
    return _extract_from_object(data, fields)


def format_output(
    data: Any,
    output_format: str = "json",
    compact_fields: list[str] | None = None,
) -> str:
    """Serialize ``data`` for an MCP text response.

    Args:
        data: Decoded API result
        output_format: "json" or "compact"
        compact_fields: Dot-paths kept in compact mode; without them compact
            mode minifies the full payload

    Returns:
        The rendered string
    """
    if output_format == "compact":
        if compact_fields:
            data = extract_fields(data, compact_fields)
        return json.dumps(data, separators=(",", ":"), ensure_ascii=False)
    return json.dumps(data, indent=2, ensure_ascii=False)
