"""Tests for result rendering."""

import json

from mcp_bitbucket.models.constants import COMPACT_FIELDS
from mcp_bitbucket.utils.output import extract_fields, format_output

PULL_REQUEST = {
    "id": 7,
    "title": "Add login",
    "state": "OPEN",
    "author": {"display_name": "Jane", "uuid": "{u-1}", "links": {"avatar": {}}},
    "source": {"branch": {"name": "feature/login"}, "commit": {"hash": "abc"}},
    "destination": {"branch": {"name": "main"}},
    "links": {"html": {"href": "https://bitbucket.org/acme/api/pull-requests/7"}},
}


def test_json_format_is_pretty_and_complete():
    rendered = format_output(PULL_REQUEST)

    assert rendered == json.dumps(PULL_REQUEST, indent=2)
    assert json.loads(rendered) == PULL_REQUEST


def test_compact_format_keeps_essential_fields():
    rendered = format_output(PULL_REQUEST, "compact", COMPACT_FIELDS["pullrequest"])

    assert " " not in rendered.replace("Add login", "")
    assert json.loads(rendered) == {
        "id": 7,
        "title": "Add login",
        "state": "OPEN",
        "author": {"display_name": "Jane", "uuid": "{u-1}"},
        "source": {"branch": {"name": "feature/login"}},
        "destination": {"branch": {"name": "main"}},
    }


def test_compact_without_fields_minifies_everything():
    assert format_output({"a": [1, 2]}, "compact") == '{"a":[1,2]}'


def test_non_ascii_is_kept():
    assert format_output({"title": "Größe"}, "compact") == '{"title":"Größe"}'


def test_extract_fields_on_envelope_keeps_pagination():
    envelope = {
        "values": [PULL_REQUEST],
        "pagination": {"page": 1, "has_next": False},
    }

    result = extract_fields(envelope, ["id", "source.branch.name"])

    assert result == {
        "values": [{"id": 7, "source": {"branch": {"name": "feature/login"}}}],
        "pagination": {"page": 1, "has_next": False},
    }


def test_extract_fields_on_list_and_non_dict():
    assert extract_fields([{"id": 1, "x": 2}, "oops"], ["id"]) == [{"id": 1}, {}]


def test_extract_fields_keeps_falsy_values():
    assert extract_fields({"deleted": False, "size": 0}, ["deleted", "size"]) == {
        "deleted": False,
        "size": 0,
    }
