"""Tests for the environment variable helpers."""

import os
from unittest.mock import patch

import pytest

from mcp_bitbucket.exceptions import ConfigurationError
from mcp_bitbucket.utils.env import getenv, getenv_int, is_env_truthy


class TestIsEnvTruthy:
    @pytest.mark.parametrize("value", ["true", "1", "yes", "y", "on", "True"])
    def test_truthy(self, value):
        with patch.dict(os.environ, {"FLAG": value}):
            assert is_env_truthy("FLAG") is True

    @pytest.mark.parametrize("value", ["false", "0", "no", "", "maybe"])
    def test_falsy(self, value):
        with patch.dict(os.environ, {"FLAG": value}):
            assert is_env_truthy("FLAG") is False

    def test_default_when_unset(self):
        with patch.dict(os.environ, clear=True):
            assert is_env_truthy("FLAG", "true") is True
            assert is_env_truthy("FLAG") is False


class TestGetenv:
    def test_first_non_empty_wins(self):
        with patch.dict(os.environ, {"A": "", "B": "second", "C": "third"}, clear=True):
            assert getenv("A", "B", "C") == "second"

    def test_default(self):
        with patch.dict(os.environ, clear=True):
            assert getenv("A", "B") is None
            assert getenv("A", default="fallback") == "fallback"


class TestGetenvInt:
    def test_unset_or_blank_uses_default(self):
        with patch.dict(os.environ, {"BLANK": "  "}, clear=True):
            assert getenv_int("MISSING", 7) == 7
            assert getenv_int("BLANK", 7) == 7

    def test_parses_integer(self):
        with patch.dict(os.environ, {"N": "42"}):
            assert getenv_int("N", 0) == 42

    def test_rejects_non_integer(self):
        with patch.dict(os.environ, {"N": "4.2"}):
            with pytest.raises(ConfigurationError, match="N must be an integer"):
                getenv_int("N", 0)

    def test_rejects_below_minimum(self):
        with patch.dict(os.environ, {"N": "0"}):
            with pytest.raises(ConfigurationError, match="N must be >= 1"):
                getenv_int("N", 5, minimum=1)
