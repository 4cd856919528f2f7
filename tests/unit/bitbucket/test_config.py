"""Tests for the Bitbucket configuration module."""

import os
from unittest.mock import patch

import pytest

from mcp_bitbucket.bitbucket.config import BitbucketConfig
from mcp_bitbucket.exceptions import ConfigurationError


def test_defaults():
    config = BitbucketConfig()

    assert config.auth_method == "api_token"
    assert config.base_url == "https://api.bitbucket.org/2.0"
    assert config.timeout == 30000
    assert config.max_retries == 3
    assert config.retry_delay == 1000
    assert config.output_format == "json"
    assert config.ssl_verify is True
    assert config.is_auth_configured() is False


def test_from_env_reads_all_settings():
    env = {
        "BITBUCKET_AUTH_METHOD": "OAUTH",
        "BITBUCKET_OAUTH_CLIENT_ID": "key",
        "BITBUCKET_OAUTH_CLIENT_SECRET": "secret",
        "BITBUCKET_BASE_URL": "https://api.example.com/2.0/",
        "BITBUCKET_WORKSPACE": "acme",
        "BITBUCKET_OUTPUT_FORMAT": "compact",
        "BITBUCKET_TIMEOUT": "5000",
        "BITBUCKET_MAX_RETRIES": "0",
        "BITBUCKET_RETRY_DELAY": "250",
        "BITBUCKET_SSL_VERIFY": "false",
    }
    with patch.dict(os.environ, env, clear=True):
        config = BitbucketConfig.from_env()

    assert config.auth_method == "oauth"
    assert config.base_url == "https://api.example.com/2.0"
    assert config.workspace == "acme"
    assert config.output_format == "compact"
    assert config.timeout == 5000
    assert config.max_retries == 0
    assert config.retry_delay == 250
    assert config.ssl_verify is False
    assert config.is_auth_configured() is True


def test_from_env_accepts_atlassian_aliases():
    env = {
        "ATLASSIAN_API_TOKEN": "token",
        "ATLASSIAN_USER_EMAIL": "dev@example.com",
    }
    with patch.dict(os.environ, env, clear=True):
        config = BitbucketConfig.from_env()

    assert config.api_token == "token"
    assert config.user_email == "dev@example.com"
    assert config.is_auth_configured() is True


def test_bitbucket_names_take_precedence_over_aliases():
    env = {
        "BITBUCKET_API_TOKEN": "primary",
        "ATLASSIAN_API_TOKEN": "alias",
    }
    with patch.dict(os.environ, env, clear=True):
        assert BitbucketConfig.from_env().api_token == "primary"


def test_app_password_alias():
    env = {
        "BITBUCKET_AUTH_METHOD": "basic",
        "BITBUCKET_USERNAME": "jdoe",
        "BITBUCKET_APP_PASSWORD": "app-pass",
    }
    with patch.dict(os.environ, env, clear=True):
        config = BitbucketConfig.from_env()

    assert config.password == "app-pass"
    assert config.is_auth_configured() is True


@pytest.mark.parametrize(
    "env, message",
    [
        ({"BITBUCKET_TIMEOUT": "soon"}, "BITBUCKET_TIMEOUT must be an integer"),
        ({"BITBUCKET_TIMEOUT": "0"}, "BITBUCKET_TIMEOUT must be >= 1"),
        ({"BITBUCKET_MAX_RETRIES": "-1"}, "BITBUCKET_MAX_RETRIES must be >= 0"),
        ({"BITBUCKET_OUTPUT_FORMAT": "toon"}, "Invalid output format"),
        ({"BITBUCKET_AUTH_METHOD": "kerberos"}, "Unknown authentication method"),
    ],
)
def test_invalid_values_raise(env, message):
    with patch.dict(os.environ, env, clear=True):
        with pytest.raises(ConfigurationError, match=message):
            BitbucketConfig.from_env()


def test_effective_base_url_for_server():
    config = BitbucketConfig(
        auth_method="basic",
        username="admin",
        password="secret",
        server_url="https://git.example.com/",
    )
    assert config.effective_base_url == "https://git.example.com/rest/api/1.0"


def test_server_url_ignored_for_cloud_auth():
    config = BitbucketConfig(api_token="t", server_url="https://git.example.com")
    assert config.effective_base_url == "https://api.bitbucket.org/2.0"


@pytest.mark.parametrize(
    "kwargs, expected",
    [
        ({"auth_method": "repository_token", "api_token": "t"}, True),
        ({"auth_method": "workspace_token"}, False),
        ({"auth_method": "oauth", "oauth_refresh_token": "r"}, True),
        ({"auth_method": "oauth", "oauth_client_id": "key"}, False),
        ({"auth_method": "basic", "username": "u"}, False),
    ],
)
def test_is_auth_configured(kwargs, expected):
    assert BitbucketConfig(**kwargs).is_auth_configured() is expected
