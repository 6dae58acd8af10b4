# ABOUTME: Unit tests for configuration management
# ABOUTME: Tests connection validation, env var loading and settings defaults

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import SecretStr
from pydantic import ValidationError as PydanticValidationError

from laravel_cloud_mcp.config import (
    DEFAULT_API_URL,
    CloudConnection,
    ServerSettings,
    load_settings,
)


@pytest.mark.unit
class TestCloudConnection:
    """Tests for CloudConnection configuration."""

    def test_defaults(self):
        connection = CloudConnection()

        assert connection.api_url == "https://cloud.laravel.com/api"
        assert connection.api_token is None
        assert connection.timeout == 30.0
        assert connection.retry_times == 3
        assert connection.retry_sleep == 100

    def test_url_validation_adds_https(self):
        """Test that URL without scheme gets https added."""
        connection = CloudConnection(api_url="cloud.example.com/api")
        assert connection.api_url == "https://cloud.example.com/api"

    def test_url_validation_preserves_http(self):
        connection = CloudConnection(api_url="http://localhost:8000/api")
        assert connection.api_url == "http://localhost:8000/api"

    def test_url_validation_removes_trailing_slash(self):
        connection = CloudConnection(api_url="https://cloud.example.com/api/")
        assert connection.api_url == "https://cloud.example.com/api"

    def test_retry_sleep_seconds(self):
        assert CloudConnection(retry_sleep=250).retry_sleep_seconds == 0.25

    def test_retry_times_must_be_positive(self):
        with pytest.raises(PydanticValidationError):
            CloudConnection(retry_times=0)

    def test_retry_sleep_cannot_be_negative(self):
        with pytest.raises(PydanticValidationError):
            CloudConnection(retry_sleep=-1)

    def test_frozen(self):
        connection = CloudConnection(api_token=SecretStr("a"))

        with pytest.raises(PydanticValidationError):
            connection.api_token = SecretStr("b")

    def test_token_hidden_from_repr(self):
        connection = CloudConnection(api_token=SecretStr("super-secret"))
        assert "super-secret" not in repr(connection)


@pytest.mark.unit
class TestServerSettings:
    """Tests for ServerSettings configuration."""

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = ServerSettings()

        assert settings.api_url == DEFAULT_API_URL
        assert settings.has_token is False
        assert settings.log_level == "INFO"
        assert settings.json_logs is False
        assert settings.audit_log is None

    def test_reads_prefixed_env_vars(self):
        env = {
            "LARAVEL_CLOUD_API_TOKEN": "env-token",
            "LARAVEL_CLOUD_API_URL": "https://staging.cloud.example.com/api/",
            "LARAVEL_CLOUD_TIMEOUT": "12.5",
            "LARAVEL_CLOUD_RETRY_TIMES": "5",
            "LARAVEL_CLOUD_RETRY_SLEEP": "0",
            "LARAVEL_CLOUD_LOG_LEVEL": "DEBUG",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = ServerSettings()

        assert settings.api_token.get_secret_value() == "env-token"
        assert settings.api_url == "https://staging.cloud.example.com/api"
        assert settings.timeout == 12.5
        assert settings.retry_times == 5
        assert settings.retry_sleep == 0
        assert settings.log_level == "DEBUG"

    def test_invalid_log_level_rejected(self):
        with pytest.raises(PydanticValidationError):
            ServerSettings(log_level="VERBOSE")

    def test_empty_token_is_not_a_token(self):
        settings = ServerSettings(api_token=SecretStr(""))

        assert settings.has_token is False
        assert settings.connection.api_token is None

    def test_connection_property(self):
        settings = ServerSettings(
            api_token=SecretStr("t"),
            api_url="https://cloud.example.com/api",
            timeout=5,
            retry_times=2,
            retry_sleep=50,
        )

        connection = settings.connection

        assert isinstance(connection, CloudConnection)
        assert connection.api_token.get_secret_value() == "t"
        assert connection.api_url == "https://cloud.example.com/api"
        assert connection.timeout == 5
        assert connection.retry_times == 2
        assert connection.retry_sleep == 50

    def test_audit_log_path(self, tmp_path: Path):
        settings = ServerSettings(audit_log=tmp_path / "audit.jsonl")
        assert settings.audit_log == tmp_path / "audit.jsonl"


@pytest.mark.unit
class TestLoadSettings:
    def test_load_settings_from_environment(self):
        with patch.dict(os.environ, {"LARAVEL_CLOUD_API_TOKEN": "abc"}, clear=True):
            settings = load_settings()

        assert settings.has_token is True

    def test_load_settings_reads_env_file(self, tmp_path: Path):
        env_file = tmp_path / ".env"
        env_file.write_text("LARAVEL_CLOUD_API_TOKEN=from-file\nLARAVEL_CLOUD_JSON_LOGS=true\n")

        with patch.dict(os.environ, {"LARAVEL_CLOUD_ENV_FILE": str(env_file)}, clear=True):
            settings = load_settings()

        assert settings.api_token.get_secret_value() == "from-file"
        assert settings.json_logs is True
