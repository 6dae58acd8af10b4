# ABOUTME: Configuration management for the Laravel Cloud client and MCP server
# ABOUTME: Reads LARAVEL_CLOUD_* environment variables into validated settings

"""
Configuration management using pydantic-settings.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

This module holds all configuration for the SDK and the MCP server. It:

1. READS environment variables (LARAVEL_CLOUD_API_TOKEN, LARAVEL_CLOUD_API_URL)
2. VALIDATES them (URL scheme, positive retry counts, known log levels)
3. PROVIDES an immutable connection description to the API client

=============================================================================
ARCHITECTURE: TWO CONFIGURATION CLASSES
=============================================================================

1. CloudConnection: everything the HTTP client needs to talk to the API
   - base URL, token, timeout, retry policy
   - FROZEN: a client is built from one connection and never sees it change.
     Replacing the token produces a new CloudConnection (see
     CloudClient.set_api_token).

2. ServerSettings: process configuration read from the environment
   - the same connection fields, under the LARAVEL_CLOUD_ prefix
   - MCP server metadata, log level, audit log destination

=============================================================================
ENVIRONMENT VARIABLE MAPPING
=============================================================================

    LARAVEL_CLOUD_API_TOKEN    -> Bearer token for the API
    LARAVEL_CLOUD_API_URL      -> API base URL (default https://cloud.laravel.com/api)
    LARAVEL_CLOUD_TIMEOUT      -> Per-request timeout in seconds (default 30)
    LARAVEL_CLOUD_RETRY_TIMES  -> Attempts per request, including the first (default 3)
    LARAVEL_CLOUD_RETRY_SLEEP  -> Delay between attempts in milliseconds (default 100)
    LARAVEL_CLOUD_LOG_LEVEL    -> DEBUG, INFO, WARNING, ERROR or CRITICAL
    LARAVEL_CLOUD_JSON_LOGS    -> Emit JSON log lines instead of console output
    LARAVEL_CLOUD_AUDIT_LOG    -> Path of a JSON-lines audit file for tool calls
    LARAVEL_CLOUD_ENV_FILE     -> Optional .env file read by load_settings()
"""

from __future__ import annotations

import os
from pathlib import Path  # noqa: TC003 - Required at runtime for Pydantic
from typing import Annotated

from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_URL = "https://cloud.laravel.com/api"


def _normalize_url(value: str) -> str:
    if not value.startswith(("http://", "https://")):
        value = f"https://{value}"
    return value.rstrip("/")


# =============================================================================
# CONNECTION CONFIGURATION
# =============================================================================


class CloudConnection(BaseModel):
    """
    Immutable description of how to reach the Laravel Cloud API.

    WHY FROZEN?
    -----------
    The API client builds its whole httpx transport from one connection:
    base URL, Authorization header, timeout. If the connection could be
    mutated in place, a request in flight could see a half-updated header
    set. Freezing the model forces callers to build a NEW connection
    (model_copy(update=...)) and hand it to the client, which then swaps
    its transport in one assignment.

    USAGE EXAMPLE:
    --------------
        connection = CloudConnection(api_token=SecretStr("my-token"))
        async with CloudClient(connection) as client:
            apps = await client.list_applications()
    """

    model_config = {"extra": "ignore", "frozen": True}

    api_url: str = Field(default=DEFAULT_API_URL, description="Laravel Cloud API base URL")

    api_token: SecretStr | None = Field(default=None, description="Laravel Cloud API token")
    # SecretStr keeps the token out of repr() and log output.
    # The Authorization header is only sent when a token is present.

    timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")

    retry_times: int = Field(
        default=3,
        ge=1,
        description="Maximum attempts per request, including the first one",
    )
    # Applied to every HTTP method alike; there is no per-method override.

    retry_sleep: int = Field(
        default=100,
        ge=0,
        description="Delay between attempts in milliseconds",
    )

    @field_validator("api_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """
        Ensure the URL has a scheme and no trailing slash.

        Endpoint paths all start with "/", so a trailing slash on the base
        would produce "https://cloud.laravel.com/api//applications".
        """
        return _normalize_url(v)

    @property
    def retry_sleep_seconds(self) -> float:
        """Retry delay converted for tenacity, which waits in seconds."""
        return self.retry_sleep / 1000


# =============================================================================
# PROCESS SETTINGS
# =============================================================================


class ServerSettings(BaseSettings):
    """
    Main configuration, read from LARAVEL_CLOUD_* environment variables.

    USAGE:
    ------
        settings = load_settings()
        settings.connection       # CloudConnection for the API client
        settings.log_level        # "INFO"
    """

    model_config = SettingsConfigDict(
        env_prefix="LARAVEL_CLOUD_",
        # Field "api_token" reads LARAVEL_CLOUD_API_TOKEN, and so on.
        extra="ignore",
        populate_by_name=True,
    )

    # -------------------------------------------------------------------------
    # API CONNECTION
    # -------------------------------------------------------------------------

    api_token: SecretStr | None = Field(default=None, description="Laravel Cloud API token")
    # Generate one from the organization settings page of the Laravel Cloud
    # dashboard. The MCP server refuses to start without it.

    api_url: str = Field(default=DEFAULT_API_URL, description="Laravel Cloud API base URL")

    timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")

    retry_times: int = Field(default=3, ge=1, description="Attempts per request")

    retry_sleep: int = Field(default=100, ge=0, description="Retry delay in milliseconds")

    # -------------------------------------------------------------------------
    # MCP SERVER
    # -------------------------------------------------------------------------

    log_level: Annotated[str, Field(pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")] = Field(
        default="INFO",
        description="Logging level",
    )

    json_logs: bool = Field(default=False, description="Render logs as JSON lines")

    audit_log: Path | None = Field(default=None, description="Path to audit log file")
    # When None, audit entries go through structlog like every other log line.

    @field_validator("api_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Same normalization as CloudConnection.api_url."""
        return _normalize_url(v)

    @property
    def has_token(self) -> bool:
        """True when a non-empty API token is configured."""
        return bool(self.api_token and self.api_token.get_secret_value())

    @property
    def connection(self) -> CloudConnection:
        """Build the immutable connection the API client is constructed from."""
        return CloudConnection(
            api_url=self.api_url,
            api_token=self.api_token if self.has_token else None,
            timeout=self.timeout,
            retry_times=self.retry_times,
            retry_sleep=self.retry_sleep,
        )


# =============================================================================
# SETTINGS LOADER
# =============================================================================


def load_settings() -> ServerSettings:
    """
    Load settings from the environment with validation.

    If LARAVEL_CLOUD_ENV_FILE is set, variables are also read from that
    file. Handy for local development:

        LARAVEL_CLOUD_API_TOKEN=my-dev-token
        LARAVEL_CLOUD_LOG_LEVEL=DEBUG

    Raises:
        pydantic.ValidationError: If configuration is invalid.
    """
    return ServerSettings(
        _env_file=os.environ.get("LARAVEL_CLOUD_ENV_FILE"),
    )
